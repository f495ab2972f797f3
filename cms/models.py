from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from cms.database import Base
from cms.enums import (
    ArticleType,
    ChannelType,
    Gender,
    StatusEnum,
    UserType,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


# ---------------------------------------------------------------------------
# Channel
# ---------------------------------------------------------------------------
class Channel(TimestampMixin, Base):
    __tablename__ = "channels"

    __table_args__ = (
        Index("ix_channels_site_id_status", "site_id", "status"),
        Index("ix_channels_pid", "pid"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    # 0 marks a root channel.
    pid: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    sort: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    keywords: Mapped[str] = mapped_column(String(200), default="", nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    type: Mapped[str] = mapped_column(String(20), default=ChannelType.ARTICLE.value, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=StatusEnum.NORMAL.value, nullable=False)
    site_id: Mapped[int] = mapped_column(Integer, nullable=False)


# ---------------------------------------------------------------------------
# Article
# ---------------------------------------------------------------------------
class Article(TimestampMixin, Base):
    __tablename__ = "articles"

    __table_args__ = (
        # Every list query filters on both.
        Index("ix_articles_site_id_status", "site_id", "status"),
        Index("ix_articles_channel_id", "channel_id"),
        Index("ix_articles_user_id", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    channel_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("channels.id"), nullable=False
    )
    tags: Mapped[str] = mapped_column(Text, default="", nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    content: Mapped[str] = mapped_column(Text, default="", nullable=False)
    author: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    origin: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    type: Mapped[str] = mapped_column(String(20), default=ArticleType.NORMAL.value, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=StatusEnum.PENDING.value, nullable=False)
    is_top: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    site_id: Mapped[int] = mapped_column(Integer, nullable=False)


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class User(TimestampMixin, Base):
    __tablename__ = "users"

    __table_args__ = (
        UniqueConstraint("site_id", "username", name="uq_users_site_id_username"),
        Index("ix_users_site_id_type", "site_id", "type"),
        Index("ix_users_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    nickname: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    email: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    phone: Mapped[str] = mapped_column(String(20), default="", nullable=False)
    gender: Mapped[str] = mapped_column(String(20), default=Gender.UNKNOWN.value, nullable=False)
    type: Mapped[str] = mapped_column(String(20), default=UserType.USER.value, nullable=False)
    site_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=StatusEnum.NORMAL.value, nullable=False)
    last_login_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


# ---------------------------------------------------------------------------
# Dictionary entry (authors, origins, tags, friend links)
# ---------------------------------------------------------------------------
class DictEntry(TimestampMixin, Base):
    __tablename__ = "dicts"

    __table_args__ = (
        Index("ix_dicts_site_id_type", "site_id", "type"),
        Index("ix_dicts_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    value: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    sort: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    site_id: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=StatusEnum.NORMAL.value, nullable=False)


# ---------------------------------------------------------------------------
# Promotion slot
# ---------------------------------------------------------------------------
class Promo(TimestampMixin, Base):
    __tablename__ = "promos"

    __table_args__ = (
        Index("ix_promos_site_id_status", "site_id", "status"),
        Index("ix_promos_position", "position"),
        Index("ix_promos_start_time_end_time", "start_time", "end_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    img: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    url: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    position: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    content: Mapped[str] = mapped_column(Text, default="", nullable=False)
    start_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    sort: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    site_id: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=StatusEnum.NORMAL.value, nullable=False)


# ---------------------------------------------------------------------------
# Audit log (append-only, written by an external collaborator)
# ---------------------------------------------------------------------------
class Log(Base):
    __tablename__ = "logs"

    __table_args__ = (
        Index("ix_logs_user_id", "user_id"),
        Index("ix_logs_site_id_module", "site_id", "module"),
        Index("ix_logs_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    username: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    module: Mapped[str] = mapped_column(String(50), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    ip: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    user_agent: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    site_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
