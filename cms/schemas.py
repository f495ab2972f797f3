from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cms.enums import (
    ArticleType,
    ChannelType,
    DictType,
    Gender,
    StatusEnum,
    UserType,
)


class InputModel(BaseModel):
    # Enum fields land in String columns, so dump their plain values.
    model_config = ConfigDict(use_enum_values=True, validate_default=True)


class UpdateModel(InputModel):
    """Partial update payload.  Deletion has its own endpoint and role gate."""

    @field_validator("status", check_fields=False)
    @classmethod
    def _reject_delete(cls, value):
        if value == StatusEnum.DELETE.value:
            raise ValueError("use the DELETE endpoint to remove a record")
        return value


# --- Article ---

class ArticleBase(InputModel):
    title: str = Field(min_length=1, max_length=200)
    channel_id: int
    tags: str = ""
    description: str = ""
    content: str = ""
    author: str = Field("", max_length=50)
    origin: str = Field("", max_length=50)
    type: ArticleType = ArticleType.NORMAL
    is_top: int = 0


class ArticleCreate(ArticleBase):
    pass


class ArticleUpdate(UpdateModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    channel_id: int | None = None
    tags: str | None = None
    description: str | None = None
    content: str | None = None
    author: str | None = Field(None, max_length=50)
    origin: str | None = Field(None, max_length=50)
    type: ArticleType | None = None
    status: StatusEnum | None = None
    is_top: int | None = None


class ArticleResponse(BaseModel):
    id: int
    title: str
    channel_id: int
    tags: str
    description: str
    content: str
    author: str
    origin: str
    user_id: int | None
    type: str
    status: str
    is_top: int
    site_id: int
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- Channel ---

class ChannelCreate(InputModel):
    name: str = Field(min_length=1, max_length=50)
    pid: int = 0
    sort: int = 0
    keywords: str = Field("", max_length=200)
    description: str = ""
    type: ChannelType = ChannelType.ARTICLE


class ChannelUpdate(UpdateModel):
    name: str | None = Field(None, min_length=1, max_length=50)
    pid: int | None = None
    sort: int | None = None
    keywords: str | None = Field(None, max_length=200)
    description: str | None = None
    type: ChannelType | None = None
    status: StatusEnum | None = None


class ChannelResponse(BaseModel):
    id: int
    name: str
    pid: int
    sort: int
    keywords: str
    description: str
    type: str
    status: str
    site_id: int
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ChannelTree(ChannelResponse):
    children: list["ChannelTree"] = []


# --- Dictionary ---

class DictCreate(InputModel):
    name: str = Field(min_length=1, max_length=50)
    type: DictType
    value: str = Field("", max_length=100)
    sort: int = 0


class DictUpdate(UpdateModel):
    name: str | None = Field(None, min_length=1, max_length=50)
    type: DictType | None = None
    value: str | None = Field(None, max_length=100)
    sort: int | None = None
    status: StatusEnum | None = None


class DictResponse(BaseModel):
    id: int
    name: str
    type: str
    value: str
    sort: int
    status: str
    site_id: int
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- Promotion ---

class PromoCreate(InputModel):
    title: str = Field(min_length=1, max_length=100)
    img: str = Field("", max_length=255)
    url: str = Field("", max_length=255)
    position: str = Field("", max_length=50)
    content: str = ""
    start_time: datetime | None = None
    end_time: datetime | None = None
    sort: int = 0

    @field_validator("start_time", "end_time")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _check_window(self):
        if self.start_time and self.end_time and self.start_time > self.end_time:
            raise ValueError("start_time must not be after end_time")
        return self


class PromoUpdate(UpdateModel):
    title: str | None = Field(None, min_length=1, max_length=100)
    img: str | None = Field(None, max_length=255)
    url: str | None = Field(None, max_length=255)
    position: str | None = Field(None, max_length=50)
    content: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    sort: int | None = None
    status: StatusEnum | None = None


class PromoResponse(BaseModel):
    id: int
    title: str
    img: str
    url: str
    position: str
    content: str
    start_time: datetime | None
    end_time: datetime | None
    sort: int
    status: str
    site_id: int
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- User ---

class UserCreate(InputModel):
    username: str = Field(min_length=1, max_length=50)
    nickname: str = Field("", max_length=50)
    email: str = Field("", max_length=100)
    phone: str = Field("", max_length=20)
    gender: Gender = Gender.UNKNOWN
    type: UserType = UserType.USER


class UserUpdate(UpdateModel):
    username: str | None = Field(None, min_length=1, max_length=50)
    nickname: str | None = Field(None, max_length=50)
    email: str | None = Field(None, max_length=100)
    phone: str | None = Field(None, max_length=20)
    gender: Gender | None = None
    type: UserType | None = None
    status: StatusEnum | None = None


class UserResponse(BaseModel):
    id: int
    username: str
    nickname: str
    email: str
    phone: str
    gender: str
    type: str
    status: str
    site_id: int | None
    last_login_time: datetime | None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# --- Audit log ---

class LogResponse(BaseModel):
    id: int
    user_id: int | None
    username: str
    type: str
    module: str
    content: str
    ip: str
    user_agent: str
    site_id: int | None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# Required for the self-reference in ChannelTree.children
ChannelTree.model_rebuild()
