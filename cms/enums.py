from enum import Enum


class StatusEnum(str, Enum):
    """Row lifecycle shared by every soft-deletable table."""

    PENDING = "PENDING"
    NORMAL = "NORMAL"
    FAILURE = "FAILURE"
    DELETE = "DELETE"


class UserType(str, Enum):
    SUPERMANAGE = "SUPERMANAGE"
    MANAGE = "MANAGE"
    EDITOR = "EDITOR"
    USER = "USER"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    UNKNOWN = "UNKNOWN"


class DictType(str, Enum):
    AUTHOR = "AUTHOR"
    ORIGIN = "ORIGIN"
    TAG = "TAG"
    FRIENDLINK = "FRIENDLINK"


class ChannelType(str, Enum):
    ARTICLE = "ARTICLE"


class ArticleType(str, Enum):
    NORMAL = "NORMAL"
    HOT = "HOT"
    MEDIA = "MEDIA"


class LogType(str, Enum):
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class Module(str, Enum):
    ARTICLE = "ARTICLE"
    CHANNEL = "CHANNEL"
    USER = "USER"
    SITE = "SITE"
    DICTS = "DICTS"
    PROMO = "PROMO"
    SYSTEM = "SYSTEM"
