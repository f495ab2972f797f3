# Queryable fields per entity.  Anything not listed here cannot be
# filtered, compared, searched or sorted on; site_id is deliberately
# absent because tenant scope comes from the Site-Id header only.
from cms.models import Article, Channel, DictEntry, Log, Promo, User
from cms.query.registry import ColumnKind, ColumnRegistry, register

TEXT = ColumnKind.TEXT
INTEGER = ColumnKind.INTEGER
TIMESTAMP = ColumnKind.TIMESTAMP

ARTICLES = register(ColumnRegistry("article", Article, {
    "id": INTEGER,
    "title": TEXT,
    "channel_id": INTEGER,
    "tags": TEXT,
    "description": TEXT,
    "content": TEXT,
    "author": TEXT,
    "origin": TEXT,
    "user_id": INTEGER,
    "type": TEXT,
    "status": TEXT,
    "is_top": INTEGER,
    "created_at": TIMESTAMP,
    "updated_at": TIMESTAMP,
}))

CHANNELS = register(ColumnRegistry("channel", Channel, {
    "id": INTEGER,
    "name": TEXT,
    "pid": INTEGER,
    "sort": INTEGER,
    "keywords": TEXT,
    "description": TEXT,
    "type": TEXT,
    "status": TEXT,
    "created_at": TIMESTAMP,
    "updated_at": TIMESTAMP,
}))

DICTS = register(ColumnRegistry("dict", DictEntry, {
    "id": INTEGER,
    "name": TEXT,
    "type": TEXT,
    "value": TEXT,
    "sort": INTEGER,
    "status": TEXT,
    "created_at": TIMESTAMP,
    "updated_at": TIMESTAMP,
}))

PROMOS = register(ColumnRegistry("promo", Promo, {
    "id": INTEGER,
    "title": TEXT,
    "url": TEXT,
    "position": TEXT,
    "content": TEXT,
    "start_time": TIMESTAMP,
    "end_time": TIMESTAMP,
    "sort": INTEGER,
    "status": TEXT,
    "created_at": TIMESTAMP,
    "updated_at": TIMESTAMP,
}))

USERS = register(ColumnRegistry("user", User, {
    "id": INTEGER,
    "username": TEXT,
    "nickname": TEXT,
    "email": TEXT,
    "phone": TEXT,
    "gender": TEXT,
    "type": TEXT,
    "status": TEXT,
    "last_login_time": TIMESTAMP,
    "created_at": TIMESTAMP,
    "updated_at": TIMESTAMP,
}))

# Audit rows are never soft-deleted.
LOGS = register(ColumnRegistry("log", Log, {
    "id": INTEGER,
    "user_id": INTEGER,
    "username": TEXT,
    "type": TEXT,
    "module": TEXT,
    "content": TEXT,
    "ip": TEXT,
    "created_at": TIMESTAMP,
}, status_field=None))
