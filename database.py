"""
MongoDB access helpers

`db` is created from DATABASE_URL / DATABASE_NAME at import time and stays
None when they are not set. Route handlers receive the database through the
`get_db` dependency so tests can swap in an in-memory one.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient

from errors import AppError, ValidationError
from settings import DATABASE_NAME, DATABASE_URL

logger = structlog.get_logger(__name__)

SECRET_USER_FIELDS = ("password", "verificationToken", "resetPasswordToken", "resetPasswordExpires")

client = None
db = None
if DATABASE_URL and DATABASE_NAME:
    client = MongoClient(DATABASE_URL)
    db = client[DATABASE_NAME]


def get_db():
    if db is None:
        raise AppError("Database not configured", 503)
    return db


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # pymongo hands back naive datetimes that are already UTC
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def to_object_id(value: Union[str, ObjectId], field: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise ValidationError("Invalid identifier", errors={field: str(value)})


def create_document(database, collection_name: str, data: Union[BaseModel, dict]) -> str:
    # plain dicts are stamped in place so callers see the generated _id
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(mode="json", exclude_none=True)
    else:
        data_dict = data
    stamp = now_utc()
    data_dict.setdefault("createdAt", stamp)
    data_dict["updatedAt"] = stamp
    result = database[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(database, collection_name: str, filter_dict: Optional[dict] = None, limit: Optional[int] = None) -> List[dict]:
    cursor = database[collection_name].find(filter_dict or {})
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def ensure_indexes(database) -> None:
    database["user"].create_index("email", unique=True)
    database["product"].create_index("slug", unique=True)
    database["category"].create_index("slug", unique=True)
    database["order"].create_index("orderNumber", unique=True)
    database["review"].create_index([("user", ASCENDING), ("product", ASCENDING)], unique=True)
    logger.debug("indexes_ensured", database=database.name)


def serialize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Make a stored document JSON friendly.

    `_id` becomes `id`, ObjectIds (also inside lists and sub-documents) become
    strings, and user secrets are never returned.
    """
    if doc is None:
        return None
    out = {}
    for key, value in doc.items():
        if key in SECRET_USER_FIELDS:
            continue
        if key == "_id":
            out["id"] = str(value)
        else:
            out[key] = _convert(value)
    return out


def _convert(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return serialize(value)
    if isinstance(value, list):
        return [_convert(v) for v in value]
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    return value


def populate(database, docs: List[dict], field: str, collection_name: str, fields=("name", "slug")) -> List[dict]:
    """Replace a reference id on each document with a small projection of the referenced document."""
    ids = {d[field] for d in docs if isinstance(d.get(field), ObjectId)}
    if not ids:
        return docs
    projection = {f: 1 for f in fields}
    refs = {r["_id"]: r for r in database[collection_name].find({"_id": {"$in": list(ids)}}, projection)}
    for doc in docs:
        ref = refs.get(doc.get(field))
        if ref:
            doc[field] = ref
    return docs
