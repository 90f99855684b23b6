"""
Database Helper Functions

MongoDB helpers backing the generic entity API (list / filter / create / update).
Collection name = lowercase of the schema class name (Report -> "report").
"""

import logging
import os
from datetime import datetime, timezone
from typing import Optional, Union

from bson import ObjectId
from bson.errors import InvalidId
from dotenv import load_dotenv
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient

load_dotenv()

logger = logging.getLogger(__name__)

_client = None
db = None

database_url = os.getenv("DATABASE_URL")
database_name = os.getenv("DATABASE_NAME")


class DatabaseNotConfigured(Exception):
    pass


def _collection(collection_name: str):
    if db is None:
        raise DatabaseNotConfigured(
            "Database not available. Check DATABASE_URL and DATABASE_NAME environment variables."
        )
    return db[collection_name]


def to_object_id(doc_id: str) -> ObjectId:
    try:
        return ObjectId(doc_id)
    except (InvalidId, TypeError):
        raise ValueError(f"Invalid id: {doc_id!r}")


def serialize(doc: Optional[dict]) -> Optional[dict]:
    """Replace Mongo's ``_id`` with a string ``id``."""
    if doc is None:
        return None
    out = dict(doc)
    out["id"] = str(out.pop("_id"))
    return out


def parse_sort(sort: Optional[str]):
    """'-created_date' -> [('created_date', DESCENDING)]"""
    if not sort:
        return None
    if sort.startswith("-"):
        return [(sort[1:], DESCENDING)]
    return [(sort, ASCENDING)]


def create_document(collection_name: str, data: Union[BaseModel, dict], created_by: Optional[str] = None):
    """Insert a single document with timestamps, return its id"""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = data.copy()

    now = datetime.now(timezone.utc)
    data_dict.setdefault("created_date", now)
    data_dict["updated_date"] = now
    if created_by is not None:
        data_dict["created_by"] = created_by

    result = _collection(collection_name).insert_one(data_dict)
    return str(result.inserted_id)


def get_documents(collection_name: str, filter_dict: dict = None, limit: int = None, sort: str = None):
    """List / filter documents, serialized"""
    cursor = _collection(collection_name).find(filter_dict or {})
    order = parse_sort(sort)
    if order:
        cursor = cursor.sort(order)
    if limit:
        cursor = cursor.limit(limit)
    return [serialize(d) for d in cursor]


def get_document(collection_name: str, doc_id: str):
    doc = _collection(collection_name).find_one({"_id": to_object_id(doc_id)})
    return serialize(doc)


def find_document(collection_name: str, filter_dict: dict):
    return serialize(_collection(collection_name).find_one(filter_dict))


def update_document(collection_name: str, doc_id: str, data: dict) -> bool:
    """Set fields on a document; False when nothing matched"""
    changes = dict(data)
    changes["updated_date"] = datetime.now(timezone.utc)
    res = _collection(collection_name).update_one({"_id": to_object_id(doc_id)}, {"$set": changes})
    return res.matched_count > 0


def update_documents(collection_name: str, filter_dict: dict, data: dict) -> int:
    changes = dict(data)
    changes["updated_date"] = datetime.now(timezone.utc)
    res = _collection(collection_name).update_many(filter_dict, {"$set": changes})
    return res.modified_count


def increment_field(collection_name: str, doc_id: str, field: str, amount: int = 1) -> bool:
    res = _collection(collection_name).update_one(
        {"_id": to_object_id(doc_id)},
        {"$inc": {field: amount}, "$set": {"updated_date": datetime.now(timezone.utc)}},
    )
    return res.matched_count > 0


def delete_document(collection_name: str, doc_id: str) -> bool:
    res = _collection(collection_name).delete_one({"_id": to_object_id(doc_id)})
    return res.deleted_count > 0


def count_documents(collection_name: str, filter_dict: dict = None) -> int:
    return _collection(collection_name).count_documents(filter_dict or {})


def toggle_in_array(collection_name: str, doc_id: str, field: str, value, counter: Optional[str] = None):
    """
    Add ``value`` to the array ``field`` if absent, otherwise remove it.

    Each direction is a single conditional update, so concurrent toggles by
    different users never overwrite each other and ``counter`` (when given)
    moves by exactly one alongside the array. Returns True when added, False
    when removed and None when the document does not exist.
    """
    coll = _collection(collection_name)
    oid = to_object_id(doc_id)
    now = datetime.now(timezone.utc)

    add = {"$addToSet": {field: value}, "$set": {"updated_date": now}}
    if counter:
        add["$inc"] = {counter: 1}
    if coll.update_one({"_id": oid, field: {"$ne": value}}, add).matched_count:
        return True

    remove = {"$pull": {field: value}, "$set": {"updated_date": now}}
    if counter:
        remove["$inc"] = {counter: -1}
    if coll.update_one({"_id": oid, field: value}, remove).matched_count:
        return False
    return None


def ensure_indexes():
    """Unique user emails; revoked tokens are looked up by jti and expire with the token."""
    _collection("user").create_index("email", unique=True)
    revoked = _collection("revokedtoken")
    revoked.create_index("jti", unique=True)
    revoked.create_index("expires_at", expireAfterSeconds=0)


if database_url and database_name:
    _client = MongoClient(database_url)
    db = _client[database_name]
    ensure_indexes()
else:
    logger.warning("DATABASE_URL / DATABASE_NAME not set; entity store disabled")
