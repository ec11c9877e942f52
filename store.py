from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from bson import ObjectId
from pymongo import DESCENDING, MongoClient
from pymongo.errors import PyMongoError

import config


REQUIRED_FIELDS = ("title", "content", "category")

_client: Optional[MongoClient] = None
_db_name: str = config.MONGODB_DB


class StoreError(RuntimeError):
    """Raised when reading or writing posts in MongoDB fails."""


def init_client(uri: str, db_name: Optional[str] = None) -> MongoClient:
    """Create the process-wide client. Call once at startup."""
    global _client, _db_name
    close_client()
    _client = MongoClient(uri)
    _db_name = db_name or config.MONGODB_DB
    return _client


def close_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None


@contextmanager
def posts_collection():
    if _client is None:
        raise StoreError("MongoDB client is not initialised")
    try:
        yield _client[_db_name][config.POSTS_COLLECTION]
    except PyMongoError as exc:
        raise StoreError(str(exc) or "Database error") from exc


def utc_now() -> datetime:
    # BSON dates carry millisecond precision and come back naive (UTC).
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def to_iso(value) -> str:
    if isinstance(value, str):
        return value
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return f"{value.strftime('%Y-%m-%dT%H:%M:%S')}.{value.microsecond // 1000:03d}Z"


def serialize_post(doc: Dict) -> Dict:
    post = dict(doc)
    post["_id"] = str(doc["_id"])
    post["createdAt"] = to_iso(doc["createdAt"])
    post.setdefault("imageUrl", None)
    return post


def validate_post(payload: Dict) -> List[str]:
    """Names of required fields that are absent, blank or not text."""
    missing = []
    for field in REQUIRED_FIELDS:
        value = payload.get(field)
        if not isinstance(value, str) or not value.strip():
            missing.append(field)
    return missing


def list_posts() -> List[Dict]:
    with posts_collection() as posts:
        cursor = posts.find({}).sort("createdAt", DESCENDING)
        return [serialize_post(doc) for doc in cursor]


def get_post(post_id: str) -> Optional[Dict]:
    # Malformed ids and unknown ids are both reported as "not found".
    if not isinstance(post_id, str) or not ObjectId.is_valid(post_id):
        return None
    with posts_collection() as posts:
        doc = posts.find_one({"_id": ObjectId(post_id)})
    return serialize_post(doc) if doc else None


def create_post(
    title: str, content: str, category: str, image_url: Optional[str] = None
) -> Dict:
    doc = {
        "title": title,
        "content": content,
        "imageUrl": image_url or None,
        "category": category,
        "createdAt": utc_now(),
    }
    with posts_collection() as posts:
        result = posts.insert_one(doc)
    if not result.acknowledged:
        raise StoreError("Failed to create post")
    doc["_id"] = result.inserted_id
    return serialize_post(doc)


def import_posts(docs: Iterable[Dict]) -> int:
    docs = [dict(d) for d in docs if not validate_post(d)]
    if not docs:
        return 0
    with posts_collection() as posts:
        result = posts.insert_many(docs)
    return len(result.inserted_ids)
