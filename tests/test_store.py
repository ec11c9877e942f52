from datetime import datetime, timezone

import pytest
from pymongo.errors import PyMongoError

import store


def test_to_iso_naive_is_utc():
    assert store.to_iso(datetime(2024, 3, 5, 8, 9, 10, 123456)) == "2024-03-05T08:09:10.123Z"


def test_to_iso_converts_aware_values():
    value = datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc).astimezone()
    assert store.to_iso(value) == "2024-03-05T10:00:00.000Z"


def test_utc_now_has_millisecond_precision():
    assert store.utc_now().microsecond % 1000 == 0


def test_validate_post():
    assert store.validate_post({"title": "t", "content": "c", "category": "x"}) == []
    assert store.validate_post({"title": " ", "content": 5}) == ["title", "content", "category"]


def test_created_at_is_assigned_by_store():
    before = store.utc_now()
    post = store.create_post("t", "c", "Frontend")
    assert post["createdAt"] >= store.to_iso(before)
    assert store.get_post(post["_id"]) == post


def test_get_post_rejects_non_string_ids():
    assert store.get_post(None) is None


def test_driver_errors_become_store_errors():
    with pytest.raises(store.StoreError, match="boom"):
        with store.posts_collection():
            raise PyMongoError("boom")


def test_uninitialised_client_raises():
    store.close_client()
    with pytest.raises(store.StoreError):
        store.list_posts()


def test_import_posts_skips_invalid(posts):
    docs = [
        {"title": "a", "content": "b", "category": "DevOps", "createdAt": store.utc_now()},
        {"title": "", "content": "b", "category": "DevOps", "createdAt": store.utc_now()},
    ]
    assert store.import_posts(docs) == 1
    assert posts.count_documents({}) == 1
    assert store.import_posts([]) == 0
