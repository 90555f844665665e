import asyncio
import json
import re
from unittest.mock import AsyncMock

import pytest
import redis

from core.errors import PersistenceError
from core.store import AlreadyExists, Created, MemoryBackend, RecordStore


class DroppingBackend(MemoryBackend):
    """Backend that accepts writes and then forgets them."""

    async def write(self, key, blob):
        return None


class TestRecordStoreCrud:
    """Test cases for create/find/update/delete on a collection"""

    def test_create_generates_id_and_timestamps(self, store, clock):
        """Test that a record without an id gets one, plus createdAt/updatedAt"""
        result = asyncio.run(store.create("orders", {"shopId": "s1"}))

        assert isinstance(result, Created)
        assert result.created is True
        record = result.record
        assert re.fullmatch(r"orders_\d+_[a-z0-9]{9}", record["id"])
        assert record["createdAt"] == clock.now.isoformat()
        assert record["updatedAt"] == record["createdAt"]
        assert record["shopId"] == "s1"

    def test_create_with_existing_id_returns_stored_copy(self, store):
        """Test that creating a duplicate id keeps the first record untouched"""
        asyncio.run(store.create("shops", {"id": "shop_1", "name": "First"}))
        result = asyncio.run(store.create("shops", {"id": "shop_1", "name": "Second"}))

        assert isinstance(result, AlreadyExists)
        assert result.created is False
        assert result.record["name"] == "First"
        assert len(asyncio.run(store.find_many("shops"))) == 1

    def test_find_many_filters_on_every_field(self, store):
        """Test strict equality filtering"""
        asyncio.run(store.create("orders", {"shopId": "s1", "status": "pending_approval"}))
        asyncio.run(store.create("orders", {"shopId": "s1", "status": "approved"}))
        asyncio.run(store.create("orders", {"shopId": "s2", "status": "pending_approval"}))

        found = asyncio.run(store.find_many("orders", {"shopId": "s1", "status": "pending_approval"}))

        assert len(found) == 1
        assert found[0]["shopId"] == "s1"
        assert found[0]["status"] == "pending_approval"

    def test_find_many_filter_requires_field_present(self, store):
        """Test that a missing field never matches, even against None"""
        asyncio.run(store.create("orders", {"shopId": "s1"}))

        assert asyncio.run(store.find_many("orders", {"status": None})) == []

    def test_find_many_empty_filter_returns_all(self, store):
        """Test that an empty filter returns the whole collection"""
        asyncio.run(store.create("orders", {"shopId": "s1"}))
        asyncio.run(store.create("orders", {"shopId": "s2"}))

        assert len(asyncio.run(store.find_many("orders", {}))) == 2
        assert len(asyncio.run(store.find_many("orders"))) == 2

    def test_find_many_unknown_collection_is_empty(self, store):
        """Test reading a collection that was never written"""
        assert asyncio.run(store.find_many("nothing_here")) == []

    def test_find_by_id(self, store):
        """Test lookup by id"""
        created = asyncio.run(store.create("orders", {"shopId": "s1"})).record

        assert asyncio.run(store.find_by_id("orders", created["id"])) == created
        assert asyncio.run(store.find_by_id("orders", "missing")) is None

    def test_update_merges_patch_and_bumps_updated_at(self, store, clock):
        """Test that update keeps other fields and refreshes updatedAt"""
        created = asyncio.run(store.create("orders", {"shopId": "s1", "status": "pending_approval"})).record
        clock.advance(30)

        updated = asyncio.run(store.update("orders", created["id"], {"status": "approved", "id": "hijack"}))

        assert updated["id"] == created["id"]
        assert updated["status"] == "approved"
        assert updated["shopId"] == "s1"
        assert updated["createdAt"] == created["createdAt"]
        assert updated["updatedAt"] == clock.now.isoformat()
        assert asyncio.run(store.find_by_id("orders", created["id"]))["status"] == "approved"

    def test_update_missing_record_returns_none(self, store):
        """Test updating an unknown id"""
        assert asyncio.run(store.update("orders", "missing", {"status": "approved"})) is None

    def test_delete(self, store):
        """Test deleting a single record"""
        created = asyncio.run(store.create("orders", {"shopId": "s1"})).record

        assert asyncio.run(store.delete("orders", created["id"])) is True
        assert asyncio.run(store.delete("orders", created["id"])) is False
        assert asyncio.run(store.find_many("orders")) == []

    def test_delete_many_returns_count(self, store):
        """Test bulk delete by filter"""
        asyncio.run(store.create("orders", {"shopId": "s1"}))
        asyncio.run(store.create("orders", {"shopId": "s1"}))
        asyncio.run(store.create("orders", {"shopId": "s2"}))

        assert asyncio.run(store.delete_many("orders", {"shopId": "s1"})) == 2
        remaining = asyncio.run(store.find_many("orders"))
        assert [r["shopId"] for r in remaining] == ["s2"]


class TestRecordStoreFailures:
    """Test cases for storage failures and damaged data"""

    def test_capacity_exceeded_raises_persistence_error(self, clock):
        """Test that a full backend surfaces as PersistenceError"""
        store = RecordStore(MemoryBackend(capacity_bytes=64), prefix="test_", clock=clock)

        with pytest.raises(PersistenceError) as exc_info:
            asyncio.run(store.create("orders", {"notes": "x" * 200}))

        assert exc_info.value.collection == "orders"
        assert asyncio.run(store.find_many("orders")) == []

    def test_dropped_write_fails_verification(self, clock):
        """Test that a write the backend did not keep is detected"""
        store = RecordStore(DroppingBackend(), prefix="test_", clock=clock)

        with pytest.raises(PersistenceError, match="verify"):
            asyncio.run(store.create("orders", {"shopId": "s1"}))

    def test_corrupt_blob_reads_as_empty(self, store, backend):
        """Test that unparseable JSON is treated as an empty collection"""
        asyncio.run(backend.write("test_orders", "{not json"))

        assert asyncio.run(store.find_many("orders")) == []

    def test_non_list_blob_reads_as_empty(self, store, backend):
        """Test that a JSON object instead of an array is treated as empty"""
        asyncio.run(backend.write("test_orders", json.dumps({"id": "o1"})))

        assert asyncio.run(store.find_many("orders")) == []

    def test_redis_errors_become_persistence_errors(self, clock):
        """Test that backend connection errors are wrapped"""
        backend = AsyncMock()
        backend.read.side_effect = redis.ConnectionError("connection refused")
        store = RecordStore(backend, prefix="test_", clock=clock)

        with pytest.raises(PersistenceError):
            asyncio.run(store.find_many("orders"))

    def test_redis_write_error_becomes_persistence_error(self, clock):
        """Test that a failed redis write is wrapped"""
        backend = AsyncMock()
        backend.read.return_value = None
        backend.write.side_effect = redis.ConnectionError("connection refused")
        store = RecordStore(backend, prefix="test_", clock=clock)

        with pytest.raises(PersistenceError):
            asyncio.run(store.create("orders", {"shopId": "s1"}))


class TestRecordStoreAdmin:
    """Test cases for summary and clear_all"""

    def test_summary_counts_records_per_collection(self, store):
        """Test the per-collection record counts"""
        asyncio.run(store.create("orders", {"shopId": "s1"}))
        asyncio.run(store.create("orders", {"shopId": "s2"}))
        asyncio.run(store.create("shops", {"id": "shop_1"}))

        assert asyncio.run(store.summary()) == {"orders": 2, "shops": 1}

    def test_clear_all_removes_only_prefixed_collections(self, store, backend):
        """Test that clear_all leaves other prefixes alone"""
        asyncio.run(store.create("orders", {"shopId": "s1"}))
        asyncio.run(store.create("users", {"id": "u1"}))
        asyncio.run(backend.write("other_app_orders", "[]"))

        cleared = asyncio.run(store.clear_all())

        assert cleared == ["orders", "users"]
        assert asyncio.run(store.summary()) == {}
        assert asyncio.run(backend.read("other_app_orders")) == "[]"
