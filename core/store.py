"""
Record store: named collections of JSON records, one serialized blob per collection.

Every mutating call reads the whole collection, changes it in memory and writes the
whole blob back. There is no locking and no optimistic concurrency check, so two
writers racing on the same collection can lose updates (last write wins).
"""
import json
import logging
import random
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol, Union

import redis
import redis.asyncio as aioredis

from core.config import settings
from core.errors import PersistenceError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StorageBackend(Protocol):
    async def read(self, key: str) -> Optional[str]: ...

    async def write(self, key: str, blob: str) -> None: ...

    async def remove(self, key: str) -> None: ...

    async def keys(self, prefix: str) -> List[str]: ...


class StorageQuotaExceeded(Exception):
    pass


class MemoryBackend:
    """Process-local backend. ``capacity_bytes`` caps the total size of all blobs."""

    def __init__(self, capacity_bytes: Optional[int] = None):
        self._blobs: Dict[str, str] = {}
        self.capacity_bytes = capacity_bytes or None

    async def read(self, key: str) -> Optional[str]:
        return self._blobs.get(key)

    async def write(self, key: str, blob: str) -> None:
        if self.capacity_bytes is not None:
            used = sum(len(v) for k, v in self._blobs.items() if k != key)
            if used + len(blob) > self.capacity_bytes:
                raise StorageQuotaExceeded(
                    f"writing {len(blob)} bytes to {key} exceeds capacity of {self.capacity_bytes} bytes"
                )
        self._blobs[key] = blob

    async def remove(self, key: str) -> None:
        self._blobs.pop(key, None)

    async def keys(self, prefix: str) -> List[str]:
        return [k for k in self._blobs if k.startswith(prefix)]


class RedisBackend:
    """One Redis string per collection."""

    def __init__(self, url: str):
        self._client = aioredis.from_url(url, decode_responses=True)

    async def read(self, key: str) -> Optional[str]:
        return await self._client.get(key)

    async def write(self, key: str, blob: str) -> None:
        await self._client.set(key, blob)

    async def remove(self, key: str) -> None:
        await self._client.delete(key)

    async def keys(self, prefix: str) -> List[str]:
        return [k async for k in self._client.scan_iter(match=f"{prefix}*")]


@dataclass(frozen=True)
class Created:
    record: Record
    created: bool = True


@dataclass(frozen=True)
class AlreadyExists:
    record: Record
    created: bool = False


CreateResult = Union[Created, AlreadyExists]


def _matches(record: Record, filters: Dict[str, Any]) -> bool:
    return all(key in record and record[key] == value for key, value in filters.items())


def _generate_id(collection: str, now: datetime) -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{collection}_{int(now.timestamp() * 1000)}_{suffix}"


class RecordStore:
    def __init__(self, backend: StorageBackend, prefix: str = "campuseats_", clock: Clock = utc_now):
        self.backend = backend
        self.prefix = prefix
        self.clock = clock

    def _key(self, collection: str) -> str:
        return f"{self.prefix}{collection}"

    async def _load(self, collection: str) -> List[Record]:
        try:
            blob = await self.backend.read(self._key(collection))
        except redis.RedisError as exc:
            raise PersistenceError(f"Failed to read collection {collection}: {exc}", collection) from exc
        if not blob:
            return []
        try:
            records = json.loads(blob)
        except json.JSONDecodeError:
            logger.error(f"Collection {collection} holds a corrupt blob, treating it as empty")
            return []
        if not isinstance(records, list):
            logger.error(f"Collection {collection} is not a JSON array, treating it as empty")
            return []
        return records

    async def _save(self, collection: str, records: List[Record]) -> None:
        try:
            await self.backend.write(self._key(collection), json.dumps(records))
        except (StorageQuotaExceeded, redis.RedisError) as exc:
            raise PersistenceError(f"Failed to save collection {collection}: {exc}", collection) from exc

    async def find_many(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> List[Record]:
        """Records whose fields equal every value in ``filters``; all records for an empty filter."""
        records = await self._load(collection)
        if not filters:
            return records
        return [r for r in records if _matches(r, filters)]

    async def find_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        for record in await self.find_many(collection):
            if record.get("id") == record_id:
                return record
        return None

    async def create(self, collection: str, data: Record) -> CreateResult:
        records = await self._load(collection)
        record_id = data.get("id")
        if record_id:
            existing = next((r for r in records if r.get("id") == record_id), None)
            if existing is not None:
                logger.info(f"Record {record_id} already exists in {collection}, keeping the stored copy")
                return AlreadyExists(existing)

        now = self.clock()
        stamp = now.isoformat()
        record = {**data, "id": record_id or _generate_id(collection, now), "createdAt": stamp, "updatedAt": stamp}
        records.append(record)
        await self._save(collection, records)

        # Re-read so a backend that silently dropped the write is caught here
        stored = await self.find_by_id(collection, record["id"])
        if stored is None:
            raise PersistenceError(f"Failed to verify creation of record {record['id']} in {collection}", collection)
        logger.debug(f"Created {record['id']} in {collection} ({len(records)} records)")
        return Created(stored)

    async def update(self, collection: str, record_id: str, patch: Record) -> Optional[Record]:
        records = await self._load(collection)
        for index, record in enumerate(records):
            if record.get("id") == record_id:
                updated = {**record, **patch, "id": record_id, "updatedAt": self.clock().isoformat()}
                records[index] = updated
                await self._save(collection, records)
                return updated
        return None

    async def delete(self, collection: str, record_id: str) -> bool:
        records = await self._load(collection)
        remaining = [r for r in records if r.get("id") != record_id]
        if len(remaining) == len(records):
            return False
        await self._save(collection, remaining)
        return True

    async def delete_many(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        records = await self._load(collection)
        remaining = [r for r in records if not _matches(r, filters or {})]
        await self._save(collection, remaining)
        return len(records) - len(remaining)

    async def collections(self) -> List[str]:
        try:
            keys = await self.backend.keys(self.prefix)
        except redis.RedisError as exc:
            raise PersistenceError(f"Failed to list collections: {exc}") from exc
        return sorted(k[len(self.prefix):] for k in keys)

    async def summary(self) -> Dict[str, int]:
        """Record count per stored collection."""
        return {name: len(await self._load(name)) for name in await self.collections()}

    async def clear_all(self) -> List[str]:
        """Drop every collection under this store's prefix. Returns the names removed."""
        names = await self.collections()
        for name in names:
            try:
                await self.backend.remove(self._key(name))
            except redis.RedisError as exc:
                raise PersistenceError(f"Failed to clear collection {name}: {exc}", name) from exc
        logger.warning(f"Cleared all data: {', '.join(names) or '<nothing>'}")
        return names


def build_backend() -> StorageBackend:
    if settings.STORE_BACKEND == "redis":
        return RedisBackend(settings.REDIS_URL)
    return MemoryBackend(capacity_bytes=settings.STORE_CAPACITY_BYTES)


record_store = RecordStore(build_backend(), prefix=settings.STORE_KEY_PREFIX)
