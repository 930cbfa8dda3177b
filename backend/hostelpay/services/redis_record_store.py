"""
Redis-backed record store.

Each collection is one Redis hash (`{namespace}:{collection}`) mapping
document id to its JSON body. Every write publishes on
`{namespace}:{collection}:changes`; subscribers re-list the hash and
receive the full collection.
"""

import asyncio
import json
import uuid
from typing import Any, Iterable, List, Optional

import redis.asyncio as aioredis
from redis.asyncio import Redis

from hostelpay.core.clock import utcnow, isoformat
from hostelpay.core.exceptions import RecordNotFound
from hostelpay.core.logging_config import logger
from hostelpay.services.record_store import (
    Document,
    RecordStore,
    SnapshotListener,
    Unsubscribe,
    sort_documents,
)


def create_redis_client(url: str) -> Redis:
    """Shared client for all collections"""
    return aioredis.from_url(url, encoding="utf-8", decode_responses=True)


class RedisRecordStore(RecordStore):

    def __init__(self, client: Redis, namespace: str, collection: str):
        super().__init__(collection)
        self.redis = client
        self.key = f"{namespace}:{collection}"
        self.channel = f"{self.key}:changes"
        self._tasks: List[asyncio.Task] = []

    async def _publish(self, action: str, record_id: str = "") -> None:
        await self.redis.publish(self.channel, json.dumps({"action": action, "id": record_id}))

    async def list(self, order_by: Optional[str] = None, descending: bool = False) -> List[Document]:
        raw = await self.redis.hvals(self.key)
        docs = []
        for body in raw:
            try:
                docs.append(json.loads(body))
            except json.JSONDecodeError:
                logger.warning(f"[RedisStore] Skipping unreadable document in {self.key}")
        return sort_documents(docs, order_by, descending)

    async def get_by_id(self, record_id: str) -> Optional[Document]:
        body = await self.redis.hget(self.key, record_id)
        return json.loads(body) if body else None

    async def get_by_field(self, field: str, value: Any) -> Optional[Document]:
        for doc in await self.list():
            if doc.get(field) == value:
                return doc
        return None

    async def create(self, data: Document, server_timestamps: Iterable[str] = ()) -> Document:
        doc = dict(data)
        doc["id"] = uuid.uuid4().hex
        now = isoformat(utcnow())
        for field in server_timestamps:
            doc[field] = now
        await self.redis.hset(self.key, doc["id"], json.dumps(doc))
        await self._publish("create", doc["id"])
        return doc

    async def update(
        self,
        record_id: str,
        changes: Document,
        remove_fields: Iterable[str] = (),
        server_timestamps: Iterable[str] = (),
    ) -> Document:
        doc = await self.get_by_id(record_id)
        if doc is None:
            raise RecordNotFound(self.collection, record_id)
        doc.update(changes)
        for field in remove_fields:
            doc.pop(field, None)
        now = isoformat(utcnow())
        for field in server_timestamps:
            doc[field] = now
        doc["id"] = record_id
        await self.redis.hset(self.key, record_id, json.dumps(doc))
        await self._publish("update", record_id)
        return doc

    async def delete(self, record_id: str) -> None:
        if await self.redis.hdel(self.key, record_id):
            await self._publish("delete", record_id)

    async def delete_all(self) -> int:
        count = await self.redis.hlen(self.key)
        if count:
            await self.redis.delete(self.key)
            await self._publish("clear")
        return count

    def subscribe(self, on_change: SnapshotListener) -> Unsubscribe:
        task = asyncio.create_task(self._listen(on_change))
        self._tasks.append(task)

        def unsubscribe() -> None:
            task.cancel()
            if task in self._tasks:
                self._tasks.remove(task)

        return unsubscribe

    async def _listen(self, on_change: SnapshotListener) -> None:
        pubsub = self.redis.pubsub()
        try:
            await pubsub.subscribe(self.channel)
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    on_change(await self.list())
                except Exception as e:
                    logger.warning(f"[RedisStore] Change listener on {self.key} failed: {e}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"[RedisStore] Subscription to {self.channel} ended: {e}")
        finally:
            await pubsub.aclose()

    async def ping(self) -> bool:
        return bool(await self.redis.ping())

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()
