"""
Sync Coordinator
================

Keeps one in-memory copy of every collection consistent with whichever
store last succeeded.

- StoreStrategy: the single place that decides "remote or fallback". It
  runs a call against the remote store with a timeout and turns every
  failure into a RemoteOutcome with ok=False.
- SyncedCollection: CRUD + subscribe for one record type. Remote first,
  local cache always mirrored, local-only when the remote is down.
- ChangeNotifier: listener registry shared by all collections.

Callers only ever see the records, NotFound-style errors, or a
PersistenceFailure when neither store could take the change.
"""

import asyncio
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    Generic,
    Iterable,
    List,
    Optional,
    Type,
    TypeVar,
)

from pydantic import BaseModel, ValidationError as PydanticValidationError

from hostelpay.core.clock import utcnow, isoformat
from hostelpay.core.exceptions import (
    PersistenceFailure,
    RecordNotFound,
    RemoteUnavailableError,
)
from hostelpay.core.logging_config import logger
from hostelpay.services.local_cache import LocalCache
from hostelpay.services.record_store import Document, RecordStore, Unsubscribe

T = TypeVar("T", bound=BaseModel)


# ============================================
# Change notification
# ============================================

@dataclass(frozen=True)
class DataChange:
    collection: str
    action: str  # create | update | delete | clear | sync
    record_id: Optional[str] = None


Listener = Callable[[DataChange], None]


class ChangeNotifier:
    """Listener registry. One failing listener never blocks the others."""

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, change: DataChange) -> None:
        # Snapshot: listeners may unsubscribe while being called
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as e:
                logger.error(
                    f"[Sync] Listener failed on {change.collection}/{change.action}: {e}",
                    exc_info=True,
                )

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)


# ============================================
# Remote-first strategy
# ============================================

@dataclass
class RemoteOutcome:
    ok: bool
    value: Any = None
    error: Optional[BaseException] = None


class StoreStrategy:
    """Primary (remote) store with the local cache as fallback"""

    def __init__(self, primary: Optional[RecordStore], fallback: LocalCache, timeout: float = 15.0):
        self.primary = primary
        self.fallback = fallback
        self.timeout = timeout

    @property
    def remote_available(self) -> bool:
        return self.primary is not None

    async def attempt(
        self,
        collection: str,
        operation: str,
        call: Callable[[RecordStore], Awaitable[Any]],
    ) -> RemoteOutcome:
        if self.primary is None:
            return RemoteOutcome(ok=False, error=RemoteUnavailableError("Remote store not configured", collection))

        try:
            value = await asyncio.wait_for(call(self.primary), timeout=self.timeout)
            return RemoteOutcome(ok=True, value=value)
        except asyncio.TimeoutError:
            error: BaseException = RemoteUnavailableError(
                f"Remote {operation} timed out after {self.timeout}s", collection
            )
        except RecordNotFound as e:
            logger.debug(f"[Sync] Remote {operation} on '{collection}': {e.message}")
            return RemoteOutcome(ok=False, error=e)
        except Exception as e:
            error = e

        logger.log_store_fallback(collection, operation, error)
        return RemoteOutcome(ok=False, error=error)


# ============================================
# Synced collection
# ============================================

class SyncedCollection(Generic[T]):
    """
    One entity collection mirrored across remote store, local cache and memory.

    Documents are keyed by wire (camelCase) names. In `update` a field whose
    new value is None is removed from the record.
    """

    def __init__(
        self,
        name: str,
        model: Type[T],
        strategy: StoreStrategy,
        notifier: ChangeNotifier,
        *,
        cache_key: str,
        id_factory: Callable[[List[T]], str],
        order_by: Optional[str] = None,
        descending: bool = False,
        sort_key: Optional[Callable[[T], Any]] = None,
        created_fields: Iterable[str] = (),
        touched_fields: Iterable[str] = (),
        seed: Optional[Callable[[], List[Document]]] = None,
    ):
        self.name = name
        self.model = model
        self.strategy = strategy
        self.cache = strategy.fallback
        self.notifier = notifier
        self.cache_key = cache_key
        self.id_factory = id_factory
        self.order_by = order_by
        self.descending = descending
        self.sort_key = sort_key
        self.created_fields = tuple(created_fields)
        self.touched_fields = tuple(touched_fields)
        self.seed = seed
        self._items: List[T] = []
        self._primed = False
        self._remote_unsubscribe: Optional[Unsubscribe] = None

    # ---------- helpers ----------

    def _parse(self, docs: Any) -> List[T]:
        records: List[T] = []
        if not isinstance(docs, list):
            return records
        for doc in docs:
            try:
                records.append(self.model.model_validate(doc))
            except (PydanticValidationError, TypeError) as e:
                logger.warning(f"[Sync] Skipping invalid {self.name} record: {e}")
        return records

    def _dump(self, record: T) -> Document:
        return record.model_dump(mode="json", by_alias=True, exclude_none=True)

    def _ordered(self, items: List[T]) -> List[T]:
        if self.sort_key is None:
            return list(items)
        return sorted(items, key=self.sort_key, reverse=self.descending)

    def _copies(self, items: List[T]) -> List[T]:
        return [item.model_copy(deep=True) for item in self._ordered(items)]

    def _index_of(self, record_id: str) -> int:
        for i, item in enumerate(self._items):
            if getattr(item, "id") == record_id:
                return i
        return -1

    def _commit(self, items: List[T], remote_ok: bool, operation: str) -> None:
        """
        Mirror `items` into the local cache, then make them the in-memory copy.

        A cache failure after a remote success is only logged. A cache failure
        while the remote is down means the change is stored nowhere.
        """
        try:
            self.cache.save(self.cache_key, [self._dump(i) for i in items])
        except (OSError, TypeError, ValueError) as e:
            if not remote_ok:
                raise PersistenceFailure(self.name, operation, str(e)) from e
            logger.warning(f"[Sync] Local cache write for '{self.name}' failed: {e}")
        self._items = items

    def _upsert(self, items: List[T], record: T) -> List[T]:
        updated = list(items)
        for i, item in enumerate(updated):
            if getattr(item, "id") == getattr(record, "id"):
                updated[i] = record
                return updated
        updated.append(record)
        return updated

    def announce(self, action: str, record_id: Optional[str] = None) -> None:
        """Tell data-change listeners about a change made with announce=False"""
        self._notify(action, record_id)

    def _notify(self, action: str, record_id: Optional[str] = None) -> None:
        self.notifier.notify(DataChange(self.name, action, record_id))

    # ---------- lifecycle ----------

    def prime(self) -> List[T]:
        """Warm start from the local cache, seeding defaults when it is empty"""
        cached = self.cache.load(self.cache_key)
        items = self._parse(cached) if cached is not None else []
        if cached is None and self.seed is not None:
            items = self._parse(self.seed())
            if items:
                logger.info(f"[Sync] Seeded {len(items)} default {self.name} records")
                try:
                    self.cache.save(self.cache_key, [self._dump(i) for i in items])
                except (OSError, TypeError) as e:
                    logger.warning(f"[Sync] Could not write seed for '{self.name}': {e}")
        self._items = items
        self._primed = True
        return self._copies(items)

    def _reload(self) -> None:
        """
        Bring the mirror up to date before it is read or changed.

        Without a remote store the local cache is the copy every process
        shares (server, cron script), so it is re-read each time.
        """
        if not self._primed:
            self.prime()
            return
        if self.strategy.primary is not None:
            return
        cached = self.cache.load(self.cache_key)
        if cached is not None:
            self._items = self._parse(cached)

    def attach_remote_feed(self) -> bool:
        """Follow remote push updates; False when the remote is not configured or refuses"""
        primary = self.strategy.primary
        if primary is None or self._remote_unsubscribe is not None:
            return False
        try:
            self._remote_unsubscribe = primary.subscribe(self._on_remote_snapshot)
        except Exception as e:
            logger.log_store_fallback(self.name, "subscribe", e)
            return False
        return True

    def detach(self) -> None:
        if self._remote_unsubscribe is not None:
            self._remote_unsubscribe()
            self._remote_unsubscribe = None

    def _on_remote_snapshot(self, docs: List[Document]) -> None:
        self._commit(self._parse(docs), remote_ok=True, operation="sync")
        self._notify("sync")

    # ---------- reads ----------

    def snapshot(self) -> List[T]:
        self._reload()
        return self._copies(self._items)

    def get(self, record_id: str) -> Optional[T]:
        self._reload()
        idx = self._index_of(record_id)
        return self._items[idx].model_copy(deep=True) if idx >= 0 else None

    async def list(self) -> List[T]:
        outcome = await self.strategy.attempt(
            self.name, "list", lambda store: store.list(self.order_by, self.descending)
        )
        if outcome.ok:
            self._commit(self._parse(outcome.value), remote_ok=True, operation="list")
            self._primed = True
            return self._copies(self._items)
        self._reload()
        return self._copies(self._items)

    async def find_by(self, field: str, value: Any) -> Optional[T]:
        """Look a record up by a wire field, remote first then the mirror"""
        outcome = await self.strategy.attempt(
            self.name, "get_by_field", lambda store: store.get_by_field(field, value)
        )
        if outcome.ok and outcome.value:
            records = self._parse([outcome.value])
            if records:
                return records[0]
        self._reload()
        for item in self._items:
            if self._dump(item).get(field) == value:
                return item.model_copy(deep=True)
        return None

    # ---------- mutations ----------

    async def create(self, data: Document, announce: bool = True) -> T:
        self._reload()
        now = isoformat(utcnow())
        payload = {k: v for k, v in data.items() if v is not None and k != "id"}
        for field in self.created_fields:
            payload[field] = now

        outcome = await self.strategy.attempt(
            self.name,
            "create",
            lambda store: store.create(payload, server_timestamps=self.created_fields),
        )

        if outcome.ok:
            records = self._parse([outcome.value])
            if records:
                record = records[0]
                self._commit(self._upsert(self._items, record), remote_ok=True, operation="create")
                if announce:
                    self._notify("create", getattr(record, "id"))
                return record.model_copy(deep=True)
            logger.warning(f"[Sync] Remote returned an invalid {self.name} record, keeping it local")

        try:
            record = self.model.model_validate({**payload, "id": self.id_factory(self._items)})
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceFailure(self.name, "create", str(e)) from e
        self._commit(self._items + [record], remote_ok=False, operation="create")
        if announce:
            self._notify("create", getattr(record, "id"))
        return record.model_copy(deep=True)

    async def update(self, record_id: str, changes: Document, announce: bool = True) -> T:
        self._reload()
        now = isoformat(utcnow())
        to_set = {k: v for k, v in changes.items() if v is not None and k != "id"}
        to_remove = tuple(k for k, v in changes.items() if v is None)
        for field in self.touched_fields:
            to_set[field] = now

        outcome = await self.strategy.attempt(
            self.name,
            "update",
            lambda store: store.update(
                record_id, to_set, remove_fields=to_remove, server_timestamps=self.touched_fields
            ),
        )

        if outcome.ok:
            records = self._parse([outcome.value])
            if records:
                record = records[0]
                self._commit(self._upsert(self._items, record), remote_ok=True, operation="update")
                if announce:
                    self._notify("update", record_id)
                return record.model_copy(deep=True)

        idx = self._index_of(record_id)
        if idx < 0:
            raise RecordNotFound(self.name, record_id)

        try:
            doc = self._dump(self._items[idx])
            for field in to_remove:
                doc.pop(field, None)
            doc.update(to_set)
            record = self.model.model_validate(doc)
        except (TypeError, ValueError) as e:
            raise PersistenceFailure(self.name, "update", str(e)) from e

        items = list(self._items)
        items[idx] = record
        self._commit(items, remote_ok=outcome.ok, operation="update")
        if announce:
            self._notify("update", record_id)
        return record.model_copy(deep=True)

    async def delete(self, record_id: str) -> bool:
        """True when the record existed in the local mirror"""
        self._reload()
        idx = self._index_of(record_id)
        outcome = await self.strategy.attempt(
            self.name, "delete", lambda store: store.delete(record_id)
        )

        # The remote push may already have removed it
        idx_now = self._index_of(record_id)
        if idx_now >= 0:
            items = [i for i in self._items if getattr(i, "id") != record_id]
            self._commit(items, remote_ok=outcome.ok, operation="delete")

        existed = idx >= 0
        if existed:
            self._notify("delete", record_id)
        return existed

    async def clear(self) -> int:
        self._reload()
        count = len(self._items)
        outcome = await self.strategy.attempt(self.name, "delete_all", lambda store: store.delete_all())
        self._commit([], remote_ok=outcome.ok, operation="clear")
        self._notify("clear")
        return count

    def replace_all(self, docs: List[Document]) -> List[T]:
        """Overwrite the mirror with `docs` (no remote call)"""
        self._commit(self._parse(docs), remote_ok=False, operation="replace")
        self._primed = True
        self._notify("sync")
        return self._copies(self._items)


__all__ = [
    "ChangeNotifier",
    "DataChange",
    "RemoteOutcome",
    "StoreStrategy",
    "SyncedCollection",
]
