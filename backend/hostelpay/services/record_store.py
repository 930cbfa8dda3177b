"""
Remote record stores.

A RecordStore is the document-collection API the sync coordinator talks
to for one entity type. Documents are JSON-compatible dicts keyed by the
camelCase wire names; the store assigns `id` on create and overwrites the
fields named in `server_timestamps` with its own clock.
"""

import copy
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional

from hostelpay.core.clock import utcnow, isoformat
from hostelpay.core.exceptions import RecordNotFound
from hostelpay.core.logging_config import logger

Document = Dict[str, Any]
SnapshotListener = Callable[[List[Document]], None]
Unsubscribe = Callable[[], None]


def sort_documents(docs: List[Document], order_by: Optional[str], descending: bool) -> List[Document]:
    if not order_by:
        return docs
    # Documents missing the field sort last
    present = [d for d in docs if d.get(order_by) is not None]
    missing = [d for d in docs if d.get(order_by) is None]
    present.sort(key=lambda d: d[order_by], reverse=descending)
    return present + missing


class RecordStore(ABC):
    """Async document collection for one entity type"""

    def __init__(self, collection: str):
        self.collection = collection

    @abstractmethod
    async def list(self, order_by: Optional[str] = None, descending: bool = False) -> List[Document]:
        ...

    @abstractmethod
    async def get_by_id(self, record_id: str) -> Optional[Document]:
        ...

    async def get_by_field(self, field: str, value: Any) -> Optional[Document]:
        for doc in await self.list():
            if doc.get(field) == value:
                return doc
        return None

    @abstractmethod
    async def create(self, data: Document, server_timestamps: Iterable[str] = ()) -> Document:
        ...

    @abstractmethod
    async def update(
        self,
        record_id: str,
        changes: Document,
        remove_fields: Iterable[str] = (),
        server_timestamps: Iterable[str] = (),
    ) -> Document:
        """Merge `changes` into the document; raises RecordNotFound for a missing id"""

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        """Delete a document; deleting a missing id is a no-op"""

    @abstractmethod
    async def delete_all(self) -> int:
        ...

    @abstractmethod
    def subscribe(self, on_change: SnapshotListener) -> Unsubscribe:
        """Push the full collection to `on_change` after every change"""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


def _check_document(data: Document) -> None:
    for key, value in data.items():
        if value is None:
            raise ValueError(f"Field '{key}' has no value")


class InMemoryRecordStore(RecordStore):
    """
    Process-local document store.

    Selected with REMOTE_STORE_URL=memory://. Several HostelDataService
    instances sharing one InMemoryRecordStore behave like devices sharing a
    cloud collection.
    """

    def __init__(self, collection: str):
        super().__init__(collection)
        self._docs: Dict[str, Document] = {}
        self._listeners: List[SnapshotListener] = []

    @property
    def is_empty(self) -> bool:
        return not self._docs

    def restore(self, docs: Iterable[Document]) -> int:
        """Load documents with their ids kept, e.g. from the local cache at startup"""
        count = 0
        for doc in docs:
            if doc.get("id"):
                self._docs[str(doc["id"])] = copy.deepcopy(doc)
                count += 1
        if count:
            self._publish()
        return count

    async def list(self, order_by: Optional[str] = None, descending: bool = False) -> List[Document]:
        docs = [copy.deepcopy(d) for d in self._docs.values()]
        return sort_documents(docs, order_by, descending)

    async def get_by_id(self, record_id: str) -> Optional[Document]:
        doc = self._docs.get(record_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def create(self, data: Document, server_timestamps: Iterable[str] = ()) -> Document:
        _check_document(data)
        doc = copy.deepcopy(data)
        doc["id"] = uuid.uuid4().hex
        now = isoformat(utcnow())
        for field in server_timestamps:
            doc[field] = now
        self._docs[doc["id"]] = doc
        self._publish()
        return copy.deepcopy(doc)

    async def update(
        self,
        record_id: str,
        changes: Document,
        remove_fields: Iterable[str] = (),
        server_timestamps: Iterable[str] = (),
    ) -> Document:
        _check_document(changes)
        doc = self._docs.get(record_id)
        if doc is None:
            raise RecordNotFound(self.collection, record_id)
        doc.update(copy.deepcopy(changes))
        for field in remove_fields:
            doc.pop(field, None)
        now = isoformat(utcnow())
        for field in server_timestamps:
            doc[field] = now
        doc["id"] = record_id
        self._publish()
        return copy.deepcopy(doc)

    async def delete(self, record_id: str) -> None:
        if self._docs.pop(record_id, None) is not None:
            self._publish()

    async def delete_all(self) -> int:
        count = len(self._docs)
        self._docs.clear()
        if count:
            self._publish()
        return count

    def subscribe(self, on_change: SnapshotListener) -> Unsubscribe:
        self._listeners.append(on_change)

        def unsubscribe() -> None:
            if on_change in self._listeners:
                self._listeners.remove(on_change)

        return unsubscribe

    def _publish(self) -> None:
        if not self._listeners:
            return
        snapshot = [copy.deepcopy(d) for d in self._docs.values()]
        for listener in list(self._listeners):
            try:
                listener(copy.deepcopy(snapshot))
            except Exception as e:
                logger.warning(f"[InMemoryStore] Listener on '{self.collection}' failed: {e}")
