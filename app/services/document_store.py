"""
In-process document store.

Named collections of JSON-like documents keyed by id, standing in for the
hosted document database the wizard and triggers write to. Listeners
registered with ``on_write`` run after every set/delete on a collection and
receive ``(doc_id, before, after)``; ``after`` is None for deletes.
"""
import copy
import logging
import threading
import uuid
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

REGISTRATION_PROGRESS = "registrationProgress"
MAIL = "mail"
ANALYTICS = "analytics"

WriteListener = Callable[[str, Optional[dict], Optional[dict]], None]


class DocumentStore:
    def __init__(self):
        self.collections: Dict[str, Dict[str, dict]] = defaultdict(dict)
        self.listeners: Dict[str, List[WriteListener]] = defaultdict(list)
        self._lock = threading.RLock()

    def on_write(self, collection: str, listener: WriteListener) -> None:
        self.listeners[collection].append(listener)

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        """Return a copy of the document, or None if it does not exist."""
        doc = self.collections[collection].get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Insert a document under a generated id and return the id."""
        doc_id = uuid.uuid4().hex
        self.set(collection, doc_id, data)
        return doc_id

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        with self._lock:
            before = self.collections[collection].get(doc_id)
            after = {**before, **data} if merge and before else dict(data)
            self.collections[collection][doc_id] = copy.deepcopy(after)
        self._notify(collection, doc_id, before, after)

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            before = self.collections[collection].pop(doc_id, None)
        if before is not None:
            self._notify(collection, doc_id, before, None)

    def where(self, collection: str, **filters) -> List[dict]:
        """Documents whose fields equal every given filter, each with its ``id``."""
        return [
            {"id": doc_id, **copy.deepcopy(doc)}
            for doc_id, doc in list(self.collections[collection].items())
            if all(doc.get(key) == value for key, value in filters.items())
        ]

    def _notify(self, collection: str, doc_id: str, before: Optional[dict], after: Optional[dict]) -> None:
        for listener in self.listeners[collection]:
            try:
                listener(doc_id, copy.deepcopy(before), copy.deepcopy(after))
            except Exception:
                # A failing trigger never fails the write that fired it
                logger.exception(f"Write listener {getattr(listener, '__name__', listener)} failed on {collection}/{doc_id}")
