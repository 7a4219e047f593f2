"""
In-process document store.

A Database owns named collections (db["product"], db["order"], ...), each a dict of
pydantic records keyed by id. The app factory builds one Database at start-up and
closes it on shutdown; nothing here is a module-level singleton. Queries are linear
scans with a predicate, which is all the catalog needs.
"""
import logging
import threading
import uuid
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel

logger = logging.getLogger("artisan_store.database")

T = TypeVar("T", bound=BaseModel)
Predicate = Callable[[T], bool]


def new_id() -> str:
    return str(uuid.uuid4())


class Collection(Generic[T]):
    def __init__(self, name: str):
        self.name = name
        self._docs: Dict[str, T] = {}
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        """Held by services that read-modify-write more than one record."""
        return self._lock

    def __len__(self) -> int:
        return len(self._docs)

    def get(self, doc_id: str) -> Optional[T]:
        return self._docs.get(doc_id)

    def find(self, predicate: Optional[Predicate] = None) -> List[T]:
        with self._lock:
            docs = list(self._docs.values())
        if predicate is None:
            return docs
        return [d for d in docs if predicate(d)]

    def find_one(self, predicate: Predicate) -> Optional[T]:
        with self._lock:
            for doc in self._docs.values():
                if predicate(doc):
                    return doc
        return None

    def insert(self, doc: T) -> T:
        with self._lock:
            if doc.id in self._docs:
                raise KeyError(f"{self.name}: duplicate id {doc.id}")
            self._docs[doc.id] = doc
        return doc

    def replace(self, doc: T) -> T:
        with self._lock:
            if doc.id not in self._docs:
                raise KeyError(f"{self.name}: unknown id {doc.id}")
            self._docs[doc.id] = doc
        return doc

    def delete(self, doc_id: str) -> bool:
        with self._lock:
            return self._docs.pop(doc_id, None) is not None

    def delete_many(self, predicate: Predicate) -> int:
        with self._lock:
            doomed = [k for k, d in self._docs.items() if predicate(d)]
            for k in doomed:
                del self._docs[k]
        return len(doomed)

    def clear(self):
        with self._lock:
            self._docs.clear()


class Database:
    def __init__(self, name: str = "artisan_store"):
        self.name = name
        self._collections: Dict[str, Collection] = {}
        self._closed = False

    def __getitem__(self, name: str) -> Collection:
        if self._closed:
            raise RuntimeError(f"database {self.name} is closed")
        if name not in self._collections:
            self._collections[name] = Collection(name)
        return self._collections[name]

    def list_collection_names(self) -> List[str]:
        return sorted(self._collections)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self):
        for coll in self._collections.values():
            coll.clear()
        self._collections.clear()
        self._closed = True
        logger.info("Database %s closed", self.name)
