"""
Transient in-memory implementation of the DocumentStore.
Used when no database is configured, or as a fallback when it is unreachable.
"""

import re
import threading
from typing import Any, Dict, List, Optional

from securepay.core.exceptions import ConflictException, StoreError
from securepay.domain.repositories.base import (
    UNIQUE_FIELDS,
    Filter,
    Record,
    Sort,
)
from securepay.infrastructure.database import new_id


def _compare(value: Any, operator: str, operand: Any) -> bool:
    if operator == "$in":
        return value in operand
    if value is None:
        return False
    if operator == "$gt":
        return value > operand
    if operator == "$lt":
        return value < operand
    raise StoreError(f"Unsupported filter operator '{operator}'")


def matches(record: Record, filter: Filter) -> bool:
    for field, condition in filter.items():
        value = record.get(field)
        if isinstance(condition, re.Pattern):
            if not isinstance(value, str) or not condition.search(value):
                return False
        elif isinstance(condition, dict):
            if not all(_compare(value, op, operand) for op, operand in condition.items()):
                return False
        elif value != condition:
            return False
    return True


def _sort_key(field: str):
    # None sorts before any value
    return lambda record: (record.get(field) is not None, record.get(field))


class InMemoryStore:
    """DocumentStore over plain dicts guarded by a single lock."""

    backend_name = "memory"

    def __init__(self):
        self._collections: Dict[str, List[Record]] = {}
        self._lock = threading.RLock()

    def _collection(self, name: str) -> List[Record]:
        return self._collections.setdefault(name, [])

    def _check_unique(self, collection: str, candidate: Record, exclude: Optional[Record] = None) -> None:
        for field in UNIQUE_FIELDS.get(collection, ()):
            value = candidate.get(field)
            if value is None:
                continue
            for existing in self._collection(collection):
                if existing is not exclude and existing.get(field) == value:
                    raise ConflictException(
                        f"Duplicate value for '{field}'",
                        details={"collection": collection, "field": field},
                    )

    def find_one(self, collection: str, filter: Filter) -> Optional[Record]:
        with self._lock:
            for record in self._collection(collection):
                if matches(record, filter):
                    return dict(record)
        return None

    def insert_one(self, collection: str, record: Record) -> str:
        with self._lock:
            document = dict(record)
            document.setdefault("id", new_id())
            self._check_unique(collection, document)
            self._collection(collection).append(document)
            return document["id"]

    def _update_first(self, collection: str, filter: Filter, values: Record) -> Optional[Record]:
        for record in self._collection(collection):
            if matches(record, filter):
                self._check_unique(collection, {**record, **values}, exclude=record)
                record.update(values)
                return record
        return None

    def update_one(self, collection: str, filter: Filter, values: Record) -> int:
        with self._lock:
            return 0 if self._update_first(collection, filter, values) is None else 1

    def find(
        self,
        collection: str,
        filter: Filter,
        sort: Optional[Sort] = None,
        limit: Optional[int] = None,
    ) -> List[Record]:
        with self._lock:
            results = [dict(r) for r in self._collection(collection) if matches(r, filter or {})]
        # Stable sorts applied from the least significant key
        for field, direction in reversed(list(sort or [])):
            results.sort(key=_sort_key(field), reverse=direction < 0)
        if limit is not None:
            results = results[:limit]
        return results

    def find_one_and_update(self, collection: str, filter: Filter, values: Record) -> Optional[Record]:
        with self._lock:
            record = self._update_first(collection, filter, values)
            return dict(record) if record is not None else None

    def delete_many(self, collection: str, filter: Filter) -> int:
        with self._lock:
            records = self._collection(collection)
            kept = [r for r in records if not matches(r, filter)]
            removed = len(records) - len(kept)
            self._collections[collection] = kept
            return removed

    def ping(self) -> None:
        return None

