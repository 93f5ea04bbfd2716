"""
Repositories — one per collection, the only place documents are mapped.

Every other module talks to a repository, never to DocumentStore directly.
Each repository exposes create/update/delete plus ``subscribe()`` for live
updates, all scoped by user id. When the store is offline, writes are logged
no-ops and subscriptions receive an empty list.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .models import (
    Counter, Goal, Memo, Memory, MemorySpace, Process, SleepLog, Todo,
    TodoStatus, TodoType,
)
from .store import Document, DocumentStore, StoreError, Subscription
from .timestamps import (
    decode_due_date, encode_due_date, from_store_timestamp, to_store_timestamp,
)

logger = logging.getLogger(__name__)


class CollectionRepository:
    """Shared create/update/delete/subscribe over one collection."""

    collection = ""
    entity = ""
    order_by: Optional[str] = "createdAt"
    descending = True
    # model field name -> document key
    fields: Dict[str, str] = {}

    def __init__(self, store: DocumentStore,
                 clock: Callable[[], datetime] = datetime.now) -> None:
        self.store = store
        self.clock = clock

    # ── Commands ────────────────────────────────────────────────────────────

    def update(self, user_id: str, doc_id: str, changes: Dict[str, Any]) -> None:
        """Write only the named model fields. Last writer wins."""
        if not self._online(f"updating {self.entity.lower()} {doc_id}"):
            return
        doc = {self.fields.get(k, k): self._encode(k, v) for k, v in changes.items()}
        try:
            self.store.update(user_id, self.collection, doc_id, doc)
        except StoreError:
            logger.exception("Error updating %s %s", self.entity.lower(), doc_id)
            raise
        logger.info("%s updated: %s", self.entity, doc_id)

    def delete(self, user_id: str, doc_id: str) -> None:
        if not self._online(f"deleting {self.entity.lower()} {doc_id}"):
            return
        try:
            self.store.delete(user_id, self.collection, doc_id)
        except StoreError:
            logger.exception("Error deleting %s %s", self.entity.lower(), doc_id)
            raise
        logger.info("%s deleted: %s", self.entity, doc_id)

    # ── Queries ─────────────────────────────────────────────────────────────

    def get(self, user_id: str, doc_id: str):
        if not self.store.available:
            return None
        doc = self.store.get(user_id, self.collection, doc_id)
        return self._from_doc(doc) if doc else None

    def list(self, user_id: str, where: Optional[Document] = None) -> list:
        if not self.store.available:
            return []
        docs = self.store.query(user_id, self.collection, where=where,
                                order_by=self.order_by, descending=self.descending)
        return [self._from_doc(d) for d in docs]

    def subscribe(self, user_id: str, callback: Callable[[list], None]) -> Subscription:
        """
        Push the whole ordered collection to ``callback`` now and after every
        change. Failures degrade to ``callback([])``.
        """
        if not self.store.available:
            logger.warning("Using offline mode for %s", self.collection)
            callback([])
            return Subscription()

        def on_snapshot(docs: List[Document]) -> None:
            try:
                items = [self._from_doc(d) for d in docs]
            except (KeyError, TypeError, ValueError):
                logger.exception("Malformed %s snapshot", self.collection)
                callback([])
                return
            logger.debug("%s updated: %d", self.collection, len(items))
            callback(items)

        def on_error(exc: Exception) -> None:
            logger.error("Error subscribing to %s: %s", self.collection, exc)
            callback([])

        logger.info("Subscribing to %s for user %s", self.collection, user_id)
        return self.store.listen(user_id, self.collection, on_snapshot,
                                 order_by=self.order_by, descending=self.descending,
                                 on_error=on_error)

    # ── Helpers ─────────────────────────────────────────────────────────────

    def _create(self, user_id: str, doc: Document, stamp: bool = True) -> Optional[str]:
        if not self._online(f"creating {self.entity.lower()}"):
            return None
        if stamp:
            doc["createdAt"] = to_store_timestamp(self.clock())
        try:
            doc_id = self.store.add(user_id, self.collection, doc)
        except StoreError:
            logger.exception("Error creating %s", self.entity.lower())
            raise
        logger.info("%s created with ID: %s", self.entity, doc_id)
        return doc_id

    def _online(self, action: str) -> bool:
        if self.store.available:
            return True
        logger.warning("Store offline, skipped %s", action)
        return False

    def _encode(self, name: str, value: Any) -> Any:
        if isinstance(value, datetime):
            return to_store_timestamp(value)
        return value

    def _from_doc(self, doc: Document):
        raise NotImplementedError


# ── Todos ───────────────────────────────────────────────────────────────────

class TodoRepository(CollectionRepository):
    collection = "todos"
    entity = "Todo"
    fields = {
        "text": "text", "due_date": "dueDate", "status": "status",
        "type": "type", "recurring": "recurring", "stack_count": "stackCount",
        "overdue": "overDueDate",
    }

    def create(self, user_id: str, todo: Todo) -> Optional[str]:
        doc = {key: self._encode(name, getattr(todo, name))
               for name, key in self.fields.items()}
        return self._create(user_id, doc)

    def update_status(self, user_id: str, todo_id: str, status: str) -> None:
        if status not in TodoStatus.ALL:
            raise ValueError(f"Unknown todo status: {status!r}")
        self.update(user_id, todo_id, {"status": status})

    def _encode(self, name: str, value: Any) -> Any:
        if name == "due_date":
            return encode_due_date(value)
        return super()._encode(name, value)

    def _from_doc(self, doc: Document) -> Todo:
        return Todo(
            id=doc["id"], text=doc.get("text", ""),
            due_date=decode_due_date(doc.get("dueDate")),
            status=doc.get("status", TodoStatus.PROCESS),
            type=doc.get("type", TodoType.NO_DEADLINE),
            recurring=doc.get("recurring") or 0,
            stack_count=doc.get("stackCount") or 0,
            overdue=bool(doc.get("overDueDate")),
            created_at=from_store_timestamp(doc.get("createdAt")),
        )


# ── Goals ───────────────────────────────────────────────────────────────────

class GoalRepository(CollectionRepository):
    collection = "goals"
    entity = "Goal"
    fields = {"title": "title", "is_achieved": "isAchieved", "due_date": "dueDate"}

    def create(self, user_id: str, title: str, due_date: datetime,
               is_achieved: bool = False) -> Optional[str]:
        return self._create(user_id, {
            "title": title,
            "isAchieved": is_achieved,
            "dueDate": to_store_timestamp(due_date),
        })

    def update_achievement(self, user_id: str, goal_id: str, is_achieved: bool) -> None:
        self.update(user_id, goal_id, {"is_achieved": is_achieved})

    def _from_doc(self, doc: Document) -> Goal:
        return Goal(
            id=doc["id"], title=doc.get("title", ""),
            is_achieved=bool(doc.get("isAchieved")),
            due_date=from_store_timestamp(doc.get("dueDate")),
            created_at=from_store_timestamp(doc.get("createdAt")),
        )


# ── Counters ────────────────────────────────────────────────────────────────

class CounterRepository(CollectionRepository):
    collection = "counters"
    entity = "Counter"
    fields = {"sort": "sort", "count": "count"}

    def create(self, user_id: str, sort: str) -> Optional[str]:
        return self._create(user_id, {"sort": sort, "count": 0})

    def increment(self, user_id: str, counter_id: str) -> Optional[int]:
        return self._adjust(user_id, counter_id, 1)

    def decrement(self, user_id: str, counter_id: str) -> Optional[int]:
        """Count - 1, floored at zero."""
        return self._adjust(user_id, counter_id, -1)

    def _adjust(self, user_id: str, counter_id: str, delta: int) -> Optional[int]:
        # read-then-write; rapid double taps can race
        if not self._online(f"adjusting counter {counter_id}"):
            return None
        try:
            doc = self.store.get(user_id, self.collection, counter_id)
            if doc is None:
                logger.warning("Counter %s not found", counter_id)
                return None
            new_count = max(0, (doc.get("count") or 0) + delta)
            self.store.update(user_id, self.collection, counter_id, {"count": new_count})
        except StoreError:
            logger.exception("Error adjusting counter %s", counter_id)
            raise
        logger.info("Counter %s new count: %d", counter_id, new_count)
        return new_count

    def _from_doc(self, doc: Document) -> Counter:
        return Counter(
            id=doc["id"], sort=doc.get("sort", ""),
            count=doc.get("count") or 0,
            created_at=from_store_timestamp(doc.get("createdAt")),
        )


# ── Memos ───────────────────────────────────────────────────────────────────

class MemoRepository(CollectionRepository):
    collection = "memos"
    entity = "Memo"
    fields = {"text": "text", "content": "content"}

    def create(self, user_id: str, text: str, content: Optional[str] = None) -> Optional[str]:
        doc: Document = {"text": text}
        if content:
            doc["content"] = content
        return self._create(user_id, doc)

    def update_text(self, user_id: str, memo_id: str, text: str) -> None:
        self.update(user_id, memo_id, {"text": text})

    def _from_doc(self, doc: Document) -> Memo:
        return Memo(
            id=doc["id"], text=doc.get("text", ""),
            content=doc.get("content"),
            created_at=from_store_timestamp(doc.get("createdAt")),
        )


# ── Sleep logs ──────────────────────────────────────────────────────────────

class SleepLogRepository(CollectionRepository):
    collection = "sleepLogs"
    entity = "Sleep log"
    order_by = "startTime"
    fields = {
        "start_time": "startTime", "end_time": "endTime",
        "duration": "duration", "is_active": "isActive",
    }

    def create_active(self, user_id: str, start_time: datetime) -> Optional[str]:
        return self._create(user_id, {
            "startTime": to_store_timestamp(start_time),
            "isActive": True,
        }, stamp=False)

    def find_active(self, user_id: str) -> Optional[SleepLog]:
        active = self.list(user_id, where={"isActive": True})
        return active[0] if active else None

    def _from_doc(self, doc: Document) -> SleepLog:
        return SleepLog(
            id=doc["id"],
            start_time=from_store_timestamp(doc.get("startTime")),
            end_time=from_store_timestamp(doc.get("endTime")),
            duration=doc.get("duration"),
            is_active=bool(doc.get("isActive")),
        )


# ── Memory simulation ───────────────────────────────────────────────────────

class MemorySpaceRepository(CollectionRepository):
    collection = "memorySpaces"
    entity = "Memory space"
    order_by = "name"
    descending = False

    def add(self, user_id: str, name: str, total_capacity: float) -> Optional[str]:
        return self._create(user_id, {
            "name": name,
            "memory": {
                "totalCapacity": total_capacity,
                "usedCapacity": 0,
                "isFull": False,
                "lastUpdated": to_store_timestamp(self.clock()),
            },
        }, stamp=False)

    def find_by_name(self, user_id: str, name: str) -> Optional[MemorySpace]:
        matches = self.list(user_id, where={"name": name})
        return matches[0] if matches else None

    def set_usage(self, user_id: str, space_id: str, used_capacity: float,
                  is_full: bool) -> None:
        self.update(user_id, space_id, {
            "memory.usedCapacity": used_capacity,
            "memory.isFull": is_full,
            "memory.lastUpdated": self.clock(),
        })

    def _from_doc(self, doc: Document) -> MemorySpace:
        memory = doc.get("memory") or {}
        return MemorySpace(
            id=doc["id"], name=doc.get("name", ""),
            memory=Memory(
                total_capacity=memory.get("totalCapacity", 0),
                used_capacity=memory.get("usedCapacity", 0),
                is_full=bool(memory.get("isFull")),
                last_updated=from_store_timestamp(memory.get("lastUpdated")),
            ),
        )


class ProcessRepository(CollectionRepository):
    collection = "processes"
    entity = "Process"

    def add(self, user_id: str, todo_id: str, memory_space_id: str,
            size: float, growth_rate: float) -> Optional[str]:
        now = to_store_timestamp(self.clock())
        return self._create(user_id, {
            "todoId": todo_id,
            "memorySpaceId": memory_space_id,
            "size": size,
            "growthRate": growth_rate,
            "lastUpdated": now,
        })

    def find_by_todo(self, user_id: str, todo_id: str) -> Optional[Process]:
        matches = self.list(user_id, where={"todoId": todo_id})
        return matches[0] if matches else None

    def _from_doc(self, doc: Document) -> Process:
        return Process(
            id=doc["id"], todo_id=doc.get("todoId", ""),
            memory_space_id=doc.get("memorySpaceId", ""),
            created_at=from_store_timestamp(doc.get("createdAt")),
            size=doc.get("size", 0),
            growth_rate=doc.get("growthRate", 0),
            last_updated=from_store_timestamp(doc.get("lastUpdated")),
        )


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Maps store documents to dataclasses for todos, goals, counters, memos,
#   sleep logs, memory pools and processes. The "Repository Pattern" again,
#   one class per collection sharing a base class.
#
# Key pieces:
#   - CollectionRepository: update/delete/subscribe written once. Subclasses
#     only declare the collection name, ordering, field mapping and a
#     _from_doc() mapper.
#   - TodoRepository._encode: the due date is stored as "infinity" when
#     there is no deadline and comes back as None. Nobody above this file
#     sees the magic string.
#   - CounterRepository._adjust: floors at zero so a counter never goes
#     negative.
#
# Error handling:
#   Store offline -> log + no-op (writes) or callback([]) (subscriptions).
#   Store failure on write -> logged and re-raised for the UI to show.
#   Store failure on a snapshot -> callback([]).
