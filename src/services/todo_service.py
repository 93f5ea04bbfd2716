"""
Todo Service — todo writes plus their memory-pool side effects.

The todo write is the source of truth. Allocating or freeing its process
happens afterwards and a failure there is logged, never rolled back.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from src.data.models import Todo, TodoStatus, TodoType
from src.data.repository import TodoRepository
from src.data.store import StoreError, Subscription
from src.services.memory_service import MemoryService

logger = logging.getLogger(__name__)


class TodoService:

    def __init__(self, todos: TodoRepository, memory: MemoryService) -> None:
        self.todos = todos
        self.memory = memory

    def create_todo(self, user_id: str, text: str,
                    due_date: Optional[datetime] = None,
                    status: str = TodoStatus.PROCESS,
                    type: Optional[str] = None,
                    recurring: int = 0, stack_count: int = 0,
                    overdue: bool = False) -> Optional[str]:
        if status not in TodoStatus.ALL:
            raise ValueError(f"Unknown todo status: {status!r}")
        if type is None:
            type = TodoType.NO_DEADLINE if due_date is None else TodoType.DEADLINE
        todo = Todo(text=text, due_date=due_date, status=status, type=type,
                    recurring=recurring, stack_count=stack_count, overdue=overdue)
        todo_id = self.todos.create(user_id, todo)
        if todo_id and status == TodoStatus.PROCESS:
            self._allocate(user_id, todo_id)
        return todo_id

    def update_status(self, user_id: str, todo_id: str, status: str) -> None:
        self.todos.update_status(user_id, todo_id, status)
        if status == TodoStatus.DONE:
            self._free(user_id, todo_id)
        elif status == TodoStatus.PROCESS:
            try:
                needs_process = not self.memory.has_process(user_id, todo_id)
            except StoreError:
                logger.exception("Error looking up process for todo %s", todo_id)
                return
            if needs_process:
                self._allocate(user_id, todo_id)

    def complete_todo(self, user_id: str, todo_id: str) -> None:
        self.update_status(user_id, todo_id, TodoStatus.DONE)

    def update_todo(self, user_id: str, todo_id: str, **fields) -> None:
        """Partial update. A status change goes through update_status()."""
        status = fields.pop("status", None)
        if fields:
            self.todos.update(user_id, todo_id, fields)
        if status is not None:
            self.update_status(user_id, todo_id, status)

    def delete_todo(self, user_id: str, todo_id: str) -> None:
        self._free(user_id, todo_id)
        self.todos.delete(user_id, todo_id)

    def subscribe(self, user_id: str, callback: Callable[[List[Todo]], None]) -> Subscription:
        return self.todos.subscribe(user_id, callback)

    # ── Side effects ────────────────────────────────────────────────────────

    def _allocate(self, user_id: str, todo_id: str) -> None:
        try:
            self.memory.create_process(user_id, todo_id)
        except RuntimeError:
            logger.exception("Error creating process for todo %s", todo_id)

    def _free(self, user_id: str, todo_id: str) -> None:
        try:
            self.memory.delete_process_by_todo(user_id, todo_id)
        except StoreError:
            logger.exception("Error deleting process for todo %s", todo_id)
