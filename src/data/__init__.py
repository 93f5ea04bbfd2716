from .database import Database
from .models import (
    Counter, Goal, Memo, Memory, MemorySpace, Process, SleepLog, Todo,
    TodoStatus, TodoType, User,
)
from .store import DocumentStore, StoreError, Subscription

__all__ = [
    "Database", "DocumentStore", "StoreError", "Subscription",
    "Counter", "Goal", "Memo", "Memory", "MemorySpace", "Process",
    "SleepLog", "Todo", "TodoStatus", "TodoType", "User",
]
