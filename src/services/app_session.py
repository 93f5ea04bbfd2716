"""
AppSession — everything that lives between sign-in and sign-out.

Owns the database connection, the document store, the repositories and
the services for one user. Screens register their subscriptions with
track() so close() can cancel them all in one place.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from src.config import AppConfig
from src.data.database import Database
from src.data.models import User
from src.data.repository import (
    CounterRepository, GoalRepository, MemoRepository, MemorySpaceRepository,
    ProcessRepository, SleepLogRepository, TodoRepository,
)
from src.data.store import DocumentStore, StoreError, Subscription
from src.services.memory_service import MemoryService
from src.services.sleep_service import SleepService
from src.services.todo_service import TodoService

logger = logging.getLogger(__name__)


class AppSession:

    def __init__(self, config: AppConfig, user: User,
                 dispatch: Optional[Callable[[Callable[[], None]], None]] = None,
                 clock: Callable[[], datetime] = datetime.now) -> None:
        self.config = config
        self.user = user
        self.dispatch = dispatch
        self.clock = clock
        self.db: Optional[Database] = None
        self.store: Optional[DocumentStore] = None
        self._subscriptions: List[Subscription] = []

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def is_open(self) -> bool:
        return self.store is not None

    # ── Lifecycle ───────────────────────────────────────────────────────────

    def open(self) -> "AppSession":
        if self.store is not None:
            return self
        self.db = Database(self.config.db_path)
        conn = self.db.connect()
        self.store = DocumentStore(conn, dispatch=self.dispatch)

        clock = self.clock
        self.todos = TodoRepository(self.store, clock)
        self.goals = GoalRepository(self.store, clock)
        self.counters = CounterRepository(self.store, clock)
        self.memos = MemoRepository(self.store, clock)
        self.sleep_logs = SleepLogRepository(self.store, clock)
        self.memory_spaces = MemorySpaceRepository(self.store, clock)
        self.processes = ProcessRepository(self.store, clock)

        self.memory = MemoryService(self.memory_spaces, self.processes,
                                    self.config.memory, clock)
        self.todo_service = TodoService(self.todos, self.memory)
        self.sleep = SleepService(self.sleep_logs, clock)

        try:
            self.memory.initialize_spaces(self.user_id)
        except StoreError:
            logger.exception("Error initializing memory spaces")
        logger.info("Session opened for user %s (store %s)", self.user_id,
                    "online" if self.store.available else "offline")
        return self

    def track(self, subscription: Subscription) -> Subscription:
        self._subscriptions.append(subscription)
        return subscription

    def close(self) -> None:
        for sub in self._subscriptions:
            sub.unsubscribe()
        self._subscriptions.clear()
        if self.store is not None:
            self.store.close()
            self.store = None
        if self.db is not None:
            self.db.close()
            self.db = None
        logger.info("Session closed for user %s", self.user_id)

    def __enter__(self) -> "AppSession":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The composition root. Instead of module-level globals for the store and
#   subscriber lists, one object is built on sign-in and thrown away on
#   sign-out.
#
# Data flow:
#   LoginDialog accepted -> AppSession(config, user).open()
#     -> Database -> DocumentStore -> repositories -> services
#   Screens call session.track(sub) for each subscription.
#   Logout -> session.close() -> every subscription cancelled, DB closed.
#
# Interviewer-friendly talking points:
#   1. Dependency injection without a framework: tests open a session on
#      ":memory:" with a fake clock and get the full object graph.
#   2. Lifecycle in one place means no leaked listeners after logout.
