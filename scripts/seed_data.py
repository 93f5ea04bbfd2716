"""
Seed Data Generator — fills the store with realistic fake records for
development: todos (some open, some done), goals, counters, memos and a
month of sleep logs.

Run: python scripts/seed_data.py
"""

import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.config import AppConfig
from src.data.models import TodoStatus
from src.services.app_session import AppSession


class SeedClock:
    """A settable clock so seeded records get past timestamps."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def seed(days: int = 30) -> None:
    config = AppConfig.load()
    today = datetime.now().replace(second=0, microsecond=0)
    clock = SeedClock(today - timedelta(days=days))
    session = AppSession(config, config.user, clock=clock).open()
    uid = session.user_id

    # ── Todos ───────────────────────────────────────────────────────────
    todo_texts = [
        "Finish OS homework", "Reply to recruiter", "Grocery run",
        "Refactor memory service", "Book dentist", "Read chapter 4",
        "Clean desk", "Plan weekend trip", "Update resume", "Call mom",
    ]
    for i, text in enumerate(todo_texts):
        clock.now = today - timedelta(days=random.randint(0, days - 1),
                                      hours=random.randint(0, 10))
        due = clock.now + timedelta(days=random.randint(1, 14)) if i % 3 else None
        todo_id = session.todo_service.create_todo(uid, text, due_date=due)
        if random.random() < 0.4:
            clock.now += timedelta(hours=random.randint(1, 48))
            session.todo_service.complete_todo(uid, todo_id)

    # ── Goals ───────────────────────────────────────────────────────────
    for title in ["Run a 10k", "Read 3 books", "Ship side project"]:
        clock.now = today - timedelta(days=random.randint(0, days - 1))
        goal_id = session.goals.create(uid, title, clock.now + timedelta(days=30))
        if random.random() < 0.3:
            session.goals.update_achievement(uid, goal_id, True)

    # ── Counters ────────────────────────────────────────────────────────
    for sort in ["coffee", "water", "push-ups"]:
        counter_id = session.counters.create(uid, sort)
        for _ in range(random.randint(0, 12)):
            session.counters.increment(uid, counter_id)

    # ── Memos ───────────────────────────────────────────────────────────
    for text in ["Idea: calendar heatmap", "Buy more coffee filters",
                 "Lecture moved to room 204", "Password hint: the usual"]:
        clock.now = today - timedelta(days=random.randint(0, days - 1))
        session.memos.create(uid, text)

    # ── Sleep ───────────────────────────────────────────────────────────
    for d in range(days, 0, -1):
        bedtime = (today - timedelta(days=d)).replace(hour=23, minute=0)
        clock.now = bedtime + timedelta(minutes=random.randint(-60, 90))
        sleep_id = session.sleep.start(uid)
        clock.now += timedelta(hours=random.uniform(5.0, 9.0))
        session.sleep.end(uid, sleep_id)

    open_todos = [t for t in session.todos.list(uid) if t.status == TodoStatus.PROCESS]
    session.close()
    print(f"Seeded {len(todo_texts)} todos ({len(open_todos)} open), "
          f"3 goals, 3 counters, 4 memos and {days} sleep logs.")


if __name__ == "__main__":
    seed()
