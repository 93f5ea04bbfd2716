"""Unit tests for the data layer: timestamps, document store, repositories."""

import sqlite3
import pytest
from datetime import datetime, timedelta
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.data.database import SCHEMA_SQL, Database
from src.data.models import TodoStatus, TodoType, Todo
from src.data.repository import (
    CounterRepository, GoalRepository, MemoRepository, MemorySpaceRepository,
    ProcessRepository, SleepLogRepository, TodoRepository,
)
from src.data.store import DocumentStore, StoreError, Subscription
from src.data.timestamps import (
    NO_DEADLINE, decode_due_date, encode_due_date, from_store_timestamp,
    hours_between, minutes_between, to_store_timestamp,
)

UID = "user-1"


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def conn():
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.executescript(SCHEMA_SQL)
    conn.commit()
    return conn


@pytest.fixture
def store(conn):
    return DocumentStore(conn)


@pytest.fixture
def offline_store():
    return DocumentStore(None)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 6, 2, 9, 0))


# ── Timestamps ──────────────────────────────────────────────────────────────

class TestTimestamps:
    def test_roundtrip_keeps_microseconds(self):
        dt = datetime(2025, 6, 2, 23, 15, 30, 123456)
        assert from_store_timestamp(to_store_timestamp(dt)) == dt

    def test_none_passes_through(self):
        assert to_store_timestamp(None) is None
        assert from_store_timestamp(None) is None
        assert from_store_timestamp("") is None

    def test_accepts_datetime_and_epoch(self):
        dt = datetime(2025, 1, 1, 12, 0)
        assert from_store_timestamp(dt) is dt
        assert from_store_timestamp(dt.timestamp()) == dt

    def test_due_date_sentinel(self):
        assert encode_due_date(None) == NO_DEADLINE == "infinity"
        assert decode_due_date("infinity") is None
        assert decode_due_date(None) is None
        due = datetime(2025, 7, 1)
        assert decode_due_date(encode_due_date(due)) == due

    def test_intervals(self):
        a = datetime(2025, 6, 2, 23, 0)
        b = datetime(2025, 6, 3, 6, 30)
        assert hours_between(b, a) == pytest.approx(7.5)
        assert minutes_between(b, a) == pytest.approx(450)


# ── Database ────────────────────────────────────────────────────────────────

class TestDatabase:
    def test_connect_in_memory(self):
        db = Database(":memory:")
        conn = db.connect()
        assert conn is not None
        assert db.connected
        assert db.connect() is conn
        db.close()
        assert not db.connected

    def test_unreachable_path_is_offline(self, tmp_path):
        db = Database(tmp_path / "missing" / "dir" / "app.db")
        assert db.connect() is None
        assert not db.connected


# ── Document store ──────────────────────────────────────────────────────────

class TestDocumentStore:
    def test_add_and_get(self, store):
        doc_id = store.add(UID, "memos", {"text": "hello"})
        doc = store.get(UID, "memos", doc_id)
        assert doc == {"id": doc_id, "text": "hello"}

    def test_get_missing(self, store):
        assert store.get(UID, "memos", "nope") is None

    def test_documents_are_scoped_by_user(self, store):
        doc_id = store.add(UID, "memos", {"text": "mine"})
        assert store.get("someone-else", "memos", doc_id) is None
        assert store.query("someone-else", "memos") == []

    def test_update_only_named_fields(self, store):
        doc_id = store.add(UID, "todos", {"text": "a", "status": "process"})
        store.update(UID, "todos", doc_id, {"status": "done"})
        assert store.get(UID, "todos", doc_id) == {"id": doc_id, "text": "a", "status": "done"}

    def test_update_dotted_path(self, store):
        doc_id = store.add(UID, "memorySpaces", {
            "name": "memory", "memory": {"totalCapacity": 100, "usedCapacity": 0},
        })
        store.update(UID, "memorySpaces", doc_id, {"memory.usedCapacity": 10})
        doc = store.get(UID, "memorySpaces", doc_id)
        assert doc["memory"] == {"totalCapacity": 100, "usedCapacity": 10}

    def test_update_missing_raises(self, store):
        with pytest.raises(StoreError, match="No document"):
            store.update(UID, "todos", "missing", {"status": "done"})

    def test_delete_is_unconditional(self, store):
        doc_id = store.add(UID, "memos", {"text": "x"})
        store.delete(UID, "memos", doc_id)
        store.delete(UID, "memos", doc_id)
        assert store.get(UID, "memos", doc_id) is None

    def test_query_where_and_order(self, store):
        store.add(UID, "spaces", {"name": "b", "kind": "x"})
        store.add(UID, "spaces", {"name": "a", "kind": "x"})
        store.add(UID, "spaces", {"name": "c", "kind": "y"})
        names = [d["name"] for d in store.query(UID, "spaces", where={"kind": "x"},
                                                order_by="name")]
        assert names == ["a", "b"]
        desc = [d["name"] for d in store.query(UID, "spaces", order_by="name",
                                               descending=True)]
        assert desc == ["c", "b", "a"]

    def test_listen_delivers_initial_and_updates(self, store):
        snapshots = []
        store.add(UID, "memos", {"text": "first"})
        sub = store.listen(UID, "memos", snapshots.append)
        assert [d["text"] for d in snapshots[-1]] == ["first"]

        store.add(UID, "memos", {"text": "second"})
        assert len(snapshots) == 2
        assert len(snapshots[-1]) == 2

        sub.unsubscribe()
        store.add(UID, "memos", {"text": "third"})
        assert len(snapshots) == 2

    def test_listen_ignores_other_collections(self, store):
        snapshots = []
        store.listen(UID, "memos", snapshots.append)
        store.add(UID, "todos", {"text": "x"})
        store.add("other", "memos", {"text": "x"})
        assert len(snapshots) == 1

    def test_failing_listener_does_not_break_write(self, store):
        def broken(docs):
            if docs:
                raise ValueError("render failed")

        snapshots = []
        store.listen(UID, "memos", broken)
        store.listen(UID, "memos", snapshots.append)

        doc_id = store.add(UID, "memos", {"text": "kept"})
        assert store.get(UID, "memos", doc_id)["text"] == "kept"
        assert [d["text"] for d in snapshots[-1]] == ["kept"]

        store.update(UID, "memos", doc_id, {"text": "edited"})
        assert [d["text"] for d in snapshots[-1]] == ["edited"]

    def test_descending_ties_newest_first(self, store):
        store.add(UID, "memos", {"text": "a", "createdAt": "2025-06-02T09:00:00"})
        store.add(UID, "memos", {"text": "b", "createdAt": "2025-06-02T09:00:00"})
        store.add(UID, "memos", {"text": "c", "createdAt": "2025-06-01T09:00:00"})
        newest = [d["text"] for d in store.query(UID, "memos", order_by="createdAt",
                                                 descending=True)]
        oldest = [d["text"] for d in store.query(UID, "memos", order_by="createdAt")]
        assert newest == ["b", "a", "c"]
        assert oldest == ["c", "a", "b"]

    def test_unsubscribe_idempotent(self, store):
        sub = store.listen(UID, "memos", lambda docs: None)
        assert store.listener_count == 1
        sub.unsubscribe()
        sub.unsubscribe()
        assert not sub.active
        assert store.listener_count == 0

    def test_deferred_dispatch(self, conn):
        queue = []
        store = DocumentStore(conn, dispatch=queue.append)
        snapshots = []
        store.listen(UID, "memos", snapshots.append)
        store.add(UID, "memos", {"text": "x"})
        # write returned, nothing delivered yet
        assert snapshots == []
        for fn in queue:
            fn()
        assert len(snapshots) == 2

    def test_deferred_delivery_skipped_after_unsubscribe(self, conn):
        queue = []
        store = DocumentStore(conn, dispatch=queue.append)
        snapshots = []
        sub = store.listen(UID, "memos", snapshots.append)
        sub.unsubscribe()
        for fn in queue:
            fn()
        assert snapshots == []

    def test_close_drops_listeners(self, store):
        subs = [store.listen(UID, "memos", lambda d: None) for _ in range(3)]
        store.close()
        assert store.listener_count == 0
        assert all(not s.active for s in subs)

    def test_offline_store(self, offline_store):
        assert not offline_store.available
        with pytest.raises(StoreError, match="not available"):
            offline_store.add(UID, "memos", {"text": "x"})

    def test_sqlite_error_wrapped(self, conn):
        store = DocumentStore(conn)
        conn.close()
        with pytest.raises(StoreError):
            store.add(UID, "memos", {"text": "x"})


# ── Repositories ────────────────────────────────────────────────────────────

class TestTodoRepository:
    def test_create_without_deadline(self, store, clock):
        repo = TodoRepository(store, clock)
        todo_id = repo.create(UID, Todo(text="Write report"))
        raw = store.get(UID, "todos", todo_id)
        assert raw["dueDate"] == "infinity"
        assert raw["createdAt"] == to_store_timestamp(clock.now)

        todo = repo.get(UID, todo_id)
        assert todo.text == "Write report"
        assert todo.due_date is None
        assert not todo.has_deadline
        assert todo.status == TodoStatus.PROCESS
        assert todo.created_at == clock.now

    def test_create_with_deadline(self, store, clock):
        repo = TodoRepository(store, clock)
        due = datetime(2025, 6, 10, 18, 0)
        todo_id = repo.create(UID, Todo(text="x", due_date=due, type=TodoType.DEADLINE))
        todo = repo.get(UID, todo_id)
        assert todo.due_date == due
        assert todo.type == TodoType.DEADLINE

    def test_update_maps_field_names(self, store, clock):
        repo = TodoRepository(store, clock)
        todo_id = repo.create(UID, Todo(text="x"))
        repo.update(UID, todo_id, {"stack_count": 3, "overdue": True, "due_date": None})
        raw = store.get(UID, "todos", todo_id)
        assert raw["stackCount"] == 3
        assert raw["overDueDate"] is True
        assert raw["dueDate"] == "infinity"

    def test_update_status(self, store, clock):
        repo = TodoRepository(store, clock)
        todo_id = repo.create(UID, Todo(text="x"))
        repo.update_status(UID, todo_id, TodoStatus.DONE)
        assert repo.get(UID, todo_id).completed

    def test_update_status_rejects_unknown(self, store, clock):
        repo = TodoRepository(store, clock)
        todo_id = repo.create(UID, Todo(text="x"))
        with pytest.raises(ValueError):
            repo.update_status(UID, todo_id, "archived")

    def test_update_missing_propagates(self, store, clock):
        repo = TodoRepository(store, clock)
        with pytest.raises(StoreError):
            repo.update_status(UID, "missing", TodoStatus.DONE)

    def test_subscribe_newest_first(self, store, clock):
        repo = TodoRepository(store, clock)
        repo.create(UID, Todo(text="old"))
        clock.advance(minutes=5)
        repo.create(UID, Todo(text="new"))

        received = []
        repo.subscribe(UID, received.append)
        assert [t.text for t in received[-1]] == ["new", "old"]

    def test_same_instant_newest_first(self, store, clock):
        repo = TodoRepository(store, clock)
        repo.create(UID, Todo(text="a"))
        repo.create(UID, Todo(text="b"))
        assert [t.text for t in repo.list(UID)] == ["b", "a"]

    def test_subscribe_malformed_snapshot_yields_empty(self, store, clock):
        store.add(UID, "todos", {"text": "bad", "createdAt": "not a date"})
        received = []
        TodoRepository(store, clock).subscribe(UID, received.append)
        assert received == [[]]

    def test_offline_writes_are_noops(self, offline_store, clock):
        repo = TodoRepository(offline_store, clock)
        assert repo.create(UID, Todo(text="x")) is None
        repo.update(UID, "id", {"text": "y"})
        repo.delete(UID, "id")
        assert repo.get(UID, "id") is None
        assert repo.list(UID) == []

    def test_offline_subscribe_gets_empty_list(self, offline_store, clock):
        received = []
        sub = TodoRepository(offline_store, clock).subscribe(UID, received.append)
        assert received == [[]]
        assert isinstance(sub, Subscription)
        sub.unsubscribe()


class TestGoalRepository:
    def test_create_and_toggle(self, store, clock):
        repo = GoalRepository(store, clock)
        due = datetime(2025, 7, 2)
        goal_id = repo.create(UID, "Run a 10k", due)
        goal = repo.get(UID, goal_id)
        assert goal.title == "Run a 10k"
        assert goal.due_date == due
        assert not goal.is_achieved

        repo.update_achievement(UID, goal_id, True)
        assert repo.get(UID, goal_id).is_achieved


class TestCounterRepository:
    def test_create_starts_at_zero(self, store, clock):
        repo = CounterRepository(store, clock)
        counter_id = repo.create(UID, "coffee")
        counter = repo.get(UID, counter_id)
        assert counter.sort == "coffee"
        assert counter.count == 0

    def test_increment_decrement_scenario(self, store, clock):
        repo = CounterRepository(store, clock)
        cid = repo.create(UID, "water")
        for _ in range(3):
            repo.increment(UID, cid)
        assert repo.get(UID, cid).count == 3
        for _ in range(2):
            repo.decrement(UID, cid)
        assert repo.get(UID, cid).count == 1
        for _ in range(5):
            repo.decrement(UID, cid)
        assert repo.get(UID, cid).count == 0

    @pytest.mark.parametrize("start", [0, 1, 7])
    def test_decrement_floors_at_zero(self, store, clock, start):
        repo = CounterRepository(store, clock)
        cid = repo.create(UID, "x")
        repo.update(UID, cid, {"count": start})
        assert repo.decrement(UID, cid) == max(0, start - 1)

    def test_adjust_missing_counter(self, store, clock):
        assert CounterRepository(store, clock).increment(UID, "missing") is None


class TestMemoRepository:
    def test_content_is_optional(self, store, clock):
        repo = MemoRepository(store, clock)
        plain = repo.create(UID, "Buy milk")
        rich = repo.create(UID, "Lecture", content="Room 204")
        assert "content" not in store.get(UID, "memos", plain)
        assert repo.get(UID, plain).content is None
        assert repo.get(UID, rich).content == "Room 204"

    def test_update_text(self, store, clock):
        repo = MemoRepository(store, clock)
        memo_id = repo.create(UID, "draft")
        repo.update_text(UID, memo_id, "final")
        assert repo.get(UID, memo_id).text == "final"


class TestSleepLogRepository:
    def test_create_active_and_find(self, store, clock):
        repo = SleepLogRepository(store, clock)
        assert repo.find_active(UID) is None
        sleep_id = repo.create_active(UID, clock.now)
        active = repo.find_active(UID)
        assert active.id == sleep_id
        assert active.is_active
        assert active.start_time == clock.now
        assert active.end_time is None
        assert active.duration is None

    def test_subscribe_orders_by_start_time(self, store, clock):
        repo = SleepLogRepository(store, clock)
        late = repo.create_active(UID, datetime(2025, 6, 3, 23, 0))
        early = repo.create_active(UID, datetime(2025, 6, 1, 23, 0))
        received = []
        repo.subscribe(UID, received.append)
        assert [s.id for s in received[-1]] == [late, early]


class TestMemoryRepositories:
    def test_space_usage(self, store, clock):
        repo = MemorySpaceRepository(store, clock)
        space_id = repo.add(UID, "memory", 100)
        repo.set_usage(UID, space_id, 30, False)
        space = repo.find_by_name(UID, "memory")
        assert space.id == space_id
        assert space.memory.used_capacity == 30
        assert space.memory.total_capacity == 100
        assert space.usage_percent == 30
        assert space.memory.last_updated == clock.now

    def test_spaces_ordered_by_name(self, store, clock):
        repo = MemorySpaceRepository(store, clock)
        repo.add(UID, "memory", 100)
        repo.add(UID, "hwvm", 50)
        received = []
        repo.subscribe(UID, received.append)
        assert [s.name for s in received[-1]] == ["hwvm", "memory"]

    def test_process_lookup_by_todo(self, store, clock):
        repo = ProcessRepository(store, clock)
        pid = repo.add(UID, "todo-1", "space-1", 10, 0.5)
        process = repo.find_by_todo(UID, "todo-1")
        assert process.id == pid
        assert process.size == 10
        assert process.growth_rate == 0.5
        assert process.last_updated == clock.now
        assert repo.find_by_todo(UID, "todo-2") is None
