"""Unit tests for the service layer."""

import json
import pytest
from datetime import datetime, timedelta
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.config import AppConfig, MemorySettings, DEFAULT_CONFIG, load_config, merge_config
from src.data.models import Process, SleepLog, TodoStatus, TodoType, User
from src.data.store import DocumentStore
from src.data.repository import MemorySpaceRepository, ProcessRepository, SleepLogRepository
from src.services.app_session import AppSession
from src.services.auth_service import AuthService
from src.services.memory_service import MemoryService, MemorySpaceNotFoundError
from src.services.sleep_service import SleepService, SleepState
from src.services import formatting


class FakeClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


USER = User(id="u1", email="dummy.user@gmail.com", display_name="Dummy User")


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 6, 2, 22, 0))


@pytest.fixture
def session(clock):
    config = AppConfig({"db_path": ":memory:"})
    s = AppSession(config, USER, clock=clock).open()
    yield s
    s.close()


def primary(session):
    return session.memory_spaces.find_by_name(session.user_id, "memory")


# ── Memory pools ────────────────────────────────────────────────────────────

class TestMemoryService:
    def test_initial_spaces(self, session):
        spaces = session.memory_spaces.list(session.user_id)
        assert [(s.name, s.memory.total_capacity, s.memory.used_capacity) for s in spaces] == [
            ("hwvm", 50, 0), ("memory", 100, 0),
        ]

    def test_initialize_is_idempotent(self, session):
        session.memory.initialize_spaces(session.user_id)
        assert len(session.memory_spaces.list(session.user_id)) == 2

    def test_create_and_free_process(self, session):
        uid = session.user_id
        todo_id = session.todo_service.create_todo(uid, "Write report")
        assert primary(session).memory.used_capacity == 10
        assert session.memory.has_process(uid, todo_id)

        session.todo_service.complete_todo(uid, todo_id)
        assert primary(session).memory.used_capacity == 0
        assert not session.memory.has_process(uid, todo_id)

    def test_usage_is_not_clamped(self, session):
        uid = session.user_id
        for i in range(10):
            session.todo_service.create_todo(uid, f"todo {i}")
        space = primary(session)
        assert space.memory.used_capacity == 100
        assert space.memory.is_full

        session.todo_service.create_todo(uid, "one more")
        space = primary(session)
        assert space.memory.used_capacity == 110
        assert space.memory.is_full

    def test_free_floors_at_zero(self, session):
        uid = session.user_id
        todo_id = session.todo_service.create_todo(uid, "x")
        space = primary(session)
        session.memory_spaces.set_usage(uid, space.id, 4, False)
        assert session.memory.delete_process_by_todo(uid, todo_id)
        assert primary(session).memory.used_capacity == 0

    def test_delete_without_process(self, session):
        assert not session.memory.delete_process_by_todo(session.user_id, "nothing")

    def test_offline_create_process(self, clock):
        store = DocumentStore(None)
        svc = MemoryService(MemorySpaceRepository(store, clock),
                            ProcessRepository(store, clock), clock=clock)
        assert svc.create_process("u1", "t1") is None

    def test_missing_primary_space_raises(self, session, clock):
        svc = MemoryService(session.memory_spaces, session.processes,
                            MemorySettings(primary_name="absent"), clock)
        with pytest.raises(MemorySpaceNotFoundError, match="absent"):
            svc.create_process(session.user_id, "t1")

    def test_current_size_grows(self):
        start = datetime(2025, 6, 2, 8, 0)
        p = Process(size=10, growth_rate=0.5, last_updated=start)
        assert MemoryService.current_size(p, start) == 10
        assert MemoryService.current_size(p, start + timedelta(hours=4)) == pytest.approx(12)
        # clock skew never shrinks a process
        assert MemoryService.current_size(p, start - timedelta(hours=1)) == 10

    def test_projection_is_display_only(self, session, clock):
        uid = session.user_id
        session.todo_service.create_todo(uid, "a")
        session.todo_service.create_todo(uid, "b")
        space = primary(session)
        processes = session.processes.list(uid)

        projected = MemoryService.project_usage(space, processes, clock.now + timedelta(hours=2))
        assert projected == pytest.approx(22)
        assert primary(session).memory.used_capacity == 20

    def test_projection_ignores_other_spaces(self, session, clock):
        uid = session.user_id
        session.todo_service.create_todo(uid, "a")
        hwvm = session.memory_spaces.find_by_name(uid, "hwvm")
        processes = session.processes.list(uid)
        later = clock.now + timedelta(hours=10)
        assert MemoryService.project_usage(hwvm, processes, later) == 0


# ── Todos ───────────────────────────────────────────────────────────────────

class TestTodoService:
    def test_default_type_follows_deadline(self, session, clock):
        uid = session.user_id
        no_due = session.todo_service.create_todo(uid, "a")
        due = session.todo_service.create_todo(uid, "b", due_date=clock.now + timedelta(days=1))
        assert session.todos.get(uid, no_due).type == TodoType.NO_DEADLINE
        assert session.todos.get(uid, due).type == TodoType.DEADLINE

    def test_rejects_unknown_status(self, session):
        with pytest.raises(ValueError):
            session.todo_service.create_todo(session.user_id, "x", status="paused")

    def test_virtual_todo_has_no_process(self, session):
        uid = session.user_id
        todo_id = session.todo_service.create_todo(uid, "x", status=TodoStatus.VIRTUAL)
        assert not session.memory.has_process(uid, todo_id)
        assert primary(session).memory.used_capacity == 0

    def test_back_to_process_allocates_once(self, session):
        uid = session.user_id
        todo_id = session.todo_service.create_todo(uid, "x")
        session.todo_service.update_status(uid, todo_id, TodoStatus.PROCESS)
        assert len(session.processes.list(uid)) == 1
        assert primary(session).memory.used_capacity == 10

    def test_reopen_after_done(self, session):
        uid = session.user_id
        todo_id = session.todo_service.create_todo(uid, "x")
        session.todo_service.complete_todo(uid, todo_id)
        session.todo_service.update_status(uid, todo_id, TodoStatus.PROCESS)
        assert session.memory.has_process(uid, todo_id)
        assert primary(session).memory.used_capacity == 10

    def test_update_todo_routes_status(self, session):
        uid = session.user_id
        todo_id = session.todo_service.create_todo(uid, "x")
        session.todo_service.update_todo(uid, todo_id, text="renamed", status=TodoStatus.DONE)
        todo = session.todos.get(uid, todo_id)
        assert todo.text == "renamed"
        assert todo.completed
        assert primary(session).memory.used_capacity == 0

    def test_delete_frees_memory(self, session):
        uid = session.user_id
        todo_id = session.todo_service.create_todo(uid, "x")
        session.todo_service.delete_todo(uid, todo_id)
        assert session.todos.get(uid, todo_id) is None
        assert session.processes.list(uid) == []
        assert primary(session).memory.used_capacity == 0

    def test_allocation_failure_keeps_todo(self, session):
        uid = session.user_id
        for space in session.memory_spaces.list(uid):
            session.memory_spaces.delete(uid, space.id)
        todo_id = session.todo_service.create_todo(uid, "x")
        assert session.todos.get(uid, todo_id) is not None
        assert session.processes.list(uid) == []

    def test_failing_subscriber_keeps_process(self, session):
        uid = session.user_id

        def broken(todos):
            if todos:
                raise RuntimeError("render failed")

        session.todo_service.subscribe(uid, broken)
        todo_id = session.todo_service.create_todo(uid, "A")
        assert todo_id is not None
        assert len(session.todos.list(uid)) == 1
        assert session.memory.has_process(uid, todo_id)
        assert primary(session).memory.used_capacity == 10

    def test_subscribe_sees_new_todo(self, session):
        received = []
        session.todo_service.subscribe(session.user_id, received.append)
        session.todo_service.create_todo(session.user_id, "x")
        assert [t.text for t in received[-1]] == ["x"]


# ── Sleep ───────────────────────────────────────────────────────────────────

class TestSleepService:
    def test_start_end_duration(self, session, clock):
        uid = session.user_id
        sleep_id = session.sleep.start(uid)
        assert session.sleep.state(uid) == SleepState.ACTIVE

        clock.advance(hours=7, minutes=30)
        log = session.sleep.end(uid, sleep_id)
        assert log.duration == 450
        assert log.end_time == clock.now
        assert not log.is_active
        assert session.sleep.state(uid) == SleepState.IDLE

        stored = session.sleep_logs.get(uid, sleep_id)
        assert stored.duration == 450
        assert not stored.is_active

    def test_duration_rounds_to_nearest_minute(self, session, clock):
        uid = session.user_id
        sleep_id = session.sleep.start(uid)
        clock.advance(minutes=59, seconds=40)
        assert session.sleep.end(uid, sleep_id).duration == 60

    def test_only_one_active(self, session, clock):
        uid = session.user_id
        first = session.sleep.start(uid)
        clock.advance(minutes=10)
        assert session.sleep.start(uid) == first
        assert len(session.sleep_logs.list(uid)) == 1

    def test_end_missing(self, session):
        with pytest.raises(RuntimeError, match="not found"):
            session.sleep.end(session.user_id, "missing")

    def test_end_twice(self, session, clock):
        uid = session.user_id
        sleep_id = session.sleep.start(uid)
        clock.advance(hours=1)
        session.sleep.end(uid, sleep_id)
        with pytest.raises(RuntimeError, match="not active"):
            session.sleep.end(uid, sleep_id)

    def test_elapsed_minutes(self, clock):
        svc = SleepService(SleepLogRepository(DocumentStore(None), clock), clock)
        log = SleepLog(start_time=clock.now - timedelta(minutes=90), is_active=True)
        assert svc.elapsed_minutes(log) == pytest.approx(90)
        assert svc.elapsed_minutes(SleepLog()) == 0.0

    def test_offline(self, clock):
        svc = SleepService(SleepLogRepository(DocumentStore(None), clock), clock)
        assert svc.start("u1") is None
        assert svc.end("u1", "x") is None
        assert svc.state("u1") == SleepState.IDLE


# ── Auth ────────────────────────────────────────────────────────────────────

class TestAuthService:
    def test_starts_logged_in(self):
        auth = AuthService(USER)
        assert auth.is_logged_in
        assert auth.current_user == USER

    def test_login_logout_notifies(self):
        auth = AuthService(USER, logged_in=False)
        seen = []
        unsubscribe = auth.subscribe(seen.append)
        assert seen == [None]

        auth.login()
        auth.logout()
        assert seen == [None, USER, None]

        unsubscribe()
        auth.login()
        assert len(seen) == 3

    def test_provider_response_ignored(self):
        auth = AuthService(USER, logged_in=False)
        assert auth.handle_provider_response({"token": "whatever"}) == USER
        assert auth.current_user == USER


# ── Session ─────────────────────────────────────────────────────────────────

class TestAppSession:
    def test_close_cancels_tracked_subscriptions(self, clock):
        session = AppSession(AppConfig({"db_path": ":memory:"}), USER, clock=clock).open()
        sub = session.track(session.todos.subscribe(session.user_id, lambda items: None))
        session.close()
        assert not sub.active
        assert not session.is_open

    def test_context_manager(self, clock):
        with AppSession(AppConfig({"db_path": ":memory:"}), USER, clock=clock) as session:
            assert session.is_open
            assert session.store.available
        assert not session.is_open

    def test_offline_session(self, tmp_path, clock):
        config = AppConfig({"db_path": str(tmp_path / "no" / "such" / "dir.db")})
        session = AppSession(config, USER, clock=clock).open()
        assert not session.store.available
        assert session.todo_service.create_todo(session.user_id, "x") is None
        received = []
        session.todos.subscribe(session.user_id, received.append)
        assert received == [[]]
        session.close()


# ── Config ──────────────────────────────────────────────────────────────────

class TestConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_config(tmp_path / "absent.json") == DEFAULT_CONFIG

    def test_partial_file_merges(self, tmp_path):
        path = tmp_path / "app.json"
        path.write_text(json.dumps({"log_level": "debug", "memory": {"process_size": 5}}))
        config = AppConfig.load(path)
        assert config.log_level == 10
        assert config.memory.process_size == 5
        assert config.memory.primary_capacity == 100
        assert config.user.email == "dummy.user@gmail.com"

    def test_bad_json_falls_back(self, tmp_path):
        path = tmp_path / "app.json"
        path.write_text("{not json")
        assert load_config(path) == DEFAULT_CONFIG
        path.write_text("[1, 2]")
        assert load_config(path) == DEFAULT_CONFIG

    def test_save_roundtrip(self, tmp_path):
        path = tmp_path / "nested" / "app.json"
        config = AppConfig({"refresh_interval_ms": 5000}, path)
        config.save()
        assert AppConfig.load(path).refresh_interval_ms == 5000

    def test_merge_does_not_mutate_defaults(self):
        merge_config({"memory": {"primary_capacity": 1}})
        assert DEFAULT_CONFIG["memory"]["primary_capacity"] == 100

    def test_relative_paths_resolve_to_root(self):
        config = AppConfig()
        assert config.db_path.is_absolute()
        assert config.log_file.name == "memory_todo.log"


# ── Formatting ──────────────────────────────────────────────────────────────

class TestFormatting:
    def test_date(self):
        assert formatting.format_date(None) == "No deadline"
        assert formatting.format_date(datetime(2025, 6, 2, 9, 30)) == "2025-06-02"

    def test_duration(self):
        assert formatting.format_duration(450) == "7h 30m"
        assert formatting.format_duration(None) == "0h 0m"
        assert formatting.format_duration(0) == "0h 0m"

    def test_month_year(self):
        assert formatting.format_month_year(datetime(2025, 2, 14)) == "February 2025"
