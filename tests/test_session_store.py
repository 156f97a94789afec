import threading

import pytest

from moviecatalog.models.user import Role
from moviecatalog.services.background_jobs import BackgroundJobService
from moviecatalog.services.session_store import Principal, SessionStore

TTL = 100.0


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return SessionStore(ttl_seconds=TTL, clock=clock)


def test_created_session_resolves_to_principal(store):
    token = store.create_session(7, Role.USER)

    assert store.resolve(token) == Principal(user_id=7, role=Role.USER)


def test_tokens_are_long_and_unique(store):
    tokens = {store.create_session(1, Role.USER) for _ in range(200)}

    assert len(tokens) == 200
    assert all(len(token) >= 40 for token in tokens)


def test_unknown_and_empty_tokens_resolve_to_none(store):
    assert store.resolve("not-a-token") is None
    assert store.resolve("") is None
    assert store.resolve(None) is None


def test_resolve_slides_expiry_from_access_time(store, clock):
    token = store.create_session(1, Role.USER)

    clock.advance(TTL - 1)
    assert store.resolve(token) is not None
    assert store.expires_in(token) == pytest.approx(TTL)

    # Past the original expiry, still alive because of the access above
    clock.advance(TTL - 1)
    assert store.resolve(token) is not None


def test_expired_session_is_evicted_on_read(store, clock):
    token = store.create_session(1, Role.USER)
    clock.advance(TTL + 1)

    assert store.resolve(token) is None
    assert len(store) == 0


def test_invalidate_is_idempotent(store):
    token = store.create_session(1, Role.ADMIN)

    store.invalidate(token)
    store.invalidate(token)
    store.invalidate("unknown")

    assert store.resolve(token) is None


def test_invalidate_user_drops_all_of_their_sessions(store):
    first = store.create_session(1, Role.USER)
    second = store.create_session(1, Role.USER)
    other = store.create_session(2, Role.USER)

    assert store.invalidate_user(1) == 2
    assert store.resolve(first) is None
    assert store.resolve(second) is None
    assert store.resolve(other) is not None


def test_sweep_removes_only_expired_sessions(store, clock):
    stale = store.create_session(1, Role.USER)
    clock.advance(TTL / 2)
    fresh = store.create_session(2, Role.USER)
    clock.advance(TTL / 2 + 1)

    assert store.sweep() == 1
    assert store.expires_in(stale) is None
    assert store.resolve(fresh) is not None


def test_concurrent_create_and_resolve(store):
    tokens = []
    lock = threading.Lock()

    def worker(user_id):
        for _ in range(50):
            token = store.create_session(user_id, Role.USER)
            assert store.resolve(token).user_id == user_id
            with lock:
                tokens.append(token)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store) == len(set(tokens)) == 400


def test_background_sweep_job_reports_evictions(store, clock):
    store.create_session(1, Role.USER)
    clock.advance(TTL + 1)
    jobs = BackgroundJobService(store)

    assert jobs.sweep_sessions() == 1

    stats = jobs.get_job_stats()
    assert stats["scheduler_running"] is False
    assert stats["jobs"][0]["id"] == "sweep_sessions"
    assert stats["jobs"][0]["status"] == "success"
    assert stats["jobs"][0]["evicted"] == 1


def test_sweep_job_can_be_paused_and_resumed(store, monkeypatch):
    monkeypatch.setenv("ENABLE_BACKGROUND_JOBS", "true")
    jobs = BackgroundJobService(store)
    jobs.start()
    try:
        jobs.pause_job("sweep_sessions")
        paused = jobs.get_job_stats()["jobs"][0]
        assert paused["scheduled"] is True
        assert paused["next_run"] is None

        jobs.resume_job("sweep_sessions")
        assert jobs.get_job_stats()["jobs"][0]["next_run"] is not None
    finally:
        jobs.shutdown()
