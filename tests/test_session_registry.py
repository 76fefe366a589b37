from concurrent.futures import ThreadPoolExecutor

from stigmatized.services.session_registry import SessionRegistry
from stigmatized.services.state_machine import DialogueState


class TestGetOrCreate:
    def test_first_contact_creates_idle_session(self):
        registry = SessionRegistry()
        session = registry.get_or_create("U1")
        assert session.user_id == "U1"
        assert session.state == DialogueState.IDLE
        assert "U1" in registry
        assert len(registry) == 1

    def test_same_user_gets_same_session(self):
        registry = SessionRegistry()
        first = registry.get_or_create("U1")
        first.state = DialogueState.STEP_TWO
        second = registry.get_or_create("U1")
        assert second is first
        assert second.state == DialogueState.STEP_TWO

    def test_users_get_distinct_sessions(self):
        registry = SessionRegistry()
        assert registry.get_or_create("U1").id != registry.get_or_create("U2").id
        assert len(registry) == 2

    def test_get_does_not_create(self):
        registry = SessionRegistry()
        assert registry.get("U1") is None
        assert len(registry) == 0

    def test_concurrent_first_contact_creates_one_session(self):
        registry = SessionRegistry()
        with ThreadPoolExecutor(max_workers=8) as pool:
            sessions = list(pool.map(lambda _: registry.get_or_create("U1"), range(50)))
        assert len(registry) == 1
        assert all(session is sessions[0] for session in sessions)


class TestLockFor:
    def test_same_lock_per_user(self):
        registry = SessionRegistry()
        assert registry.lock_for("U1") is registry.lock_for("U1")

    def test_different_users_different_locks(self):
        registry = SessionRegistry()
        assert registry.lock_for("U1") is not registry.lock_for("U2")


class TestEvictExpired:
    def test_idle_sessions_are_evicted(self):
        registry = SessionRegistry(ttl_seconds=60)
        session = registry.get_or_create("U1")
        registry.get_or_create("U2")

        evicted = registry.evict_expired(now=session.last_seen_at + 61)

        assert evicted == 2
        assert len(registry) == 0

    def test_recent_sessions_are_kept(self):
        registry = SessionRegistry(ttl_seconds=60)
        session = registry.get_or_create("U1")
        assert registry.evict_expired(now=session.last_seen_at + 30) == 0
        assert "U1" in registry

    def test_evicted_user_starts_over(self):
        registry = SessionRegistry(ttl_seconds=60)
        old = registry.get_or_create("U1")
        old.state = DialogueState.STEP_THREE
        registry.evict_expired(now=old.last_seen_at + 120)

        new = registry.get_or_create("U1")
        assert new is not old
        assert new.state == DialogueState.IDLE

    def test_no_ttl_keeps_sessions(self):
        registry = SessionRegistry(ttl_seconds=0)
        session = registry.get_or_create("U1")
        assert registry.evict_expired(now=session.last_seen_at + 10**9) == 0
        assert len(registry) == 1
