"""Unit tests for auth/sessions.py -- SessionStore lifecycle with a controllable clock.

Covers:
- create() stamps created_at = now and expires_at = now + timeout
- find() / delete() hit and miss, delete() of an unknown token is a no-op
- is_valid() up to the expiry instant, then false with the row deleted
- sweep_expired() removes only sessions strictly past expiry
- create() sweeps inline when sweep_on_create is on, and not when off
"""

from datetime import timedelta

from auth.sessions import SessionStore
from tests.factories import make_user


def test_create_sets_expiry_from_timeout(sessions, clock):
    session = sessions.create("tok-1", "alice")

    assert session.created_at == clock.current
    assert session.expires_at == clock.current + timedelta(hours=24)

    stored = sessions.find("tok-1")
    assert stored == session


def test_find_unknown_token(sessions):
    assert sessions.find("nope") is None


def test_delete_is_idempotent(sessions):
    sessions.create("tok-1", "alice")
    sessions.delete("tok-1")
    sessions.delete("tok-1")
    assert sessions.find("tok-1") is None


def test_is_valid_until_expiry(sessions, clock):
    sessions.create("tok-1", "alice")

    clock.advance(hours=23, minutes=59, seconds=59)
    assert sessions.is_valid("tok-1") is True


def test_is_valid_false_at_expiry_and_row_deleted(sessions, clock):
    sessions.create("tok-1", "alice")

    clock.advance(hours=24)
    assert sessions.is_valid("tok-1") is False
    assert sessions.find("tok-1") is None


def test_is_valid_rejects_empty_and_unknown(sessions):
    assert sessions.is_valid(None) is False
    assert sessions.is_valid("") is False
    assert sessions.is_valid("unknown") is False


def test_sweep_removes_only_expired(sessions, clock):
    sessions.sweep_on_create = False
    sessions.create("old", "alice")
    clock.advance(hours=12)
    sessions.create("new", "bob")

    clock.advance(hours=12, seconds=1)  # "old" is 1s past expiry, "new" has 12h left
    removed = sessions.sweep_expired()

    assert removed == 1
    assert sessions.find("old") is None
    assert sessions.find("new") is not None


def test_sweep_keeps_session_exactly_at_expiry(sessions, clock):
    # The sweep deletes expires_at < now; lazy validation rejects expires_at <= now.
    sessions.sweep_on_create = False
    sessions.create("edge", "alice")
    clock.advance(hours=24)

    assert sessions.sweep_expired() == 0
    assert sessions.find("edge") is not None
    assert sessions.is_valid("edge") is False


def test_create_sweeps_inline(db, clock):
    store = SessionStore(db, timeout=timedelta(minutes=30), sweep_on_create=True, clock=clock)
    store.create("stale", "alice")
    clock.advance(hours=1)

    store.create("fresh", "alice")

    assert store.find("stale") is None
    assert store.find("fresh") is not None


def test_create_without_inline_sweep(db, clock):
    store = SessionStore(db, timeout=timedelta(minutes=30), sweep_on_create=False, clock=clock)
    store.create("stale", "alice")
    clock.advance(hours=1)

    store.create("fresh", "alice")

    assert store.find("stale") is not None


def test_sessions_survive_user_deletion(directory, sessions):
    """Sessions reference users by name only; deleting the user leaves them in place."""
    make_user(directory, username="alice", email="alice@example.com")
    sessions.create("tok-1", "alice")
    directory.delete_by_email("alice@example.com")

    assert sessions.is_valid("tok-1") is True
