"""
auth/sessions.py -- Repository for bearer sessions with lazy expiry.

A session row lives until one of three things removes it:
  - is_valid() reads it at or after expires_at (lazy expiry, the only place
    a session's lifetime is enforced),
  - sweep_expired() runs, inline after create() and/or from the background
    task started in api/main.py,
  - delete() is called explicitly (logout).

Timestamps are stored as fixed-width UTC ISO strings (auth.store.to_iso), so
the sweep is a single range DELETE on expires_at.

Usage:
    sessions = SessionStore(db, timeout=timedelta(hours=24))
    sessions.create(generate_session_token(), "alice")
    sessions.is_valid(token)        # False once expired; the row is deleted
    sessions.sweep_expired()        # returns number of rows removed

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from auth.models import Session
from auth.store import Database, from_iso, to_iso, utcnow

logger = logging.getLogger("roster.sessions")

_DEFAULT_TIMEOUT = timedelta(hours=24)


class SessionStore:
    def __init__(
        self,
        db: Database,
        timeout: timedelta = _DEFAULT_TIMEOUT,
        sweep_on_create: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._db = db
        self._sessions = db.sessions
        self.timeout = timeout
        self.sweep_on_create = sweep_on_create
        self._clock = clock

    def create(self, token: str, username: str) -> Session:
        """Persist a session expiring `timeout` from now and return it."""
        now = self._clock()
        session = Session(token=token, username=username, created_at=now, expires_at=now + self.timeout)
        with self._db.engine.connect() as conn:
            conn.execute(
                self._sessions.insert().values(
                    token=session.token,
                    username=session.username,
                    created_at=to_iso(session.created_at),
                    expires_at=to_iso(session.expires_at),
                )
            )
            conn.commit()
        if self.sweep_on_create:
            self.sweep_expired()
        return session

    def find(self, token: str) -> Session | None:
        """Return the stored session, expired or not. None if absent."""
        with self._db.engine.connect() as conn:
            row = conn.execute(self._sessions.select().where(self._sessions.c.token == token)).fetchone()
        return _row_to_session(row) if row is not None else None

    def delete(self, token: str) -> None:
        with self._db.engine.connect() as conn:
            conn.execute(self._sessions.delete().where(self._sessions.c.token == token))
            conn.commit()

    def sweep_expired(self) -> int:
        """Delete all sessions whose expiry is strictly before now. Returns rows removed."""
        cutoff = to_iso(self._clock())
        with self._db.engine.connect() as conn:
            result = conn.execute(self._sessions.delete().where(self._sessions.c.expires_at < cutoff))
            conn.commit()
        if result.rowcount:
            logger.debug("Swept %d expired session(s)", result.rowcount)
        return result.rowcount

    def is_valid(self, token: str | None) -> bool:
        """Return True only for a present, unexpired session.

        An expired session is deleted as a side effect.
        """
        if not token:
            return False
        session = self.find(token)
        if session is None:
            return False
        if session.is_expired(self._clock()):
            self.delete(token)
            return False
        return True

    def now(self) -> datetime:
        return self._clock()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_session(row) -> Session:
    return Session(
        token=row.token,
        username=row.username,
        created_at=from_iso(row.created_at),
        expires_at=from_iso(row.expires_at),
    )
