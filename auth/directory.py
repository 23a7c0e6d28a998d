"""
auth/directory.py -- Repository for User records.

Pattern: Repository + Data Mapper (same shape as the session store).
UserDirectory is the repository; _row_to_user is the mapper. Records are
addressed by logical key (email or username), never by row position.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from auth.errors import DuplicateError, NotFoundError
from auth.models import STATUS_ACTIVE, STATUS_PENDING, User
from auth.store import Database, to_iso, utcnow

logger = logging.getLogger("roster.directory")


class UserDirectory:
    """CRUD over the users table.

    Usage:
        directory = UserDirectory(db)
        directory.create(User(full_name="Bob Lee", email="bob@x.com", username="bob_1a2b3c",
                              role="member", hashed_password=hash_password("...")))
        user = directory.find_by_email("bob@x.com")
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._users = db.users

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self._db.engine.connect() as conn:
            row = conn.execute(self._users.select().where(self._users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Returns None if not found."""
        with self._db.engine.connect() as conn:
            row = conn.execute(self._users.select().where(self._users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_all(self) -> list[User]:
        """Return every user in creation order. The password column is never read."""
        u = self._users
        columns = [c for c in u.c if c.name != "hashed_password"]
        with self._db.engine.connect() as conn:
            rows = conn.execute(select(*columns).order_by(u.c.created_at, u.c.email)).fetchall()
        return [_row_to_user(r) for r in rows]

    def has_users(self) -> bool:
        with self._db.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(self._users)).scalar()
        return (result or 0) > 0

    def count_by_status(self) -> dict[str, int]:
        """Return {"total": N, "active": N, "pending": N}.

        Statuses other than active/pending (hand-edited rows) count toward
        the total only.
        """
        u = self._users
        with self._db.engine.connect() as conn:
            rows = conn.execute(select(u.c.status, func.count()).group_by(u.c.status)).fetchall()
        by_status = {status: count for status, count in rows}
        return {
            "total": sum(by_status.values()),
            "active": by_status.get(STATUS_ACTIVE, 0),
            "pending": by_status.get(STATUS_PENDING, 0),
        }

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, user: User) -> None:
        """Insert a new user. created_at is stamped here.

        Raises DuplicateError if the email or username already exists. Callers
        check find_by_email() first; the constraint covers the race between
        that check and this insert.
        """
        user.created_at = to_iso(utcnow())
        try:
            with self._db.engine.connect() as conn:
                conn.execute(
                    self._users.insert().values(
                        email=user.email,
                        full_name=user.full_name,
                        username=user.username,
                        hashed_password=user.hashed_password,
                        role=user.role,
                        status=user.status,
                        department=user.department or "",
                        notes=user.notes or "",
                        created_at=user.created_at,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise DuplicateError(f"A user with email {user.email!r} or username {user.username!r} exists.") from exc

    def update_setup_fields(self, email: str, new_username: str, new_password_hash: str) -> bool:
        """Replace username and password hash and mark the account active.

        Returns True if a row was updated, False if no user has this email.
        Raises DuplicateError if new_username belongs to another row.
        """
        try:
            with self._db.engine.connect() as conn:
                result = conn.execute(
                    self._users.update()
                    .where(self._users.c.email == email)
                    .values(username=new_username, hashed_password=new_password_hash, status=STATUS_ACTIVE)
                )
                conn.commit()
        except IntegrityError as exc:
            raise DuplicateError(f"Username {new_username!r} is already in use.") from exc
        return result.rowcount > 0

    def delete_by_email(self, email: str) -> None:
        """Permanently delete a user record.

        Sessions issued to the user are left in place; they expire on their
        own schedule. Raises NotFoundError if no user has this email.
        """
        with self._db.engine.connect() as conn:
            result = conn.execute(self._users.delete().where(self._users.c.email == email))
            conn.commit()
        if result.rowcount == 0:
            raise NotFoundError(f"No user with email {email!r}.")
        logger.info("Deleted user %s", email)


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    # list_all() selects without the password column.
    hashed_password = getattr(row, "hashed_password", None)
    return User(
        full_name=row.full_name,
        email=row.email,
        username=row.username,
        role=row.role,
        hashed_password=hashed_password,
        status=row.status,
        department=row.department or "",
        notes=row.notes or "",
        created_at=row.created_at,
    )
