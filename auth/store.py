"""
auth/store.py -- SQLAlchemy Core handle for the user and session tables.

Pattern: Table Gateway. Database owns the engine and the two Table objects;
UserDirectory (auth/directory.py) and SessionStore (auth/sessions.py) receive
the handle through their constructors and never open engines of their own.
Route and service code never touches SQL directly.

Table names are configurable (USERS_TABLE / SESSIONS_TABLE) so one database
can host several rosters side by side. Each Database instance builds its own
MetaData for that reason -- a module-level MetaData would pin the names.

Security:
  All queries use bound parameters. No f-strings in SQL.

  email and username are UNIQUE columns. Callers pre-check before insert, but
  the constraint is what turns a concurrent duplicate into an IntegrityError
  instead of a second row.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine

from core.config import get_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


def _build_tables(metadata: MetaData, users_table: str, sessions_table: str) -> tuple[Table, Table]:
    users = Table(
        users_table,
        metadata,
        Column("email", String(255), primary_key=True),
        Column("full_name", String(255), nullable=False),
        Column("username", String(255), nullable=False, unique=True),
        Column("hashed_password", Text, nullable=False),
        Column("role", String(50), nullable=False),
        Column("status", String(20), nullable=False, server_default="pending"),
        Column("department", String(255), nullable=False, server_default=""),
        Column("notes", Text, nullable=False, server_default=""),
        Column("created_at", String(32), nullable=False),
    )
    sessions = Table(
        sessions_table,
        metadata,
        Column("token", String(64), primary_key=True),
        Column("username", String(255), nullable=False, index=True),  # weak reference, no FK
        Column("created_at", String(32), nullable=False),
        Column("expires_at", String(32), nullable=False, index=True),
    )
    return users, sessions


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def to_iso(moment: datetime) -> str:
    """Render an aware datetime as fixed-width UTC ISO 8601.

    Fixed width (always microseconds, always +00:00) keeps lexical order equal
    to chronological order, which the expiry sweep relies on.
    """
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Handle
# ---------------------------------------------------------------------------


class Database:
    """Engine plus the users/sessions tables for one roster.

    Usage:
        db = Database("sqlite:///roster.db")
        directory = UserDirectory(db)
        sessions = SessionStore(db, timeout=timedelta(hours=24))
        db.close()

    Constructing a Database creates any missing tables, so a fresh database
    file is usable immediately.
    """

    def __init__(
        self,
        db_url: str | None = None,
        users_table: str | None = None,
        sessions_table: str | None = None,
    ) -> None:
        settings = get_settings()
        db_url = db_url or settings.database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        self.metadata = MetaData()
        self.users, self.sessions = _build_tables(
            self.metadata,
            users_table or settings.users_table,
            sessions_table or settings.sessions_table,
        )
        self.metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(select(func.count()).select_from(self.sessions)).scalar()
        return True

    def close(self) -> None:
        self.engine.dispose()
