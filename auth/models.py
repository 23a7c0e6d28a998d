"""
auth/models.py -- Domain dataclasses for directory and session entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the directory, session store and services do the work.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

STATUS_PENDING = "pending"
STATUS_ACTIVE = "active"


@dataclass
class User:
    """A member of the console's user roster.

    Accounts are created by invitation with status="pending" and a generated
    username/password. Completing setup replaces both and flips the status to
    "active"; there is no transition back.

    hashed_password is None on records returned by UserDirectory.list_all(),
    which never reads the password column.
    """

    full_name: str
    email: str
    username: str
    role: str  # free-form, e.g. "admin", "member"
    hashed_password: str | None = None
    status: str = STATUS_PENDING  # "pending" | "active"
    department: str = ""
    notes: str = ""
    created_at: str = ""  # ISO 8601, set by the directory on insert

    @property
    def is_active(self) -> bool:
        return self.status == STATUS_ACTIVE

    @property
    def is_pending(self) -> bool:
        return self.status == STATUS_PENDING


@dataclass
class Session:
    """A bearer session minted by a successful login.

    username is a weak reference into the directory: deleting the user does
    not delete its sessions. A session past expires_at that is still present
    has simply not been swept yet; it is never valid.
    """

    token: str
    username: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
