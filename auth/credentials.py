"""
auth/credentials.py -- Password hashing, password policy, and random credentials.

Security design decisions:
  Passwords: bcrypt, used directly (no passlib wrapper). Every write path
       hashes with a fresh salt. The cost factor comes from BCRYPT_ROUNDS so
       test suites can run at the minimum cost.

  Legacy rows: rosters imported from the previous system may hold the
       unsalted base64 SHA-256 digest of the password, or the password itself.
       verify_password() accepts those two forms only when allow_legacy=True,
       which the auth service sets from LEGACY_PASSWORD_IMPORT. Both legacy
       comparisons use hmac.compare_digest. Rows are not rehashed on login;
       completing setup is the only path that rewrites a password.

  Timing: _DUMMY_HASH lets the auth service run a full bcrypt check when the
       username does not exist, so response time does not reveal which
       usernames exist.

  Random values: session tokens are uuid4 strings; temporary passwords and
       username suffixes come from the secrets module.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import re
import secrets
import string
import uuid

import bcrypt

from core.config import get_settings

_TEMP_ALPHABET = string.ascii_letters + string.digits
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits

TEMP_PASSWORD_LENGTH = 12
TEMP_USERNAME_SUFFIX_LENGTH = 6
MIN_PASSWORD_LENGTH = 8
# bcrypt only reads the first 72 bytes; bcrypt 5 rejects longer input outright.
MAX_PASSWORD_BYTES = 72

_UPPER_RE = re.compile(r"[A-Z]")
_LOWER_RE = re.compile(r"[a-z]")
_DIGIT_RE = re.compile(r"\d")

# ---------------------------------------------------------------------------
# Hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    rounds = get_settings().bcrypt_rounds
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def legacy_digest(plain: str) -> str:
    """Return the legacy storage form: base64 of the unsalted SHA-256 digest."""
    return base64.b64encode(hashlib.sha256(plain.encode("utf-8")).digest()).decode("ascii")


def _is_bcrypt_hash(stored: str) -> bool:
    return stored.startswith(("$2a$", "$2b$", "$2y$"))


def verify_password(plain: str, stored: str | None, allow_legacy: bool = False) -> bool:
    """Return True if the plaintext password matches the stored value.

    With allow_legacy=False only bcrypt hashes can match.
    """
    if not stored:
        return False
    if _is_bcrypt_hash(stored):
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), stored.encode("utf-8"))
        except ValueError:
            return False
    if not allow_legacy:
        return False
    if hmac.compare_digest(legacy_digest(plain).encode("utf-8"), stored.encode("utf-8")):
        return True
    return hmac.compare_digest(plain.encode("utf-8"), stored.encode("utf-8"))


# Computed once at import so the first failed login is not measurably slower
# than later ones.
_DUMMY_HASH: str = hash_password("roster_timing_dummy")


def burn_dummy_check(plain: str) -> None:
    """Run a bcrypt check whose result is discarded (unknown-username path)."""
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


def exceeds_hash_limit(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def is_password_strong(password: str) -> bool:
    """At least 8 characters with an uppercase letter, a lowercase letter and a digit.

    Symbols are allowed but not required.
    """
    return (
        len(password) >= MIN_PASSWORD_LENGTH
        and bool(_UPPER_RE.search(password))
        and bool(_LOWER_RE.search(password))
        and bool(_DIGIT_RE.search(password))
    )


# ---------------------------------------------------------------------------
# Random credentials
# ---------------------------------------------------------------------------


def generate_session_token() -> str:
    """Return a fresh opaque session token (canonical UUID4 string)."""
    return str(uuid.uuid4())


def generate_temp_password(length: int = TEMP_PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(_TEMP_ALPHABET) for _ in range(length))


def generate_temp_username(email: str) -> str:
    """Derive a temporary username: email local part + "_" + random suffix.

    Uniqueness is not checked. With 36**6 (about 2.2 billion) suffixes per
    local part a collision is negligible; if one happens the UNIQUE column
    rejects the insert and the invitation fails with a conflict.
    """
    local_part = email.split("@", 1)[0]
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(TEMP_USERNAME_SUFFIX_LENGTH))
    return f"{local_part}_{suffix}"
