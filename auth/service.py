"""
auth/service.py -- Login, temporary-login verification, and account setup.

Account lifecycle:

    invite (auth/invitations.py)        complete_setup()
    ---------------------------> pending ----------------> active

There is no way back from active, and no deleted state beyond removing the
row. login() only admits active accounts; verify_temp_login() only admits
pending ones, so temporary credentials stop working the moment setup
completes.

Every failure is raised as an AuthError subclass (auth/errors.py). The
router renders them; nothing here knows about HTTP.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

from auth.credentials import (
    MAX_PASSWORD_BYTES,
    burn_dummy_check,
    exceeds_hash_limit,
    generate_session_token,
    hash_password,
    is_password_strong,
    verify_password,
)
from auth.directory import UserDirectory
from auth.errors import (
    AlreadySetUp,
    DuplicateError,
    InactiveAccount,
    InvalidCredentials,
    MissingField,
    SessionExpired,
    Unauthorized,
    UsernameTaken,
    UserNotFound,
    WeakPassword,
)
from auth.models import Session, User
from auth.sessions import SessionStore

logger = logging.getLogger("roster.auth")


class AuthService:
    """Composes the credential hasher, the user directory and the session store.

    allow_legacy_passwords mirrors LEGACY_PASSWORD_IMPORT: when False, rows
    holding anything but a bcrypt hash can never authenticate.
    """

    def __init__(
        self,
        directory: UserDirectory,
        sessions: SessionStore,
        allow_legacy_passwords: bool = False,
    ) -> None:
        self.directory = directory
        self.sessions = sessions
        self.allow_legacy_passwords = allow_legacy_passwords

    # ------------------------------------------------------------------
    # Credential check shared by login and temp login
    # ------------------------------------------------------------------

    def _check_credentials(self, username: str, password: str, failure: InvalidCredentials) -> User:
        """Return the user if the password matches, else raise `failure`.

        Unknown usernames still cost one bcrypt check, so timing does not
        reveal which usernames exist.
        """
        user = self.directory.find_by_username(username)
        if user is None:
            burn_dummy_check(password)
            raise failure
        if not verify_password(password, user.hashed_password, allow_legacy=self.allow_legacy_passwords):
            raise failure
        return user

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def login(self, username: str, password: str) -> Session:
        """Authenticate an active user and mint a session."""
        if not username or not password:
            raise MissingField("Username and password are required")
        try:
            user = self._check_credentials(username, password, InvalidCredentials())
        except InvalidCredentials:
            logger.info("Failed login for %r", username)
            raise
        if not user.is_active:
            raise InactiveAccount()
        session = self.sessions.create(generate_session_token(), user.username)
        logger.info("Login succeeded for %r", user.username)
        return session

    def verify_temp_login(self, username: str, password: str) -> str:
        """Check temporary credentials of a pending user; return the user's email.

        The email is the handle the setup page passes back to complete_setup().
        """
        if not username or not password:
            raise MissingField("Username and password are required")
        user = self._check_credentials(username, password, InvalidCredentials("Invalid temporary credentials"))
        if not user.is_pending:
            raise AlreadySetUp("Account setup already completed. Please use the normal login.")
        return user.email

    def complete_setup(self, email: str, new_username: str, new_password: str) -> None:
        """Give a pending account its permanent username and password, and activate it."""
        if not email or not new_username or not new_password:
            raise MissingField("All fields are required")
        if not is_password_strong(new_password):
            raise WeakPassword()
        if exceeds_hash_limit(new_password):
            raise WeakPassword(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        holder = self.directory.find_by_username(new_username)
        if holder is not None and holder.email != email:
            raise UsernameTaken()

        user = self.directory.find_by_email(email)
        if user is None:
            raise UserNotFound()
        if not user.is_pending:
            raise AlreadySetUp()

        try:
            updated = self.directory.update_setup_fields(email, new_username, hash_password(new_password))
        except DuplicateError as exc:
            raise UsernameTaken() from exc
        if not updated:
            # Deleted between the lookup above and the update.
            raise UserNotFound()
        logger.info("Setup completed for %s (username %r)", email, new_username)

    def verify_token(self, token: str) -> str:
        """Return the username behind a live session token.

        An expired session is deleted before SessionExpired is raised, so the
        same token is unknown on the next call.
        """
        if not token:
            raise MissingField("Token is required")
        session = self.sessions.find(token)
        if session is None:
            raise Unauthorized("Invalid token")
        if session.is_expired(self.sessions.now()):
            self.sessions.delete(token)
            raise SessionExpired()
        return session.username

    def require_session(self, token: str | None) -> None:
        """Authorization gate for admin actions."""
        if not self.sessions.is_valid(token):
            raise Unauthorized()

    def logout(self, token: str) -> None:
        if not token:
            raise MissingField("Token is required")
        self.sessions.delete(token)
