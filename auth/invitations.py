"""
auth/invitations.py -- Invite a new user and mail them temporary credentials.

invite() is two separate effects with no rollback between them:
  1. insert a pending user holding a bcrypt hash of a random password,
  2. mail the plaintext password and generated username to the invitee.
If step 2 fails the row stays. The returned Invitation says so
(notified=False) and the caller chooses whether to resend or notify by hand.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from auth.credentials import generate_temp_password, generate_temp_username, hash_password
from auth.directory import UserDirectory
from auth.errors import DuplicateError, InvalidField, MissingField, UserExists
from auth.models import STATUS_PENDING, User
from mail.channel import MailChannel
from mail.templates import render_invitation

logger = logging.getLogger("roster.invitations")


@dataclass
class Invitation:
    user: User
    notified: bool


class InvitationService:
    def __init__(
        self,
        directory: UserDirectory,
        mail: MailChannel,
        setup_url: str,
        organization: str,
    ) -> None:
        self.directory = directory
        self.mail = mail
        self.setup_url = setup_url
        self.organization = organization

    async def invite(
        self,
        full_name: str,
        email: str,
        role: str,
        notes: str = "",
        department: str = "",
    ) -> Invitation:
        if not full_name or not email or not role:
            raise MissingField("Full name, email, and role are required")
        local_part, at, domain = email.partition("@")
        if not local_part or not at or not domain:
            raise InvalidField("Email address is not valid")

        # Store lookups and bcrypt are blocking; keep them off the event loop.
        user, temp_password = await asyncio.to_thread(
            self._register_pending, full_name, email, role, notes, department
        )

        mail = render_invitation(
            full_name=full_name,
            username=user.username,
            password=temp_password,
            setup_url=self.setup_url,
            organization=self.organization,
        )
        notified = await self.mail.send(email, mail.subject, mail.body)
        if not notified:
            logger.warning("User %s created but the invitation email was not sent", email)
        return Invitation(user=user, notified=notified)

    def _register_pending(
        self,
        full_name: str,
        email: str,
        role: str,
        notes: str,
        department: str,
    ) -> tuple[User, str]:
        """Insert the pending user; return it with the plaintext temporary password."""
        if self.directory.find_by_email(email) is not None:
            raise UserExists()

        temp_password = generate_temp_password()
        user = User(
            full_name=full_name,
            email=email,
            username=generate_temp_username(email),
            role=role,
            hashed_password=hash_password(temp_password),
            status=STATUS_PENDING,
            department=department,
            notes=notes,
        )
        try:
            self.directory.create(user)
        except DuplicateError as exc:
            raise UserExists() from exc
        logger.info("Created pending user %s (%s)", email, role)
        return user, temp_password
