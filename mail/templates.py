"""
mail/templates.py -- Text of the invitation email.

One template, plain text. The temporary password appears in the body in
clear; it is the only time it exists outside the bcrypt hash.
"""

from __future__ import annotations

from dataclasses import dataclass

INVITATION_SUBJECT = "Welcome to {organization}"

INVITATION_BODY = """\
Dear {full_name},

Welcome to {organization}! You have been granted access to the admin system.

Your temporary login credentials:
Username: {username}
Password: {password}

Next steps:
1. Visit the account setup page: {setup_url}
2. Log in with the temporary credentials above
3. Choose your permanent username and password
4. Start using the admin system

Important:
- These credentials stop working once you complete setup
- Choose a password with at least 8 characters, including uppercase,
  lowercase, and numbers

Need help? Contact the admin team.

---
This is an automated message. Please do not reply to this email address.
"""


@dataclass(frozen=True)
class RenderedMail:
    subject: str
    body: str


def render_invitation(
    full_name: str,
    username: str,
    password: str,
    setup_url: str,
    organization: str,
) -> RenderedMail:
    return RenderedMail(
        subject=INVITATION_SUBJECT.format(organization=organization),
        body=INVITATION_BODY.format(
            full_name=full_name,
            username=username,
            password=password,
            setup_url=setup_url,
            organization=organization,
        ),
    )
