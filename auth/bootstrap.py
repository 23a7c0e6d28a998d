"""
auth/bootstrap.py -- First-run seeding of the admin account.

A fresh roster has no one who could log in and invite the first user, so
`python main.py init` seeds an active admin when the directory is empty.
The generated password is returned to the caller exactly once; only its
bcrypt hash is stored.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging

from auth.credentials import generate_temp_password, hash_password
from auth.directory import UserDirectory
from auth.models import STATUS_ACTIVE, User

logger = logging.getLogger("roster.bootstrap")

ADMIN_USERNAME = "admin"


def seed_admin(directory: UserDirectory, admin_email: str) -> str | None:
    """Create the default admin if the directory is empty.

    Returns the generated plaintext password, or None when nothing was
    created (users already exist, or no admin email is configured).
    """
    if directory.has_users():
        logger.info("Directory already has users; admin not seeded")
        return None
    if not admin_email:
        logger.warning("ADMIN_EMAIL is not set; admin not seeded")
        return None
    password = generate_temp_password()
    directory.create(
        User(
            full_name="Admin User",
            email=admin_email,
            username=ADMIN_USERNAME,
            role="admin",
            hashed_password=hash_password(password),
            status=STATUS_ACTIVE,
            notes="Default admin user",
        )
    )
    logger.info("Seeded admin account %r <%s>", ADMIN_USERNAME, admin_email)
    return password
