"""
auth/dependencies.py -- Request-scoped accessors for the auth services.

The services are built once in the application lifespan and parked on
app.state. Handlers reach them through these helpers instead of reading
app.state directly, so tests can swap a single attribute.

Session token lookup order for gated actions:
  1. the "token" parameter of the action request,
  2. an Authorization: Bearer <token> header.

Layer rule: auth/dependencies.py may import from fastapi (for Request)
because it is the seam between the HTTP layer and the services.
"""

from __future__ import annotations

from fastapi import Request

from auth.directory import UserDirectory
from auth.invitations import InvitationService
from auth.service import AuthService


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_invitation_service(request: Request) -> InvitationService:
    return request.app.state.invitation_service


def get_directory(request: Request) -> UserDirectory:
    return request.app.state.directory


def request_token(request: Request, token: str | None) -> str | None:
    """Return the explicit token parameter, else the Bearer header value, else None."""
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def require_session(request: Request, token: str | None) -> None:
    """Raise Unauthorized unless the request carries a live session token.

    Expired sessions are deleted on the way (SessionStore.is_valid).
    """
    get_auth_service(request).require_session(request_token(request, token))
