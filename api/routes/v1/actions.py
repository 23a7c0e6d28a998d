"""
api/routes/v1/actions.py -- Single action endpoint for the admin console.

Routes:
  GET|POST /api/v1/exec  -- run one action selected by the "action" parameter

Parameters are read from the query string and, for POST, from a form body or
a JSON object body (body values win over query values). The merged map is
decoded once into a typed request (api.models.ActionRequest) and dispatched
through _HANDLERS.

Handlers are plain functions run in the threadpool, the way FastAPI runs a
`def` route, so bcrypt and store calls never block the event loop. Only
addUser is a coroutine, because it awaits the mail channel.

Actions:
  login              public   {username, password}          -> token
  verifyToken        public   {token}                       -> username
  verifyTempLogin    public   {username, password}          -> email
  completeUserSetup  public   {email, newUsername, newPassword}
  logout             public   {token}
  getDashboardStats  session  {token}                       -> data
  getUsers           session  {token}                       -> data
  addUser            session  {token, fullName, email, role, department?, notes?}
  deleteUser         session  {token, email}

Boundary policy: every response is HTTP 200 with the ActionResponse
envelope. AuthError subclasses become {"success": false, "message": ...};
anything else is logged with its traceback and becomes a generic
"Server error" so internals never reach the client.
"""

from __future__ import annotations

import logging
import inspect
from collections.abc import Awaitable, Callable
from typing import Union, get_args

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool

from api.models import (
    ActionResponse,
    AddUserRequest,
    CompleteUserSetupRequest,
    DashboardStats,
    DashboardStatsRequest,
    DeleteUserRequest,
    GetUsersRequest,
    LoginRequest,
    LogoutRequest,
    UserSummary,
    VerifyTempLoginRequest,
    VerifyTokenRequest,
    action_request_adapter,
)
from auth.dependencies import get_auth_service, get_directory, get_invitation_service, require_session
from auth.errors import AuthError, MissingField, NotFoundError, UserNotFound

logger = logging.getLogger("roster.api.actions")

router = APIRouter()

Handler = Callable[[Request, BaseModel], Union[ActionResponse, Awaitable[ActionResponse]]]


# ---------------------------------------------------------------------------
# Public actions
# ---------------------------------------------------------------------------


def _login(request: Request, body: LoginRequest) -> ActionResponse:
    session = get_auth_service(request).login(body.username, body.password)
    return ActionResponse(success=True, token=session.token, message="Login successful")


def _verify_token(request: Request, body: VerifyTokenRequest) -> ActionResponse:
    username = get_auth_service(request).verify_token(body.token)
    return ActionResponse(success=True, username=username)


def _verify_temp_login(request: Request, body: VerifyTempLoginRequest) -> ActionResponse:
    email = get_auth_service(request).verify_temp_login(body.username, body.password)
    return ActionResponse(success=True, email=email, message="Temporary credentials verified")


def _complete_user_setup(request: Request, body: CompleteUserSetupRequest) -> ActionResponse:
    get_auth_service(request).complete_setup(body.email, body.new_username, body.new_password)
    return ActionResponse(success=True, message="Account setup completed successfully")


def _logout(request: Request, body: LogoutRequest) -> ActionResponse:
    get_auth_service(request).logout(body.token)
    return ActionResponse(success=True, message="Logged out")


# ---------------------------------------------------------------------------
# Session-gated actions
# ---------------------------------------------------------------------------


def _dashboard_stats(request: Request, body: DashboardStatsRequest) -> ActionResponse:
    require_session(request, body.token)
    counts = get_directory(request).count_by_status()
    stats = DashboardStats(
        total_users=counts["total"],
        active_users=counts["active"],
        pending_users=counts["pending"],
    )
    return ActionResponse(success=True, data=stats.model_dump(by_alias=True))


def _get_users(request: Request, body: GetUsersRequest) -> ActionResponse:
    require_session(request, body.token)
    users = get_directory(request).list_all()
    return ActionResponse(
        success=True,
        data=[UserSummary.from_user(u).model_dump(by_alias=True) for u in users],
    )


async def _add_user(request: Request, body: AddUserRequest) -> ActionResponse:
    await run_in_threadpool(require_session, request, body.token)
    invitation = await get_invitation_service(request).invite(
        full_name=body.full_name,
        email=body.email,
        role=body.role,
        notes=body.notes,
        department=body.department,
    )
    if not invitation.notified:
        return ActionResponse(
            success=False,
            user_created=True,
            message="User created but failed to send invitation email",
        )
    return ActionResponse(
        success=True,
        user_created=True,
        message="User created and invitation email sent successfully",
    )


def _delete_user(request: Request, body: DeleteUserRequest) -> ActionResponse:
    require_session(request, body.token)
    if not body.email:
        raise MissingField("Email is required")
    try:
        get_directory(request).delete_by_email(body.email)
    except NotFoundError as exc:
        raise UserNotFound() from exc
    return ActionResponse(success=True, message="User deleted successfully")


# ---------------------------------------------------------------------------
# Dispatch table
# ---------------------------------------------------------------------------

_HANDLERS: dict[type[BaseModel], Handler] = {
    LoginRequest: _login,
    VerifyTokenRequest: _verify_token,
    VerifyTempLoginRequest: _verify_temp_login,
    CompleteUserSetupRequest: _complete_user_setup,
    LogoutRequest: _logout,
    DashboardStatsRequest: _dashboard_stats,
    GetUsersRequest: _get_users,
    AddUserRequest: _add_user,
    DeleteUserRequest: _delete_user,
}

_ACTION_NAMES: frozenset[str] = frozenset(get_args(model.model_fields["action"].annotation)[0] for model in _HANDLERS)


async def _collect_params(request: Request) -> dict:
    """Merge query parameters with a form or JSON object body."""
    params: dict = dict(request.query_params)
    if request.method != "POST":
        return params
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        payload = await request.json()
        if isinstance(payload, dict):
            params.update(payload)
    elif content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        params.update({key: value for key, value in form.items() if isinstance(value, str)})
    return params


async def run_action(request: Request, params: dict) -> ActionResponse:
    """Decode params into a typed request and run its handler.

    Never raises: every outcome is an ActionResponse.
    """
    action = params.get("action")
    if not isinstance(action, str) or action not in _ACTION_NAMES:
        return ActionResponse.failure("Invalid action")
    try:
        body = action_request_adapter.validate_python(params)
    except ValidationError:
        return ActionResponse.failure("Invalid request parameters")

    handler = _HANDLERS[type(body)]
    try:
        if inspect.iscoroutinefunction(handler):
            return await handler(request, body)
        return await run_in_threadpool(handler, request, body)
    except AuthError as exc:
        return ActionResponse.failure(exc.message)
    except Exception:
        logger.exception("Action %s failed", action)
        return ActionResponse.failure("Server error")


@router.api_route("/exec", methods=["GET", "POST"], response_model=ActionResponse)
async def execute(request: Request) -> JSONResponse:
    """Run the action named by the "action" parameter and return its envelope."""
    try:
        params = await _collect_params(request)
    except ValueError:
        return JSONResponse(content=ActionResponse.failure("Malformed request body").to_content())
    response = await run_action(request, params)
    resp = JSONResponse(content=response.to_content())
    resp.headers["Cache-Control"] = "no-store"
    return resp
