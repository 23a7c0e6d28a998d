"""
API request and response models for the Roster action endpoint.

These Pydantic v2 models define the HTTP transport contract. They are kept
separate from the dataclasses in auth/models.py, which own the internal
domain representation. Route handlers map between the two.

Requests arrive as one flat parameter map with an "action" field. The map
is decoded once into ActionRequest, a discriminated union on "action", so
each handler receives a model carrying exactly its own fields. Required
fields default to "" on purpose: a missing field must come back as a
{"success": false, "message": ...} envelope from the service, not a 422.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from auth.models import User

# ---------------------------------------------------------------------------
# Request variants
# ---------------------------------------------------------------------------


class _ActionBase(BaseModel):
    """Shared config: camelCase wire names, unknown parameters ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class LoginRequest(_ActionBase):
    action: Literal["login"]
    username: str = ""
    password: str = ""


class VerifyTokenRequest(_ActionBase):
    action: Literal["verifyToken"]
    token: str = ""


class VerifyTempLoginRequest(_ActionBase):
    action: Literal["verifyTempLogin"]
    username: str = ""
    password: str = ""


class CompleteUserSetupRequest(_ActionBase):
    action: Literal["completeUserSetup"]
    email: str = ""
    new_username: str = ""
    new_password: str = ""


class LogoutRequest(_ActionBase):
    action: Literal["logout"]
    token: str = ""


class DashboardStatsRequest(_ActionBase):
    action: Literal["getDashboardStats"]
    token: str = ""


class GetUsersRequest(_ActionBase):
    action: Literal["getUsers"]
    token: str = ""


class AddUserRequest(_ActionBase):
    action: Literal["addUser"]
    token: str = ""
    full_name: str = ""
    email: str = ""
    role: str = ""
    department: str = ""
    notes: str = ""


class DeleteUserRequest(_ActionBase):
    action: Literal["deleteUser"]
    token: str = ""
    email: str = ""


ActionRequest = Annotated[
    Union[
        LoginRequest,
        VerifyTokenRequest,
        VerifyTempLoginRequest,
        CompleteUserSetupRequest,
        LogoutRequest,
        DashboardStatsRequest,
        GetUsersRequest,
        AddUserRequest,
        DeleteUserRequest,
    ],
    Field(discriminator="action"),
]

action_request_adapter: TypeAdapter = TypeAdapter(ActionRequest)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserSummary(BaseModel):
    """One row of the getUsers listing. Never carries a password field."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    full_name: str
    email: str
    username: str
    role: str
    status: str
    department: str = ""
    created_date: str
    notes: str = ""

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(
            full_name=user.full_name,
            email=user.email,
            username=user.username,
            role=user.role,
            status=user.status,
            department=user.department,
            created_date=user.created_at,
            notes=user.notes,
        )


class DashboardStats(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total_users: int
    active_users: int
    pending_users: int


class ActionResponse(BaseModel):
    """Uniform envelope for every action.

    Only success is always present; the other fields are dropped from the
    JSON when unset (see to_content()).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    message: Optional[str] = None
    token: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    user_created: Optional[bool] = None
    data: Optional[Any] = None

    def to_content(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    @classmethod
    def failure(cls, message: str) -> "ActionResponse":
        return cls(success=False, message=message)


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
