# =============================================================================
# Auth API Routes
# =============================================================================
#
# Endpoints:
#   POST  /api/auth/register               - Create account
#   POST  /api/auth/login                  - Get session token
#   POST  /api/auth/forgot-password        - Request password reset email
#   POST  /api/auth/reset-password/{token} - Set new password with reset token
#   GET   /api/auth/me                     - Get current user
#   PATCH /api/auth/me                     - Update own name / phone
#
# =============================================================================

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from lessonhub.api.responses import success
from lessonhub.auth.capabilities import Action
from lessonhub.auth.context import AuthContext
from lessonhub.auth.policies import require
from lessonhub.auth.workflows import MIN_PASSWORD_LENGTH, AuthWorkflows
from lessonhub.core.models import UserRole

router = APIRouter(prefix="/api/auth", tags=["auth"])


def get_workflows(request: Request) -> AuthWorkflows:
    return request.app.state.workflows


# =============================================================================
# Request Models
# =============================================================================


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    full_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    phone: str = Field(min_length=1, max_length=30)
    role: UserRole | None = None


class LoginRequest(CamelModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)


class UpdateProfileRequest(CamelModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=100)
    phone: str | None = Field(default=None, min_length=1, max_length=30)


# =============================================================================
# Public Endpoints
# =============================================================================


@router.post("/register", status_code=201)
async def register(
    data: RegisterRequest,
    workflows: AuthWorkflows = Depends(get_workflows),
):
    """
    Create an account.

    Succeeds even if the welcome email fails; only the message differs.
    """
    result = await workflows.register(
        full_name=data.full_name,
        email=data.email,
        password=data.password,
        phone=data.phone,
        role=data.role,
    )
    return success({"user": result.user.to_json()}, message=result.message)


@router.post("/login")
async def login(
    data: LoginRequest,
    workflows: AuthWorkflows = Depends(get_workflows),
):
    """Authenticate and get a session token."""
    result = await workflows.login(data.email, data.password)
    return success(
        {"user": result.user.to_json(), "token": result.token},
        message="Login successful",
    )


@router.post("/forgot-password")
async def forgot_password(
    data: ForgotPasswordRequest,
    workflows: AuthWorkflows = Depends(get_workflows),
):
    """
    Request a password reset email.

    Same response whether or not the account exists.
    """
    message = await workflows.request_password_reset(data.email)
    return success(message=message)


@router.post("/reset-password/{token}")
async def reset_password(
    token: str,
    data: ResetPasswordRequest,
    workflows: AuthWorkflows = Depends(get_workflows),
):
    """Set a new password using the token from the reset email."""
    await workflows.reset_password(token, data.password)
    return success(message="Password reset successful. You can now log in.")


# =============================================================================
# Protected Endpoints
# =============================================================================


@router.get("/me")
async def get_me(
    ctx: AuthContext = Depends(require(Action.PROFILE_READ)),
    workflows: AuthWorkflows = Depends(get_workflows),
):
    """Get the current authenticated user."""
    user = await workflows.get_current_user(ctx.user_id)
    return success({"user": user.to_json()})


@router.patch("/me")
async def update_me(
    data: UpdateProfileRequest,
    ctx: AuthContext = Depends(require(Action.PROFILE_UPDATE)),
    workflows: AuthWorkflows = Depends(get_workflows),
):
    """Update the current user's name and/or phone."""
    user = await workflows.update_profile(
        ctx.user_id, full_name=data.full_name, phone=data.phone
    )
    return success({"user": user.to_json()}, message="Profile updated successfully")
