# =============================================================================
# Admin API Routes
# =============================================================================
#
# Endpoints (admin only):
#   POST   /api/admin/teachers              - Create a pre-verified teacher
#   GET    /api/admin/teachers              - List teachers
#   GET    /api/admin/students              - List students
#   GET    /api/admin/users                 - List all users
#   DELETE /api/admin/users/{user_id}       - Delete a user (not yourself)
#   PATCH  /api/admin/users/{user_id}/role  - Change a user's role (not your own)
#
# Delete and role change authenticate via the dependency, then run the full
# policy inline so role validation and the self guard come before the
# admin gate.
#
# =============================================================================

from fastapi import APIRouter, Depends, Request
from pydantic import EmailStr, Field

from lessonhub.api.responses import success
from lessonhub.auth.admin import AdminService
from lessonhub.auth.capabilities import Action
from lessonhub.auth.context import AuthContext
from lessonhub.auth.policies import require, require_auth
from lessonhub.auth.routes import CamelModel
from lessonhub.auth.workflows import MIN_PASSWORD_LENGTH
from lessonhub.core.models import UserRole

router = APIRouter(prefix="/api/admin", tags=["admin"])


def get_admin_service(request: Request) -> AdminService:
    return request.app.state.admin


class CreateTeacherRequest(CamelModel):
    full_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    phone: str = Field(min_length=1, max_length=30)


class UpdateRoleRequest(CamelModel):
    # Plain str: an unknown role is rejected by the policy, not by pydantic
    role: str


# =============================================================================
# Accounts
# =============================================================================


@router.post("/teachers", status_code=201)
async def create_teacher(
    data: CreateTeacherRequest,
    ctx: AuthContext = Depends(require(Action.USER_CREATE)),
    admin: AdminService = Depends(get_admin_service),
):
    teacher = await admin.create_teacher(
        ctx,
        full_name=data.full_name,
        email=data.email,
        password=data.password,
        phone=data.phone,
    )
    return success({"teacher": teacher.to_json()}, message="Teacher created successfully")


async def _listing(admin: AdminService, ctx: AuthContext, role: UserRole | None, key: str):
    users = await admin.list_users(ctx, role)
    return success({key: [u.to_json() for u in users]}, results=len(users))


@router.get("/teachers")
async def list_teachers(
    ctx: AuthContext = Depends(require(Action.USER_LIST)),
    admin: AdminService = Depends(get_admin_service),
):
    return await _listing(admin, ctx, UserRole.TEACHER, "teachers")


@router.get("/students")
async def list_students(
    ctx: AuthContext = Depends(require(Action.USER_LIST)),
    admin: AdminService = Depends(get_admin_service),
):
    return await _listing(admin, ctx, UserRole.STUDENT, "students")


@router.get("/users")
async def list_users(
    ctx: AuthContext = Depends(require(Action.USER_LIST)),
    admin: AdminService = Depends(get_admin_service),
):
    return await _listing(admin, ctx, None, "users")


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    ctx: AuthContext = Depends(require_auth()),
    admin: AdminService = Depends(get_admin_service),
):
    await admin.delete_user(ctx, user_id)
    return success(message="User deleted successfully")


@router.patch("/users/{user_id}/role")
async def update_user_role(
    user_id: str,
    data: UpdateRoleRequest,
    ctx: AuthContext = Depends(require_auth()),
    admin: AdminService = Depends(get_admin_service),
):
    user = await admin.update_role(ctx, user_id, data.role)
    return success({"user": user.to_json()}, message="User role updated successfully")
