"""
/api/users -- User registration and management.

Users are never removed. DELETE /api/users/{user_id} deactivates the
account (active=false) and keeps the record.
"""

from fastapi import APIRouter, Depends

from audit_api.backends.base import LedgerBackend
from audit_api.dependencies import get_backend
from audit_api.models.schemas import (
    CreateUserRequest,
    ErrorResponse,
    ExistsResponse,
    UpdateRoleRequest,
    User,
    UserResponse,
)

router = APIRouter(prefix="/api/users", tags=["Users"])

NOT_FOUND = {404: {"model": ErrorResponse, "description": "User not found"}}


@router.post(
    "",
    response_model=UserResponse,
    summary="Register a user",
    description=(
        "Create a user. The id, timestamps and active flag are generated; "
        "permissions default to an empty list."
    ),
)
async def create_user(
    request: CreateUserRequest,
    backend: LedgerBackend = Depends(get_backend),
) -> UserResponse:
    fields = request.to_record()
    record = await backend.create_user(fields)
    return UserResponse(user=User(**record))


# Declared before /{user_id} so "exists" is not taken for an id
@router.get(
    "/exists/{user_id}",
    response_model=ExistsResponse,
    response_model_exclude_none=True,
    summary="Check whether a user exists",
)
async def user_exists(user_id: str, backend: LedgerBackend = Depends(get_backend)) -> ExistsResponse:
    return ExistsResponse(user_id=user_id, exists=await backend.user_exists(user_id))


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses=NOT_FOUND,
    summary="Fetch a user",
)
async def get_user(user_id: str, backend: LedgerBackend = Depends(get_backend)) -> UserResponse:
    record = await backend.get_user(user_id)
    return UserResponse(user=User(**record))


@router.put(
    "/{user_id}/role",
    response_model=UserResponse,
    responses=NOT_FOUND,
    summary="Change a user's role",
)
async def update_user_role(
    user_id: str,
    request: UpdateRoleRequest,
    backend: LedgerBackend = Depends(get_backend),
) -> UserResponse:
    record = await backend.update_user_role(user_id, request.role.value)
    return UserResponse(user=User(**record))


@router.delete(
    "/{user_id}",
    response_model=UserResponse,
    responses=NOT_FOUND,
    summary="Deactivate a user",
    description="Soft delete: sets active=false. The user stays in the collection.",
)
async def deactivate_user(user_id: str, backend: LedgerBackend = Depends(get_backend)) -> UserResponse:
    record = await backend.deactivate_user(user_id)
    return UserResponse(user=User(**record))
