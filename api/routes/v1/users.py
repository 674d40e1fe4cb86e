"""
api/routes/v1/users.py -- User lookup and deletion.

Routes:
  GET    /api/v1/users/{user_id}  -- the user themself, or MANAGER or better; 404 if no active user
  DELETE /api/v1/users/{user_id}  -- MANAGER or better; soft delete, 403 on self-deletion

AuthService.get_by_id() returns the unredacted record; this route is the
boundary, so it converts to PublicUser before serializing.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from api.models import DeleteUserResponse, UserResponse
from auth.dependencies import get_current_identity, require_role
from auth.guard import is_at_least
from auth.models import Identity, UserRole
from auth.service import AuthService

logger = logging.getLogger("todoapp.api.users")

router = APIRouter()


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    request: Request,
    user_id: str,
    identity: Identity = Depends(get_current_identity),
) -> UserResponse:
    if identity.subject_id != user_id and not is_at_least(identity.role, UserRole.MANAGER):
        raise HTTPException(
            status_code=403,
            detail={"code": "forbidden", "message": "You can only view your own account."},
        )
    service: AuthService = request.app.state.auth_service
    user = service.get_by_id(user_id)
    if user is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "User not found."},
        )
    return UserResponse.from_public(user.to_public())


@router.delete("/users/{user_id}", response_model=DeleteUserResponse)
def delete_user(
    request: Request,
    user_id: str,
    identity: Identity = Depends(require_role(UserRole.MANAGER)),
) -> DeleteUserResponse:
    """Soft-delete a user. SelfDeletion and UserNotFound map to 403 and 404 in api/main.py."""
    service: AuthService = request.app.state.auth_service
    service.delete_user(user_id, deleted_by=identity.subject_id)
    logger.info("User %s deleted via API by %s", user_id, identity.username)
    return DeleteUserResponse(user_id=user_id)
