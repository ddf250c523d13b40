"""
Users API routes
"""

import logging
from typing import Any, List
from fastapi import APIRouter, Body, Depends, Request

from database.repository import UserRepository
from models.user import (
    User,
    UserCreateRequest,
    UserUpdateRequest,
    UserDeleteResponse,
    ValidationErrorResponse
)
from services.exceptions import UserNotFoundError, UserValidationError
from services.users_service import UserService
from services.validation import validate

router = APIRouter()
logger = logging.getLogger(__name__)


def get_user_repository(request: Request) -> UserRepository:
    """Repository bound to the pool opened in the app lifespan"""
    return UserRepository(getattr(request.app.state, "db_pool", None))


def get_users_service(repository: UserRepository = Depends(get_user_repository)) -> UserService:
    return UserService(repository)


@router.get("", response_model=List[User])
async def list_users(users_service: UserService = Depends(get_users_service)):
    """List all users"""
    return await users_service.list_users()


@router.get("/{user_id}", response_model=User)
async def get_user(user_id: int, users_service: UserService = Depends(get_users_service)):
    """Get user by ID"""
    user = await users_service.get_user(user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


@router.post("", response_model=User, responses={400: {"model": ValidationErrorResponse}})
async def create_user(
    payload: Any = Body(None),
    users_service: UserService = Depends(get_users_service)
):
    """Create a new user"""
    violations = validate(payload)
    if violations:
        raise UserValidationError(violations)

    return await users_service.create_user(UserCreateRequest.model_validate(payload))


@router.put("/{user_id}", response_model=User, responses={400: {"model": ValidationErrorResponse}})
async def update_user(
    user_id: int,
    payload: Any = Body(None),
    users_service: UserService = Depends(get_users_service)
):
    """Update the submitted fields of a user"""
    violations = validate(payload, partial=True)
    if violations:
        raise UserValidationError(violations)

    return await users_service.update_user(user_id, UserUpdateRequest.model_validate(payload))


@router.delete("/{user_id}", response_model=UserDeleteResponse)
async def delete_user(user_id: int, users_service: UserService = Depends(get_users_service)):
    """Delete a user"""
    await users_service.delete_user(user_id)
    return UserDeleteResponse(message="User deleted successfully", id=user_id)
