"""
Users API: User Route Handlers
===============================

What:  GET/POST /api/users and GET/PUT/DELETE /api/users/{user_id}.
How:   Each handler takes the path id and body, delegates to UserService and
       returns a response model. Errors raised by the service are turned into
       JSON responses by the global handlers in main.py.

Path ids are typed `int`; a non-integer id fails request validation and
is answered with 400.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from users_api.database import get_db_session
from users_api.schemas.user import (
    ErrorResponse,
    UserDeletedResponse,
    UserPayload,
    UserResponse,
)
from users_api.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Users"])


@router.get(
    "/users",
    response_model=List[UserResponse],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List all users ordered by id",
)
async def list_users(
    db: AsyncSession = Depends(get_db_session),
) -> List[UserResponse]:
    return await user_service.list_users(db)


@router.get(
    "/users/{user_id}",
    response_model=UserResponse,
    responses={
        404: {"description": "User not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a single user by id",
)
async def get_user(
    user_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.get_user(db, user_id)


@router.post(
    "/users",
    status_code=201,
    response_model=UserResponse,
    responses={
        400: {"description": "Missing name or email", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create a user",
)
async def create_user(
    payload: UserPayload,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    """Creates a user from `{name, email}`; both fields are required."""
    return await user_service.create_user(db, payload)


@router.put(
    "/users/{user_id}",
    response_model=UserResponse,
    responses={
        404: {"description": "User not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Replace a user's name and email",
)
async def update_user(
    user_id: int,
    payload: UserPayload,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    """
    Full overwrite of `name` and `email`.

    Fields missing from the body are stored as null.
    """
    return await user_service.update_user(db, user_id, payload)


@router.delete(
    "/users/{user_id}",
    response_model=UserDeletedResponse,
    responses={
        404: {"description": "User not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete a user",
)
async def delete_user(
    user_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> UserDeletedResponse:
    """Deletes the user and returns its last state under `usuario`."""
    return await user_service.delete_user(db, user_id)
