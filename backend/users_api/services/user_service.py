"""
Users API: User Service
========================

What:  The five CRUD operations over the `users` table.
How:   Each operation issues exactly one parameterized SQL statement through
       the session it is given (writes use RETURNING so the affected row comes
       back in the same round trip) and commits on its own.
Who:   Called by the /api/users route handlers.

Error Handling Strategy:
    - Missing name/email on create → ValidationError, raised before any SQL.
    - No row for the id            → NotFoundError.
    - Anything raised by the driver or SQLAlchemy → logged with its traceback,
      wrapped in DatabaseError carrying a generic message.

The service keeps no per-instance state and receives the session for every
call, so one instance serves all requests.
"""

import logging
from typing import List

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from users_api.exceptions import DatabaseError, NotFoundError, ValidationError
from users_api.models.user import User
from users_api.schemas.user import UserDeletedResponse, UserPayload, UserResponse

logger = logging.getLogger(__name__)

# Range of the INTEGER (serial) id column
MIN_USER_ID = -(2 ** 31)
MAX_USER_ID = 2 ** 31 - 1

REQUIRED_FIELDS = ("name", "email")


class UserService:
    """
    Business logic layer for user records.

    Responsibilities:
        - list_users():  SELECT ... ORDER BY id
        - get_user():    SELECT ... WHERE id = :id
        - create_user(): INSERT ... RETURNING
        - update_user(): UPDATE ... WHERE id = :id RETURNING
        - delete_user(): DELETE ... WHERE id = :id RETURNING
    """

    @staticmethod
    def validate_create(payload: UserPayload) -> None:
        """
        Presence check for create: both fields must be non-empty strings.

        Raises:
            ValidationError: listing the missing fields.
        """
        missing = [field for field in REQUIRED_FIELDS if not getattr(payload, field)]
        if missing:
            raise ValidationError(
                message="Missing data: name and email are required",
                fields=missing,
            )

    @staticmethod
    def _ensure_addressable(user_id: int) -> None:
        # Ids outside the column range cannot match a row
        if not MIN_USER_ID <= user_id <= MAX_USER_ID:
            raise NotFoundError(resource="user", resource_id=user_id)

    async def list_users(self, db: AsyncSession) -> List[UserResponse]:
        """All users ordered by ascending id (possibly empty)."""
        try:
            result = await db.execute(select(User).order_by(User.id.asc()))
            users = result.scalars().all()
        except Exception as e:
            logger.error("Database error listing users: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve users",
                context={"error_type": type(e).__name__},
            ) from e

        return [UserResponse.model_validate(user) for user in users]

    async def get_user(self, db: AsyncSession, user_id: int) -> UserResponse:
        """
        Retrieve a single user by id.

        Raises:
            NotFoundError: no row with that id (→ 404)
            DatabaseError: query execution failed (→ 500)
        """
        self._ensure_addressable(user_id)
        try:
            result = await db.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve the user",
                context={"user_id": user_id, "error_type": type(e).__name__},
            ) from e

        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)

        return UserResponse.model_validate(user)

    async def create_user(self, db: AsyncSession, payload: UserPayload) -> UserResponse:
        """
        Insert a user and return it with its generated id.

        Raises:
            ValidationError: name or email missing (no SQL is issued)
            DatabaseError: insert failed
        """
        self.validate_create(payload)

        try:
            result = await db.execute(
                insert(User)
                .values(name=payload.name, email=payload.email)
                .returning(User)
            )
            user = result.scalar_one()
            await db.commit()
        except Exception as e:
            logger.error("Database error creating user: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the user",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Created user %s", user.id)
        return UserResponse.model_validate(user)

    async def update_user(
        self,
        db: AsyncSession,
        user_id: int,
        payload: UserPayload,
    ) -> UserResponse:
        """
        Overwrite name and email of an existing user.

        Full overwrite: a field absent from the payload is stored as NULL.

        Raises:
            NotFoundError: no row with that id; nothing is written
            DatabaseError: update failed
        """
        self._ensure_addressable(user_id)
        try:
            result = await db.execute(
                update(User)
                .where(User.id == user_id)
                .values(name=payload.name, email=payload.email)
                .returning(User)
                .execution_options(synchronize_session=False)
            )
            user = result.scalar_one_or_none()
            await db.commit()
        except Exception as e:
            logger.error("Database error updating user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the user",
                context={"user_id": user_id, "error_type": type(e).__name__},
            ) from e

        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)

        logger.info("Updated user %s", user_id)
        return UserResponse.model_validate(user)

    async def delete_user(self, db: AsyncSession, user_id: int) -> UserDeletedResponse:
        """
        Delete a user and return its last state.

        Raises:
            NotFoundError: no row with that id
            DatabaseError: delete failed
        """
        self._ensure_addressable(user_id)
        try:
            result = await db.execute(
                delete(User)
                .where(User.id == user_id)
                .returning(User)
                .execution_options(synchronize_session=False)
            )
            user = result.scalar_one_or_none()
            await db.commit()
        except Exception as e:
            logger.error("Database error deleting user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the user",
                context={"user_id": user_id, "error_type": type(e).__name__},
            ) from e

        if user is None:
            raise NotFoundError(resource="user", resource_id=user_id)

        logger.info("Deleted user %s", user_id)
        return UserDeletedResponse(
            message="User deleted",
            usuario=UserResponse.model_validate(user),
        )


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
