"""ORM models."""

from users_api.models.user import User

__all__ = ["User"]
