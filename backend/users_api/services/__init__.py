"""
Users API: Services Package
============================

What:  Business logic layer between HTTP routes and the database.
How:   Services receive the request's AsyncSession per call and hold no
       per-request state, so a single module-level instance is shared.
"""

from users_api.services.user_service import UserService, user_service

__all__ = ["UserService", "user_service"]
