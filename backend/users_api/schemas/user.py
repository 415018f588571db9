"""
Users API: Pydantic Request/Response Schemas
=============================================

What:  Pydantic models defining the JSON contract of /api/users.
How:   FastAPI parses request bodies into UserPayload (a body that is not a
       JSON object with string-or-null fields is rejected with 400) and
       serializes ORM rows through UserResponse.

Presence of `name`/`email` is NOT enforced here: create requires both,
update does not, so the check lives in the service layer.
"""

from typing import Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class UserPayload(BaseModel):
    """
    Body of POST /api/users and PUT /api/users/{id}.

    Both fields are optional at the parsing level. Unknown keys are ignored.
    """
    name: Optional[str] = Field(default=None, description="User's name")
    email: Optional[str] = Field(default=None, description="User's email address")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UserResponse(BaseModel):
    """One row of the users table."""
    id: int = Field(description="Database-generated identifier")
    name: Optional[str] = Field(default=None, description="User's name")
    email: Optional[str] = Field(default=None, description="User's email address")

    model_config = {"from_attributes": True}


class UserDeletedResponse(BaseModel):
    """
    Returned by DELETE /api/users/{id}: a confirmation message plus the
    record as it was just before deletion, under the `usuario` key.
    """
    message: str = Field(default="User deleted", description="Confirmation message")
    usuario: UserResponse = Field(description="The deleted record")


class ErrorResponse(BaseModel):
    """
    Error envelope shared by every endpoint.

    Example:
        {"error": "User not found", "request_id": "a1b2c3d4"}
    """
    error: str = Field(description="Human-readable error description")
    details: Optional[list] = Field(default=None, description="Field-level problems (400 only)")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
