"""Caller identity models and roles."""

from enum import StrEnum

from pydantic import BaseModel, Field


class UserRole(StrEnum):
    """Role of the calling user."""

    ADMIN = "admin"
    USER = "user"


class Caller(BaseModel):
    """Authenticated caller as supplied by the upstream gateway."""

    user_id: str = Field(..., min_length=1, description="Authenticated user ID")
    role: UserRole = Field(default=UserRole.USER, description="Caller role")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
