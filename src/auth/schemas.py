"""Pydantic schemas for authentication."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.auth.permissions import UserRole


class AuthenticatedUser(BaseModel):
    """Identity carried by a validated access token."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(..., description="User UUID (token subject)")
    email: str | None = Field(None, description="Email claim, when present")
    role: UserRole = Field(UserRole.STUDENT, description="User role")
    issued_at: datetime | None = Field(None, description="Token issue time")

    @property
    def is_admin(self) -> bool:
        """Whether the user may manage the catalogue."""
        return self.role == UserRole.ADMIN
