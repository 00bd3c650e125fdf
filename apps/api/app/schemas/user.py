"""User API schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class UserSummary(BaseModel):
    """Public user fields returned alongside an issued token."""

    id: str
    email: str
    username: str


class UserProfile(BaseModel):
    id: str
    email: str
    username: str
    role: UserRole
    created_at: datetime
