"""Authentication schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from app.schemas.user import UserRole, UserSummary

# bcrypt only considers the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72
_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class AuthPrincipal(BaseModel):
    """Normalized authenticated principal used by business services."""

    user_id: str = Field(min_length=1)
    email: str = Field(min_length=1)
    role: UserRole = UserRole.USER


class TokenClaims(BaseModel):
    """Exact claim set carried by an access token."""

    model_config = ConfigDict(extra="forbid")

    sub: StrictStr = Field(min_length=1)
    email: StrictStr = Field(min_length=1)
    role: UserRole
    iat: StrictInt
    exp: StrictInt

    def to_principal(self) -> AuthPrincipal:
        return AuthPrincipal(user_id=self.sub, email=self.email, role=self.role)


class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=254, pattern=_EMAIL_PATTERN)
    username: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def _password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=254)
    password: str = Field(min_length=1)


class AuthResponse(BaseModel):
    access_token: str
    token_type: Literal["bearer"] = "bearer"
    user: UserSummary
