"""Authentication and registration schemas."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from app.schemas.users import UserResponse, UserType


class Token(BaseModel):
    """JWT token response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenRefresh(BaseModel):
    """Token refresh request schema."""

    refresh_token: str


class FirebaseAuthRequest(BaseModel):
    """Firebase ID token authentication request."""

    id_token: str = Field(..., description="Firebase ID token from the client")


class LoginRequest(BaseModel):
    """Email/password login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    """Email/password registration for trekkers and guides."""

    name: str = Field(..., min_length=3, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    user_type: UserType = UserType.TREKKER
    certificate_number: str | None = Field(None, max_length=64)

    @model_validator(mode="after")
    def guide_needs_certificate(self) -> "RegisterRequest":
        """Guides must provide a CADASTUR number."""
        if self.user_type == UserType.GUIDE and not (self.certificate_number or "").strip():
            raise ValueError("CADASTUR number is required for guides")
        return self


class GuideRegisterRequest(BaseModel):
    """Guide registration."""

    name: str = Field(..., min_length=3, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    certificate_number: str = Field(..., min_length=1, max_length=64)


class LoginResponse(Token):
    """Login response with tokens and user info."""

    user: UserResponse


class RegisterResponse(LoginResponse):
    """Registration response."""

    user_id: UUID
