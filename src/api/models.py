"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from src.adapters.security.passwords import MAX_PASSWORD_BYTES


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    college: str = Field(..., min_length=1, description="College name")
    committee: str = Field(..., min_length=1, description="Committee name")
    contact: str = Field(..., min_length=7, description="Contact number (min 7 characters)")
    password: str = Field(..., min_length=6, description="User password (min 6 characters)")
    confirm_password: str = Field(..., alias="confirmPassword")

    @field_validator("password")
    @classmethod
    def password_fits_hash(cls, value: str) -> str:
        if len(value.encode()) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
        return value

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self


class RegisterResponse(BaseModel):
    """Response model for successful registration."""

    message: str
    email: str
    expires_in_seconds: int


class ResendRequest(BaseModel):
    """
    Request model for resending a verification code.

    The email is optional here so a missing value is reported as
    missing_email rather than a generic validation error.
    """

    email: str | None = None


class VerifyRequest(BaseModel):
    """Request model for email verification."""

    email: str | None = Field(None, description="Email echoed by /register")
    code: str | None = Field(None, description="6-digit verification code")


class LoginRequest(BaseModel):
    """Request model for login."""

    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    """Response model for successful login."""

    message: str
    token: str
    token_type: str = "bearer"
    expires_in_seconds: int


class SessionResponse(BaseModel):
    """Identity carried by a valid session token."""

    email: str


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    detail: str
