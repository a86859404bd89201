"""
Pydantic models for registration, login and password management.

Password strength is not checked here: the policy produces
identity-style error codes (``PasswordRequiresDigit`` and so on) and
lives in ``AccountService``.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .base import CamelModel


class RegisterRequest(CamelModel):
    model_config = ConfigDict(validate_default=True)

    display_name: str = Field("", examples=["Bob"])
    email: EmailStr = Field(..., examples=["bob@test.com"])
    password: str = Field("", examples=["Pa$$w0rd"])

    @field_validator("display_name")
    @classmethod
    def check_display_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("The DisplayName field is required.")
        return v.strip()


class LoginRequest(CamelModel):
    email: str = Field(..., examples=["bob@test.com"])
    password: str = Field(..., examples=["Pa$$w0rd"])


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserInfo(CamelModel):
    id: str
    email: str
    display_name: Optional[str] = None
    image_url: Optional[str] = None


class ForgotPasswordRequest(CamelModel):
    email: str


class ResetPasswordRequest(CamelModel):
    email: str
    reset_code: str
    new_password: str


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)
