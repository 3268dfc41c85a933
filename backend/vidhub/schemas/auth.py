# vidhub/schemas/auth.py
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"
CODE_PATTERN = r"^\d{6}$"


def _lower_strip(v: str) -> str:
    return v.strip().lower()


class RegisterIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    username: str = Field(min_length=1, max_length=50, pattern=USERNAME_PATTERN)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("username", mode="before")
    @classmethod
    def _normalize_username(cls, v):
        return _lower_strip(v) if isinstance(v, str) else v

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v):
        return _lower_strip(v) if isinstance(v, str) else v


class VerifyAccountIn(BaseModel):
    email: EmailStr
    code: str = Field(pattern=CODE_PATTERN)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v):
        return _lower_strip(v) if isinstance(v, str) else v


class LoginIn(BaseModel):
    # Email or username.
    identifier: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("identifier", mode="before")
    @classmethod
    def _normalize_identifier(cls, v):
        return _lower_strip(v) if isinstance(v, str) else v


class ChangePasswordIn(BaseModel):
    old_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=1, max_length=128)


class ForgotPasswordIn(BaseModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v):
        return _lower_strip(v) if isinstance(v, str) else v


class ResetPasswordIn(BaseModel):
    email: EmailStr
    code: str = Field(pattern=CODE_PATTERN)
    new_password: str = Field(min_length=1, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, v):
        return _lower_strip(v) if isinstance(v, str) else v


class AccountOut(BaseModel):
    id: int
    name: str
    email: str
    username: str
    profile_image: str | None = None
    is_verified: bool
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class TokenOut(BaseModel):
    message: str
    access_token: str
    token_type: str = "bearer"
    user: AccountOut | None = None


class UsernameAvailabilityOut(BaseModel):
    username: str
    available: bool
