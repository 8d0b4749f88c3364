import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v: object) -> object:
        """Trim whitespace and ensure the name is not blank."""
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("Name cannot be empty or whitespace only")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: object) -> object:
        # Emails are unique case-insensitively
        if isinstance(v, str):
            return v.strip().lower()
        return v


class UserRead(BaseModel):
    """Read User data"""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: Optional[str] = None
    email: EmailStr
    image: Optional[str] = None


class Caller(BaseModel):
    """Identity of the user behind the current request."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: Optional[str] = None
    email: Optional[str] = None


class TokenRead(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str


class GoogleProfile(BaseModel):
    """Subset of Google's OpenID userinfo document."""

    sub: str
    email: EmailStr
    email_verified: bool = False
    name: Optional[str] = None
    picture: Optional[str] = None
