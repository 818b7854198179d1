"""Pydantic schemas for registration and login."""

import re
from pydantic import BaseModel, Field, field_validator

from .domain import Role


EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _normalize_email(v: str) -> str:
    v2 = v.strip().lower()
    if not EMAIL_RE.match(v2):
        raise ValueError("Invalid email address")
    return v2


class RegisterDTO(BaseModel):
    """Input schema for user registration.

    Attributes:
        email: Login email, normalized to lowercase.
        password: Plain password, at least 8 characters.
        role: Requested role; clients are the default.
    """

    email: str = Field(max_length=254)
    password: str = Field(min_length=8, max_length=128)
    role: Role = Role.CLIENT

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class LoginDTO(BaseModel):
    email: str = Field(max_length=254)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return _normalize_email(v)


class UserReadDTO(BaseModel):
    id: int
    email: str
    role: Role
