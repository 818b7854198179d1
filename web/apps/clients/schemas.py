"""Pydantic schemas for client profiles.

``writable_fields`` holds the explicit allow-list of profile fields each
role may change; it is applied to a copy of the validated update before
anything is persisted.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from apps.accounts.domain import Role


CLIENT_FIELDS = frozenset({"full_name", "contact", "address"})
writable_fields = {
    Role.CLIENT: CLIENT_FIELDS,
    Role.ADMIN: CLIENT_FIELDS | {"status"},
}


def _not_blank(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v2 = v.strip()
    if not v2:
        raise ValueError("Field cannot be blank")
    return v2


class ClientCreateDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    full_name: str = Field(max_length=200)
    contact: str = Field(max_length=100)
    address: str = Field(max_length=300)

    @field_validator("full_name", "contact", "address")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return _not_blank(v)


class ClientUpdateDTO(BaseModel):
    """Partial update of a client profile.

    Attributes:
        full_name: New full name.
        contact: New contact (phone or similar).
        address: New postal address.
        status: Active flag; only admins may change it.
    """

    model_config = ConfigDict(extra="forbid")

    full_name: Optional[str] = Field(default=None, max_length=200)
    contact: Optional[str] = Field(default=None, max_length=100)
    address: Optional[str] = Field(default=None, max_length=300)
    status: Optional[bool] = None

    @field_validator("full_name", "contact", "address", "status")
    @classmethod
    def reject_null(cls, v):
        # Omit a field to leave it unchanged; null is not a value
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @field_validator("full_name", "contact", "address")
    @classmethod
    def validate_text(cls, v: str) -> str:
        return _not_blank(v)

    def changes_for(self, role: Role) -> dict:
        """Return the set fields the given role is allowed to write."""
        allowed = writable_fields[role]
        return {k: v for k, v in self.model_dump(exclude_unset=True).items() if k in allowed}


class ClientListQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    full_name: Optional[str] = None
    email: Optional[str] = None
    status: Optional[bool] = None


class ClientReadDTO(BaseModel):
    id: int
    user_id: int
    email: str
    full_name: str
    contact: str
    address: str
    status: bool
