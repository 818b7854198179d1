"""Roles and the authenticated principal.

The principal is an immutable value built once per request from the
authenticated Django user and passed explicitly into every service call.
"""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Access roles known to the shop."""

    ADMIN = "ADMIN"
    CLIENT = "CLIENT"


@dataclass(frozen=True)
class Principal:
    """The actor on whose behalf an operation runs.

    Attributes:
        id: Primary key of the authenticated user.
        role: Role the user acts with.
    """

    id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @classmethod
    def from_user(cls, user) -> "Principal":
        """Build a principal from a Django user.

        Staff users act as ``ADMIN``; every other user is a ``CLIENT``.
        """
        return cls(id=user.pk, role=role_of(user))


def role_of(user) -> Role:
    return Role.ADMIN if user.is_staff else Role.CLIENT
