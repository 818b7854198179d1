"""DRF permission classes for role-restricted endpoints.

Views declare the roles allowed per HTTP method in ``required_roles``::

    required_roles = {"GET": (Role.ADMIN, Role.CLIENT), "DELETE": (Role.ADMIN,)}

Methods absent from the mapping are open to any authenticated user.
"""

from rest_framework.permissions import BasePermission

from .domain import role_of


class HasRole(BasePermission):
    message = "Insufficient role for this operation"

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        allowed = getattr(view, "required_roles", {}).get(request.method)
        if allowed is None:
            return True
        return role_of(user) in allowed
