"""HTTP views for registration, login and the current user.

Token issuance and verification are delegated to DRF's ``authtoken``
app; these views only check credentials and hand out the stored key.
"""

import logging

from django.contrib.auth import authenticate, get_user_model
from django.db import IntegrityError, transaction
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from apps.common.errors import Conflict, Forbidden
from apps.common.validation import parse

from .domain import Role, role_of
from .schemas import LoginDTO, RegisterDTO, UserReadDTO

logger = logging.getLogger(__name__)


def _user_body(user) -> dict:
    return UserReadDTO(id=user.pk, email=user.email, role=role_of(user)).model_dump(mode="json")


class RegisterView(APIView):
    """Register a user; clients by default.

    Creating an ``ADMIN`` account requires the caller to be an admin.
    """

    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "auth"

    def post(self, request):
        dto = parse(RegisterDTO, request.data)
        if dto.role is Role.ADMIN:
            caller = request.user
            if not (caller and caller.is_authenticated and role_of(caller) is Role.ADMIN):
                raise Forbidden("Only admins can register admin accounts")

        User = get_user_model()
        if User.objects.filter(email__iexact=dto.email).exists():
            raise Conflict("Email already registered")
        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    username=dto.email,
                    email=dto.email,
                    password=dto.password,
                    is_staff=dto.role is Role.ADMIN,
                )
        except IntegrityError as e:
            raise Conflict("Email already registered") from e

        logger.info("user registered", extra={"user_id": user.pk, "role": dto.role.value})
        return Response(_user_body(user), status=status.HTTP_201_CREATED)


class LoginView(APIView):
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "auth"

    def post(self, request):
        dto = parse(LoginDTO, request.data)
        user = authenticate(request, username=dto.email, password=dto.password)
        if user is None:
            raise AuthenticationFailed("Invalid credentials")
        token, _ = Token.objects.get_or_create(user=user)
        return Response({"access_token": token.key}, status=status.HTTP_200_OK)


class LoggedUserView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(_user_body(request.user))
