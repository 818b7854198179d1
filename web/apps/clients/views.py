"""HTTP views for client profiles.

A user creates its own profile; admins list and delete profiles; a
profile can be read or edited by an admin or by the user that owns it.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts.domain import Principal, Role
from apps.accounts.permissions import HasRole
from apps.common.errors import Forbidden
from apps.common.validation import parse

from .repository import ClientRepository
from .schemas import ClientCreateDTO, ClientListQuery, ClientReadDTO, ClientUpdateDTO

logger = logging.getLogger(__name__)


def _body(obj) -> dict:
    return ClientReadDTO(
        id=obj.id,
        user_id=obj.user_id,
        email=obj.user.email,
        full_name=obj.full_name,
        contact=obj.contact,
        address=obj.address,
        status=obj.status,
    ).model_dump(mode="json")


def _check_access(obj, principal: Principal) -> None:
    if not principal.is_admin and obj.user_id != principal.id:
        raise Forbidden("You don't have access to this client")


class ClientsCollectionView(APIView):
    permission_classes = [HasRole]
    required_roles = {"GET": (Role.ADMIN,)}

    def get(self, request):
        query = parse(ClientListQuery, request.query_params.dict())
        page = ClientRepository().page(query.page, full_name=query.full_name, email=query.email, status=query.status)
        return Response({"data": [_body(c) for c in page.data], "meta": page.meta()})

    def post(self, request):
        dto = parse(ClientCreateDTO, request.data)
        obj = ClientRepository().create(request.user.pk, **dto.model_dump())
        logger.info("client profile created", extra={"client_id": obj.id, "user_id": request.user.pk})
        return Response(_body(obj), status=status.HTTP_201_CREATED)


class ClientDetailView(APIView):
    permission_classes = [HasRole]
    required_roles = {"DELETE": (Role.ADMIN,)}

    def get(self, request, cid: int):
        obj = ClientRepository().get(cid)
        _check_access(obj, Principal.from_user(request.user))
        return Response(_body(obj))

    def patch(self, request, cid: int):
        principal = Principal.from_user(request.user)
        repo = ClientRepository()
        obj = repo.get(cid)
        _check_access(obj, principal)
        dto = parse(ClientUpdateDTO, request.data)
        obj = repo.update(cid, dto.changes_for(principal.role))
        return Response(_body(obj))

    def delete(self, request, cid: int):
        obj = ClientRepository().delete(cid)
        logger.info("client profile deleted", extra={"client_id": cid})
        return Response(_body(obj))
