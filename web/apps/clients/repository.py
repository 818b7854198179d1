"""Repository layer for client profiles.

Besides the CRUD used by the client endpoints, this module exposes
``DjangoClientDirectory``, the port through which the order engine maps an
authenticated user to its client record.
"""

from typing import Optional

from django.db import IntegrityError, transaction

from apps.common.errors import Conflict, NotFound
from apps.common.pagination import PAGE_SIZE, Page, page_offset
from apps.orders.domain import Client, ClientDirectoryPort

from .models import ClientModel


class ClientRepository:
    def create(self, user_id: int, **fields) -> ClientModel:
        if ClientModel.objects.filter(user_id=user_id).exists():
            raise Conflict("Client already exists for this user")
        try:
            with transaction.atomic():
                return ClientModel.objects.create(user_id=user_id, **fields)
        except IntegrityError as e:
            raise Conflict("Client already exists for this user") from e

    def get(self, client_id: int) -> ClientModel:
        try:
            return ClientModel.objects.select_related("user").get(pk=client_id)
        except ClientModel.DoesNotExist:
            raise NotFound("Client not found")

    def page(self, page: int, full_name: Optional[str] = None, email: Optional[str] = None,
             status: Optional[bool] = None) -> Page:
        """Return one page of clients, optionally filtered.

        Args:
            page: 1-indexed page number.
            full_name: Case-insensitive partial match on the full name.
            email: Case-insensitive partial match on the user's email.
            status: Exact match on the active flag.
        """
        qs = ClientModel.objects.select_related("user").order_by("id")
        if full_name:
            qs = qs.filter(full_name__icontains=full_name)
        if email:
            qs = qs.filter(user__email__icontains=email)
        if status is not None:
            qs = qs.filter(status=status)
        offset = page_offset(page)
        rows = list(qs[offset:offset + PAGE_SIZE])
        return Page(data=rows, total_items=qs.count(), current_page=page)

    def update(self, client_id: int, fields: dict) -> ClientModel:
        obj = self.get(client_id)
        for name, value in fields.items():
            setattr(obj, name, value)
        if fields:
            obj.save(update_fields=list(fields))
        return obj

    def delete(self, client_id: int) -> ClientModel:
        obj = self.get(client_id)
        obj.delete()
        obj.id = client_id
        return obj


class DjangoClientDirectory(ClientDirectoryPort):
    """Client directory port implemented with the Django ORM."""

    def get_client_for_user(self, user_id: int) -> Optional[Client]:
        obj = ClientModel.objects.filter(user_id=user_id).only("id", "user_id").first()
        return Client(id=obj.id, user_id=obj.user_id) if obj else None
