"""Repository layer for persisting orders.

This module implements ``OrderRepositoryPort`` with the Django ORM. It
returns domain dataclasses rather than model instances so the domain
layer is not coupled to ORM details. Row locks (``for_update``) only
take effect inside ``atomic()``.
"""

from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from django.db import IntegrityError, transaction

from apps.common.errors import Conflict

from .domain import Order, OrderFilter, OrderItem, OrderRepositoryPort, OrderStatus
from .models import OrderItemModel, OrderModel
from .pricing import PricedLine


def item_to_domain(obj: OrderItemModel) -> OrderItem:
    return OrderItem(
        id=obj.id,
        order_id=obj.order_id,
        product_id=obj.product_id,
        quantity=obj.quantity,
        unit_price=obj.unit_price,
        subtotal=obj.subtotal,
    )


def order_to_domain(obj: OrderModel, items: Optional[List[OrderItem]] = None) -> Order:
    if items is None:
        items = [item_to_domain(i) for i in obj.items.all()]
    return Order(
        id=obj.id,
        client_id=obj.client_id,
        status=OrderStatus(obj.status),
        total=obj.total,
        order_date=obj.order_date,
        items=items,
    )


class OrderRepository(OrderRepositoryPort):
    """Order repository backed by ``OrderModel`` and ``OrderItemModel``."""

    def atomic(self):
        return transaction.atomic()

    def _load(self, qs, for_update: bool) -> Optional[Order]:
        if for_update:
            # Lock the order row only; items are read separately
            obj = qs.select_for_update().first()
            return order_to_domain(obj, self.list_items(obj.id)) if obj else None
        obj = qs.prefetch_related("items").first()
        return order_to_domain(obj) if obj else None

    def get(self, order_id: int, for_update: bool = False) -> Optional[Order]:
        return self._load(OrderModel.objects.filter(pk=order_id), for_update)

    def find_cart(self, client_id: int, for_update: bool = False) -> Optional[Order]:
        qs = OrderModel.objects.filter(client_id=client_id, status=OrderStatus.CART.value)
        return self._load(qs, for_update)

    def create(self, client_id: int, status: OrderStatus, lines: Sequence[PricedLine], total: Decimal) -> Order:
        """Insert an order with its lines.

        Args:
            client_id: Owning client.
            status: Initial status (``CART`` or ``ORDERED``).
            lines: Priced lines to insert, in order.
            total: Precomputed sum of the lines' subtotals.

        Returns:
            The persisted order with its items.

        Raises:
            Conflict: If a second ``CART`` would be created for the client.
        """
        try:
            # Savepoint keeps the outer transaction usable after a lost race
            with transaction.atomic():
                obj = OrderModel.objects.create(client_id=client_id, status=status.value, total=total)
        except IntegrityError as e:
            raise Conflict("Client already has an active cart") from e
        OrderItemModel.objects.bulk_create([
            OrderItemModel(
                order=obj,
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                subtotal=line.subtotal,
            )
            for line in lines
        ])
        return self.get(obj.id)

    def add_item(self, order_id: int, product_id: int, quantity: int, unit_price: Decimal, subtotal: Decimal) -> OrderItem:
        obj = OrderItemModel.objects.create(
            order_id=order_id,
            product_id=product_id,
            quantity=quantity,
            unit_price=unit_price,
            subtotal=subtotal,
        )
        return item_to_domain(obj)

    def update_item(self, item_id: int, quantity: int, subtotal: Decimal) -> OrderItem:
        OrderItemModel.objects.filter(pk=item_id).update(quantity=quantity, subtotal=subtotal)
        return item_to_domain(OrderItemModel.objects.get(pk=item_id))

    def delete_item(self, item_id: int) -> None:
        OrderItemModel.objects.filter(pk=item_id).delete()

    def list_items(self, order_id: int) -> List[OrderItem]:
        return [item_to_domain(i) for i in OrderItemModel.objects.filter(order_id=order_id).order_by("id")]

    def set_total(self, order_id: int, total: Decimal) -> None:
        OrderModel.objects.filter(pk=order_id).update(total=total)

    def set_status(self, order_id: int, status: OrderStatus) -> None:
        OrderModel.objects.filter(pk=order_id).update(status=status.value)

    def delete(self, order_id: int) -> None:
        OrderModel.objects.filter(pk=order_id).delete()

    def search(self, flt: OrderFilter, offset: int, limit: int) -> Tuple[List[Order], int]:
        qs = OrderModel.objects.all()
        if flt.client_id is not None:
            qs = qs.filter(client_id=flt.client_id)
        if flt.status is not None:
            qs = qs.filter(status=flt.status.value)
        if flt.exclude_status is not None:
            qs = qs.exclude(status=flt.exclude_status.value)
        if flt.placed_from is not None:
            qs = qs.filter(order_date__gte=flt.placed_from)
        if flt.placed_to is not None:
            qs = qs.filter(order_date__lte=flt.placed_to)

        total = qs.count()
        rows = qs.order_by("id").prefetch_related("items")[offset:offset + limit]
        return [order_to_domain(o) for o in rows], total
