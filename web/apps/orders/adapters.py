"""In-process adapters for the orders domain ports.

These adapters implement ``OrderRepositoryPort``, ``InventoryPort`` and
``ClientDirectoryPort`` over a shared ``MemoryStore`` without any database.
They are intended for unit tests and local experiments where fast,
deterministic behavior is useful. ``MemoryStore.atomic()`` snapshots the
whole store and restores it when the block raises, so the all-or-nothing
contract of the domain service holds here too.
"""

import copy
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from apps.common.errors import Conflict, InvalidRequest, NotFound

from .domain import (
    Client,
    ClientDirectoryPort,
    InventoryPort,
    Order,
    OrderFilter,
    OrderItem,
    OrderRepositoryPort,
    OrderStatus,
    Product,
)
from .pricing import PricedLine, money


class MemoryStore:
    """Shared in-memory state for the three in-process adapters.

    Attributes:
        products: Products by id.
        clients: Clients by id.
        orders: Orders by id, stored without their items.
        items: Order items by id.
    """

    def __init__(self):
        self.products: Dict[int, Product] = {}
        self.clients: Dict[int, Client] = {}
        self.orders: Dict[int, Order] = {}
        self.items: Dict[int, OrderItem] = {}
        self.seq: Dict[str, int] = {"product": 0, "client": 0, "order": 0, "item": 0}

    def next_id(self, kind: str) -> int:
        self.seq[kind] += 1
        return self.seq[kind]

    @contextmanager
    def atomic(self):
        snapshot = copy.deepcopy((self.products, self.clients, self.orders, self.items, self.seq))
        try:
            yield
        except BaseException:
            self.products, self.clients, self.orders, self.items, self.seq = snapshot
            raise

    # -- seeding helpers --
    def add_product(self, name: str, price, stock: int) -> Product:
        product = Product(id=self.next_id("product"), name=name, price=money(price), stock=stock)
        self.products[product.id] = product
        return product

    def add_client(self, user_id: int) -> Client:
        client = Client(id=self.next_id("client"), user_id=user_id)
        self.clients[client.id] = client
        return client


class InMemoryInventory(InventoryPort):
    def __init__(self, store: MemoryStore):
        self.store = store

    def get_product(self, product_id: int, for_update: bool = False) -> Optional[Product]:
        return self.store.products.get(product_id)

    def list_products(self, product_ids: Iterable[int]) -> List[Product]:
        return [self.store.products[pid] for pid in dict.fromkeys(product_ids) if pid in self.store.products]

    def adjust_stock(self, product_id: int, delta: int) -> Product:
        product = self.store.products.get(product_id)
        if product is None:
            raise NotFound(f"Product {product_id} not found")
        if product.stock + delta < 0:
            raise InvalidRequest(f"Insufficient stock for product {product.name}")
        product = replace(product, stock=product.stock + delta)
        self.store.products[product_id] = product
        return product


class InMemoryClientDirectory(ClientDirectoryPort):
    def __init__(self, store: MemoryStore):
        self.store = store

    def get_client_for_user(self, user_id: int) -> Optional[Client]:
        return next((c for c in self.store.clients.values() if c.user_id == user_id), None)


class InMemoryOrderRepository(OrderRepositoryPort):
    def __init__(self, store: MemoryStore):
        self.store = store

    def atomic(self):
        return self.store.atomic()

    def _with_items(self, order: Order) -> Order:
        return replace(order, items=self.list_items(order.id))

    def get(self, order_id: int, for_update: bool = False) -> Optional[Order]:
        order = self.store.orders.get(order_id)
        return self._with_items(order) if order else None

    def find_cart(self, client_id: int, for_update: bool = False) -> Optional[Order]:
        for order in self.store.orders.values():
            if order.client_id == client_id and order.status is OrderStatus.CART:
                return self._with_items(order)
        return None

    def create(self, client_id: int, status: OrderStatus, lines: Sequence[PricedLine], total: Decimal) -> Order:
        if status is OrderStatus.CART and self.find_cart(client_id) is not None:
            raise Conflict("Client already has an active cart")
        order = Order(
            id=self.store.next_id("order"),
            client_id=client_id,
            status=status,
            total=money(total),
            order_date=datetime.now(timezone.utc),
        )
        self.store.orders[order.id] = order
        for line in lines:
            self.add_item(order.id, line.product_id, line.quantity, line.unit_price, line.subtotal)
        return self.get(order.id)

    def add_item(self, order_id: int, product_id: int, quantity: int, unit_price: Decimal, subtotal: Decimal) -> OrderItem:
        item = OrderItem(
            id=self.store.next_id("item"),
            order_id=order_id,
            product_id=product_id,
            quantity=quantity,
            unit_price=money(unit_price),
            subtotal=money(subtotal),
        )
        self.store.items[item.id] = item
        return item

    def update_item(self, item_id: int, quantity: int, subtotal: Decimal) -> OrderItem:
        item = replace(self.store.items[item_id], quantity=quantity, subtotal=money(subtotal))
        self.store.items[item_id] = item
        return item

    def delete_item(self, item_id: int) -> None:
        self.store.items.pop(item_id, None)

    def list_items(self, order_id: int) -> List[OrderItem]:
        return sorted((i for i in self.store.items.values() if i.order_id == order_id), key=lambda i: i.id)

    def set_total(self, order_id: int, total: Decimal) -> None:
        self.store.orders[order_id] = replace(self.store.orders[order_id], total=money(total))

    def set_status(self, order_id: int, status: OrderStatus) -> None:
        self.store.orders[order_id] = replace(self.store.orders[order_id], status=status)

    def delete(self, order_id: int) -> None:
        self.store.orders.pop(order_id, None)
        for item in self.list_items(order_id):
            del self.store.items[item.id]

    def search(self, flt: OrderFilter, offset: int, limit: int) -> Tuple[List[Order], int]:
        def keep(o: Order) -> bool:
            return (
                (flt.client_id is None or o.client_id == flt.client_id)
                and (flt.status is None or o.status is flt.status)
                and (flt.exclude_status is None or o.status is not flt.exclude_status)
                and (flt.placed_from is None or o.order_date >= flt.placed_from)
                and (flt.placed_to is None or o.order_date <= flt.placed_to)
            )

        matching = sorted((o for o in self.store.orders.values() if keep(o)), key=lambda o: o.id)
        return [self._with_items(o) for o in matching[offset:offset + limit]], len(matching)
