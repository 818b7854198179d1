"""Domain models, ports and service for orders and carts.

This module contains the dataclasses used as DTOs for orders, the
protocol definitions (ports) for the collaborators the order engine needs
(inventory, client directory, order storage) and ``OrderService``, which
owns every business rule of the cart and order lifecycle: cart mutation,
total recalculation, checkout and role-gated status transitions with
stock deduction.

The service never touches the ORM or HTTP objects. Multi-step mutations
run inside ``OrderRepositoryPort.atomic()`` so a failed step leaves no
partial writes behind.
"""

import logging
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

from apps.accounts.domain import Principal, Role
from apps.common.errors import Conflict, Forbidden, InvalidRequest, NotFound
from apps.common.pagination import PAGE_SIZE, Page, page_offset

from .pricing import PricedLine, line_subtotal, money, order_total, price_lines

logger = logging.getLogger(__name__)


# ---- Enums ----
class OrderStatus(str, Enum):
    """Lifecycle of an order.

    ``CART`` marks a client's in-progress draft; every other value is a
    placed order.
    """

    CART = "CART"
    ORDERED = "ORDERED"
    PREPARING = "PREPARING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    RECEIVED = "RECEIVED"
    CANCELED = "CANCELED"


# Target statuses each role may request through ``OrderService.update``,
# and the error raised when the requested status is outside that set.
ROLE_TARGETS: Dict[Role, frozenset] = {
    Role.ADMIN: frozenset({
        OrderStatus.ORDERED,
        OrderStatus.PREPARING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
        OrderStatus.RECEIVED,
        OrderStatus.CANCELED,
    }),
    Role.CLIENT: frozenset({OrderStatus.RECEIVED, OrderStatus.CANCELED}),
}
ROLE_DENIALS = {
    Role.ADMIN: (InvalidRequest, "Invalid status value"),
    Role.CLIENT: (Forbidden, "Clients cannot set this status"),
}

CART_DELETED_MESSAGE = "Item removed successfully. Cart is now empty and has been deleted."


# ---- Entities / DTOs ----
@dataclass(frozen=True)
class OrderItem:
    """A single line of an order.

    Attributes:
        id: Persistent identifier of the line.
        order_id: Owning order.
        product_id: Referenced product (not owned).
        quantity: Units on the line, at least 1 while the line exists.
        unit_price: Product price captured when the line was created.
        subtotal: ``quantity * unit_price``.
    """

    id: int
    order_id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


@dataclass
class Order:
    """Container for order data; a cart is an order with status ``CART``.

    Attributes:
        id: Persistent identifier.
        client_id: Owning client.
        status: Current ``OrderStatus``.
        total: Sum of the items' subtotals.
        order_date: Creation timestamp.
        items: Lines ordered by id.
    """

    id: int
    client_id: int
    status: OrderStatus
    total: Decimal
    order_date: datetime
    items: List[OrderItem] = field(default_factory=list)

    def line_for(self, product_id: int) -> Optional[OrderItem]:
        return next((i for i in self.items if i.product_id == product_id), None)


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    price: Decimal
    stock: int


@dataclass(frozen=True)
class Client:
    id: int
    user_id: int


@dataclass(frozen=True)
class LineRequest:
    """A requested ``(product, quantity)`` pair coming from a caller."""

    product_id: int
    quantity: int


@dataclass(frozen=True)
class CartDeleted:
    """Result of removing the last line of a cart."""

    message: str = CART_DELETED_MESSAGE
    cart: None = None


@dataclass(frozen=True)
class OrderQuery:
    page: int = 1
    status: Optional[OrderStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass(frozen=True)
class OrderFilter:
    """Storage-level predicate for order searches.

    Attributes:
        client_id: Restrict to one client's orders when set.
        status: Keep only this status when set.
        exclude_status: Drop this status when set.
        placed_from: Inclusive lower bound on ``order_date``.
        placed_to: Inclusive upper bound on ``order_date``.
    """

    client_id: Optional[int] = None
    status: Optional[OrderStatus] = None
    exclude_status: Optional[OrderStatus] = None
    placed_from: Optional[datetime] = None
    placed_to: Optional[datetime] = None


# ---- Ports (DIP) ----
class InventoryPort(Protocol):
    """Port describing the product inventory used by the order engine.

    Every call runs inside the caller's transaction.
    """

    def get_product(self, product_id: int, for_update: bool = False) -> Optional[Product]:
        """Return the product or None; ``for_update`` locks its row."""
        raise NotImplementedError()

    def list_products(self, product_ids: Iterable[int]) -> List[Product]:
        """Return the products that exist among ``product_ids``."""
        raise NotImplementedError()

    def adjust_stock(self, product_id: int, delta: int) -> Product:
        """Add ``delta`` to the product's stock.

        Raises:
            InvalidRequest: If the stock would become negative.
        """
        raise NotImplementedError()


class ClientDirectoryPort(Protocol):
    def get_client_for_user(self, user_id: int) -> Optional[Client]:
        raise NotImplementedError()


class OrderRepositoryPort(Protocol):
    """Port describing order and order-item storage."""

    def atomic(self) -> AbstractContextManager:
        """Return a context manager wrapping a single atomic transaction."""
        raise NotImplementedError()

    def get(self, order_id: int, for_update: bool = False) -> Optional[Order]:
        raise NotImplementedError()

    def find_cart(self, client_id: int, for_update: bool = False) -> Optional[Order]:
        raise NotImplementedError()

    def create(self, client_id: int, status: OrderStatus, lines: Sequence[PricedLine], total: Decimal) -> Order:
        """Insert an order with its lines.

        Raises:
            Conflict: If ``status`` is ``CART`` and the client already has a cart.
        """
        raise NotImplementedError()

    def add_item(self, order_id: int, product_id: int, quantity: int, unit_price: Decimal, subtotal: Decimal) -> OrderItem:
        raise NotImplementedError()

    def update_item(self, item_id: int, quantity: int, subtotal: Decimal) -> OrderItem:
        raise NotImplementedError()

    def delete_item(self, item_id: int) -> None:
        raise NotImplementedError()

    def list_items(self, order_id: int) -> List[OrderItem]:
        raise NotImplementedError()

    def set_total(self, order_id: int, total: Decimal) -> None:
        raise NotImplementedError()

    def set_status(self, order_id: int, status: OrderStatus) -> None:
        raise NotImplementedError()

    def delete(self, order_id: int) -> None:
        raise NotImplementedError()

    def search(self, flt: OrderFilter, offset: int, limit: int) -> Tuple[List[Order], int]:
        """Return one window of matching orders (id ascending) and the total count."""
        raise NotImplementedError()


# ---- Helpers ----
def start_of_day(d: Optional[date]) -> Optional[datetime]:
    return datetime.combine(d, time.min, tzinfo=timezone.utc) if d else None


def end_of_day(d: Optional[date]) -> Optional[datetime]:
    """Last millisecond of ``d`` in UTC (23:59:59.999)."""
    return datetime.combine(d, time(23, 59, 59, 999000), tzinfo=timezone.utc) if d else None


def coerce_status(value: Union[str, OrderStatus, None]) -> Optional[OrderStatus]:
    """Map a raw status value to ``OrderStatus``; unknown values give None."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        return None


def merge_lines(lines: Iterable[LineRequest]) -> List[LineRequest]:
    """Collapse repeated products into one request line, keeping first-seen order."""
    merged: Dict[int, int] = {}
    for line in lines:
        merged[line.product_id] = merged.get(line.product_id, 0) + line.quantity
    return [LineRequest(pid, qty) for pid, qty in merged.items()]


# ---- Domain service ----
class OrderService:
    """Domain service owning the cart and order lifecycle.

    Callers pass an explicit ``Principal`` into every operation. Checks
    short-circuit in the order existence, ownership/role, then domain
    validation, and each failure raises a ``DomainError`` subclass.
    """

    def __init__(self, orders: OrderRepositoryPort, inventory: InventoryPort, clients: ClientDirectoryPort):
        """Initialize the service with required dependencies.

        Args:
            orders: Storage for orders and their items.
            inventory: Product lookup and stock adjustment.
            clients: Resolution of a user to its client profile.
        """
        self.orders = orders
        self.inventory = inventory
        self.clients = clients

    # -- internal steps --
    def _client_for(self, principal: Principal) -> Client:
        if principal.role is not Role.CLIENT:
            raise Forbidden("Only clients can access this")
        client = self.clients.get_client_for_user(principal.id)
        if client is None:
            raise NotFound("Client profile not found")
        return client

    def _resolve_products(self, lines: Sequence[LineRequest]) -> Dict[int, Product]:
        found = {p.id: p for p in self.inventory.list_products([l.product_id for l in lines])}
        for line in lines:
            if line.product_id not in found:
                raise NotFound(f"Product {line.product_id} not found")
        return found

    def _ensure_stock(self, product: Product, quantity: int) -> None:
        if product.stock < quantity:
            logger.warning(
                "insufficient stock",
                extra={"product_id": product.id, "stock": product.stock, "requested": quantity},
            )
            raise InvalidRequest(f"Insufficient stock for product {product.name}")

    def _reserve_stock(self, items: Iterable[OrderItem]) -> None:
        # Rows are locked in product-id order so concurrent reservations
        # over the same products cannot deadlock.
        for item in sorted(items, key=lambda i: i.product_id):
            product = self.inventory.get_product(item.product_id, for_update=True)
            if product is None:
                raise NotFound(f"Product {item.product_id} not found")
            self._ensure_stock(product, item.quantity)
            self.inventory.adjust_stock(product.id, -item.quantity)

    def _recalculate_total(self, order_id: int) -> List[OrderItem]:
        items = self.orders.list_items(order_id)
        self.orders.set_total(order_id, order_total(items))
        return items

    def _require_order(self, order_id: int, for_update: bool = False) -> Order:
        order = self.orders.get(order_id, for_update=for_update)
        if order is None:
            raise NotFound("Order not found")
        return order

    def _check_owner(self, order: Order, principal: Principal) -> None:
        if principal.role is Role.CLIENT:
            client = self._client_for(principal)
            if order.client_id != client.id:
                raise Forbidden("Cannot access other client orders")

    # -- direct orders --
    def create(self, lines: Sequence[LineRequest], principal: Principal) -> Order:
        """Place an order directly, without going through a cart.

        Lines are priced at current product prices and the order starts in
        ``ORDERED``. Stock is taken later, on the ``PREPARING`` transition.

        Raises:
            Forbidden: If the principal is not a client.
            NotFound: If the client profile or any product is missing.
            InvalidRequest: If no lines are given.
        """
        client = self._client_for(principal)
        lines = merge_lines(lines)
        if not lines:
            raise InvalidRequest("Order must contain at least one item")

        with self.orders.atomic():
            products = self._resolve_products(lines)
            priced = price_lines(lines, products)
            order = self.orders.create(client.id, OrderStatus.ORDERED, priced, order_total(priced))

        logger.info("order created", extra={"order_id": order.id, "client_id": client.id})
        return order

    # -- cart --
    def get_cart(self, principal: Principal) -> Order:
        client = self._client_for(principal)
        cart = self.orders.find_cart(client.id)
        if cart is None:
            raise NotFound("Cart not found")
        return cart

    def add_to_cart(self, lines: Sequence[LineRequest], principal: Principal) -> Order:
        """Add lines to the client's cart, creating the cart when absent.

        A new cart prices every line at the current product price. On an
        existing cart a repeated product tops up its line, which keeps the
        unit price it was first added with. The resulting line quantity may
        not exceed current stock in either case.

        Returns:
            The refreshed cart.

        Raises:
            Forbidden: If the principal is not a client.
            NotFound: For the first requested product that does not exist.
            InvalidRequest: If no lines are given or stock is short.
        """
        client = self._client_for(principal)
        lines = merge_lines(lines)
        if not lines:
            raise InvalidRequest("At least one item is required")

        with self.orders.atomic():
            products = self._resolve_products(lines)
            cart = self.orders.find_cart(client.id, for_update=True)

            if cart is None:
                for line in lines:
                    self._ensure_stock(products[line.product_id], line.quantity)
                priced = price_lines(lines, products)
                try:
                    cart = self.orders.create(client.id, OrderStatus.CART, priced, order_total(priced))
                    logger.info("cart created", extra={"order_id": cart.id, "client_id": client.id})
                except Conflict:
                    # A concurrent request created the cart first; add onto it
                    cart = self.orders.find_cart(client.id, for_update=True)
                    if cart is None:
                        raise
                    logger.info("cart created concurrently", extra={"order_id": cart.id, "client_id": client.id})
                    self._top_up(cart, lines, products)
            else:
                self._top_up(cart, lines, products)

        return self.get_cart(principal)

    def _top_up(self, cart: Order, lines: Sequence[LineRequest], products: Dict[int, Product]) -> None:
        for line in lines:
            product = products[line.product_id]
            existing = cart.line_for(line.product_id)
            if existing is not None:
                quantity = existing.quantity + line.quantity
                self._ensure_stock(product, quantity)
                self.orders.update_item(existing.id, quantity, line_subtotal(quantity, existing.unit_price))
            else:
                self._ensure_stock(product, line.quantity)
                price = money(product.price)
                self.orders.add_item(cart.id, product.id, line.quantity, price, line_subtotal(line.quantity, price))
        self._recalculate_total(cart.id)

    def remove_from_cart(self, product_id: int, principal: Principal, quantity: int = 1) -> Union[Order, CartDeleted]:
        """Remove ``quantity`` units of a product from the cart.

        Removing at least the line's quantity deletes the line. Removing
        the last line deletes the cart itself and returns ``CartDeleted``.

        Raises:
            NotFound: If there is no cart or no line for the product.
            InvalidRequest: If ``quantity`` is not positive.
        """
        client = self._client_for(principal)

        with self.orders.atomic():
            cart = self.orders.find_cart(client.id, for_update=True)
            if cart is None:
                raise NotFound("Cart not found")
            if quantity <= 0:
                raise InvalidRequest("Quantity to remove must be greater than zero")
            line = cart.line_for(product_id)
            if line is None:
                raise NotFound("Item not found in cart")

            if quantity >= line.quantity:
                self.orders.delete_item(line.id)
            else:
                remaining = line.quantity - quantity
                self.orders.update_item(line.id, remaining, line_subtotal(remaining, line.unit_price))

            if not self._recalculate_total(cart.id):
                self.orders.delete(cart.id)
                logger.info("cart emptied and deleted", extra={"order_id": cart.id, "client_id": client.id})
                return CartDeleted()

        return self.get_cart(principal)

    def checkout(self, principal: Principal) -> Order:
        """Turn the client's cart into an ``ORDERED`` order.

        Stock for every line is checked and decremented in the same
        transaction as the status change; one short line aborts all of it.

        Raises:
            NotFound: If there is no cart or a product vanished.
            InvalidRequest: If the cart is empty or any stock is short.
        """
        client = self._client_for(principal)

        with self.orders.atomic():
            cart = self.orders.find_cart(client.id, for_update=True)
            if cart is None:
                raise NotFound("Cart not found")
            if not cart.items:
                raise InvalidRequest("Cart is empty")
            self._reserve_stock(cart.items)
            self.orders.set_status(cart.id, OrderStatus.ORDERED)
            order = self.orders.get(cart.id)

        logger.info("checkout completed", extra={"order_id": order.id, "client_id": client.id, "total": str(order.total)})
        return order

    # -- order management --
    def find_one(self, order_id: int, principal: Optional[Principal] = None) -> Order:
        order = self._require_order(order_id)
        if principal is not None:
            self._check_owner(order, principal)
        return order

    def find_all(self, principal: Principal, query: OrderQuery) -> Page[Order]:
        """List placed orders visible to the principal, one page at a time.

        Admins see every non-cart order unless an explicit status is
        requested; clients see their own non-cart orders, optionally
        narrowed by status. Date bounds are inclusive whole days.
        """
        if query.page < 1:
            raise InvalidRequest("Page must be greater than zero")

        if principal.role is Role.ADMIN:
            client_id = None
            exclude = None if query.status else OrderStatus.CART
        elif principal.role is Role.CLIENT:
            client_id = self._client_for(principal).id
            exclude = OrderStatus.CART
        else:
            raise Forbidden("Role cannot list orders")

        flt = OrderFilter(
            client_id=client_id,
            status=query.status,
            exclude_status=exclude,
            placed_from=start_of_day(query.start_date),
            placed_to=end_of_day(query.end_date),
        )
        rows, total = self.orders.search(flt, page_offset(query.page), PAGE_SIZE)
        return Page(data=rows, total_items=total, current_page=query.page)

    def update(self, order_id: int, new_status: Union[str, OrderStatus], principal: Principal) -> Order:
        """Move an order to ``new_status`` following the role table.

        Moving to ``PREPARING`` deducts stock for every line in the same
        transaction as the status change.

        Raises:
            NotFound: If the order or a product is missing.
            Forbidden: For a client acting on another client's order, a
                client requesting a status outside its set, or an unknown role.
            InvalidRequest: For an admin requesting a status outside its set,
                an order still in ``CART``, or short stock.
        """
        with self.orders.atomic():
            order = self._require_order(order_id, for_update=True)
            self._check_owner(order, principal)

            allowed = ROLE_TARGETS.get(principal.role)
            if allowed is None:
                raise Forbidden("Role cannot update orders")
            target = coerce_status(new_status)
            if target not in allowed:
                exc, message = ROLE_DENIALS[principal.role]
                raise exc(message)
            if order.status is OrderStatus.CART:
                raise InvalidRequest("Cart orders can only be checked out")

            if target is OrderStatus.PREPARING:
                self._reserve_stock(self.orders.list_items(order.id))
            self.orders.set_status(order.id, target)
            updated = self.orders.get(order.id)

        logger.info(
            "order status changed",
            extra={"order_id": order.id, "from": order.status.value, "to": target.value, "role": principal.role.value},
        )
        return updated

    def remove(self, order_id: int, principal: Principal) -> Order:
        """Delete an order (admins only) and return it as it was."""
        if principal.role is not Role.ADMIN:
            raise Forbidden("Only admins can delete orders")

        with self.orders.atomic():
            order = self._require_order(order_id, for_update=True)
            self.orders.delete(order.id)

        logger.info("order deleted", extra={"order_id": order.id})
        return order
