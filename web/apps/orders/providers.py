"""Service provider helpers for wiring OrderService with ports.

This module exposes a small factory function ``get_order_service`` that
returns an ``OrderService`` wired with the Django ORM adapters: the order
repository, the product inventory and the client directory. Views call it
once per request; tests can monkeypatch it to inject other ports, such as
the in-memory adapters from ``apps.orders.adapters``.
"""

from apps.clients.repository import DjangoClientDirectory
from apps.products.repository import DjangoInventory

from .domain import OrderService
from .repository import OrderRepository


def get_order_service() -> OrderService:
    """Return a configured OrderService instance.

    Returns:
        OrderService: A service instance backed by the database.
    """
    return OrderService(
        orders=OrderRepository(),
        inventory=DjangoInventory(),
        clients=DjangoClientDirectory(),
    )
