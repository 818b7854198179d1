"""Pydantic schemas for orders and carts.

This module exposes the request/validation schemas used by the orders API
and the read schemas used to serialize domain orders into responses.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from .domain import LineRequest, OrderStatus
from .pricing import money


class OrderItemIn(BaseModel):
    """Input schema for a single requested line.

    Attributes:
        product_id: Identifier of the product to add.
        quantity: Positive integer indicating units requested.
    """

    model_config = ConfigDict(extra="forbid")

    product_id: int = Field(gt=0, validation_alias=AliasChoices("productId", "product_id"))
    quantity: int = Field(ge=1, le=10_000)

    def to_domain(self) -> LineRequest:
        return LineRequest(product_id=self.product_id, quantity=self.quantity)


class CreateOrderDTO(BaseModel):
    """Schema for creating an order or adding to the cart.

    Attributes:
        items: Non-empty list of ``OrderItemIn``.
    """

    items: List[OrderItemIn] = Field(min_length=1, max_length=100)

    def lines(self) -> List[LineRequest]:
        return [i.to_domain() for i in self.items]


class UpdateOrderDTO(BaseModel):
    """Schema for a status change.

    The status is kept as the raw, case-sensitive string: whether a value
    is acceptable depends on the caller's role and is decided by the
    domain service.
    """

    model_config = ConfigDict(extra="forbid")

    status: str = Field(min_length=1, max_length=32)


class RemoveFromCartQuery(BaseModel):
    quantity: int = 1


class FindAllOrdersQuery(BaseModel):
    """Query-string filters for the order listing.

    Attributes:
        page: 1-indexed page number.
        status: Only orders in this status.
        start_date: Orders placed on or after this day (``YYYY-MM-DD``).
        end_date: Orders placed on or before this day (``YYYY-MM-DD``).
    """

    page: int = Field(default=1, ge=1)
    status: Optional[OrderStatus] = None
    start_date: Optional[date] = Field(default=None, validation_alias=AliasChoices("startDate", "start_date"))
    end_date: Optional[date] = Field(default=None, validation_alias=AliasChoices("endDate", "end_date"))

    @model_validator(mode="after")
    def check_range(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self


class OrderItemReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    @field_validator("unit_price", "subtotal")
    @classmethod
    def to_cents(cls, v: Decimal) -> Decimal:
        return money(v)


class OrderReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    status: OrderStatus
    total: Decimal
    order_date: datetime
    items: List[OrderItemReadDTO]

    @field_validator("total")
    @classmethod
    def to_cents(cls, v: Decimal) -> Decimal:
        return money(v)
