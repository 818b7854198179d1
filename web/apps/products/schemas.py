"""Pydantic schemas for the product catalog."""

from decimal import Decimal
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from apps.orders.pricing import money


def _strip_name(v: str) -> str:
    v2 = v.strip()
    if not v2:
        raise ValueError("Name cannot be blank")
    return v2


class ProductCreateDTO(BaseModel):
    """Input schema for a new product.

    Attributes:
        name: Display name, stripped of surrounding whitespace.
        description: Free text.
        price: Positive price with at most two decimals.
        stock: Units available, zero or more.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    price: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    stock: int = Field(ge=0)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_name(v)


class ProductUpdateDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=5000)
    price: Optional[Decimal] = Field(default=None, gt=0, max_digits=12, decimal_places=2)
    stock: Optional[int] = Field(default=None, ge=0)

    @field_validator("name", "description", "price", "stock")
    @classmethod
    def reject_null(cls, v):
        # Omit a field to leave it unchanged; null is not a value
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_name(v)


class ProductReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    price: Decimal
    stock: int

    @field_validator("price")
    @classmethod
    def to_cents(cls, v: Decimal) -> Decimal:
        return money(v)


class ProductListQuery(BaseModel):
    """Query-string filters for the catalog listing.

    Attributes:
        page: 1-indexed page number.
        name: Case-insensitive partial match on the name.
        min_price: Inclusive lower price bound.
        max_price: Inclusive upper price bound.
        available: ``true`` for products in stock, ``false`` for sold out ones.
    """

    page: int = Field(default=1, ge=1)
    name: Optional[str] = Field(default=None, max_length=200)
    min_price: Optional[Decimal] = Field(default=None, gt=0, validation_alias=AliasChoices("minPrice", "min_price"))
    max_price: Optional[Decimal] = Field(default=None, gt=0, validation_alias=AliasChoices("maxPrice", "max_price"))
    available: Optional[bool] = None

    @model_validator(mode="after")
    def check_range(self):
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("minPrice must not be greater than maxPrice")
        return self
