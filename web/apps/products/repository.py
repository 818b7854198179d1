"""Repository layer for the product catalog and its stock.

``ProductRepository`` backs the catalog endpoints. ``DjangoInventory`` is
the inventory port used by the order engine; its calls run inside the
caller's transaction and return domain ``Product`` values instead of ORM
rows.
"""

from decimal import Decimal
from typing import Iterable, List, Optional

from django.db.models import F, ProtectedError

from apps.common.errors import Conflict, InvalidRequest, NotFound
from apps.common.pagination import PAGE_SIZE, Page, page_offset
from apps.orders.domain import InventoryPort, Product

from .models import ProductModel


def to_domain(obj: ProductModel) -> Product:
    return Product(id=obj.id, name=obj.name, price=obj.price, stock=obj.stock)


class ProductRepository:
    """Catalog CRUD over ``ProductModel``."""

    def create(self, **fields) -> ProductModel:
        return ProductModel.objects.create(**fields)

    def get(self, product_id: int) -> ProductModel:
        try:
            return ProductModel.objects.get(pk=product_id)
        except ProductModel.DoesNotExist:
            raise NotFound("Product not found")

    def page(self, page: int, name: Optional[str] = None, min_price: Optional[Decimal] = None,
             max_price: Optional[Decimal] = None, available: Optional[bool] = None) -> Page:
        """Return one page of products, optionally filtered.

        Args:
            page: 1-indexed page number.
            name: Case-insensitive partial match on the name.
            min_price: Inclusive lower price bound.
            max_price: Inclusive upper price bound.
            available: True keeps products in stock, False keeps sold out ones.
        """
        qs = ProductModel.objects.order_by("id")
        if name:
            qs = qs.filter(name__icontains=name)
        if min_price is not None:
            qs = qs.filter(price__gte=min_price)
        if max_price is not None:
            qs = qs.filter(price__lte=max_price)
        if available is True:
            qs = qs.filter(stock__gt=0)
        elif available is False:
            qs = qs.filter(stock=0)
        offset = page_offset(page)
        rows = list(qs[offset:offset + PAGE_SIZE])
        return Page(data=rows, total_items=qs.count(), current_page=page)

    def update(self, product_id: int, fields: dict) -> ProductModel:
        obj = self.get(product_id)
        for name, value in fields.items():
            setattr(obj, name, value)
        if fields:
            obj.save(update_fields=list(fields))
        return obj

    def delete(self, product_id: int) -> ProductModel:
        obj = self.get(product_id)
        try:
            obj.delete()
        except ProtectedError as e:
            raise Conflict("Product is referenced by orders and cannot be deleted") from e
        obj.id = product_id
        return obj


class DjangoInventory(InventoryPort):
    """Inventory port implemented with the Django ORM."""

    def get_product(self, product_id: int, for_update: bool = False) -> Optional[Product]:
        qs = ProductModel.objects.filter(pk=product_id)
        if for_update:
            qs = qs.select_for_update()
        obj = qs.first()
        return to_domain(obj) if obj else None

    def list_products(self, product_ids: Iterable[int]) -> List[Product]:
        return [to_domain(p) for p in ProductModel.objects.filter(pk__in=list(product_ids))]

    def adjust_stock(self, product_id: int, delta: int) -> Product:
        """Apply ``delta`` with a conditional UPDATE so stock cannot go negative.

        Raises:
            NotFound: If the product does not exist.
            InvalidRequest: If a decrement exceeds the available stock.
        """
        qs = ProductModel.objects.filter(pk=product_id)
        if delta < 0:
            qs = qs.filter(stock__gte=-delta)
        if not qs.update(stock=F("stock") + delta):
            obj = ProductModel.objects.filter(pk=product_id).first()
            if obj is None:
                raise NotFound(f"Product {product_id} not found")
            raise InvalidRequest(f"Insufficient stock for product {obj.name}")
        return to_domain(ProductModel.objects.get(pk=product_id))
