from django.conf import settings
from django.db import models


class OrderModel(models.Model):
    class Status(models.TextChoices):
        CART = "CART"
        ORDERED = "ORDERED"
        PREPARING = "PREPARING"
        SHIPPED = "SHIPPED"
        DELIVERED = "DELIVERED"
        RECEIVED = "RECEIVED"
        CANCELED = "CANCELED"

    client = models.ForeignKey("clients.ClientModel", on_delete=models.CASCADE, related_name="orders")
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.CART)
    total = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    order_date = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "orders"
        ordering = ["id"]
        constraints = [
            # A client has at most one active cart
            models.UniqueConstraint(
                fields=["client"],
                condition=models.Q(status="CART"),
                name="one_cart_per_client",
            ),
        ]

    def __str__(self):
        return f"{self.id}:{self.status}:{self.total}"


class OrderItemModel(models.Model):
    order = models.ForeignKey(OrderModel, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey("products.ProductModel", on_delete=models.PROTECT, related_name="order_items")
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        db_table = "order_items"
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(fields=["order", "product"], name="one_line_per_product"),
        ]


class IdempotencyKey(models.Model):
    """Stored outcome of a request sent with an ``Idempotency-Key`` header.

    ``response_status`` stays 0 while the first request is still running.
    """

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="+")
    key = models.CharField(max_length=128)
    request_hash = models.CharField(max_length=64)
    response_status = models.PositiveSmallIntegerField(default=0)
    response_body = models.JSONField(default=dict)
    order = models.ForeignKey(OrderModel, null=True, blank=True, on_delete=models.SET_NULL, related_name="+")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "idempotency_keys"
        constraints = [
            models.UniqueConstraint(fields=["user", "key"], name="idempotency_key_per_user"),
        ]
