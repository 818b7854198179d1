from django.db import models


class ProductModel(models.Model):
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(max_digits=12, decimal_places=2)
    # Positive field adds a DB check: stock never goes negative
    stock = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "products"
        ordering = ["id"]

    def __str__(self):
        return f"{self.id}:{self.name}"
