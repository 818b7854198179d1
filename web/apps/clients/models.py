from django.conf import settings
from django.db import models


class ClientModel(models.Model):
    # Exactly one client profile per user
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="client")
    full_name = models.CharField(max_length=200)
    contact = models.CharField(max_length=100)
    address = models.CharField(max_length=300)
    status = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "clients"
        ordering = ["id"]

    def __str__(self):
        return f"{self.id}:{self.full_name}"
