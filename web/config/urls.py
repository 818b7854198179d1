from django.urls import include, path

urlpatterns = [
    path("api/auth/", include("apps.accounts.urls")),
    path("api/products/", include("apps.products.urls")),
    path("api/clients/", include("apps.clients.urls")),
    path("api/orders/", include("apps.orders.urls")),
    path("api/", include("apps.monitoring.urls")),
]
