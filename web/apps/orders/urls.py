from django.urls import path
from .views import CartItemView, CartView, CheckoutView, OrderDetailView, OrdersCollectionView

app_name = "orders"

urlpatterns = [
    path("", OrdersCollectionView.as_view(), name="orders-collection"),  # GET list / POST create
    path("cart/", CartView.as_view(), name="cart"),
    path("cart/checkout/", CheckoutView.as_view(), name="cart-checkout"),
    path("cart/<int:product_id>/", CartItemView.as_view(), name="cart-item"),
    path("<int:oid>/", OrderDetailView.as_view(), name="orders-detail"),
]
