from django.urls import path
from .views import ProductDetailView, ProductsCollectionView

app_name = "products"

urlpatterns = [
    path("", ProductsCollectionView.as_view(), name="products-collection"),
    path("<int:pid>/", ProductDetailView.as_view(), name="products-detail"),
]
