from django.urls import path
from .views import ClientDetailView, ClientsCollectionView

app_name = "clients"

urlpatterns = [
    path("", ClientsCollectionView.as_view(), name="clients-collection"),
    path("<int:cid>/", ClientDetailView.as_view(), name="clients-detail"),
]
