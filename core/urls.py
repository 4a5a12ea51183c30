

from django.urls import path, include



urlpatterns = [
    path('', include('catalog.urls')),
    path('', include('order.urls')),
    path('', include('inventory.urls')),
]
