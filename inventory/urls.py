from django.urls import path
from .views import TransactionDetailView, TransactionListCreateView

urlpatterns = [
    path('transaction/', TransactionListCreateView.as_view(), name='transaction-list-create'),
    path('transaction/<uuid:pk>/', TransactionDetailView.as_view(), name='transaction-detail'),
]
