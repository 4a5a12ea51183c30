from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Transaction
from .serializers import (
    TransactionCreateSerializer,
    TransactionFilterSerializer,
    TransactionSerializer,
    TransactionUpdateSerializer,
)
from .services import InventoryService, TransactionQuery


class TransactionListCreateView(APIView):

    def get(self, request):
        params = TransactionFilterSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)

        transactions = TransactionQuery.filtered(
            sort_by=params.validated_data["sort_by"],
            sort_order=params.validated_data["sort_order"],
            movement_type=params.validated_data["type"] or None,
        )
        return Response(TransactionSerializer(transactions, many=True).data)

    def post(self, request):
        serializer = TransactionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            entry = InventoryService.record_movement(
                product=data["product"],
                movement_type=data["type"],
                quantity=data["quantity"],
                date=data.get("date"),
                reference=data["reference"],
                notes=data["notes"],
            )
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(TransactionSerializer(entry).data, status=status.HTTP_201_CREATED)
# e.g
# GET /transaction/?sortBy=amount&sortOrder=desc&type=INBOUND
# POST /transaction/
# {
#   "productId": "223be6e6-5752-441f-82e6-14f2812acb84",
#   "type": "OUTBOUND",
#   "quantity": 4,
#   "reference": "SO-19-10-2026-0003"
# }


class TransactionDetailView(APIView):

    def get(self, request, pk):
        entry = get_object_or_404(Transaction.objects.select_related("product"), pk=pk)
        return Response(TransactionSerializer(entry).data)

    def put(self, request, pk):
        entry = get_object_or_404(Transaction.objects.select_related("product"), pk=pk)
        serializer = TransactionUpdateSerializer(entry, data=request.data)
        serializer.is_valid(raise_exception=True)
        entry = serializer.save()
        return Response(TransactionSerializer(entry).data)

    def delete(self, request, pk):
        entry = get_object_or_404(Transaction, pk=pk)
        try:
            InventoryService.void_movement(entry)
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)
