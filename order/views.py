from django.shortcuts import get_object_or_404
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status

from .models import Order
from .serializers import OrderSerializer, OrderWriteSerializer
from .services import OrderService


def _orders_with_items():
    return Order.objects.prefetch_related("items__product")


class OrderListCreateView(APIView):

    def get(self, request):
        # no server-side filtering: the dashboard filters the full list itself
        orders = _orders_with_items().order_by("-created_at")
        return Response(OrderSerializer(orders, many=True).data)

    def post(self, request):
        serializer = OrderWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = OrderService.create_order(**serializer.to_service_kwargs())
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        order = _orders_with_items().get(pk=order.pk)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)
#   e.g
# {
#   "type": "SALES",
#   "customerSupplier": "Acme",
#   "status": "PENDING",
#   "items": [
#     {"productId": "223be6e6-5752-441f-82e6-14f2812acb84", "quantity": 3, "unitPrice": 10},
#     {"productId": "90439833-ef6a-4c95-8a41-d32d9ae1d3fd", "quantity": 1, "unitPrice": 25}
#   ],
#   "notes": "deliver before friday"
# }


class OrderDetailView(APIView):

    def get(self, request, pk):
        order = get_object_or_404(_orders_with_items(), pk=pk)
        return Response(OrderSerializer(order).data)

    def patch(self, request, pk):
        order = get_object_or_404(Order, pk=pk)
        serializer = OrderWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = OrderService.update_order(order, **serializer.to_service_kwargs())
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        order = _orders_with_items().get(pk=order.pk)
        return Response(OrderSerializer(order).data, status=status.HTTP_200_OK)

    def delete(self, request, pk):
        order = get_object_or_404(Order, pk=pk)
        OrderService.delete_order(order)
        return Response(status=status.HTTP_204_NO_CONTENT)
