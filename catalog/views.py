from rest_framework.generics import ListCreateAPIView, RetrieveUpdateDestroyAPIView

from .models import Category, Product
from .serializers import CategorySerializer, ProductSerializer
from .services import ProductService


class ProductListCreateView(ListCreateAPIView):
    queryset = Product.objects.select_related("category").all()
    serializer_class = ProductSerializer


class ProductDetailView(RetrieveUpdateDestroyAPIView):
    queryset = Product.objects.select_related("category").all()
    serializer_class = ProductSerializer

    def patch(self, request, *args, **kwargs):
        # PATCH carries the whole product, so it is validated like a PUT
        return self.update(request, *args, **kwargs)

    def perform_update(self, serializer):
        ProductService.update_product(serializer)

    def perform_destroy(self, instance):
        ProductService.delete_product(instance)


class CategoryListCreateView(ListCreateAPIView):
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
