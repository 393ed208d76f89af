from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    ProductViewSet,
    ProductVariantViewSet,
    WarehouseViewSet,
    VariantInventoryViewSet,
)

router = DefaultRouter()
router.register(r'products', ProductViewSet, basename='product')
router.register(r'product-variants', ProductVariantViewSet, basename='product-variant')
router.register(r'warehouses', WarehouseViewSet, basename='warehouse')
router.register(r'variant-inventory', VariantInventoryViewSet, basename='variant-inventory')

urlpatterns = [
    path('', include(router.urls)),
]
