from .serializers import (
    ProductSerializer,
    ProductListSerializer,
    ProductDetailSerializer,
    ProductVariantSerializer,
    VariantRecordSerializer,
    WarehouseSerializer,
    VariantInventorySerializer,
    ConfigureVariantsSerializer,
    SelectorStateSerializer,
)

__all__ = [
    'ProductSerializer',
    'ProductListSerializer',
    'ProductDetailSerializer',
    'ProductVariantSerializer',
    'VariantRecordSerializer',
    'WarehouseSerializer',
    'VariantInventorySerializer',
    'ConfigureVariantsSerializer',
    'SelectorStateSerializer',
]
