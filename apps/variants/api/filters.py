from django_filters import rest_framework as filters

from apps.variants.models import ProductVariant, VariantInventory
from apps.variants.services.codec import parse_attribute_set


class VariantFilter(filters.FilterSet):
    """Filter for variants with support for dynamic attributes."""

    product = filters.CharFilter(field_name='product__slug')
    product_id = filters.NumberFilter(field_name='product__id')

    # Price filters
    min_price = filters.NumberFilter(field_name='price_override', lookup_expr='gte')
    max_price = filters.NumberFilter(field_name='price_override', lookup_expr='lte')

    # Attribute filters
    attribute = filters.CharFilter(method='filter_by_attribute')

    class Meta:
        model = ProductVariant
        fields = ['product', 'product_id', 'is_active', 'sku']

    def filter_by_attribute(self, queryset, name, value):
        """
        Filter by attribute in format: attribute_name:value
        Example: ?attribute=Color:Red

        Attributes are stored as JSON text, so rows are matched after
        parsing; legacy color rows match ``Color:<color>``.
        """
        if ':' not in value:
            return queryset

        attr_name, attr_value = (part.strip() for part in value.split(':', 1))
        ids = [
            pk for pk, attributes, color in queryset.values_list('pk', 'attributes', 'color')
            if parse_attribute_set(attributes, color).to_combination().get(attr_name) == attr_value
        ]
        return queryset.filter(pk__in=ids)


class VariantInventoryFilter(filters.FilterSet):

    product_id = filters.NumberFilter(field_name='variant__product__id')

    class Meta:
        model = VariantInventory
        fields = ['variant', 'warehouse', 'product_id']
