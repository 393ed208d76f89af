import json

from rest_framework import serializers

from apps.variants.conf import variant_settings
from apps.variants.exceptions import AssetError
from apps.variants.models import Product, ProductVariant, VariantInventory, Warehouse
from apps.variants.services.assets import dedupe_urls, normalize_color_hex
from apps.variants.services.attributes import config_from_variants, resolve_attribute_names
from apps.variants.services.codec import parse_attribute_set, variant_to_payload
from apps.variants.services.combinations import VariantCombination
from apps.variants.services.editor import infer_image_attribute
from apps.variants.services.images import build_swatches, flattened_gallery, gallery_index, product_gallery
from apps.variants.services.selector import displayed_stock, values_for_step
from apps.variants.services.stock import availability, DjangoStockLookup


# =============================================================================
# Wire fields
# =============================================================================

class AttributesTextField(serializers.Field):
    """
    ``attributes`` as stored: JSON object text.

    Accepts the text or an already decoded object; always answers with text.
    """
    default_error_messages = {
        'invalid': 'Atributos devem ser um objeto JSON de nome -> valor: {error}',
    }

    def to_representation(self, value):
        return value or ''

    def to_internal_value(self, data):
        if data in (None, ''):
            return ''
        raw = json.dumps(data) if isinstance(data, dict) else str(data)
        try:
            combination = VariantCombination.from_json(raw)
        except ValueError as e:
            self.fail('invalid', error=str(e))
        cleaned = VariantCombination(
            (name.strip(), value.strip())
            for name, value in combination.items()
            if name.strip() and value.strip()
        )
        return cleaned.to_json() if cleaned else ''


class MediaUrlsTextField(serializers.Field):
    """``mediaUrls`` as stored: JSON array text of image URLs."""
    default_error_messages = {
        'invalid': 'mediaUrls deve ser uma lista JSON de URLs',
    }

    def to_representation(self, value):
        return value or '[]'

    def to_internal_value(self, data):
        if data in (None, ''):
            return '[]'
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                self.fail('invalid')
        if not isinstance(data, list) or not all(isinstance(u, str) for u in data):
            self.fail('invalid')
        return json.dumps(list(dedupe_urls(data)), ensure_ascii=False)


# =============================================================================
# Variant Serializers
# =============================================================================

class ProductVariantSerializer(serializers.ModelSerializer):
    """Variant in the backend wire shape."""
    productId = serializers.PrimaryKeyRelatedField(
        source='product', queryset=Product.objects.all()
    )
    colorHex = serializers.CharField(
        source='color_hex', required=False, allow_blank=True, max_length=7
    )
    attributes = AttributesTextField(required=False)
    imageUrl = serializers.CharField(source='image_url', read_only=True)
    mediaUrls = MediaUrlsTextField(source='media_urls', required=False)
    priceOverride = serializers.DecimalField(
        source='price_override', max_digits=10, decimal_places=2,
        required=False, allow_null=True, min_value=0
    )
    isActive = serializers.BooleanField(source='is_active', required=False)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = ProductVariant
        fields = [
            'id', 'productId', 'color', 'colorHex', 'attributes',
            'imageUrl', 'mediaUrls', 'priceOverride', 'sku', 'isActive',
            'createdAt', 'updatedAt'
        ]
        extra_kwargs = {
            'color': {'required': False, 'allow_blank': True},
            'sku': {'required': False, 'allow_blank': True},
        }

    def validate_colorHex(self, value):
        try:
            return normalize_color_hex(value) or ''
        except AssetError as e:
            raise serializers.ValidationError(str(e))

    def validate(self, attrs):
        instance = self.instance
        product = attrs.get('product', instance.product if instance else None)
        attributes = attrs.get('attributes', instance.attributes if instance else '')
        color = (attrs.get('color', instance.color if instance else '') or '').strip()

        if not attributes and not color:
            raise serializers.ValidationError('Informe os atributos ou a cor da variante.')

        siblings = ProductVariant.objects.filter(product=product)
        if instance is not None:
            siblings = siblings.exclude(pk=instance.pk)

        if attributes:
            combination = parse_attribute_set(attributes).to_combination()
            for other in siblings:
                if other.get_combination() == combination:
                    raise serializers.ValidationError(
                        {'attributes': 'Já existe uma variante deste produto com esses atributos.'}
                    )
            # Older readers only look at ``color``
            color_name = variant_settings.COLOR_ATTRIBUTE_NAME
            if color_name in combination and not color:
                attrs['color'] = combination[color_name]
        elif siblings.filter(attributes='', color__iexact=color).exists():
            raise serializers.ValidationError({'color': f"Já existe uma variante com a cor '{color}'."})

        return attrs


class VariantRecordSerializer(serializers.BaseSerializer):
    """Read-only output of engine records (preview and selector answers)."""

    def to_representation(self, instance):
        data = variant_to_payload(instance)
        data['label'] = instance.attributes.label()
        data['attributeValues'] = dict(instance.attributes)
        return data


# =============================================================================
# Inventory Serializers
# =============================================================================

class WarehouseSerializer(serializers.ModelSerializer):
    isActive = serializers.BooleanField(source='is_active', required=False)

    class Meta:
        model = Warehouse
        fields = ['id', 'name', 'isActive']


class VariantInventorySerializer(serializers.ModelSerializer):
    variantId = serializers.PrimaryKeyRelatedField(
        source='variant', queryset=ProductVariant.objects.all()
    )
    warehouseId = serializers.PrimaryKeyRelatedField(
        source='warehouse', queryset=Warehouse.objects.all()
    )
    posQuantity = serializers.DecimalField(
        source='pos_quantity', max_digits=12, decimal_places=3, required=False
    )
    minStockLevel = serializers.DecimalField(
        source='min_stock_level', max_digits=12, decimal_places=3,
        required=False, allow_null=True
    )
    maxStockLevel = serializers.DecimalField(
        source='max_stock_level', max_digits=12, decimal_places=3,
        required=False, allow_null=True
    )
    isLowStock = serializers.BooleanField(source='is_low_stock', read_only=True)

    class Meta:
        model = VariantInventory
        fields = [
            'id', 'variantId', 'warehouseId', 'quantity', 'posQuantity',
            'unit', 'minStockLevel', 'maxStockLevel', 'isLowStock'
        ]


class StockBatchRequestSerializer(serializers.Serializer):
    variantIds = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=True)
    warehouseId = serializers.IntegerField(required=False, allow_null=True)


# =============================================================================
# Product Serializers
# =============================================================================

class ProductSerializer(serializers.ModelSerializer):
    """Base product serializer."""
    imageUrl = serializers.CharField(source='image_url', required=False, allow_blank=True)
    mediaUrls = MediaUrlsTextField(source='media_urls', required=False)
    variantAttributes = serializers.ListField(
        source='get_attribute_names', child=serializers.CharField(), required=False
    )
    sellWhenOutOfStock = serializers.BooleanField(source='sell_when_out_of_stock', required=False)
    alwaysAvailable = serializers.BooleanField(source='always_available', required=False)
    isActive = serializers.BooleanField(source='is_active', required=False)

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'description', 'price', 'imageUrl',
            'mediaUrls', 'variantAttributes', 'sellWhenOutOfStock',
            'alwaysAvailable', 'isActive'
        ]
        extra_kwargs = {'slug': {'required': False}}

    def _apply_attribute_names(self, instance, validated_data):
        names = validated_data.pop('get_attribute_names', None)
        if names is not None:
            instance.set_attribute_names(dict.fromkeys(n.strip() for n in names if n.strip()))
        return instance

    def create(self, validated_data):
        names = validated_data.pop('get_attribute_names', None)
        instance = Product(**validated_data)
        if names is not None:
            self._apply_attribute_names(instance, {'get_attribute_names': names})
        instance.save()
        return instance

    def update(self, instance, validated_data):
        self._apply_attribute_names(instance, validated_data)
        return super().update(instance, validated_data)


def _swatches(attribute_names, records):
    image_attribute = infer_image_attribute(config_from_variants(attribute_names, records), records)
    if image_attribute is None and variant_settings.COLOR_ATTRIBUTE_NAME in attribute_names:
        image_attribute = variant_settings.COLOR_ATTRIBUTE_NAME
    return [
        {
            'value': swatch.value,
            'colorHex': swatch.color_hex,
            'images': list(swatch.images),
            'variantIds': list(swatch.variant_ids),
        }
        for swatch in build_swatches(records, image_attribute)
    ]


def _product_availability(obj, lookup=None):
    lookup = lookup or DjangoStockLookup()
    quantity = lookup.product_total(obj.pk)
    return availability(quantity, obj.sell_when_out_of_stock, obj.always_available)


class ProductListSerializer(serializers.ModelSerializer):
    """Product list with counts and availability."""
    variantCount = serializers.IntegerField(source='variant_count', read_only=True)
    activeVariantCount = serializers.IntegerField(source='active_variant_count', read_only=True)
    isActive = serializers.BooleanField(source='is_active', read_only=True)
    primaryImage = serializers.SerializerMethodField()
    availability = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'price', 'isActive',
            'variantCount', 'activeVariantCount', 'primaryImage', 'availability'
        ]

    def get_primaryImage(self, obj):
        return product_gallery(None, obj.get_media_urls(), obj.image_url)[0]

    def get_availability(self, obj):
        return _product_availability(obj).as_dict()


class ProductDetailSerializer(serializers.ModelSerializer):
    """Full product detail: variants, attribute names, gallery and swatches."""
    attributeNames = serializers.SerializerMethodField()
    variants = serializers.SerializerMethodField()
    gallery = serializers.SerializerMethodField()
    swatches = serializers.SerializerMethodField()
    availability = serializers.SerializerMethodField()
    sellWhenOutOfStock = serializers.BooleanField(source='sell_when_out_of_stock', read_only=True)
    alwaysAvailable = serializers.BooleanField(source='always_available', read_only=True)
    isActive = serializers.BooleanField(source='is_active', read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'description', 'price', 'isActive',
            'attributeNames', 'variants', 'gallery', 'swatches',
            'availability', 'sellWhenOutOfStock', 'alwaysAvailable'
        ]

    def _records(self, obj):
        cache = self.context.setdefault('_records', {})
        if obj.pk not in cache:
            cache[obj.pk] = obj.get_variant_records(active_only=True)
        return cache[obj.pk]

    def get_attributeNames(self, obj):
        return resolve_attribute_names(obj.variant_attributes, self._records(obj))

    def get_variants(self, obj):
        return VariantRecordSerializer(self._records(obj), many=True).data

    def get_gallery(self, obj):
        gallery = flattened_gallery(obj.get_media_urls(), self._records(obj))
        return gallery or product_gallery(None, (), obj.image_url)

    def get_swatches(self, obj):
        return _swatches(self.get_attributeNames(obj), self._records(obj))

    def get_availability(self, obj):
        return _product_availability(obj).as_dict()


# =============================================================================
# Engine Serializers
# =============================================================================

class AttributeInputSerializer(serializers.Serializer):
    name = serializers.CharField()
    values = serializers.ListField(child=serializers.CharField(), allow_empty=True)


class ValueAssetsInputSerializer(serializers.Serializer):
    value = serializers.CharField()
    images = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    colorHex = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class VariantOverrideSerializer(serializers.Serializer):
    attributes = serializers.DictField(child=serializers.CharField())
    priceOverride = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True, min_value=0
    )
    sku = serializers.CharField(required=False, allow_blank=True)
    isActive = serializers.BooleanField(required=False)


class ConfigureVariantsSerializer(serializers.Serializer):
    """
    Payload of ``configure-variants``.

    Example:
    {
        "attributes": [{"name": "Color", "values": ["Black", "Red"]},
                       {"name": "Size", "values": ["S", "M"]}],
        "imageAttribute": "Color",
        "assets": [{"value": "Black", "images": ["b1.png"], "colorHex": "#000000"}],
        "variants": [{"attributes": {"Color": "Red", "Size": "M"}, "sku": "RED-M"}],
        "commit": false
    }
    """
    attributes = AttributeInputSerializer(many=True)
    imageAttribute = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    assets = ValueAssetsInputSerializer(many=True, required=False, default=list)
    variants = VariantOverrideSerializer(many=True, required=False, default=list)
    commit = serializers.BooleanField(required=False, default=False)


class SelectorStateSerializer(serializers.BaseSerializer):
    """
    Selector state for the storefront.

    Context: ``product_media`` (list), ``all_variants`` (records used for
    the gallery), ``fallback_stock`` (product total), ``product``.
    """

    def to_representation(self, state):
        product = self.context['product']
        all_variants = self.context.get('all_variants', state.variants)
        product_media = self.context.get('product_media', [])
        selected = state.selected

        steps = []
        for index, name in enumerate(state.attribute_names[:state.step + 1]):
            steps.append({
                'attribute': name,
                'values': values_for_step(state, index),
                'chosen': state.choices[index][1] if index < state.step else None,
            })

        stock = displayed_stock(state, self.context.get('fallback_stock'))
        data = {
            'attributeNames': list(state.attribute_names),
            'step': state.step,
            'resolved': state.is_resolved,
            'currentAttribute': state.current_attribute,
            'selection': state.selection,
            'steps': steps,
            'matches': VariantRecordSerializer(state.matches, many=True).data,
            'needsDisambiguation': state.needs_disambiguation,
            'selected': VariantRecordSerializer(selected).data if selected else None,
            'stock': stock,
            'stockKnown': state.stock_known,
            'availability': availability(
                stock, product.sell_when_out_of_stock, product.always_available
            ).as_dict(),
            'images': product_gallery(selected, product_media, product.image_url),
            'gallery': flattened_gallery(product_media, all_variants),
            'galleryIndex': gallery_index(product_media, all_variants, selected),
            'swatches': _swatches(state.attribute_names, all_variants),
        }
        return data
