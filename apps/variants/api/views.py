import logging

from django.db.models import Prefetch
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.variants.exceptions import SelectionError, VariantEngineError
from apps.variants.models import Product, ProductVariant, VariantInventory, Warehouse
from apps.variants.services import editor
from apps.variants.services.attributes import resolve_attribute_names
from apps.variants.services.persistence import DjangoVariantStore, save_reconciled_variants
from apps.variants.services.reconciler import find_orphans
from apps.variants.services.selector import (
    apply_selections,
    initialize,
    receive_stock,
    select_variant,
    start_selector,
)
from apps.variants.services.stock import DjangoStockLookup, get_stock_levels
from .filters import VariantFilter, VariantInventoryFilter
from .serializers import (
    ConfigureVariantsSerializer,
    ProductDetailSerializer,
    ProductListSerializer,
    ProductSerializer,
    ProductVariantSerializer,
    SelectorStateSerializer,
    StockBatchRequestSerializer,
    VariantInventorySerializer,
    VariantRecordSerializer,
    WarehouseSerializer,
)

logger = logging.getLogger(__name__)

# Query params of the selector endpoint that are not attribute choices
SELECTOR_RESERVED_PARAMS = {'variant', 'warehouse', 'format'}


class ProductViewSet(viewsets.ModelViewSet):
    """
    API endpoint for products.

    list: List all products with availability
    retrieve: Get product detail with variants, gallery and swatches
    configure_variants: Preview or save a variant configuration
    selector: Resolve a variant from attribute choices
    """
    queryset = Product.objects.all()
    lookup_field = 'slug'
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_active']
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'created_at', 'price']
    ordering = ['name']

    def get_serializer_class(self):
        if self.action == 'list':
            return ProductListSerializer
        elif self.action == 'retrieve':
            return ProductDetailSerializer
        return ProductSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'retrieve':
            queryset = queryset.prefetch_related(
                Prefetch('variants', queryset=ProductVariant.objects.order_by('id'))
            )
        return queryset

    @action(detail=True, methods=['post'], url_path='configure-variants')
    def configure_variants(self, request, slug=None):
        """
        Regenerate the product's variants from an attribute configuration.

        Without ``commit`` the reconciled list is only previewed, along with
        the variants that saving would delete. With ``commit`` the list is
        saved (creates/updates, then orphan cleanup) and a batch summary is
        returned; failed variants are listed in ``errors``. A commit that
        generates no combinations is refused while the product has variants.
        """
        product = self.get_object()
        payload = ConfigureVariantsSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        data = payload.validated_data

        state = editor.load_editor(product.pk, product.variant_attributes, product.get_variant_records())
        try:
            state = editor.configure(
                state,
                [(a['name'], a['values']) for a in data['attributes']],
                image_attribute=data.get('imageAttribute') or None,
                value_assets=[
                    (a['value'], a.get('images', []), a.get('colorHex'))
                    for a in data['assets']
                ],
            )
            state = editor.reconcile(state)
            for override in data['variants']:
                state = editor.update_variant(
                    state,
                    override['attributes'],
                    price_override=override.get('priceOverride'),
                    sku=override.get('sku'),
                    is_active=override.get('isActive'),
                    clear_price='priceOverride' in override and override['priceOverride'] is None,
                )
        except VariantEngineError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        combinations = state.combinations
        response = {
            'attributeNames': list(state.config.names),
            'imageAttribute': state.image_attribute,
            'combinationCount': len(combinations),
        }

        if not data['commit']:
            orphans = find_orphans(product.get_variant_records(), combinations, state.variants)
            response['variants'] = VariantRecordSerializer(state.variants, many=True).data
            response['orphans'] = VariantRecordSerializer(orphans, many=True).data
            return Response(response)

        if not combinations and product.variants.exists():
            # Saving would delete every variant and create none
            logger.warning(f"[VARIANT SAVE] Product {product.pk}: rejecting commit with no combinations")
            return Response(
                {'error': 'Nenhuma combinação gerada: todos os atributos precisam de ao menos um valor.'},
                status=status.HTTP_400_BAD_REQUEST
            )

        report = save_reconciled_variants(
            DjangoVariantStore(),
            product.pk,
            state.variants,
            state.config.names,
            combinations,
        )
        product.set_attribute_names(state.config.names)
        product.save(update_fields=['variant_attributes', 'updated_at'])

        response.update(report.as_dict())
        response['variants'] = VariantRecordSerializer(product.get_variant_records(), many=True).data
        return Response(
            response,
            status=status.HTTP_200_OK if report.ok else status.HTTP_207_MULTI_STATUS,
        )

    @action(detail=True, methods=['get'])
    def selector(self, request, slug=None):
        """
        Walk the progressive selector.

        Query params:
        - <attribute name>=<value> for each choice, in attribute order
          (e.g. ?Color=Red&Size=M); without any, the first value of the
          first attribute is chosen automatically
        - variant: id picking one variant out of an ambiguous match
        - warehouse: warehouse id for the stock lookup
        """
        product = self.get_object()
        variants = product.get_variant_records()
        names = resolve_attribute_names(product.variant_attributes, variants)

        selections = {
            k: v for k, v in request.query_params.items()
            if k not in SELECTOR_RESERVED_PARAMS
        }
        state = start_selector(names, variants)
        if selections:
            state = initialize(apply_selections(state, selections))
        else:
            state = initialize(state)

        variant_id = request.query_params.get('variant')
        if variant_id and state.needs_disambiguation:
            try:
                state = select_variant(state, int(variant_id))
            except (ValueError, SelectionError) as e:
                return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        warehouse_id = request.query_params.get('warehouse')
        warehouse_id = int(warehouse_id) if warehouse_id and warehouse_id.isdigit() else None
        lookup = DjangoStockLookup()
        if state.selected is not None and state.selected.id is not None:
            levels = get_stock_levels(lookup, [state.selected.id], warehouse_id)
            state = receive_stock(state, state.selected.id, levels.get(state.selected.id))

        serializer = SelectorStateSerializer(state, context={
            'product': product,
            'product_media': product.get_media_urls(),
            'all_variants': [v for v in variants if v.is_active],
            'fallback_stock': lookup.product_total(product.pk, warehouse_id),
        })
        return Response(serializer.data)


class ProductVariantViewSet(viewsets.ModelViewSet):
    """
    API endpoint for variants.

    Supports filtering by product, active flag, SKU and attribute
    (?attribute=Color:Red). Creating a variant whose attributes (or legacy
    color) already exist on the product is rejected.
    """
    queryset = ProductVariant.objects.select_related('product')
    serializer_class = ProductVariantSerializer
    filterset_class = VariantFilter
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['sku', 'color', 'attributes', 'product__name']
    ordering_fields = ['id', 'sku', 'price_override', 'created_at']
    ordering = ['id']

    @action(detail=False, methods=['post'])
    def bulk_set_active(self, request):
        """
        Activate or deactivate several variants.

        Expected payload:
        {
            "ids": [1, 2, 3],
            "isActive": false
        }
        """
        ids = request.data.get('ids', [])
        is_active = bool(request.data.get('isActive', True))
        updated = 0
        errors = []

        for variant_id in ids:
            try:
                variant = ProductVariant.objects.get(pk=variant_id)
                variant.is_active = is_active
                variant.save(update_fields=['is_active', 'updated_at'])
                updated += 1
            except (ProductVariant.DoesNotExist, ValueError):
                errors.append(f"Variante {variant_id} não encontrada")

        return Response({'updated': updated, 'errors': errors})


class WarehouseViewSet(viewsets.ModelViewSet):
    """API endpoint for warehouses."""
    queryset = Warehouse.objects.all()
    serializer_class = WarehouseSerializer
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name']
    ordering = ['name']


class VariantInventoryViewSet(viewsets.ModelViewSet):
    """
    API endpoint for variant stock per warehouse.
    """
    queryset = VariantInventory.objects.select_related('variant', 'warehouse')
    serializer_class = VariantInventorySerializer
    filterset_class = VariantInventoryFilter
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    ordering = ['variant', 'warehouse']

    @action(detail=False, methods=['post'], url_path='get-batch')
    def get_batch(self, request):
        """
        Stock of several variants at once.

        Expected payload:
        {
            "variantIds": [1, 2, 3],
            "warehouseId": 1
        }

        Every requested id is in the answer; a variant without inventory
        has quantity 0 and a failed lookup has quantity null.
        """
        payload = StockBatchRequestSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        variant_ids = payload.validated_data['variantIds']
        if not variant_ids:
            return Response([])

        levels = get_stock_levels(
            DjangoStockLookup(), variant_ids, payload.validated_data.get('warehouseId')
        )
        return Response([
            {
                'variantId': variant_id,
                'quantity': quantity,
                'isOutOfStock': quantity is not None and quantity <= 0,
            }
            for variant_id, quantity in levels.items()
        ])

    @action(
        detail=False,
        methods=['get'],
        url_path=r'variant/(?P<variant_id>\d+)/warehouse/(?P<warehouse_id>\d+)',
    )
    def by_variant_warehouse(self, request, variant_id=None, warehouse_id=None):
        """Inventory row of one variant in one warehouse."""
        inventory = self.get_queryset().filter(
            variant_id=variant_id, warehouse_id=warehouse_id
        ).first()
        if inventory is None:
            return Response(
                {'error': 'Estoque não encontrado para esta variante e depósito'},
                status=status.HTTP_404_NOT_FOUND
            )
        return Response(self.get_serializer(inventory).data)
