from django.contrib import admin
from django.utils.html import format_html
from import_export import resources, fields
from import_export.admin import ImportExportModelAdmin
from import_export.widgets import ForeignKeyWidget
from simple_history.admin import SimpleHistoryAdmin

from .models import (
    Product,
    ProductVariant,
    Warehouse,
    VariantInventory,
)
from .services import editor
from .services.assets import normalize_color_hex
from .services.persistence import DjangoVariantStore, save_reconciled_variants


# =============================================================================
# Import/Export Resources
# =============================================================================

class VariantResource(resources.ModelResource):
    """Resource for importing/exporting variants."""

    product_name = fields.Field(
        column_name='product_name',
        attribute='product',
        widget=ForeignKeyWidget(Product, 'name')
    )

    class Meta:
        model = ProductVariant
        import_id_fields = ['id']
        fields = (
            'id', 'product_name', 'attributes', 'color', 'color_hex',
            'media_urls', 'price_override', 'sku', 'is_active'
        )
        export_order = fields

    def before_import_row(self, row, **kwargs):
        # Spreadsheets drop the leading '#' and mix case
        row['color_hex'] = normalize_color_hex(row.get('color_hex')) or ''


# =============================================================================
# Inlines
# =============================================================================

class VariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ['attributes', 'color', 'sku', 'price_override', 'is_active']
    readonly_fields = ['attributes', 'color']
    show_change_link = True
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class VariantInventoryInline(admin.TabularInline):
    model = VariantInventory
    extra = 0
    fields = ['warehouse', 'quantity', 'pos_quantity', 'unit', 'min_stock_level', 'max_stock_level']


# =============================================================================
# Model Admins
# =============================================================================

@admin.register(Product)
class ProductAdmin(SimpleHistoryAdmin):
    list_display = ['name', 'slug', 'price', 'variant_count', 'active_variant_count', 'is_active', 'created_at']
    list_filter = ['is_active', 'sell_when_out_of_stock', 'always_available', 'created_at']
    search_fields = ['name', 'slug', 'description']
    prepopulated_fields = {'slug': ('name',)}
    readonly_fields = ['variant_count', 'active_variant_count', 'created_at', 'updated_at']
    inlines = [VariantInline]

    fieldsets = (
        (None, {
            'fields': ('name', 'slug', 'description', 'price', 'is_active')
        }),
        ('Imagens', {
            'fields': ('image_url', 'media_urls')
        }),
        ('Variações', {
            'fields': ('variant_attributes',)
        }),
        ('Disponibilidade', {
            'fields': ('sell_when_out_of_stock', 'always_available')
        }),
        ('Informações', {
            'fields': ('variant_count', 'active_variant_count', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    actions = ['complete_variants']

    @admin.action(description='Completar combinações de variantes')
    def complete_variants(self, request, queryset):
        """
        Create the combinations missing from each product.

        Values are the ones the existing variants already use, so nothing
        is deleted unless a variant has lost one of the product's attributes.
        """
        store = DjangoVariantStore()
        for product in queryset:
            state = editor.load_editor(product.pk, product.variant_attributes, store.list_for_product(product.pk))
            state = editor.complete_combinations(state)
            report = save_reconciled_variants(
                store, product.pk, state.variants, state.config.names, state.combinations
            )
            if report.ok:
                self.message_user(
                    request,
                    f'{product}: {len(report.created)} criadas, {len(report.updated)} atualizadas, '
                    f'{len(report.deleted)} removidas.'
                )
            else:
                errors = '; '.join(f.error for f in report.failures)
                self.message_user(request, f'{product}: falhas ao salvar ({errors})', level='error')


@admin.register(ProductVariant)
class ProductVariantAdmin(ImportExportModelAdmin, SimpleHistoryAdmin):
    resource_class = VariantResource
    list_display = [
        'id', 'product', 'attribute_label', 'sku', 'price_override',
        'color_swatch', 'is_active', 'primary_image_preview'
    ]
    list_filter = ['product', 'is_active']
    list_editable = ['sku', 'price_override', 'is_active']
    search_fields = ['sku', 'color', 'attributes', 'product__name']
    autocomplete_fields = ['product']
    readonly_fields = ['image_url', 'created_at', 'updated_at']
    inlines = [VariantInventoryInline]
    list_per_page = 50

    fieldsets = (
        (None, {
            'fields': ('product', 'attributes', 'color', 'sku', 'is_active')
        }),
        ('Preços', {
            'fields': ('price_override',)
        }),
        ('Imagens', {
            'fields': ('color_hex', 'media_urls', 'image_url')
        }),
        ('Informações', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    actions = ['activate_variants', 'deactivate_variants']

    def attribute_label(self, obj):
        return obj.get_combination().label() or '-'
    attribute_label.short_description = 'Atributos'

    def color_swatch(self, obj):
        if obj.color_hex:
            return format_html(
                '<div style="width: 20px; height: 20px; background-color: {}; '
                'border: 1px solid #ccc; border-radius: 3px;"></div>',
                obj.color_hex
            )
        return '-'
    color_swatch.short_description = 'Cor'

    def primary_image_preview(self, obj):
        media = obj.get_media_urls()
        if media:
            return format_html(
                '<img src="{}" style="max-height: 40px; max-width: 60px;" />',
                media[0]
            )
        return '-'
    primary_image_preview.short_description = 'Imagem'

    @admin.action(description='Ativar variantes selecionadas')
    def activate_variants(self, request, queryset):
        count = queryset.update(is_active=True)
        self.message_user(request, f'{count} variantes ativadas.')

    @admin.action(description='Desativar variantes selecionadas')
    def deactivate_variants(self, request, queryset):
        count = queryset.update(is_active=False)
        self.message_user(request, f'{count} variantes desativadas.')


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ['name', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name']


@admin.register(VariantInventory)
class VariantInventoryAdmin(admin.ModelAdmin):
    list_display = ['variant', 'warehouse', 'quantity', 'pos_quantity', 'unit', 'stock_status']
    list_filter = ['warehouse', 'variant__product']
    search_fields = ['variant__sku', 'variant__product__name']
    autocomplete_fields = ['variant']

    def stock_status(self, obj):
        if obj.quantity <= 0:
            return format_html('<span style="color: {};">{}</span>', 'red', 'Sem estoque')
        if obj.is_low_stock:
            return format_html('<span style="color: {};">{}</span>', 'orange', 'Estoque baixo')
        return format_html('<span style="color: {};">{}</span>', 'green', 'Em estoque')
    stock_status.short_description = 'Status Estoque'


# =============================================================================
# Admin Site Configuration
# =============================================================================

admin.site.site_header = 'Variantes Admin'
admin.site.site_title = 'Variantes'
admin.site.index_title = 'Painel de Administração'
