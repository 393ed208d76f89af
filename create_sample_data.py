"""
Script to create sample data for the variants API.
Run with: python manage.py shell < create_sample_data.py
"""
from apps.variants.models import Product, Warehouse, VariantInventory
from apps.variants.services import editor
from apps.variants.services.persistence import DjangoVariantStore, save_reconciled_variants
from decimal import Decimal

# Warehouses
print("Creating warehouses...")

central, _ = Warehouse.objects.get_or_create(name='Depósito Central')
loja, _ = Warehouse.objects.get_or_create(name='Loja Centro')

# Products
print("Creating products...")

camiseta, _ = Product.objects.get_or_create(
    slug='camiseta-basica',
    defaults={
        'name': 'Camiseta Básica',
        'description': 'Camiseta de algodão confortável',
        'price': Decimal('59.90'),
    }
)

calca, _ = Product.objects.get_or_create(
    slug='calca-jeans',
    defaults={
        'name': 'Calça Jeans',
        'description': 'Calça jeans clássica',
        'price': Decimal('149.90'),
    }
)

extensao, _ = Product.objects.get_or_create(
    slug='extensao-cabelo',
    defaults={
        'name': 'Extensão de Cabelo',
        'description': 'Extensão de cabelo natural',
        'price': Decimal('299.00'),
        'sell_when_out_of_stock': True,
    }
)

# Variant configurations: (product, attributes, image attribute, assets)
CONFIGURATIONS = [
    (
        camiseta,
        [('Color', ['Preto', 'Branco', 'Azul']), ('Size', ['P', 'M', 'G', 'GG'])],
        'Color',
        [
            ('Preto', ['/media/camiseta-preto-1.jpg', '/media/camiseta-preto-2.jpg'], '#000000'),
            ('Branco', ['/media/camiseta-branco-1.jpg'], '#FFFFFF'),
            ('Azul', ['/media/camiseta-azul-1.jpg'], '#0000FF'),
        ],
    ),
    (
        calca,
        [('Color', ['Azul', 'Preto']), ('Size', ['38', '40', '42', '44'])],
        'Color',
        [
            ('Azul', ['/media/calca-azul.jpg'], '#1E3A8A'),
            ('Preto', ['/media/calca-preta.jpg'], '#000000'),
        ],
    ),
    (
        extensao,
        [('Comprimento', ['30cm', '50cm', '70cm']), ('Cor', ['Castanho', 'Loiro'])],
        'Cor',
        [
            ('Castanho', ['/media/extensao-castanho.jpg'], None),
            ('Loiro', ['/media/extensao-loiro.jpg'], None),
        ],
    ),
]

print("Creating variants...")

store = DjangoVariantStore()

for product, attributes, image_attribute, assets in CONFIGURATIONS:
    state = editor.load_editor(product.pk, product.variant_attributes, product.get_variant_records())
    state = editor.configure(state, attributes, image_attribute=image_attribute, value_assets=assets)
    state = editor.reconcile(state)

    report = save_reconciled_variants(store, product.pk, state.variants, state.config.names)
    product.set_attribute_names(state.config.names)
    product.save()

    print(f"   {product.name}: {len(report.created)} criadas, {len(report.updated)} atualizadas, "
          f"{len(report.deleted)} removidas")
    for failure in report.failures:
        print(f"   ⚠️  {failure.operation} {dict(failure.variant.attributes)}: {failure.error}")

# Stock
print("Creating inventory...")

for i, variant in enumerate(camiseta.variants.all()):
    VariantInventory.objects.update_or_create(
        variant=variant,
        warehouse=central,
        defaults={'quantity': Decimal(i % 4 * 5), 'min_stock_level': Decimal('5')}
    )

for variant in calca.variants.all()[:3]:
    VariantInventory.objects.update_or_create(
        variant=variant,
        warehouse=loja,
        defaults={'quantity': Decimal('2')}
    )

print("\n✅ Sample data created successfully!")
print(f"   - {Product.objects.count()} products")
print(f"   - {sum(p.variant_count for p in Product.objects.all())} variants")
print(f"   - {Warehouse.objects.count()} warehouses")
print(f"   - {VariantInventory.objects.count()} inventory records")
print("\nTry the selector at: http://localhost:8000/api/products/camiseta-basica/selector/")
