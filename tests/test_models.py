"""Tests for models and signals."""

import json
from decimal import Decimal

import pytest

from apps.variants.models import VariantInventory

pytestmark = pytest.mark.django_db


class TestProductVariant:

    def test_primary_image_follows_gallery(self, create_variant):
        variant = create_variant({'Color': 'Red'}, media=['r1.png', 'r2.png'])
        assert variant.image_url == 'r1.png'

        variant.media_urls = json.dumps(['r2.png'])
        variant.save()
        assert variant.image_url == 'r2.png'

    def test_legacy_row_keeps_single_image(self, create_variant):
        variant = create_variant(color='Preto')
        variant.image_url = 'preto.png'
        variant.save()

        variant.refresh_from_db()
        assert variant.image_url == 'preto.png'
        assert variant.get_media_urls() == ['preto.png']

    def test_combination_of_legacy_and_structured_rows(self, create_variant):
        assert create_variant(color='Preto').get_combination() == {'Color': 'Preto'}
        assert create_variant({'Size': 'M'}).get_combination() == {'Size': 'M'}

    def test_str(self, create_variant):
        assert str(create_variant({'Color': 'Red', 'Size': 'M'})) == 'Camiseta Básica - Red / M'

    def test_effective_price(self, create_variant):
        assert create_variant({'Color': 'Red'}).effective_price() == Decimal('59.90')
        assert create_variant({'Color': 'Blue'}, price_override=Decimal('49.90')).effective_price() == Decimal('49.90')

    def test_history_is_recorded(self, create_variant):
        variant = create_variant({'Color': 'Red'})
        variant.sku = 'CAM-R'
        variant.save()
        assert variant.history.count() == 2
        assert variant.history.first().sku == 'CAM-R'


class TestProduct:

    def test_slug_and_primary_image(self, product):
        assert product.slug == 'camiseta-basica'
        assert product.image_url == 'product.png'

    def test_attribute_names(self, product):
        assert product.get_attribute_names() == ['Color', 'Size']
        product.set_attribute_names(['Cor', 'Tamanho'])
        assert json.loads(product.variant_attributes) == ['Cor', 'Tamanho']

    def test_variant_records(self, product, create_variant):
        create_variant({'Color': 'Red'})
        create_variant(color='Azul', is_active=False)

        records = product.get_variant_records()
        assert [dict(r.attributes) for r in records] == [{'Color': 'Red'}, {'Color': 'Azul'}]
        assert len(product.get_variant_records(active_only=True)) == 1
        assert product.variant_count == 2
        assert product.active_variant_count == 1


def test_low_stock(create_variant, warehouse):
    inventory = VariantInventory.objects.create(
        variant=create_variant({'Color': 'Red'}),
        warehouse=warehouse,
        quantity=Decimal('2'),
        min_stock_level=Decimal('5'),
    )
    assert inventory.is_low_stock
