"""Tests for the REST API."""

import json
from decimal import Decimal

import pytest

from apps.variants.models import Product, ProductVariant, VariantInventory

pytestmark = pytest.mark.django_db

PRODUCT_URL = '/api/products/camiseta-basica/'


class TestProductVariantAPI:

    def test_create_with_attributes(self, api_client, product):
        response = api_client.post('/api/product-variants/', {
            'productId': product.pk,
            'attributes': {'Color': 'Red', 'Size': 'M'},
            'mediaUrls': ['r1.png', 'r2.png', 'r1.png'],
            'colorHex': 'FF0000',
        }, format='json')

        assert response.status_code == 201
        data = response.data
        assert json.loads(data['attributes']) == {'Color': 'Red', 'Size': 'M'}
        assert data['color'] == 'Red'
        assert data['colorHex'] == '#ff0000'
        assert json.loads(data['mediaUrls']) == ['r1.png', 'r2.png']
        assert data['imageUrl'] == 'r1.png'

    def test_duplicate_attributes_rejected(self, api_client, product, create_variant):
        create_variant({'Color': 'Red', 'Size': 'M'})
        response = api_client.post('/api/product-variants/', {
            'productId': product.pk,
            'attributes': '{"Size": "M", "Color": "Red"}',
        }, format='json')

        assert response.status_code == 400
        assert 'attributes' in response.data

    def test_duplicate_legacy_color_rejected(self, api_client, product, create_variant):
        create_variant(color='Red')
        response = api_client.post('/api/product-variants/', {
            'productId': product.pk,
            'color': 'red',
        }, format='json')

        assert response.status_code == 400
        assert 'color' in response.data

    def test_attributes_or_color_required(self, api_client, product):
        response = api_client.post('/api/product-variants/', {'productId': product.pk}, format='json')
        assert response.status_code == 400

    def test_invalid_attributes_json(self, api_client, product):
        response = api_client.post('/api/product-variants/', {
            'productId': product.pk,
            'attributes': '{"Color": ',
        }, format='json')
        assert response.status_code == 400

    def test_invalid_color_hex(self, api_client, product):
        response = api_client.post('/api/product-variants/', {
            'productId': product.pk,
            'attributes': {'Color': 'Red'},
            'colorHex': 'vermelho',
        }, format='json')
        assert response.status_code == 400
        assert 'colorHex' in response.data

    def test_update_does_not_clash_with_itself(self, api_client, create_variant):
        variant = create_variant({'Color': 'Red', 'Size': 'M'})
        response = api_client.patch(
            f'/api/product-variants/{variant.pk}/', {'sku': 'CAM-R-M'}, format='json'
        )
        assert response.status_code == 200
        assert response.data['sku'] == 'CAM-R-M'

    def test_filter_by_attribute_includes_legacy_rows(self, api_client, create_variant):
        red = create_variant({'Color': 'Red', 'Size': 'S'})
        legacy = create_variant(color='Red')
        create_variant({'Color': 'Blue', 'Size': 'S'})

        response = api_client.get('/api/product-variants/', {'attribute': 'Color:Red'})
        assert sorted(v['id'] for v in response.data) == sorted([red.pk, legacy.pk])

    def test_bulk_set_active(self, api_client, create_variant):
        variant = create_variant({'Color': 'Red'})
        response = api_client.post('/api/product-variants/bulk_set_active/', {
            'ids': [variant.pk, 9999],
            'isActive': False,
        }, format='json')

        assert response.data['updated'] == 1
        assert len(response.data['errors']) == 1
        variant.refresh_from_db()
        assert variant.is_active is False


class TestConfigureVariants:

    url = PRODUCT_URL + 'configure-variants/'

    @pytest.fixture
    def existing(self, create_variant):
        kept = create_variant({'Color': 'Red', 'Size': 'S'}, sku='R-S', price_override=Decimal('65.00'))
        orphan = create_variant({'Color': 'Green', 'Size': 'S'})
        return kept, orphan

    def payload(self, **extra):
        payload = {
            'attributes': [
                {'name': 'Color', 'values': ['Red', 'Blue']},
                {'name': 'Size', 'values': ['S']},
            ],
            'imageAttribute': 'Color',
            'assets': [{'value': 'Red', 'images': ['r.png'], 'colorHex': '#FF0000'}],
        }
        payload.update(extra)
        return payload

    def test_preview_does_not_write(self, api_client, existing):
        kept, orphan = existing
        response = api_client.post(self.url, self.payload(), format='json')

        assert response.status_code == 200
        assert response.data['combinationCount'] == 2
        assert [v['id'] for v in response.data['variants']] == [kept.pk, None]
        assert [v['id'] for v in response.data['orphans']] == [orphan.pk]
        assert ProductVariant.objects.count() == 2

    def test_commit(self, api_client, product, existing):
        kept, orphan = existing
        response = api_client.post(self.url, self.payload(
            commit=True,
            variants=[{'attributes': {'Color': 'Blue', 'Size': 'S'}, 'sku': 'AZ-P'}],
        ), format='json')

        assert response.status_code == 200
        assert (response.data['created'], response.data['updated'], response.data['deleted']) == (1, 1, 1)
        assert response.data['errors'] == []

        kept.refresh_from_db()
        assert kept.sku == 'R-S'
        assert kept.price_override == Decimal('65.00')
        assert kept.get_media_urls() == ['r.png']
        assert kept.color_hex == '#ff0000'

        blue = ProductVariant.objects.get(product=product, color='Blue')
        assert blue.sku == 'AZ-P'
        assert blue.color_hex == '#cccccc'
        assert not ProductVariant.objects.filter(pk=orphan.pk).exists()

        product.refresh_from_db()
        assert product.get_attribute_names() == ['Color', 'Size']

    def test_clearing_price_override(self, api_client, existing):
        kept, _ = existing
        api_client.post(self.url, self.payload(
            commit=True,
            variants=[{'attributes': {'Color': 'Red', 'Size': 'S'}, 'priceOverride': None}],
        ), format='json')
        kept.refresh_from_db()
        assert kept.price_override is None

    def test_assets_for_unknown_value(self, api_client, existing):
        response = api_client.post(self.url, self.payload(
            assets=[{'value': 'Green', 'images': ['g.png']}],
        ), format='json')
        assert response.status_code == 400
        assert 'error' in response.data

    def test_commit_without_combinations_keeps_variants(self, api_client, existing):
        response = api_client.post(self.url, {
            'attributes': [
                {'name': 'Color', 'values': ['Red']},
                {'name': 'Size', 'values': []},
            ],
            'commit': True,
        }, format='json')

        assert response.status_code == 400
        assert 'error' in response.data
        assert ProductVariant.objects.count() == 2

    def test_preview_without_combinations_lists_orphans(self, api_client, existing):
        response = api_client.post(self.url, {
            'attributes': [{'name': 'Color', 'values': []}],
        }, format='json')

        assert response.status_code == 200
        assert response.data['combinationCount'] == 0
        assert len(response.data['orphans']) == 2

    def test_legacy_rows_are_matched(self, api_client, product, create_variant):
        legacy = create_variant(color='Red')
        product.set_attribute_names([])
        product.save()

        response = api_client.post(self.url, {
            'attributes': [{'name': 'Color', 'values': ['Red']}],
            'commit': True,
        }, format='json')

        assert response.data['updated'] == 1
        legacy.refresh_from_db()
        assert json.loads(legacy.attributes) == {'Color': 'Red'}


class TestSelectorEndpoint:

    url = PRODUCT_URL + 'selector/'

    @pytest.fixture
    def variants(self, create_variant):
        return {
            'red_s': create_variant({'Color': 'Red', 'Size': 'S'}, media=['red.png']),
            'red_m': create_variant({'Color': 'Red', 'Size': 'M'}, media=['red.png']),
            'blue_s': create_variant({'Color': 'Blue', 'Size': 'S'}, media=['blue.png']),
        }

    def test_first_value_is_chosen_automatically(self, api_client, variants):
        data = api_client.get(self.url).data

        assert data['step'] == 1
        assert data['selection'] == {'Color': 'Red'}
        assert data['currentAttribute'] == 'Size'
        assert data['steps'][0] == {'attribute': 'Color', 'values': ['Red', 'Blue'], 'chosen': 'Red'}
        assert data['steps'][1]['values'] == ['S', 'M']
        assert data['selected'] is None

    def test_full_selection_reads_stock(self, api_client, variants, warehouse):
        VariantInventory.objects.create(variant=variants['red_m'], warehouse=warehouse, quantity=Decimal('5'))
        data = api_client.get(self.url, {'Color': 'Red', 'Size': 'M'}).data

        assert data['resolved']
        assert data['selected']['id'] == variants['red_m'].pk
        assert data['stock'] == Decimal('5')
        assert data['stockKnown']
        assert data['availability']['isAvailable']
        assert data['images'] == ['red.png']
        assert data['gallery'] == ['product.png', 'red.png', 'blue.png']
        assert data['galleryIndex'] == 1
        assert [s['value'] for s in data['swatches']] == ['Red', 'Blue']

    def test_selected_without_inventory_is_out_of_stock(self, api_client, variants):
        data = api_client.get(self.url, {'Color': 'Blue', 'Size': 'S'}).data
        assert data['stock'] == Decimal('0')
        assert data['availability']['isOutOfStock']

    def test_unavailable_value_stops_the_replay(self, api_client, variants):
        data = api_client.get(self.url, {'Color': 'Blue', 'Size': 'M'}).data
        assert data['selection'] == {'Color': 'Blue'}

    def test_disambiguation(self, api_client, product, create_variant):
        product.set_attribute_names(['Color'])
        product.save()
        cotton = create_variant({'Color': 'Red', 'Material': 'Cotton'})
        linen = create_variant({'Color': 'Red', 'Material': 'Linen'})

        data = api_client.get(self.url, {'Color': 'Red'}).data
        assert data['needsDisambiguation']
        assert sorted(v['id'] for v in data['matches']) == sorted([cotton.pk, linen.pk])

        data = api_client.get(self.url, {'Color': 'Red', 'variant': linen.pk}).data
        assert data['selected']['id'] == linen.pk

    def test_inactive_variants_hidden(self, api_client, create_variant):
        create_variant({'Color': 'Red', 'Size': 'S'})
        create_variant({'Color': 'Green', 'Size': 'S'}, is_active=False)
        data = api_client.get(self.url).data
        assert data['steps'][0]['values'] == ['Red']


class TestInventoryAPI:

    def test_get_batch(self, api_client, create_variant, warehouse):
        stocked = create_variant({'Color': 'Red'})
        empty = create_variant({'Color': 'Blue'})
        VariantInventory.objects.create(variant=stocked, warehouse=warehouse, quantity=Decimal('3'))

        response = api_client.post('/api/variant-inventory/get-batch/', {
            'variantIds': [stocked.pk, empty.pk],
            'warehouseId': warehouse.pk,
        }, format='json')

        assert response.status_code == 200
        assert response.data == [
            {'variantId': stocked.pk, 'quantity': Decimal('3'), 'isOutOfStock': False},
            {'variantId': empty.pk, 'quantity': Decimal('0'), 'isOutOfStock': True},
        ]

    def test_get_batch_without_ids(self, api_client):
        response = api_client.post('/api/variant-inventory/get-batch/', {'variantIds': []}, format='json')
        assert response.data == []

    def test_by_variant_and_warehouse(self, api_client, create_variant, warehouse):
        variant = create_variant({'Color': 'Red'})
        url = f'/api/variant-inventory/variant/{variant.pk}/warehouse/{warehouse.pk}/'

        response = api_client.get(url)
        assert response.status_code == 404
        assert 'error' in response.data

        VariantInventory.objects.create(variant=variant, warehouse=warehouse, quantity=Decimal('2'))
        response = api_client.get(url)
        assert response.status_code == 200
        assert response.data['variantId'] == variant.pk


class TestProductAPI:

    def test_list(self, api_client, product, create_variant):
        create_variant({'Color': 'Red', 'Size': 'S'})
        create_variant({'Color': 'Red', 'Size': 'M'}, is_active=False)

        [data] = api_client.get('/api/products/').data
        assert data['variantCount'] == 2
        assert data['activeVariantCount'] == 1
        assert data['primaryImage'] == 'product.png'
        assert data['availability']['isOutOfStock']

    def test_detail(self, api_client, create_variant):
        create_variant({'Color': 'Red', 'Size': 'S'}, media=['red.png'], color_hex='#ff0000')
        create_variant({'Color': 'Blue', 'Size': 'S'}, media=['blue.png'])
        create_variant({'Color': 'Green', 'Size': 'S'}, is_active=False)

        data = api_client.get(PRODUCT_URL).data
        assert data['attributeNames'] == ['Color', 'Size']
        assert len(data['variants']) == 2
        assert data['gallery'] == ['product.png', 'red.png', 'blue.png']
        assert [(s['value'], s['colorHex']) for s in data['swatches']] == [
            ('Red', '#ff0000'), ('Blue', '#cccccc'),
        ]

    def test_create_with_attribute_names(self, api_client):
        response = api_client.post('/api/products/', {
            'name': 'Tênis Corrida',
            'price': '199.90',
            'variantAttributes': ['Color', ' Size ', 'Color'],
        }, format='json')

        assert response.status_code == 201
        product = Product.objects.get(slug='tenis-corrida')
        assert product.get_attribute_names() == ['Color', 'Size']
        assert response.data['variantAttributes'] == ['Color', 'Size']
