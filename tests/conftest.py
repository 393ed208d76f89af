"""Shared fixtures for the variants test suite."""

import json
from decimal import Decimal

import pytest

from apps.variants.services.combinations import VariantCombination
from apps.variants.services.records import VariantRecord


def build_variant(id=None, media=(), color_hex=None, is_active=True, sku=None,
                  price_override=None, **attributes):
    media = tuple(media)
    return VariantRecord(
        attributes=VariantCombination(attributes),
        id=id,
        media_urls=media,
        image_url=media[0] if media else None,
        color_hex=color_hex,
        price_override=price_override,
        sku=sku,
        is_active=is_active,
    )


@pytest.fixture
def make_variant():
    """Build a VariantRecord from attribute keyword arguments."""
    return build_variant


@pytest.fixture
def four_variants(make_variant):
    """Color {Red, Blue} x Size {S, M}, ids 1..4."""
    return [
        make_variant(id=1, Color='Red', Size='S', media=['red.png']),
        make_variant(id=2, Color='Red', Size='M', media=['red.png']),
        make_variant(id=3, Color='Blue', Size='S', media=['blue.png']),
        make_variant(id=4, Color='Blue', Size='M', media=['blue.png']),
    ]


@pytest.fixture
def api_client():
    from rest_framework.test import APIClient
    return APIClient()


@pytest.fixture
def product(db):
    from apps.variants.models import Product
    return Product.objects.create(
        name='Camiseta Básica',
        price=Decimal('59.90'),
        media_urls=json.dumps(['product.png']),
        variant_attributes=json.dumps(['Color', 'Size']),
    )


@pytest.fixture
def warehouse(db):
    from apps.variants.models import Warehouse
    return Warehouse.objects.create(name='Central')


@pytest.fixture
def create_variant(product):
    """Persist a ProductVariant for ``product`` with the given attributes."""
    from apps.variants.models import ProductVariant

    def _create(attributes=None, media=(), color='', target=None, **fields):
        variant = ProductVariant(
            product=target or product,
            attributes=json.dumps(attributes) if attributes is not None else '',
            color=color,
            **fields
        )
        variant.set_media_urls(list(media))
        variant.save()
        return variant

    return _create
