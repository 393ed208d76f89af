"""Tests for the two-pass variant save."""

import json
from decimal import Decimal

import pytest

from apps.variants.services.combinations import VariantCombination
from apps.variants.services.persistence import DjangoVariantStore, save_reconciled_variants


class FakeStore:
    """In-memory VariantStore that can be told to fail."""

    def __init__(self, variants=(), fail_on=(), fail_list=False):
        self.rows = {v.id: v for v in variants}
        self.next_id = max(self.rows, default=0) + 1
        self.fail_on = set(fail_on)
        self.fail_list = fail_list
        self.calls = []

    def _check(self, variant):
        if variant.attributes.label() in self.fail_on:
            raise RuntimeError('backend unavailable')

    def list_for_product(self, product_id):
        self.calls.append('list')
        if self.fail_list:
            raise RuntimeError('timeout')
        return list(self.rows.values())

    def create(self, product_id, variant):
        self.calls.append('create')
        self._check(variant)
        saved = variant.with_changes(id=self.next_id)
        self.rows[saved.id] = saved
        self.next_id += 1
        return saved

    def update(self, product_id, variant):
        self.calls.append('update')
        self._check(variant)
        self.rows[variant.id] = variant
        return variant

    def delete(self, product_id, variant_id):
        self.calls.append('delete')
        if variant_id in self.fail_on:
            raise RuntimeError('locked')
        del self.rows[variant_id]


NAMES = ['Color', 'Size']


class TestSaveReconciledVariants:

    def test_creates_updates_then_deletes_orphans(self, make_variant):
        store = FakeStore([
            make_variant(id=1, Color='Red', Size='S'),
            make_variant(id=7, Color='Green', Size='S'),
        ])
        variants = [
            make_variant(id=1, Color='Red', Size='S', sku='R-S'),
            make_variant(Color='Red', Size='M'),
        ]
        report = save_reconciled_variants(store, 1, variants, NAMES)

        assert report.ok
        assert [v.id for v in report.updated] == [1]
        assert [v.id for v in report.created] == [8]
        assert [v.id for v in report.deleted] == [7]
        assert store.calls == ['update', 'create', 'list', 'delete']
        assert sorted(store.rows) == [1, 8]

    def test_partial_failure_is_reported_and_others_saved(self, make_variant):
        store = FakeStore([make_variant(id=1, Color='Red', Size='S')], fail_on={'Red / M'})
        variants = [
            make_variant(id=1, Color='Red', Size='S'),
            make_variant(Color='Red', Size='M'),
            make_variant(Color='Blue', Size='S'),
        ]
        report = save_reconciled_variants(store, 1, variants, NAMES)

        assert not report.ok
        assert [f.variant.attributes.label() for f in report.failures] == ['Red / M']
        assert report.failures[0].operation == 'create'
        assert len(report.saved) == 2
        assert report.as_dict()['errors'][0]['attributes'] == {'Color': 'Red', 'Size': 'M'}

    def test_failed_update_does_not_orphan_the_variant(self, make_variant):
        existing = make_variant(id=3, Color='Blue', Size='S')
        store = FakeStore([existing, make_variant(id=4, Color='Red', Size='S')], fail_on={'Blue / S'})
        variants = [existing, make_variant(id=4, Color='Red', Size='S')]

        report = save_reconciled_variants(store, 1, variants, NAMES)
        assert report.deleted == []
        assert 3 in store.rows

    def test_missing_attribute_fails_only_that_variant(self, make_variant):
        store = FakeStore()
        variants = [make_variant(Color='Red', Size='S'), make_variant(Color='Blue')]
        report = save_reconciled_variants(store, 1, variants, NAMES)

        assert len(report.created) == 1
        assert 'Size' in report.failures[0].error

    def test_nothing_saved_skips_cleanup(self, make_variant):
        store = FakeStore([make_variant(id=7, Color='Green', Size='S')], fail_on={'Red / S'})
        report = save_reconciled_variants(store, 1, [make_variant(Color='Red', Size='S')], NAMES)

        assert report.orphan_cleanup_skipped
        assert 'delete' not in store.calls
        assert 7 in store.rows

    def test_refetch_failure_skips_cleanup(self, make_variant):
        store = FakeStore([make_variant(id=7, Color='Green', Size='S')], fail_list=True)
        report = save_reconciled_variants(store, 1, [make_variant(Color='Red', Size='S')], NAMES)

        assert report.orphan_cleanup_skipped
        assert report.failures[0].operation == 'refetch'
        assert 7 in store.rows

    def test_failed_delete_is_reported(self, make_variant):
        store = FakeStore([make_variant(id=7, Color='Green', Size='S')], fail_on={7})
        report = save_reconciled_variants(store, 1, [make_variant(Color='Red', Size='S')], NAMES)

        assert [f.operation for f in report.failures] == ['delete']
        assert report.as_dict()['created'] == 1

    def test_empty_list_deletes_every_variant(self, make_variant):
        store = FakeStore([make_variant(id=7, Color='Green', Size='S')])
        report = save_reconciled_variants(store, 1, [], NAMES, combinations=[])
        assert [v.id for v in report.deleted] == [7]


@pytest.mark.django_db
class TestDjangoVariantStore:

    def test_create_update_delete(self, product, make_variant):
        store = DjangoVariantStore()
        created = store.create(product.pk, make_variant(
            Color='Red', Size='M', media=['r1.png', 'r2.png'], color_hex='#ff0000',
            price_override=Decimal('69.90'), sku='CAM-R-M',
        ))
        assert created.id is not None
        assert created.media_urls == ('r1.png', 'r2.png')

        row = product.variants.get(pk=created.id)
        assert json.loads(row.attributes) == {'Color': 'Red', 'Size': 'M'}
        assert row.color == 'Red'
        assert row.image_url == 'r1.png'

        store.update(product.pk, created.with_changes(is_active=False, sku=None))
        row.refresh_from_db()
        assert row.is_active is False
        assert row.sku == ''

        store.delete(product.pk, created.id)
        assert store.list_for_product(product.pk) == []

    def test_list_reads_legacy_rows(self, product, create_variant):
        create_variant(color='Preto')
        [variant] = DjangoVariantStore().list_for_product(product.pk)
        assert variant.attributes == VariantCombination(Color='Preto')

    def test_full_save(self, product, create_variant, make_variant):
        kept = create_variant({'Color': 'Red', 'Size': 'S'}, sku='OLD')
        orphan = create_variant({'Color': 'Green', 'Size': 'S'})

        variants = [
            make_variant(id=kept.pk, Color='Red', Size='S', sku='OLD'),
            make_variant(Color='Red', Size='M'),
        ]
        report = save_reconciled_variants(DjangoVariantStore(), product.pk, variants, NAMES)

        assert report.ok
        ids = set(product.variants.values_list('pk', flat=True))
        assert kept.pk in ids
        assert orphan.pk not in ids
        assert len(ids) == 2


@pytest.mark.django_db
class TestCompleteVariantsAction:

    @pytest.fixture
    def run_action(self, monkeypatch):
        from django.contrib import admin

        from apps.variants.admin import ProductAdmin
        from apps.variants.models import Product

        messages = []
        model_admin = ProductAdmin(Product, admin.site)
        monkeypatch.setattr(model_admin, 'message_user', lambda request, msg, **kw: messages.append(msg))

        def _run(product):
            model_admin.complete_variants(None, Product.objects.filter(pk=product.pk))
            return messages

        return _run

    def test_per_variant_galleries_are_not_wiped(self, product, create_variant, run_action):
        red_s = create_variant({'Color': 'Red', 'Size': 'S'}, media=['rs.png'], color_hex='#ff0000')
        red_m = create_variant({'Color': 'Red', 'Size': 'M'}, media=['rm.png'], color_hex='#ff0000')
        create_variant({'Color': 'Blue', 'Size': 'S'}, media=['bs.png'], color_hex='#0000ff')

        messages = run_action(product)

        assert '1 criadas' in messages[0]
        red_s.refresh_from_db()
        red_m.refresh_from_db()
        assert red_s.get_media_urls() == ['rs.png']
        assert red_m.get_media_urls() == ['rm.png']
        assert red_s.color_hex == '#ff0000'
        assert product.variants.count() == 4

    def test_swatch_colors_reach_new_combinations(self, product, create_variant, run_action):
        create_variant({'Color': 'Red', 'Size': 'S'}, color_hex='#ff0000')
        create_variant({'Color': 'Red', 'Size': 'M'}, color_hex='#ff0000')
        blue_s = create_variant({'Color': 'Blue', 'Size': 'S'}, color_hex='#0000ff')

        run_action(product)

        blue_s.refresh_from_db()
        assert blue_s.color_hex == '#0000ff'
        [blue_m] = [v for v in product.variants.all() if v.get_combination() == {'Color': 'Blue', 'Size': 'M'}]
        assert blue_m.color_hex == '#0000ff'
