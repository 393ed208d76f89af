"""
Saving a reconciled variant list.

The save is not transactional across the batch. It runs in two passes:
every variant is created or updated on its own, the product's variants are
fetched again, and only then are orphans deleted. A variant that fails is
reported and the others carry on.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Protocol

from apps.variants.services.codec import legacy_color_value, variant_from_model
from apps.variants.services.combinations import VariantCombination
from apps.variants.services.reconciler import find_orphans, validate_variant
from apps.variants.services.records import VariantRecord

logger = logging.getLogger(__name__)


class VariantStore(Protocol):
    """Where variants are persisted, keyed by product id and variant id."""

    def list_for_product(self, product_id: int) -> List[VariantRecord]:
        ...

    def create(self, product_id: int, variant: VariantRecord) -> VariantRecord:
        ...

    def update(self, product_id: int, variant: VariantRecord) -> VariantRecord:
        ...

    def delete(self, product_id: int, variant_id: int) -> None:
        ...


class DjangoVariantStore:
    """VariantStore backed by the ``ProductVariant`` model."""

    def _queryset(self, product_id):
        from apps.variants.models import ProductVariant
        return ProductVariant.objects.filter(product_id=product_id)

    def _write(self, instance, variant: VariantRecord):
        instance.attributes = variant.attributes.to_json()
        instance.color = legacy_color_value(variant)
        instance.color_hex = variant.color_hex or ''
        instance.set_media_urls(variant.media_urls)
        instance.price_override = variant.price_override
        instance.sku = variant.sku or ''
        instance.is_active = variant.is_active
        instance.save()
        return variant_from_model(instance)

    def list_for_product(self, product_id: int) -> List[VariantRecord]:
        return [variant_from_model(v) for v in self._queryset(product_id).order_by('id')]

    def create(self, product_id: int, variant: VariantRecord) -> VariantRecord:
        from apps.variants.models import ProductVariant
        return self._write(ProductVariant(product_id=product_id), variant)

    def update(self, product_id: int, variant: VariantRecord) -> VariantRecord:
        instance = self._queryset(product_id).get(pk=variant.id)
        return self._write(instance, variant)

    def delete(self, product_id: int, variant_id: int) -> None:
        self._queryset(product_id).filter(pk=variant_id).delete()


@dataclass
class SaveFailure:
    variant: VariantRecord
    operation: str
    error: str

    def as_dict(self) -> dict:
        return {
            'id': self.variant.id,
            'attributes': dict(self.variant.attributes),
            'operation': self.operation,
            'error': self.error,
        }


@dataclass
class SaveReport:
    """Batch summary of one save, naming every failed variant."""

    created: List[VariantRecord] = field(default_factory=list)
    updated: List[VariantRecord] = field(default_factory=list)
    deleted: List[VariantRecord] = field(default_factory=list)
    failures: List[SaveFailure] = field(default_factory=list)
    orphan_cleanup_skipped: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def saved(self) -> List[VariantRecord]:
        return self.created + self.updated

    def as_dict(self) -> dict:
        return {
            'created': len(self.created),
            'updated': len(self.updated),
            'deleted': len(self.deleted),
            'errors': [f.as_dict() for f in self.failures],
            'orphanCleanupSkipped': self.orphan_cleanup_skipped,
        }


def save_reconciled_variants(store: VariantStore,
                             product_id: int,
                             variants: Iterable[VariantRecord],
                             attribute_names: Iterable[str],
                             combinations: Optional[Iterable[VariantCombination]] = None) -> SaveReport:
    """
    Persist the reconciled variant list for a product.

    Args:
        store: persistence collaborator
        product_id: owner of the variants
        variants: output of the reconciler, one per combination
        attribute_names: configured attributes every variant must carry
        combinations: current combinations; defaults to the variants' own
            attribute sets

    Returns:
        SaveReport. Orphans are only deleted after a fresh fetch, and not at
        all when nothing could be saved or the fetch failed.
    """
    variants = list(variants)
    attribute_names = list(attribute_names)
    if combinations is None:
        combinations = [v.attributes for v in variants]
    combinations = list(combinations)

    report = SaveReport()
    session = []

    logger.info(f"[VARIANT SAVE] Product {product_id}: saving {len(variants)} variants")

    # Pass 1: creates and updates
    for variant in variants:
        operation = 'update' if variant.is_persisted else 'create'
        try:
            validate_variant(variant, attribute_names)
            if variant.is_persisted:
                saved = store.update(product_id, variant)
                report.updated.append(saved)
            else:
                saved = store.create(product_id, variant)
                report.created.append(saved)
            session.append(saved)
        except Exception as e:
            logger.warning(
                f"[VARIANT SAVE] Failed to {operation} variant {variant.id} "
                f"{dict(variant.attributes)}: {e}"
            )
            report.failures.append(SaveFailure(variant, operation, str(e)))
            session.append(variant)

    if variants and not report.saved:
        logger.warning(f"[VARIANT SAVE] Product {product_id}: nothing saved, keeping existing variants")
        report.orphan_cleanup_skipped = True
        return report

    # Pass 2: orphans, diffed against a fresh read
    try:
        persisted = store.list_for_product(product_id)
    except Exception as e:
        logger.warning(f"[VARIANT SAVE] Product {product_id}: refetch failed, skipping cleanup: {e}")
        report.failures.append(SaveFailure(VariantRecord(), 'refetch', str(e)))
        report.orphan_cleanup_skipped = True
        return report

    for orphan in find_orphans(persisted, combinations, session):
        try:
            store.delete(product_id, orphan.id)
            report.deleted.append(orphan)
        except Exception as e:
            logger.warning(f"[VARIANT SAVE] Failed to delete orphan {orphan.id}: {e}")
            report.failures.append(SaveFailure(orphan, 'delete', str(e)))

    logger.info(
        f"[VARIANT SAVE] Product {product_id}: created={len(report.created)}, "
        f"updated={len(report.updated)}, deleted={len(report.deleted)}, "
        f"failed={len(report.failures)}"
    )
    return report
