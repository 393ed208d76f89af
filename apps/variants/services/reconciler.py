"""
Merge freshly generated combinations with the variants already known.

Matching is by full attribute-set equality only: a combination that differs
in a single value is a different variant, and the old one becomes an orphan
once the product is saved.
"""

import logging
from typing import Dict, Iterable, List, Optional

from apps.variants.exceptions import MissingAttributeError
from apps.variants.services.combinations import VariantCombination
from apps.variants.services.images import apply_media
from apps.variants.services.records import VariantRecord

logger = logging.getLogger(__name__)


def index_by_attributes(variants: Iterable[VariantRecord]) -> Dict[VariantCombination, VariantRecord]:
    """
    Map attribute set -> variant, first occurrence wins.

    Two variants with the same attribute set should not exist; when they
    do, the later ones are logged and ignored for matching.
    """
    index: Dict[VariantCombination, VariantRecord] = {}
    for variant in variants:
        key = variant.attributes
        if key in index:
            logger.warning(
                f"[RECONCILE] Duplicate attribute set {dict(key)} "
                f"(variants {index[key].id} and {variant.id}); keeping the first"
            )
            continue
        index[key] = variant
    return index


def reconcile_variants(combinations: Iterable[VariantCombination],
                       existing: Iterable[VariantRecord],
                       assets,
                       keep_media: bool = False) -> List[VariantRecord]:
    """
    Build the new in-session variant list, one entry per combination.

    Args:
        combinations: output of generate_combinations, in order
        existing: the variants held so far (persisted ids may be present)
        assets: AttributeValueAssets used to resolve media and color
        keep_media: matched variants keep their own media and color instead
            of taking them from ``assets``

    Returns:
        List of VariantRecord. Matches keep id, price override, SKU and
        active flag; new combinations get defaults. Media and color are
        recomputed from ``assets`` unless ``keep_media`` is set.
    """
    index = index_by_attributes(existing)
    result = []
    matched = 0

    for combination in combinations:
        previous = index.get(combination)
        if previous is not None:
            matched += 1
            variant = VariantRecord(
                attributes=combination,
                id=previous.id,
                price_override=previous.price_override,
                sku=previous.sku,
                is_active=previous.is_active,
            )
            if keep_media:
                result.append(variant.with_changes(
                    media_urls=previous.media_urls,
                    image_url=previous.image_url,
                    color_hex=previous.color_hex,
                ))
                continue
        else:
            variant = VariantRecord(attributes=combination)
        result.append(apply_media(variant, assets))

    logger.debug(f"[RECONCILE] {len(result)} combinations, {matched} matched existing variants")
    return result


def find_orphans(persisted: Iterable[VariantRecord],
                 combinations: Iterable[VariantCombination],
                 session_variants: Iterable[VariantRecord]) -> List[VariantRecord]:
    """
    Persisted variants that no longer correspond to any combination.

    ``persisted`` must be fetched from the store right before calling; a
    stale snapshot could delete a variant that was just re-matched. A
    variant still referenced by id from the session list is never an
    orphan.
    """
    current = set(combinations)
    session_ids = {v.id for v in session_variants if v.id is not None}
    return [
        variant for variant in persisted
        if variant.id is not None
        and variant.attributes not in current
        and variant.id not in session_ids
    ]


def missing_attributes(variant: VariantRecord, attribute_names: Iterable[str]) -> List[str]:
    """Configured attributes the variant has no (non-blank) value for."""
    missing = []
    for name in attribute_names:
        value = variant.attributes.get(name)
        if value is None or not str(value).strip():
            missing.append(name)
    return missing


def validate_variant(variant: VariantRecord, attribute_names: Iterable[str]) -> VariantRecord:
    """Raise MissingAttributeError naming the first missing attribute."""
    missing = missing_attributes(variant, attribute_names)
    if missing:
        raise MissingAttributeError(missing[0], variant=variant)
    return variant


def find_variant(variants: Iterable[VariantRecord], combination) -> Optional[VariantRecord]:
    """The variant whose attribute set equals ``combination``, if any."""
    key = combination if isinstance(combination, VariantCombination) else VariantCombination(combination)
    for variant in variants:
        if variant.attributes == key:
            return variant
    return None
