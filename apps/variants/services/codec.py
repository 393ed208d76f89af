"""
Wire format of stored variants.

The backend keeps ``attributes`` as JSON object text and ``mediaUrls`` as
JSON array text. This module is the only place that text is parsed: bad
records are normalized (or degraded to the legacy color) here so the engine
only handles ``VariantRecord``.
"""

import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

from apps.variants.conf import variant_settings
from apps.variants.services.assets import dedupe_urls
from apps.variants.services.combinations import VariantCombination
from apps.variants.services.records import (
    AttributeSet,
    LegacyColor,
    StructuredAttributes,
    VariantRecord,
)

logger = logging.getLogger(__name__)


def _clean_text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_attribute_set(raw_attributes, legacy_color: Optional[str] = None) -> AttributeSet:
    """
    Decide which shape a stored variant's attributes have.

    Structured attributes win when present and well formed. Corrupt JSON is
    logged and treated as absent, which falls back to the legacy color (or
    to an empty attribute set when there is no color either).
    """
    color = _clean_text(legacy_color)

    if isinstance(raw_attributes, dict):
        raw_attributes = json.dumps(raw_attributes)

    raw = _clean_text(raw_attributes)
    if raw:
        try:
            parsed = VariantCombination.from_json(raw)
        except ValueError as e:
            logger.warning(f"[CODEC] Malformed attributes JSON {raw!r}: {e}")
        else:
            cleaned = [
                (name.strip(), value.strip())
                for name, value in parsed.items()
                if name.strip() and value.strip()
            ]
            if cleaned:
                return StructuredAttributes(VariantCombination(cleaned))

    if color:
        return LegacyColor(color)
    return StructuredAttributes()


def parse_media_urls(raw, fallback_image: Optional[str] = None) -> Tuple[str, ...]:
    """
    Parse ``mediaUrls`` JSON array text into a de-duplicated tuple.

    Malformed text is logged; in that case, or when the list is empty, the
    single legacy image is used if there is one.
    """
    urls: Tuple[str, ...] = ()
    if isinstance(raw, (list, tuple)):
        urls = dedupe_urls(raw)
    elif _clean_text(raw):
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning(f"[CODEC] Malformed mediaUrls JSON: {raw[:80]!r}")
            data = []
        if isinstance(data, list):
            urls = dedupe_urls(u for u in data if isinstance(u, str))
        else:
            logger.warning(f"[CODEC] mediaUrls is not a JSON array: {raw[:80]!r}")

    image = _clean_text(fallback_image)
    if not urls and image:
        urls = (image,)
    return urls


def _parse_decimal(value) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        logger.warning(f"[CODEC] Ignoring non-numeric priceOverride {value!r}")
        return None


def variant_from_payload(payload: Dict[str, Any]) -> VariantRecord:
    """Build a VariantRecord from the camelCase JSON the backend returns."""
    attribute_set = parse_attribute_set(payload.get('attributes'), payload.get('color'))
    media = parse_media_urls(payload.get('mediaUrls'), payload.get('imageUrl'))
    return VariantRecord(
        attributes=attribute_set.to_combination(),
        id=payload.get('id'),
        media_urls=media,
        image_url=media[0] if media else None,
        color_hex=_clean_text(payload.get('colorHex')),
        price_override=_parse_decimal(payload.get('priceOverride')),
        sku=_clean_text(payload.get('sku')),
        is_active=bool(payload.get('isActive', True)),
    )


def variant_from_model(instance) -> VariantRecord:
    """Build a VariantRecord from a ``ProductVariant`` model instance."""
    attribute_set = parse_attribute_set(instance.attributes, instance.color)
    media = parse_media_urls(instance.media_urls, instance.image_url)
    return VariantRecord(
        attributes=attribute_set.to_combination(),
        id=instance.pk,
        media_urls=media,
        image_url=media[0] if media else None,
        color_hex=_clean_text(instance.color_hex),
        price_override=instance.price_override,
        sku=_clean_text(instance.sku),
        is_active=instance.is_active,
    )


def legacy_color_value(variant: VariantRecord) -> str:
    """Value written to the legacy ``color`` column for older readers."""
    return variant.attributes.get(variant_settings.COLOR_ATTRIBUTE_NAME, '')


def variant_to_payload(variant: VariantRecord) -> Dict[str, Any]:
    """Serialize a VariantRecord into the backend's camelCase JSON shape."""
    return {
        'id': variant.id,
        'color': legacy_color_value(variant),
        'colorHex': variant.color_hex,
        'attributes': variant.attributes.to_json(),
        'imageUrl': variant.primary_image,
        'mediaUrls': json.dumps(list(variant.media_urls), ensure_ascii=False),
        'priceOverride': str(variant.price_override) if variant.price_override is not None else None,
        'sku': variant.sku,
        'isActive': variant.is_active,
    }
