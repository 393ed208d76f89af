"""
Canonical variant record used by every part of the engine.

Stored variants reach the engine in one of two shapes: a structured
``attributes`` object, or (older data) a bare ``color`` string. Both are
kept as an ``AttributeSet`` until the boundary normalizes them, so the
algorithms only ever see a ``VariantCombination``.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Optional, Tuple, Union

from apps.variants.conf import variant_settings
from apps.variants.services.combinations import VariantCombination


@dataclass(frozen=True)
class StructuredAttributes:
    values: VariantCombination = field(default_factory=VariantCombination)

    def to_combination(self) -> VariantCombination:
        return self.values


@dataclass(frozen=True)
class LegacyColor:
    color: str

    def to_combination(self) -> VariantCombination:
        return VariantCombination([(variant_settings.COLOR_ATTRIBUTE_NAME, self.color)])


AttributeSet = Union[StructuredAttributes, LegacyColor]


@dataclass(frozen=True)
class VariantRecord:
    """
    One sellable configuration of a product.

    ``id`` is None until the variant has been persisted. ``image_url`` is the
    first of ``media_urls``, kept for consumers that only know one image.
    """

    attributes: VariantCombination = field(default_factory=VariantCombination)
    id: Optional[int] = None
    media_urls: Tuple[str, ...] = ()
    image_url: Optional[str] = None
    color_hex: Optional[str] = None
    price_override: Optional[Decimal] = None
    sku: Optional[str] = None
    is_active: bool = True

    @property
    def is_persisted(self) -> bool:
        return self.id is not None

    @property
    def primary_image(self) -> Optional[str]:
        if self.media_urls:
            return self.media_urls[0]
        return self.image_url or None

    def with_changes(self, **changes) -> 'VariantRecord':
        return replace(self, **changes)
