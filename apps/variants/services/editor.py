"""
Product variant editor state.

The dashboard edits a product's attributes, images and variants as one
immutable ``ProductVariantEditorState``. Each user action is a reducer
taking the previous state and returning the next one; only the view layer
holds on to the current value.
"""

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from apps.variants.exceptions import AttributeConfigError, SelectionError
from apps.variants.services.assets import AttributeValueAssets, ValueAssets
from apps.variants.services.attributes import (
    AttributeConfig,
    config_from_variants,
    is_color_attribute,
    parse_attribute_names,
)
from apps.variants.services.combinations import VariantCombination, generate_combinations
from apps.variants.services.images import variant_images
from apps.variants.services.reconciler import find_variant, reconcile_variants
from apps.variants.services.records import VariantRecord
from apps.variants.services.selector import SelectorState, choose, initialize, start_selector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductVariantEditorState:
    product_id: Optional[int] = None
    config: AttributeConfig = field(default_factory=AttributeConfig)
    assets: AttributeValueAssets = field(default_factory=AttributeValueAssets)
    variants: Tuple[VariantRecord, ...] = ()
    selector: Optional[SelectorState] = None

    @property
    def combinations(self) -> List[VariantCombination]:
        return generate_combinations(self.config)

    @property
    def image_attribute(self) -> Optional[str]:
        return self.assets.image_attribute


def infer_image_attribute(config: AttributeConfig, variants: Iterable[VariantRecord]) -> Optional[str]:
    """
    Guess which attribute carried the gallery when the variants were saved.

    The image attribute is not stored. An attribute qualifies when every
    value maps to one gallery (all variants sharing the value show the same
    images) and at least one gallery is non-empty. The color attribute also
    qualifies through its swatch colors alone, as long as each value maps to
    one color and its galleries agree. The first qualifying attribute in
    configuration order wins.
    """
    variants = list(variants)
    for name in config.names:
        carries_color = is_color_attribute(name)
        galleries = {}
        colors = {}
        consistent = True
        for variant in variants:
            value = variant.attributes.get(name)
            if value is None:
                continue
            images = variant_images(variant)
            if galleries.setdefault(value, images) != images:
                consistent = False
                break
            if carries_color and colors.setdefault(value, variant.color_hex) != variant.color_hex:
                consistent = False
                break
        if not consistent:
            continue
        if any(galleries.values()) or any(colors.values()):
            return name
    return None


def _assets_from_variants(image_attribute: Optional[str], variants: Iterable[VariantRecord]) -> AttributeValueAssets:
    if image_attribute is None:
        return AttributeValueAssets()
    entries = {}
    carries_color = is_color_attribute(image_attribute)
    for variant in variants:
        value = variant.attributes.get(image_attribute)
        key = (image_attribute, value)
        if value is None or key in entries:
            continue
        assets = ValueAssets(
            images=variant_images(variant),
            color_hex=variant.color_hex if carries_color else None,
        )
        if assets.images or assets.color_hex:
            entries[key] = assets
    return AttributeValueAssets(image_attribute=image_attribute, entries=entries)


def load_editor(product_id: Optional[int], raw_attribute_names, variants: Iterable[VariantRecord]) -> ProductVariantEditorState:
    """
    Start an editing session from what the backend stores.

    Names come from the product's stored list, falling back to the keys the
    variants use. Value lists and image associations are rebuilt from the
    variants themselves.
    """
    variants = tuple(variants)
    names = parse_attribute_names(raw_attribute_names)
    if not names:
        for variant in variants:
            for name in variant.attributes:
                if name not in names:
                    names.append(name)

    config = config_from_variants(names, variants)
    image_attribute = infer_image_attribute(config, variants)
    assets = _assets_from_variants(image_attribute, variants)

    logger.debug(
        f"[EDITOR] Loaded product {product_id}: attributes={list(config.names)}, "
        f"image_attribute={image_attribute}, variants={len(variants)}"
    )
    return ProductVariantEditorState(
        product_id=product_id,
        config=config,
        assets=assets,
        variants=variants,
    )


# Attribute configuration

def add_attribute(state: ProductVariantEditorState, name: str) -> ProductVariantEditorState:
    return replace(state, config=state.config.add_attribute(name))


def remove_attribute(state: ProductVariantEditorState, name: str) -> ProductVariantEditorState:
    assets = state.assets
    if assets.image_attribute == name:
        assets = assets.select_image_attribute(None)
    return replace(state, config=state.config.remove_attribute(name), assets=assets)


def rename_attribute(state: ProductVariantEditorState, old: str, new: str) -> ProductVariantEditorState:
    """
    Rename an attribute everywhere in the session.

    In-session variants are re-keyed too, so they keep matching their
    combinations on the next reconcile instead of becoming orphans.
    """
    config = state.config.rename_attribute(old, new)
    new = config.names[state.config.names.index(old)]

    assets = state.assets
    if assets.image_attribute == old:
        entries = {
            (new, value): value_assets
            for (attribute, value), value_assets in assets.entries.items()
            if attribute == old
        }
        assets = AttributeValueAssets(image_attribute=new, entries=entries)

    variants = tuple(
        v.with_changes(attributes=VariantCombination(
            (new if name == old else name, value) for name, value in v.attributes.items()
        ))
        for v in state.variants
    )
    return replace(state, config=config, assets=assets, variants=variants)


def add_value(state: ProductVariantEditorState, name: str, value: str) -> ProductVariantEditorState:
    return replace(state, config=state.config.add_value(name, value))


def remove_value(state: ProductVariantEditorState, name: str, value: str) -> ProductVariantEditorState:
    return replace(
        state,
        config=state.config.remove_value(name, value),
        assets=state.assets.forget_value(name, value),
    )


# Image attribute and assets

def set_image_attribute(state: ProductVariantEditorState, name: Optional[str]) -> ProductVariantEditorState:
    return replace(state, assets=state.assets.select_image_attribute(name, state.config))


def _require_value(state: ProductVariantEditorState, value: str) -> None:
    attribute = state.assets.image_attribute
    if attribute is not None and value not in state.config.values(attribute):
        raise AttributeConfigError(f"Valor '{value}' não existe em '{attribute}'")


def set_images(state: ProductVariantEditorState, value: str, images: Iterable[str]) -> ProductVariantEditorState:
    _require_value(state, value)
    return replace(state, assets=state.assets.set_images(value, images))


def add_image(state: ProductVariantEditorState, value: str, url: str) -> ProductVariantEditorState:
    _require_value(state, value)
    return replace(state, assets=state.assets.add_image(value, url))


def remove_image(state: ProductVariantEditorState, value: str, url: str) -> ProductVariantEditorState:
    return replace(state, assets=state.assets.remove_image(value, url))


def set_color(state: ProductVariantEditorState, value: str, color_hex: Optional[str]) -> ProductVariantEditorState:
    _require_value(state, value)
    return replace(state, assets=state.assets.set_color(value, color_hex))


def configure(state: ProductVariantEditorState, attributes, image_attribute: Optional[str] = None,
              value_assets=()) -> ProductVariantEditorState:
    """
    Replace attributes, image attribute and assets in one go.

    Args:
        attributes: ordered ``(name, [values...])`` pairs
        image_attribute: attribute carrying the gallery, or None
        value_assets: ``(value, images, color_hex)`` triples for the
            image attribute's values

    Built from the single-action reducers, so the same validation applies.
    """
    state = replace(state, config=AttributeConfig(), assets=AttributeValueAssets(), selector=None)
    for name, values in attributes:
        name = str(name or '').strip()
        state = add_attribute(state, name)
        for value in values:
            state = add_value(state, name, value)

    state = set_image_attribute(state, image_attribute)
    for value, images, color_hex in value_assets:
        state = set_images(state, value, images)
        if color_hex:
            state = set_color(state, value, color_hex)
    return state


# Variants

def reconcile(state: ProductVariantEditorState) -> ProductVariantEditorState:
    """Regenerate combinations and merge them with the session's variants."""
    variants = reconcile_variants(state.combinations, state.variants, state.assets)
    return replace(state, variants=tuple(variants), selector=None)


def complete_combinations(state: ProductVariantEditorState) -> ProductVariantEditorState:
    """
    Add the missing combinations without touching stored media.

    When no image attribute could be inferred on load, the registry is
    empty and would clear every variant's images and color; matched
    variants then keep their own.
    """
    keep_media = state.image_attribute is None
    if keep_media:
        logger.info(f"[EDITOR] Product {state.product_id}: no image attribute, keeping stored media")
    variants = reconcile_variants(state.combinations, state.variants, state.assets, keep_media=keep_media)
    return replace(state, variants=tuple(variants), selector=None)


def update_variant(state: ProductVariantEditorState, combination, *,
                   price_override: Optional[Decimal] = None,
                   sku: Optional[str] = None,
                   is_active: Optional[bool] = None,
                   clear_price: bool = False) -> ProductVariantEditorState:
    """
    Edit the per-variant fields the reconciler preserves.

    Only the given fields change; ``clear_price`` removes the override.
    """
    target = find_variant(state.variants, combination)
    if target is None:
        raise AttributeConfigError(f'Nenhuma variante com atributos {dict(combination)}')

    changes = {}
    if price_override is not None or clear_price:
        changes['price_override'] = None if clear_price else price_override
    if sku is not None:
        changes['sku'] = sku.strip() or None
    if is_active is not None:
        changes['is_active'] = is_active

    variants = tuple(
        v.with_changes(**changes) if v is target else v
        for v in state.variants
    )
    return replace(state, variants=variants, selector=None)


# Selector preview

def preview_selector(state: ProductVariantEditorState) -> ProductVariantEditorState:
    """Open the selector over the session's variants, with its first auto choice."""
    preview = initialize(start_selector(state.config.names, state.variants))
    return replace(state, selector=preview)


def select_step(state: ProductVariantEditorState, index: int, value: str) -> ProductVariantEditorState:
    if state.selector is None:
        raise SelectionError('Pré-visualização do seletor não iniciada')
    return replace(state, selector=choose(state.selector, index, value))
