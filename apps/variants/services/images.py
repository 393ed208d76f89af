"""
Variant image/color resolution and storefront gallery helpers.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from apps.variants.conf import variant_settings
from apps.variants.services.assets import AttributeValueAssets, dedupe_urls


@dataclass(frozen=True)
class ResolvedMedia:
    images: Tuple[str, ...] = ()
    primary_image: Optional[str] = None
    color_hex: Optional[str] = None


@dataclass(frozen=True)
class Swatch:
    value: str
    color_hex: str
    images: Tuple[str, ...]
    variant_ids: Tuple[int, ...]


def resolve_variant_media(combination, assets: AttributeValueAssets) -> ResolvedMedia:
    """
    Images and color a combination gets from the asset registry.

    The lookup only uses the combination's value for the image attribute,
    so all variants sharing that value get identical media.
    """
    attribute = assets.image_attribute
    if attribute is None or attribute not in combination:
        return ResolvedMedia()

    value = combination[attribute]
    images = assets.images_for(value)
    color_hex = None
    if assets.carries_color:
        color_hex = assets.color_for(value) or variant_settings.DEFAULT_COLOR_HEX

    return ResolvedMedia(
        images=images,
        primary_image=images[0] if images else None,
        color_hex=color_hex,
    )


def apply_media(variant, assets: AttributeValueAssets):
    """Return ``variant`` with freshly resolved media and color."""
    media = resolve_variant_media(variant.attributes, assets)
    return variant.with_changes(
        media_urls=media.images,
        image_url=media.primary_image,
        color_hex=media.color_hex,
    )


def variant_images(variant) -> Tuple[str, ...]:
    """A variant's own gallery: its media list, else its single image."""
    if variant.media_urls:
        return tuple(variant.media_urls)
    if variant.image_url:
        return (variant.image_url,)
    return ()


def product_gallery(
    variant=None,
    product_media: Iterable[str] = (),
    product_image: Optional[str] = None,
) -> List[str]:
    """
    Images to show for a product page, most specific source first.

    Variant media, then the variant image, then product media, then the
    product image, and finally the placeholder.
    """
    if variant is not None:
        own = variant_images(variant)
        if own:
            return list(own)

    media = dedupe_urls(product_media)
    if media:
        return list(media)
    if product_image:
        return [product_image]
    return [variant_settings.PLACEHOLDER_IMAGE_URL]


def flattened_gallery(product_media: Iterable[str], variants: Iterable) -> List[str]:
    """Product-level images followed by every variant's images, de-duplicated."""
    urls = list(product_media or [])
    for variant in variants:
        urls.extend(variant_images(variant))
    return list(dedupe_urls(urls))


def gallery_index(product_media: Iterable[str], variants: Iterable, selected) -> Optional[int]:
    """
    Position of the selected variant's first image in the flattened gallery.

    None when nothing is selected or the variant has no image, so the
    caller keeps the carousel where it is.
    """
    if selected is None:
        return None
    own = variant_images(selected)
    if not own:
        return None
    gallery = flattened_gallery(product_media, variants)
    try:
        return gallery.index(own[0])
    except ValueError:
        return None


def build_swatches(variants: Iterable, image_attribute: Optional[str]) -> List[Swatch]:
    """
    One swatch per value of the image attribute among active variants.

    Images of all variants sharing a value are merged without repeats; the
    color is the first one found, or the default swatch color.
    """
    if not image_attribute:
        return []

    order: List[str] = []
    images = {}
    colors = {}
    ids = {}
    for variant in variants:
        if not variant.is_active:
            continue
        value = variant.attributes.get(image_attribute)
        if value is None:
            continue
        if value not in images:
            order.append(value)
            images[value] = []
            ids[value] = []
        images[value].extend(variant_images(variant))
        if variant.color_hex and value not in colors:
            colors[value] = variant.color_hex
        if variant.id is not None:
            ids[value].append(variant.id)

    return [
        Swatch(
            value=value,
            color_hex=colors.get(value) or variant_settings.DEFAULT_COLOR_HEX,
            images=dedupe_urls(images[value]),
            variant_ids=tuple(ids[value]),
        )
        for value in order
    ]
