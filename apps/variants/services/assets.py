"""
Attribute value asset registry.

Exactly one attribute of a product (the "image attribute") carries the
gallery: each of its values maps to an ordered list of image URLs and, when
that attribute is the color attribute, to a swatch color. Every variant that
shares a value for the image attribute shows the same pictures.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from apps.variants.exceptions import AssetError
from apps.variants.services.attributes import is_color_attribute

HEX_COLOR_RE = re.compile(r'^#?([0-9A-Fa-f]{6})$')


def normalize_color_hex(value: Optional[str]) -> Optional[str]:
    """
    Normalize a color code to ``#rrggbb``.

    Empty input clears the color (returns None); anything that is not six
    hex digits, with or without the leading ``#``, raises AssetError.
    """
    if value is None or not str(value).strip():
        return None
    match = HEX_COLOR_RE.match(str(value).strip())
    if not match:
        raise AssetError(f"Cor deve estar no formato hexadecimal (#RRGGBB): '{value}'")
    return f'#{match.group(1).lower()}'


def dedupe_urls(urls: Iterable[str]) -> Tuple[str, ...]:
    """Drop blanks and repeated URLs, keeping first occurrence order."""
    seen = []
    for url in urls or []:
        url = str(url).strip() if url is not None else ''
        if url and url not in seen:
            seen.append(url)
    return tuple(seen)


@dataclass(frozen=True)
class ValueAssets:
    images: Tuple[str, ...] = ()
    color_hex: Optional[str] = None


@dataclass(frozen=True)
class AttributeValueAssets:
    """
    (image attribute, value) -> ValueAssets, plus the current image attribute.

    Entries are keyed by the attribute name as well as the value so that
    switching the image attribute can drop the associations that belonged
    to the previous one.
    """

    image_attribute: Optional[str] = None
    entries: Dict[Tuple[str, str], ValueAssets] = field(default_factory=dict)

    @property
    def carries_color(self) -> bool:
        return is_color_attribute(self.image_attribute)

    def get(self, value: str, attribute: Optional[str] = None) -> Optional[ValueAssets]:
        attribute = attribute or self.image_attribute
        if attribute is None:
            return None
        return self.entries.get((attribute, value))

    def images_for(self, value: str) -> Tuple[str, ...]:
        assets = self.get(value)
        return assets.images if assets else ()

    def color_for(self, value: str) -> Optional[str]:
        if not self.carries_color:
            return None
        assets = self.get(value)
        return assets.color_hex if assets else None

    def select_image_attribute(self, name: Optional[str], config=None) -> 'AttributeValueAssets':
        """
        Designate ``name`` as the image attribute (None to unset).

        Associations captured for any other attribute are cleared. When a
        config is given, ``name`` must be one of its attributes.
        """
        if name is not None and config is not None and name not in config:
            raise AssetError(f"Atributo de imagem '{name}' não está configurado")
        kept = {
            key: assets for key, assets in self.entries.items()
            if name is not None and key[0] == name
        }
        return AttributeValueAssets(image_attribute=name, entries=kept)

    def _require_attribute(self) -> str:
        if self.image_attribute is None:
            raise AssetError('Nenhum atributo de imagem selecionado')
        return self.image_attribute

    def _with_entry(self, value: str, assets: ValueAssets) -> 'AttributeValueAssets':
        entries = dict(self.entries)
        key = (self._require_attribute(), value)
        if assets.images or assets.color_hex:
            entries[key] = assets
        else:
            entries.pop(key, None)
        return AttributeValueAssets(image_attribute=self.image_attribute, entries=entries)

    def set_images(self, value: str, images: Iterable[str]) -> 'AttributeValueAssets':
        current = self.get(value, self._require_attribute()) or ValueAssets()
        return self._with_entry(value, ValueAssets(dedupe_urls(images), current.color_hex))

    def add_image(self, value: str, url: str) -> 'AttributeValueAssets':
        return self.set_images(value, self.images_for(value) + (url,))

    def remove_image(self, value: str, url: str) -> 'AttributeValueAssets':
        return self.set_images(value, [u for u in self.images_for(value) if u != url])

    def set_color(self, value: str, color_hex: Optional[str]) -> 'AttributeValueAssets':
        self._require_attribute()
        if not self.carries_color:
            raise AssetError(
                f"Atributo '{self.image_attribute}' não aceita cor; apenas o atributo de cor"
            )
        current = self.get(value) or ValueAssets()
        return self._with_entry(value, ValueAssets(current.images, normalize_color_hex(color_hex)))

    def forget_value(self, attribute: str, value: str) -> 'AttributeValueAssets':
        entries = {k: a for k, a in self.entries.items() if k != (attribute, value)}
        return AttributeValueAssets(image_attribute=self.image_attribute, entries=entries)
