"""
Attribute configuration store.

Holds, per product being edited, the ordered attribute names and for each
one its ordered list of allowed values. Only the names are persisted (the
product's ``variant_attributes`` JSON list); values are rebuilt from the
stored variants when an editing session starts.
"""

import json
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from apps.variants.conf import variant_settings
from apps.variants.exceptions import AttributeConfigError

logger = logging.getLogger(__name__)


def _clean(text, what: str) -> str:
    cleaned = str(text if text is not None else '').strip()
    if not cleaned:
        raise AttributeConfigError(f'{what} não pode ser vazio')
    return cleaned


@dataclass(frozen=True)
class AttributeConfig:
    """
    Ordered attribute name -> ordered distinct values.

    Every mutation returns a new config. Adding a name or value that is
    already present is a no-op; attribute names are case-sensitive.
    """

    entries: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()

    @classmethod
    def from_pairs(cls, pairs: Iterable) -> 'AttributeConfig':
        """Build from ``[(name, [values...]), ...]`` or a dict, keeping order."""
        if isinstance(pairs, dict):
            pairs = pairs.items()
        config = cls()
        for name, values in pairs:
            config = config.add_attribute(name)
            for value in values or []:
                config = config.add_value(name, value)
        return config

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.entries)

    def values(self, name: str) -> Tuple[str, ...]:
        for entry_name, values in self.entries:
            if entry_name == name:
                return values
        raise KeyError(name)

    def __contains__(self, name) -> bool:
        return name in self.names

    def __len__(self) -> int:
        return len(self.entries)

    def as_dict(self) -> Dict[str, List[str]]:
        return {name: list(values) for name, values in self.entries}

    def add_attribute(self, name: str) -> 'AttributeConfig':
        name = _clean(name, 'Nome do atributo')
        if name in self:
            return self
        return AttributeConfig(self.entries + ((name, ()),))

    def remove_attribute(self, name: str) -> 'AttributeConfig':
        if name not in self:
            return self
        return AttributeConfig(tuple(e for e in self.entries if e[0] != name))

    def rename_attribute(self, old: str, new: str) -> 'AttributeConfig':
        new = _clean(new, 'Nome do atributo')
        if old not in self:
            raise AttributeConfigError(f"Atributo '{old}' não existe")
        if new != old and new in self:
            raise AttributeConfigError(f"Atributo '{new}' já existe")
        return AttributeConfig(tuple(
            (new if n == old else n, values) for n, values in self.entries
        ))

    def add_value(self, name: str, value: str) -> 'AttributeConfig':
        value = _clean(value, 'Valor do atributo')
        if name not in self:
            raise AttributeConfigError(f"Atributo '{name}' não existe")
        return AttributeConfig(tuple(
            (n, values + (value,) if n == name and value not in values else values)
            for n, values in self.entries
        ))

    def remove_value(self, name: str, value: str) -> 'AttributeConfig':
        if name not in self:
            return self
        return AttributeConfig(tuple(
            (n, tuple(v for v in values if v != value) if n == name else values)
            for n, values in self.entries
        ))

    def names_json(self) -> str:
        """Serialized form stored on ``Product.variant_attributes``."""
        return json.dumps(list(self.names), ensure_ascii=False)


def parse_attribute_names(raw) -> List[str]:
    """
    Parse the product's stored attribute-name list.

    Accepts the JSON array text or an already decoded list. Malformed text
    is logged and treated as an empty list.
    """
    if raw is None or raw == '':
        return []
    data = raw
    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning(f"[ATTRIBUTES] Malformed variant_attributes JSON: {raw!r}")
            return []
    if not isinstance(data, list):
        logger.warning(f"[ATTRIBUTES] variant_attributes is not a list: {raw!r}")
        return []

    names = []
    for item in data:
        name = str(item).strip() if item is not None else ''
        if name and name not in names:
            names.append(name)
    return names


def resolve_attribute_names(raw_names, variants: Iterable) -> List[str]:
    """
    Attribute names a product's selector should walk through.

    Uses the stored list when there is one; otherwise the union of the
    attribute keys of the active variants in first-seen order; otherwise
    the conventional color attribute alone.
    """
    names = parse_attribute_names(raw_names)
    if names:
        return names

    for variant in variants:
        if not variant.is_active:
            continue
        for name in variant.attributes:
            if name not in names:
                names.append(name)
    if names:
        return names

    return [variant_settings.COLOR_ATTRIBUTE_NAME]


def config_from_variants(names: Iterable[str], variants: Iterable) -> AttributeConfig:
    """
    Rebuild the value lists for ``names`` by scanning stored variants.

    Values appear in the order they are first met. A value whose last
    variant was deleted is not recoverable from here.
    """
    config = AttributeConfig()
    for name in names:
        config = config.add_attribute(name)

    for variant in variants:
        for name in config.names:
            value = variant.attributes.get(name)
            if value is not None and str(value).strip():
                config = config.add_value(name, value)
    return config


def is_color_attribute(name: Optional[str]) -> bool:
    """True for the conventional color attribute, case-insensitively."""
    if not name:
        return False
    return name.strip().lower() == variant_settings.COLOR_ATTRIBUTE_NAME.lower()
