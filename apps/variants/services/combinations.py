"""
Cartesian product of attribute values into candidate variants.

A ``VariantCombination`` is one full assignment of a value to every
configured attribute. It is immutable and compares (and hashes) by content,
so ``{"Color": "Red", "Size": "M"}`` equals ``{"Size": "M", "Color": "Red"}``
and can be used as a dict key when reconciling against stored variants.
"""

import json
from collections.abc import Mapping
from itertools import product
from typing import Dict, Iterable, Iterator, List, Optional, Tuple


class VariantCombination(Mapping):
    """Immutable attribute name -> value mapping with order-independent equality."""

    __slots__ = ('_items', '_lookup', '_hash')

    def __init__(self, items: Optional[Iterable[Tuple[str, str]]] = None, **kwargs):
        if isinstance(items, Mapping):
            items = items.items()
        pairs = list(items or []) + list(kwargs.items())
        lookup: Dict[str, str] = {}
        ordered: List[Tuple[str, str]] = []
        for name, value in pairs:
            name, value = str(name), str(value)
            if name in lookup:
                # Later assignment wins but keeps the first position
                ordered = [(n, value if n == name else v) for n, v in ordered]
            else:
                ordered.append((name, value))
            lookup[name] = value
        self._items = tuple(ordered)
        self._lookup = lookup
        self._hash = hash(frozenset(self._items))

    def __getitem__(self, name: str) -> str:
        return self._lookup[name]

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other) -> bool:
        if isinstance(other, VariantCombination):
            return self._hash == other._hash and self._lookup == other._lookup
        if isinstance(other, Mapping):
            return self._lookup == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        inner = ', '.join(f'{name!r}: {value!r}' for name, value in self._items)
        return f'VariantCombination({{{inner}}})'

    def agrees_with(self, selections: Mapping) -> bool:
        """True when every (name, value) in ``selections`` is present here."""
        return all(self._lookup.get(name) == value for name, value in selections.items())

    def label(self, separator: str = ' / ') -> str:
        """Human readable name, e.g. ``Red / M``."""
        return separator.join(value for _, value in self._items)

    def to_json(self) -> str:
        """Serialize to the ``attributes`` JSON object text used on the wire."""
        return json.dumps(dict(self._items), ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: str) -> 'VariantCombination':
        """
        Parse an ``attributes`` JSON object text.

        Raises ValueError when the text is not a JSON object of scalars;
        the codec decides how to degrade.
        """
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError('attributes must be a JSON object')
        pairs = []
        for name, value in data.items():
            if value is None or isinstance(value, (dict, list)):
                raise ValueError(f"attribute '{name}' must hold a scalar value")
            pairs.append((name, value))
        return cls(pairs)


def generate_combinations(config) -> List[VariantCombination]:
    """
    Build every combination of the configured attribute values.

    Attributes are iterated in configuration order and, within each, values
    in their configured order, so the output is in the lexicographic order
    that ordering induces.

    Args:
        config: AttributeConfig (ordered attribute name -> ordered values)

    Returns:
        List of VariantCombination, empty when there are no attributes or
        when any attribute has no values yet.
    """
    names = list(config.names)
    if not names:
        return []

    value_lists = [config.values(name) for name in names]
    if any(not values for values in value_lists):
        return []

    return [
        VariantCombination(zip(names, values))
        for values in product(*value_lists)
    ]


def count_combinations(config) -> int:
    """Number of combinations ``generate_combinations`` would produce."""
    names = list(config.names)
    if not names:
        return 0
    total = 1
    for name in names:
        total *= len(config.values(name))
    return total
