"""
Progressive selector: narrows a shopper's choice one attribute at a time.

The selector walks the product's attribute names in order. ``Step(i)``
means the first ``i`` attributes have a chosen value and attribute ``i`` is
waiting for one; once every attribute is chosen the selector is resolved.
At each step only values held by some active variant that agrees with the
earlier choices are offered, so the walk always ends on existing variants.

Every transition returns a new ``SelectorState``; nothing here talks to the
backend. Stock for the resolved variant is fetched by the caller and fed
back with ``receive_stock``.
"""

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple

from apps.variants.conf import variant_settings
from apps.variants.exceptions import SelectionError
from apps.variants.services.records import VariantRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectorState:
    attribute_names: Tuple[str, ...]
    variants: Tuple[VariantRecord, ...]
    choices: Tuple[Tuple[str, str], ...] = ()
    initialized: bool = False
    matches: Tuple[VariantRecord, ...] = ()
    selected: Optional[VariantRecord] = None
    stock: Optional[Decimal] = None

    @property
    def step(self) -> int:
        return len(self.choices)

    @property
    def is_resolved(self) -> bool:
        return self.step == len(self.attribute_names)

    @property
    def current_attribute(self) -> Optional[str]:
        if self.is_resolved:
            return None
        return self.attribute_names[self.step]

    @property
    def selection(self) -> dict:
        return dict(self.choices)

    @property
    def needs_disambiguation(self) -> bool:
        return self.is_resolved and len(self.matches) > 1

    @property
    def stock_known(self) -> bool:
        return self.stock is not None


def _size_sort_key(value: str):
    order = [s.upper() for s in variant_settings.SIZE_ORDER]
    try:
        return (0, order.index(value.upper()), '')
    except ValueError:
        return (1, 0, value.lower())


def _is_size_attribute(name: str) -> bool:
    return name.strip().lower() == 'size'


def _candidates(variants: Iterable[VariantRecord], selections: dict) -> List[VariantRecord]:
    return [v for v in variants if v.attributes.agrees_with(selections)]


def values_for_step(state: SelectorState, index: int) -> List[str]:
    """
    Values offered for attribute ``index`` given the choices before it.

    Distinct values among agreeing active variants, in first-seen order;
    a ``Size`` attribute follows the configured apparel size order.
    """
    if index < 0 or index >= len(state.attribute_names):
        return []
    name = state.attribute_names[index]
    earlier = dict(state.choices[:index])

    values: List[str] = []
    for variant in _candidates(state.variants, earlier):
        value = variant.attributes.get(name)
        if value is not None and value not in values:
            values.append(value)

    if _is_size_attribute(name):
        values.sort(key=_size_sort_key)
    return values


def offered_values(state: SelectorState) -> List[str]:
    """Values offered for the attribute currently awaiting a choice."""
    if state.is_resolved:
        return []
    return values_for_step(state, state.step)


def matching_variants(state: SelectorState) -> List[VariantRecord]:
    """Active variants agreeing with every choice made so far."""
    return _candidates(state.variants, state.selection)


def _resolve(state: SelectorState) -> SelectorState:
    matches = tuple(matching_variants(state))
    selected = matches[0] if len(matches) == 1 else None
    if len(matches) > 1:
        logger.warning(
            f"[SELECTOR] {len(matches)} variants share the selection {state.selection}; "
            f"ids={[v.id for v in matches]}"
        )
    return replace(state, matches=matches, selected=selected, stock=None)


def start_selector(attribute_names: Iterable[str], variants: Iterable[VariantRecord]) -> SelectorState:
    """
    Build the selector in ``Step(0)`` over the active variants.

    A product with no attributes is resolved immediately.
    """
    state = SelectorState(
        attribute_names=tuple(attribute_names),
        variants=tuple(v for v in variants if v.is_active),
    )
    if state.is_resolved:
        return _resolve(state)
    return state


def initialize(state: SelectorState) -> SelectorState:
    """
    First-render auto choice of the first available value of attribute 0.

    Runs once; calling it again (e.g. on re-render) returns the state
    unchanged.
    """
    if state.initialized:
        return state
    state = replace(state, initialized=True)
    if state.step != 0 or state.is_resolved:
        return state
    values = offered_values(state)
    if not values:
        return state
    return choose(state, 0, values[0])


def choose(state: SelectorState, index: int, value: str) -> SelectorState:
    """
    Choose ``value`` for the attribute at ``index``.

    Any already decided step may be re-chosen; choices after ``index`` are
    discarded and the resolved variant (and its stock) is cleared.

    Raises:
        SelectionError: step not yet reachable, or value not offered there
    """
    if index < 0 or index >= len(state.attribute_names):
        raise SelectionError(f'Etapa {index} inexistente')
    if index > state.step:
        raise SelectionError(
            f"Etapa {index} ainda não disponível; escolha '{state.current_attribute}' primeiro"
        )
    if value not in values_for_step(state, index):
        raise SelectionError(
            f"Valor '{value}' indisponível para '{state.attribute_names[index]}'"
        )

    choices = state.choices[:index] + ((state.attribute_names[index], value),)
    state = replace(state, choices=choices, matches=(), selected=None, stock=None)
    if state.is_resolved:
        return _resolve(state)
    return state


def choose_attribute(state: SelectorState, name: str, value: str) -> SelectorState:
    """``choose`` addressed by attribute name instead of step index."""
    try:
        index = state.attribute_names.index(name)
    except ValueError:
        raise SelectionError(f"Atributo '{name}' não faz parte do seletor")
    return choose(state, index, value)


def apply_selections(state: SelectorState, selections: dict) -> SelectorState:
    """
    Replay selections in attribute order, stopping at the first gap.

    Used to rebuild the state from a query string; a value that is not
    offered stops the replay at that step instead of failing.
    """
    for index, name in enumerate(state.attribute_names):
        if name not in selections:
            break
        value = selections[name]
        if value not in values_for_step(state, index):
            logger.info(f"[SELECTOR] Ignoring unavailable {name}={value!r} and later choices")
            break
        state = choose(state, index, value)
    return state


def reset(state: SelectorState) -> SelectorState:
    """Back to ``Step(0)`` with nothing chosen."""
    state = replace(state, choices=(), matches=(), selected=None, stock=None)
    if state.is_resolved:
        return _resolve(state)
    return state


def select_variant(state: SelectorState, variant_id: int) -> SelectorState:
    """Pick one variant out of an ambiguous resolution."""
    if not state.is_resolved:
        raise SelectionError('Seleção incompleta')
    for variant in state.matches:
        if variant.id == variant_id:
            return replace(state, selected=variant, stock=None)
    raise SelectionError(f'Variante {variant_id} não corresponde à seleção')


def receive_stock(state: SelectorState, variant_id: int, quantity: Optional[Decimal]) -> SelectorState:
    """
    Record a stock reading if it belongs to the selected variant.

    Readings for a variant that is no longer selected are stale and are
    dropped. ``None`` keeps stock unknown.
    """
    if state.selected is None or state.selected.id != variant_id:
        logger.debug(f"[SELECTOR] Dropping stock for variant {variant_id}; not selected")
        return state
    return replace(state, stock=quantity)


def displayed_stock(state: SelectorState, fallback_total: Optional[Decimal] = None) -> Optional[Decimal]:
    """The selected variant's stock, or the product total while unknown."""
    if state.stock_known:
        return state.stock
    return fallback_total
