"""
Per-variant stock lookups and product availability.
"""

import asyncio
import inspect
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Optional, Protocol

from asgiref.sync import async_to_sync, sync_to_async

from apps.variants.conf import variant_settings

logger = logging.getLogger(__name__)


class StockLookup(Protocol):
    """Stock for one variant; None means no inventory record (zero stock)."""

    def get_quantity(self, variant_id: int, warehouse_id: Optional[int] = None) -> Optional[Decimal]:
        ...


class DjangoStockLookup:
    """
    StockLookup over ``VariantInventory`` rows.

    Without a warehouse the quantities of every warehouse are added up.
    """

    # ORM calls must stay on the thread that owns the connection
    thread_sensitive = True

    def get_quantity(self, variant_id: int, warehouse_id: Optional[int] = None) -> Optional[Decimal]:
        from django.db.models import Sum
        from apps.variants.models import VariantInventory

        rows = VariantInventory.objects.filter(variant_id=variant_id)
        if warehouse_id is not None:
            rows = rows.filter(warehouse_id=warehouse_id)
        return rows.aggregate(total=Sum('quantity'))['total']

    def product_total(self, product_id: int, warehouse_id: Optional[int] = None) -> Decimal:
        from django.db.models import Sum
        from apps.variants.models import VariantInventory

        rows = VariantInventory.objects.filter(variant__product_id=product_id, variant__is_active=True)
        if warehouse_id is not None:
            rows = rows.filter(warehouse_id=warehouse_id)
        return rows.aggregate(total=Sum('quantity'))['total'] or Decimal('0')


async def fetch_stock_levels(lookup: StockLookup,
                             variant_ids: Iterable[int],
                             warehouse_id: Optional[int] = None) -> Dict[int, Optional[Decimal]]:
    """
    Query every variant's stock at once.

    Lookups are independent: none waits for or cancels another. "Not
    found" becomes zero; a failed lookup becomes None (unknown) and is
    logged, the other results are still returned.
    """
    variant_ids = list(dict.fromkeys(variant_ids))
    if warehouse_id is None:
        warehouse_id = variant_settings.DEFAULT_WAREHOUSE_ID

    if inspect.iscoroutinefunction(lookup.get_quantity):
        query = lookup.get_quantity
    else:
        query = sync_to_async(
            lookup.get_quantity,
            thread_sensitive=getattr(lookup, 'thread_sensitive', False),
        )

    results = await asyncio.gather(
        *(query(variant_id, warehouse_id) for variant_id in variant_ids),
        return_exceptions=True,
    )

    levels: Dict[int, Optional[Decimal]] = {}
    for variant_id, result in zip(variant_ids, results):
        if isinstance(result, Exception):
            logger.warning(f"[STOCK] Lookup failed for variant {variant_id}: {result}")
            levels[variant_id] = None
        elif result is None:
            levels[variant_id] = Decimal('0')
        else:
            levels[variant_id] = Decimal(str(result))
    return levels


def get_stock_levels(lookup: StockLookup,
                     variant_ids: Iterable[int],
                     warehouse_id: Optional[int] = None) -> Dict[int, Optional[Decimal]]:
    """Blocking wrapper around ``fetch_stock_levels`` for sync views."""
    return async_to_sync(fetch_stock_levels)(lookup, variant_ids, warehouse_id)


@dataclass(frozen=True)
class Availability:
    quantity: Optional[Decimal]
    is_out_of_stock: bool
    is_available: bool

    def as_dict(self) -> dict:
        return {
            'quantity': self.quantity,
            'isOutOfStock': self.is_out_of_stock,
            'isAvailable': self.is_available,
        }


def availability(quantity: Optional[Decimal],
                 sell_when_out_of_stock: bool = False,
                 always_available: bool = False) -> Availability:
    """
    Whether a product (or variant) can be bought.

    Unknown stock counts as none. Either flag keeps an out of stock item
    purchasable.
    """
    out_of_stock = quantity is None or quantity <= 0
    return Availability(
        quantity=quantity,
        is_out_of_stock=out_of_stock,
        is_available=not out_of_stock or sell_when_out_of_stock or always_available,
    )
