"""
Pricing & Validation Engine

The only place order totals are computed. Callers send item ids and
quantities; names and prices always come from the live catalog, and are
copied into frozen snapshots for the ledger.

All-or-nothing: the first missing or disabled item rejects the whole
order before anything is written.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from orderdesk.database import MAX_INTEGER
from orderdesk.errors import EmptyOrder, ItemUnavailable, ValidationError
from orderdesk.services.catalog import CatalogStore

logger = logging.getLogger(__name__)

# Most of one item a single order line may ask for
MAX_QTY = 1000


@dataclass(frozen=True)
class LineRequest:
    """One requested item as received from the caller."""
    item_id: Optional[int]
    qty: Any = None


@dataclass(frozen=True)
class PricedLine:
    """Normalized line with the name and price captured right now."""
    item_id: int
    qty: int
    item_name_snapshot: str
    price_cents_snapshot: int

    @property
    def line_total_cents(self) -> int:
        return self.price_cents_snapshot * self.qty


@dataclass(frozen=True)
class PricedOrder:
    total_cents: int
    lines: list[PricedLine] = field(default_factory=list)


def normalize_qty(qty: Any) -> int:
    """
    Coerce a requested quantity to a positive integer.

    Missing or unparseable values count as 1; numbers are floored and
    anything below 1 becomes 1.

    Raises:
        ValidationError: more than ``MAX_QTY``
    """
    if qty is None or isinstance(qty, bool):
        return 1
    try:
        value = float(qty)
    except (TypeError, ValueError):
        return 1
    except OverflowError:
        if qty < 0:
            return 1
        value = math.inf
    else:
        if not math.isfinite(value):
            return 1
    if value > MAX_QTY:
        raise ValidationError({"qty": f"must be at most {MAX_QTY}"})
    return max(1, math.floor(value))


async def price_order(catalog: CatalogStore, requests: Iterable[LineRequest]) -> PricedOrder:
    """
    Validate requested items against the catalog and total them.

    Raises:
        EmptyOrder: no items were requested
        ItemUnavailable: an item does not exist or is switched off
        ValidationError: a quantity or the order total is too large
    """
    requests = list(requests)
    if not requests:
        raise EmptyOrder()

    total = 0
    lines = []
    for request in requests:
        item = await catalog.find_item(request.item_id)
        if item is None or not item.available:
            logger.info(f"Order rejected: item {request.item_id} unavailable")
            raise ItemUnavailable(request.item_id)

        qty = normalize_qty(request.qty)
        total += item.price_cents * qty
        lines.append(PricedLine(
            item_id=item.id,
            qty=qty,
            item_name_snapshot=item.name,
            price_cents_snapshot=item.price_cents,
        ))

    if total > MAX_INTEGER:
        raise ValidationError({"total": "is too large"})
    return PricedOrder(total_cents=total, lines=lines)
