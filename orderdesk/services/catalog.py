"""
Catalog Store

Categories and menu items: what the vendor sells, at what price, and
whether it can be ordered right now. Prices live here as integer minor
units; past orders never read them back (they keep snapshots).
"""

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from orderdesk.database import MAX_INTEGER, commit_or_rollback, fits_integer
from orderdesk.errors import CategoryNotFound, ItemNotFound, ValidationError
from orderdesk.models import Category, MenuItem

logger = logging.getLogger(__name__)


def major_to_minor(amount: Union[Decimal, float, int, str]) -> int:
    """
    Convert a major-unit price (85.5) to integer minor units (8550).

    Rounds half up to the nearest minor unit. Goes through ``Decimal``
    so 19.99 becomes 1999 and not 1998.
    """
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        raise ValidationError({"price": "must be a number"})
    if not value.is_finite():
        raise ValidationError({"price": "must be a number"})
    if value < 0:
        raise ValidationError({"price": "must not be negative"})
    cents = int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if cents > MAX_INTEGER:
        raise ValidationError({"price": "is too large"})
    return cents


class CatalogStore:
    """Catalog reads and admin writes bound to one session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    # =========================================================================
    # READS
    # =========================================================================

    async def list_categories_with_items(self) -> list[Category]:
        """Categories by (sort_order, name), each with items by id."""
        result = await self.session.execute(
            select(Category)
            .options(selectinload(Category.items))
            .order_by(Category.sort_order.asc(), Category.name.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_item(self, item_id: int) -> MenuItem:
        item = await self.session.get(MenuItem, item_id) if fits_integer(item_id) else None
        if item is None:
            raise ItemNotFound(item_id)
        return item

    async def find_item(self, item_id: Optional[int]) -> Optional[MenuItem]:
        """Like ``get_item`` but returns None instead of raising."""
        if not fits_integer(item_id):
            return None
        # Always read the committed price, never a stale identity-map copy
        return await self.session.get(MenuItem, item_id, populate_existing=True)

    async def count_categories(self) -> int:
        result = await self.session.execute(select(func.count(Category.id)))
        return result.scalar() or 0

    # =========================================================================
    # WRITES
    # =========================================================================

    async def create_category(self, name: str, sort_order: int = 0) -> Category:
        if not name or not name.strip():
            raise ValidationError({"name": "is required"})
        if not fits_integer(sort_order):
            raise ValidationError({"sortOrder": "is out of range"})

        category = Category(name=name.strip(), sort_order=sort_order)
        self.session.add(category)
        await commit_or_rollback(self.session)
        logger.info(f"Category #{category.id} '{category.name}' created")
        return category

    async def create_item(
        self,
        category_id: int,
        name: str,
        description: str = "",
        price_cents: int = 0,
        available: bool = True,
    ) -> MenuItem:
        """Add an item to an existing category."""
        missing = {}
        if category_id is None:
            missing["categoryId"] = "is required"
        if not name or not name.strip():
            missing["name"] = "is required"
        if price_cents is None:
            missing["price"] = "is required"
        elif price_cents < 0:
            missing["price"] = "must not be negative"
        elif price_cents > MAX_INTEGER:
            missing["price"] = "is too large"
        if missing:
            raise ValidationError(missing)

        if not fits_integer(category_id) or await self.session.get(Category, category_id) is None:
            raise CategoryNotFound(category_id)

        item = MenuItem(
            category_id=category_id,
            name=name.strip(),
            description=description or "",
            price_cents=price_cents,
            available=bool(available),
        )
        self.session.add(item)
        await commit_or_rollback(self.session)
        logger.info(f"Menu item #{item.id} '{item.name}' created at {item.price_cents} cents")
        return item

    async def update_item(
        self,
        item_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        price_cents: Optional[int] = None,
    ) -> MenuItem:
        """
        Partial update: None means "leave as is".

        Changing the price affects future orders only.
        """
        item = await self.get_item(item_id)

        if name is not None:
            if not name.strip():
                raise ValidationError({"name": "must not be empty"})
            item.name = name.strip()
        if description is not None:
            item.description = description
        if price_cents is not None:
            if price_cents < 0:
                raise ValidationError({"price": "must not be negative"})
            if price_cents > MAX_INTEGER:
                raise ValidationError({"price": "is too large"})
            item.price_cents = price_cents

        await commit_or_rollback(self.session)
        logger.info(f"Menu item #{item.id} updated")
        return item

    async def set_availability(self, item_id: int, available: bool) -> MenuItem:
        item = await self.get_item(item_id)
        item.available = bool(available)
        await commit_or_rollback(self.session)
        logger.info(f"Menu item #{item.id} available={item.available}")
        return item
