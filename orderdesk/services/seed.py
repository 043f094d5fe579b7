"""
Default Catalog

Starter menu written on first boot so a fresh install can take orders
straight away. Nothing is written when any category already exists.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.database import commit_or_rollback
from orderdesk.models import Category, MenuItem
from orderdesk.services.catalog import CatalogStore

logger = logging.getLogger(__name__)

DEFAULT_MENU = [
    {
        "name": "Burgers",
        "sort_order": 1,
        "items": [
            {"name": "Classic Burger", "description": "150g beef patty, lettuce, tomato", "price_cents": 8500},
            {"name": "Cheese Burger", "description": "Beef patty with cheddar", "price_cents": 9500},
        ],
    },
    {
        "name": "Sides",
        "sort_order": 2,
        "items": [
            {"name": "Chips", "description": "Crispy fries", "price_cents": 3500},
        ],
    },
    {
        "name": "Drinks",
        "sort_order": 3,
        "items": [
            {"name": "Cola", "description": "330ml can", "price_cents": 2000},
        ],
    },
]


async def seed_catalog(session: AsyncSession, menu: list[dict] = DEFAULT_MENU) -> bool:
    """
    Insert ``menu`` in a single transaction if the catalog is empty.

    Returns:
        True if anything was written
    """
    if await CatalogStore(session).count_categories() > 0:
        logger.debug("Catalog already populated, skipping seed")
        return False

    for entry in menu:
        category = Category(name=entry["name"], sort_order=entry.get("sort_order", 0))
        category.items = [
            MenuItem(
                name=item["name"],
                description=item.get("description", ""),
                price_cents=item["price_cents"],
                available=item.get("available", True),
            )
            for item in entry.get("items", [])
        ]
        session.add(category)
    await commit_or_rollback(session)

    logger.info(f"Seeded catalog with {len(menu)} categories")
    return True
