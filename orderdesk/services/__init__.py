"""
                        Services Module

Business logic, one module per concern:
    - catalog: categories and menu items
    - pricing: validates requested items and computes totals
    - ledger: orders and snapshotted line items
    - status: order status state machine
    - notifications: live order events for admin displays
    - seed: default menu for a fresh store
"""

from orderdesk.services.catalog import CatalogStore, major_to_minor
from orderdesk.services.ledger import OrderLedger
from orderdesk.services.pricing import LineRequest, PricedLine, PricedOrder, normalize_qty, price_order
from orderdesk.services.status import StatusMachine

__all__ = [
    "CatalogStore",
    "major_to_minor",
    "OrderLedger",
    "LineRequest",
    "PricedLine",
    "PricedOrder",
    "normalize_qty",
    "price_order",
    "StatusMachine",
]
