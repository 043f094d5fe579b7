"""
Order Ledger

Durable record of orders and their line items.

Guarantees:
    - an order and all of its line items are written in one transaction;
      any failure rolls the whole order back
    - line items keep the name and price they had when the order was
      placed, and ``total_cents`` is never recomputed afterwards
    - every successful create or status change is broadcast to the
      connected observers once the transaction has committed

Reads join in each item's current menu name for display. A menu item
that no longer exists simply shows its snapshot name.
"""

import logging
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from orderdesk.database import commit_or_rollback, fits_integer
from orderdesk.errors import EmptyOrder, OrderNotFound, ValidationError
from orderdesk.models import MenuItem, Order, OrderLineItem, OrderStatus
from orderdesk.schemas import LineItemRead, OrderRead
from orderdesk.services.catalog import CatalogStore
from orderdesk.services.notifications import EVENT_ORDER_NEW, EVENT_ORDER_UPDATE, Broadcaster
from orderdesk.services.pricing import MAX_QTY, LineRequest, PricedLine, price_order
from orderdesk.services.status import StatusMachine

logger = logging.getLogger(__name__)


def to_order_read(order: Order, current_names: dict[int, str]) -> OrderRead:
    """Build the display form of an order with its line items attached."""
    items = []
    for line in order.line_items:
        current_name = current_names.get(line.item_id)
        items.append(LineItemRead(
            id=line.id,
            item_id=line.item_id,
            qty=line.qty,
            item_name_snapshot=line.item_name_snapshot,
            price_cents_snapshot=line.price_cents_snapshot,
            line_total_cents=line.line_total_cents,
            current_name=current_name,
            name=current_name or line.item_name_snapshot,
        ))

    return OrderRead(
        id=order.id,
        customer_name=order.customer_name,
        phone=order.phone,
        total_cents=order.total_cents,
        status=order.status,
        created_at=order.created_at,
        items=items,
    )


class OrderLedger:
    """Order reads and writes bound to one session."""

    def __init__(
        self,
        session: AsyncSession,
        broadcaster: Optional[Broadcaster] = None,
        status_machine: Optional[StatusMachine] = None,
    ):
        self.session = session
        self.broadcaster = broadcaster
        self.status_machine = status_machine or StatusMachine()

    # =========================================================================
    # CREATE
    # =========================================================================

    async def place_order(
        self,
        customer_name: str,
        phone: str,
        requests: Iterable[LineRequest],
    ) -> OrderRead:
        """Validate the customer, price the requested items, then record the order."""
        self._validate_customer(customer_name, phone)
        priced = await price_order(CatalogStore(self.session), requests)
        return await self.create_order(customer_name, phone, priced.lines, priced.total_cents)

    async def create_order(
        self,
        customer_name: str,
        phone: str,
        lines: Iterable[PricedLine],
        total_cents: int,
    ) -> OrderRead:
        """
        Persist a priced order and its line items atomically.

        Raises:
            ValidationError: missing customer fields, bad quantities, or a
                total that does not match the line items
            EmptyOrder: no line items
        """
        customer_name, phone = self._validate_customer(customer_name, phone)
        lines = list(lines)
        if not lines:
            raise EmptyOrder()
        if any(line.qty < 1 for line in lines):
            raise ValidationError({"qty": "must be at least 1"})
        if any(line.qty > MAX_QTY for line in lines):
            raise ValidationError({"qty": f"must be at most {MAX_QTY}"})

        expected = sum(line.line_total_cents for line in lines)
        if total_cents != expected:
            raise ValidationError({"total": f"does not match line items ({expected})"})

        order = Order(
            customer_name=customer_name,
            phone=phone,
            total_cents=total_cents,
            status=OrderStatus.NEW,
        )
        order.line_items = [
            OrderLineItem(
                item_id=line.item_id,
                qty=line.qty,
                item_name_snapshot=line.item_name_snapshot,
                price_cents_snapshot=line.price_cents_snapshot,
            )
            for line in lines
        ]

        self.session.add(order)
        await commit_or_rollback(self.session)
        logger.info(
            f"Order #{order.id} created for {customer_name}: "
            f"{len(lines)} line(s), {total_cents} cents"
        )

        hydrated = await self.get_order(order.id)
        await self._notify(EVENT_ORDER_NEW, hydrated)
        return hydrated

    # =========================================================================
    # READ
    # =========================================================================

    async def get_order(self, order_id: int) -> OrderRead:
        if not fits_integer(order_id):
            raise OrderNotFound(order_id)
        result = await self.session.execute(
            select(Order)
            .options(selectinload(Order.line_items))
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise OrderNotFound(order_id)

        names = await self._current_names([order])
        return to_order_read(order, names)

    async def list_active(self) -> list[OrderRead]:
        """Every order that is not COMPLETED, newest first."""
        result = await self.session.execute(
            select(Order)
            .options(selectinload(Order.line_items))
            .where(Order.status != OrderStatus.COMPLETED)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .execution_options(populate_existing=True)
        )
        orders = list(result.scalars().all())
        names = await self._current_names(orders)
        return [to_order_read(order, names) for order in orders]

    # =========================================================================
    # STATUS
    # =========================================================================

    async def update_status(self, order_id: int, new_status) -> OrderRead:
        """
        Move an order to ``new_status`` if the state machine allows it.

        Raises:
            InvalidStatus: not one of NEW, PREPARING, READY, COMPLETED
            OrderNotFound: no such order
            InvalidTransition: refused by the strict state machine
        """
        target = self.status_machine.parse(new_status)

        order = None
        if fits_integer(order_id):
            order = await self.session.get(Order, order_id, populate_existing=True)
        if order is None:
            raise OrderNotFound(order_id)

        previous = order.status
        self.status_machine.check(previous, target)
        order.status = target
        await commit_or_rollback(self.session)
        logger.info(f"Order #{order_id} status {previous.value} -> {target.value}")

        hydrated = await self.get_order(order_id)
        await self._notify(EVENT_ORDER_UPDATE, hydrated)
        return hydrated

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _validate_customer(customer_name: str, phone: str) -> tuple[str, str]:
        customer_name = (customer_name or "").strip()
        phone = (phone or "").strip()
        missing = {}
        if not customer_name:
            missing["customerName"] = "is required"
        if not phone:
            missing["phone"] = "is required"
        if missing:
            raise ValidationError(missing)
        return customer_name, phone

    async def _current_names(self, orders: list[Order]) -> dict[int, str]:
        item_ids = {line.item_id for order in orders for line in order.line_items}
        if not item_ids:
            return {}
        result = await self.session.execute(
            select(MenuItem.id, MenuItem.name).where(MenuItem.id.in_(item_ids))
        )
        return {item_id: name for item_id, name in result.all()}

    async def _notify(self, event: str, order: OrderRead) -> None:
        if self.broadcaster is None:
            return
        try:
            await self.broadcaster.publish(event, order.model_dump(mode="json"))
        except Exception as e:
            # Delivery is best effort; the order is already committed
            logger.error(f"Failed to broadcast {event} for order #{order.id}: {e}")
