"""
SQLAlchemy Database Models

Relational layout for the catalog and the order ledger:
    - menu_categories / menu_items: the live, mutable catalog
    - orders / order_items: the ledger; line items carry frozen
      name and price snapshots taken when the order was placed

All money columns hold integer minor units (cents).
"""

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from orderdesk.database import Base


class OrderStatus(str, enum.Enum):
    """Order status workflow."""
    NEW = "NEW"
    PREPARING = "PREPARING"
    READY = "READY"
    COMPLETED = "COMPLETED"


class Category(Base):
    """Menu section, e.g. Burgers or Drinks."""
    __tablename__ = "menu_categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)

    items = relationship("MenuItem", back_populates="category", order_by="MenuItem.id")

    def __repr__(self):
        return f"<Category #{self.id} - {self.name}>"


class MenuItem(Base):
    """Sellable item with its current price and availability."""
    __tablename__ = "menu_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    category_id = Column(Integer, ForeignKey("menu_categories.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    price_cents = Column(Integer, nullable=False)
    available = Column(Boolean, nullable=False, default=True)

    category = relationship("Category", back_populates="items")

    def __repr__(self):
        return f"<MenuItem #{self.id} - {self.name} - {self.price_cents}>"


class Order(Base):
    """
    Customer order.

    Created together with its line items in one transaction. After that
    only ``status`` changes; ``total_cents`` is never recomputed.
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # =========================================================================
    # CUSTOMER INFORMATION
    # =========================================================================
    customer_name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=False)

    # =========================================================================
    # PRICING
    # =========================================================================
    total_cents = Column(Integer, nullable=False)

    # =========================================================================
    # ORDER STATUS
    # =========================================================================
    status = Column(
        Enum(OrderStatus, native_enum=False, length=16),
        default=OrderStatus.NEW,
        nullable=False,
        index=True
    )

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    line_items = relationship(
        "OrderLineItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLineItem.id",
    )

    def __repr__(self):
        return f"<Order #{self.id} - {self.customer_name} - {self.status.value}>"


class OrderLineItem(Base):
    """
    One ordered item with its frozen snapshot.

    ``item_id`` is only a lookup hint for showing the item's current
    name; it is not a foreign key, so a removed menu item never breaks
    reads of past orders.
    """
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, nullable=False)
    qty = Column(Integer, nullable=False)
    item_name_snapshot = Column(String(100), nullable=False)
    price_cents_snapshot = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="line_items")

    @property
    def line_total_cents(self) -> int:
        return self.price_cents_snapshot * self.qty

    def __repr__(self):
        return f"<OrderLineItem #{self.id} - {self.qty} x {self.item_name_snapshot}>"
