# order_hub/db_models.py
"""
SQLAlchemy ORM Models for Order Hub.

Articles, clients and orders. Order lines and their confirmations are owned
by the order and live in child tables.
"""
from __future__ import annotations
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
import enum

from sqlalchemy import (
    String, Integer, BigInteger, Boolean, Text, Date, DateTime,
    Numeric, ForeignKey, Index, CheckConstraint, UniqueConstraint,
    Enum as SQLEnum, JSON, func
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from order_hub.database import Base

# ============================================================================
# ENUMS
# ============================================================================

class ProductFamily(str, enum.Enum):
    bulk_niv2 = "APS BulkNiv2"
    finished_product = "APS Finished Product"
    laser_box = "APS Laser Box"
    packaging_label = "APS Packaging Label"
    copier_box = "APS Copier Box"
    cartridge_label = "APS Cartridge Label"
    airbag_insert_inlay = "APS Airbag/Insert/Inlay"
    packaging_other = "APS Packaging Other"


class UnitOfMeasure(str, enum.Enum):
    piece = "PCE"
    kilogram = "KG"
    liter = "L"
    meter = "M"


class OrderType(str, enum.Enum):
    build_to_order = "ZIG"
    ship_from_stock = "STD"


class OrderStatus(str, enum.Enum):
    draft = "draft"
    confirmed = "confirmed"
    in_preparation = "in_preparation"
    shipped = "shipped"
    delivered = "delivered"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# ============================================================================
# MIXIN for updated_at
# ============================================================================

class TimestampMixin:
    """Mixin for created_at and updated_at columns."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        onupdate=func.now(),
        nullable=False
    )
    # fetch the SQL-side timestamps on flush; async sessions cannot lazy-load them
    __mapper_args__ = {"eager_defaults": True}


# ============================================================================
# 1. ARTICLES
# ============================================================================

class Article(TimestampMixin, Base):
    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    article_number: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    designation: Mapped[str] = mapped_column(String(500), nullable=False)
    technology: Mapped[str] = mapped_column(String(100), nullable=False)
    product_family: Mapped[ProductFamily] = mapped_column(
        SQLEnum(ProductFamily, name="product_family", values_callable=_enum_values),
        default=ProductFamily.bulk_niv2,
        nullable=False
    )
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    unit: Mapped[UnitOfMeasure] = mapped_column(
        SQLEnum(UnitOfMeasure, name="unit_of_measure", values_callable=_enum_values),
        default=UnitOfMeasure.piece,
        nullable=False
    )
    stock_on_hand: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    stock_reserved: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @property
    def stock_available(self) -> int:
        """Computed available quantity."""
        return self.stock_on_hand - self.stock_reserved

    __table_args__ = (
        CheckConstraint("unit_price >= 0", name="chk_articles_price_non_negative"),
        CheckConstraint("stock_on_hand >= 0", name="chk_articles_on_hand_non_negative"),
        CheckConstraint("stock_reserved >= 0", name="chk_articles_reserved_non_negative"),
        CheckConstraint("stock_reserved <= stock_on_hand", name="chk_articles_reserved_le_on_hand"),
        Index("idx_articles_technology", "technology"),
        Index("idx_articles_family", "product_family"),
    )


# ============================================================================
# 2. CLIENTS
# ============================================================================

class Client(TimestampMixin, Base):
    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    client_number: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    fax: Mapped[str] = mapped_column(String(50), default="", nullable=False)
    # {"street", "city", "postal_code", "country"}
    billing_address: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    delivery_address: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    same_delivery_address: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @property
    def effective_delivery_address(self) -> dict:
        return self.billing_address if self.same_delivery_address else self.delivery_address

    __table_args__ = (
        Index("idx_clients_name", "name"),
        Index("idx_clients_company", "company"),
    )


# ============================================================================
# 3. ORDERS
# ============================================================================

class Order(TimestampMixin, Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    order_number: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    client_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False)
    # Display name captured at creation so later client edits do not rewrite history
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    delivery_date: Mapped[date] = mapped_column(Date, nullable=False)
    order_type: Mapped[OrderType] = mapped_column(
        SQLEnum(OrderType, name="order_type", values_callable=_enum_values),
        default=OrderType.build_to_order,
        nullable=False
    )
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus, name="order_status"),
        default=OrderStatus.draft,
        nullable=False
    )
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=Decimal("20"), nullable=False)
    amount_pre_tax: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    amount_tax: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    amount_total: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)

    # Relationships
    lines: Mapped[List["OrderLine"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.position",
        lazy="selectin",
    )

    @property
    def is_confirmed(self) -> bool:
        return self.status != OrderStatus.draft

    __table_args__ = (
        CheckConstraint("tax_rate >= 0", name="chk_orders_tax_rate_non_negative"),
        Index("idx_orders_client", "client_id"),
        Index("idx_orders_status", "status"),
        Index("idx_orders_created", "created_at"),
    )


# ============================================================================
# 4. ORDER LINES
# ============================================================================

class OrderLine(Base):
    __tablename__ = "order_lines"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    order_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    article_id: Mapped[Optional[int]] = mapped_column(BigInteger, ForeignKey("articles.id", ondelete="SET NULL"))

    # Snapshot of the article at order time
    article_number: Mapped[str] = mapped_column(String(100), nullable=False)
    designation: Mapped[str] = mapped_column(String(500), nullable=False)
    technology: Mapped[str] = mapped_column(String(100), nullable=False)
    product_family: Mapped[str] = mapped_column(String(50), nullable=False)
    unit: Mapped[str] = mapped_column(String(10), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    quantity_ordered: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity_to_ship: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    quantity_shipped: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    quantity_in_preparation: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relationships
    order: Mapped["Order"] = relationship(back_populates="lines")
    confirmations: Mapped[List["OrderLineConfirmation"]] = relationship(
        back_populates="line",
        cascade="all, delete-orphan",
        order_by="OrderLineConfirmation.id",
        lazy="selectin",
    )

    @property
    def quantity_confirmed(self) -> int:
        return sum(c.quantity for c in self.confirmations)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity_ordered

    __table_args__ = (
        UniqueConstraint("order_id", "position", name="uq_order_lines_position"),
        CheckConstraint("quantity_ordered >= 1", name="chk_order_lines_qty_positive"),
        CheckConstraint("quantity_to_ship >= 0", name="chk_order_lines_to_ship_non_negative"),
        CheckConstraint("quantity_shipped >= 0", name="chk_order_lines_shipped_non_negative"),
        CheckConstraint("quantity_in_preparation >= 0", name="chk_order_lines_prep_non_negative"),
        Index("idx_order_lines_order", "order_id"),
        Index("idx_order_lines_article", "article_id"),
    )


# ============================================================================
# 5. ORDER LINE CONFIRMATIONS (APPEND-ONLY)
# ============================================================================

class OrderLineConfirmation(Base):
    __tablename__ = "order_line_confirmations"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    line_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("order_lines.id", ondelete="CASCADE"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    confirmed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    line: Mapped["OrderLine"] = relationship(back_populates="confirmations")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_line_confirmations_qty_positive"),
        Index("idx_line_confirmations_line", "line_id"),
    )


# ============================================================================
# 6. NUMBER SEQUENCES
# ============================================================================

class NumberSequence(Base):
    """Per-kind, per-year counter behind CLI-/CMD- numbers."""
    __tablename__ = "number_sequences"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("kind", "year", name="uq_number_sequences"),
    )
