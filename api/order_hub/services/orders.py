# order_hub/services/orders.py
"""
Order Service - the order aggregate.

Handles:
- Order creation with stock reservation per line
- Wholesale line replacement and incremental line addition (draft only)
- Totals (pre-tax, tax, tax-inclusive) recomputed whenever lines change
- Confirmation with per-line confirmation records
- Deletion with release of reserved stock

Stock is reserved when an order is created. A failure on any line releases
what the same call already reserved before the error propagates.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from order_hub.db_models import (
    Article, Order, OrderLine, OrderLineConfirmation, OrderStatus,
)
from order_hub.errors import (
    OrderHubError, OrderNotFoundError, ClientNotFoundError,
    AlreadyConfirmedError, OrderLockedError, ValidationError,
)
from order_hub.models import OrderCreate, OrderUpdate, OrderLineIn
from order_hub.services.catalog import CatalogService
from order_hub.services.clients import ClientService
from order_hub.services.numbering import NumberingService
from order_hub.settings import settings

CENT = Decimal("0.01")

# (article_id, quantity) pairs held by an order
Reservation = Tuple[Optional[int], int]


# ============================================================================
# Totals
# ============================================================================

@dataclass(frozen=True)
class Totals:
    pre_tax: Decimal
    tax: Decimal
    total: Decimal


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_totals(lines: Iterable, tax_rate) -> Totals:
    """
    pre_tax = sum(quantity_ordered * unit_price), tax = pre_tax * rate / 100,
    total = pre_tax + tax. Amounts are rounded half-up to cents.

    Works on anything with unit_price and quantity_ordered attributes.
    """
    pre_tax = sum(
        (Decimal(str(line.unit_price)) * line.quantity_ordered for line in lines),
        Decimal("0"),
    )
    pre_tax = _money(pre_tax)
    tax = _money(pre_tax * Decimal(str(tax_rate)) / Decimal("100"))
    return Totals(pre_tax=pre_tax, tax=tax, total=pre_tax + tax)


def _enum_value(value) -> str:
    return getattr(value, "value", value)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Service
# ============================================================================

class OrderService:
    """Service enforcing the order lifecycle and its stock reservations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.catalog = CatalogService(db)
        self.clients = ClientService(db)

    # =========================================================================
    # Lookup
    # =========================================================================

    async def find_order(self, order_id: int) -> Optional[Order]:
        stmt = (
            select(Order)
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_order(self, order_id: int) -> Order:
        order = await self.find_order(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def apply_totals(order: Order) -> Totals:
        totals = compute_totals(order.lines, order.tax_rate)
        order.amount_pre_tax = totals.pre_tax
        order.amount_tax = totals.tax
        order.amount_total = totals.total
        return totals

    @staticmethod
    def _snapshot_line(article: Article, quantity: int, position: int) -> OrderLine:
        """New line carrying a copy of the article fields as they are now."""
        return OrderLine(
            position=position,
            article_id=article.id,
            article_number=article.article_number,
            designation=article.designation,
            technology=article.technology,
            product_family=_enum_value(article.product_family),
            unit=_enum_value(article.unit),
            unit_price=article.unit_price,
            quantity_ordered=quantity,
            quantity_to_ship=quantity,
            quantity_shipped=0,
            quantity_in_preparation=0,
        )

    @staticmethod
    def _ensure_draft(order: Order) -> None:
        if order.status != OrderStatus.draft:
            raise OrderLockedError(order.order_number, _enum_value(order.status))

    @staticmethod
    def _reservations(order: Order) -> List[Reservation]:
        return [(line.article_id, line.quantity_ordered) for line in order.lines]

    async def _active_client(self, client_id: int):
        client = await self.clients.get_client(client_id)
        if not client.is_active:
            raise ClientNotFoundError(client_id)
        return client

    async def _reserve_lines(self, lines_in: Sequence[OrderLineIn], first_position: int = 1) -> List[OrderLine]:
        """Reserve stock for each requested line, all or nothing."""
        reserved: List[Reservation] = []
        lines: List[OrderLine] = []
        try:
            for position, line_in in enumerate(lines_in, start=first_position):
                article = await self.catalog.reserve_stock(line_in.article_id, line_in.quantity)
                reserved.append((article.id, line_in.quantity))
                lines.append(self._snapshot_line(article, line_in.quantity, position))
        except OrderHubError:
            await self._release(reserved)
            raise
        return lines

    async def _release(self, reservations: Iterable[Reservation]) -> None:
        for article_id, quantity in reservations:
            await self.catalog.release_stock(article_id, quantity)

    async def _restore(self, reservations: Iterable[Reservation]) -> None:
        """Put back reservations released earlier in the same transaction."""
        for article_id, quantity in reservations:
            if article_id is not None:
                await self.catalog.reserve_stock(article_id, quantity, require_active=False)

    # =========================================================================
    # Operations
    # =========================================================================

    async def create_order(self, data: OrderCreate) -> Order:
        """
        Create a draft order and reserve stock for every line.

        Raises:
            ClientNotFoundError, ArticleNotFoundError, InsufficientStockError
        """
        if not data.lines:
            raise ValidationError("lines", "an order needs at least one line")

        client = await self._active_client(data.client_id)
        lines = await self._reserve_lines(data.lines)

        order_number = await NumberingService(self.db).next_number(
            NumberingService.ORDER, settings.ORDER_NUMBER_PREFIX
        )
        order = Order(
            order_number=order_number,
            client_id=client.id,
            client_name=client.name,
            delivery_date=data.delivery_date,
            order_type=data.order_type,
            status=OrderStatus.draft,
            notes=(data.notes or "").strip(),
            tax_rate=settings.DEFAULT_TAX_RATE if data.tax_rate is None else data.tax_rate,
            lines=lines,
        )
        self.apply_totals(order)
        self.db.add(order)
        await self.db.flush()
        return await self.get_order(order.id)

    async def update_order(self, order_id: int, data: OrderUpdate) -> Order:
        """
        Edit a draft order. Supplied lines replace the old ones: the old
        reservations are released first, then the new set is reserved as in
        create_order. If that fails the old reservations are put back.
        """
        order = await self.get_order(order_id)
        self._ensure_draft(order)

        if data.client_id is not None:
            client = await self._active_client(data.client_id)
            order.client_id = client.id
            order.client_name = client.name

        if data.lines is not None:
            if not data.lines:
                raise ValidationError("lines", "an order needs at least one line")
            old = self._reservations(order)
            await self._release(old)
            try:
                new_lines = await self._reserve_lines(data.lines)
            except OrderHubError:
                await self._restore(old)
                raise
            # drop the old rows before inserting new ones at the same positions
            order.lines.clear()
            await self.db.flush()
            order.lines.extend(new_lines)

        if data.delivery_date is not None:
            order.delivery_date = data.delivery_date
        if data.order_type is not None:
            order.order_type = data.order_type
        if data.notes is not None:
            order.notes = data.notes.strip()
        if data.tax_rate is not None:
            order.tax_rate = data.tax_rate

        self.apply_totals(order)
        await self.db.flush()
        return await self.get_order(order.id)

    async def add_line(self, order_id: int, line_in: OrderLineIn) -> Order:
        """Append one line to a draft order, reserving its stock."""
        order = await self.get_order(order_id)
        self._ensure_draft(order)

        next_position = max((line.position for line in order.lines), default=0) + 1
        new_lines = await self._reserve_lines([line_in], first_position=next_position)
        order.lines.extend(new_lines)

        self.apply_totals(order)
        await self.db.flush()
        return await self.get_order(order.id)

    async def confirm_order(self, order_id: int) -> Order:
        """
        draft -> confirmed. Each line gets a confirmation record for the
        quantity not confirmed yet.

        Raises:
            OrderNotFoundError
            AlreadyConfirmedError: status is not draft (nothing is changed)
        """
        order = await self.get_order(order_id)
        if order.status != OrderStatus.draft:
            raise AlreadyConfirmedError(order.order_number)

        now = _utcnow()
        order.status = OrderStatus.confirmed
        if order.confirmed_at is None:
            order.confirmed_at = now
        for line in order.lines:
            remaining = line.quantity_ordered - line.quantity_confirmed
            if remaining > 0:
                line.confirmations.append(OrderLineConfirmation(quantity=remaining, confirmed_at=now))

        await self.db.flush()
        return await self.get_order(order.id)

    async def confirm_line(self, order_id: int, position: int, quantity: int) -> Order:
        """Record a partial confirmation for one line."""
        order = await self.get_order(order_id)
        if order.status not in (OrderStatus.draft, OrderStatus.confirmed):
            raise OrderLockedError(order.order_number, _enum_value(order.status))

        line = next((ln for ln in order.lines if ln.position == position), None)
        if line is None:
            raise ValidationError("position", f"order {order.order_number} has no line {position}")
        if quantity < 1:
            raise ValidationError("quantity", "must be at least 1")

        remaining = line.quantity_ordered - line.quantity_confirmed
        if quantity > remaining:
            raise ValidationError("quantity", f"exceeds the unconfirmed quantity ({remaining})")

        line.confirmations.append(OrderLineConfirmation(quantity=quantity, confirmed_at=_utcnow()))
        await self.db.flush()
        return await self.get_order(order.id)

    async def set_status(self, order_id: int, status: OrderStatus) -> Order:
        """
        Set a later lifecycle status. Transitions past confirmed belong to
        the shipping side and are not checked here.

        Raises:
            OrderLockedError: the order left draft and draft is requested again
        """
        order = await self.get_order(order_id)
        if status == OrderStatus.draft and order.status != OrderStatus.draft:
            raise OrderLockedError(order.order_number, _enum_value(order.status))
        if status != OrderStatus.draft and order.confirmed_at is None:
            order.confirmed_at = _utcnow()
        order.status = status
        await self.db.flush()
        return await self.get_order(order.id)

    async def delete_order(self, order_id: int) -> str:
        """Release every line's reservation, then remove the order. Returns its number."""
        order = await self.get_order(order_id)
        await self._release(self._reservations(order))

        order_number = order.order_number
        await self.db.delete(order)
        await self.db.flush()
        return order_number
