# order_hub/services/order_queries.py
"""
Read side for orders: filtered, paginated listing and single-order view
with the client joined at read time.
"""
from __future__ import annotations
from typing import List, Optional, Tuple

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from order_hub.db_models import Client, Order, OrderLine, OrderStatus
from order_hub.errors import OrderNotFoundError
from order_hub.models import OrderFilter
from order_hub.services.search import LIKE_ESCAPE, contains_pattern


class OrderQueryService:
    """Read-only queries over orders."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _conditions(flt: OrderFilter) -> list:
        conditions = []

        pattern = contains_pattern(flt.search)
        if pattern:
            conditions.append(or_(
                Order.order_number.ilike(pattern, escape=LIKE_ESCAPE),
                Order.client_name.ilike(pattern, escape=LIKE_ESCAPE),
                Order.lines.any(or_(
                    OrderLine.technology.ilike(pattern, escape=LIKE_ESCAPE),
                    OrderLine.product_family.ilike(pattern, escape=LIKE_ESCAPE),
                )),
            ))

        if flt.status == "confirmed":
            conditions.append(Order.status != OrderStatus.draft)
        elif flt.status == "unconfirmed":
            conditions.append(Order.status == OrderStatus.draft)

        return conditions

    async def list_orders(self, flt: Optional[OrderFilter] = None, page: int = 1, limit: int = 50) -> Tuple[List[Order], int]:
        """
        Newest orders first. page is 1-based; offset = (page - 1) * limit.

        Returns:
            (orders on the page, total matching orders)
        """
        flt = flt or OrderFilter()
        page = max(page, 1)
        limit = max(limit, 1)
        conditions = self._conditions(flt)

        count_stmt = select(func.count()).select_from(Order).where(*conditions)
        total = (await self.db.execute(count_stmt)).scalar() or 0

        stmt = (
            select(Order)
            .where(*conditions)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars()), total

    async def get_order(self, order_id: int) -> Tuple[Order, Optional[Client]]:
        """The order plus its current client record (None if it vanished)."""
        stmt = select(Order).where(Order.id == order_id)
        order = (await self.db.execute(stmt)).scalar_one_or_none()
        if order is None:
            raise OrderNotFoundError(order_id)

        client = (await self.db.execute(
            select(Client).where(Client.id == order.client_id)
        )).scalar_one_or_none()
        return order, client
