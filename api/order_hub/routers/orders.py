# order_hub/routers/orders.py
"""
Orders Router - order lifecycle endpoints.

Domain errors raised by the services are turned into HTTP responses by the
exception handler registered in main.py.
"""
from __future__ import annotations
import logging
import math
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from order_hub.database import get_session
from order_hub.db_models import Client, Order
from order_hub.models import (
    ClientBlock, LineConfirmationIn, OrderCreate, OrderFilter, OrderLineIn,
    OrderListOut, OrderOut, OrderUpdate, Pagination, StatusUpdateIn,
)
from order_hub.services.order_queries import OrderQueryService
from order_hub.services.orders import OrderService
from order_hub.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])


def _order_out(order: Order, client: Optional[Client] = None) -> OrderOut:
    out = OrderOut.model_validate(order)
    if client is not None:
        out.client = ClientBlock.model_validate(client)
    return out


async def _with_client(db: AsyncSession, order: Order) -> OrderOut:
    order, client = await OrderQueryService(db).get_order(order.id)
    return _order_out(order, client)


# ============================================================================
# Read
# ============================================================================

@router.get("", response_model=OrderListOut)
async def list_orders(
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1, le=settings.MAX_PAGE_SIZE),
    search: Optional[str] = None,
    status: Optional[str] = Query(default=None, pattern="^(confirmed|unconfirmed)$"),
    db: AsyncSession = Depends(get_session),
):
    """List orders, newest first. status: confirmed | unconfirmed."""
    limit = limit or settings.DEFAULT_PAGE_SIZE
    orders, total = await OrderQueryService(db).list_orders(
        OrderFilter(search=search, status=status), page=page, limit=limit,
    )
    return OrderListOut(
        items=[_order_out(o) for o in orders],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit) if total else 0,
        ),
    )


@router.get("/{order_id}", response_model=OrderOut)
async def get_order(order_id: int, db: AsyncSession = Depends(get_session)):
    """Order with the client block (read-time join)."""
    order, client = await OrderQueryService(db).get_order(order_id)
    return _order_out(order, client)


# ============================================================================
# Write
# ============================================================================

@router.post("", response_model=OrderOut, status_code=201)
async def create_order(request: OrderCreate, db: AsyncSession = Depends(get_session)):
    """Create a draft order; stock is reserved for every line."""
    order = await OrderService(db).create_order(request)
    logger.info("Order %s created for client %s (%d lines, total %s)",
                order.order_number, order.client_id, len(order.lines), order.amount_total)
    return await _with_client(db, order)


@router.put("/{order_id}", response_model=OrderOut)
async def update_order(order_id: int, request: OrderUpdate, db: AsyncSession = Depends(get_session)):
    order = await OrderService(db).update_order(order_id, request)
    logger.info("Order %s updated", order.order_number)
    return await _with_client(db, order)


@router.put("/{order_id}/confirm", response_model=OrderOut)
async def confirm_order(order_id: int, db: AsyncSession = Depends(get_session)):
    order = await OrderService(db).confirm_order(order_id)
    logger.info("Order %s confirmed", order.order_number)
    return await _with_client(db, order)


@router.put("/{order_id}/status", response_model=OrderOut)
async def set_order_status(order_id: int, request: StatusUpdateIn, db: AsyncSession = Depends(get_session)):
    """Set a later lifecycle status (in_preparation, shipped, delivered)."""
    order = await OrderService(db).set_status(order_id, request.status)
    logger.info("Order %s status set to %s", order.order_number, request.status.value)
    return await _with_client(db, order)


@router.post("/{order_id}/lines", response_model=OrderOut)
async def add_order_line(order_id: int, request: OrderLineIn, db: AsyncSession = Depends(get_session)):
    order = await OrderService(db).add_line(order_id, request)
    return await _with_client(db, order)


@router.post("/{order_id}/lines/{position}/confirmations", response_model=OrderOut)
async def confirm_order_line(
    order_id: int,
    position: int,
    request: LineConfirmationIn,
    db: AsyncSession = Depends(get_session),
):
    order = await OrderService(db).confirm_line(order_id, position, request.quantity)
    return await _with_client(db, order)


@router.delete("/{order_id}")
async def delete_order(order_id: int, db: AsyncSession = Depends(get_session)) -> Dict[str, Any]:
    """Delete the order and release its reserved stock."""
    order_number = await OrderService(db).delete_order(order_id)
    logger.info("Order %s deleted", order_number)
    return {"success": True, "id": order_id, "order_number": order_number}
