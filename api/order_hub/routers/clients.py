# order_hub/routers/clients.py
from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from order_hub.database import get_session
from order_hub.models import ClientCreate, ClientListOut, ClientOut, ClientUpdate
from order_hub.services.clients import ClientService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["Clients"])


@router.get("", response_model=ClientListOut)
async def list_clients(
    search: Optional[str] = None,
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_session),
):
    clients = await ClientService(db).list_clients(search=search, include_inactive=include_inactive)
    return ClientListOut(items=[ClientOut.model_validate(c) for c in clients], count=len(clients))


@router.post("", response_model=ClientOut, status_code=201)
async def create_client(request: ClientCreate, db: AsyncSession = Depends(get_session)):
    client = await ClientService(db).create_client(request)
    logger.info("Client %s created (%s)", client.client_number, client.email)
    return ClientOut.model_validate(client)


@router.get("/{client_id}", response_model=ClientOut)
async def get_client(client_id: int, db: AsyncSession = Depends(get_session)):
    return ClientOut.model_validate(await ClientService(db).get_client(client_id))


@router.put("/{client_id}", response_model=ClientOut)
async def update_client(client_id: int, request: ClientUpdate, db: AsyncSession = Depends(get_session)):
    return ClientOut.model_validate(await ClientService(db).update_client(client_id, request))


@router.delete("/{client_id}")
async def delete_client(client_id: int, db: AsyncSession = Depends(get_session)) -> Dict[str, Any]:
    """Soft delete (is_active=False)."""
    client = await ClientService(db).deactivate_client(client_id)
    logger.info("Client %s deactivated", client.client_number)
    return {"success": True, "id": client.id}
