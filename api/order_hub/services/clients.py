# order_hub/services/clients.py
"""
Client Service - billing/shipping parties.
"""
from __future__ import annotations
from typing import Optional, List

from sqlalchemy import select, or_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from order_hub.db_models import Client
from order_hub.errors import ClientNotFoundError, DuplicateKeyError
from order_hub.models import ClientCreate, ClientUpdate
from order_hub.services.numbering import NumberingService
from order_hub.services.search import LIKE_ESCAPE, contains_pattern
from order_hub.settings import settings


class ClientService:
    """Service for client records."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Lookup
    # =========================================================================

    async def find_client(self, client_id: int) -> Optional[Client]:
        stmt = select(Client).where(Client.id == client_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_client(self, client_id: int) -> Client:
        client = await self.find_client(client_id)
        if client is None:
            raise ClientNotFoundError(client_id)
        return client

    async def find_client_by_name(self, name: str) -> Optional[Client]:
        """Case-insensitive exact match on name; active clients first."""
        stmt = (
            select(Client)
            .where(func.lower(Client.name) == (name or "").strip().lower())
            .order_by(Client.is_active.desc(), Client.id)
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_client_by_email(self, email: str) -> Optional[Client]:
        stmt = select(Client).where(Client.email == (email or "").strip().lower())
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_clients(self, search: Optional[str] = None, include_inactive: bool = False) -> List[Client]:
        stmt = select(Client).order_by(Client.name, Client.id)
        if not include_inactive:
            stmt = stmt.where(Client.is_active == True)
        pattern = contains_pattern(search)
        if pattern:
            stmt = stmt.where(or_(
                Client.name.ilike(pattern, escape=LIKE_ESCAPE),
                Client.company.ilike(pattern, escape=LIKE_ESCAPE),
                Client.email.ilike(pattern, escape=LIKE_ESCAPE),
            ))
        result = await self.db.execute(stmt)
        return list(result.scalars())

    # =========================================================================
    # CRUD Operations
    # =========================================================================

    @staticmethod
    def _apply_delivery_address(client: Client) -> None:
        """Copy the billing address over the delivery one when they are the same."""
        if client.same_delivery_address:
            client.delivery_address = dict(client.billing_address or {})

    async def create_client(self, data: ClientCreate) -> Client:
        if await self.find_client_by_email(data.email) is not None:
            raise DuplicateKeyError("email", data.email)

        client_number = await NumberingService(self.db).next_number(
            NumberingService.CLIENT, settings.CLIENT_NUMBER_PREFIX
        )
        client = Client(
            client_number=client_number,
            name=data.name,
            company=(data.company or "").strip(),
            email=data.email,
            phone=(data.phone or "").strip(),
            fax=(data.fax or "").strip(),
            billing_address=data.billing_address.model_dump(),
            delivery_address=data.delivery_address.model_dump(),
            same_delivery_address=data.same_delivery_address,
            is_active=True,
        )
        self._apply_delivery_address(client)
        self.db.add(client)
        try:
            await self.db.flush()
        except IntegrityError:
            raise DuplicateKeyError("email", data.email)
        return client

    async def update_client(self, client_id: int, data: ClientUpdate) -> Client:
        client = await self.get_client(client_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        email = changes.get("email")
        if email is not None and email != client.email:
            other = await self.find_client_by_email(email)
            if other is not None and other.id != client.id:
                raise DuplicateKeyError("email", email)

        for field, value in changes.items():
            setattr(client, field, value)
        self._apply_delivery_address(client)
        try:
            await self.db.flush()
        except IntegrityError:
            raise DuplicateKeyError("email", email or client.email)
        return client

    async def deactivate_client(self, client_id: int) -> Client:
        client = await self.get_client(client_id)
        client.is_active = False
        await self.db.flush()
        return client
