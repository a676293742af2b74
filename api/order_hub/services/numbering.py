# order_hub/services/numbering.py
"""
Human-readable record numbers: <PREFIX>-<year>-<zero padded sequence>.

Backed by one row per (kind, year) in number_sequences, incremented with a
single UPDATE ... RETURNING so concurrent requests never get the same value.
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from order_hub.db_models import NumberSequence


class NumberingService:
    """Issues client and order numbers."""

    CLIENT = "client"
    ORDER = "order"

    WIDTHS = {CLIENT: 3, ORDER: 4}

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def format_number(prefix: str, year: int, value: int, width: int) -> str:
        """format_number("CMD", 2024, 1, 4) -> "CMD-2024-0001" """
        return f"{prefix}-{year}-{str(value).zfill(width)}"

    async def _increment(self, kind: str, year: int) -> Optional[int]:
        stmt = (
            update(NumberSequence)
            .where(NumberSequence.kind == kind, NumberSequence.year == year)
            .values(value=NumberSequence.value + 1)
            .returning(NumberSequence.value)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def ensure_sequence(self, kind: str, year: int) -> None:
        """Create the (kind, year) row at 0 unless another request already did."""
        insert = pg_insert if self.db.get_bind().dialect.name == "postgresql" else sqlite_insert
        stmt = (
            insert(NumberSequence)
            .values(kind=kind, year=year, value=0)
            .on_conflict_do_nothing(index_elements=["kind", "year"])
        )
        await self.db.execute(stmt)

    async def next_value(self, kind: str, year: int) -> int:
        value = await self._increment(kind, year)
        if value is None:
            # First number of this kind in this year
            await self.ensure_sequence(kind, year)
            value = await self._increment(kind, year)
        return value

    async def next_number(self, kind: str, prefix: str, now: Optional[datetime] = None) -> str:
        year = (now or datetime.now(timezone.utc)).year
        value = await self.next_value(kind, year)
        return self.format_number(prefix, year, value, self.WIDTHS[kind])

    async def current_value(self, kind: str, year: int) -> int:
        stmt = select(NumberSequence.value).where(
            NumberSequence.kind == kind,
            NumberSequence.year == year,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none() or 0
