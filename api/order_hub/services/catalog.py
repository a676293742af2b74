# order_hub/services/catalog.py
"""
Catalog Service - articles, prices and stock bookkeeping.

Handles:
- Article CRUD with soft delete (is_active=False)
- Available stock (on hand - reserved)
- Stock reservation / release for orders

Every change to stock_reserved goes through reserve_stock/release_stock,
each a single conditional UPDATE so the check and the write cannot be split
by a concurrent request.
"""
from __future__ import annotations
from typing import Optional, List

from sqlalchemy import select, update, or_, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from order_hub.db_models import Article, ProductFamily
from order_hub.errors import (
    ArticleNotFoundError, DuplicateKeyError, InsufficientStockError, ValidationError,
)
from order_hub.models import ArticleCreate, ArticleUpdate
from order_hub.services.search import LIKE_ESCAPE, contains_pattern


class CatalogService:
    """Service for articles and their stock counts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # =========================================================================
    # Lookup
    # =========================================================================

    async def find_article(self, article_id: int) -> Optional[Article]:
        """Return the article (active or not) or None."""
        stmt = (
            select(Article)
            .where(Article.id == article_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_article(self, article_id: int) -> Article:
        article = await self.find_article(article_id)
        if article is None:
            raise ArticleNotFoundError(article_id)
        return article

    async def find_article_by_number(self, article_number: str) -> Optional[Article]:
        stmt = select(Article).where(Article.article_number == (article_number or "").strip())
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_articles(
        self,
        search: Optional[str] = None,
        product_family: Optional[ProductFamily] = None,
        include_inactive: bool = False,
    ) -> List[Article]:
        """List articles sorted by article number; active only unless asked."""
        stmt = select(Article).order_by(Article.article_number)
        if not include_inactive:
            stmt = stmt.where(Article.is_active == True)
        if product_family is not None:
            stmt = stmt.where(Article.product_family == product_family)
        pattern = contains_pattern(search)
        if pattern:
            stmt = stmt.where(or_(
                Article.article_number.ilike(pattern, escape=LIKE_ESCAPE),
                Article.designation.ilike(pattern, escape=LIKE_ESCAPE),
                Article.technology.ilike(pattern, escape=LIKE_ESCAPE),
            ))
        result = await self.db.execute(stmt)
        return list(result.scalars())

    @staticmethod
    def available_stock(article: Article) -> int:
        """On hand minus reserved. A snapshot, not a lock."""
        return article.stock_on_hand - article.stock_reserved

    # =========================================================================
    # CRUD Operations
    # =========================================================================

    async def create_article(self, data: ArticleCreate) -> Article:
        if await self.find_article_by_number(data.article_number) is not None:
            raise DuplicateKeyError("article_number", data.article_number)

        article = Article(
            article_number=data.article_number,
            designation=data.designation,
            technology=data.technology,
            product_family=data.product_family,
            unit_price=data.unit_price,
            unit=data.unit,
            stock_on_hand=data.stock_on_hand,
            stock_reserved=0,
            is_active=True,
        )
        self.db.add(article)
        try:
            await self.db.flush()
        except IntegrityError:
            raise DuplicateKeyError("article_number", data.article_number)
        return article

    async def update_article(self, article_id: int, data: ArticleUpdate) -> Article:
        article = await self.get_article(article_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        number = changes.pop("article_number", None)
        if number is not None and number.strip() != article.article_number:
            raise ValidationError("article_number", "article number cannot be changed")

        on_hand = changes.pop("stock_on_hand", None)
        if on_hand is not None:
            await self.set_stock_on_hand(article_id, on_hand)

        for field, value in changes.items():
            setattr(article, field, value)
        await self.db.flush()
        return await self.get_article(article_id)

    async def deactivate_article(self, article_id: int) -> Article:
        """Soft delete; stock numbers are left as they are."""
        article = await self.get_article(article_id)
        article.is_active = False
        await self.db.flush()
        return article

    # =========================================================================
    # Stock
    # =========================================================================

    async def set_stock_on_hand(self, article_id: int, on_hand: int) -> None:
        """
        Overwrite the on-hand count. The reserved check is in the UPDATE's
        WHERE clause, like reserve_stock.

        Raises:
            ValidationError: on_hand < 0 or below the reserved count
            ArticleNotFoundError
        """
        if on_hand < 0:
            raise ValidationError("stock_on_hand", "must not be negative")

        stmt = (
            update(Article)
            .where(Article.id == article_id, Article.stock_reserved <= on_hand)
            .values(stock_on_hand=on_hand)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount == 1:
            return

        article = await self.get_article(article_id)
        raise ValidationError(
            "stock_on_hand",
            f"cannot be lower than reserved stock ({article.stock_reserved})",
        )

    async def reserve_stock(self, article_id: int, quantity: int, require_active: bool = True) -> Article:
        """
        Reserve quantity units of an article.

        The availability check is part of the UPDATE's WHERE clause; zero
        affected rows means the stock was not there. require_active=False
        is only for putting back a reservation an order already held.

        Raises:
            ValidationError: quantity < 1
            ArticleNotFoundError: missing (or inactive) article
            InsufficientStockError: quantity > available stock
        """
        if quantity < 1:
            raise ValidationError("quantity", "must be at least 1")

        conditions = [
            Article.id == article_id,
            Article.stock_on_hand - Article.stock_reserved >= quantity,
        ]
        if require_active:
            conditions.append(Article.is_active == True)

        stmt = (
            update(Article)
            .where(*conditions)
            .values(stock_reserved=Article.stock_reserved + quantity)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)

        article = await self.find_article(article_id)
        if result.rowcount == 1:
            return article
        if article is None or (require_active and not article.is_active):
            raise ArticleNotFoundError(article_id)
        raise InsufficientStockError(article.article_number, quantity, self.available_stock(article))

    async def release_stock(self, article_id: Optional[int], quantity: int) -> bool:
        """
        Give back quantity reserved units, never going below zero.

        A missing article is a no-op so order deletion stays idempotent.
        Returns True when an article row was updated.
        """
        if article_id is None or quantity <= 0:
            return False

        stmt = (
            update(Article)
            .where(Article.id == article_id)
            .values(stock_reserved=case(
                (Article.stock_reserved > quantity, Article.stock_reserved - quantity),
                else_=0,
            ))
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        return result.rowcount == 1
