# order_hub/routers/articles.py
from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from order_hub.database import get_session
from order_hub.db_models import ProductFamily
from order_hub.models import ArticleCreate, ArticleListOut, ArticleOut, ArticleUpdate
from order_hub.services.catalog import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/articles", tags=["Articles"])


@router.get("", response_model=ArticleListOut)
async def list_articles(
    search: Optional[str] = None,
    product_family: Optional[ProductFamily] = None,
    include_inactive: bool = False,
    db: AsyncSession = Depends(get_session),
):
    """Active articles by default; search matches number, designation, technology."""
    articles = await CatalogService(db).list_articles(
        search=search, product_family=product_family, include_inactive=include_inactive,
    )
    return ArticleListOut(items=[ArticleOut.model_validate(a) for a in articles], count=len(articles))


@router.post("", response_model=ArticleOut, status_code=201)
async def create_article(request: ArticleCreate, db: AsyncSession = Depends(get_session)):
    article = await CatalogService(db).create_article(request)
    logger.info("Article %s created (stock %s)", article.article_number, article.stock_on_hand)
    return ArticleOut.model_validate(article)


@router.get("/{article_id}", response_model=ArticleOut)
async def get_article(article_id: int, db: AsyncSession = Depends(get_session)):
    article = await CatalogService(db).get_article(article_id)
    return ArticleOut.model_validate(article)


@router.put("/{article_id}", response_model=ArticleOut)
async def update_article(article_id: int, request: ArticleUpdate, db: AsyncSession = Depends(get_session)):
    article = await CatalogService(db).update_article(article_id, request)
    return ArticleOut.model_validate(article)


@router.delete("/{article_id}")
async def delete_article(article_id: int, db: AsyncSession = Depends(get_session)) -> Dict[str, Any]:
    """Soft delete (is_active=False)."""
    article = await CatalogService(db).deactivate_article(article_id)
    logger.info("Article %s deactivated", article.article_number)
    return {"success": True, "id": article.id}
