"""Pytest fixtures for order_hub tests."""

from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from order_hub.database import create_engine_for, create_schema_objects, make_session_factory
from order_hub.logging_setup import LOG_FILE_NAME, teardown_logging
from order_hub.models import ArticleCreate, Address, ClientCreate, OrderCreate, OrderLineIn
from order_hub.services import CatalogService, ClientService, OrderService

DELIVERY_DATE = date(2030, 1, 15)


@pytest_asyncio.fixture
async def db(tmp_path):
    """Session on a fresh SQLite database file."""
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}")
    await create_schema_objects(engine)
    factory = make_session_factory(engine)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def make_article(db):
    async def _make(number="TON-111", price="10.00", stock=100, **fields):
        data = ArticleCreate(
            article_number=number,
            designation=fields.pop("designation", f"Toner {number}"),
            technology=fields.pop("technology", "LASER"),
            unit_price=Decimal(price),
            stock_on_hand=stock,
            **fields,
        )
        return await CatalogService(db).create_article(data)
    return _make


@pytest.fixture
def make_client(db):
    async def _make(name="Imprimerie Dupont", email="contact@dupont.fr", **fields):
        data = ClientCreate(
            name=name,
            email=email,
            company=fields.pop("company", name),
            billing_address=fields.pop("billing_address", Address(street="1 rue de la Paix", city="Paris", postal_code="75002")),
            **fields,
        )
        return await ClientService(db).create_client(data)
    return _make


@pytest.fixture
def make_order(db):
    async def _make(client, lines, **fields):
        data = OrderCreate(
            client_id=client.id,
            lines=[OrderLineIn(article_id=article.id, quantity=qty) for article, qty in lines],
            delivery_date=fields.pop("delivery_date", DELIVERY_DATE),
            **fields,
        )
        return await OrderService(db).create_order(data)
    return _make


@pytest.fixture
def api_client(tmp_path, monkeypatch):
    """Test client running the app lifespan against a temporary SQLite file."""
    from order_hub.settings import settings

    monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")
    monkeypatch.setattr(settings, "DATA_ROOT", tmp_path / "data")
    monkeypatch.setattr(settings, "DB_CREATE_SCHEMA", True)

    from order_hub.main import app

    with TestClient(app) as client:
        yield client
    teardown_logging(tmp_path / "data" / "logs" / LOG_FILE_NAME)
