"""Tests for order listing and the single-order read."""

import pytest

from order_hub.db_models import ProductFamily
from order_hub.errors import OrderNotFoundError
from order_hub.models import ClientUpdate, OrderFilter
from order_hub.services import ClientService, OrderQueryService, OrderService


@pytest.fixture
async def three_orders(db, make_client, make_article, make_order):
    """Two Dupont orders (one confirmed) and one Martin order for a label."""
    dupont = await make_client(name="Imprimerie Dupont", email="dupont@example.com")
    martin = await make_client(name="Martin Bureautique", email="martin@example.com")
    toner = await make_article(number="TON-1", technology="HP 85A")
    label = await make_article(number="LBL-1", technology="Zebra", product_family=ProductFamily.packaging_label)

    first = await make_order(dupont, [(toner, 1)])
    second = await make_order(dupont, [(toner, 2)])
    third = await make_order(martin, [(label, 3)])
    await OrderService(db).confirm_order(second.id)
    return first, second, third


def numbers(orders):
    return [o.order_number for o in orders]


class TestListOrders:
    async def test_newest_first(self, db, three_orders):
        first, second, third = three_orders
        orders, total = await OrderQueryService(db).list_orders()
        assert total == 3
        assert numbers(orders) == numbers([third, second, first])

    async def test_status_filter(self, db, three_orders):
        first, second, third = three_orders
        service = OrderQueryService(db)

        confirmed, total = await service.list_orders(OrderFilter(status="confirmed"))
        assert total == 1
        assert numbers(confirmed) == [second.order_number]

        unconfirmed, total = await service.list_orders(OrderFilter(status="unconfirmed"))
        assert total == 2
        assert set(numbers(unconfirmed)) == {first.order_number, third.order_number}

    async def test_search_by_client_name(self, db, three_orders):
        first, second, third = three_orders
        orders, total = await OrderQueryService(db).list_orders(OrderFilter(search="dupont"))
        assert total == 2
        assert set(numbers(orders)) == {first.order_number, second.order_number}

    async def test_search_by_order_number(self, db, three_orders):
        first, second, third = three_orders
        orders, _ = await OrderQueryService(db).list_orders(OrderFilter(search=third.order_number))
        assert numbers(orders) == [third.order_number]

    async def test_search_by_line_technology_and_family(self, db, three_orders):
        first, second, third = three_orders
        service = OrderQueryService(db)

        by_technology, _ = await service.list_orders(OrderFilter(search="zebra"))
        assert numbers(by_technology) == [third.order_number]

        by_family, _ = await service.list_orders(OrderFilter(search="Packaging Label"))
        assert numbers(by_family) == [third.order_number]

    async def test_search_combined_with_status(self, db, three_orders):
        first, second, third = three_orders
        orders, total = await OrderQueryService(db).list_orders(
            OrderFilter(search="dupont", status="unconfirmed")
        )
        assert total == 1
        assert numbers(orders) == [first.order_number]

    async def test_pagination(self, db, three_orders):
        first, second, third = three_orders
        service = OrderQueryService(db)

        page1, total = await service.list_orders(page=1, limit=2)
        page2, _ = await service.list_orders(page=2, limit=2)
        page3, _ = await service.list_orders(page=3, limit=2)

        assert total == 3
        assert numbers(page1) == numbers([third, second])
        assert numbers(page2) == [first.order_number]
        assert page3 == []

    async def test_search_wildcards_are_literal(self, db, three_orders):
        service = OrderQueryService(db)
        orders, total = await service.list_orders(OrderFilter(search="%"))
        assert (orders, total) == ([], 0)

        orders, total = await service.list_orders(OrderFilter(search="CMD_"))
        assert total == 0

    async def test_no_match(self, db, three_orders):
        orders, total = await OrderQueryService(db).list_orders(OrderFilter(search="nothing-like-this"))
        assert orders == []
        assert total == 0


class TestGetOrder:
    async def test_includes_current_client(self, db, three_orders):
        first, _, _ = three_orders
        await ClientService(db).update_client(first.client_id, ClientUpdate(phone="01 23 45 67 89"))

        order, client = await OrderQueryService(db).get_order(first.id)
        assert order.order_number == first.order_number
        assert client is not None
        assert client.id == first.client_id
        assert client.phone == "01 23 45 67 89"

    async def test_missing(self, db):
        with pytest.raises(OrderNotFoundError):
            await OrderQueryService(db).get_order(4242)
