"""Tests for clients and record numbering."""

from datetime import datetime, timezone

import pytest

from order_hub.errors import ClientNotFoundError, DuplicateKeyError
from order_hub.models import Address, ClientUpdate
from order_hub.services.clients import ClientService
from order_hub.services.numbering import NumberingService


class TestNumbering:
    def test_format_number(self):
        assert NumberingService.format_number("CMD", 2024, 1, 4) == "CMD-2024-0001"
        assert NumberingService.format_number("CLI", 2024, 42, 3) == "CLI-2024-042"

    async def test_sequence_per_kind_and_year(self, db):
        numbering = NumberingService(db)
        y2024 = datetime(2024, 6, 1, tzinfo=timezone.utc)
        y2025 = datetime(2025, 1, 2, tzinfo=timezone.utc)

        assert await numbering.next_number(NumberingService.ORDER, "CMD", now=y2024) == "CMD-2024-0001"
        assert await numbering.next_number(NumberingService.ORDER, "CMD", now=y2024) == "CMD-2024-0002"
        assert await numbering.next_number(NumberingService.CLIENT, "CLI", now=y2024) == "CLI-2024-001"
        assert await numbering.next_number(NumberingService.ORDER, "CMD", now=y2025) == "CMD-2025-0001"

        assert await numbering.current_value(NumberingService.ORDER, 2024) == 2
        assert await numbering.current_value(NumberingService.ORDER, 2026) == 0

    async def test_sequence_row_created_concurrently_is_kept(self, db):
        numbering = NumberingService(db)
        y2024 = datetime(2024, 6, 1, tzinfo=timezone.utc)
        await numbering.next_number(NumberingService.ORDER, "CMD", now=y2024)

        # a second request creating the same row leaves the counter alone
        await numbering.ensure_sequence(NumberingService.ORDER, 2024)
        await numbering.ensure_sequence(NumberingService.ORDER, 2024)

        assert await numbering.current_value(NumberingService.ORDER, 2024) == 1
        assert await numbering.next_number(NumberingService.ORDER, "CMD", now=y2024) == "CMD-2024-0002"

    async def test_first_number_after_row_created_elsewhere(self, db):
        numbering = NumberingService(db)
        await numbering.ensure_sequence(NumberingService.CLIENT, 2025)
        now = datetime(2025, 3, 1, tzinfo=timezone.utc)
        assert await numbering.next_number(NumberingService.CLIENT, "CLI", now=now) == "CLI-2025-001"


class TestClients:
    async def test_client_numbers_are_sequential(self, db, make_client):
        year = datetime.now(timezone.utc).year
        first = await make_client(email="a@example.com")
        second = await make_client(name="Other", email="b@example.com")
        assert first.client_number == f"CLI-{year}-001"
        assert second.client_number == f"CLI-{year}-002"

    async def test_email_is_lowercased_and_unique(self, db, make_client):
        client = await make_client(email="Contact@Dupont.FR")
        assert client.email == "contact@dupont.fr"

        with pytest.raises(DuplicateKeyError) as exc:
            await make_client(name="Someone else", email="contact@dupont.fr")
        assert exc.value.field == "email"

    async def test_same_delivery_address_copies_billing(self, db, make_client):
        client = await make_client(
            same_delivery_address=True,
            delivery_address=Address(street="ignored", city="Lyon"),
        )
        assert client.delivery_address == client.billing_address
        assert client.delivery_address is not client.billing_address

    async def test_separate_delivery_address(self, db, make_client):
        client = await make_client(
            same_delivery_address=False,
            delivery_address=Address(street="5 quai du Rhone", city="Lyon", postal_code="69002"),
        )
        assert client.delivery_address["city"] == "Lyon"
        assert client.effective_delivery_address["city"] == "Lyon"

    async def test_update_switches_back_to_billing_address(self, db, make_client):
        client = await make_client(
            same_delivery_address=False,
            delivery_address=Address(city="Lyon"),
        )
        updated = await ClientService(db).update_client(client.id, ClientUpdate(same_delivery_address=True))
        assert updated.delivery_address["city"] == "Paris"

    async def test_update_email_conflict(self, db, make_client):
        await make_client(email="a@example.com")
        other = await make_client(name="Other", email="b@example.com")
        with pytest.raises(DuplicateKeyError):
            await ClientService(db).update_client(other.id, ClientUpdate(email="a@example.com"))

    async def test_find_by_name_is_case_insensitive(self, db, make_client):
        client = await make_client(name="Imprimerie Dupont")
        found = await ClientService(db).find_client_by_name("  imprimerie DUPONT ")
        assert found is not None
        assert found.id == client.id
        assert await ClientService(db).find_client_by_name("Nobody") is None

    async def test_deactivate_hides_from_list(self, db, make_client):
        kept = await make_client(email="a@example.com")
        gone = await make_client(name="Gone", email="b@example.com")
        service = ClientService(db)
        await service.deactivate_client(gone.id)

        assert [c.id for c in await service.list_clients()] == [kept.id]
        assert len(await service.list_clients(include_inactive=True)) == 2

    async def test_search_matches_company(self, db, make_client):
        await make_client(name="Jean Martin", email="jm@example.com", company="Martin Bureautique")
        await make_client(name="Paul Durand", email="pd@example.com", company="Durand SA")
        found = await ClientService(db).list_clients(search="bureautique")
        assert [c.name for c in found] == ["Jean Martin"]

    async def test_search_underscore_is_literal(self, db, make_client):
        await make_client(name="Jean Martin", email="jean_martin@example.com")
        await make_client(name="Paul Durand", email="pauldurand@example.com")
        found = await ClientService(db).list_clients(search="n_m")
        assert [c.name for c in found] == ["Jean Martin"]

    async def test_get_missing_client(self, db):
        with pytest.raises(ClientNotFoundError):
            await ClientService(db).get_client(12345)
