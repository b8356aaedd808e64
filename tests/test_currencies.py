"""
POS Back Office - Currency API Tests
"""

import pytest
from httpx import AsyncClient

BASE = "/api/v1/currencies"


class TestCurrencyCreation:

    @pytest.mark.asyncio
    async def test_first_currency_becomes_default(self, client: AsyncClient, auth_headers):
        first = await client.post(
            BASE, json={"code": "ngn", "name": "Naira", "symbol": "₦"}, headers=auth_headers,
        )
        assert first.status_code == 201
        assert first.json()["code"] == "NGN"
        assert first.json()["is_default"] is True

        second = await client.post(
            BASE, json={"code": "USD", "name": "US Dollar", "symbol": "$"}, headers=auth_headers,
        )
        assert second.status_code == 201
        assert second.json()["is_default"] is False

        default = await client.get(f"{BASE}/default", headers=auth_headers)
        assert default.json()["code"] == "NGN"

    @pytest.mark.asyncio
    async def test_duplicate_code_rejected(self, client: AsyncClient, auth_headers, default_currency):
        response = await client.post(
            BASE, json={"code": "NGN", "name": "Again", "symbol": "N"}, headers=auth_headers,
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_code_generated_when_omitted(self, client: AsyncClient, auth_headers, default_currency):
        response = await client.post(BASE, json={"name": "Euro", "symbol": "€"}, headers=auth_headers)
        assert response.status_code == 201
        assert response.json()["code"]

    @pytest.mark.asyncio
    async def test_client_company_id_is_ignored(
        self, client: AsyncClient, auth_headers, admin_user, other_company,
    ):
        response = await client.post(
            BASE,
            json={"code": "GHS", "name": "Cedi", "symbol": "₵", "company_id": str(other_company.id)},
            headers=auth_headers,
        )
        assert response.status_code == 201
        assert response.json()["company_id"] == str(admin_user.company_id)


class TestDefaultCurrency:
    """The single default currency of a company."""

    @pytest.mark.asyncio
    async def test_set_default_moves_the_flag(
        self, client: AsyncClient, auth_headers, default_currency, usd_currency,
    ):
        response = await client.patch(f"{BASE}/{usd_currency.id}/set-default", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["is_default"] is True

        previous = await client.get(f"{BASE}/{default_currency.id}", headers=auth_headers)
        assert previous.json()["is_default"] is False

        listing = (await client.get(BASE, headers=auth_headers)).json()["items"]
        assert [c["code"] for c in listing if c["is_default"]] == ["USD"]

    @pytest.mark.asyncio
    async def test_default_cannot_be_deleted(self, client: AsyncClient, auth_headers, default_currency):
        response = await client.delete(f"{BASE}/{default_currency.id}", headers=auth_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_default_cannot_be_deactivated(self, client: AsyncClient, auth_headers, default_currency):
        toggle = await client.patch(f"{BASE}/{default_currency.id}/toggle-status", headers=auth_headers)
        assert toggle.status_code == 400

        update = await client.put(
            f"{BASE}/{default_currency.id}", json={"is_active": False}, headers=auth_headers,
        )
        assert update.status_code == 400

    @pytest.mark.asyncio
    async def test_other_currency_can_be_deactivated_and_deleted(
        self, client: AsyncClient, auth_headers, usd_currency,
    ):
        toggle = await client.patch(f"{BASE}/{usd_currency.id}/toggle-status", headers=auth_headers)
        assert toggle.status_code == 200
        assert toggle.json()["is_active"] is False

        response = await client.delete(f"{BASE}/{usd_currency.id}", headers=auth_headers)
        assert response.status_code == 200
        assert (await client.get(f"{BASE}/{usd_currency.id}", headers=auth_headers)).status_code == 404
