"""
POS Back Office - Exchange Rate API Tests
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient

BASE = "/api/v1/exchange-rates"


def _rate_body(from_currency, to_currency, rate, effective_date=None) -> dict:
    return {
        "from_currency_id": str(from_currency.id),
        "to_currency_id": str(to_currency.id),
        "rate": str(rate),
        "effective_date": (effective_date or date.today()).isoformat(),
    }


class TestExchangeRateMaintenance:

    @pytest.mark.asyncio
    async def test_create_rate(self, client: AsyncClient, auth_headers, default_currency, usd_currency):
        response = await client.post(
            BASE, json=_rate_body(usd_currency, default_currency, "1500"), headers=auth_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["rate"]) == Decimal("1500")
        assert data["from_currency"]["code"] == "USD"
        assert data["to_currency"]["code"] == "NGN"

    @pytest.mark.asyncio
    async def test_same_currency_rejected(self, client: AsyncClient, auth_headers, default_currency):
        response = await client.post(
            BASE, json=_rate_body(default_currency, default_currency, "1"), headers=auth_headers,
        )
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "to_currency_id"

    @pytest.mark.asyncio
    async def test_duplicate_pair_and_date_rejected(
        self, client: AsyncClient, auth_headers, default_currency, usd_currency,
    ):
        body = _rate_body(usd_currency, default_currency, "1500")
        assert (await client.post(BASE, json=body, headers=auth_headers)).status_code == 201

        body["rate"] = "1510"
        response = await client.post(BASE, json=body, headers=auth_headers)
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_non_positive_rate_rejected(
        self, client: AsyncClient, auth_headers, default_currency, usd_currency,
    ):
        response = await client.post(
            BASE, json=_rate_body(usd_currency, default_currency, "0"), headers=auth_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_toggle_and_delete(self, client: AsyncClient, auth_headers, default_currency, usd_currency):
        created = await client.post(
            BASE, json=_rate_body(usd_currency, default_currency, "1500"), headers=auth_headers,
        )
        rate_id = created.json()["id"]

        toggled = await client.patch(f"{BASE}/{rate_id}/toggle-status", headers=auth_headers)
        assert toggled.json()["is_active"] is False

        deleted = await client.delete(f"{BASE}/{rate_id}", headers=auth_headers)
        assert deleted.status_code == 200
        assert (await client.get(f"{BASE}/{rate_id}", headers=auth_headers)).status_code == 404


class TestRateLookup:
    """Latest rate into the default currency and conversions."""

    @pytest.mark.asyncio
    async def test_latest_rate_to_default(
        self, client: AsyncClient, auth_headers, default_currency, usd_currency,
    ):
        yesterday = date.today() - timedelta(days=1)
        await client.post(
            BASE, json=_rate_body(usd_currency, default_currency, "1450", yesterday), headers=auth_headers,
        )
        await client.post(
            BASE, json=_rate_body(usd_currency, default_currency, "1500"), headers=auth_headers,
        )

        response = await client.get(f"{BASE}/latest/{usd_currency.id}", headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["rate"]) == Decimal("1500")
        assert data["default_currency_id"] == str(default_currency.id)
        assert data["effective_date"] == date.today().isoformat()

    @pytest.mark.asyncio
    async def test_default_currency_converts_at_one(self, client: AsyncClient, auth_headers, default_currency):
        response = await client.get(f"{BASE}/latest/{default_currency.id}", headers=auth_headers)
        assert response.status_code == 200
        assert Decimal(response.json()["rate"]) == Decimal("1")
        assert response.json()["exchange_rate_id"] is None

    @pytest.mark.asyncio
    async def test_missing_rate(self, client: AsyncClient, auth_headers, default_currency, usd_currency):
        response = await client.get(f"{BASE}/latest/{usd_currency.id}", headers=auth_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_convert_direct_and_inverse(
        self, client: AsyncClient, auth_headers, default_currency, usd_currency,
    ):
        await client.post(
            BASE, json=_rate_body(usd_currency, default_currency, "1500"), headers=auth_headers,
        )

        direct = await client.post(f"{BASE}/convert", json={
            "amount": "2",
            "from_currency_id": str(usd_currency.id),
            "to_currency_id": str(default_currency.id),
        }, headers=auth_headers)
        assert direct.status_code == 200
        assert Decimal(direct.json()["converted_amount"]) == Decimal("3000.00")
        assert direct.json()["inverse"] is False

        inverse = await client.post(f"{BASE}/convert", json={
            "amount": "3000",
            "from_currency_id": str(default_currency.id),
            "to_currency_id": str(usd_currency.id),
        }, headers=auth_headers)
        assert inverse.status_code == 200
        assert inverse.json()["inverse"] is True
        assert Decimal(inverse.json()["converted_amount"]) == Decimal("2.00")
