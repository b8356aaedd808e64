"""
POS Back Office - Sales Order API Tests

Pricing, reference numbers, the order lifecycle and conversion into an
invoice.
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import update

from backoffice.models.sales import SalesOrder

BASE = "/api/v1/sales-orders"


def _order_body(currency, **extra) -> dict:
    body = {
        "currency_id": str(currency.id),
        "sales_order_date": date.today().isoformat(),
        "notes": "Counter order",
        "items": [
            {"description": "Blue shirt", "quantity": "2", "unit_price": "50", "tax_percentage": "10"},
            {
                "description": "Cap",
                "quantity": "1",
                "unit_price": "40",
                "discount_amount": "4",
                "wht_amount": "2",
            },
        ],
    }
    body.update(extra)
    return body


async def _create(client: AsyncClient, headers, body) -> dict:
    response = await client.post(BASE, json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateSalesOrder:

    @pytest.mark.asyncio
    async def test_create_prices_lines_and_totals(self, client: AsyncClient, auth_headers, ledger_setup):
        data = await _create(client, auth_headers, _order_body(ledger_setup["currency"]))

        assert data["sales_order_ref_number"] == f"SO-{date.today():%Y%m%d}-0001"
        assert data["status"] == "draft"
        assert data["is_converted"] is False
        assert data["financial_year_id"] == str(ledger_setup["year"].id)
        assert Decimal(data["exchange_rate"]) == Decimal("1")
        assert Decimal(data["subtotal"]) == Decimal("140")
        assert Decimal(data["discount_amount"]) == Decimal("4")
        assert Decimal(data["tax_amount"]) == Decimal("10")
        assert Decimal(data["total_wht_amount"]) == Decimal("2")
        assert Decimal(data["total_amount"]) == Decimal("146")
        assert Decimal(data["equivalent_amount"]) == Decimal("146")

        first, second = data["items"]
        assert first["line_number"] == 1
        assert Decimal(first["line_total"]) == Decimal("110")
        assert Decimal(second["amount_after_discount"]) == Decimal("36")
        assert Decimal(second["amount_after_wht"]) == Decimal("34")

    @pytest.mark.asyncio
    async def test_references_increment(self, client: AsyncClient, auth_headers, ledger_setup):
        await _create(client, auth_headers, _order_body(ledger_setup["currency"]))
        second = await _create(client, auth_headers, _order_body(ledger_setup["currency"]))
        assert second["sales_order_ref_number"].endswith("-0002")

    @pytest.mark.asyncio
    async def test_foreign_currency_uses_latest_rate(
        self, client: AsyncClient, auth_headers, ledger_setup, usd_currency,
    ):
        await client.post("/api/v1/exchange-rates", json={
            "from_currency_id": str(usd_currency.id),
            "to_currency_id": str(ledger_setup["currency"].id),
            "rate": "1500",
            "effective_date": date.today().isoformat(),
        }, headers=auth_headers)

        data = await _create(client, auth_headers, _order_body(usd_currency))
        assert Decimal(data["exchange_rate"]) == Decimal("1500")
        assert data["exchange_rate_id"] is not None
        assert data["system_default_currency_id"] == str(ledger_setup["currency"].id)
        assert Decimal(data["equivalent_amount"]) == Decimal("219000")

    @pytest.mark.asyncio
    async def test_foreign_currency_without_rate(self, client: AsyncClient, auth_headers, ledger_setup, usd_currency):
        response = await client.post(BASE, json=_order_body(usd_currency), headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "exchange_rate"

    @pytest.mark.asyncio
    async def test_explicit_rate_wins(self, client: AsyncClient, auth_headers, ledger_setup, usd_currency):
        data = await _create(client, auth_headers, _order_body(usd_currency, exchange_rate="1000"))
        assert Decimal(data["exchange_rate"]) == Decimal("1000")
        assert Decimal(data["equivalent_amount"]) == Decimal("146000")

    @pytest.mark.asyncio
    async def test_date_outside_current_year(self, client: AsyncClient, auth_headers, ledger_setup):
        last_year = date(date.today().year - 1, 6, 1)
        body = _order_body(ledger_setup["currency"], sales_order_date=last_year.isoformat())
        response = await client.post(BASE, json=body, headers=auth_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_requires_items(self, client: AsyncClient, auth_headers, ledger_setup):
        body = _order_body(ledger_setup["currency"], items=[])
        response = await client.post(BASE, json=body, headers=auth_headers)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_discount_above_subtotal_rejected(self, client: AsyncClient, auth_headers, ledger_setup):
        body = _order_body(ledger_setup["currency"])
        body["items"][1]["discount_amount"] = "40.01"
        response = await client.post(BASE, json=body, headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "items.1.discount_amount"

        listing = await client.get(BASE, headers=auth_headers)
        assert listing.json()["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_update_draft_reprices(self, client: AsyncClient, auth_headers, ledger_setup):
        order = await _create(client, auth_headers, _order_body(ledger_setup["currency"]))
        response = await client.put(f"{BASE}/{order['id']}", json={
            "items": [{"description": "Bulk", "quantity": "10", "unit_price": "5"}],
        }, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()
        assert len(data["items"]) == 1
        assert Decimal(data["total_amount"]) == Decimal("50")
        assert data["sales_order_ref_number"] == order["sales_order_ref_number"]


class TestSalesOrderLifecycle:

    @pytest.mark.asyncio
    async def test_send_accept_fulfill(self, client: AsyncClient, auth_headers, ledger_setup):
        order = await _create(client, auth_headers, _order_body(ledger_setup["currency"]))
        order_id = order["id"]

        sent = await client.post(f"{BASE}/{order_id}/send", headers=auth_headers)
        assert sent.status_code == 200
        assert sent.json()["status"] == "sent"
        assert sent.json()["sent_at"] is not None

        accepted = await client.post(f"{BASE}/{order_id}/accept", headers=auth_headers)
        assert accepted.json()["status"] == "accepted"

        fulfilled = await client.post(f"{BASE}/{order_id}/fulfill", json={}, headers=auth_headers)
        assert fulfilled.status_code == 200
        assert fulfilled.json()["status"] == "delivered"
        assert fulfilled.json()["delivery_date"] == date.today().isoformat()

    @pytest.mark.asyncio
    async def test_invalid_transition(self, client: AsyncClient, auth_headers, ledger_setup):
        order = await _create(client, auth_headers, _order_body(ledger_setup["currency"]))
        response = await client.post(f"{BASE}/{order['id']}/accept", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_STATUS_TRANSITION"

    @pytest.mark.asyncio
    async def test_only_drafts_can_be_edited_or_deleted(self, client: AsyncClient, auth_headers, ledger_setup):
        order = await _create(client, auth_headers, _order_body(ledger_setup["currency"]))
        await client.post(f"{BASE}/{order['id']}/send", headers=auth_headers)

        update_response = await client.put(f"{BASE}/{order['id']}", json={"notes": "x"}, headers=auth_headers)
        assert update_response.status_code == 400
        delete_response = await client.delete(f"{BASE}/{order['id']}", headers=auth_headers)
        assert delete_response.status_code == 400

    @pytest.mark.asyncio
    async def test_reject_requires_reason(self, client: AsyncClient, auth_headers, ledger_setup):
        order = await _create(client, auth_headers, _order_body(ledger_setup["currency"]))
        await client.post(f"{BASE}/{order['id']}/send", headers=auth_headers)

        blank = await client.post(f"{BASE}/{order['id']}/reject", json={"reason": "   "}, headers=auth_headers)
        assert blank.status_code == 422

        rejected = await client.post(
            f"{BASE}/{order['id']}/reject", json={"reason": "Too expensive"}, headers=auth_headers,
        )
        assert rejected.status_code == 200
        assert rejected.json()["status"] == "rejected"
        assert rejected.json()["rejection_reason"] == "Too expensive"

    @pytest.mark.asyncio
    async def test_expire_and_reopen(self, client: AsyncClient, auth_headers, ledger_setup, db_session):
        order = await _create(client, auth_headers, _order_body(ledger_setup["currency"]))
        fresh = await _create(client, auth_headers, _order_body(
            ledger_setup["currency"], valid_until=(date.today() + timedelta(days=30)).isoformat(),
        ))
        await db_session.execute(
            update(SalesOrder)
            .where(SalesOrder.sales_order_ref_number == order["sales_order_ref_number"])
            .values(valid_until=date.today() - timedelta(days=1))
        )
        await db_session.commit()

        response = await client.post(f"{BASE}/expire-overdue", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["message"].startswith("1 ")

        expired = await client.get(f"{BASE}/{order['id']}", headers=auth_headers)
        assert expired.json()["status"] == "expired"
        untouched = await client.get(f"{BASE}/{fresh['id']}", headers=auth_headers)
        assert untouched.json()["status"] == "draft"

        reopened = await client.post(f"{BASE}/{order['id']}/reopen", json={
            "valid_until": (date.today() + timedelta(days=7)).isoformat(),
        }, headers=auth_headers)
        assert reopened.status_code == 200
        assert reopened.json()["status"] == "draft"

    @pytest.mark.asyncio
    async def test_stats(self, client: AsyncClient, auth_headers, ledger_setup):
        order = await _create(client, auth_headers, _order_body(ledger_setup["currency"]))
        await _create(client, auth_headers, _order_body(ledger_setup["currency"]))
        await client.post(f"{BASE}/{order['id']}/send", headers=auth_headers)

        stats = (await client.get(f"{BASE}/stats", headers=auth_headers)).json()
        assert stats["total"] == 2
        assert stats["by_status"]["draft"] == 1
        assert stats["by_status"]["sent"] == 1
        assert Decimal(stats["total_amount"]) == Decimal("292")


class TestConvertToInvoice:

    @pytest.mark.asyncio
    async def test_convert_once(self, client: AsyncClient, auth_headers, ledger_setup):
        accounts = ledger_setup["accounts"]
        order = await _create(client, auth_headers, _order_body(ledger_setup["currency"]))
        await client.post(f"{BASE}/{order['id']}/send", headers=auth_headers)

        response = await client.post(f"{BASE}/{order['id']}/convert", json={
            "account_receivable_id": str(accounts["receivable"].id),
            "revenue_account_id": str(accounts["revenue"].id),
        }, headers=auth_headers)
        assert response.status_code == 201, response.text
        invoice = response.json()
        assert invoice["sales_order_id"] == order["id"]
        assert invoice["invoice_ref_number"] == f"INV-{date.today():%Y%m%d}-0001"
        assert invoice["status"] == "draft"
        assert Decimal(invoice["total_amount"]) == Decimal("146")
        assert Decimal(invoice["balance_amount"]) == Decimal("146")
        assert len(invoice["items"]) == 2

        converted = await client.get(f"{BASE}/{order['id']}", headers=auth_headers)
        assert converted.json()["is_converted"] is True

        again = await client.post(f"{BASE}/{order['id']}/convert", json={}, headers=auth_headers)
        assert again.status_code == 400

    @pytest.mark.asyncio
    async def test_draft_cannot_be_converted(self, client: AsyncClient, auth_headers, ledger_setup):
        order = await _create(client, auth_headers, _order_body(ledger_setup["currency"]))
        response = await client.post(f"{BASE}/{order['id']}/convert", json={}, headers=auth_headers)
        assert response.status_code == 400
