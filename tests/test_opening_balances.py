"""
POS Back Office - Opening Balance API Tests

One balance per account and year, the ledger row written for each balance,
and the lock on balances of previous financial years.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import AsyncClient

from backoffice.models.financial_year import FinancialYear

BASE = "/api/v1/opening-balances"


def _balance_body(year, account, balance_type: str = "debit", amount="500", **extra) -> dict:
    body = {
        "account_id": str(account.id),
        "financial_year_id": str(year.id),
        "balance_date": date.today().isoformat(),
        "type": balance_type,
        "amount": str(amount),
    }
    body.update(extra)
    return body


async def _create(client: AsyncClient, headers, body) -> dict:
    response = await client.post(BASE, json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def _ledger_rows(client: AsyncClient, headers, reference: str) -> list:
    response = await client.get(
        "/api/v1/general-ledger",
        params={"reference_number": reference, "transaction_type": "OPENING_BALANCE"},
        headers=headers,
    )
    assert response.status_code == 200
    return response.json()["items"]


class TestCreateOpeningBalance:

    @pytest.mark.asyncio
    async def test_create_writes_ledger_row(self, client: AsyncClient, auth_headers, ledger_setup):
        year = ledger_setup["year"]
        cash = ledger_setup["accounts"]["cash"]
        data = await _create(client, auth_headers, _balance_body(year, cash, description="Float"))

        assert data["reference_number"] == (
            f"{year.start_date.year}/{year.start_date.isoformat()}_{year.end_date.isoformat()}/ACME/0000001"
        )
        assert data["account_type_id"] == str(cash.account_type_id)
        assert Decimal(data["original_amount"]) == Decimal("500")
        assert Decimal(data["equivalent_amount"]) == Decimal("500")

        rows = await _ledger_rows(client, auth_headers, data["reference_number"])
        assert len(rows) == 1
        assert rows[0]["account_code"] == "1000"
        assert rows[0]["transaction_type_name"] == "Opening Balances"
        assert rows[0]["description"] == "Float"
        assert Decimal(rows[0]["equivalent_debit_amount"]) == Decimal("500")
        assert rows[0]["equivalent_credit_amount"] is None

    @pytest.mark.asyncio
    async def test_references_continue_within_the_year(self, client: AsyncClient, auth_headers, ledger_setup):
        year = ledger_setup["year"]
        accounts = ledger_setup["accounts"]
        await _create(client, auth_headers, _balance_body(year, accounts["cash"]))
        second = await _create(client, auth_headers, _balance_body(year, accounts["capital"], "credit"))
        assert second["reference_number"].endswith("/ACME/0000002")

    @pytest.mark.asyncio
    async def test_one_balance_per_account_and_year(self, client: AsyncClient, auth_headers, ledger_setup):
        year = ledger_setup["year"]
        cash = ledger_setup["accounts"]["cash"]
        await _create(client, auth_headers, _balance_body(year, cash))

        response = await client.post(BASE, json=_balance_body(year, cash, amount="10"), headers=auth_headers)
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "DUPLICATE_ENTRY"

    @pytest.mark.asyncio
    async def test_foreign_currency_uses_rate(
        self, client: AsyncClient, auth_headers, ledger_setup, usd_currency,
    ):
        year = ledger_setup["year"]
        cash = ledger_setup["accounts"]["cash"]
        data = await _create(client, auth_headers, _balance_body(
            year, cash, amount="10", currency_id=str(usd_currency.id), exchange_rate="1500",
        ))
        assert Decimal(data["exchange_rate"]) == Decimal("1500")
        assert Decimal(data["equivalent_amount"]) == Decimal("15000")

        row = (await _ledger_rows(client, auth_headers, data["reference_number"]))[0]
        assert Decimal(row["user_debit_amount"]) == Decimal("10")
        assert Decimal(row["equivalent_debit_amount"]) == Decimal("15000")

    @pytest.mark.asyncio
    async def test_foreign_currency_without_rate(
        self, client: AsyncClient, auth_headers, ledger_setup, usd_currency,
    ):
        body = _balance_body(ledger_setup["year"], ledger_setup["accounts"]["cash"], currency_id=str(usd_currency.id))
        response = await client.post(BASE, json=body, headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "exchange_rate"

    @pytest.mark.asyncio
    async def test_date_outside_financial_year(self, client: AsyncClient, auth_headers, ledger_setup):
        body = _balance_body(
            ledger_setup["year"],
            ledger_setup["accounts"]["cash"],
            balance_date=date(date.today().year - 1, 6, 30).isoformat(),
        )
        response = await client.post(BASE, json=body, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"]["field"] == "balance_date"

    @pytest.mark.asyncio
    async def test_requires_default_currency(self, client: AsyncClient, auth_headers, financial_year, accounts):
        response = await client.post(BASE, json=_balance_body(financial_year, accounts["cash"]), headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"]["details"]["violated_rule"] == "DEFAULT_CURRENCY_REQUIRED"

        listing = await client.get(BASE, headers=auth_headers)
        assert listing.json()["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_account_of_another_company(
        self, client: AsyncClient, auth_headers, ledger_setup, other_account,
    ):
        response = await client.post(
            BASE, json=_balance_body(ledger_setup["year"], other_account), headers=auth_headers,
        )
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "account_id"

    @pytest.mark.asyncio
    async def test_company_id_in_body_is_ignored(
        self, client: AsyncClient, auth_headers, ledger_setup, other_company,
    ):
        body = _balance_body(ledger_setup["year"], ledger_setup["accounts"]["cash"], company_id=str(other_company.id))
        data = await _create(client, auth_headers, body)
        assert data["company_id"] == str(ledger_setup["user"].company_id)


class TestOpeningBalanceQueries:

    @pytest.mark.asyncio
    async def test_check_exists(self, client: AsyncClient, auth_headers, ledger_setup):
        year = ledger_setup["year"]
        accounts = ledger_setup["accounts"]
        created = await _create(client, auth_headers, _balance_body(year, accounts["cash"]))

        found = await client.get(f"{BASE}/check-exists", params={
            "account_id": str(accounts["cash"].id), "financial_year_id": str(year.id),
        }, headers=auth_headers)
        assert found.status_code == 200
        assert found.json()["exists"] is True
        assert found.json()["opening_balance"]["id"] == created["id"]

        missing = await client.get(f"{BASE}/check-exists", params={
            "account_id": str(accounts["rent"].id), "financial_year_id": str(year.id),
        }, headers=auth_headers)
        assert missing.json() == {"exists": False, "opening_balance": None}

    @pytest.mark.asyncio
    async def test_accounts_without_balances_lists_leaves_only(
        self, client: AsyncClient, auth_headers, ledger_setup,
    ):
        year = ledger_setup["year"]
        await _create(client, auth_headers, _balance_body(year, ledger_setup["accounts"]["cash"]))

        response = await client.get(
            f"{BASE}/accounts/without-balances", params={"financial_year_id": str(year.id)}, headers=auth_headers,
        )
        assert response.status_code == 200
        codes = {account["code"] for account in response.json()}
        # 1000 has a balance; 4000 is the parent of 4100
        assert codes == {"1100", "1200", "2100", "3000", "4100", "5100", "5200"}

    @pytest.mark.asyncio
    async def test_stats_and_filters(self, client: AsyncClient, auth_headers, ledger_setup):
        year = ledger_setup["year"]
        accounts = ledger_setup["accounts"]
        await _create(client, auth_headers, _balance_body(year, accounts["cash"], amount="700", description="Till float"))
        await _create(client, auth_headers, _balance_body(year, accounts["capital"], "credit", amount="500"))

        stats = (await client.get(f"{BASE}/stats", headers=auth_headers)).json()
        assert stats["total_opening_balances"] == 2
        assert Decimal(stats["total_debit_amount"]) == Decimal("700")
        assert Decimal(stats["total_credit_amount"]) == Decimal("500")
        assert Decimal(stats["delta"]) == Decimal("-200")
        assert stats["active_financial_years"] == 1

        credits = await client.get(BASE, params={"type": "credit"}, headers=auth_headers)
        assert [item["account_id"] for item in credits.json()["items"]] == [str(accounts["capital"].id)]

        by_account = await client.get(BASE, params={"search": "owner cap"}, headers=auth_headers)
        assert by_account.json()["pagination"]["total"] == 1

        assets = await client.get(BASE, params={"account_type": "ASSET"}, headers=auth_headers)
        assert [item["description"] for item in assets.json()["items"]] == ["Till float"]

    @pytest.mark.asyncio
    async def test_other_company_cannot_read(self, client: AsyncClient, auth_headers, other_headers, ledger_setup):
        created = await _create(client, auth_headers, _balance_body(ledger_setup["year"], ledger_setup["accounts"]["cash"]))

        response = await client.get(f"{BASE}/{created['id']}", headers=other_headers)
        assert response.status_code == 404
        listing = await client.get(BASE, headers=other_headers)
        assert listing.json()["pagination"]["total"] == 0


class TestChangingOpeningBalances:

    @pytest.mark.asyncio
    async def test_update_rewrites_ledger_row(self, client: AsyncClient, auth_headers, ledger_setup):
        created = await _create(
            client, auth_headers, _balance_body(ledger_setup["year"], ledger_setup["accounts"]["cash"]),
        )

        response = await client.put(f"{BASE}/{created['id']}", json={
            "amount": "800", "type": "credit", "balance_date": None,
        }, headers=auth_headers)
        assert response.status_code == 200, response.text
        data = response.json()
        assert Decimal(data["amount"]) == Decimal("800")
        assert Decimal(data["equivalent_amount"]) == Decimal("800")
        assert data["balance_date"] == created["balance_date"]
        assert data["reference_number"] == created["reference_number"]

        rows = await _ledger_rows(client, auth_headers, created["reference_number"])
        assert len(rows) == 1
        assert rows[0]["equivalent_debit_amount"] is None
        assert Decimal(rows[0]["equivalent_credit_amount"]) == Decimal("800")

    @pytest.mark.asyncio
    async def test_delete_removes_ledger_row(self, client: AsyncClient, auth_headers, ledger_setup):
        created = await _create(
            client, auth_headers, _balance_body(ledger_setup["year"], ledger_setup["accounts"]["cash"]),
        )

        response = await client.delete(f"{BASE}/{created['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert await _ledger_rows(client, auth_headers, created["reference_number"]) == []
        assert (await client.get(f"{BASE}/{created['id']}", headers=auth_headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_previous_year_is_locked(
        self, client: AsyncClient, auth_headers, ledger_setup, db_session,
    ):
        last_year = date.today().year - 1
        previous = FinancialYear(
            id=uuid4(),
            company_id=ledger_setup["user"].company_id,
            name=f"FY {last_year}",
            start_date=date(last_year, 1, 1),
            end_date=date(last_year, 12, 31),
            is_current=False,
            is_active=True,
            is_closed=False,
        )
        db_session.add(previous)
        await db_session.commit()

        created = await _create(client, auth_headers, _balance_body(
            previous, ledger_setup["accounts"]["cash"], balance_date=date(last_year, 1, 1).isoformat(),
        ))

        update = await client.put(f"{BASE}/{created['id']}", json={"amount": "1"}, headers=auth_headers)
        assert update.status_code == 403
        assert update.json()["detail"]["code"] == "CANNOT_MODIFY"

        delete = await client.delete(f"{BASE}/{created['id']}", headers=auth_headers)
        assert delete.status_code == 403
        assert len(await _ledger_rows(client, auth_headers, created["reference_number"])) == 1
