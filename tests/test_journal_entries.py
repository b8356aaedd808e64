"""
POS Back Office - Journal Entry API Tests

Creation rules, reference numbers, posting to the general ledger and the
lock on posted entries.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import AsyncClient

from backoffice.models.financial_year import FinancialYear

BASE = "/api/v1/journal-entries"


async def _create(client: AsyncClient, headers, body) -> dict:
    response = await client.post(BASE, json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def _ledger_rows(client: AsyncClient, headers, reference: str) -> list:
    response = await client.get(
        "/api/v1/general-ledger", params={"reference_number": reference}, headers=headers,
    )
    assert response.status_code == 200
    return response.json()["items"]


class TestCreateJournalEntry:
    """Validation on create."""

    @pytest.mark.asyncio
    async def test_create_balanced_entry(self, client: AsyncClient, auth_headers, ledger_setup, journal_payload):
        accounts = ledger_setup["accounts"]
        data = await _create(client, auth_headers, journal_payload(
            (accounts["cash"], "debit", 1000),
            (accounts["capital"], "credit", 1000),
            description="Opening capital",
        ))

        today = date.today()
        assert data["reference_number"] == f"JE/{today.year}/{today:%Y%m%d}/ACME/0000001"
        assert data["is_posted"] is False
        assert Decimal(data["total_debit"]) == Decimal("1000")
        assert Decimal(data["total_credit"]) == Decimal("1000")
        assert [line["line_number"] for line in data["lines"]] == [1, 2]
        assert data["company_id"] == str(ledger_setup["user"].company_id)

    @pytest.mark.asyncio
    async def test_references_continue_the_sequence(
        self, client: AsyncClient, auth_headers, ledger_setup, journal_payload,
    ):
        accounts = ledger_setup["accounts"]
        body = journal_payload((accounts["cash"], "debit", 10), (accounts["capital"], "credit", 10))
        first = await _create(client, auth_headers, body)
        second = await _create(client, auth_headers, body)
        assert first["reference_number"].endswith("/0000001")
        assert second["reference_number"].endswith("/0000002")

    @pytest.mark.asyncio
    async def test_unbalanced_entry_rejected(self, client: AsyncClient, auth_headers, ledger_setup, journal_payload):
        accounts = ledger_setup["accounts"]
        response = await client.post(BASE, json=journal_payload(
            (accounts["cash"], "debit", 100),
            (accounts["capital"], "credit", 90),
        ), headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "UNBALANCED_ENTRY"

    @pytest.mark.asyncio
    async def test_single_line_rejected(self, client: AsyncClient, auth_headers, ledger_setup, journal_payload):
        accounts = ledger_setup["accounts"]
        response = await client.post(
            BASE, json=journal_payload((accounts["cash"], "debit", 100)), headers=auth_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_credit_beyond_balance_rejected(
        self, client: AsyncClient, auth_headers, ledger_setup, journal_payload,
    ):
        accounts = ledger_setup["accounts"]
        response = await client.post(BASE, json=journal_payload(
            (accounts["rent"], "debit", 50),
            (accounts["cash"], "credit", 50),
        ), headers=auth_headers)
        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["code"] == "INSUFFICIENT_BALANCE"
        assert "1000" in detail["message"]

    @pytest.mark.asyncio
    async def test_credit_within_posted_balance_allowed(
        self, client: AsyncClient, auth_headers, ledger_setup, journal_payload,
    ):
        accounts = ledger_setup["accounts"]
        opening = await _create(client, auth_headers, journal_payload(
            (accounts["cash"], "debit", 1000),
            (accounts["capital"], "credit", 1000),
        ))
        response = await client.post(f"{BASE}/{opening['id']}/post", headers=auth_headers)
        assert response.status_code == 200

        rent = await _create(client, auth_headers, journal_payload(
            (accounts["rent"], "debit", 300),
            (accounts["cash"], "credit", 300),
        ))
        assert Decimal(rent["total_credit"]) == Decimal("300")

    @pytest.mark.asyncio
    async def test_foreign_currency_line(
        self, client: AsyncClient, auth_headers, ledger_setup, journal_payload, usd_currency,
    ):
        accounts = ledger_setup["accounts"]
        body = journal_payload(
            (accounts["cash"], "debit", 10),
            (accounts["capital"], "credit", 15000),
        )
        body["lines"][0].update({"currency_id": str(usd_currency.id), "exchange_rate": "1500"})

        data = await _create(client, auth_headers, body)
        debit_line = data["lines"][0]
        assert Decimal(debit_line["original_amount"]) == Decimal("10")
        assert Decimal(debit_line["equivalent_amount"]) == Decimal("15000")
        assert Decimal(debit_line["exchange_rate"]) == Decimal("1500")
        assert Decimal(data["total_debit"]) == Decimal("15000")

    @pytest.mark.asyncio
    async def test_account_of_another_company_rejected(
        self, client: AsyncClient, auth_headers, ledger_setup, journal_payload, other_account,
    ):
        accounts = ledger_setup["accounts"]
        response = await client.post(BASE, json=journal_payload(
            (other_account, "debit", 100),
            (accounts["capital"], "credit", 100),
        ), headers=auth_headers)
        assert response.status_code == 422
        assert response.json()["detail"]["field"] == "account_id"

    @pytest.mark.asyncio
    async def test_closed_financial_year_rejected(
        self, client: AsyncClient, auth_headers, ledger_setup, journal_payload, db_session,
    ):
        last_year = date.today().year - 1
        closed = FinancialYear(
            id=uuid4(),
            company_id=ledger_setup["user"].company_id,
            name=f"FY {last_year}",
            start_date=date(last_year, 1, 1),
            end_date=date(last_year, 12, 31),
            is_current=False,
            is_active=True,
            is_closed=True,
        )
        db_session.add(closed)
        await db_session.commit()

        accounts = ledger_setup["accounts"]
        body = journal_payload(
            (accounts["cash"], "debit", 100),
            (accounts["capital"], "credit", 100),
            entry_date=date(last_year, 6, 30),
        )
        body["financial_year_id"] = str(closed.id)
        response = await client.post(BASE, json=body, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "FINANCIAL_YEAR_CLOSED"

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client: AsyncClient, ledger_setup, journal_payload):
        accounts = ledger_setup["accounts"]
        response = await client.post(BASE, json=journal_payload(
            (accounts["cash"], "debit", 100),
            (accounts["capital"], "credit", 100),
        ))
        assert response.status_code == 401


class TestPosting:
    """Posting, unposting and the lock on posted entries."""

    @pytest.mark.asyncio
    async def test_post_writes_ledger_rows(self, client: AsyncClient, auth_headers, ledger_setup, journal_payload):
        accounts = ledger_setup["accounts"]
        entry = await _create(client, auth_headers, journal_payload(
            (accounts["cash"], "debit", 1000),
            (accounts["capital"], "credit", 1000),
        ))

        response = await client.post(f"{BASE}/{entry['id']}/post", headers=auth_headers)
        assert response.status_code == 200
        posted = response.json()
        assert posted["is_posted"] is True
        assert posted["posted_at"] is not None

        rows = await _ledger_rows(client, auth_headers, entry["reference_number"])
        assert len(rows) == 2
        by_code = {row["account_code"]: row for row in rows}
        assert Decimal(by_code["1000"]["equivalent_debit_amount"]) == Decimal("1000")
        assert by_code["1000"]["equivalent_credit_amount"] is None
        assert Decimal(by_code["3000"]["equivalent_credit_amount"]) == Decimal("1000")
        assert by_code["3000"]["transaction_type"] == "JOURNAL_ENTRY"
        assert by_code["3000"]["financial_year_code"] == ledger_setup["year"].name
        assert by_code["3000"]["username"] == "admin"

    @pytest.mark.asyncio
    async def test_post_twice_rejected(self, client: AsyncClient, auth_headers, ledger_setup, journal_payload):
        accounts = ledger_setup["accounts"]
        entry = await _create(client, auth_headers, journal_payload(
            (accounts["cash"], "debit", 10),
            (accounts["capital"], "credit", 10),
        ))
        await client.post(f"{BASE}/{entry['id']}/post", headers=auth_headers)

        response = await client.post(f"{BASE}/{entry['id']}/post", headers=auth_headers)
        assert response.status_code == 400
        assert len(await _ledger_rows(client, auth_headers, entry["reference_number"])) == 2

    @pytest.mark.asyncio
    async def test_posted_entry_is_locked(self, client: AsyncClient, auth_headers, ledger_setup, journal_payload):
        accounts = ledger_setup["accounts"]
        entry = await _create(client, auth_headers, journal_payload(
            (accounts["cash"], "debit", 10),
            (accounts["capital"], "credit", 10),
        ))
        await client.post(f"{BASE}/{entry['id']}/post", headers=auth_headers)

        update = await client.put(
            f"{BASE}/{entry['id']}", json={"description": "Changed"}, headers=auth_headers,
        )
        assert update.status_code == 403
        assert update.json()["detail"]["code"] == "CANNOT_MODIFY"

        delete = await client.delete(f"{BASE}/{entry['id']}", headers=auth_headers)
        assert delete.status_code == 403

    @pytest.mark.asyncio
    async def test_unpost_removes_ledger_rows(
        self, client: AsyncClient, auth_headers, ledger_setup, journal_payload,
    ):
        accounts = ledger_setup["accounts"]
        entry = await _create(client, auth_headers, journal_payload(
            (accounts["cash"], "debit", 10),
            (accounts["capital"], "credit", 10),
        ))
        await client.post(f"{BASE}/{entry['id']}/post", headers=auth_headers)

        response = await client.post(f"{BASE}/{entry['id']}/unpost", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["is_posted"] is False
        assert await _ledger_rows(client, auth_headers, entry["reference_number"]) == []

        delete = await client.delete(f"{BASE}/{entry['id']}", headers=auth_headers)
        assert delete.status_code == 200

        missing = await client.get(f"{BASE}/{entry['id']}", headers=auth_headers)
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_unpost_draft_rejected(self, client: AsyncClient, auth_headers, ledger_setup, journal_payload):
        accounts = ledger_setup["accounts"]
        entry = await _create(client, auth_headers, journal_payload(
            (accounts["cash"], "debit", 10),
            (accounts["capital"], "credit", 10),
        ))
        response = await client.post(f"{BASE}/{entry['id']}/unpost", headers=auth_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_account_balance_after_posting(
        self, client: AsyncClient, auth_headers, ledger_setup, journal_payload,
    ):
        accounts = ledger_setup["accounts"]
        entry = await _create(client, auth_headers, journal_payload(
            (accounts["cash"], "debit", 750),
            (accounts["capital"], "credit", 750),
        ))
        await client.post(f"{BASE}/{entry['id']}/post", headers=auth_headers)

        response = await client.get(
            f"/api/v1/general-ledger/accounts/{accounts['capital'].id}/balance", headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["total_credit"]) == Decimal("750")
        assert Decimal(data["balance"]) == Decimal("-750")

    @pytest.mark.asyncio
    async def test_post_requires_default_currency(
        self, client: AsyncClient, auth_headers, financial_year, accounts, journal_payload,
    ):
        entry = await _create(client, auth_headers, journal_payload(
            (accounts["cash"], "debit", 10),
            (accounts["capital"], "credit", 10),
        ))

        response = await client.post(f"{BASE}/{entry['id']}/post", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"]["details"]["violated_rule"] == "DEFAULT_CURRENCY_REQUIRED"
        assert await _ledger_rows(client, auth_headers, entry["reference_number"]) == []

        unchanged = await client.get(f"{BASE}/{entry['id']}", headers=auth_headers)
        assert unchanged.json()["is_posted"] is False


class TestDraftMaintenance:
    """Editing, listing and statistics."""

    @pytest.mark.asyncio
    async def test_update_replaces_lines(self, client: AsyncClient, auth_headers, ledger_setup, journal_payload):
        accounts = ledger_setup["accounts"]
        entry = await _create(client, auth_headers, journal_payload(
            (accounts["cash"], "debit", 100),
            (accounts["capital"], "credit", 100),
        ))
        replacement = journal_payload(
            (accounts["cash"], "debit", 500),
            (accounts["other_income"], "credit", 200),
            (accounts["capital"], "credit", 300),
        )

        response = await client.put(
            f"{BASE}/{entry['id']}",
            json={"lines": replacement["lines"], "description": "Corrected"},
            headers=auth_headers,
        )
        assert response.status_code == 200, response.text
        data = response.json()
        assert data["description"] == "Corrected"
        assert len(data["lines"]) == 3
        assert Decimal(data["total_debit"]) == Decimal("500")
        assert data["reference_number"] == entry["reference_number"]

    @pytest.mark.asyncio
    async def test_list_and_stats(self, client: AsyncClient, auth_headers, ledger_setup, journal_payload):
        accounts = ledger_setup["accounts"]
        first = await _create(client, auth_headers, journal_payload(
            (accounts["cash"], "debit", 100),
            (accounts["capital"], "credit", 100),
            description="Capital injection",
        ))
        await _create(client, auth_headers, journal_payload(
            (accounts["cash"], "debit", 40),
            (accounts["other_income"], "credit", 40),
            description="Sundry income",
        ))
        await client.post(f"{BASE}/{first['id']}/post", headers=auth_headers)

        listing = await client.get(BASE, params={"search": "sundry"}, headers=auth_headers)
        assert listing.status_code == 200
        assert listing.json()["pagination"]["total"] == 1
        assert listing.json()["items"][0]["description"] == "Sundry income"

        posted_only = await client.get(BASE, params={"is_posted": True}, headers=auth_headers)
        assert [item["id"] for item in posted_only.json()["items"]] == [first["id"]]

        stats = (await client.get(f"{BASE}/stats", headers=auth_headers)).json()
        assert stats["total_entries"] == 2
        assert stats["posted_entries"] == 1
        assert stats["draft_entries"] == 1
        assert Decimal(stats["total_debit"]) == Decimal("140")

    @pytest.mark.asyncio
    async def test_null_date_and_year_leave_entry_unchanged(
        self, client: AsyncClient, auth_headers, ledger_setup, journal_payload,
    ):
        accounts = ledger_setup["accounts"]
        entry = await _create(client, auth_headers, journal_payload(
            (accounts["cash"], "debit", 100),
            (accounts["capital"], "credit", 100),
        ))

        response = await client.put(
            f"{BASE}/{entry['id']}",
            json={"entry_date": None, "financial_year_id": None, "description": None},
            headers=auth_headers,
        )
        assert response.status_code == 200, response.text
        data = response.json()
        assert data["entry_date"] == entry["entry_date"]
        assert data["financial_year_id"] == entry["financial_year_id"]
        assert data["description"] is None
