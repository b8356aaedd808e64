"""
POS Back Office - Financial Year API Tests
"""

from datetime import date

import pytest
from httpx import AsyncClient

BASE = "/api/v1/financial-years"


def _year_body(year: int, name: str = None) -> dict:
    return {
        "name": name or f"FY {year}",
        "start_date": date(year, 1, 1).isoformat(),
        "end_date": date(year, 12, 31).isoformat(),
    }


class TestCreateFinancialYear:
    """Names, ranges and the current flag."""

    @pytest.mark.asyncio
    async def test_first_year_becomes_current(self, client: AsyncClient, auth_headers):
        this_year = date.today().year
        first = await client.post(BASE, json=_year_body(this_year), headers=auth_headers)
        assert first.status_code == 201
        assert first.json()["is_current"] is True
        assert first.json()["is_closed"] is False

        second = await client.post(BASE, json=_year_body(this_year + 1), headers=auth_headers)
        assert second.status_code == 201
        assert second.json()["is_current"] is False

    @pytest.mark.asyncio
    async def test_overlapping_range_rejected(self, client: AsyncClient, auth_headers, financial_year):
        this_year = date.today().year
        body = {
            "name": "Overlap",
            "start_date": date(this_year, 6, 1).isoformat(),
            "end_date": date(this_year + 1, 5, 31).isoformat(),
        }
        response = await client.post(BASE, json=body, headers=auth_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self, client: AsyncClient, auth_headers, financial_year):
        body = _year_body(date.today().year + 1, name=financial_year.name)
        response = await client.post(BASE, json=body, headers=auth_headers)
        assert response.status_code == 409
        assert response.json()["detail"]["code"] == "DUPLICATE_ENTRY"

    @pytest.mark.asyncio
    async def test_end_before_start_rejected(self, client: AsyncClient, auth_headers):
        body = {"name": "Backwards", "start_date": "2025-12-31", "end_date": "2025-01-01"}
        response = await client.post(BASE, json=body, headers=auth_headers)
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_name_check(self, client: AsyncClient, auth_headers, financial_year):
        taken = await client.get(f"{BASE}/check-name", params={"name": financial_year.name}, headers=auth_headers)
        assert taken.json()["available"] is False
        free = await client.get(f"{BASE}/check-name", params={"name": "FY 1999"}, headers=auth_headers)
        assert free.json()["available"] is True


class TestCurrentYear:
    """Switching the current year."""

    @pytest.mark.asyncio
    async def test_current_and_set_current(self, client: AsyncClient, auth_headers, financial_year):
        current = await client.get(f"{BASE}/current", headers=auth_headers)
        assert current.status_code == 200
        assert current.json()["id"] == str(financial_year.id)

        created = await client.post(BASE, json=_year_body(date.today().year + 1), headers=auth_headers)
        next_id = created.json()["id"]

        response = await client.patch(f"{BASE}/{next_id}/set-current", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["is_current"] is True

        previous = await client.get(f"{BASE}/{financial_year.id}", headers=auth_headers)
        assert previous.json()["is_current"] is False

    @pytest.mark.asyncio
    async def test_by_date(self, client: AsyncClient, auth_headers, financial_year):
        response = await client.get(
            f"{BASE}/by-date", params={"date": date.today().isoformat()}, headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["id"] == str(financial_year.id)


class TestClosingYears:
    """Close and reopen rules."""

    @pytest.mark.asyncio
    async def test_cannot_close_current_year(self, client: AsyncClient, auth_headers, financial_year):
        response = await client.post(f"{BASE}/{financial_year.id}/close", json={}, headers=auth_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_cannot_close_year_that_has_not_ended(self, client: AsyncClient, auth_headers, financial_year):
        created = await client.post(BASE, json=_year_body(date.today().year + 1), headers=auth_headers)
        response = await client.post(f"{BASE}/{created.json()['id']}/close", json={}, headers=auth_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_close_and_reopen_past_year(self, client: AsyncClient, auth_headers, financial_year):
        created = await client.post(BASE, json=_year_body(date.today().year - 1), headers=auth_headers)
        year_id = created.json()["id"]

        closed = await client.post(
            f"{BASE}/{year_id}/close", json={"closing_notes": "Audited"}, headers=auth_headers,
        )
        assert closed.status_code == 200
        assert closed.json()["is_closed"] is True
        assert closed.json()["closed_at"] is not None

        again = await client.post(f"{BASE}/{year_id}/close", json={}, headers=auth_headers)
        assert again.status_code == 400

        update = await client.put(f"{BASE}/{year_id}", json={"description": "late"}, headers=auth_headers)
        assert update.status_code == 400

        reopened = await client.post(f"{BASE}/{year_id}/reopen", headers=auth_headers)
        assert reopened.status_code == 200
        assert reopened.json()["is_closed"] is False

    @pytest.mark.asyncio
    async def test_reopen_requires_admin(
        self, client: AsyncClient, auth_headers, cashier_headers, financial_year,
    ):
        created = await client.post(BASE, json=_year_body(date.today().year - 1), headers=auth_headers)
        year_id = created.json()["id"]
        await client.post(f"{BASE}/{year_id}/close", json={}, headers=auth_headers)

        response = await client.post(f"{BASE}/{year_id}/reopen", headers=cashier_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_open_and_closed_lists(self, client: AsyncClient, auth_headers, financial_year):
        created = await client.post(BASE, json=_year_body(date.today().year - 1), headers=auth_headers)
        await client.post(f"{BASE}/{created.json()['id']}/close", json={}, headers=auth_headers)

        open_years = (await client.get(f"{BASE}/open", headers=auth_headers)).json()
        closed_years = (await client.get(f"{BASE}/closed", headers=auth_headers)).json()
        assert [y["id"] for y in open_years] == [str(financial_year.id)]
        assert [y["id"] for y in closed_years] == [created.json()["id"]]


class TestDeleteFinancialYear:

    @pytest.mark.asyncio
    async def test_delete_unused_year(self, client: AsyncClient, auth_headers, financial_year):
        created = await client.post(BASE, json=_year_body(date.today().year + 1), headers=auth_headers)
        year_id = created.json()["id"]

        response = await client.delete(f"{BASE}/{year_id}", headers=auth_headers)
        assert response.status_code == 200
        assert (await client.get(f"{BASE}/{year_id}", headers=auth_headers)).status_code == 404

    @pytest.mark.asyncio
    async def test_cannot_delete_current_year(self, client: AsyncClient, auth_headers, financial_year):
        response = await client.delete(f"{BASE}/{financial_year.id}", headers=auth_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_cannot_delete_year_with_ledger_postings(
        self, client: AsyncClient, auth_headers, ledger_setup, journal_payload,
    ):
        next_year = date.today().year + 1
        created = await client.post(BASE, json=_year_body(next_year), headers=auth_headers)
        year_id = created.json()["id"]

        accounts = ledger_setup["accounts"]
        entry = await client.post("/api/v1/journal-entries", json=journal_payload(
            (accounts["cash"], "debit", 250),
            (accounts["capital"], "credit", 250),
            entry_date=date(next_year, 3, 1),
            financial_year_id=year_id,
        ), headers=auth_headers)
        assert entry.status_code == 201, entry.text
        posted = await client.post(f"/api/v1/journal-entries/{entry.json()['id']}/post", headers=auth_headers)
        assert posted.status_code == 200, posted.text

        response = await client.delete(f"{BASE}/{year_id}", headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["detail"]["details"]["violated_rule"] == "NO_POSTINGS"
        assert (await client.get(f"{BASE}/{year_id}", headers=auth_headers)).status_code == 200


class TestUpdateFinancialYear:

    @pytest.mark.asyncio
    async def test_null_fields_leave_year_unchanged(self, client: AsyncClient, auth_headers, financial_year):
        response = await client.put(
            f"{BASE}/{financial_year.id}",
            json={"name": None, "start_date": None, "end_date": None, "is_active": None, "description": "Main"},
            headers=auth_headers,
        )
        assert response.status_code == 200, response.text
        data = response.json()
        assert data["name"] == financial_year.name
        assert data["start_date"] == financial_year.start_date.isoformat()
        assert data["end_date"] == financial_year.end_date.isoformat()
        assert data["is_active"] is True
        assert data["description"] == "Main"

    @pytest.mark.asyncio
    async def test_end_before_existing_start_rejected(self, client: AsyncClient, auth_headers, financial_year):
        response = await client.put(
            f"{BASE}/{financial_year.id}",
            json={"end_date": financial_year.start_date.isoformat()},
            headers=auth_headers,
        )
        assert response.status_code == 422
