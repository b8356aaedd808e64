"""
POS Back Office - Trial Balance API Tests
"""

from decimal import Decimal

import pytest
from httpx import AsyncClient

BASE = "/api/v1/trial-balance"


async def _post_entry(client: AsyncClient, headers, body) -> None:
    created = await client.post("/api/v1/journal-entries", json=body, headers=headers)
    assert created.status_code == 201, created.text
    posted = await client.post(f"/api/v1/journal-entries/{created.json()['id']}/post", headers=headers)
    assert posted.status_code == 200, posted.text


@pytest.fixture
def posted_ledger(client: AsyncClient, auth_headers, ledger_setup, journal_payload):
    """Capital of 1000 and other income of 200, both banked in cash."""
    accounts = ledger_setup["accounts"]

    async def build():
        await _post_entry(client, auth_headers, journal_payload(
            (accounts["cash"], "debit", 1000),
            (accounts["capital"], "credit", 1000),
        ))
        await _post_entry(client, auth_headers, journal_payload(
            (accounts["cash"], "debit", 200),
            (accounts["other_income"], "credit", 200),
        ))
        return ledger_setup

    return build


class TestTrialBalance:

    @pytest.mark.asyncio
    async def test_balanced_after_posting(self, client: AsyncClient, auth_headers, posted_ledger):
        setup = await posted_ledger()
        response = await client.get(
            BASE, params={"financial_year_id": str(setup["year"].id)}, headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()

        summary = data["summary"]
        assert summary["is_balanced"] is True
        assert Decimal(summary["total_debit"]) == Decimal("1200")
        assert Decimal(summary["total_credit"]) == Decimal("1200")
        assert Decimal(summary["difference"]) == Decimal("0")
        assert summary["accounts_with_activity"] == 3
        assert summary["account_count"] == len(setup["accounts"])

        assert data["metadata"]["financial_year_name"] == setup["year"].name
        assert data["metadata"]["default_currency_code"] == "NGN"

        codes = [group["account_type_code"] for group in data["groups"]]
        assert codes == sorted(codes)
        assets = next(g for g in data["groups"] if g["account_type_code"] == "CA")
        cash = next(a for a in assets["accounts"] if a["account_code"] == "1000")
        assert Decimal(cash["debit_balance"]) == Decimal("1200")
        assert Decimal(cash["credit_balance"]) == Decimal("0")

    @pytest.mark.asyncio
    async def test_zero_balances_can_be_excluded(self, client: AsyncClient, auth_headers, posted_ledger):
        setup = await posted_ledger()
        response = await client.get(BASE, params={
            "financial_year_id": str(setup["year"].id),
            "include_zero_balances": False,
        }, headers=auth_headers)
        data = response.json()
        listed = sorted(a["account_code"] for g in data["groups"] for a in g["accounts"])
        assert listed == ["1000", "3000", "4100"]
        assert data["summary"]["account_count"] == 3

    @pytest.mark.asyncio
    async def test_empty_ledger(self, client: AsyncClient, auth_headers, ledger_setup):
        response = await client.get(
            BASE, params={"financial_year_id": str(ledger_setup["year"].id)}, headers=auth_headers,
        )
        summary = response.json()["summary"]
        assert summary["is_balanced"] is True
        assert summary["accounts_with_activity"] == 0

    @pytest.mark.asyncio
    async def test_unknown_year(self, client: AsyncClient, auth_headers, ledger_setup, other_company):
        response = await client.get(
            BASE, params={"financial_year_id": str(other_company.id)}, headers=auth_headers,
        )
        assert response.status_code == 404


class TestHierarchicalTrialBalance:

    @pytest.mark.asyncio
    async def test_children_roll_up_into_parent(self, client: AsyncClient, auth_headers, posted_ledger):
        setup = await posted_ledger()
        response = await client.get(
            f"{BASE}/hierarchical", params={"financial_year_id": str(setup["year"].id)}, headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()

        roots = {node["account_code"]: node for node in data["accounts"]}
        assert "4100" not in roots
        revenue = roots["4000"]
        assert Decimal(revenue["own_credit"]) == Decimal("0")
        assert Decimal(revenue["total_credit"]) == Decimal("200")
        assert Decimal(revenue["credit_balance"]) == Decimal("200")
        assert [child["account_code"] for child in revenue["children"]] == ["4100"]

        assert data["summary"]["is_balanced"] is True
        assert Decimal(data["summary"]["total_credit"]) == Decimal("1200")
