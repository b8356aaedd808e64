"""
POS Back Office - Tenant Isolation Tests

Every tenant route filters by the caller's company. System administrators
read across companies but cannot write tenant data without one.
"""

from uuid import uuid4

import pytest
from httpx import AsyncClient

from backoffice.models.user import User, UserRole
from backoffice.utils.security import create_access_token, get_password_hash
from tests.conftest import TEST_PASSWORD


class TestCompanyIsolation:

    @pytest.mark.asyncio
    async def test_other_tenant_cannot_read_records(
        self, client: AsyncClient, auth_headers, other_headers, accounts, default_currency,
    ):
        color = await client.post(
            "/api/v1/product-colors", json={"name": "Navy", "hex_code": "#000080"}, headers=auth_headers,
        )
        color_id = color.json()["id"]

        for path in (
            f"/api/v1/accounts/{accounts['cash'].id}",
            f"/api/v1/currencies/{default_currency.id}",
            f"/api/v1/product-colors/{color_id}",
        ):
            response = await client.get(path, headers=other_headers)
            assert response.status_code == 404, path

    @pytest.mark.asyncio
    async def test_other_tenant_cannot_modify_records(
        self, client: AsyncClient, auth_headers, other_headers, accounts,
    ):
        response = await client.put(
            f"/api/v1/accounts/{accounts['rent'].id}", json={"name": "Hijacked"}, headers=other_headers,
        )
        assert response.status_code == 404

        deleted = await client.delete(f"/api/v1/accounts/{accounts['rent'].id}", headers=other_headers)
        assert deleted.status_code == 404

        unchanged = await client.get(f"/api/v1/accounts/{accounts['rent'].id}", headers=auth_headers)
        assert unchanged.json()["name"] == "Rent Expense"

    @pytest.mark.asyncio
    async def test_lists_are_scoped(self, client: AsyncClient, auth_headers, other_headers, accounts, other_account):
        own = (await client.get("/api/v1/accounts", params={"limit": 100}, headers=auth_headers)).json()
        assert own["pagination"]["total"] == len(accounts)
        assert str(other_account.id) not in {a["id"] for a in own["items"]}

        theirs = (await client.get("/api/v1/accounts", headers=other_headers)).json()
        assert [a["name"] for a in theirs["items"]] == ["Bolt Cash"]

    @pytest.mark.asyncio
    async def test_client_company_id_is_ignored(
        self, client: AsyncClient, auth_headers, company, other_company,
    ):
        response = await client.post("/api/v1/product-models", json={
            "name": "Smuggled", "company_id": str(other_company.id),
        }, headers=auth_headers)
        assert response.status_code == 201
        assert response.json()["company_id"] == str(company.id)

    @pytest.mark.asyncio
    async def test_codes_are_numbered_per_company(
        self, client: AsyncClient, auth_headers, other_headers,
    ):
        ours = await client.post(
            "/api/v1/product-models", json={"name": "Tee"}, headers=auth_headers,
        )
        theirs = await client.post(
            "/api/v1/product-models", json={"name": "Tee"}, headers=other_headers,
        )
        assert ours.json()["code"] == "ACME-PMD-0001"
        assert theirs.json()["code"] == "BOLT-PMD-0001"


class TestSystemAdministrator:

    @pytest.mark.asyncio
    async def test_reads_across_companies(
        self, client: AsyncClient, system_admin_headers, accounts, other_account,
    ):
        response = await client.get("/api/v1/accounts", params={"limit": 100}, headers=system_admin_headers)
        assert response.status_code == 200
        ids = {a["id"] for a in response.json()["items"]}
        assert str(accounts["cash"].id) in ids
        assert str(other_account.id) in ids

        single = await client.get(f"/api/v1/accounts/{other_account.id}", headers=system_admin_headers)
        assert single.status_code == 200

    @pytest.mark.asyncio
    async def test_writes_require_a_company(self, client: AsyncClient, system_admin_headers):
        response = await client.post(
            "/api/v1/product-colors", json={"name": "Navy", "hex_code": "#000080"}, headers=system_admin_headers,
        )
        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "COMPANY_ACCESS_REQUIRED"


class TestUserWithoutCompany:

    @pytest.mark.asyncio
    async def test_tenant_routes_refused(self, client: AsyncClient, db_session):
        user = User(
            id=uuid4(),
            username="drifter",
            email="drifter@backoffice.test",
            hashed_password=get_password_hash(TEST_PASSWORD),
            first_name="No",
            last_name="Company",
            role=UserRole.CASHIER,
            company_id=None,
            is_active=True,
        )
        db_session.add(user)
        await db_session.commit()

        token = create_access_token({"sub": str(user.id), "username": user.username})
        response = await client.get("/api/v1/accounts", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "COMPANY_ACCESS_REQUIRED"
