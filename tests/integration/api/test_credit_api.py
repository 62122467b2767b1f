"""Integration tests for Credit API endpoints"""

import pytest
from decimal import Decimal
from httpx import AsyncClient

OWNER = {"X-User-Id": "owner_1"}


async def open_company(client: AsyncClient, limit="1000.00") -> str:
    response = await client.post(
        "/api/companies",
        json={"name": "Acme Industrial", "email": "ap@acme.example", "initial_credit_limit": limit},
        headers=OWNER,
    )
    assert response.status_code == 201
    return response.json()["company_id"]


class TestCreditAPIIntegration:

    @pytest.mark.asyncio
    async def test_create_company_and_get_credit(self, client: AsyncClient):
        company_id = await open_company(client)

        response = await client.get(f"/api/companies/{company_id}/credit", headers=OWNER)

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["credit_limit"]) == Decimal("1000.00")
        assert Decimal(data["available_credit"]) == Decimal("1000.00")
        assert Decimal(data["used_credit"]) == Decimal("0")

    @pytest.mark.asyncio
    async def test_reserve_beyond_available_returns_402(self, client: AsyncClient):
        """
        Given: Limit 1000 with 500 reserved
        When: Reserving 600
        Then: 402 INSUFFICIENT_CREDIT and available stays 500
        """
        company_id = await open_company(client)
        payload = {"amount": "500.00", "reference_id": "po_1", "reference_type": "purchase_order"}
        first = await client.post(f"/api/companies/{company_id}/credit/reserve", json=payload, headers=OWNER)
        assert first.status_code == 200
        assert Decimal(first.json()["available_credit"]) == Decimal("500.00")

        response = await client.post(
            f"/api/companies/{company_id}/credit/reserve",
            json={**payload, "amount": "600.00", "reference_id": "po_2"},
            headers=OWNER,
        )

        assert response.status_code == 402
        assert response.json()["error"]["code"] == "INSUFFICIENT_CREDIT"
        credit = await client.get(f"/api/companies/{company_id}/credit", headers=OWNER)
        assert Decimal(credit.json()["available_credit"]) == Decimal("500.00")

    @pytest.mark.asyncio
    async def test_non_positive_amount_returns_400(self, client: AsyncClient):
        company_id = await open_company(client)

        response = await client.post(
            f"/api/companies/{company_id}/credit/reserve",
            json={"amount": "0", "reference_id": "po_1", "reference_type": "purchase_order"},
            headers=OWNER,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_ARGUMENT"

    @pytest.mark.asyncio
    async def test_non_member_is_forbidden(self, client: AsyncClient):
        company_id = await open_company(client)

        response = await client.post(
            f"/api/companies/{company_id}/credit/reserve",
            json={"amount": "10.00", "reference_id": "po_1", "reference_type": "purchase_order"},
            headers={"X-User-Id": "stranger"},
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_platform_admin_may_adjust_any_company(self, client: AsyncClient):
        company_id = await open_company(client)

        response = await client.post(
            f"/api/companies/{company_id}/credit/adjust",
            json={"amount": "-100.00", "reason": "Write-off"},
            headers={"X-User-Id": "ops_1", "X-User-Role": "admin"},
        )

        assert response.status_code == 200
        assert response.json()["transaction_type"] == "adjustment"
        assert Decimal(response.json()["available_credit"]) == Decimal("900.00")

    @pytest.mark.asyncio
    async def test_set_limit_moves_available_by_delta(self, client: AsyncClient):
        company_id = await open_company(client)
        await client.post(
            f"/api/companies/{company_id}/credit/reserve",
            json={"amount": "800.00", "reference_id": "po_1", "reference_type": "purchase_order"},
            headers=OWNER,
        )

        response = await client.put(
            f"/api/companies/{company_id}/credit/limit",
            json={"credit_limit": "500.00", "reason": "Risk review"},
            headers=OWNER,
        )

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["previous_limit"]) == Decimal("1000.00")
        assert Decimal(data["credit_limit"]) == Decimal("500.00")
        assert Decimal(data["available_credit"]) == Decimal("-300.00")

    @pytest.mark.asyncio
    async def test_transaction_history_filters_and_paginates(self, client: AsyncClient):
        company_id = await open_company(client)
        for i in range(3):
            await client.post(
                f"/api/companies/{company_id}/credit/reserve",
                json={"amount": "10.00", "reference_id": f"po_{i}", "reference_type": "purchase_order"},
                headers=OWNER,
            )

        response = await client.get(
            f"/api/companies/{company_id}/credit/transactions",
            params={"type": "payment", "page": 1, "limit": 2},
            headers=OWNER,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert len(data["transactions"]) == 2
        assert data["transactions"][0]["reference_id"] == "po_2"

        by_reference = await client.get(
            f"/api/companies/{company_id}/credit/transactions",
            params={"reference_id": "po_0"},
            headers=OWNER,
        )
        assert by_reference.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_unknown_company_returns_404(self, client: AsyncClient):
        response = await client.get(
            "/api/companies/does-not-exist/credit",
            headers={"X-User-Id": "ops_1", "X-User-Role": "admin"},
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "COMPANY_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_bulk_utilization(self, client: AsyncClient):
        first = await open_company(client, "1000.00")
        second = await open_company(client, "0")
        await client.post(
            f"/api/companies/{first}/credit/reserve",
            json={"amount": "250.00", "reference_id": "po_1", "reference_type": "purchase_order"},
            headers=OWNER,
        )

        response = await client.post(
            "/api/companies/credit/utilization",
            json={"company_ids": [first, second, "missing"]},
        )

        assert response.status_code == 200
        by_id = {c["company_id"]: c for c in response.json()["companies"]}
        assert set(by_id) == {first, second}
        assert Decimal(by_id[first]["utilization_percentage"]) == Decimal("25.00")
        assert Decimal(by_id[second]["utilization_percentage"]) == Decimal("0")
