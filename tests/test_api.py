"""API endpoint tests through httpx.

The app shares the per-test SQLite database and fixed clock.
"""

import importlib
import warnings
from decimal import Decimal
from uuid import uuid4

from httpx import AsyncClient

from payroll_hold.api import app as app_module
from payroll_hold.errors import (
    AlreadyProcessed,
    InsufficientHoldBalance,
    InvalidSalaryComputation,
    InvalidWithdrawalAmount,
)

from .conftest import admin_headers, employee_headers, utc


async def create_employee(client: AsyncClient, **overrides) -> dict:
    payload = {
        "employee_code": f"EMP-{uuid4().hex[:6]}",
        "name": "Ravi Kumar",
        "basic_salary": "30000.00",
        "allowances": {"hra": "3000"},
        "deductions": {"pf": "1800"},
        "hold_percent": "10",
    }
    payload.update(overrides)
    response = await client.post("/api/v1/employees", headers=admin_headers(), json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestErrorMapping:
    """Test the domain error to status code table."""

    def test_unprocessable_errors(self):
        assert app_module.status_for(InsufficientHoldBalance(Decimal("10"), Decimal("0"))) == 422
        assert app_module.status_for(InvalidSalaryComputation(None, "2024-04", "negative net")) == 422

    def test_invalid_amount_resolves_through_base_class(self):
        error = InvalidWithdrawalAmount(Decimal("0"), Decimal("5000"))

        assert app_module.status_for(error) == 422

    def test_conflicts(self):
        assert app_module.status_for(AlreadyProcessed(uuid4(), "2024-04")) == 409

    def test_status_table_uses_current_names(self):
        """Building the table emits no deprecation warnings."""
        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            importlib.reload(app_module)


class TestHealthEndpoints:
    """Test health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"

    async def test_readiness_check(self, client: AsyncClient):
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    async def test_liveness_check(self, client: AsyncClient):
        response = await client.get("/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestCallerHeaders:
    """Test caller resolution from request headers."""

    async def test_missing_employee_header(self, client: AsyncClient):
        response = await client.get(f"/api/v1/hold/{uuid4()}/snapshot")
        assert response.status_code == 401

    async def test_malformed_employee_header(self, client: AsyncClient):
        response = await client.get(
            f"/api/v1/hold/{uuid4()}/snapshot", headers={"X-Employee-ID": "not-a-uuid"}
        )
        assert response.status_code == 400

    async def test_unknown_role(self, client: AsyncClient):
        employee_id = uuid4()
        response = await client.get(
            f"/api/v1/hold/{employee_id}/snapshot",
            headers={"X-Employee-ID": str(employee_id), "X-Role": "owner"},
        )
        assert response.status_code == 400


class TestEmployeeEndpoints:
    """Test directory administration endpoints."""

    async def test_create_employee(self, client: AsyncClient):
        data = await create_employee(client, employee_code="EMP-001")

        assert data["employee_code"] == "EMP-001"
        assert Decimal(data["basic_salary"]) == Decimal("30000")
        assert Decimal(data["allowances"]["hra"]) == Decimal("3000")
        assert data["status"] == "active"

    async def test_create_employee_requires_admin(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/employees",
            headers=employee_headers(uuid4()),
            json={"employee_code": "X", "name": "X", "basic_salary": "1000"},
        )
        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    async def test_update_salary_structure(self, client: AsyncClient):
        employee = await create_employee(client)

        response = await client.put(
            f"/api/v1/employees/{employee['employee_id']}/salary-structure",
            headers=admin_headers(),
            json={"basic_salary": "45000.00", "deductions": {"pf": "2000", "tds": "1500"}},
        )

        assert response.status_code == 200, response.text
        data = response.json()
        assert Decimal(data["basic_salary"]) == Decimal("45000")
        assert set(data["deductions"]) == {"pf", "tds"}
        assert Decimal(data["allowances"]["hra"]) == Decimal("3000")

    async def test_update_unknown_employee(self, client: AsyncClient):
        response = await client.put(
            f"/api/v1/employees/{uuid4()}/salary-structure",
            headers=admin_headers(),
            json={"basic_salary": "1000"},
        )
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_record_attendance(self, client: AsyncClient):
        employee = await create_employee(client)

        response = await client.put(
            f"/api/v1/employees/{employee['employee_id']}/attendance/2024-04",
            headers=admin_headers(),
            json={"unpaid_leave_days": 2, "half_days": 1, "total_working_days": 22},
        )

        assert response.status_code == 200, response.text
        assert response.json()["unpaid_leave_days"] == 2


class TestSalaryEndpoints:
    """Test salary preview, processing and history."""

    async def test_preview(self, client: AsyncClient):
        employee = await create_employee(client)
        employee_id = employee["employee_id"]
        await client.put(
            f"/api/v1/employees/{employee_id}/attendance/2024-04",
            headers=admin_headers(),
            json={"unpaid_leave_days": 2},
        )

        response = await client.get(
            f"/api/v1/salary/{employee_id}/preview",
            params={"month": "2024-04"},
            headers=employee_headers(employee_id),
        )

        assert response.status_code == 200, response.text
        data = response.json()
        assert Decimal(data["payable_net"]) == Decimal("26280")
        assert Decimal(data["hold_amount"]) == Decimal("2920")
        assert data["status"] == "pending"

    async def test_preview_invalid_month(self, client: AsyncClient):
        employee = await create_employee(client)

        response = await client.get(
            f"/api/v1/salary/{employee['employee_id']}/preview",
            params={"month": "2024-13"},
            headers=admin_headers(),
        )

        assert response.status_code == 422

    async def test_process_and_history(self, client: AsyncClient):
        employee = await create_employee(client)
        employee_id = employee["employee_id"]

        response = await client.post(
            f"/api/v1/salary/{employee_id}/process",
            headers=admin_headers(),
            json={"month": "2024-04", "payment_mode": "bank_transfer", "notes": "April"},
        )
        assert response.status_code == 201, response.text
        data = response.json()
        assert data["record"]["status"] == "paid"
        assert Decimal(data["record"]["payable_net"]) == Decimal("28080")
        assert Decimal(data["accrual"]["amount"]) == Decimal("3120")
        assert data["accrual"]["matures_on"] == "2024-07-30"

        history = await client.get(
            f"/api/v1/salary/{employee_id}/history", headers=employee_headers(employee_id)
        )
        assert history.status_code == 200
        assert history.json()["total"] == 1
        assert history.json()["items"][0]["month"] == "2024-04"

    async def test_process_twice_conflicts(self, client: AsyncClient):
        employee = await create_employee(client)
        url = f"/api/v1/salary/{employee['employee_id']}/process"
        body = {"month": "2024-04", "payment_mode": "cash"}

        first = await client.post(url, headers=admin_headers(), json=body)
        second = await client.post(url, headers=admin_headers(), json=body)

        assert first.status_code == 201
        assert second.status_code == 409
        assert second.json()["code"] == "ALREADY_PROCESSED"

    async def test_process_requires_admin(self, client: AsyncClient):
        employee = await create_employee(client)
        employee_id = employee["employee_id"]

        response = await client.post(
            f"/api/v1/salary/{employee_id}/process",
            headers=employee_headers(employee_id),
            json={"month": "2024-04", "payment_mode": "cash"},
        )

        assert response.status_code == 403

    async def test_process_rejects_unknown_payment_mode(self, client: AsyncClient):
        employee = await create_employee(client)

        response = await client.post(
            f"/api/v1/salary/{employee['employee_id']}/process",
            headers=admin_headers(),
            json={"month": "2024-04", "payment_mode": "upi"},
        )

        assert response.status_code == 422

    async def test_invalid_computation(self, client: AsyncClient):
        employee = await create_employee(
            client, basic_salary="1000", allowances={}, deductions={"loan": "5000"}
        )

        response = await client.post(
            f"/api/v1/salary/{employee['employee_id']}/process",
            headers=admin_headers(),
            json={"month": "2024-04", "payment_mode": "cash"},
        )

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_SALARY_COMPUTATION"


class TestHoldEndpoints:
    """Test the hold account and withdrawal workflow over HTTP."""

    async def _paid_employee(self, client: AsyncClient) -> str:
        employee = await create_employee(client)
        employee_id = employee["employee_id"]
        response = await client.post(
            f"/api/v1/salary/{employee_id}/process",
            headers=admin_headers(),
            json={"month": "2024-04", "payment_mode": "cash"},
        )
        assert response.status_code == 201, response.text
        return employee_id

    async def test_snapshot_before_maturity(self, client: AsyncClient):
        employee_id = await self._paid_employee(client)

        response = await client.get(
            f"/api/v1/hold/{employee_id}/snapshot", headers=employee_headers(employee_id)
        )

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["total_accrued"]) == Decimal("3120")
        assert Decimal(data["withdrawable"]) == Decimal("0")
        assert data["next_maturity_date"] == "2024-07-30"

    async def test_request_before_maturity_is_refused(self, client: AsyncClient):
        employee_id = await self._paid_employee(client)

        response = await client.post(
            f"/api/v1/hold/{employee_id}/requests",
            headers=employee_headers(employee_id),
            json={"amount": "100"},
        )

        assert response.status_code == 422
        data = response.json()
        assert data["code"] == "INSUFFICIENT_HOLD_BALANCE"
        assert Decimal(data["withdrawable"]) == Decimal("0")

    async def test_zero_amount_is_invalid(self, client: AsyncClient, clock):
        employee_id = await self._paid_employee(client)
        clock.set(utc(2024, 8, 1, 9, 0))

        response = await client.post(
            f"/api/v1/hold/{employee_id}/requests",
            headers=employee_headers(employee_id),
            json={"amount": "0"},
        )

        assert response.status_code == 422
        assert response.json()["code"] == "INVALID_WITHDRAWAL_AMOUNT"
        assert Decimal(response.json()["withdrawable"]) == Decimal("3120")

    async def test_full_withdrawal_flow(self, client: AsyncClient, clock, recorder):
        employee_id = await self._paid_employee(client)
        clock.set(utc(2024, 8, 1, 9, 0))

        created = await client.post(
            f"/api/v1/hold/{employee_id}/requests",
            headers=employee_headers(employee_id),
            json={"amount": "1000.00", "notes": "medical"},
        )
        assert created.status_code == 201, created.text
        request_id = created.json()["withdrawal_request_id"]
        assert created.json()["status"] == "pending"

        queue = await client.get(
            "/api/v1/hold/requests", params={"status": "pending"}, headers=admin_headers()
        )
        assert queue.status_code == 200
        assert queue.json()["total"] == 1
        assert queue.json()["items"][0]["employee_name"] == "Ravi Kumar"

        approved = await client.post(
            f"/api/v1/hold/requests/{request_id}/approve",
            headers=admin_headers(),
            json={"payment_method": "bank_transfer", "reference_number": "NEFT-42"},
        )
        assert approved.status_code == 200, approved.text
        assert approved.json()["status"] == "approved"
        assert approved.json()["reference_number"] == "NEFT-42"

        again = await client.post(
            f"/api/v1/hold/requests/{request_id}/reject",
            headers=admin_headers(),
            json={"reason": "too late"},
        )
        assert again.status_code == 409
        assert again.json()["code"] == "INVALID_TRANSITION"

        snapshot = await client.get(
            f"/api/v1/hold/{employee_id}/snapshot", headers=admin_headers()
        )
        data = snapshot.json()
        assert Decimal(data["lifetime_withdrawn"]) == Decimal("1000")
        assert Decimal(data["withdrawable"]) == Decimal("2120")

        assert "WithdrawalApproved" in recorder.event_types

    async def test_reject_flow(self, client: AsyncClient, clock):
        employee_id = await self._paid_employee(client)
        clock.set(utc(2024, 8, 1, 9, 0))
        created = await client.post(
            f"/api/v1/hold/{employee_id}/requests",
            headers=employee_headers(employee_id),
            json={"amount": "500"},
        )
        request_id = created.json()["withdrawal_request_id"]

        rejected = await client.post(
            f"/api/v1/hold/requests/{request_id}/reject",
            headers=admin_headers(),
            json={"reason": "documents missing"},
        )

        assert rejected.status_code == 200
        assert rejected.json()["status"] == "rejected"
        assert rejected.json()["decision_reason"] == "documents missing"

    async def test_queue_requires_admin(self, client: AsyncClient):
        employee_id = uuid4()
        response = await client.get("/api/v1/hold/requests", headers=employee_headers(employee_id))
        assert response.status_code == 403

    async def test_queue_rejects_unknown_status(self, client: AsyncClient):
        response = await client.get(
            "/api/v1/hold/requests", params={"status": "cancelled"}, headers=admin_headers()
        )
        assert response.status_code == 400

    async def test_snapshot_of_other_employee_denied(self, client: AsyncClient):
        employee_id = await self._paid_employee(client)

        response = await client.get(
            f"/api/v1/hold/{employee_id}/snapshot", headers=employee_headers(uuid4())
        )

        assert response.status_code == 403

    async def test_approve_unknown_request(self, client: AsyncClient):
        response = await client.post(
            f"/api/v1/hold/requests/{uuid4()}/approve",
            headers=admin_headers(),
            json={"payment_method": "cash"},
        )
        assert response.status_code == 404
