"""
HTTP tests against the FastAPI app with in-memory storage
"""
from openpyxl import load_workbook
import io

from tests.conftest import attend_every_day

EMPLOYEE = {
    "employee_id": "EMP001",
    "first_name": "John",
    "last_name": "Doe",
    "email": "john.doe@company.com",
    "phone": "+91-9876543210",
    "department": "IT",
    "joining_date": "2023-01-01T00:00:00",
    "salary": {
        "basic": 50000,
        "allowances": {"hra": 20000, "da": 5000, "ta": 3000, "medical": 2000, "other": 1000},
        "deductions": {"pf": 6000, "esi": 1000, "tax": 5000, "other": 500},
    },
}


def create_employee(client, **overrides):
    response = client.post("/api/employees/", json={**EMPLOYEE, **overrides})
    assert response.status_code == 201
    return response.json()["data"]


class TestEnvelope:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_not_found(self, client):
        response = client.get("/api/employees/EMP404")
        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"]["kind"] == "not_found"

    def test_request_validation(self, client):
        response = client.post("/api/employees/", json={"first_name": "John", "email": "not-an-email"})
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["kind"] == "validation_error"
        assert {d["field"] for d in error["details"]} >= {"email", "last_name", "phone"}


class TestEmployeeRoutes:

    def test_create_and_fetch(self, client):
        data = create_employee(client)
        assert data["full_name"] == "John Doe"
        assert data["total_salary"] == 68500

        response = client.get("/api/employees/EMP001")
        assert response.json()["data"]["email"] == "john.doe@company.com"

    def test_duplicate_is_a_conflict(self, client):
        create_employee(client)
        response = client.post("/api/employees/", json=EMPLOYEE)
        assert response.status_code == 409
        assert response.json()["error"]["kind"] == "conflict"

    def test_list_paginates(self, client):
        for i in range(3):
            create_employee(client, employee_id=f"EMP00{i}", email=f"e{i}@company.com")

        response = client.get("/api/employees/", params={"page": 2, "limit": 2})

        data = response.json()["data"]
        assert len(data["employees"]) == 1
        assert data["pagination"] == {"current_page": 2, "total_pages": 2, "total_items": 3, "items_per_page": 2}

    def test_update_and_delete(self, client):
        create_employee(client)
        response = client.put("/api/employees/EMP001", json={"status": "Inactive"})
        assert response.json()["data"]["status"] == "Inactive"

        assert client.delete("/api/employees/EMP001").json()["success"] is True
        assert client.get("/api/employees/EMP001").status_code == 404


class TestAttendanceRoutes:

    def test_check_in_and_out(self, client):
        create_employee(client)

        response = client.post(
            "/api/attendance/check-in", json={"employee_id": "EMP001", "timestamp": "2024-03-04T09:20:00"}
        )
        assert response.status_code == 201
        assert response.json()["data"]["is_late"] is True

        again = client.post("/api/attendance/check-in", json={"employee_id": "EMP001", "timestamp": "2024-03-04T10:00:00"})
        assert again.status_code == 409
        assert again.json()["error"]["kind"] == "already_checked_in"

        response = client.post(
            "/api/attendance/check-out", json={"employee_id": "EMP001", "timestamp": "2024-03-04T18:20:00"}
        )
        assert response.status_code == 200
        assert response.json()["data"]["working_hours"] == 9.0

    def test_check_out_without_check_in(self, client):
        create_employee(client)
        response = client.post(
            "/api/attendance/check-out", json={"employee_id": "EMP001", "timestamp": "2024-03-04T18:00:00"}
        )
        assert response.status_code == 404
        assert response.json()["error"]["kind"] == "no_check_in"

    def test_monthly_report_bounds(self, client):
        assert client.get("/api/attendance/report/monthly", params={"month": 13, "year": 2024}).status_code == 422

    def test_monthly_report_with_offset_joining_date(self, client):
        create_employee(client, joining_date="2024-01-15T00:00:00Z")

        response = client.get("/api/attendance/report/monthly", params={"month": 3, "year": 2024})

        assert response.status_code == 200
        assert response.json()["data"][0]["summary"]["total_days"] == 21


class TestPayrollRoutes:

    async def _generate(self, client, repositories):
        create_employee(client)
        await attend_every_day(repositories, "EMP001", 3, 2024)
        response = client.post("/api/payroll/generate", json={"month": 3, "year": 2024})
        assert response.status_code == 201
        return response.json()["data"]

    async def test_generate_and_rerun(self, client, repositories):
        data = await self._generate(client, repositories)
        assert data["generated"][0]["net_salary"] == 68500
        assert data["failures"] == []

        rerun = client.post("/api/payroll/generate", json={"month": 3, "year": 2024}).json()["data"]
        assert rerun["generated"] == []
        assert rerun["failures"][0]["kind"] == "duplicate_period"

    async def test_status_workflow(self, client, repositories):
        payroll_id = (await self._generate(client, repositories))["generated"][0]["payroll_id"]

        paid = client.put(f"/api/payroll/{payroll_id}/status", json={"status": "Paid"})
        assert paid.status_code == 200
        assert paid.json()["data"]["transaction_id"].startswith("TXN")

        back = client.put(f"/api/payroll/{payroll_id}/status", json={"status": "Pending"})
        assert back.status_code == 409
        assert back.json()["error"]["kind"] == "invalid_transition"

    async def test_monthly_and_list(self, client, repositories):
        await self._generate(client, repositories)

        monthly = client.get("/api/payroll/monthly", params={"month": 3, "year": 2024}).json()["data"]
        assert monthly["summary"]["total_net_salary"] == 68500

        listing = client.get("/api/payroll/", params={"search": "doe"}).json()["data"]
        assert listing["pagination"]["total_items"] == 1

    async def test_payslip_download_and_email(self, client, repositories, email_service):
        payroll_id = (await self._generate(client, repositories))["generated"][0]["payroll_id"]

        response = client.get(f"/api/payroll/{payroll_id}/payslip")
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

        sent = client.post(f"/api/payroll/{payroll_id}/send-payslip").json()["data"]
        assert sent["kind"] == "sent"
        assert email_service.sent[0]["to"] == "john.doe@company.com"


class TestSettingsAndReports:

    def test_settings_round_trip(self, client):
        assert client.get("/api/settings/").json()["data"]["payroll"]["overtime_rate"] == 1.5

        response = client.put("/api/settings/", json={"payroll": {"overtime_rate": 2}})
        assert response.json()["data"]["payroll"]["overtime_rate"] == 2

        invalid = client.put("/api/settings/", json={"payroll": {"overtime_rate": 10}})
        assert invalid.status_code == 422

    def test_expense_and_profit_loss(self, client):
        client.post(
            "/api/expenses/",
            json={"title": "Rent", "amount": 20000, "type": "Expense", "category": "Rent", "date": "2024-03-05T00:00:00"},
        )
        client.post(
            "/api/expenses/",
            json={"title": "Project", "amount": 50000, "type": "Revenue", "category": "Other", "date": "2024-03-10T00:00:00"},
        )
        data = client.get("/api/expenses/profit-loss", params={"month": 3, "year": 2024}).json()["data"]
        assert data["summary"]["net_profit"] == 30000

    def test_expense_with_offset_date(self, client):
        created = client.post(
            "/api/expenses/",
            json={"title": "Rent", "amount": 20000, "type": "Expense", "category": "Rent", "date": "2024-03-05T10:00:00+05:30"},
        )
        assert created.status_code == 201

        response = client.get(
            "/api/expenses/", params={"start_date": "2024-03-01T00:00:00", "end_date": "2024-04-01T00:00:00"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["pagination"]["total_items"] == 1
        assert response.json()["data"]["expenses"][0]["date"] == "2024-03-05T04:30:00"

    def test_employee_export(self, client):
        create_employee(client)
        response = client.get("/api/reports/employees/export")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        ws = load_workbook(io.BytesIO(response.content)).active
        assert ws.cell(row=4, column=1).value == "EMP001"
