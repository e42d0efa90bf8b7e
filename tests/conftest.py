"""
Shared fixtures: in-memory repositories, services and an HTTP client
"""
from datetime import datetime, timedelta
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from app.models.attendance import Attendance, AttendanceStatus, CheckIn, CheckOut
from app.models.employee import Allowances, Deductions, Department, Employee, SalaryStructure
from app.models.settings import AttendanceSettings
from app.repositories.memory import memory_repositories
from app.services.attendance import AttendanceService, expected_working_days
from app.services.payroll import PayrollService
from app.services.settings import SettingsService


class FakeEmailService:
    """Records payslip deliveries instead of talking to SMTP"""

    def __init__(self, deliver: bool = True):
        self.deliver = deliver
        self.sent = []

    async def send_payslip(self, to_email, payroll, pdf_content, filename, company_name=""):
        self.sent.append({"to": to_email, "payroll_id": payroll.payroll_id, "filename": filename, "pdf": pdf_content})
        return self.deliver


def make_employee(
    employee_id: str = "EMP001",
    first_name: str = "John",
    last_name: str = "Doe",
    basic: float = 50000,
    joining_date: datetime = datetime(2023, 1, 1),
    **overrides,
) -> Employee:
    fields = dict(
        employee_id=employee_id,
        first_name=first_name,
        last_name=last_name,
        email=f"{employee_id.lower()}@company.com",
        phone="+91-9876543210",
        department=Department.IT,
        joining_date=joining_date,
        salary=SalaryStructure(
            basic=basic,
            allowances=Allowances(hra=20000, da=5000, ta=3000, medical=2000, other=1000),
            deductions=Deductions(pf=6000, esi=1000, tax=5000, other=500),
        ),
    )
    fields.update(overrides)
    return Employee(**fields)


async def attend_every_day(
    repositories,
    employee_id: str,
    month: int,
    year: int,
    hours: float = 8,
    skip: Optional[List[int]] = None,
) -> List[Attendance]:
    """Create a full-day Present record for each expected working day of the month"""
    records = []
    for day in expected_working_days(month, year, AttendanceSettings()):
        if skip and day.day in skip:
            continue
        check_in = day.replace(hour=9)
        record = Attendance(
            employee_id=employee_id,
            date=day,
            check_in=CheckIn(time=check_in),
            check_out=CheckOut(time=check_in + timedelta(hours=hours)),
            working_hours=hours,
            overtime=max(0.0, hours - 8),
            status=AttendanceStatus.PRESENT,
        )
        await repositories.attendance.create(record)
        records.append(record)
    return records


@pytest.fixture
def repositories():
    return memory_repositories()


@pytest.fixture
def settings_service(repositories):
    return SettingsService(repositories.settings)


@pytest.fixture
def attendance_service(repositories, settings_service):
    return AttendanceService(repositories, settings_service)


@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
def payroll_service(repositories, settings_service, email_service):
    return PayrollService(repositories, settings_service, email_service)


@pytest.fixture
def employee_factory(repositories):
    async def create(**kwargs) -> Employee:
        employee = make_employee(**kwargs)
        await repositories.employees.create(employee)
        return employee

    return create


@pytest.fixture
def client(repositories, email_service):
    from main import app
    from app.api.deps import get_email_service, get_repositories

    app.dependency_overrides[get_repositories] = lambda: repositories
    app.dependency_overrides[get_email_service] = lambda: email_service
    yield TestClient(app)
    app.dependency_overrides.clear()
