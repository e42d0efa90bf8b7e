"""
Sample Data
Populates the configured store with employees, attendance and ledger entries

Run with ``python -m app.services.seed``.
"""
import asyncio
import logging
import random
from datetime import datetime, timedelta
from typing import List, Optional

from app.config import settings
from app.errors import ConflictError
from app.log import setup_logging
from app.models.attendance import Attendance, AttendanceStatus, CheckIn, CheckOut, day_start
from app.models.employee import (
    Address,
    Allowances,
    BankDetails,
    Deductions,
    Department,
    EmergencyContact,
    Employee,
    EmployeeRole,
    SalaryStructure,
)
from app.models.expense import EntryType, Expense, ExpenseCategory, Vendor
from app.repositories.base import Repositories
from app.repositories.mongo import connect_mongo, mongo_repositories
from app.services.attendance import derive, is_late
from app.services.settings import SettingsService

logger = logging.getLogger(__name__)

NAMES = [
    ("Alice", "Smith"), ("Bob", "Johnson"), ("Charlie", "Davis"),
    ("Diana", "Prince"), ("Ethan", "Hunt"), ("Fiona", "Gallagher"),
    ("George", "Miller"), ("Hannah", "Baker"), ("Ian", "Somerhalder"),
]

ROLES = {
    Department.IT: [EmployeeRole.DEVELOPER, EmployeeRole.DESIGNER, EmployeeRole.MANAGER],
    Department.HR: [EmployeeRole.HR],
    Department.FINANCE: [EmployeeRole.ACCOUNTANT],
    Department.SALES: [EmployeeRole.MANAGER, EmployeeRole.OTHER],
    Department.MARKETING: [EmployeeRole.DESIGNER, EmployeeRole.OTHER],
}

LEDGER = [
    ("Office rent", EntryType.EXPENSE, ExpenseCategory.RENT, 45000, "City Properties"),
    ("Electricity bill", EntryType.EXPENSE, ExpenseCategory.UTILITIES, 6200, "Power Co"),
    ("Cloud hosting", EntryType.EXPENSE, ExpenseCategory.SOFTWARE, 12500, "CloudHost"),
    ("Team lunch", EntryType.EXPENSE, ExpenseCategory.FOOD_BEVERAGES, 3800, "Bistro"),
    ("Client project milestone", EntryType.REVENUE, ExpenseCategory.OTHER, 250000, "Acme Corp"),
    ("Support retainer", EntryType.REVENUE, ExpenseCategory.OTHER, 60000, "Globex"),
]


def sample_employee(index: int, first: str, last: str, rng: random.Random) -> Employee:
    department = rng.choice(list(ROLES))
    basic = rng.randrange(30000, 90000, 5000)
    return Employee(
        employee_id=f"EMP{100 + index}",
        first_name=first,
        last_name=last,
        email=f"{first.lower()}.{last.lower()}@company.com",
        phone=f"+91-9876543{index:03d}",
        role=rng.choice(ROLES[department]),
        department=department,
        joining_date=day_start(datetime.utcnow() - timedelta(days=rng.randint(60, 365))),
        salary=SalaryStructure(
            basic=basic,
            allowances=Allowances(hra=basic * 0.4, da=basic * 0.1, ta=1600, medical=1250),
            deductions=Deductions(pf=basic * 0.12, tax=basic * 0.05),
        ),
        bank_details=BankDetails(account_number=f"00012345{index:04d}", ifsc_code="HDFC0001234", bank_name="HDFC Bank"),
        address=Address(street="Main St", city="Bangalore", state="Karnataka", pincode="560001"),
        emergency_contact=EmergencyContact(name="Kinsfolk", relationship="Family", phone="9988776655"),
    )


async def seed(repositories: Repositories, days: int = 14, rng: Optional[random.Random] = None) -> List[Employee]:
    """Populate the store; records that already exist are left alone"""
    rng = rng or random.Random()
    settings_doc = await SettingsService(repositories.settings).get()
    start_time = settings_doc.attendance.work_start_time

    employees = []
    for i, (first, last) in enumerate(NAMES):
        employee = sample_employee(i, first, last, rng)
        existing = await repositories.employees.get(employee.employee_id)
        if existing:
            logger.info("%s already exists, skipping", employee.employee_id)
            employees.append(existing)
            continue
        await repositories.employees.create(employee)
        employees.append(employee)
        logger.info("Created employee %s (%s)", employee.full_name, employee.employee_id)

    logger.info("Generating attendance history (%d days)", days)
    for employee in employees:
        for d in range(1, days + 1):
            date = datetime.utcnow() - timedelta(days=d)
            if date.weekday() in settings_doc.attendance.weekly_offs:
                continue

            # Randomly skip some days to simulate absence
            if rng.random() < 0.1:
                continue

            late = rng.random() < 0.2
            if late:
                check_in = date.replace(hour=9, minute=rng.randint(16, 45), second=rng.randint(0, 59), microsecond=0)
            else:
                check_in = date.replace(hour=8, minute=rng.randint(45, 59), second=rng.randint(0, 59), microsecond=0)

            if rng.random() < 0.1:
                check_out = date.replace(hour=12, minute=rng.randint(0, 30), microsecond=0)
            else:
                check_out = date.replace(hour=18, minute=rng.randint(0, 59), microsecond=0)

            record = Attendance(
                employee_id=employee.employee_id,
                date=day_start(date),
                check_in=CheckIn(time=check_in, is_late=is_late(check_in, start_time, settings_doc.attendance.late_threshold)),
                check_out=CheckOut(time=check_out),
            )
            record.is_late = record.check_in.is_late
            derive(record, settings_doc)
            record.status = AttendanceStatus.HALF_DAY if record.is_half_day else AttendanceStatus.PRESENT
            try:
                await repositories.attendance.create(record)
            except ConflictError:
                continue

    logger.info("Generating ledger entries")
    today = datetime.utcnow()
    for title, entry_type, category, amount, vendor in LEDGER:
        existing = await repositories.expenses.list(search=title)
        if existing:
            continue
        await repositories.expenses.create(
            Expense(
                title=title,
                amount=amount,
                type=entry_type,
                category=category,
                vendor=Vendor(name=vendor),
                date=day_start(today - timedelta(days=rng.randint(1, 25))),
            )
        )

    logger.info("Sample data generation complete")
    return employees


async def main():
    setup_logging()
    client = await connect_mongo(settings.MONGODB_URL, settings.MONGODB_DB_NAME)
    try:
        await seed(mongo_repositories())
    finally:
        client.close()


if __name__ == "__main__":
    asyncio.run(main())
