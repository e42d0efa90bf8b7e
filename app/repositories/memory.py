"""
In-memory Repositories
Dict-backed implementation of the persistence port with the same
uniqueness guarantees as the MongoDB indexes
"""
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from app.errors import ConflictError, DuplicatePeriod
from app.models.attendance import Attendance, day_start
from app.models.employee import Employee
from app.models.expense import Expense
from app.models.payroll import Payroll
from app.models.settings import SystemSettings
from app.repositories.base import (
    AttendanceRepository,
    EmployeeRepository,
    ExpenseRepository,
    PayrollRepository,
    Repositories,
    SettingsRepository,
)


def _matches(needle: Optional[str], *haystack: Optional[str]) -> bool:
    if not needle:
        return True
    needle = needle.lower()
    return any(needle in (value or "").lower() for value in haystack)


def _in_range(value: datetime, start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start and value < start:
        return False
    if end and value >= end:
        return False
    return True


class MemoryEmployeeRepository(EmployeeRepository):

    def __init__(self):
        self._items: Dict[str, Employee] = {}

    async def create(self, employee: Employee) -> Employee:
        if employee.employee_id in self._items:
            raise ConflictError(f"Employee {employee.employee_id} already exists")
        if any(e.email == employee.email for e in self._items.values()):
            raise ConflictError(f"Email {employee.email} already registered")
        self._items[employee.employee_id] = employee.model_copy(deep=True)
        return employee

    async def get(self, employee_id: str) -> Optional[Employee]:
        employee = self._items.get(employee_id)
        return employee.model_copy(deep=True) if employee else None

    async def list(self, status=None, department=None, search=None) -> List[Employee]:
        result = []
        for employee in self._items.values():
            if status and employee.status != status:
                continue
            if department and employee.department != department:
                continue
            if not _matches(search, employee.first_name, employee.last_name, employee.email, employee.employee_id):
                continue
            result.append(employee.model_copy(deep=True))
        return sorted(result, key=lambda e: (e.first_name, e.last_name))

    async def update(self, employee: Employee) -> Employee:
        if any(e.email == employee.email and e.employee_id != employee.employee_id for e in self._items.values()):
            raise ConflictError(f"Email {employee.email} already registered")
        self._items[employee.employee_id] = employee.model_copy(deep=True)
        return employee

    async def delete(self, employee_id: str) -> bool:
        return self._items.pop(employee_id, None) is not None


class MemoryAttendanceRepository(AttendanceRepository):

    def __init__(self):
        self._items: Dict[str, Attendance] = {}

    def _day_key(self, record: Attendance) -> Tuple[str, datetime]:
        return record.employee_id, day_start(record.date)

    async def create(self, record: Attendance) -> Attendance:
        key = self._day_key(record)
        if any(self._day_key(r) == key for r in self._items.values()):
            raise ConflictError(f"Attendance for {record.employee_id} on {key[1].date()} already exists")
        self._items[record.attendance_id] = record.model_copy(deep=True)
        return record

    async def get(self, attendance_id: str) -> Optional[Attendance]:
        record = self._items.get(attendance_id)
        return record.model_copy(deep=True) if record else None

    async def find_for_day(self, employee_id: str, day: datetime) -> Optional[Attendance]:
        key = (employee_id, day_start(day))
        for record in self._items.values():
            if self._day_key(record) == key:
                return record.model_copy(deep=True)
        return None

    async def list(self, employee_id=None, start=None, end=None, status=None) -> List[Attendance]:
        result = [
            r.model_copy(deep=True)
            for r in self._items.values()
            if (not employee_id or r.employee_id == employee_id)
            and (not status or r.status == status)
            and _in_range(r.date, start, end)
        ]
        return sorted(result, key=lambda r: (r.date, r.employee_id))

    async def update(self, record: Attendance) -> Attendance:
        self._items[record.attendance_id] = record.model_copy(deep=True)
        return record

    async def delete(self, attendance_id: str) -> bool:
        return self._items.pop(attendance_id, None) is not None


class MemoryPayrollRepository(PayrollRepository):

    def __init__(self):
        self._items: Dict[str, Payroll] = {}

    async def create(self, record: Payroll) -> Payroll:
        if await self.find_for_period(record.employee_id, record.month, record.year):
            raise DuplicatePeriod(
                f"Payroll for {record.employee_id} {record.month}/{record.year} already exists"
            )
        self._items[record.payroll_id] = record.model_copy(deep=True)
        return record

    async def get(self, payroll_id: str) -> Optional[Payroll]:
        record = self._items.get(payroll_id)
        return record.model_copy(deep=True) if record else None

    async def find_for_period(self, employee_id: str, month: int, year: int) -> Optional[Payroll]:
        for record in self._items.values():
            if (record.employee_id, record.month, record.year) == (employee_id, month, year):
                return record.model_copy(deep=True)
        return None

    async def list(self, month=None, year=None, employee_id=None, status=None, department=None) -> List[Payroll]:
        result = [
            r.model_copy(deep=True)
            for r in self._items.values()
            if (month is None or r.month == month)
            and (year is None or r.year == year)
            and (not employee_id or r.employee_id == employee_id)
            and (not status or r.status == status)
            and (not department or r.department == department)
        ]
        return sorted(result, key=lambda r: (-r.year, -r.month, r.employee_name))

    async def update(self, record: Payroll) -> Payroll:
        self._items[record.payroll_id] = record.model_copy(deep=True)
        return record

    async def delete(self, payroll_id: str) -> bool:
        return self._items.pop(payroll_id, None) is not None


class MemoryExpenseRepository(ExpenseRepository):

    def __init__(self):
        self._items: Dict[str, Expense] = {}

    async def create(self, expense: Expense) -> Expense:
        self._items[expense.expense_id] = expense.model_copy(deep=True)
        return expense

    async def get(self, expense_id: str) -> Optional[Expense]:
        expense = self._items.get(expense_id)
        return expense.model_copy(deep=True) if expense else None

    async def list(self, type=None, category=None, status=None, start=None, end=None, search=None) -> List[Expense]:
        result = [
            e.model_copy(deep=True)
            for e in self._items.values()
            if (not type or e.type == type)
            and (not category or e.category == category)
            and (not status or e.status == status)
            and _in_range(e.date, start, end)
            and _matches(search, e.title, e.description, e.vendor.name)
        ]
        return sorted(result, key=lambda e: e.date, reverse=True)

    async def update(self, expense: Expense) -> Expense:
        self._items[expense.expense_id] = expense.model_copy(deep=True)
        return expense

    async def delete(self, expense_id: str) -> bool:
        return self._items.pop(expense_id, None) is not None


class MemorySettingsRepository(SettingsRepository):

    def __init__(self):
        self._settings: Optional[SystemSettings] = None

    async def get(self) -> Optional[SystemSettings]:
        return self._settings.model_copy(deep=True) if self._settings else None

    async def save(self, settings: SystemSettings) -> SystemSettings:
        self._settings = settings.model_copy(deep=True)
        return settings


def memory_repositories() -> Repositories:
    return Repositories(
        employees=MemoryEmployeeRepository(),
        attendance=MemoryAttendanceRepository(),
        payroll=MemoryPayrollRepository(),
        expenses=MemoryExpenseRepository(),
        settings=MemorySettingsRepository(),
    )
