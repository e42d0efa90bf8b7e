"""
Repository Interfaces
Persistence port consumed by the services; implemented in memory and on MongoDB
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from app.models.attendance import Attendance, AttendanceStatus
from app.models.employee import Employee, EmployeeStatus
from app.models.expense import EntryType, Expense, ExpenseCategory, ExpenseStatus
from app.models.payroll import Payroll, PayrollStatus
from app.models.settings import SystemSettings


class EmployeeRepository(ABC):

    @abstractmethod
    async def create(self, employee: Employee) -> Employee:
        """Insert; raises ConflictError on a duplicate employee id or email"""

    @abstractmethod
    async def get(self, employee_id: str) -> Optional[Employee]:
        ...

    @abstractmethod
    async def list(
        self,
        status: Optional[EmployeeStatus] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Employee]:
        ...

    @abstractmethod
    async def update(self, employee: Employee) -> Employee:
        ...

    @abstractmethod
    async def delete(self, employee_id: str) -> bool:
        ...


class AttendanceRepository(ABC):

    @abstractmethod
    async def create(self, record: Attendance) -> Attendance:
        """Insert; raises ConflictError when the employee already has a record that day"""

    @abstractmethod
    async def get(self, attendance_id: str) -> Optional[Attendance]:
        ...

    @abstractmethod
    async def find_for_day(self, employee_id: str, day: datetime) -> Optional[Attendance]:
        ...

    @abstractmethod
    async def list(
        self,
        employee_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> List[Attendance]:
        """Records with start <= date < end, oldest first"""

    @abstractmethod
    async def update(self, record: Attendance) -> Attendance:
        ...

    @abstractmethod
    async def delete(self, attendance_id: str) -> bool:
        ...


class PayrollRepository(ABC):

    @abstractmethod
    async def create(self, record: Payroll) -> Payroll:
        """Insert; raises DuplicatePeriod when (employee, month, year) exists"""

    @abstractmethod
    async def get(self, payroll_id: str) -> Optional[Payroll]:
        ...

    @abstractmethod
    async def find_for_period(self, employee_id: str, month: int, year: int) -> Optional[Payroll]:
        ...

    @abstractmethod
    async def list(
        self,
        month: Optional[int] = None,
        year: Optional[int] = None,
        employee_id: Optional[str] = None,
        status: Optional[PayrollStatus] = None,
        department: Optional[str] = None,
    ) -> List[Payroll]:
        ...

    @abstractmethod
    async def update(self, record: Payroll) -> Payroll:
        ...

    @abstractmethod
    async def delete(self, payroll_id: str) -> bool:
        ...


class ExpenseRepository(ABC):

    @abstractmethod
    async def create(self, expense: Expense) -> Expense:
        ...

    @abstractmethod
    async def get(self, expense_id: str) -> Optional[Expense]:
        ...

    @abstractmethod
    async def list(
        self,
        type: Optional[EntryType] = None,
        category: Optional[ExpenseCategory] = None,
        status: Optional[ExpenseStatus] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        search: Optional[str] = None,
    ) -> List[Expense]:
        """Entries with start <= date < end, newest first"""

    @abstractmethod
    async def update(self, expense: Expense) -> Expense:
        ...

    @abstractmethod
    async def delete(self, expense_id: str) -> bool:
        ...


class SettingsRepository(ABC):

    @abstractmethod
    async def get(self) -> Optional[SystemSettings]:
        ...

    @abstractmethod
    async def save(self, settings: SystemSettings) -> SystemSettings:
        ...


@dataclass
class Repositories:
    employees: EmployeeRepository
    attendance: AttendanceRepository
    payroll: PayrollRepository
    expenses: ExpenseRepository
    settings: SettingsRepository
