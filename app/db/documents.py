"""
Beanie Documents
MongoDB collections for the domain records, with their indexes
"""
from beanie import Document
from pymongo import ASCENDING, IndexModel

from app.models.attendance import Attendance
from app.models.employee import Employee
from app.models.expense import Expense
from app.models.payroll import Payroll
from app.models.settings import SystemSettings


class EmployeeDocument(Document, Employee):

    class Settings:
        name = "employees"
        indexes = [
            IndexModel([("employee_id", ASCENDING)], unique=True),
            IndexModel([("email", ASCENDING)], unique=True),
            "department",
            "status",
        ]


class AttendanceDocument(Document, Attendance):

    class Settings:
        name = "attendance"
        indexes = [
            IndexModel([("attendance_id", ASCENDING)], unique=True),
            IndexModel([("employee_id", ASCENDING), ("date", ASCENDING)], unique=True),
            "date",
            "status",
        ]


class PayrollDocument(Document, Payroll):

    class Settings:
        name = "payrolls"
        indexes = [
            IndexModel([("payroll_id", ASCENDING)], unique=True),
            IndexModel(
                [("employee_id", ASCENDING), ("month", ASCENDING), ("year", ASCENDING)],
                unique=True,
            ),
            IndexModel([("month", ASCENDING), ("year", ASCENDING)]),
            "status",
        ]


class ExpenseDocument(Document, Expense):

    class Settings:
        name = "expenses"
        indexes = [
            IndexModel([("expense_id", ASCENDING)], unique=True),
            "date",
            "category",
            "type",
            "status",
        ]


class SettingsDocument(Document, SystemSettings):

    class Settings:
        name = "settings"
        indexes = [
            IndexModel([("key", ASCENDING)], unique=True),
        ]


DOCUMENT_MODELS = [
    EmployeeDocument,
    AttendanceDocument,
    PayrollDocument,
    ExpenseDocument,
    SettingsDocument,
]
