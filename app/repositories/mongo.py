"""
MongoDB Repositories
Beanie-backed implementation of the persistence port
"""
import logging
import re
from datetime import datetime
from typing import List, Optional, Type, TypeVar

from beanie import Document, init_beanie
from motor.motor_asyncio import AsyncIOMotorClient
from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError

from app.errors import ConflictError, DuplicatePeriod
from app.db.documents import (
    DOCUMENT_MODELS,
    AttendanceDocument,
    EmployeeDocument,
    ExpenseDocument,
    PayrollDocument,
    SettingsDocument,
)
from app.models.attendance import Attendance, day_start
from app.models.employee import Employee
from app.models.expense import Expense
from app.models.payroll import Payroll
from app.models.settings import SETTINGS_KEY, SystemSettings
from app.repositories.base import (
    AttendanceRepository,
    EmployeeRepository,
    ExpenseRepository,
    PayrollRepository,
    Repositories,
    SettingsRepository,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_INTERNAL_FIELDS = {"id", "revision_id"}


def _fields(model: BaseModel) -> dict:
    return model.model_dump(exclude=set(type(model).model_computed_fields))


def to_model(model: Type[M], document: Optional[Document]) -> Optional[M]:
    if document is None:
        return None
    exclude = _INTERNAL_FIELDS | set(type(document).model_computed_fields)
    return model.model_validate(document.model_dump(exclude=exclude))


def _date_range(start: Optional[datetime], end: Optional[datetime]) -> dict:
    bounds = {}
    if start:
        bounds["$gte"] = start
    if end:
        bounds["$lt"] = end
    return bounds


def _regex(search: str) -> dict:
    return {"$regex": re.escape(search), "$options": "i"}


async def _replace(document_cls: Type[Document], query: dict, model: BaseModel) -> None:
    document = await document_cls.find_one(query)
    if document is None:
        document = document_cls(**_fields(model))
        await document.insert()
        return
    for field, value in model:
        setattr(document, field, value)
    await document.save()


class MongoEmployeeRepository(EmployeeRepository):

    async def create(self, employee: Employee) -> Employee:
        try:
            await EmployeeDocument(**_fields(employee)).insert()
        except DuplicateKeyError:
            raise ConflictError(f"Employee {employee.employee_id} or email {employee.email} already exists")
        return employee

    async def get(self, employee_id: str) -> Optional[Employee]:
        document = await EmployeeDocument.find_one(EmployeeDocument.employee_id == employee_id)
        return to_model(Employee, document)

    async def list(self, status=None, department=None, search=None) -> List[Employee]:
        query = {}
        if status:
            query["status"] = status
        if department:
            query["department"] = department
        if search:
            query["$or"] = [
                {"first_name": _regex(search)},
                {"last_name": _regex(search)},
                {"email": _regex(search)},
                {"employee_id": _regex(search)},
            ]
        documents = await EmployeeDocument.find(query).sort("first_name", "last_name").to_list()
        return [to_model(Employee, d) for d in documents]

    async def update(self, employee: Employee) -> Employee:
        try:
            await _replace(EmployeeDocument, {"employee_id": employee.employee_id}, employee)
        except DuplicateKeyError:
            raise ConflictError(f"Email {employee.email} already registered")
        return employee

    async def delete(self, employee_id: str) -> bool:
        result = await EmployeeDocument.find_one(EmployeeDocument.employee_id == employee_id).delete()
        return bool(result and result.deleted_count)


class MongoAttendanceRepository(AttendanceRepository):

    async def create(self, record: Attendance) -> Attendance:
        try:
            await AttendanceDocument(**_fields(record)).insert()
        except DuplicateKeyError:
            raise ConflictError(f"Attendance for {record.employee_id} on {record.date.date()} already exists")
        return record

    async def get(self, attendance_id: str) -> Optional[Attendance]:
        document = await AttendanceDocument.find_one(AttendanceDocument.attendance_id == attendance_id)
        return to_model(Attendance, document)

    async def find_for_day(self, employee_id: str, day: datetime) -> Optional[Attendance]:
        document = await AttendanceDocument.find_one(
            AttendanceDocument.employee_id == employee_id,
            AttendanceDocument.date == day_start(day),
        )
        return to_model(Attendance, document)

    async def list(self, employee_id=None, start=None, end=None, status=None) -> List[Attendance]:
        query = {}
        if employee_id:
            query["employee_id"] = employee_id
        if status:
            query["status"] = status
        bounds = _date_range(start, end)
        if bounds:
            query["date"] = bounds
        documents = await AttendanceDocument.find(query).sort("date", "employee_id").to_list()
        return [to_model(Attendance, d) for d in documents]

    async def update(self, record: Attendance) -> Attendance:
        await _replace(AttendanceDocument, {"attendance_id": record.attendance_id}, record)
        return record

    async def delete(self, attendance_id: str) -> bool:
        result = await AttendanceDocument.find_one(AttendanceDocument.attendance_id == attendance_id).delete()
        return bool(result and result.deleted_count)


class MongoPayrollRepository(PayrollRepository):

    async def create(self, record: Payroll) -> Payroll:
        try:
            await PayrollDocument(**_fields(record)).insert()
        except DuplicateKeyError:
            raise DuplicatePeriod(
                f"Payroll for {record.employee_id} {record.month}/{record.year} already exists"
            )
        return record

    async def get(self, payroll_id: str) -> Optional[Payroll]:
        document = await PayrollDocument.find_one(PayrollDocument.payroll_id == payroll_id)
        return to_model(Payroll, document)

    async def find_for_period(self, employee_id: str, month: int, year: int) -> Optional[Payroll]:
        document = await PayrollDocument.find_one(
            PayrollDocument.employee_id == employee_id,
            PayrollDocument.month == month,
            PayrollDocument.year == year,
        )
        return to_model(Payroll, document)

    async def list(self, month=None, year=None, employee_id=None, status=None, department=None) -> List[Payroll]:
        query = {}
        if month is not None:
            query["month"] = month
        if year is not None:
            query["year"] = year
        if employee_id:
            query["employee_id"] = employee_id
        if status:
            query["status"] = status
        if department:
            query["department"] = department
        documents = await PayrollDocument.find(query).sort("-year", "-month", "employee_name").to_list()
        return [to_model(Payroll, d) for d in documents]

    async def update(self, record: Payroll) -> Payroll:
        await _replace(PayrollDocument, {"payroll_id": record.payroll_id}, record)
        return record

    async def delete(self, payroll_id: str) -> bool:
        result = await PayrollDocument.find_one(PayrollDocument.payroll_id == payroll_id).delete()
        return bool(result and result.deleted_count)


class MongoExpenseRepository(ExpenseRepository):

    async def create(self, expense: Expense) -> Expense:
        await ExpenseDocument(**_fields(expense)).insert()
        return expense

    async def get(self, expense_id: str) -> Optional[Expense]:
        document = await ExpenseDocument.find_one(ExpenseDocument.expense_id == expense_id)
        return to_model(Expense, document)

    async def list(self, type=None, category=None, status=None, start=None, end=None, search=None) -> List[Expense]:
        query = {}
        if type:
            query["type"] = type
        if category:
            query["category"] = category
        if status:
            query["status"] = status
        bounds = _date_range(start, end)
        if bounds:
            query["date"] = bounds
        if search:
            query["$or"] = [
                {"title": _regex(search)},
                {"description": _regex(search)},
                {"vendor.name": _regex(search)},
            ]
        documents = await ExpenseDocument.find(query).sort("-date").to_list()
        return [to_model(Expense, d) for d in documents]

    async def update(self, expense: Expense) -> Expense:
        await _replace(ExpenseDocument, {"expense_id": expense.expense_id}, expense)
        return expense

    async def delete(self, expense_id: str) -> bool:
        result = await ExpenseDocument.find_one(ExpenseDocument.expense_id == expense_id).delete()
        return bool(result and result.deleted_count)


class MongoSettingsRepository(SettingsRepository):

    async def get(self) -> Optional[SystemSettings]:
        document = await SettingsDocument.find_one(SettingsDocument.key == SETTINGS_KEY)
        return to_model(SystemSettings, document)

    async def save(self, settings: SystemSettings) -> SystemSettings:
        await _replace(SettingsDocument, {"key": SETTINGS_KEY}, settings)
        return settings


async def connect_mongo(url: str, db_name: str) -> AsyncIOMotorClient:
    """Open the client and register the document models"""
    client = AsyncIOMotorClient(url)
    await init_beanie(database=client[db_name], document_models=DOCUMENT_MODELS)
    logger.info("Connected to MongoDB database %s", db_name)
    return client


def mongo_repositories() -> Repositories:
    return Repositories(
        employees=MongoEmployeeRepository(),
        attendance=MongoAttendanceRepository(),
        payroll=MongoPayrollRepository(),
        expenses=MongoExpenseRepository(),
        settings=MongoSettingsRepository(),
    )
