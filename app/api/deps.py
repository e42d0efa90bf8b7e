"""
API Dependencies
Service providers, pagination and the response envelope shared by the routes
"""
import math
from typing import Any, List, Optional, Sequence

from fastapi import Depends, Query, Request

from app.config import settings
from app.repositories.base import Repositories
from app.services.attendance import AttendanceService
from app.services.email import EmailService
from app.services.employees import EmployeeService
from app.services.finance import ExpenseService
from app.services.payroll import PayrollService
from app.services.reports import ReportService
from app.services.settings import SettingsService


def get_repositories(request: Request) -> Repositories:
    return request.app.state.repositories


def get_email_service() -> EmailService:
    return EmailService()


def get_settings_service(repositories: Repositories = Depends(get_repositories)) -> SettingsService:
    return SettingsService(repositories.settings)


def get_employee_service(repositories: Repositories = Depends(get_repositories)) -> EmployeeService:
    return EmployeeService(repositories.employees)


def get_attendance_service(
    repositories: Repositories = Depends(get_repositories),
    settings_service: SettingsService = Depends(get_settings_service),
) -> AttendanceService:
    return AttendanceService(repositories, settings_service)


def get_payroll_service(
    repositories: Repositories = Depends(get_repositories),
    settings_service: SettingsService = Depends(get_settings_service),
    email_service: EmailService = Depends(get_email_service),
) -> PayrollService:
    return PayrollService(repositories, settings_service, email_service)


def get_expense_service(repositories: Repositories = Depends(get_repositories)) -> ExpenseService:
    return ExpenseService(repositories.expenses)


def get_report_service(repositories: Repositories = Depends(get_repositories)) -> ReportService:
    return ReportService(repositories)


class PageParams:
    """``page``/``limit`` query parameters"""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    ):
        self.page = page
        self.limit = limit


def paginate(items: Sequence[Any], params: PageParams) -> dict:
    start = (params.page - 1) * params.limit
    return {
        "items": list(items[start:start + params.limit]),
        "pagination": {
            "current_page": params.page,
            "total_pages": math.ceil(len(items) / params.limit),
            "total_items": len(items),
            "items_per_page": params.limit,
        },
    }


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    return body


def errors_from_validation(errors: List[dict]) -> List[dict]:
    """Flatten FastAPI/pydantic error entries into field/message pairs"""
    details = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(location) or None, "message": error.get("msg", "Invalid value")})
    return details
