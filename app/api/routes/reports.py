"""
Report Routes
Aggregated reports and Excel exports
"""
from datetime import datetime
from fastapi import APIRouter, Depends, Query, Response
from typing import Optional

from app.api.deps import get_report_service, ok
from app.models.attendance import AttendanceStatus, naive_utc
from app.models.employee import Department, EmployeeStatus
from app.models.expense import EntryType, ExpenseCategory
from app.models.payroll import PayrollStatus
from app.services.reports import XLSX_MEDIA_TYPE, ReportService

router = APIRouter()


def _xlsx(content: bytes, name: str) -> Response:
    filename = f"{name}_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/employees")
async def employee_report(
    department: Optional[Department] = None,
    status: Optional[EmployeeStatus] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    service: ReportService = Depends(get_report_service),
):
    return ok(await service.employee_report(department, status, naive_utc(start_date), naive_utc(end_date)))


@router.get("/payroll")
async def payroll_report(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    status: Optional[PayrollStatus] = None,
    department: Optional[Department] = None,
    service: ReportService = Depends(get_report_service),
):
    return ok(
        await service.payroll_report(
            naive_utc(start_date),
            naive_utc(end_date),
            status,
            department.value if department else None,
        )
    )


@router.get("/attendance")
async def attendance_report(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    employee_id: Optional[str] = None,
    status: Optional[AttendanceStatus] = None,
    service: ReportService = Depends(get_report_service),
):
    return ok(await service.attendance_report(naive_utc(start_date), naive_utc(end_date), employee_id, status))


@router.get("/expenses")
async def expense_report(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    type: Optional[EntryType] = None,
    category: Optional[ExpenseCategory] = None,
    service: ReportService = Depends(get_report_service),
):
    return ok(await service.expense_report(naive_utc(start_date), naive_utc(end_date), type, category))


@router.get("/financial")
async def financial_report(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    service: ReportService = Depends(get_report_service),
):
    """Ledger totals alongside payroll cost"""
    return ok(await service.financial_report(naive_utc(start_date), naive_utc(end_date)))


@router.get("/dashboard")
async def dashboard(service: ReportService = Depends(get_report_service)):
    """Headcount, today's attendance, and this month's payroll and ledger"""
    return ok(await service.dashboard())


@router.get("/employees/export")
async def export_employees(
    department: Optional[Department] = None,
    status: Optional[EmployeeStatus] = None,
    service: ReportService = Depends(get_report_service),
):
    return _xlsx(await service.export_employees(department, status), "employees")


@router.get("/payroll/export")
async def export_payroll(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    service: ReportService = Depends(get_report_service),
):
    return _xlsx(await service.export_payroll(month, year), "payroll")


@router.get("/expenses/export")
async def export_expenses(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    service: ReportService = Depends(get_report_service),
):
    return _xlsx(await service.export_expenses(naive_utc(start_date), naive_utc(end_date)), "expenses")


@router.get("/attendance/export")
async def export_attendance(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    service: ReportService = Depends(get_report_service),
):
    return _xlsx(await service.export_attendance(naive_utc(start_date), naive_utc(end_date)), "attendance")


@router.get("/financial/export")
async def export_financial(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    service: ReportService = Depends(get_report_service),
):
    return _xlsx(await service.export_financial(naive_utc(start_date), naive_utc(end_date)), "financial")
