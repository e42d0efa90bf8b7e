"""
Payroll Routes
Payroll generation, payment workflow and payslips
"""
from fastapi import APIRouter, Depends, Query, Response, status
from typing import Optional

from app.api.deps import PageParams, get_payroll_service, ok, paginate
from app.models.employee import Department
from app.models.payroll import (
    GeneratePayrollCommand,
    PayrollAdjustment,
    PayrollStatus,
    PayrollStatusUpdate,
)
from app.services.payroll import PayrollService
from app.services.statistics import summarize

router = APIRouter()


@router.post("/generate", status_code=status.HTTP_201_CREATED)
async def generate_payroll(data: GeneratePayrollCommand, service: PayrollService = Depends(get_payroll_service)):
    """Generate payroll for all active employees for a month"""
    result = await service.generate(data)
    return ok(result, message=f"Payroll generated for {len(result.generated)} employees")


@router.get("/")
async def list_payroll(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    status: Optional[PayrollStatus] = None,
    department: Optional[Department] = None,
    search: Optional[str] = None,
    page: PageParams = Depends(),
    service: PayrollService = Depends(get_payroll_service),
):
    """List payroll records with filters and pagination"""
    records = await service.list(
        month=month,
        year=year,
        status=status,
        department=department.value if department else None,
        search=search,
    )
    result = paginate(records, page)
    return ok({"payroll": result["items"], "pagination": result["pagination"], "summary": summarize(records)})


@router.get("/monthly")
async def monthly_payroll(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=2020, le=2030),
    service: PayrollService = Depends(get_payroll_service),
):
    """All records of a period with totals"""
    return ok(await service.monthly(month, year))


@router.get("/employee/{employee_id}")
async def employee_payroll(
    employee_id: str,
    year: Optional[int] = None,
    service: PayrollService = Depends(get_payroll_service),
):
    """Payroll history and year-to-date totals for one employee"""
    return ok(await service.employee_history(employee_id, year))


@router.get("/{payroll_id}")
async def get_payroll(payroll_id: str, service: PayrollService = Depends(get_payroll_service)):
    return ok(await service.get(payroll_id))


@router.put("/{payroll_id}/status")
async def update_payroll_status(
    payroll_id: str,
    data: PayrollStatusUpdate,
    service: PayrollService = Depends(get_payroll_service),
):
    """Move a record through Pending -> Paid -> Cancelled"""
    record = await service.update_status(payroll_id, data)
    return ok(record, message=f"Payroll marked as {record.status.value}")


@router.put("/{payroll_id}")
async def adjust_payroll(
    payroll_id: str,
    data: PayrollAdjustment,
    service: PayrollService = Depends(get_payroll_service),
):
    """Adjust bonuses or deductions of a pending record"""
    return ok(await service.adjust(payroll_id, data), message="Payroll updated")


@router.delete("/{payroll_id}")
async def delete_payroll(payroll_id: str, service: PayrollService = Depends(get_payroll_service)):
    await service.delete(payroll_id)
    return ok(message="Payroll deleted successfully")


@router.get("/{payroll_id}/payslip")
async def download_payslip(payroll_id: str, service: PayrollService = Depends(get_payroll_service)):
    """Download the payslip as PDF"""
    filename, content = await service.payslip(payroll_id)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/{payroll_id}/send-payslip")
async def send_payslip(payroll_id: str, service: PayrollService = Depends(get_payroll_service)):
    """Email the payslip to the employee"""
    result = await service.send_payslip(payroll_id)
    return ok(result, message=result.message)
