"""
Attendance Routes
Check-in/check-out, manual entries and monthly reports
"""
from datetime import datetime
from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from app.api.deps import PageParams, get_attendance_service, ok, paginate
from app.models.attendance import (
    AttendanceUpdate,
    CheckInCommand,
    CheckOutCommand,
    MarkAttendanceCommand,
    naive_utc,
)
from app.services.attendance import AttendanceService

router = APIRouter()


@router.post("/check-in", status_code=status.HTTP_201_CREATED)
async def check_in(data: CheckInCommand, service: AttendanceService = Depends(get_attendance_service)):
    """Record the first arrival of the day"""
    record = await service.check_in(data)
    return ok(record, message="Checked in successfully")


@router.post("/check-out")
async def check_out(data: CheckOutCommand, service: AttendanceService = Depends(get_attendance_service)):
    """Record departure and compute working hours"""
    record = await service.check_out(data)
    return ok(record, message="Checked out successfully")


@router.post("/", status_code=status.HTTP_201_CREATED)
async def mark_attendance(data: MarkAttendanceCommand, service: AttendanceService = Depends(get_attendance_service)):
    """Manually record absence, leave or a holiday"""
    return ok(await service.mark(data), message="Attendance recorded")


@router.get("/today")
async def today(service: AttendanceService = Depends(get_attendance_service)):
    """Today's attendance across the company"""
    return ok(await service.today())


@router.get("/report/monthly")
async def monthly_report(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(..., ge=2000, le=2100),
    service: AttendanceService = Depends(get_attendance_service),
):
    """Per-employee attendance summary for a month"""
    return ok(await service.monthly_report(month, year))


@router.get("/employee/{employee_id}")
async def employee_attendance(
    employee_id: str,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    page: PageParams = Depends(),
    service: AttendanceService = Depends(get_attendance_service),
):
    """Attendance history for one employee, newest first"""
    records = await service.list_for_employee(employee_id, naive_utc(start_date), naive_utc(end_date))
    result = paginate(records, page)
    return ok({"attendance": result["items"], "pagination": result["pagination"]})


@router.put("/{attendance_id}")
async def update_attendance(
    attendance_id: str,
    data: AttendanceUpdate,
    service: AttendanceService = Depends(get_attendance_service),
):
    """Correct a record; derived fields are recomputed"""
    return ok(await service.update(attendance_id, data), message="Attendance updated")


@router.delete("/{attendance_id}")
async def delete_attendance(attendance_id: str, service: AttendanceService = Depends(get_attendance_service)):
    await service.delete(attendance_id)
    return ok(message="Attendance record deleted")
