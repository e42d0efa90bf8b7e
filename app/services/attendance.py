"""
Attendance Service
Check-in/check-out handling and the derivation of working hours,
overtime, lateness and half days
"""
import calendar
import logging
from datetime import datetime, time, timedelta
from typing import List, Optional, Tuple

from app.errors import AlreadyCheckedIn, AlreadyCheckedOut, ConflictError, NotFoundError, ValidationFailed
from app.models.attendance import (
    Attendance,
    AttendanceStatus,
    AttendanceSummary,
    AttendanceUpdate,
    CheckIn,
    CheckInCommand,
    CheckOut,
    CheckOutCommand,
    EmployeeAttendanceReport,
    MarkAttendanceCommand,
    day_start,
)
from app.models.employee import Employee, EmployeeStatus
from app.models.settings import AttendanceSettings, SystemSettings
from app.repositories.base import Repositories
from app.services.settings import SettingsService

logger = logging.getLogger(__name__)


def parse_clock(value: str) -> time:
    return datetime.strptime(value, "%H:%M").time()


def month_bounds(month: int, year: int) -> Tuple[datetime, datetime]:
    """[first day of month, first day of next month)"""
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start, end


def compute_working_hours(check_in: datetime, check_out: datetime) -> float:
    if check_out < check_in:
        raise ValidationFailed("Check-out time is earlier than check-in time", field="check_out")
    return (check_out - check_in).total_seconds() / 3600


def compute_overtime(working_hours: float, standard_hours: float) -> float:
    return max(0.0, working_hours - standard_hours)


def is_half_day(working_hours: float, threshold: float) -> bool:
    return working_hours < threshold


def is_late(check_in: datetime, work_start_time: str, late_threshold_minutes: int = 0) -> bool:
    """Time-of-day comparison against the start time plus the grace period"""
    cutoff = datetime.combine(check_in.date(), parse_clock(work_start_time)) + timedelta(
        minutes=late_threshold_minutes
    )
    return check_in > cutoff


def derive(record: Attendance, settings: SystemSettings) -> Attendance:
    """Recompute the calculated fields when both check-in and check-out are set."""
    if record.check_in.time and record.check_out.time:
        record.working_hours = compute_working_hours(record.check_in.time, record.check_out.time)
        record.overtime = compute_overtime(record.working_hours, settings.payroll.default_working_hours)
        record.is_half_day = is_half_day(record.working_hours, settings.attendance.half_day_threshold)
    return record


def expected_working_days(
    month: int,
    year: int,
    attendance_settings: AttendanceSettings,
    joining_date: Optional[datetime] = None,
) -> List[datetime]:
    """Days of the month that are neither weekly offs nor holidays, from the joining date on"""
    start, end = month_bounds(month, year)
    if joining_date and day_start(joining_date) > start:
        start = day_start(joining_date)
    holidays = {h.date.date() for h in attendance_settings.holidays}

    days = []
    day = start
    while day < end:
        if day.weekday() not in attendance_settings.weekly_offs and day.date() not in holidays:
            days.append(day)
        day += timedelta(days=1)
    return days


def summarize_records(
    records: List[Attendance],
    expected_days: List[datetime],
    as_of: Optional[datetime] = None,
    month_days: Optional[List[datetime]] = None,
) -> AttendanceSummary:
    """Roll up a month of records. Expected days without a record count as absent.

    ``month_days`` are the month's working days regardless of the joining date;
    when given, ``total_days`` covers the whole month and the days missing from
    ``expected_days`` are reported as ``not_joined_days``.
    """
    total_days = len(month_days) if month_days is not None else len(expected_days)
    summary = AttendanceSummary(total_days=total_days, not_joined_days=total_days - len(expected_days))
    recorded_days = set()

    for record in records:
        recorded_days.add(day_start(record.date))
        if record.status == AttendanceStatus.PRESENT:
            summary.present_days += 1
        elif record.status == AttendanceStatus.HALF_DAY:
            summary.half_days += 1
        elif record.status == AttendanceStatus.ABSENT:
            summary.absent_days += 1
        elif record.status == AttendanceStatus.LEAVE:
            summary.leave_days += 1
        summary.working_hours += record.working_hours
        summary.overtime += record.overtime
        if record.is_late:
            summary.late_days += 1

    cutoff = day_start(as_of) if as_of else None
    for day in expected_days:
        if day in recorded_days:
            continue
        if cutoff and day >= cutoff:
            continue
        summary.absent_days += 1

    summary.working_hours = round(summary.working_hours, 2)
    summary.overtime = round(summary.overtime, 2)
    return summary


class AttendanceService:
    """Attendance operations over the repository port"""

    def __init__(self, repositories: Repositories, settings_service: SettingsService):
        self.repositories = repositories
        self.settings_service = settings_service

    async def _require_employee(self, employee_id: str) -> Employee:
        employee = await self.repositories.employees.get(employee_id)
        if not employee:
            raise NotFoundError("Employee", employee_id)
        return employee

    async def _require_record(self, attendance_id: str) -> Attendance:
        record = await self.repositories.attendance.get(attendance_id)
        if not record:
            raise NotFoundError("Attendance record", attendance_id)
        return record

    async def check_in(self, command: CheckInCommand) -> Attendance:
        await self._require_employee(command.employee_id)
        settings = await self.settings_service.get()

        check_in_time = command.timestamp or datetime.utcnow()
        today = day_start(check_in_time)
        late = is_late(check_in_time, settings.attendance.work_start_time, settings.attendance.late_threshold)

        existing = await self.repositories.attendance.find_for_day(command.employee_id, today)
        if existing and existing.check_in.time:
            raise AlreadyCheckedIn(f"Employee {command.employee_id} already checked in today")

        if existing:
            record = existing
            record.status = AttendanceStatus.PRESENT
        else:
            record = Attendance(employee_id=command.employee_id, date=today)

        record.check_in = CheckIn(time=check_in_time, location=command.location, is_late=late)
        record.is_late = late
        if command.remarks:
            record.remarks = command.remarks
        record.updated_at = datetime.utcnow()

        if existing:
            await self.repositories.attendance.update(record)
        else:
            try:
                await self.repositories.attendance.create(record)
            except ConflictError:
                raise AlreadyCheckedIn(f"Employee {command.employee_id} already checked in today")

        logger.info("Check-in %s at %s (late=%s)", command.employee_id, check_in_time, late)
        return record

    async def check_out(self, command: CheckOutCommand) -> Attendance:
        settings = await self.settings_service.get()
        check_out_time = command.timestamp or datetime.utcnow()

        record = await self.repositories.attendance.find_for_day(command.employee_id, check_out_time)
        if not record or not record.check_in.time:
            raise NotFoundError(
                "Attendance record",
                command.employee_id,
                kind="no_check_in",
                message="No check-in record found for today",
            )
        if record.check_out.time:
            raise AlreadyCheckedOut(f"Employee {command.employee_id} already checked out today")

        record.check_out = CheckOut(time=check_out_time, location=command.location)
        derive(record, settings)
        if record.status == AttendanceStatus.PRESENT and record.is_half_day:
            record.status = AttendanceStatus.HALF_DAY
        if command.remarks:
            record.remarks = f"{record.remarks or ''}\nCheckout: {command.remarks}".strip()
        record.updated_at = datetime.utcnow()

        await self.repositories.attendance.update(record)
        logger.info("Check-out %s after %.2f hours", command.employee_id, record.working_hours)
        return record

    async def mark(self, command: MarkAttendanceCommand) -> Attendance:
        """Record a day without check-in, e.g. an absence or approved leave"""
        await self._require_employee(command.employee_id)
        record = Attendance(
            employee_id=command.employee_id,
            date=day_start(command.date),
            status=command.status,
            remarks=command.remarks,
        )
        await self.repositories.attendance.create(record)
        return record

    async def update(self, attendance_id: str, changes: AttendanceUpdate) -> Attendance:
        record = await self._require_record(attendance_id)
        settings = await self.settings_service.get()

        if changes.check_in:
            record.check_in = record.check_in.model_copy(update=changes.check_in.model_dump(exclude_unset=True))
            if record.check_in.time:
                record.check_in.is_late = is_late(
                    record.check_in.time, settings.attendance.work_start_time, settings.attendance.late_threshold
                )
                record.is_late = record.check_in.is_late
        if changes.check_out:
            record.check_out = record.check_out.model_copy(update=changes.check_out.model_dump(exclude_unset=True))
        if changes.remarks:
            record.remarks = changes.remarks

        derive(record, settings)
        if changes.status:
            record.status = changes.status
        elif record.check_out.time and record.status in (AttendanceStatus.PRESENT, AttendanceStatus.HALF_DAY):
            record.status = AttendanceStatus.HALF_DAY if record.is_half_day else AttendanceStatus.PRESENT

        record.updated_at = datetime.utcnow()
        await self.repositories.attendance.update(record)
        return record

    async def delete(self, attendance_id: str) -> None:
        await self._require_record(attendance_id)
        await self.repositories.attendance.delete(attendance_id)

    async def list_for_employee(
        self,
        employee_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Attendance]:
        await self._require_employee(employee_id)
        records = await self.repositories.attendance.list(employee_id=employee_id, start=start, end=end)
        return sorted(records, key=lambda r: r.date, reverse=True)

    async def today(self, now: Optional[datetime] = None) -> dict:
        start = day_start(now or datetime.utcnow())
        records = await self.repositories.attendance.list(start=start, end=start + timedelta(days=1))
        return {
            "date": start.date().isoformat(),
            "total_records": len(records),
            "present_count": sum(1 for r in records if r.status == AttendanceStatus.PRESENT),
            "absent_count": sum(1 for r in records if r.status == AttendanceStatus.ABSENT),
            "late_count": sum(1 for r in records if r.is_late),
            "attendance": records,
        }

    async def summarize_month(
        self,
        employee: Employee,
        month: int,
        year: int,
        settings: Optional[SystemSettings] = None,
        as_of: Optional[datetime] = None,
    ) -> AttendanceSummary:
        settings = settings or await self.settings_service.get()
        start, end = month_bounds(month, year)
        records = await self.repositories.attendance.list(employee_id=employee.employee_id, start=start, end=end)
        return self._summarize(records, employee, month, year, settings, as_of or datetime.utcnow())

    def _summarize(
        self,
        records: List[Attendance],
        employee: Employee,
        month: int,
        year: int,
        settings: SystemSettings,
        as_of: datetime,
    ) -> AttendanceSummary:
        month_days = expected_working_days(month, year, settings.attendance)
        employed_days = expected_working_days(month, year, settings.attendance, employee.joining_date)
        return summarize_records(records, employed_days, as_of, month_days=month_days)

    async def monthly_report(self, month: int, year: int) -> List[EmployeeAttendanceReport]:
        if not 1 <= month <= 12:
            raise ValidationFailed("Month must be between 1 and 12", field="month")
        settings = await self.settings_service.get()
        start, end = month_bounds(month, year)
        employees = await self.repositories.employees.list(status=EmployeeStatus.ACTIVE)

        report = []
        for employee in employees:
            records = await self.repositories.attendance.list(employee_id=employee.employee_id, start=start, end=end)
            report.append(
                EmployeeAttendanceReport(
                    employee_id=employee.employee_id,
                    name=employee.full_name,
                    department=employee.department_name,
                    summary=self._summarize(records, employee, month, year, settings, datetime.utcnow()),
                    records=records,
                )
            )
        return report


def month_label(month: int, year: int) -> str:
    return f"{calendar.month_name[month]} {year}"
