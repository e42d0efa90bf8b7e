"""
Tests for check-in/check-out and attendance records
"""
from datetime import datetime

import pytest

from app.errors import AlreadyCheckedIn, AlreadyCheckedOut, ConflictError, NotFoundError, ValidationFailed
from app.models.attendance import (
    AttendanceStatus,
    AttendanceUpdate,
    CheckInCommand,
    CheckOut,
    CheckOutCommand,
    MarkAttendanceCommand,
)
from tests.conftest import attend_every_day


def check_in(employee_id="EMP001", at=datetime(2024, 3, 4, 9, 0)):
    return CheckInCommand(employee_id=employee_id, timestamp=at)


def check_out(employee_id="EMP001", at=datetime(2024, 3, 4, 18, 0)):
    return CheckOutCommand(employee_id=employee_id, timestamp=at)


class TestCheckIn:

    async def test_check_in_creates_record(self, attendance_service, employee_factory):
        await employee_factory()
        record = await attendance_service.check_in(check_in())

        assert record.date == datetime(2024, 3, 4)
        assert record.status == AttendanceStatus.PRESENT
        assert record.check_in.time == datetime(2024, 3, 4, 9, 0)
        assert record.is_late is False

    async def test_late_arrival_is_flagged(self, attendance_service, employee_factory):
        await employee_factory()
        record = await attendance_service.check_in(check_in(at=datetime(2024, 3, 4, 9, 30)))
        assert record.is_late is True
        assert record.check_in.is_late is True

    async def test_second_check_in_same_day_is_rejected(self, attendance_service, employee_factory):
        await employee_factory()
        await attendance_service.check_in(check_in())
        with pytest.raises(AlreadyCheckedIn) as exc_info:
            await attendance_service.check_in(check_in(at=datetime(2024, 3, 4, 11, 0)))
        assert exc_info.value.kind == "already_checked_in"

    async def test_check_in_next_day_is_allowed(self, attendance_service, employee_factory):
        await employee_factory()
        await attendance_service.check_in(check_in())
        record = await attendance_service.check_in(check_in(at=datetime(2024, 3, 5, 9, 0)))
        assert record.date == datetime(2024, 3, 5)

    async def test_unknown_employee(self, attendance_service):
        with pytest.raises(NotFoundError):
            await attendance_service.check_in(check_in(employee_id="EMP404"))

    async def test_timezone_aware_timestamp_is_stored_as_utc(self, attendance_service, employee_factory):
        await employee_factory()
        command = CheckInCommand(employee_id="EMP001", timestamp="2024-03-04T14:30:00+05:30")
        record = await attendance_service.check_in(command)
        assert record.check_in.time == datetime(2024, 3, 4, 9, 0)


class TestCheckOut:

    async def test_full_day(self, attendance_service, employee_factory):
        await employee_factory()
        await attendance_service.check_in(check_in())
        record = await attendance_service.check_out(check_out())

        assert record.working_hours == 9.0
        assert record.overtime == 1.0
        assert record.is_half_day is False
        assert record.status == AttendanceStatus.PRESENT

    async def test_four_hours_is_a_full_present_day(self, attendance_service, employee_factory):
        await employee_factory()
        await attendance_service.check_in(check_in())
        record = await attendance_service.check_out(check_out(at=datetime(2024, 3, 4, 13, 0)))
        assert record.working_hours == 4.0
        assert record.is_half_day is False
        assert record.status == AttendanceStatus.PRESENT

    async def test_short_day_becomes_half_day(self, attendance_service, employee_factory):
        await employee_factory()
        await attendance_service.check_in(check_in())
        record = await attendance_service.check_out(check_out(at=datetime(2024, 3, 4, 12, 0)))
        assert record.is_half_day is True
        assert record.status == AttendanceStatus.HALF_DAY

    async def test_check_out_without_check_in(self, attendance_service, employee_factory):
        await employee_factory()
        with pytest.raises(NotFoundError) as exc_info:
            await attendance_service.check_out(check_out())
        assert exc_info.value.kind == "no_check_in"

    async def test_second_check_out_is_rejected(self, attendance_service, employee_factory):
        await employee_factory()
        await attendance_service.check_in(check_in())
        await attendance_service.check_out(check_out())
        with pytest.raises(AlreadyCheckedOut):
            await attendance_service.check_out(check_out(at=datetime(2024, 3, 4, 19, 0)))

    async def test_check_out_before_check_in_is_rejected(self, attendance_service, employee_factory):
        await employee_factory()
        await attendance_service.check_in(check_in(at=datetime(2024, 3, 4, 10, 0)))
        with pytest.raises(ValidationFailed):
            await attendance_service.check_out(check_out(at=datetime(2024, 3, 4, 9, 0)))

    async def test_check_out_is_persisted(self, attendance_service, employee_factory, repositories):
        await employee_factory()
        created = await attendance_service.check_in(check_in())
        await attendance_service.check_out(check_out())
        stored = await repositories.attendance.get(created.attendance_id)
        assert stored.check_out.time == datetime(2024, 3, 4, 18, 0)
        assert stored.working_hours == 9.0


class TestManualRecords:

    async def test_mark_absence(self, attendance_service, employee_factory):
        await employee_factory()
        record = await attendance_service.mark(
            MarkAttendanceCommand(employee_id="EMP001", date=datetime(2024, 3, 4, 15, 0), status=AttendanceStatus.ABSENT)
        )
        assert record.date == datetime(2024, 3, 4)
        assert record.status == AttendanceStatus.ABSENT

    async def test_mark_twice_same_day_conflicts(self, attendance_service, employee_factory):
        await employee_factory()
        command = MarkAttendanceCommand(employee_id="EMP001", date=datetime(2024, 3, 4), status=AttendanceStatus.LEAVE)
        await attendance_service.mark(command)
        with pytest.raises(ConflictError):
            await attendance_service.mark(command)

    async def test_update_recomputes_derived_fields(self, attendance_service, employee_factory):
        await employee_factory()
        record = await attendance_service.check_in(check_in())
        await attendance_service.check_out(check_out())

        updated = await attendance_service.update(
            record.attendance_id,
            AttendanceUpdate(check_out=CheckOut(time=datetime(2024, 3, 4, 11, 0))),
        )
        assert updated.working_hours == 2.0
        assert updated.is_half_day is True
        assert updated.status == AttendanceStatus.HALF_DAY

    async def test_delete(self, attendance_service, employee_factory, repositories):
        await employee_factory()
        record = await attendance_service.check_in(check_in())
        await attendance_service.delete(record.attendance_id)
        assert await repositories.attendance.get(record.attendance_id) is None

        with pytest.raises(NotFoundError):
            await attendance_service.delete(record.attendance_id)

    async def test_list_for_employee_newest_first(self, attendance_service, employee_factory, repositories):
        await employee_factory()
        await attend_every_day(repositories, "EMP001", 3, 2024)
        records = await attendance_service.list_for_employee(
            "EMP001", start=datetime(2024, 3, 1), end=datetime(2024, 3, 8)
        )
        assert [r.date.day for r in records] == [7, 6, 5, 4, 1]


class TestReports:

    async def test_monthly_report(self, attendance_service, employee_factory, repositories):
        await employee_factory()
        await employee_factory(employee_id="EMP002", first_name="Jane")
        await attend_every_day(repositories, "EMP001", 3, 2024, skip=[4, 5])

        report = await attendance_service.monthly_report(3, 2024)
        by_id = {r.employee_id: r for r in report}

        assert by_id["EMP001"].summary.present_days == 19
        assert by_id["EMP001"].summary.absent_days == 2
        assert by_id["EMP001"].department == "IT"
        assert by_id["EMP002"].summary.absent_days == 21

    async def test_monthly_report_rejects_bad_month(self, attendance_service):
        with pytest.raises(ValidationFailed):
            await attendance_service.monthly_report(13, 2024)

    async def test_today(self, attendance_service, employee_factory):
        await employee_factory()
        await attendance_service.check_in(check_in(at=datetime(2024, 3, 4, 9, 45)))
        today = await attendance_service.today(now=datetime(2024, 3, 4, 12, 0))
        assert today["total_records"] == 1
        assert today["present_count"] == 1
        assert today["late_count"] == 1
