"""
Tests for the pure attendance calculations
"""
from datetime import datetime, timezone

import pytest

from app.errors import ValidationFailed
from app.models.attendance import Attendance, AttendanceStatus, CheckIn, CheckOut
from app.models.settings import AttendanceSettings, Holiday, SystemSettings
from app.services.attendance import (
    compute_overtime,
    compute_working_hours,
    derive,
    expected_working_days,
    is_half_day,
    is_late,
    month_bounds,
    summarize_records,
)


class TestWorkingHours:

    def test_four_hour_day(self):
        hours = compute_working_hours(datetime(2024, 3, 4, 9, 0), datetime(2024, 3, 4, 13, 0))
        assert hours == 4.0

    def test_partial_hours_are_not_rounded(self):
        hours = compute_working_hours(datetime(2024, 3, 4, 9, 0), datetime(2024, 3, 4, 17, 20))
        assert hours == pytest.approx(8 + 20 / 60)

    def test_check_out_before_check_in_is_rejected(self):
        with pytest.raises(ValidationFailed):
            compute_working_hours(datetime(2024, 3, 4, 10, 0), datetime(2024, 3, 4, 9, 0))

    def test_overtime_beyond_standard_hours(self):
        assert compute_overtime(10, 8) == 2
        assert compute_overtime(7.5, 8) == 0


class TestThresholds:

    def test_four_hours_is_not_a_half_day(self):
        assert is_half_day(4.0, 4) is False

    def test_under_threshold_is_a_half_day(self):
        assert is_half_day(3.99, 4) is True

    def test_late_after_grace_period(self):
        assert is_late(datetime(2024, 3, 4, 9, 30), "09:00", 15) is True

    def test_within_grace_period_is_on_time(self):
        assert is_late(datetime(2024, 3, 4, 9, 10), "09:00", 15) is False
        assert is_late(datetime(2024, 3, 4, 9, 15), "09:00", 15) is False

    def test_late_without_grace_period(self):
        assert is_late(datetime(2024, 3, 4, 9, 1), "09:00") is True


class TestDerive:

    def test_derive_fills_calculated_fields(self):
        record = Attendance(
            employee_id="EMP001",
            date=datetime(2024, 3, 4),
            check_in=CheckIn(time=datetime(2024, 3, 4, 9, 0)),
            check_out=CheckOut(time=datetime(2024, 3, 4, 19, 30)),
        )
        derive(record, SystemSettings())
        assert record.working_hours == 10.5
        assert record.overtime == 2.5
        assert record.is_half_day is False

    def test_derive_leaves_open_records_alone(self):
        record = Attendance(
            employee_id="EMP001",
            date=datetime(2024, 3, 4),
            check_in=CheckIn(time=datetime(2024, 3, 4, 9, 0)),
        )
        derive(record, SystemSettings())
        assert record.working_hours == 0.0


class TestExpectedWorkingDays:

    def test_month_bounds_wrap_december(self):
        assert month_bounds(12, 2024) == (datetime(2024, 12, 1), datetime(2025, 1, 1))

    def test_weekends_are_excluded(self):
        days = expected_working_days(3, 2024, AttendanceSettings())
        assert len(days) == 21
        assert all(d.weekday() < 5 for d in days)

    def test_holidays_are_excluded(self):
        settings = AttendanceSettings(holidays=[Holiday(date=datetime(2024, 3, 25), name="Holi")])
        days = expected_working_days(3, 2024, settings)
        assert len(days) == 20
        assert datetime(2024, 3, 25) not in days

    def test_timezone_aware_holiday(self):
        holiday = Holiday(date=datetime(2024, 3, 25, tzinfo=timezone.utc), name="Holi")
        assert holiday.date == datetime(2024, 3, 25)
        days = expected_working_days(3, 2024, AttendanceSettings(holidays=[holiday]))
        assert len(days) == 20

    def test_days_before_joining_are_excluded(self):
        days = expected_working_days(3, 2024, AttendanceSettings(), joining_date=datetime(2024, 3, 15, 10, 0))
        assert days[0] == datetime(2024, 3, 15)
        assert len(days) == 11


class TestSummarizeRecords:

    def _record(self, day, status=AttendanceStatus.PRESENT, hours=8.0, overtime=0.0, late=False):
        return Attendance(
            employee_id="EMP001",
            date=datetime(2024, 3, day),
            status=status,
            working_hours=hours,
            overtime=overtime,
            is_late=late,
        )

    def test_missing_days_count_as_absent(self):
        expected = expected_working_days(3, 2024, AttendanceSettings())
        records = [self._record(4), self._record(5, late=True), self._record(6, AttendanceStatus.HALF_DAY, hours=3)]
        summary = summarize_records(records, expected, as_of=datetime(2024, 4, 1))

        assert summary.total_days == 21
        assert summary.present_days == 2
        assert summary.half_days == 1
        assert summary.absent_days == 18
        assert summary.late_days == 1
        assert summary.working_hours == 19

    def test_days_before_joining_are_reported_separately(self):
        month_days = expected_working_days(3, 2024, AttendanceSettings())
        employed = expected_working_days(3, 2024, AttendanceSettings(), joining_date=datetime(2024, 3, 25))
        records = [self._record(25), self._record(26)]
        summary = summarize_records(records, employed, as_of=datetime(2024, 4, 1), month_days=month_days)

        assert summary.total_days == 21
        assert summary.not_joined_days == 16
        assert summary.present_days == 2
        assert summary.absent_days == 3

    def test_future_days_are_not_absent(self):
        expected = expected_working_days(3, 2024, AttendanceSettings())
        summary = summarize_records([self._record(4)], expected, as_of=datetime(2024, 3, 6, 12, 0))
        # 1st and 5th are the only missing days before the 6th
        assert summary.absent_days == 2

    def test_leave_and_overtime_are_totalled(self):
        expected = expected_working_days(3, 2024, AttendanceSettings())
        records = [self._record(4, overtime=1.25), self._record(5, overtime=0.5), self._record(7, AttendanceStatus.LEAVE, hours=0)]
        summary = summarize_records(records, expected, as_of=datetime(2024, 3, 8))
        assert summary.leave_days == 1
        assert summary.overtime == 1.75
