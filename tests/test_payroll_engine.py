"""
Tests for monthly payroll generation
"""
from datetime import datetime, timezone

from app.models.employee import EmployeeStatus
from app.models.payroll import Bonuses, GeneratePayrollCommand, PayrollStatus, PayrollStatusUpdate
from tests.conftest import attend_every_day


def march(**kwargs) -> GeneratePayrollCommand:
    return GeneratePayrollCommand(month=3, year=2024, **kwargs)


class TestGenerate:

    async def test_full_attendance(self, payroll_service, employee_factory, repositories):
        await employee_factory()
        await attend_every_day(repositories, "EMP001", 3, 2024)

        result = await payroll_service.generate(march())

        assert result.failures == []
        assert result.total_employees == 1
        assert result.month_name == "March 2024"
        record = result.generated[0]
        assert record.attendance.total_days == 21
        assert record.attendance.present_days == 21
        assert record.lop_amount == 0
        assert record.gross_salary == 81000
        assert record.net_salary == 68500
        assert record.status == PayrollStatus.PENDING
        assert await repositories.payroll.find_for_period("EMP001", 3, 2024) is not None

    async def test_missing_days_are_loss_of_pay(self, payroll_service, employee_factory):
        await employee_factory()

        result = await payroll_service.generate(march())

        record = result.generated[0]
        assert record.attendance.absent_days == 21
        assert record.lop_amount == 50000
        assert record.net_salary == 81000 - 12500 - 50000

    async def test_overtime_is_paid(self, payroll_service, employee_factory, repositories):
        await employee_factory()
        await attend_every_day(repositories, "EMP001", 3, 2024, hours=9)

        record = (await payroll_service.generate(march())).generated[0]

        assert record.attendance.overtime == 21
        assert record.overtime_pay == round(21 * 50000 / (21 * 8) * 1.5, 2)
        assert record.gross_salary == round(81000 + record.overtime_pay, 2)

    async def test_inactive_employees_are_skipped(self, payroll_service, employee_factory):
        await employee_factory()
        await employee_factory(employee_id="EMP002", status=EmployeeStatus.INACTIVE)

        result = await payroll_service.generate(march())

        assert [r.employee_id for r in result.generated] == ["EMP001"]

    async def test_selected_employees_only(self, payroll_service, employee_factory):
        await employee_factory()
        await employee_factory(employee_id="EMP002", first_name="Jane")

        result = await payroll_service.generate(march(employee_ids=["EMP002", "EMP404"]))

        assert [r.employee_id for r in result.generated] == ["EMP002"]
        assert len(result.failures) == 1
        assert result.failures[0].employee_id == "EMP404"
        assert result.failures[0].kind == "not_found"

    async def test_explicit_bonuses(self, payroll_service, employee_factory, repositories):
        await employee_factory()
        await attend_every_day(repositories, "EMP001", 3, 2024)

        result = await payroll_service.generate(march(bonuses={"EMP001": Bonuses(performance=5000, festival=2000)}))

        record = result.generated[0]
        assert record.total_bonuses == 7000
        assert record.gross_salary == 88000

    async def test_bonus_policy_from_settings(self, payroll_service, employee_factory, settings_service, repositories):
        await employee_factory()
        await attend_every_day(repositories, "EMP001", 3, 2024)
        await settings_service.update(
            {"payroll": {"bonus_policy": {"performance": 1000, "festival": 2500, "festival_months": [3]}}}
        )

        record = (await payroll_service.generate(march())).generated[0]

        assert record.bonuses == Bonuses(performance=1000, festival=2500)

    async def test_statutory_deductions(self, payroll_service, employee_factory, repositories):
        await employee_factory()
        await attend_every_day(repositories, "EMP001", 3, 2024)

        record = (await payroll_service.generate(march(apply_statutory=True))).generated[0]

        assert record.deductions.pf == 6000
        assert record.deductions.esi == round(81000 * 0.0175, 2)

    async def test_employee_joining_after_the_period_is_skipped(self, payroll_service, employee_factory):
        await employee_factory()
        await employee_factory(employee_id="EMP002", first_name="Jane", joining_date=datetime(2024, 4, 10))

        result = await payroll_service.generate(march())

        assert [r.employee_id for r in result.generated] == ["EMP001"]
        assert result.failures[0].employee_id == "EMP002"
        assert result.failures[0].kind == "not_joined"

    async def test_mid_month_joiner_loses_days_before_joining(self, payroll_service, employee_factory, repositories):
        await employee_factory(joining_date=datetime(2024, 3, 25))
        await attend_every_day(repositories, "EMP001", 3, 2024, skip=list(range(1, 25)))

        record = (await payroll_service.generate(march())).generated[0]

        # 16 of March's 21 weekdays fall before the 25th
        assert record.attendance.total_days == 21
        assert record.attendance.not_joined_days == 16
        assert record.attendance.present_days == 5
        assert record.attendance.absent_days == 0
        assert record.lop_amount == round(50000 / 21 * 16, 2)
        assert record.net_salary == round(68500 - record.lop_amount, 2)

    async def test_timezone_aware_joining_date(self, payroll_service, employee_factory, repositories):
        employee = await employee_factory(joining_date=datetime(2024, 1, 15, tzinfo=timezone.utc))
        await attend_every_day(repositories, "EMP001", 3, 2024)

        result = await payroll_service.generate(march())

        assert employee.joining_date == datetime(2024, 1, 15)
        assert result.failures == []
        assert result.generated[0].net_salary == 68500


class TestRerun:

    async def test_rerun_is_rejected_per_employee(self, payroll_service, employee_factory):
        await employee_factory()
        first = await payroll_service.generate(march())

        second = await payroll_service.generate(march())

        assert second.generated == []
        assert second.failures[0].kind == "duplicate_period"
        stored = await payroll_service.get(first.generated[0].payroll_id)
        assert stored.net_salary == first.generated[0].net_salary

    async def test_force_regenerates_pending(self, payroll_service, employee_factory, repositories):
        await employee_factory()
        first = (await payroll_service.generate(march())).generated[0]
        await attend_every_day(repositories, "EMP001", 3, 2024)

        result = await payroll_service.generate(march(force=True))

        regenerated = result.generated[0]
        assert regenerated.payroll_id == first.payroll_id
        assert regenerated.lop_amount == 0
        assert len(await repositories.payroll.list(month=3, year=2024)) == 1

    async def test_force_never_overwrites_paid(self, payroll_service, employee_factory):
        await employee_factory()
        first = (await payroll_service.generate(march())).generated[0]
        await payroll_service.update_status(first.payroll_id, PayrollStatusUpdate(status=PayrollStatus.PAID))

        result = await payroll_service.generate(march(force=True))

        assert result.generated == []
        assert result.failures[0].kind == "duplicate_period"
        stored = await payroll_service.get(first.payroll_id)
        assert stored.status == PayrollStatus.PAID

    async def test_settings_changes_apply_to_the_next_run(self, payroll_service, employee_factory, settings_service):
        await employee_factory()
        await settings_service.update({"payroll": {"allowed_absent_days": 21}})

        record = (await payroll_service.generate(march())).generated[0]

        assert record.lop_amount == 0


class TestFailureIsolation:

    async def test_one_failure_does_not_abort_the_batch(self, payroll_service, employee_factory, repositories):
        await employee_factory()
        await employee_factory(employee_id="EMP002", first_name="Jane")

        original_create = repositories.payroll.create

        async def failing_create(record):
            if record.employee_id == "EMP001":
                raise RuntimeError("disk full")
            return await original_create(record)

        repositories.payroll.create = failing_create

        result = await payroll_service.generate(march())

        assert [r.employee_id for r in result.generated] == ["EMP002"]
        assert result.failures[0].employee_id == "EMP001"
        assert result.failures[0].kind == "error"
        assert "disk full" in result.failures[0].message

    async def test_concurrent_run_reports_duplicate_period(self, payroll_service, employee_factory, repositories):
        await employee_factory()
        await payroll_service.generate(march())

        original_find = repositories.payroll.find_for_period
        lookups = []

        async def stale_find(employee_id, month, year):
            # the pre-check misses the record another run already stored
            lookups.append(employee_id)
            if len(lookups) == 1:
                return None
            return await original_find(employee_id, month, year)

        repositories.payroll.find_for_period = stale_find

        result = await payroll_service.generate(march())

        assert result.generated == []
        assert result.failures[0].kind == "duplicate_period"
        assert len(await repositories.payroll.list(month=3, year=2024)) == 1
