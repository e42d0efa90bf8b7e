"""
Payroll Service
Monthly payroll generation, the payment status workflow and payslip delivery
"""
import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from app.errors import AppError, ConflictError, DuplicatePeriod, InvalidTransition, NotFoundError, NotJoined
from app.models.attendance import AttendanceSummary
from app.models.employee import Employee, EmployeeStatus
from app.models.payroll import (
    Bonuses,
    EmailResult,
    GeneratePayrollCommand,
    Payroll,
    PayrollAdjustment,
    PayrollAllowances,
    PayrollDeductions,
    PayrollFailure,
    PayrollGenerationResult,
    PayrollStatus,
    PayrollStatusUpdate,
    compute_gross_salary,
)
from app.models.settings import BonusPolicy, PayrollSettings, SystemSettings, TaxSlab
from app.repositories.base import Repositories
from app.services.attendance import AttendanceService, month_bounds, month_label
from app.services.email import EmailService
from app.services.payslip import payslip_filename, render_payslip
from app.services.settings import SettingsService
from app.services.statistics import summarize, year_to_date

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    PayrollStatus.PENDING: {PayrollStatus.PAID, PayrollStatus.CANCELLED},
    PayrollStatus.PAID: {PayrollStatus.CANCELLED},
    PayrollStatus.CANCELLED: set(),
}


def hourly_rate(basic_salary: float, expected_days: int, hours_per_day: float) -> float:
    if expected_days <= 0 or hours_per_day <= 0:
        return 0.0
    return basic_salary / (expected_days * hours_per_day)


def compute_overtime_pay(
    overtime_hours: float,
    basic_salary: float,
    expected_days: int,
    payroll_settings: PayrollSettings,
) -> float:
    rate = hourly_rate(basic_salary, expected_days, payroll_settings.default_working_hours)
    return round(overtime_hours * rate * payroll_settings.overtime_rate, 2)


def compute_lop(basic_salary: float, summary: AttendanceSummary, allowed_absent_days: float = 0) -> Tuple[float, float]:
    """Loss of pay as (days, amount). A half day costs half a day's pay.

    Working days before the joining date are unpaid and are not covered by
    the allowed absences.
    """
    absences = max(0.0, summary.absent_days + 0.5 * summary.half_days - allowed_absent_days)
    lop_days = absences + summary.not_joined_days
    if summary.total_days <= 0:
        return lop_days, 0.0
    return lop_days, round(basic_salary / summary.total_days * lop_days, 2)


def compute_income_tax(annual_income: float, slabs: List[TaxSlab]) -> float:
    """Progressive tax: each slab's rate applies only to the income inside it."""
    tax = 0.0
    for slab in sorted(slabs, key=lambda s: s.min):
        if annual_income <= slab.min:
            continue
        upper = annual_income if slab.max is None else min(annual_income, slab.max)
        tax += (upper - slab.min) * slab.rate / 100
    return tax


def compute_statutory_deductions(
    basic_salary: float,
    gross_salary: float,
    payroll_settings: PayrollSettings,
    other: float = 0.0,
) -> PayrollDeductions:
    annual_tax = compute_income_tax(gross_salary * 12, payroll_settings.tax_slabs)
    return PayrollDeductions(
        pf=round(basic_salary * payroll_settings.pf_percentage / 100, 2),
        esi=round(gross_salary * payroll_settings.esi_percentage / 100, 2),
        tax=round(annual_tax / 12, 2),
        other=other,
    )


def resolve_bonuses(employee_id: str, month: int, command: GeneratePayrollCommand, policy: BonusPolicy) -> Bonuses:
    """Explicit per-employee bonuses win over the configured policy."""
    if employee_id in command.bonuses:
        return command.bonuses[employee_id].model_copy()
    return Bonuses(
        performance=policy.performance,
        festival=policy.festival if month in policy.festival_months else 0.0,
        other=policy.other,
    )


def generate_transaction_id(now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    return f"TXN{now.strftime('%Y%m%d%H%M%S')}{uuid.uuid4().hex[:6].upper()}"


def build_payroll(
    employee: Employee,
    month: int,
    year: int,
    summary: AttendanceSummary,
    bonuses: Bonuses,
    settings: SystemSettings,
    apply_statutory: bool = False,
) -> Payroll:
    """Compute one employee's record for the period without persisting it"""
    basic = employee.salary.basic
    overtime_pay = compute_overtime_pay(summary.overtime, basic, summary.total_days, settings.payroll)
    _, lop_amount = compute_lop(basic, summary, settings.payroll.allowed_absent_days)
    allowances = PayrollAllowances(**employee.salary.allowances.model_dump())

    if apply_statutory:
        gross = compute_gross_salary(basic, allowances, bonuses, overtime_pay)
        deductions = compute_statutory_deductions(
            basic, gross, settings.payroll, other=employee.salary.deductions.other
        )
    else:
        deductions = PayrollDeductions(**employee.salary.deductions.model_dump())

    record = Payroll(
        employee_id=employee.employee_id,
        employee_name=employee.full_name,
        department=employee.department_name,
        email=str(employee.email),
        month=month,
        year=year,
        basic_salary=basic,
        allowances=allowances,
        deductions=deductions,
        bonuses=bonuses,
        attendance=summary,
        overtime_pay=overtime_pay,
        lop_amount=lop_amount,
    )
    return record.recalculate()


def apply_status_update(record: Payroll, update: PayrollStatusUpdate, now: Optional[datetime] = None) -> Payroll:
    if update.status not in ALLOWED_TRANSITIONS[record.status]:
        raise InvalidTransition(
            f"Cannot change payroll status from {record.status.value} to {update.status.value}"
        )
    now = now or datetime.utcnow()
    record.status = update.status
    if update.status == PayrollStatus.PAID:
        record.payment_date = update.payment_date or now
        if update.payment_method:
            record.payment_method = update.payment_method
        record.transaction_id = update.transaction_id or record.transaction_id or generate_transaction_id(now)
    if update.remarks:
        record.remarks = update.remarks
    return record.recalculate()


class PayrollEngine:
    """Generates a period's payroll records for the active workforce"""

    def __init__(self, repositories: Repositories, settings_service: SettingsService):
        self.repositories = repositories
        self.settings_service = settings_service
        self.attendance = AttendanceService(repositories, settings_service)

    async def generate(self, command: GeneratePayrollCommand) -> PayrollGenerationResult:
        settings = await self.settings_service.get()
        result = PayrollGenerationResult(
            month=command.month,
            year=command.year,
            month_name=month_label(command.month, command.year),
        )

        for employee in await self._select_employees(command, result):
            try:
                record = await self._generate_one(employee, command, settings)
            except AppError as exc:
                logger.warning("Payroll skipped for %s: %s", employee.employee_id, exc.message)
                result.failures.append(
                    PayrollFailure(employee_id=employee.employee_id, kind=exc.kind, message=exc.message)
                )
                continue
            except Exception as exc:
                logger.exception("Payroll generation failed for %s", employee.employee_id)
                result.failures.append(
                    PayrollFailure(employee_id=employee.employee_id, kind="error", message=str(exc))
                )
                continue
            result.generated.append(record)

        logger.info(
            "Payroll %s: %d generated, %d failed",
            result.month_name, len(result.generated), len(result.failures),
        )
        return result

    async def _select_employees(
        self, command: GeneratePayrollCommand, result: PayrollGenerationResult
    ) -> List[Employee]:
        if not command.employee_ids:
            return await self.repositories.employees.list(status=EmployeeStatus.ACTIVE)

        employees = []
        for employee_id in command.employee_ids:
            employee = await self.repositories.employees.get(employee_id)
            if employee is None:
                logger.warning("Payroll requested for unknown employee %s", employee_id)
                result.failures.append(
                    PayrollFailure(employee_id=employee_id, kind="not_found", message=f"Employee {employee_id} not found")
                )
            elif not employee.is_active:
                result.failures.append(
                    PayrollFailure(
                        employee_id=employee_id,
                        kind="inactive",
                        message=f"Employee {employee_id} is {employee.status.value}",
                    )
                )
            else:
                employees.append(employee)
        return employees

    async def _generate_one(
        self, employee: Employee, command: GeneratePayrollCommand, settings: SystemSettings
    ) -> Payroll:
        _, period_end = month_bounds(command.month, command.year)
        if employee.joining_date >= period_end:
            raise NotJoined(
                f"Employee {employee.employee_id} joins on {employee.joining_date.date()}, "
                f"after {month_label(command.month, command.year)}"
            )
        existing = await self.repositories.payroll.find_for_period(employee.employee_id, command.month, command.year)
        if existing and not command.force:
            raise DuplicatePeriod(
                f"Payroll already generated for {employee.employee_id} for {month_label(command.month, command.year)}"
            )
        if existing and existing.status != PayrollStatus.PENDING:
            raise DuplicatePeriod(
                f"Payroll for {employee.employee_id} is {existing.status.value} and cannot be regenerated"
            )

        summary = await self.attendance.summarize_month(employee, command.month, command.year, settings)
        bonuses = resolve_bonuses(employee.employee_id, command.month, command, settings.payroll.bonus_policy)
        record = build_payroll(
            employee, command.month, command.year, summary, bonuses, settings, command.apply_statutory
        )

        if existing:
            record.payroll_id = existing.payroll_id
            record.created_at = existing.created_at
            await self.repositories.payroll.update(record)
        else:
            await self.repositories.payroll.create(record)
        return record


class PayrollService:
    """Queries and lifecycle operations on stored payroll records"""

    def __init__(
        self,
        repositories: Repositories,
        settings_service: SettingsService,
        email_service: Optional[EmailService] = None,
    ):
        self.repositories = repositories
        self.settings_service = settings_service
        self.email_service = email_service or EmailService()
        self.engine = PayrollEngine(repositories, settings_service)

    async def generate(self, command: GeneratePayrollCommand) -> PayrollGenerationResult:
        return await self.engine.generate(command)

    async def get(self, payroll_id: str) -> Payroll:
        record = await self.repositories.payroll.get(payroll_id)
        if not record:
            raise NotFoundError("Payroll", payroll_id)
        return record

    async def list(
        self,
        month: Optional[int] = None,
        year: Optional[int] = None,
        status: Optional[PayrollStatus] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Payroll]:
        records = await self.repositories.payroll.list(month=month, year=year, status=status, department=department)
        if search:
            needle = search.lower()
            records = [
                r for r in records
                if needle in r.employee_name.lower() or needle in r.employee_id.lower()
            ]
        return records

    async def monthly(self, month: int, year: int) -> Dict:
        records = await self.repositories.payroll.list(month=month, year=year)
        return {
            "month": month,
            "year": year,
            "month_name": month_label(month, year),
            "payroll": records,
            "summary": summarize(records),
        }

    async def employee_history(self, employee_id: str, year: Optional[int] = None) -> Dict:
        employee = await self.repositories.employees.get(employee_id)
        if not employee:
            raise NotFoundError("Employee", employee_id)
        year = year or datetime.utcnow().year
        records = await self.repositories.payroll.list(employee_id=employee_id, year=year)
        return {
            "employee": employee,
            "year": year,
            "payroll": records,
            "ytd_summary": year_to_date(records, employee_id, year),
        }

    async def update_status(self, payroll_id: str, update: PayrollStatusUpdate) -> Payroll:
        record = await self.get(payroll_id)
        previous = record.status
        apply_status_update(record, update)
        await self.repositories.payroll.update(record)
        logger.info("Payroll %s status %s -> %s", payroll_id, previous.value, record.status.value)
        return record

    async def adjust(self, payroll_id: str, adjustment: PayrollAdjustment) -> Payroll:
        record = await self.get(payroll_id)
        if record.status != PayrollStatus.PENDING:
            raise ConflictError(
                f"Only pending payroll can be adjusted; {payroll_id} is {record.status.value}",
                kind="not_editable",
            )
        if adjustment.bonuses:
            record.bonuses = adjustment.bonuses
        if adjustment.deductions:
            record.deductions = adjustment.deductions
        if adjustment.remarks is not None:
            record.remarks = adjustment.remarks
        record.recalculate()
        await self.repositories.payroll.update(record)
        return record

    async def delete(self, payroll_id: str) -> None:
        await self.get(payroll_id)
        await self.repositories.payroll.delete(payroll_id)

    async def payslip(self, payroll_id: str) -> Tuple[str, bytes]:
        """Render the payslip PDF; returns (filename, content)"""
        record = await self.get(payroll_id)
        settings = await self.settings_service.get()
        content = render_payslip(record, settings.company, settings.customization)
        if not record.payslip_generated:
            record.payslip_generated = True
            await self.repositories.payroll.update(record)
        return payslip_filename(record), content

    async def send_payslip(self, payroll_id: str) -> EmailResult:
        record = await self.get(payroll_id)
        settings = await self.settings_service.get()

        if not settings.notifications.payslip_email:
            return EmailResult(
                payroll_id=payroll_id, sent=False, kind="disabled", message="Payslip emails are turned off"
            )

        recipient = record.email
        if not recipient:
            employee = await self.repositories.employees.get(record.employee_id)
            recipient = str(employee.email) if employee else None
        if not recipient:
            return EmailResult(
                payroll_id=payroll_id, sent=False, kind="no_recipient", message="Employee has no email address"
            )

        content = render_payslip(record, settings.company, settings.customization)
        delivered = await self.email_service.send_payslip(
            recipient, record, content, payslip_filename(record), company_name=settings.company.name
        )
        if not delivered:
            logger.warning("Payslip email for %s to %s failed", payroll_id, recipient)
            return EmailResult(
                payroll_id=payroll_id, sent=False, kind="email_failed", message=f"Could not deliver to {recipient}"
            )

        record.payslip_generated = True
        record.email_sent = True
        record.email_sent_at = datetime.utcnow()
        await self.repositories.payroll.update(record)
        return EmailResult(payroll_id=payroll_id, sent=True, kind="sent", message=f"Payslip sent to {recipient}")
