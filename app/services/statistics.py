"""
Payroll Statistics
Pure reductions over payroll records for dashboards, reports and YTD views
"""
from typing import Iterable

from app.models.payroll import Payroll, PayrollStatus, PayrollSummary, YearToDateSummary


def summarize(records: Iterable[Payroll]) -> PayrollSummary:
    summary = PayrollSummary()
    for record in records:
        summary.total_employees += 1
        summary.total_gross_salary += record.gross_salary
        summary.total_net_salary += record.net_salary
        summary.total_allowances += record.total_allowances
        summary.total_deductions += record.total_deductions
        summary.total_bonuses += record.total_bonuses
        summary.total_overtime_pay += record.overtime_pay
        summary.total_lop_amount += record.lop_amount
        if record.status == PayrollStatus.PAID:
            summary.paid_count += 1
        elif record.status == PayrollStatus.PENDING:
            summary.pending_count += 1
    return summary


def year_to_date(records: Iterable[Payroll], employee_id: str, year: int) -> YearToDateSummary:
    """Cumulative totals of one employee's processed periods within a calendar year"""
    ytd = YearToDateSummary(employee_id=employee_id, year=year)
    for record in records:
        if record.employee_id != employee_id or record.year != year:
            continue
        if record.status == PayrollStatus.CANCELLED:
            continue
        ytd.total_gross_salary += record.gross_salary
        ytd.total_net_salary += record.net_salary
        ytd.total_allowances += record.total_allowances
        ytd.total_deductions += record.total_deductions
        ytd.total_bonuses += record.total_bonuses
        ytd.total_overtime_pay += record.overtime_pay
        ytd.total_lop_amount += record.lop_amount
        ytd.months_paid += 1
    return ytd
