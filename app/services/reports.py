"""
Report Service
Aggregated HR and finance reports, and their Excel exports
"""
import io
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from app.models.attendance import Attendance, AttendanceStatus, day_start
from app.models.employee import Employee, EmployeeStatus
from app.models.expense import EntryType, Expense, ExpenseCategory
from app.models.payroll import Payroll, PayrollStatus
from app.repositories.base import Repositories
from app.services.attendance import month_bounds
from app.services.finance import category_summary, profit_loss
from app.services.statistics import summarize

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

Column = Tuple[str, int]

EMPLOYEE_COLUMNS: List[Column] = [
    ("Employee ID", 15),
    ("First Name", 15),
    ("Last Name", 15),
    ("Email", 25),
    ("Phone", 15),
    ("Role", 15),
    ("Department", 15),
    ("Status", 10),
    ("Joining Date", 15),
    ("Basic Salary", 15),
    ("Total Salary", 15),
]

PAYROLL_COLUMNS: List[Column] = [
    ("Employee ID", 15),
    ("Name", 25),
    ("Month", 10),
    ("Year", 10),
    ("Basic Salary", 15),
    ("Total Allowances", 15),
    ("Total Deductions", 15),
    ("Total Bonuses", 15),
    ("Overtime Pay", 15),
    ("LOP Amount", 15),
    ("Gross Salary", 15),
    ("Net Salary", 15),
    ("Status", 10),
    ("Present Days", 15),
    ("Absent Days", 15),
]

EXPENSE_COLUMNS: List[Column] = [
    ("Title", 30),
    ("Description", 40),
    ("Amount", 15),
    ("Type", 10),
    ("Category", 20),
    ("Vendor", 25),
    ("Date", 15),
    ("Payment Method", 15),
    ("Status", 10),
]

ATTENDANCE_COLUMNS: List[Column] = [
    ("Employee ID", 15),
    ("Name", 25),
    ("Department", 15),
    ("Date", 15),
    ("Status", 15),
    ("Check In", 15),
    ("Check Out", 15),
    ("Working Hours", 15),
    ("Overtime Hours", 15),
    ("Is Late", 10),
    ("Notes", 30),
]


def _date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def _clock(value: Optional[datetime]) -> str:
    return value.strftime("%H:%M") if value else ""


def employee_row(employee: Employee) -> List[Any]:
    return [
        employee.employee_id,
        employee.first_name,
        employee.last_name,
        str(employee.email),
        employee.phone,
        employee.role.value if employee.role else "",
        employee.department_name or "",
        employee.status.value,
        _date(employee.joining_date),
        employee.salary.basic,
        employee.total_salary,
    ]


def payroll_row(record: Payroll) -> List[Any]:
    return [
        record.employee_id,
        record.employee_name,
        record.month_name,
        record.year,
        record.basic_salary,
        record.total_allowances,
        record.total_deductions,
        record.total_bonuses,
        record.overtime_pay,
        record.lop_amount,
        record.gross_salary,
        record.net_salary,
        record.status.value,
        record.attendance.present_days,
        record.attendance.absent_days,
    ]


def expense_row(entry: Expense) -> List[Any]:
    return [
        entry.title,
        entry.description or "",
        entry.amount,
        entry.type.value,
        entry.category.value,
        entry.vendor.name or "",
        _date(entry.date),
        entry.payment_method.value,
        entry.status.value,
    ]


def attendance_row(record: Attendance, employee: Optional[Employee]) -> List[Any]:
    return [
        record.employee_id,
        employee.full_name if employee else "",
        (employee.department_name or "") if employee else "",
        _date(record.date),
        record.status.value,
        _clock(record.check_in.time),
        _clock(record.check_out.time),
        round(record.working_hours, 2),
        round(record.overtime, 2),
        "Yes" if record.is_late else "No",
        record.remarks or "",
    ]


def write_sheet(ws: Worksheet, title: str, columns: Sequence[Column], rows: Sequence[Sequence[Any]]) -> None:
    """Title row, styled header on row 3, data from row 4"""
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
    center_alignment = Alignment(horizontal="center", vertical="center")

    ws["A1"] = title
    ws["A1"].font = Font(bold=True, size=14)
    ws["A2"] = f"Generated: {datetime.utcnow().strftime('%Y-%m-%d %H:%M:%S')}"

    for col, (header, width) in enumerate(columns, 1):
        cell = ws.cell(row=3, column=col, value=header)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = center_alignment
        ws.column_dimensions[get_column_letter(col)].width = width

    for row_idx, row in enumerate(rows, 4):
        for col_idx, value in enumerate(row, 1):
            ws.cell(row=row_idx, column=col_idx, value=value)


def workbook_bytes(wb: Workbook) -> bytes:
    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()


def single_sheet(sheet_name: str, title: str, columns: Sequence[Column], rows: Sequence[Sequence[Any]]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    write_sheet(ws, title, columns, rows)
    return workbook_bytes(wb)


class ReportService:
    """Read-only reports over all aggregates"""

    def __init__(self, repositories: Repositories):
        self.repositories = repositories

    async def _employees_by_id(self) -> Dict[str, Employee]:
        return {e.employee_id: e for e in await self.repositories.employees.list()}

    async def _payroll_in_range(
        self,
        start: Optional[datetime],
        end: Optional[datetime],
        status: Optional[PayrollStatus] = None,
        department: Optional[str] = None,
    ) -> List[Payroll]:
        """Records whose pay period overlaps [start, end)"""
        records = await self.repositories.payroll.list(status=status, department=department)
        return [
            r for r in records
            if (not start or datetime(r.year, r.month, 1) >= datetime(start.year, start.month, 1))
            and (not end or datetime(r.year, r.month, 1) < end)
        ]

    async def employee_report(
        self,
        department: Optional[str] = None,
        status: Optional[EmployeeStatus] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        employees = await self.repositories.employees.list(status=status, department=department)
        if start:
            employees = [e for e in employees if e.joining_date >= start]
        if end:
            employees = [e for e in employees if e.joining_date < end]
        thirty_days_ago = datetime.utcnow() - timedelta(days=30)
        average = sum(e.salary.basic for e in employees) / len(employees) if employees else 0.0
        return {
            "total_employees": len(employees),
            "active_employees": sum(1 for e in employees if e.is_active),
            "new_hires": sum(1 for e in employees if e.joining_date >= thirty_days_ago),
            "average_basic_salary": round(average, 2),
            "employees": employees,
        }

    async def payroll_report(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[PayrollStatus] = None,
        department: Optional[str] = None,
    ) -> Dict[str, Any]:
        records = await self._payroll_in_range(start, end, status, department)
        return {
            "summary": summarize(records),
            "paid_amount": round(sum(r.net_salary for r in records if r.status == PayrollStatus.PAID), 2),
            "pending_amount": round(sum(r.net_salary for r in records if r.status == PayrollStatus.PENDING), 2),
            "payroll": records,
        }

    async def attendance_report(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        employee_id: Optional[str] = None,
        status: Optional[AttendanceStatus] = None,
    ) -> Dict[str, Any]:
        records = await self.repositories.attendance.list(employee_id=employee_id, start=start, end=end, status=status)
        hours = sum(r.working_hours for r in records)
        return {
            "total_records": len(records),
            "present_count": sum(1 for r in records if r.status == AttendanceStatus.PRESENT),
            "absent_count": sum(1 for r in records if r.status == AttendanceStatus.ABSENT),
            "half_day_count": sum(1 for r in records if r.status == AttendanceStatus.HALF_DAY),
            "leave_count": sum(1 for r in records if r.status == AttendanceStatus.LEAVE),
            "late_count": sum(1 for r in records if r.is_late),
            "total_working_hours": round(hours, 2),
            "total_overtime": round(sum(r.overtime for r in records), 2),
            "attendance": records,
        }

    async def expense_report(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        type: Optional[EntryType] = None,
        category: Optional[ExpenseCategory] = None,
    ) -> Dict[str, Any]:
        entries = await self.repositories.expenses.list(type=type, category=category, start=start, end=end)
        return {
            "summary": profit_loss(entries),
            "expense_breakdown": category_summary(entries, EntryType.EXPENSE),
            "revenue_breakdown": category_summary(entries, EntryType.REVENUE),
            "expenses": entries,
        }

    async def financial_report(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Dict[str, Any]:
        entries = await self.repositories.expenses.list(start=start, end=end)
        records = await self._payroll_in_range(start, end)
        ledger = profit_loss(entries)
        payroll_expenses = round(
            sum(r.net_salary for r in records if r.status != PayrollStatus.CANCELLED), 2
        )
        return {
            "total_revenue": ledger.total_revenue,
            "total_expenses": ledger.total_expenses,
            "net_profit": ledger.net_profit,
            "payroll_expenses": payroll_expenses,
            "net_after_payroll": round(ledger.net_profit - payroll_expenses, 2),
            "financial_summary": {
                "revenue": {c.category: c.total_amount for c in category_summary(entries, EntryType.REVENUE)},
                "expenses": {c.category: c.total_amount for c in category_summary(entries, EntryType.EXPENSE)},
            },
        }

    async def dashboard(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        today = day_start(now)
        month_start, month_end = month_bounds(now.month, now.year)

        employees = await self.repositories.employees.list()
        attendance = await self.repositories.attendance.list(start=today, end=today + timedelta(days=1))
        payroll = await self.repositories.payroll.list(month=now.month, year=now.year)
        entries = await self.repositories.expenses.list(start=month_start, end=month_end)
        ledger = profit_loss(entries)

        return {
            "employee_stats": {
                "total_employees": len(employees),
                "active_employees": sum(1 for e in employees if e.is_active),
                "total_salary": round(sum(e.salary.basic for e in employees), 2),
            },
            "today_attendance": {
                "present_count": sum(1 for r in attendance if r.status == AttendanceStatus.PRESENT),
                "absent_count": sum(1 for r in attendance if r.status == AttendanceStatus.ABSENT),
                "late_count": sum(1 for r in attendance if r.is_late),
            },
            "current_month_payroll": {
                "total_payroll": round(sum(r.net_salary for r in payroll), 2),
                "paid_employees": sum(1 for r in payroll if r.status == PayrollStatus.PAID),
                "pending_employees": sum(1 for r in payroll if r.status == PayrollStatus.PENDING),
            },
            "current_month_expenses": {
                "expenses": ledger.total_expenses,
                "revenue": ledger.total_revenue,
            },
            "recent_activities": {
                "employees": sorted(employees, key=lambda e: e.created_at, reverse=True)[:5],
                "expenses": sorted(entries, key=lambda e: e.created_at, reverse=True)[:5],
            },
        }

    async def export_employees(self, department: Optional[str] = None, status: Optional[EmployeeStatus] = None) -> bytes:
        employees = await self.repositories.employees.list(status=status, department=department)
        return single_sheet("Employees", "Employee Report", EMPLOYEE_COLUMNS, [employee_row(e) for e in employees])

    async def export_payroll(self, month: Optional[int] = None, year: Optional[int] = None) -> bytes:
        records = await self.repositories.payroll.list(month=month, year=year)
        return single_sheet("Payroll", "Payroll Report", PAYROLL_COLUMNS, [payroll_row(r) for r in records])

    async def export_expenses(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> bytes:
        entries = await self.repositories.expenses.list(start=start, end=end)
        return single_sheet("Expenses", "Expense Report", EXPENSE_COLUMNS, [expense_row(e) for e in entries])

    async def export_attendance(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> bytes:
        records = await self.repositories.attendance.list(start=start, end=end)
        employees = await self._employees_by_id()
        rows = [attendance_row(r, employees.get(r.employee_id)) for r in records]
        return single_sheet("Attendance", "Attendance Report", ATTENDANCE_COLUMNS, rows)

    async def export_financial(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> bytes:
        """Workbook with summary, ledger and payroll sheets"""
        report = await self.financial_report(start, end)
        entries = await self.repositories.expenses.list(start=start, end=end)
        records = await self._payroll_in_range(start, end)

        wb = Workbook()
        summary = wb.active
        summary.title = "Summary"
        write_sheet(
            summary,
            "Financial Summary",
            [("Metric", 25), ("Amount", 18)],
            [
                ["Total Revenue", report["total_revenue"]],
                ["Total Expenses", report["total_expenses"]],
                ["Net Profit", report["net_profit"]],
                ["Payroll Expenses", report["payroll_expenses"]],
                ["Net After Payroll", report["net_after_payroll"]],
            ],
        )
        write_sheet(wb.create_sheet("Ledger"), "Revenue and Expenses", EXPENSE_COLUMNS, [expense_row(e) for e in entries])
        write_sheet(wb.create_sheet("Payroll"), "Payroll", PAYROLL_COLUMNS, [payroll_row(r) for r in records])
        logger.info("Financial workbook exported with %d ledger and %d payroll rows", len(entries), len(records))
        return workbook_bytes(wb)
