"""
Payslip Renderer
Builds the PDF payslip for a payroll record with ReportLab
"""
import io
from datetime import datetime
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.models.payroll import Payroll
from app.models.settings import CompanyProfile, Customization, DateFormat

DATE_FORMATS = {
    DateFormat.DMY_SLASH: "%d/%m/%Y",
    DateFormat.MDY_SLASH: "%m/%d/%Y",
    DateFormat.ISO: "%Y-%m-%d",
    DateFormat.DMY_DASH: "%d-%m-%Y",
}

HEADER_COLOR = colors.HexColor("#366092")


def payslip_filename(record: Payroll) -> str:
    return f"payslip-{record.employee_id}-{record.month}-{record.year}.pdf"


def format_amount(amount: float, currency: str) -> str:
    return f"{currency} {amount:,.2f}"


def format_date(value: Optional[datetime], date_format: DateFormat) -> str:
    if value is None:
        return "-"
    return value.strftime(DATE_FORMATS[date_format])


def _section(title: str, rows: List[List[str]]) -> List:
    table = Table([[title, ""]] + rows, colWidths=[95 * mm, 75 * mm])
    table.setStyle(
        TableStyle(
            [
                ("SPAN", (0, 0), (-1, 0)),
                ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("ALIGN", (1, 1), (1, -1), "RIGHT"),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    return [table, Spacer(1, 6 * mm)]


def render_payslip(
    record: Payroll,
    company: Optional[CompanyProfile] = None,
    customization: Optional[Customization] = None,
) -> bytes:
    """Render the payslip and return the PDF document as bytes"""
    company = company or CompanyProfile()
    customization = customization or Customization()
    currency = customization.currency.value

    def money(amount: float) -> str:
        return format_amount(amount, currency)

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        title=f"Payslip {record.employee_id} {record.month_name} {record.year}",
        leftMargin=20 * mm,
        rightMargin=20 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
    )
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("PayslipTitle", parent=styles["Heading1"], fontSize=16, alignment=1)
    centered = ParagraphStyle("Centered", parent=styles["Normal"], alignment=1, fontSize=9)

    elements = [
        Paragraph(escape(company.name), title_style),
        Paragraph(escape(company.address), centered),
        Paragraph(escape(f"{company.phone} | {company.email} | {company.website}"), centered),
        Spacer(1, 4 * mm),
        Paragraph(f"Payslip for {record.month_name} {record.year}", styles["Heading2"]),
        Spacer(1, 4 * mm),
    ]

    elements += _section(
        "Employee Details",
        [
            ["Employee ID", record.employee_id],
            ["Name", record.employee_name],
            ["Department", record.department or "-"],
            ["Email", record.email or "-"],
        ],
    )

    earnings = [
        ["Basic Salary", money(record.basic_salary)],
        ["HRA", money(record.allowances.hra)],
        ["DA", money(record.allowances.da)],
        ["TA", money(record.allowances.ta)],
        ["Medical", money(record.allowances.medical)],
        ["Other Allowances", money(record.allowances.other)],
    ]
    bonuses = [
        ["Performance Bonus", record.bonuses.performance],
        ["Festival Bonus", record.bonuses.festival],
        ["Other Bonus", record.bonuses.other],
        ["Overtime Pay", record.overtime_pay],
    ]
    earnings += [[label, money(amount)] for label, amount in bonuses if amount]
    elements += _section("Earnings", earnings)

    deductions = [
        ["Provident Fund", money(record.deductions.pf)],
        ["ESI", money(record.deductions.esi)],
        ["Income Tax", money(record.deductions.tax)],
        ["Other Deductions", money(record.deductions.other)],
    ]
    if record.deductions.lop:
        deductions.append(["LOP Adjustment", money(record.deductions.lop)])
    if record.lop_amount:
        deductions.append(["Loss of Pay", money(record.lop_amount)])
    elements += _section("Deductions", deductions)

    elements += _section(
        "Salary Summary",
        [
            ["Gross Salary", money(record.gross_salary)],
            ["Total Deductions", money(record.total_deductions + record.lop_amount)],
            ["Net Salary", money(record.net_salary)],
        ],
    )

    summary = record.attendance
    attendance = [
        ["Working Days", str(summary.total_days)],
        ["Present Days", str(summary.present_days)],
        ["Absent Days", str(summary.absent_days)],
        ["Half Days", str(summary.half_days)],
        ["Leave Days", str(summary.leave_days)],
        ["Overtime Hours", f"{summary.overtime:.2f}"],
    ]
    if summary.not_joined_days:
        attendance.insert(1, ["Days Before Joining", str(summary.not_joined_days)])
    elements += _section("Attendance Summary", attendance)

    elements += _section(
        "Payment Details",
        [
            ["Status", record.status.value],
            ["Payment Method", record.payment_method.value],
            ["Payment Date", format_date(record.payment_date, customization.date_format)],
            ["Transaction ID", record.transaction_id or "-"],
        ],
    )

    generated = format_date(datetime.utcnow(), customization.date_format)
    elements.append(
        Paragraph(f"This is a computer generated payslip and does not require a signature. Generated on {generated}.", centered)
    )

    doc.build(elements)
    return buffer.getvalue()
