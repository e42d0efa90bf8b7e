"""
Payroll Model
Schema for monthly payroll records and the commands that act on them
"""
import calendar
import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, computed_field

from app.models.attendance import AttendanceSummary, UtcDatetime


class PayrollStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    CANCELLED = "Cancelled"


class PaymentMethod(str, Enum):
    BANK_TRANSFER = "Bank Transfer"
    CASH = "Cash"
    CHECK = "Check"


class PayrollAllowances(BaseModel):
    hra: float = 0.0
    da: float = 0.0
    ta: float = 0.0
    medical: float = 0.0
    other: float = 0.0


class PayrollDeductions(BaseModel):
    """Deductions applied to the period. ``lop`` is a manual adjustment;
    attendance-derived loss of pay is carried in ``Payroll.lop_amount``."""
    pf: float = 0.0
    esi: float = 0.0
    tax: float = 0.0
    lop: float = 0.0
    other: float = 0.0


class Bonuses(BaseModel):
    performance: float = Field(0.0, ge=0)
    festival: float = Field(0.0, ge=0)
    other: float = Field(0.0, ge=0)


def component_total(component: BaseModel) -> float:
    return sum(component.model_dump().values())


def compute_gross_salary(
    basic_salary: float,
    allowances: PayrollAllowances,
    bonuses: Bonuses,
    overtime_pay: float,
) -> float:
    """basic + allowances + bonuses + overtime pay"""
    return round(basic_salary + component_total(allowances) + component_total(bonuses) + overtime_pay, 2)


def compute_net_salary(gross_salary: float, deductions: PayrollDeductions, lop_amount: float) -> float:
    """gross − (deductions + loss of pay)"""
    return round(gross_salary - (component_total(deductions) + lop_amount), 2)


class Payroll(BaseModel):
    """Payroll record, one per employee per month"""

    payroll_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    employee_id: str
    employee_name: str = ""
    department: Optional[str] = None
    email: Optional[str] = None

    month: int = Field(..., ge=1, le=12)
    year: int

    basic_salary: float = Field(..., ge=0)
    allowances: PayrollAllowances = Field(default_factory=PayrollAllowances)
    deductions: PayrollDeductions = Field(default_factory=PayrollDeductions)
    bonuses: Bonuses = Field(default_factory=Bonuses)
    attendance: AttendanceSummary = Field(default_factory=AttendanceSummary)

    overtime_pay: float = 0.0
    lop_amount: float = 0.0
    gross_salary: float = 0.0
    net_salary: float = 0.0

    status: PayrollStatus = PayrollStatus.PENDING
    payment_date: Optional[UtcDatetime] = None
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    transaction_id: Optional[str] = None
    remarks: Optional[str] = None

    payslip_generated: bool = False
    email_sent: bool = False
    email_sent_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @computed_field
    @property
    def total_allowances(self) -> float:
        return component_total(self.allowances)

    @computed_field
    @property
    def total_deductions(self) -> float:
        return component_total(self.deductions)

    @computed_field
    @property
    def total_bonuses(self) -> float:
        return component_total(self.bonuses)

    @computed_field
    @property
    def month_name(self) -> str:
        return calendar.month_name[self.month]

    def recalculate(self) -> "Payroll":
        """Refresh gross and net salary; call after every change to the amounts."""
        self.gross_salary = compute_gross_salary(self.basic_salary, self.allowances, self.bonuses, self.overtime_pay)
        self.net_salary = compute_net_salary(self.gross_salary, self.deductions, self.lop_amount)
        self.updated_at = datetime.utcnow()
        return self


class GeneratePayrollCommand(BaseModel):
    """Request to generate payroll for a period"""
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2020, le=2030)
    force: bool = False
    employee_ids: Optional[List[str]] = None
    bonuses: Dict[str, Bonuses] = {}
    apply_statutory: bool = False


class PayrollStatusUpdate(BaseModel):
    status: PayrollStatus
    payment_date: Optional[UtcDatetime] = None
    payment_method: Optional[PaymentMethod] = None
    transaction_id: Optional[str] = None
    remarks: Optional[str] = None


class PayrollAdjustment(BaseModel):
    """Manual changes to a pending record"""
    bonuses: Optional[Bonuses] = None
    deductions: Optional[PayrollDeductions] = None
    remarks: Optional[str] = None


class PayrollFailure(BaseModel):
    employee_id: str
    kind: str
    message: str


class PayrollGenerationResult(BaseModel):
    month: int
    year: int
    month_name: str
    generated: List[Payroll] = []
    failures: List[PayrollFailure] = []

    @computed_field
    @property
    def total_employees(self) -> int:
        return len(self.generated)


class PayrollSummary(BaseModel):
    total_employees: int = 0
    total_gross_salary: float = 0.0
    total_net_salary: float = 0.0
    total_allowances: float = 0.0
    total_deductions: float = 0.0
    total_bonuses: float = 0.0
    total_overtime_pay: float = 0.0
    total_lop_amount: float = 0.0
    paid_count: int = 0
    pending_count: int = 0


class YearToDateSummary(BaseModel):
    employee_id: str
    year: int
    total_gross_salary: float = 0.0
    total_net_salary: float = 0.0
    total_allowances: float = 0.0
    total_deductions: float = 0.0
    total_bonuses: float = 0.0
    total_overtime_pay: float = 0.0
    total_lop_amount: float = 0.0
    months_paid: int = 0


class EmailResult(BaseModel):
    payroll_id: str
    sent: bool
    kind: str
    message: str
