"""
Expense Model
Revenue and expense ledger entries
"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from app.models.attendance import UtcDatetime


class EntryType(str, Enum):
    EXPENSE = "Expense"
    REVENUE = "Revenue"


class ExpenseCategory(str, Enum):
    OFFICE_SUPPLIES = "Office Supplies"
    UTILITIES = "Utilities"
    RENT = "Rent"
    SALARIES = "Salaries"
    MARKETING = "Marketing"
    TRAVEL = "Travel"
    EQUIPMENT = "Equipment"
    SOFTWARE = "Software"
    INSURANCE = "Insurance"
    LEGAL = "Legal"
    TAXES = "Taxes"
    MAINTENANCE = "Maintenance"
    FOOD_BEVERAGES = "Food & Beverages"
    TRANSPORTATION = "Transportation"
    TRAINING = "Training"
    OTHER = "Other"


class ExpensePaymentMethod(str, Enum):
    CASH = "Cash"
    BANK_TRANSFER = "Bank Transfer"
    CREDIT_CARD = "Credit Card"
    CHECK = "Check"
    ONLINE_PAYMENT = "Online Payment"


class ExpenseStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    CANCELLED = "Cancelled"


class RecurrenceFrequency(str, Enum):
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    YEARLY = "Yearly"


class Vendor(BaseModel):
    name: Optional[str] = None
    contact: Optional[str] = None
    email: Optional[str] = None


class Receipt(BaseModel):
    filename: str
    original_name: Optional[str] = None
    upload_date: datetime = Field(default_factory=datetime.utcnow)


class Recurrence(BaseModel):
    is_recurring: bool = False
    frequency: RecurrenceFrequency = RecurrenceFrequency.MONTHLY
    next_due_date: Optional[UtcDatetime] = None


class Expense(BaseModel):
    """Ledger entry"""
    expense_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    amount: float = Field(..., ge=0)
    type: EntryType
    category: ExpenseCategory
    vendor: Vendor = Field(default_factory=Vendor)
    date: UtcDatetime = Field(default_factory=datetime.utcnow)
    payment_method: ExpensePaymentMethod = ExpensePaymentMethod.BANK_TRANSFER
    status: ExpenseStatus = ExpenseStatus.PAID
    receipt: Optional[Receipt] = None
    tags: List[str] = []
    recurring: Recurrence = Field(default_factory=Recurrence)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ExpenseCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    amount: float = Field(..., ge=0)
    type: EntryType
    category: ExpenseCategory
    vendor: Optional[Vendor] = None
    date: Optional[UtcDatetime] = None
    payment_method: ExpensePaymentMethod = ExpensePaymentMethod.BANK_TRANSFER
    status: ExpenseStatus = ExpenseStatus.PAID
    receipt: Optional[Receipt] = None
    tags: List[str] = []
    recurring: Optional[Recurrence] = None


class ExpenseUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[float] = Field(None, ge=0)
    type: Optional[EntryType] = None
    category: Optional[ExpenseCategory] = None
    vendor: Optional[Vendor] = None
    date: Optional[UtcDatetime] = None
    payment_method: Optional[ExpensePaymentMethod] = None
    status: Optional[ExpenseStatus] = None
    receipt: Optional[Receipt] = None
    tags: Optional[List[str]] = None
    recurring: Optional[Recurrence] = None


class CategoryTotal(BaseModel):
    category: str
    total_amount: float
    count: int


class ProfitLoss(BaseModel):
    total_revenue: float = 0.0
    total_expenses: float = 0.0
    net_profit: float = 0.0
    revenue_count: int = 0
    expense_count: int = 0


class MonthlyTotals(BaseModel):
    month: int
    revenue: float = 0.0
    expenses: float = 0.0
    net: float = 0.0


class YearlySummary(BaseModel):
    year: int
    months: List[MonthlyTotals] = []
    totals: ProfitLoss = Field(default_factory=ProfitLoss)
    by_category: Dict[str, float] = {}
