"""
System Settings Model
Singleton business configuration: company profile, payroll parameters,
attendance thresholds and notification toggles
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from app.models.attendance import UtcDatetime

SETTINGS_KEY = "default"


class TaxSlab(BaseModel):
    """Annual income band; ``max`` of None means unbounded"""
    min: float = Field(..., ge=0)
    max: Optional[float] = None
    rate: float = Field(..., ge=0, le=100)


class Holiday(BaseModel):
    date: UtcDatetime
    name: str


class CompanyProfile(BaseModel):
    name: str = "Payroll Management System"
    address: str = "123 Business Street, City, State 12345"
    phone: str = "+1-555-123-4567"
    email: str = "admin@company.com"
    website: str = "www.company.com"
    logo: Optional[str] = None


class BonusPolicy(BaseModel):
    """Flat monthly bonus amounts; festival bonus only in festival months"""
    performance: float = Field(0.0, ge=0)
    festival: float = Field(0.0, ge=0)
    other: float = Field(0.0, ge=0)
    festival_months: List[int] = []

    @field_validator("festival_months")
    @classmethod
    def validate_months(cls, value: List[int]) -> List[int]:
        for month in value:
            if not 1 <= month <= 12:
                raise ValueError(f"invalid festival month {month}")
        return value


def default_tax_slabs() -> List[TaxSlab]:
    return [
        TaxSlab(min=0, max=250000, rate=0),
        TaxSlab(min=250000, max=500000, rate=5),
        TaxSlab(min=500000, max=1000000, rate=20),
        TaxSlab(min=1000000, max=None, rate=30),
    ]


class PayrollSettings(BaseModel):
    default_working_hours: float = Field(8, ge=1, le=24)
    overtime_rate: float = Field(1.5, ge=1, le=3)
    pf_percentage: float = Field(12, ge=0, le=100)
    esi_percentage: float = Field(1.75, ge=0, le=100)
    allowed_absent_days: float = Field(0, ge=0)
    tax_slabs: List[TaxSlab] = Field(default_factory=default_tax_slabs)
    bonus_policy: BonusPolicy = Field(default_factory=BonusPolicy)


def default_holidays() -> List[Holiday]:
    return [
        Holiday(date=datetime(2024, 1, 26), name="Republic Day"),
        Holiday(date=datetime(2024, 8, 15), name="Independence Day"),
        Holiday(date=datetime(2024, 10, 2), name="Gandhi Jayanti"),
    ]


class AttendanceSettings(BaseModel):
    work_start_time: str = "09:00"
    work_end_time: str = "18:00"
    late_threshold: int = Field(15, ge=0, le=120)  # minutes
    half_day_threshold: float = Field(4, ge=1, le=8)  # hours
    weekly_offs: List[int] = [5, 6]  # Monday == 0
    holidays: List[Holiday] = Field(default_factory=default_holidays)

    @field_validator("work_start_time", "work_end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        datetime.strptime(value, "%H:%M")
        return value


class EmailSettings(BaseModel):
    from_name: str = "Payroll System"
    from_email: str = ""


class NotificationSettings(BaseModel):
    payslip_email: bool = True
    attendance_reminder: bool = True
    expense_approval: bool = True
    payroll_generation: bool = True


class Currency(str, Enum):
    INR = "INR"
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    AED = "AED"
    SGD = "SGD"
    JPY = "JPY"


class DateFormat(str, Enum):
    DMY_SLASH = "DD/MM/YYYY"
    MDY_SLASH = "MM/DD/YYYY"
    ISO = "YYYY-MM-DD"
    DMY_DASH = "DD-MM-YYYY"


class Customization(BaseModel):
    currency: Currency = Currency.INR
    date_format: DateFormat = DateFormat.DMY_SLASH
    time_format: str = Field("24", pattern="^(12|24)$")
    theme: str = Field("light", pattern="^(light|dark)$")


class SystemSettings(BaseModel):
    """Exactly one instance per deployment"""
    key: str = SETTINGS_KEY
    company: CompanyProfile = Field(default_factory=CompanyProfile)
    payroll: PayrollSettings = Field(default_factory=PayrollSettings)
    attendance: AttendanceSettings = Field(default_factory=AttendanceSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    customization: Customization = Field(default_factory=Customization)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
