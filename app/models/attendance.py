"""
Attendance Model
Schema for daily attendance records
"""
import uuid
from datetime import datetime, timezone
from typing import Annotated, Optional, List
from pydantic import AfterValidator, BaseModel, Field, computed_field
from enum import Enum


class AttendanceStatus(str, Enum):
    """Attendance status"""
    PRESENT = "Present"
    ABSENT = "Absent"
    HALF_DAY = "Half Day"
    LEAVE = "Leave"
    HOLIDAY = "Holiday"


def day_start(moment: datetime) -> datetime:
    """Midnight of the calendar day containing ``moment``"""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def naive_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Stored times are naive UTC"""
    if moment is not None and moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


UtcDatetime = Annotated[datetime, AfterValidator(naive_utc)]


class CheckIn(BaseModel):
    time: Optional[UtcDatetime] = None
    location: str = "Office"
    is_late: bool = False


class CheckOut(BaseModel):
    time: Optional[UtcDatetime] = None
    location: str = "Office"


class Attendance(BaseModel):
    """Attendance record, one per employee per calendar day"""

    attendance_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    employee_id: str
    date: UtcDatetime

    check_in: CheckIn = Field(default_factory=CheckIn)
    check_out: CheckOut = Field(default_factory=CheckOut)

    # Calculated Fields
    working_hours: float = 0.0
    overtime: float = 0.0
    is_half_day: bool = False
    is_late: bool = False

    status: AttendanceStatus = AttendanceStatus.PRESENT
    remarks: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @computed_field
    @property
    def formatted_working_hours(self) -> str:
        hours = int(self.working_hours)
        minutes = round((self.working_hours - hours) * 60)
        return f"{hours}h {minutes}m"

    class Config:
        json_schema_extra = {
            "example": {
                "employee_id": "EMP001",
                "date": "2024-03-04T00:00:00",
                "check_in": {"time": "2024-03-04T09:00:00", "location": "Office"},
                "check_out": {"time": "2024-03-04T18:00:00", "location": "Office"},
                "status": "Present"
            }
        }


class CheckInCommand(BaseModel):
    """Schema for check-in request"""
    employee_id: str
    location: str = "Office"
    timestamp: Optional[UtcDatetime] = None
    remarks: Optional[str] = None


class CheckOutCommand(BaseModel):
    """Schema for check-out request"""
    employee_id: str
    location: str = "Office"
    timestamp: Optional[UtcDatetime] = None
    remarks: Optional[str] = None


class MarkAttendanceCommand(BaseModel):
    """Manual entry for a day without check-in (absence, leave, holiday)"""
    employee_id: str
    date: UtcDatetime
    status: AttendanceStatus
    remarks: Optional[str] = None


class AttendanceUpdate(BaseModel):
    """Manual edit of an existing record"""
    status: Optional[AttendanceStatus] = None
    remarks: Optional[str] = None
    check_in: Optional[CheckIn] = None
    check_out: Optional[CheckOut] = None


class AttendanceSummary(BaseModel):
    """Monthly attendance rollup for one employee"""
    total_days: int = 0
    not_joined_days: int = 0  # expected days before the joining date
    present_days: int = 0
    absent_days: int = 0
    half_days: int = 0
    leave_days: int = 0
    working_hours: float = 0.0
    overtime: float = 0.0
    late_days: int = 0


class EmployeeAttendanceReport(BaseModel):
    employee_id: str
    name: str
    department: Optional[str] = None
    summary: AttendanceSummary
    records: List[Attendance] = []
