"""
Employee Model
Schema for employee records and their salary structure
"""
from datetime import datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, EmailStr, Field, computed_field, field_validator

from app.models.attendance import UtcDatetime


def generate_employee_id() -> str:
    return "EMP" + str(int(datetime.utcnow().timestamp() * 1000))[-6:]


class EmployeeStatus(str, Enum):
    """Employment status"""
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    TERMINATED = "Terminated"


class EmployeeRole(str, Enum):
    MANAGER = "Manager"
    DEVELOPER = "Developer"
    DESIGNER = "Designer"
    HR = "HR"
    ACCOUNTANT = "Accountant"
    ADMIN = "Admin"
    OTHER = "Other"


class Department(str, Enum):
    IT = "IT"
    HR = "HR"
    FINANCE = "Finance"
    MARKETING = "Marketing"
    SALES = "Sales"
    OPERATIONS = "Operations"
    OTHER = "Other"


class DocumentType(str, Enum):
    ID_PROOF = "ID Proof"
    SALARY_SLIP = "Salary Slip"
    BANK_STATEMENT = "Bank Statement"
    OTHER = "Other"


class Address(BaseModel):
    """Employee address"""
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    country: str = "India"


class EmergencyContact(BaseModel):
    """Emergency contact information"""
    name: Optional[str] = None
    relationship: Optional[str] = None
    phone: Optional[str] = None


class BankDetails(BaseModel):
    """Employee bank details"""
    account_number: str = ""
    ifsc_code: str = ""
    bank_name: str = ""
    branch: str = ""


class Allowances(BaseModel):
    """Fixed additive salary components"""
    hra: float = Field(0.0, ge=0)
    da: float = Field(0.0, ge=0)
    ta: float = Field(0.0, ge=0)
    medical: float = Field(0.0, ge=0)
    other: float = Field(0.0, ge=0)

    @property
    def total(self) -> float:
        return sum(self.model_dump().values())


class Deductions(BaseModel):
    """Fixed subtractive salary components"""
    pf: float = Field(0.0, ge=0)
    esi: float = Field(0.0, ge=0)
    tax: float = Field(0.0, ge=0)
    other: float = Field(0.0, ge=0)

    @property
    def total(self) -> float:
        return sum(self.model_dump().values())


class SalaryStructure(BaseModel):
    """Standing monthly salary configuration"""
    basic: float = Field(0.0, ge=0)
    allowances: Allowances = Field(default_factory=Allowances)
    deductions: Deductions = Field(default_factory=Deductions)


class WorkSchedule(BaseModel):
    working_hours: float = 8
    start_time: str = "09:00"
    end_time: str = "18:00"

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        datetime.strptime(value, "%H:%M")
        return value


class UploadedDocument(BaseModel):
    """Uploaded document reference"""
    type: DocumentType = DocumentType.OTHER
    filename: str
    original_name: Optional[str] = None
    upload_date: datetime = Field(default_factory=datetime.utcnow)


class Employee(BaseModel):
    """Employee record"""

    # Identity
    employee_id: str = Field(default_factory=generate_employee_id)
    first_name: str
    last_name: str
    email: EmailStr
    phone: str

    # Employment
    role: Optional[EmployeeRole] = None
    department: Optional[Department] = None
    joining_date: UtcDatetime = Field(default_factory=datetime.utcnow)
    status: EmployeeStatus = EmployeeStatus.ACTIVE

    # Payroll
    salary: SalaryStructure = Field(default_factory=SalaryStructure)
    bank_details: BankDetails = Field(default_factory=BankDetails)

    address: Address = Field(default_factory=Address)
    emergency_contact: EmergencyContact = Field(default_factory=EmergencyContact)
    work_schedule: WorkSchedule = Field(default_factory=WorkSchedule)
    documents: List[UploadedDocument] = []

    # Metadata
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.strip().lower()

    @computed_field
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @computed_field
    @property
    def total_salary(self) -> float:
        return self.salary.basic + self.salary.allowances.total - self.salary.deductions.total

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE

    @property
    def department_name(self) -> Optional[str]:
        return self.department.value if self.department else None

    class Config:
        json_schema_extra = {
            "example": {
                "employee_id": "EMP001",
                "first_name": "John",
                "last_name": "Doe",
                "email": "john.doe@company.com",
                "phone": "+91-9876543210",
                "role": "Developer",
                "department": "IT",
                "joining_date": "2024-01-01T00:00:00",
                "salary": {
                    "basic": 50000,
                    "allowances": {"hra": 20000, "da": 5000, "ta": 3000, "medical": 2000, "other": 1000},
                    "deductions": {"pf": 6000, "esi": 1000, "tax": 5000, "other": 500}
                }
            }
        }


class EmployeeCreate(BaseModel):
    """Schema for creating a new employee"""
    employee_id: Optional[str] = None
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    role: Optional[EmployeeRole] = None
    department: Optional[Department] = None
    joining_date: Optional[UtcDatetime] = None
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    salary: Optional[SalaryStructure] = None
    bank_details: Optional[BankDetails] = None
    address: Optional[Address] = None
    emergency_contact: Optional[EmergencyContact] = None
    work_schedule: Optional[WorkSchedule] = None


class EmployeeUpdate(BaseModel):
    """Schema for updating employee information"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    role: Optional[EmployeeRole] = None
    department: Optional[Department] = None
    joining_date: Optional[UtcDatetime] = None
    status: Optional[EmployeeStatus] = None
    salary: Optional[SalaryStructure] = None
    bank_details: Optional[BankDetails] = None
    address: Optional[Address] = None
    emergency_contact: Optional[EmergencyContact] = None
    work_schedule: Optional[WorkSchedule] = None
    documents: Optional[List[UploadedDocument]] = None


class EmployeeStats(BaseModel):
    total_employees: int = 0
    active_employees: int = 0
    inactive_employees: int = 0
    terminated_employees: int = 0
    by_department: dict = {}
    average_basic_salary: float = 0.0
