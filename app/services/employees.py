"""
Employee Service
Employee records and workforce statistics
"""
import logging
from collections import Counter
from datetime import datetime
from typing import List, Optional

from app.errors import NotFoundError
from app.models.employee import (
    Employee,
    EmployeeCreate,
    EmployeeStats,
    EmployeeStatus,
    EmployeeUpdate,
)
from app.repositories.base import EmployeeRepository

logger = logging.getLogger(__name__)


def employee_stats(employees: List[Employee]) -> EmployeeStats:
    statuses = Counter(e.status for e in employees)
    departments = Counter(e.department_name or "Unassigned" for e in employees)
    average = sum(e.salary.basic for e in employees) / len(employees) if employees else 0.0
    return EmployeeStats(
        total_employees=len(employees),
        active_employees=statuses[EmployeeStatus.ACTIVE],
        inactive_employees=statuses[EmployeeStatus.INACTIVE],
        terminated_employees=statuses[EmployeeStatus.TERMINATED],
        by_department=dict(departments),
        average_basic_salary=round(average, 2),
    )


class EmployeeService:
    def __init__(self, repository: EmployeeRepository):
        self.repository = repository

    async def create(self, data: EmployeeCreate) -> Employee:
        employee = Employee(**data.model_dump(exclude_none=True))
        await self.repository.create(employee)
        logger.info("Created employee %s (%s)", employee.employee_id, employee.full_name)
        return employee

    async def get(self, employee_id: str) -> Employee:
        employee = await self.repository.get(employee_id)
        if not employee:
            raise NotFoundError("Employee", employee_id)
        return employee

    async def list(
        self,
        status: Optional[EmployeeStatus] = None,
        department: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Employee]:
        return await self.repository.list(status=status, department=department, search=search)

    async def update(self, employee_id: str, changes: EmployeeUpdate) -> Employee:
        employee = await self.get(employee_id)
        fields = employee.model_dump(exclude=set(Employee.model_computed_fields))
        fields.update(changes.model_dump(exclude_unset=True, exclude_none=True))
        updated = Employee.model_validate(fields)
        updated.updated_at = datetime.utcnow()
        await self.repository.update(updated)
        return updated

    async def delete(self, employee_id: str) -> None:
        await self.get(employee_id)
        await self.repository.delete(employee_id)
        logger.info("Deleted employee %s", employee_id)

    async def stats(self) -> EmployeeStats:
        return employee_stats(await self.repository.list())
