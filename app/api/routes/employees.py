"""
Employee Routes
Employee management endpoints
"""
from fastapi import APIRouter, Depends, status
from typing import Optional

from app.api.deps import PageParams, get_employee_service, ok, paginate
from app.models.employee import Department, EmployeeCreate, EmployeeStatus, EmployeeUpdate
from app.services.employees import EmployeeService


router = APIRouter()


@router.get("/")
async def list_employees(
    status: Optional[EmployeeStatus] = None,
    department: Optional[Department] = None,
    search: Optional[str] = None,
    page: PageParams = Depends(),
    service: EmployeeService = Depends(get_employee_service),
):
    """List employees with filters and pagination"""
    employees = await service.list(status=status, department=department, search=search)
    result = paginate(employees, page)
    return ok({"employees": result["items"], "pagination": result["pagination"]})


@router.get("/stats")
async def employee_stats(service: EmployeeService = Depends(get_employee_service)):
    """Headcount by status and department"""
    return ok(await service.stats())


@router.get("/{employee_id}")
async def get_employee(employee_id: str, service: EmployeeService = Depends(get_employee_service)):
    return ok(await service.get(employee_id))


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_employee(data: EmployeeCreate, service: EmployeeService = Depends(get_employee_service)):
    """
    Create a new employee
    """
    employee = await service.create(data)
    return ok(employee, message="Employee created successfully")


@router.put("/{employee_id}")
async def update_employee(
    employee_id: str,
    data: EmployeeUpdate,
    service: EmployeeService = Depends(get_employee_service),
):
    """Update employee information"""
    employee = await service.update(employee_id, data)
    return ok(employee, message="Employee updated successfully")


@router.delete("/{employee_id}")
async def delete_employee(employee_id: str, service: EmployeeService = Depends(get_employee_service)):
    await service.delete(employee_id)
    return ok(message="Employee deleted successfully")
