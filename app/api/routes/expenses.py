"""
Expense Routes
Revenue and expense ledger
"""
from datetime import datetime
from fastapi import APIRouter, Depends, Query, status
from typing import Optional

from app.api.deps import PageParams, get_expense_service, ok, paginate
from app.models.attendance import naive_utc
from app.models.expense import EntryType, ExpenseCategory, ExpenseCreate, ExpenseStatus, ExpenseUpdate
from app.services.finance import ExpenseService, profit_loss

router = APIRouter()


@router.get("/")
async def list_expenses(
    type: Optional[EntryType] = None,
    category: Optional[ExpenseCategory] = None,
    status: Optional[ExpenseStatus] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = None,
    page: PageParams = Depends(),
    service: ExpenseService = Depends(get_expense_service),
):
    """List ledger entries with filters and pagination"""
    entries = await service.list(
        type=type,
        category=category,
        status=status,
        start=naive_utc(start_date),
        end=naive_utc(end_date),
        search=search,
    )
    result = paginate(entries, page)
    return ok({"expenses": result["items"], "pagination": result["pagination"], "summary": profit_loss(entries)})


@router.get("/stats")
async def expense_stats(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = None,
    service: ExpenseService = Depends(get_expense_service),
):
    """Totals and category breakdown, optionally for one month"""
    return ok(await service.stats(month, year))


@router.get("/profit-loss")
async def profit_loss_statement(
    month: int = Query(..., ge=1, le=12),
    year: int = Query(...),
    service: ExpenseService = Depends(get_expense_service),
):
    return ok(await service.profit_loss(month, year))


@router.get("/yearly/{year}")
async def yearly_summary(year: int, service: ExpenseService = Depends(get_expense_service)):
    """Month-by-month revenue and expenses"""
    return ok(await service.yearly(year))


@router.get("/{expense_id}")
async def get_expense(expense_id: str, service: ExpenseService = Depends(get_expense_service)):
    return ok(await service.get(expense_id))


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_expense(data: ExpenseCreate, service: ExpenseService = Depends(get_expense_service)):
    return ok(await service.create(data), message="Expense created successfully")


@router.put("/{expense_id}")
async def update_expense(
    expense_id: str,
    data: ExpenseUpdate,
    service: ExpenseService = Depends(get_expense_service),
):
    return ok(await service.update(expense_id, data), message="Expense updated successfully")


@router.delete("/{expense_id}")
async def delete_expense(expense_id: str, service: ExpenseService = Depends(get_expense_service)):
    await service.delete(expense_id)
    return ok(message="Expense deleted successfully")
