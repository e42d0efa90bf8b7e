"""
Finance Service
Expense and revenue ledger with category, profit/loss and yearly roll-ups
"""
import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from app.errors import NotFoundError, ValidationFailed
from app.models.expense import (
    CategoryTotal,
    EntryType,
    Expense,
    ExpenseCategory,
    ExpenseCreate,
    ExpenseStatus,
    ExpenseUpdate,
    MonthlyTotals,
    ProfitLoss,
    Recurrence,
    Vendor,
    YearlySummary,
)
from app.repositories.base import ExpenseRepository
from app.services.attendance import month_bounds

logger = logging.getLogger(__name__)


def _counted(entries: Iterable[Expense]) -> List[Expense]:
    return [e for e in entries if e.status != ExpenseStatus.CANCELLED]


def category_summary(entries: Iterable[Expense], entry_type: EntryType = EntryType.EXPENSE) -> List[CategoryTotal]:
    """Totals per category for one entry type, largest first"""
    totals: Dict[str, float] = defaultdict(float)
    counts: Dict[str, int] = defaultdict(int)
    for entry in _counted(entries):
        if entry.type != entry_type:
            continue
        totals[entry.category.value] += entry.amount
        counts[entry.category.value] += 1
    summary = [
        CategoryTotal(category=category, total_amount=round(amount, 2), count=counts[category])
        for category, amount in totals.items()
    ]
    return sorted(summary, key=lambda c: c.total_amount, reverse=True)


def profit_loss(entries: Iterable[Expense]) -> ProfitLoss:
    result = ProfitLoss()
    for entry in _counted(entries):
        if entry.type == EntryType.REVENUE:
            result.total_revenue += entry.amount
            result.revenue_count += 1
        else:
            result.total_expenses += entry.amount
            result.expense_count += 1
    result.total_revenue = round(result.total_revenue, 2)
    result.total_expenses = round(result.total_expenses, 2)
    result.net_profit = round(result.total_revenue - result.total_expenses, 2)
    return result


def yearly_summary(entries: Iterable[Expense], year: int) -> YearlySummary:
    """Month-by-month revenue and expenses for a calendar year"""
    in_year = [e for e in _counted(entries) if e.date.year == year]
    months = {m: MonthlyTotals(month=m) for m in range(1, 13)}
    by_category: Dict[str, float] = defaultdict(float)

    for entry in in_year:
        totals = months[entry.date.month]
        if entry.type == EntryType.REVENUE:
            totals.revenue += entry.amount
        else:
            totals.expenses += entry.amount
            by_category[entry.category.value] += entry.amount

    for totals in months.values():
        totals.revenue = round(totals.revenue, 2)
        totals.expenses = round(totals.expenses, 2)
        totals.net = round(totals.revenue - totals.expenses, 2)

    return YearlySummary(
        year=year,
        months=list(months.values()),
        totals=profit_loss(in_year),
        by_category={k: round(v, 2) for k, v in by_category.items()},
    )


class ExpenseService:
    def __init__(self, repository: ExpenseRepository):
        self.repository = repository

    async def create(self, data: ExpenseCreate) -> Expense:
        fields = data.model_dump(exclude_none=True)
        fields["vendor"] = data.vendor or Vendor()
        fields["recurring"] = data.recurring or Recurrence()
        expense = Expense(**fields)
        await self.repository.create(expense)
        logger.info("Recorded %s %s: %.2f", expense.type.value, expense.expense_id, expense.amount)
        return expense

    async def get(self, expense_id: str) -> Expense:
        expense = await self.repository.get(expense_id)
        if not expense:
            raise NotFoundError("Expense", expense_id)
        return expense

    async def list(
        self,
        type: Optional[EntryType] = None,
        category: Optional[ExpenseCategory] = None,
        status: Optional[ExpenseStatus] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        search: Optional[str] = None,
    ) -> List[Expense]:
        if start and end and end < start:
            raise ValidationFailed("End date is before start date", field="end_date")
        return await self.repository.list(
            type=type, category=category, status=status, start=start, end=end, search=search
        )

    async def update(self, expense_id: str, changes: ExpenseUpdate) -> Expense:
        expense = await self.get(expense_id)
        fields = expense.model_dump()
        fields.update(changes.model_dump(exclude_unset=True, exclude_none=True))
        updated = Expense.model_validate(fields)
        updated.updated_at = datetime.utcnow()
        await self.repository.update(updated)
        return updated

    async def delete(self, expense_id: str) -> None:
        await self.get(expense_id)
        await self.repository.delete(expense_id)

    async def _period(self, month: Optional[int], year: Optional[int]) -> List[Expense]:
        if month and year:
            start, end = month_bounds(month, year)
            return await self.repository.list(start=start, end=end)
        if year:
            return await self.repository.list(start=datetime(year, 1, 1), end=datetime(year + 1, 1, 1))
        return await self.repository.list()

    async def stats(self, month: Optional[int] = None, year: Optional[int] = None) -> dict:
        entries = await self._period(month, year)
        return {
            "overview": profit_loss(entries),
            "by_category": category_summary(entries),
        }

    async def profit_loss(self, month: int, year: int) -> dict:
        entries = await self._period(month, year)
        return {
            "month": month,
            "year": year,
            "summary": profit_loss(entries),
            "expenses_by_category": category_summary(entries, EntryType.EXPENSE),
            "revenue_by_category": category_summary(entries, EntryType.REVENUE),
        }

    async def yearly(self, year: int) -> YearlySummary:
        entries = await self._period(None, year)
        return yearly_summary(entries, year)
