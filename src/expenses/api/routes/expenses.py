"""Expense CRUD routes."""
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator

from expenses.analysis.summary import sort_newest_first, total_for_period, totals_by_category
from expenses.api.deps import get_sync_engine
from expenses.models.catalog import CUSTOM_CATEGORY_PREFIX, ExpenseCategory, PaymentMethod
from expenses.models.expense import Expense, new_expense_id, to_naive_utc
from expenses.sync.engine import ExpenseSyncEngine

router = APIRouter()


class ExpenseIn(BaseModel):
    id: Optional[str] = None  # generated when omitted
    title: str
    amount: float
    date: datetime
    category: str
    payment_method: PaymentMethod = PaymentMethod.CASH
    description: Optional[str] = None

    @field_validator("category")
    @classmethod
    def known_or_custom_category(cls, value: str) -> str:
        if value in {c.value for c in ExpenseCategory}:
            return value
        if value.startswith(CUSTOM_CATEGORY_PREFIX) and value[len(CUSTOM_CATEGORY_PREFIX):].strip():
            return value
        raise ValueError(f"unknown category {value!r}")

    def to_expense(self, expense_id: str) -> Expense:
        return Expense(
            id=expense_id,
            title=self.title,
            amount=self.amount,
            date=to_naive_utc(self.date),
            category=self.category,
            payment_method=self.payment_method.value,
            description=self.description or None,
        )


class PeriodTotal(BaseModel):
    start: datetime
    end: datetime
    total: float


@router.get("/", response_model=List[Expense])
def list_expenses(
    limit: int = 100,
    offset: int = 0,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    engine: ExpenseSyncEngine = Depends(get_sync_engine),
):
    """List expenses, newest first. `start`/`end` (exclusive) filter by date."""
    if start is not None and end is not None:
        expenses = engine.store.get_for_range(to_naive_utc(start), to_naive_utc(end))
    else:
        expenses = engine.store.get_all()
    return sort_newest_first(expenses)[offset:offset + limit]


@router.get("/summary/categories", response_model=Dict[str, float])
def category_totals(engine: ExpenseSyncEngine = Depends(get_sync_engine)):
    """Total spent per category key."""
    return totals_by_category(engine.store.get_all())


@router.get("/summary/period", response_model=PeriodTotal)
def period_total(
    start: datetime,
    end: datetime,
    engine: ExpenseSyncEngine = Depends(get_sync_engine),
):
    """Total spent strictly between start and end."""
    start, end = to_naive_utc(start), to_naive_utc(end)
    return PeriodTotal(
        start=start, end=end, total=total_for_period(engine.store.get_all(), start, end)
    )


@router.get("/{expense_id}", response_model=Expense)
def get_expense(expense_id: str, engine: ExpenseSyncEngine = Depends(get_sync_engine)):
    expense = engine.store.get(expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


@router.post("/", response_model=Expense, status_code=201)
async def create_expense(
    body: ExpenseIn, engine: ExpenseSyncEngine = Depends(get_sync_engine)
):
    """Store locally; mirrored remotely if online. Check /sync/status for propagation."""
    return await engine.create(body.to_expense(body.id or new_expense_id()))


@router.put("/{expense_id}", response_model=Expense)
async def update_expense(
    expense_id: str,
    body: ExpenseIn,
    engine: ExpenseSyncEngine = Depends(get_sync_engine),
):
    if not engine.store.contains(expense_id):
        raise HTTPException(status_code=404, detail="Expense not found")
    return await engine.update(body.to_expense(expense_id))


@router.delete("/{expense_id}")
async def delete_expense(
    expense_id: str, engine: ExpenseSyncEngine = Depends(get_sync_engine)
):
    if not engine.store.contains(expense_id):
        raise HTTPException(status_code=404, detail="Expense not found")
    await engine.delete(expense_id)
    return {"message": "Expense deleted", "id": expense_id}
