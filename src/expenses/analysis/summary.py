"""Spending summaries over lists of expenses."""
from datetime import datetime
from typing import Dict, Iterable, List

from expenses.models.expense import Expense


def sort_newest_first(expenses: Iterable[Expense]) -> List[Expense]:
    return sorted(expenses, key=lambda e: e.date, reverse=True)


def expenses_in_range(
    expenses: Iterable[Expense], start: datetime, end: datetime
) -> List[Expense]:
    """Expenses dated strictly after start and strictly before end."""
    return [e for e in expenses if start < e.date < end]


def total_for_period(expenses: Iterable[Expense], start: datetime, end: datetime) -> float:
    return sum(e.amount for e in expenses_in_range(expenses, start, end))


def totals_by_category(expenses: Iterable[Expense]) -> Dict[str, float]:
    """Sum of amounts per category key."""
    totals: Dict[str, float] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, 0.0) + expense.amount
    return totals
