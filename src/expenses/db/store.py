"""
Local record store: durable key-value access to expenses and prefs.

Every write is one SQLite transaction, so a record is never partially
written. SQLAlchemy errors are not caught here; a failing local store means
the durability boundary is broken and callers must see it.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from expenses.models.expense import Expense
from expenses.models.preference import Preference
from expenses.models.sync import PendingDeletion


class ExpenseStore:
    """Expenses keyed by id, plus the pending-deletion tombstones."""

    def __init__(self, engine):
        """
        Args:
            engine: SQLAlchemy engine (see expenses.db.engine.create_db_engine).
        """
        self.engine = engine

    def put(self, expense: Expense) -> Expense:
        """Insert or replace the record stored under expense.id."""
        with Session(self.engine) as s:
            s.merge(expense)
            s.commit()
        return expense

    def get(self, expense_id: str) -> Optional[Expense]:
        with Session(self.engine) as s:
            return s.get(Expense, expense_id)

    def delete(self, expense_id: str) -> bool:
        """Remove a record. Returns False if it was not present."""
        with Session(self.engine) as s:
            row = s.get(Expense, expense_id)
            if row is None:
                return False
            s.delete(row)
            s.commit()
            return True

    def contains(self, expense_id: str) -> bool:
        return self.get(expense_id) is not None

    def get_all(self) -> List[Expense]:
        with Session(self.engine) as s:
            return list(s.exec(select(Expense)).all())

    def count(self) -> int:
        with Session(self.engine) as s:
            return s.exec(select(func.count()).select_from(Expense)).one()

    def unsynced(self) -> List[Expense]:
        """Records whose local state is not confirmed remotely."""
        with Session(self.engine) as s:
            return list(s.exec(select(Expense).where(Expense.synced == False)).all())  # noqa: E712

    def get_for_range(self, start: datetime, end: datetime) -> List[Expense]:
        """Expenses strictly between start and end."""
        with Session(self.engine) as s:
            return list(
                s.exec(
                    select(Expense).where(Expense.date > start, Expense.date < end)
                ).all()
            )

    # ─── Pending deletions ────────────────────────────────────────────────────

    def add_pending_deletion(self, expense_id: str) -> None:
        with Session(self.engine) as s:
            if s.get(PendingDeletion, expense_id) is None:
                s.add(PendingDeletion(expense_id=expense_id))
                s.commit()

    def clear_pending_deletion(self, expense_id: str) -> None:
        with Session(self.engine) as s:
            row = s.get(PendingDeletion, expense_id)
            if row is not None:
                s.delete(row)
                s.commit()

    def pending_deletions(self) -> List[str]:
        with Session(self.engine) as s:
            rows = s.exec(select(PendingDeletion).order_by(PendingDeletion.queued_at)).all()
            return [row.expense_id for row in rows]

    def is_pending_deletion(self, expense_id: str) -> bool:
        with Session(self.engine) as s:
            return s.get(PendingDeletion, expense_id) is not None


class PreferenceStore:
    """The "prefs" collection: small string settings such as the dark-mode flag."""

    def __init__(self, engine):
        self.engine = engine

    def get(self, key: str) -> Optional[str]:
        with Session(self.engine) as s:
            row = s.get(Preference, key)
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        with Session(self.engine) as s:
            s.merge(Preference(key=key, value=value))
            s.commit()

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key)
        if value is None:
            return default
        return value == "true"

    def set_bool(self, key: str, value: bool) -> None:
        self.set(key, "true" if value else "false")
