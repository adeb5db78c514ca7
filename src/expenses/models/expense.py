"""Expense record model and its remote document form."""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlmodel import Field, SQLModel

DEFAULT_PAYMENT_METHOD = "cash"


def new_expense_id() -> str:
    return str(uuid.uuid4())


def to_naive_utc(value: datetime) -> datetime:
    """Dates are stored naive; aware values are converted to UTC first."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class Expense(SQLModel, table=True):
    """One row per expense transaction, keyed by a client-generated id."""

    __tablename__ = "expenses"

    id: str = Field(default_factory=new_expense_id, primary_key=True)
    title: str
    amount: float
    date: datetime = Field(index=True)
    category: str
    payment_method: str = Field(default=DEFAULT_PAYMENT_METHOD)
    description: Optional[str] = None

    # True iff the last local state is confirmed stored remotely
    synced: bool = Field(default=False)

    def with_synced(self, synced: bool) -> "Expense":
        """Return a detached copy with the sync flag replaced."""
        return Expense(**{**self.model_dump(), "synced": synced})

    def payload(self) -> Dict[str, Any]:
        """Application fields only (no sync flag), for store comparisons."""
        return self.model_dump(exclude={"synced"})

    def to_document(self) -> Dict[str, Any]:
        """
        Serialize to the flat remote document.

        `description` is only present when non-empty; the key is omitted
        rather than stored as null or "".
        """
        doc: Dict[str, Any] = {
            "_id": self.id,
            "title": self.title,
            "amount": self.amount,
            "date": self.date.isoformat(),
            "category": self.category,
            "paymentMethod": self.payment_method,
            "synced": self.synced,
        }
        if self.description:
            doc["description"] = self.description
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Expense":
        """
        Build an Expense from a remote document.

        Older documents may lack `paymentMethod` (defaults to cash) or
        `synced` (a remote copy is synced by definition).
        """
        description = doc.get("description")
        if description is not None:
            description = str(description) or None

        raw_date = doc["date"]
        if isinstance(raw_date, datetime):
            date = to_naive_utc(raw_date)
        else:
            date = to_naive_utc(datetime.fromisoformat(str(raw_date).replace("Z", "+00:00")))

        return cls(
            id=str(doc["_id"]),
            title=doc["title"],
            amount=float(doc["amount"]),
            date=date,
            category=doc["category"],
            payment_method=doc.get("paymentMethod") or DEFAULT_PAYMENT_METHOD,
            description=description,
            synced=doc.get("synced", True),
        )
