import math
from dataclasses import dataclass
from datetime import date


LOCALES = ("en", "ar")
RTL_LOCALES = ("ar",)
CURRENCIES = ("USD", "ILS", "EUR", "AED", "SAR")
THEMES = ("light", "dark", "system")
INCOME_TYPES = ("fixed", "variable")

DEFAULT_CATEGORIES = (
    "food",
    "transport",
    "shopping",
    "entertainment",
    "bills",
    "health",
    "education",
    "other",
)


def _finite(value, field: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{field} must be finite, got {value!r}")
    return number


@dataclass(frozen=True)
class ExpenseRecord:
    amount: float
    category: str
    date: str        # ISO "YYYY-MM-DD"
    description: str = ""
    recurring: bool = False
    id: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": self.amount,
            "category": self.category,
            "date": self.date,
            "description": self.description,
            "recurring": self.recurring,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExpenseRecord":
        record = cls(
            id=str(data["id"]),
            amount=_finite(data["amount"], "amount"),
            category=str(data["category"]),
            date=str(data["date"]),
            description=str(data.get("description") or ""),
            recurring=data.get("recurring", False),
        )
        if not isinstance(record.recurring, bool):
            raise ValueError(f"recurring must be a boolean in expense {record.id}")
        if record.amount < 0:
            raise ValueError(f"negative amount in expense {record.id}")
        return record


@dataclass(frozen=True)
class IncomeRecord:
    amount: float
    source: str
    type: str        # "fixed" or "variable"
    date: str
    id: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": self.amount,
            "source": self.source,
            "type": self.type,
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "IncomeRecord":
        record = cls(
            id=str(data["id"]),
            amount=_finite(data["amount"], "amount"),
            source=str(data.get("source") or ""),
            type=str(data["type"]),
            date=str(data["date"]),
        )
        if record.amount < 0 or record.type not in INCOME_TYPES:
            raise ValueError(f"invalid income record {record.id}")
        return record


@dataclass(frozen=True)
class Goal:
    name: str
    target_amount: float
    due_date: str
    saved_amount: float = 0.0
    id: str = ""

    # persisted with the camelCase keys of the export format
    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "targetAmount": self.target_amount,
            "savedAmount": self.saved_amount,
            "dueDate": self.due_date,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Goal":
        goal = cls(
            id=str(data["id"]),
            name=str(data["name"]),
            target_amount=_finite(data["targetAmount"], "targetAmount"),
            saved_amount=_finite(data.get("savedAmount") or 0, "savedAmount"),
            due_date=str(data["dueDate"]),
        )
        if goal.target_amount <= 0 or goal.saved_amount < 0:
            raise ValueError(f"invalid goal amounts in {goal.id}")
        date.fromisoformat(goal.due_date)
        return goal


@dataclass(frozen=True)
class Preferences:
    locale: str = "en"
    currency: str = "USD"
    theme: str = "system"
