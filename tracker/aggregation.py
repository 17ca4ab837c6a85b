"""
Derived views over record collections.

Everything here is a pure function of its arguments: no hidden state, inputs
are never mutated, and every call recomputes from scratch.

Month membership is a string-prefix test on the ISO ``date`` field, so a
record dated "2025-03-xx" still belongs to "2025-03". Do not replace it with
a parsed date-range comparison; that changes which records are accepted.
"""

import math
from collections import defaultdict
from datetime import date, datetime, time
from typing import Callable, Dict, Iterable, Iterator, Optional, Sequence, Tuple, TypeVar, Union

from tracker.domain import ExpenseRecord, Goal, IncomeRecord

R = TypeVar('R')

DayLike = Union[date, datetime]


class InvalidGoalError(ValueError):
    """A goal without a positive target reached a progress computation."""


# --- months

def current_month(today: Optional[date] = None) -> str:
    return (today or date.today()).isoformat()[:7]


def shift_month(yyyymm: str, delta: int) -> str:
    year, month = int(yyyymm[:4]), int(yyyymm[5:7])
    index = year * 12 + (month - 1) + delta
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def month_range(month_count: int, end_month: Optional[str] = None) -> Tuple[str, ...]:
    """``month_count`` consecutive months ending at ``end_month``, oldest first."""
    end = end_month or current_month()
    return tuple(shift_month(end, -offset) for offset in range(month_count - 1, -1, -1))


# --- predicates, composable with filter()

def by_month(yyyymm: str):
    def _filter(r) -> bool:
        return r.date.startswith(yyyymm)

    return _filter


def by_category(category: str):
    def _filter(e: ExpenseRecord) -> bool:
        return e.category == category

    return _filter


def by_type(income_type: str):
    def _filter(i: IncomeRecord) -> bool:
        return i.type == income_type

    return _filter


# --- sums and groupings

def filter_by_month(records: Iterable[R], yyyymm: str) -> Tuple[R, ...]:
    return tuple(filter(by_month(yyyymm), records))


def total(records: Iterable) -> float:
    return sum((r.amount for r in records), 0.0)


def group_by_category(expenses: Iterable[ExpenseRecord]) -> Dict[str, float]:
    totals: Dict[str, float] = defaultdict(float)
    for e in expenses:
        totals[e.category] += e.amount
    return dict(totals)


def top_categories(expenses: Iterable[ExpenseRecord], k: Optional[int] = None) -> Iterator[Tuple[str, float]]:
    """Category totals, largest first. Yields at most ``k`` pairs when given."""
    ordered = sorted(group_by_category(expenses).items(), key=lambda item: item[1], reverse=True)
    limit = len(ordered) if k is None else max(0, k)
    for name, amount in ordered[:limit]:
        yield name, amount


def recurring_total(expenses: Iterable[ExpenseRecord]) -> float:
    return total(e for e in expenses if e.recurring)


def income_by_type(income: Iterable[IncomeRecord], yyyymm: str) -> Dict[str, float]:
    monthly = filter_by_month(income, yyyymm)
    return {
        "fixed": total(filter(by_type("fixed"), monthly)),
        "variable": total(filter(by_type("variable"), monthly)),
    }


def net_savings(monthly_income: float, monthly_expenses: float) -> float:
    return monthly_income - monthly_expenses


# --- trends

def monthly_series(
    records: Sequence,
    month_count: int,
    end_month: Optional[str] = None,
) -> Tuple[Tuple[str, float], ...]:
    """(month, total) for each of the last ``month_count`` months, oldest first.

    Months without records are present with a total of 0.
    """
    return tuple((month, total(filter_by_month(records, month))) for month in month_range(month_count, end_month))


def cash_flow(
    income: Sequence[IncomeRecord],
    expenses: Sequence[ExpenseRecord],
    month_count: int,
    end_month: Optional[str] = None,
) -> Tuple[Dict[str, object], ...]:
    income_series = monthly_series(income, month_count, end_month)
    expense_series = monthly_series(expenses, month_count, end_month)
    return tuple(
        {"month": month, "income": inc, "expenses": exp}
        for (month, inc), (_, exp) in zip(income_series, expense_series)
    )


# --- goals

def goal_progress(goal: Goal) -> float:
    """Saved share of the target as an uncapped percentage."""
    if goal.target_amount <= 0:
        raise InvalidGoalError(f"Goal {goal.id or goal.name} has non-positive target {goal.target_amount}")
    return goal.saved_amount / goal.target_amount * 100


def is_goal_complete(goal: Goal) -> bool:
    return goal_progress(goal) >= 100


def progress_bar_value(goal: Goal) -> float:
    return min(max(goal_progress(goal), 0.0), 100.0)


def days_remaining(due_date: Union[str, date], today: Optional[DayLike] = None) -> int:
    """Whole days until ``due_date`` (ceiling). Zero or negative means overdue."""
    due = due_date if isinstance(due_date, date) else date.fromisoformat(due_date)
    due_start = datetime.combine(due, time.min)
    if today is None:
        today = datetime.now()
    now = today if isinstance(today, datetime) else datetime.combine(today, time.min)
    return math.ceil((due_start - now).total_seconds() / 86400)


# --- display helpers

def sort_by_date(records: Iterable[R], newest_first: bool = True) -> Tuple[R, ...]:
    return tuple(sorted(records, key=lambda r: r.date, reverse=newest_first))


def apply_filters(records: Iterable[R], *predicates: Callable[[R], bool]) -> Tuple[R, ...]:
    return tuple(r for r in records if all(p(r) for p in predicates))
