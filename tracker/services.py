from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog

from tracker import aggregation as agg
from tracker import codec
from tracker.events import DATA_IMPORTED, EventBus
from tracker.functional import Either
from tracker.preferences import PreferenceStore
from tracker.records import CategoryStore, ExpenseStore, GoalStore, IncomeStore
from tracker.storage import KeyValueStorage

logger = structlog.get_logger(__name__)


class FinanceTracker:
    """Owns every store of one application instance.

    The presentation layer holds a single ``FinanceTracker`` and passes it
    around explicitly; subscribers on ``bus`` hear about every change after
    it has been persisted.
    """

    def __init__(self, storage: KeyValueStorage, bus: Optional[EventBus] = None, system_dark: bool = False):
        self.storage = storage
        self.bus = bus or EventBus()
        self.preferences = PreferenceStore(storage, self.bus, system_dark=system_dark)
        self.expenses = ExpenseStore(storage, self.bus)
        self.income = IncomeStore(storage, self.bus)
        self.goals = GoalStore(storage, self.bus)
        self.categories = CategoryStore(storage, self.bus)

    def reload(self) -> None:
        for store in (self.expenses, self.income, self.goals, self.categories):
            store.reload()

    def export_data(self) -> str:
        return codec.export_all(self.storage)

    def export_to(self, directory: Union[str, Path], today: Optional[date] = None) -> Path:
        return codec.write_export(self.storage, directory, today)

    def _after_import(self, result: Either) -> Either:
        if result.is_right():
            keys = sorted(result.get_or_else({}))
            self.reload()
            self.bus.publish(DATA_IMPORTED, {"keys": keys})
        return result

    def import_data(self, document: Union[str, bytes]) -> Either[dict, Dict[str, str]]:
        return self._after_import(codec.import_all(self.storage, document))

    async def import_file(self, path: Union[str, Path]) -> Either[dict, Dict[str, str]]:
        return self._after_import(await codec.import_file(self.storage, path))


class DashboardService:
    """Derived views for the dashboard, recomputed on every call."""

    def __init__(self, tracker: FinanceTracker):
        self.tracker = tracker

    def monthly_summary(self, month: Optional[str] = None) -> Dict[str, Any]:
        month = month or agg.current_month()
        expenses = agg.filter_by_month(self.tracker.expenses.all(), month)
        income = agg.filter_by_month(self.tracker.income.all(), month)
        monthly_expenses = agg.total(expenses)
        monthly_income = agg.total(income)
        by_type = agg.income_by_type(income, month)
        net = agg.net_savings(monthly_income, monthly_expenses)
        return {
            "month": month,
            "income": monthly_income,
            "expenses": monthly_expenses,
            "net_savings": net,
            "remaining_budget": net,
            "by_category": dict(agg.top_categories(expenses)),
            "recurring": agg.recurring_total(expenses),
            "fixed_income": by_type["fixed"],
            "variable_income": by_type["variable"],
        }

    def trend(self, month_count: int = 6, end_month: Optional[str] = None):
        return agg.cash_flow(self.tracker.income.all(), self.tracker.expenses.all(), month_count, end_month)

    def goal_cards(self, today: Optional[Union[date, datetime]] = None) -> List[Dict[str, Any]]:
        cards = []
        for goal in self.tracker.goals.all():
            cards.append({
                "goal": goal,
                "progress": agg.goal_progress(goal),
                "bar": agg.progress_bar_value(goal),
                "complete": agg.is_goal_complete(goal),
                "days_remaining": agg.days_remaining(goal.due_date, today),
            })
        return cards
