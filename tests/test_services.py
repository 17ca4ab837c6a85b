import json
from datetime import date

import pytest

from tracker.domain import ExpenseRecord, Goal, IncomeRecord
from tracker.events import COLLECTION_CHANGED, DATA_IMPORTED, EventBus
from tracker.services import DashboardService, FinanceTracker
from tracker.storage import MemoryStorage


def make_tracker():
    tracker = FinanceTracker(MemoryStorage())
    tracker.expenses.add(ExpenseRecord(amount=120.0, category="food", date="2025-01-04"))
    tracker.expenses.add(ExpenseRecord(amount=80.0, category="bills", date="2025-01-10", recurring=True))
    tracker.expenses.add(ExpenseRecord(amount=30.0, category="food", date="2024-12-30"))
    tracker.income.add(IncomeRecord(amount=1000.0, source="Salary", type="fixed", date="2025-01-01"))
    tracker.income.add(IncomeRecord(amount=150.0, source="Side job", type="variable", date="2025-01-20"))
    return tracker


def test_monthly_summary():
    summary = DashboardService(make_tracker()).monthly_summary("2025-01")
    assert summary == {
        "month": "2025-01",
        "income": 1150.0,
        "expenses": 200.0,
        "net_savings": 950.0,
        "remaining_budget": 950.0,
        "by_category": {"food": 120.0, "bills": 80.0},
        "recurring": 80.0,
        "fixed_income": 1000.0,
        "variable_income": 150.0,
    }


def test_summary_recomputes_after_mutation():
    tracker = make_tracker()
    service = DashboardService(tracker)
    before = service.monthly_summary("2025-01")["expenses"]
    tracker.expenses.add(ExpenseRecord(amount=50.0, category="health", date="2025-01-25"))
    assert service.monthly_summary("2025-01")["expenses"] == before + 50.0


def test_trend():
    flow = DashboardService(make_tracker()).trend(6, end_month="2025-01")
    assert len(flow) == 6
    assert flow[-2] == {"month": "2024-12", "income": 0, "expenses": 30.0}
    assert flow[-1] == {"month": "2025-01", "income": 1150.0, "expenses": 200.0}


def test_goal_cards():
    tracker = FinanceTracker(MemoryStorage())
    tracker.goals.add(Goal(name="Laptop", target_amount=200.0, saved_amount=50.0, due_date="2025-03-11"))
    tracker.goals.add(Goal(name="Trip", target_amount=100.0, saved_amount=150.0, due_date="2025-02-01"))

    cards = DashboardService(tracker).goal_cards(date(2025, 3, 1))

    assert [(c["progress"], c["bar"], c["complete"], c["days_remaining"]) for c in cards] == [
        (25.0, 25.0, False, 10),
        (150.0, 100.0, True, -28),
    ]


def test_tracker_shares_one_bus():
    bus = EventBus()
    tracker = FinanceTracker(MemoryStorage(), bus)
    keys = []
    bus.subscribe(COLLECTION_CHANGED, lambda e, p: keys.append(p["key"]))

    tracker.expenses.add(ExpenseRecord(amount=1.0, category="food", date="2025-01-01"))
    tracker.income.add(IncomeRecord(amount=1.0, source="x", type="fixed", date="2025-01-01"))
    tracker.categories.add("pets")

    assert keys == ["expenses", "income", "categories"]


def test_import_reloads_stores_and_notifies():
    tracker = FinanceTracker(MemoryStorage())
    imported = []
    tracker.bus.subscribe(DATA_IMPORTED, lambda e, p: imported.append(p["keys"]))
    expenses = json.dumps([{"id": "e1", "amount": 9.5, "category": "food", "date": "2025-01-01",
                            "description": "", "recurring": False}])

    result = tracker.import_data(json.dumps({"expenses": expenses, "categories": json.dumps(["travel"])}))

    assert result.is_right()
    assert [e.id for e in tracker.expenses.all()] == ["e1"]
    assert "travel" in tracker.categories.all()
    assert "food" in tracker.categories.all()
    assert imported == [["categories", "expenses"]]


def test_failed_import_keeps_state_and_stays_quiet():
    tracker = make_tracker()
    before = tracker.expenses.all()
    imported = []
    tracker.bus.subscribe(DATA_IMPORTED, lambda e, p: imported.append(p))

    result = tracker.import_data("not json at all")

    assert result.is_left()
    assert tracker.expenses.all() == before
    assert imported == []


@pytest.mark.asyncio
async def test_import_file_through_tracker(tmp_path):
    source = make_tracker()
    path = source.export_to(tmp_path, date(2025, 1, 31))

    target = FinanceTracker(MemoryStorage())
    result = await target.import_file(path)

    assert result.is_right()
    assert target.expenses.all() == source.expenses.all()
    assert target.income.all() == source.income.all()
