import datetime

import pytest

from finance_tracker.storage import LocalStore
from finance_tracker.tracker import ExpenseTracker

TODAY = datetime.date(2024, 2, 1)


@pytest.fixture
def store(tmp_path):
    return LocalStore(str(tmp_path / "finance_data.json"))


@pytest.fixture
def tracker(store):
    return ExpenseTracker(store, today=lambda: TODAY)


@pytest.fixture
def two_expenses(tracker):
    food = tracker.add_expense(50, "Food", date="2024-01-10")
    transport = tracker.add_expense(30, "Transport", date="2024-01-15")
    return food, transport
