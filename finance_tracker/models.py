"""
models.py - Data model definitions

This file defines the Expense dataclass, the closed Category enumeration and
the FilterCriteria used by the tracker and the UI. Expenses are serialized
to/from simple dicts so they can be persisted as JSON under the "expenses" key.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional
import datetime
import math


class Category(str, Enum):
    FOOD = "Food"
    TRANSPORT = "Transport"
    UTILITIES = "Utilities"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    HEALTH = "Health"
    HOUSING = "Housing"
    OTHER = "Other"

    def __str__(self) -> str:
        return self.value


# labels in display order, used to populate dropdowns
CATEGORIES = [c.value for c in Category]


def parse_date(value: Optional[str]) -> Optional[datetime.date]:
    """Parse an ISO "YYYY-MM-DD" string; returns None for missing or bad dates."""
    if not value:
        return None
    try:
        return datetime.date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def amount_text(amount: float) -> str:
    """
    Shortest decimal text for an amount: integral values drop the fraction
    (50.0 -> "50"), others keep their repr (12.5 -> "12.5").
    """
    value = float(amount)
    if value.is_integer():
        return str(int(value))
    return repr(value)


@dataclass
class Expense:
    """
    Represents a single tracked spending event.

    Fields:
      - id: opaque unique id assigned by the tracker (never by the caller)
      - amount: strictly positive amount (validated by the form)
      - category: one of the Category members
      - description: optional free-text description
      - date: ISO date string "YYYY-MM-DD"
    """
    id: str
    amount: float
    category: Category
    date: str
    description: Optional[str] = None

    def __post_init__(self):
        # plain labels from forms or callers become Category members
        self.category = Category(self.category)

    def to_dict(self) -> Dict:
        """
        Convert to a plain dict suitable for JSON serialization.
        description is omitted when absent.
        """
        d = {
            "id": self.id,
            "amount": self.amount,
            "category": self.category.value,
            "date": self.date,
        }
        if self.description is not None:
            d["description"] = self.description
        return d

    @staticmethod
    def from_dict(d: Dict) -> "Expense":
        """
        Construct an Expense from a dict (inverse of to_dict).
        Raises ValueError for an unknown category, a non-finite amount or a
        non-text date/description, and KeyError for a missing id or amount,
        so callers can skip malformed rows.
        """
        amount = float(d["amount"])
        if not math.isfinite(amount):
            raise ValueError(f"amount must be finite, got {amount!r}")
        date = d.get("date", "") or ""
        if not isinstance(date, str):
            raise ValueError(f"date must be a string, got {date!r}")
        description = d.get("description")
        if description is not None and not isinstance(description, str):
            raise ValueError(f"description must be a string, got {description!r}")
        return Expense(
            id=str(d["id"]),
            amount=amount,
            category=Category(d.get("category")),
            description=description,
            date=date,
        )


@dataclass
class FilterCriteria:
    """Conjunctive filter; a None or empty field places no constraint."""
    category: Optional[Category] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    search_term: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.category or self.start_date or self.end_date or self.search_term)

    def matches(self, expense: Expense) -> bool:
        if self.category and expense.category != self.category:
            return False

        if self.start_date or self.end_date:
            d = parse_date(expense.date)
            # records with unreadable dates never satisfy a date bound
            if d is None:
                return False
            start = parse_date(self.start_date)
            if start is not None and d < start:
                return False
            end = parse_date(self.end_date)
            if end is not None and d > end:
                return False

        if self.search_term:
            term = self.search_term.lower()
            if not (
                term in (expense.description or "").lower()
                or term in expense.category.value.lower()
                or self.search_term in amount_text(expense.amount)
            ):
                return False

        return True
