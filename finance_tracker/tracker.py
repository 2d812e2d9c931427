"""
tracker.py - core application logic and persistence

Responsibilities:
 - keep the in-memory list of Expense objects, the total-money scalar,
   the active filter and the editing pointer
 - persist every change through the LocalStore key-value adapter
 - provide helper APIs consumed by the UI:
     add_expense / update_expense / delete_expense, set_total_money,
     start_editing / cancel_editing, set_filter, export_expenses,
     and the derived values (filtered_expenses, totals, spending_by_category)
"""

from dataclasses import dataclass
from io import BytesIO
from typing import Callable, List, Optional, Tuple
import datetime
import logging
import math
import uuid

import pandas as pd

from finance_tracker.models import Category, Expense, FilterCriteria, amount_text, parse_date
from finance_tracker.storage import LocalStore

TOTAL_MONEY_KEY = "totalMoney"
EXPENSES_KEY = "expenses"

CSV_HEADERS = ["Date", "Category", "Amount", "Description"]
CSV_MIME = "text/csv;charset=utf-8"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# ensure a logger is available
logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


@dataclass
class ExportFile:
    """A ready-to-download file handed to the UI's download surface."""
    file_name: str
    data: str
    mime: str = CSV_MIME


def _coerce_money(value) -> float:
    """Non-numeric, NaN, infinite or negative input becomes 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _date_sort_key(expense: Expense) -> datetime.date:
    # unreadable dates sort last
    return parse_date(expense.date) or datetime.date.min


def _csv_quote(text: Optional[str]) -> str:
    return '"' + (text or "").replace('"', '""') + '"'


class ExpenseTracker:
    """
    Single owned state container. The UI keeps one ExpenseTracker per session
    and uses its methods to read/write data.

    With autoload=False the tracker starts empty and not ready; nothing is
    written to the store until hydrate() has loaded the persisted state.
    """

    def __init__(
        self,
        store: Optional[LocalStore] = None,
        autoload: bool = True,
        today: Callable[[], datetime.date] = datetime.date.today,
    ):
        self.store = store if store is not None else LocalStore.from_env()
        self._today = today
        # in-memory list, kept sorted by date descending by the mutators
        self._expenses: List[Expense] = []
        self._total_money = 0.0
        self._filter = FilterCriteria()
        self._editing_id: Optional[str] = None
        self._ready = False
        # set when a mutation happens before hydrate() has loaded the store
        self._unsaved_before_ready = False
        if autoload:
            self.hydrate()

    @property
    def ready(self) -> bool:
        return self._ready

    def hydrate(self):
        """Load persisted state once; later calls are no-ops."""
        if self._ready:
            return
        if self._unsaved_before_ready:
            logger.warning("Discarding changes made before the stored state was loaded")
            self._unsaved_before_ready = False
        self._total_money = _coerce_money(self.store.load(TOTAL_MONEY_KEY, 0))
        self._expenses = self._load_expenses()
        self._ready = True
        logger.info("Loaded %d expenses (total money=%.2f)", len(self._expenses), self._total_money)

    def _load_expenses(self) -> List[Expense]:
        raw = self.store.load(EXPENSES_KEY, [])
        if not isinstance(raw, list):
            logger.warning("Stored expenses are not a list, starting empty")
            return []
        out: List[Expense] = []
        seen = set()
        for d in raw:
            try:
                exp = Expense.from_dict(d)
            except (KeyError, TypeError, ValueError, AttributeError):
                logger.warning("Skipping malformed stored expense: %r", d)
                continue
            if exp.id in seen:
                logger.warning("Skipping stored expense with duplicate id %s", exp.id)
                continue
            seen.add(exp.id)
            out.append(exp)
        return out

    # -----------------------
    # Persistence
    # -----------------------
    def _persist_expenses(self):
        if not self._ready:
            self._unsaved_before_ready = True
            return
        self.store.save(EXPENSES_KEY, [e.to_dict() for e in self._expenses])

    def _persist_total_money(self):
        if not self._ready:
            self._unsaved_before_ready = True
            return
        self.store.save(TOTAL_MONEY_KEY, self._total_money)

    def _sort(self):
        # list.sort is stable with reverse=True: same-day entries keep insertion order
        self._expenses.sort(key=_date_sort_key, reverse=True)

    # -----------------------
    # Mutations
    # -----------------------
    def add_expense(
        self,
        amount: float,
        category: Category,
        description: Optional[str] = None,
        date: Optional[str] = None,
    ) -> Expense:
        """
        Create an Expense with a fresh id, insert it and persist.
        date: ISO string "YYYY-MM-DD"; defaults to today when omitted.
        """
        exp = Expense(
            id=uuid.uuid4().hex,
            amount=amount,
            category=category,
            description=description,
            date=date or self._today().isoformat(),
        )
        self._expenses.append(exp)
        self._sort()
        self._persist_expenses()
        logger.info("Added expense id=%s (category=%s, amount=%s)", exp.id, exp.category, exp.amount)
        return exp

    def update_expense(self, expense: Expense):
        """Replace the record with the same id and end the edit session."""
        for i, e in enumerate(self._expenses):
            if e.id == expense.id:
                self._expenses[i] = expense
                break
        else:
            logger.info("Expense id=%s not found, nothing to update", expense.id)
        self._sort()
        self._editing_id = None
        self._persist_expenses()

    def delete_expense(self, expense_id: str) -> bool:
        """Remove expense by id. Returns True if deleted, False if not found (no error)."""
        remaining = [e for e in self._expenses if e.id != expense_id]
        if self._editing_id == expense_id:
            self._editing_id = None
        if len(remaining) == len(self._expenses):
            logger.info("Expense id=%s not found", expense_id)
            return False
        self._expenses = remaining
        self._persist_expenses()
        logger.info("Deleted expense id=%s. Remaining expenses=%d.", expense_id, len(self._expenses))
        return True

    def set_total_money(self, value):
        self._total_money = _coerce_money(value)
        self._persist_total_money()

    def start_editing(self, expense_id: str):
        self._editing_id = expense_id

    def cancel_editing(self):
        self._editing_id = None

    def set_filter(self, criteria: Optional[FilterCriteria]):
        """Replace the active filter wholesale (no merging)."""
        self._filter = criteria if criteria is not None else FilterCriteria()

    def clear(self):
        """
        Reset tracker state: no expenses, zero total money, no edit session.
        Persists the cleared state.
        """
        self._expenses = []
        self._total_money = 0.0
        self._editing_id = None
        self._persist_expenses()
        self._persist_total_money()

    # -----------------------
    # Derived values
    # -----------------------
    @property
    def all_expenses(self) -> List[Expense]:
        return list(self._expenses)

    @property
    def total_money(self) -> float:
        return self._total_money

    @property
    def filter(self) -> FilterCriteria:
        return self._filter

    @property
    def editing_id(self) -> Optional[str]:
        return self._editing_id

    @property
    def filtered_expenses(self) -> List[Expense]:
        if self._filter.is_empty():
            return list(self._expenses)
        return [e for e in self._expenses if self._filter.matches(e)]

    @property
    def total_expenses(self) -> float:
        """Global spend: always over the unfiltered list."""
        return sum(e.amount for e in self._expenses)

    @property
    def remaining_balance(self) -> float:
        return self._total_money - self.total_expenses

    @property
    def spending_by_category(self) -> List[Tuple[Category, float]]:
        """
        Sum of filtered amounts per category, largest first.
        Categories without a filtered expense are left out.
        """
        totals = {}
        for e in self.filtered_expenses:
            totals[e.category] = totals.get(e.category, 0.0) + e.amount
        return sorted(totals.items(), key=lambda item: item[1], reverse=True)

    @property
    def editing_expense(self) -> Optional[Expense]:
        if self._editing_id is None:
            return None
        return next((e for e in self._expenses if e.id == self._editing_id), None)

    # -----------------------
    # Export
    # -----------------------
    def export_file_name(self, extension: str = "csv") -> str:
        return f"expenses_{self._today().strftime('%Y%m%d')}.{extension}"

    def to_csv(self) -> str:
        """CSV text of the filtered list; description is always quoted."""
        lines = [",".join(CSV_HEADERS)]
        for e in self.filtered_expenses:
            lines.append(",".join([e.date, e.category.value, amount_text(e.amount), _csv_quote(e.description)]))
        return "\n".join(lines)

    def export_expenses(self, deliver: Optional[Callable[[ExportFile], None]] = None) -> Optional[ExportFile]:
        """
        Hand the filtered list as a CSV download to `deliver`.
        Without a delivery surface there is nothing to download into: no-op.
        """
        if deliver is None:
            logger.info("No download surface available, skipping export")
            return None
        export = ExportFile(file_name=self.export_file_name("csv"), data=self.to_csv())
        deliver(export)
        return export

    def to_xlsx(self) -> bytes:
        """
        Filtered list as an XLSX workbook: sheet "expenses" with the CSV
        columns plus id, sheet "totals_by_category" with the breakdown.
        """
        rows = [
            {
                "Date": e.date,
                "Category": e.category.value,
                "Amount": float(e.amount),
                "Description": e.description or "",
                "id": e.id,
            }
            for e in self.filtered_expenses
        ]
        df = pd.DataFrame(rows, columns=CSV_HEADERS + ["id"])
        totals = pd.DataFrame(
            [(c.value, amt) for c, amt in self.spending_by_category],
            columns=["Category", "Amount"],
        )
        buffer = BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="expenses")
            totals.to_excel(writer, index=False, sheet_name="totals_by_category")
        buffer.seek(0)
        return buffer.getvalue()
