"""
components.py - reusable Streamlit components / forms / displays

This module contains pure-UI helpers used by the dashboard:
 - display_summary / display_total_money_editor
 - display_expense_form(on_submit, editing) for both add and edit
 - display_filter_controls(current, on_change)
 - display_expense_list / display_spending_chart / display_export_buttons

The expense form enforces validation rules before anything reaches the tracker:
 - amount > 0
 - category must be one of the fixed categories
 - date mandatory (st.date_input)
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
import datetime

import altair as alt
import pandas as pd
import streamlit as st

from finance_tracker.models import CATEGORIES, Category, Expense, FilterCriteria
from finance_tracker.tracker import XLSX_MIME, ExpenseTracker, ExportFile

ALL_CATEGORIES_LABEL = "All Categories"

# one color per category, in CATEGORIES order, so the pie keeps stable colors
PALETTE = [
    "#1f77b4", "#ff7f0e", "#2ca02c", "#d62728",
    "#9467bd", "#8c564b", "#e377c2", "#7f7f7f",
]


@dataclass
class ExpenseInput:
    """Lightweight container passed to the on_submit callback."""
    amount: float
    category: Category
    description: Optional[str]
    date: str  # ISO date string


def format_currency(amount: float) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def spending_frame(spending: List[Tuple[Category, float]]) -> pd.DataFrame:
    """
    Build the chart DataFrame from tracker.spending_by_category:
    columns category, amount, percent (share of the filtered total).
    """
    total = sum(float(amt) for _, amt in spending)
    rows = []
    for cat, amt in spending:
        amt_f = float(amt)
        pct = (amt_f / total * 100) if total > 0 else 0.0
        rows.append({"category": cat.value, "amount": amt_f, "percent": pct})
    return pd.DataFrame(rows, columns=["category", "amount", "percent"])


def display_summary(total_money: float, total_expenses: float, remaining_balance: float):
    """Three summary cards; a negative remaining balance is shown in red."""
    st.header("Financial Summary")
    col1, col2, col3 = st.columns(3)
    col1.metric("Total Money", format_currency(total_money))
    col2.metric("Total Expenses", format_currency(total_expenses))
    col2.caption("Amount spent across all expenses")
    with col3:
        st.markdown("Remaining Balance")
        color = "red" if remaining_balance < 0 else "green"
        # escape $ so markdown does not read it as LaTeX
        label = format_currency(remaining_balance).replace("$", "\\$")
        st.markdown(f"### :{color}[{label}]")
        st.caption("Money left from total")


def display_total_money_editor(total_money: float, on_save: Callable[[float], None]):
    with st.form(key="total_money_form"):
        value = st.number_input("Total money", min_value=0.0, value=float(total_money), step=100.0, format="%.2f")
        if st.form_submit_button("Save total"):
            on_save(value)
            st.toast("Total money updated.")


def display_expense_form(on_submit: Callable[[ExpenseInput], None],
                         editing: Optional[Expense] = None,
                         on_cancel: Optional[Callable[[], None]] = None):
    """
    Display the add/edit expense form.

    Parameters:
      - on_submit: callback invoked with ExpenseInput when the form validates
      - editing: the expense being edited; None shows an empty 'Add' form
      - on_cancel: callback for the Cancel button in edit mode
    """
    st.header("Edit Expense" if editing else "Add Expense")
    form_key = f"expense_form_{editing.id}" if editing else "expense_form"
    with st.form(key=form_key, clear_on_submit=editing is None):
        amount = st.number_input(
            "Amount",
            min_value=0.0,
            format="%.2f",
            value=float(editing.amount) if editing else 0.0,
        )
        cat_index = CATEGORIES.index(editing.category.value) if editing else None
        category = st.selectbox("Category", options=CATEGORIES, index=cat_index, placeholder="Select a category")
        date_prefill = datetime.date.today()
        if editing:
            try:
                date_prefill = datetime.date.fromisoformat(editing.date)
            except ValueError:
                pass
        date_val = st.date_input("Date", value=date_prefill)
        description = st.text_input("Description (optional)", value=(editing.description or "") if editing else "")

        submit_button = st.form_submit_button("Update Expense" if editing else "Add Expense")
        cancel_button = st.form_submit_button("Cancel") if editing else False

        if cancel_button and on_cancel:
            on_cancel()
            st.rerun()

        if submit_button:
            if amount <= 0:
                st.error("Amount must be greater than 0.")
                return
            if category not in CATEGORIES:
                st.error("Please select a category.")
                return
            if date_val is None:
                st.error("Please pick a date.")
                return

            expense = ExpenseInput(
                amount=round(amount, 2),
                category=Category(category),
                description=description.strip() or None,
                date=date_val.isoformat(),
            )
            on_submit(expense)
            st.toast("Expense updated." if editing else "Expense added.")
            if editing:
                st.rerun()


def display_filter_controls(current: FilterCriteria, on_change: Callable[[FilterCriteria], None]):
    """Filter bar: nothing applies until the user presses Apply."""
    st.header("Filter Expenses")
    with st.form(key="filter_form"):
        col1, col2, col3, col4 = st.columns(4)
        options = [ALL_CATEGORIES_LABEL] + CATEGORIES
        with col1:
            cat_index = options.index(current.category.value) if current.category else 0
            category = st.selectbox("Category", options=options, index=cat_index)
        with col2:
            start = st.date_input(
                "Start date",
                value=datetime.date.fromisoformat(current.start_date) if current.start_date else None,
            )
        with col3:
            end = st.date_input(
                "End date",
                value=datetime.date.fromisoformat(current.end_date) if current.end_date else None,
            )
        with col4:
            search = st.text_input("Search", value=current.search_term or "")

        apply_col, clear_col = st.columns(2)
        apply_button = apply_col.form_submit_button("Apply Filters")
        clear_button = clear_col.form_submit_button("Clear Filters")

    if clear_button:
        on_change(FilterCriteria())
        st.rerun()
    if apply_button:
        on_change(FilterCriteria(
            category=Category(category) if category != ALL_CATEGORIES_LABEL else None,
            start_date=start.isoformat() if start else None,
            end_date=end.isoformat() if end else None,
            search_term=search.strip() or None,
        ))
        st.rerun()


def display_expense_list(expenses: List[Expense],
                         on_edit: Callable[[str], None],
                         on_delete: Callable[[str], bool]):
    """
    Render the filtered expenses as a table with per-row Edit/Delete buttons.
    on_delete returns True when the expense was removed.
    """
    st.header("Expense History")
    if not expenses:
        st.write("No expenses recorded.")
        return

    df = pd.DataFrame(
        [
            {
                "date": e.date,
                "category": e.category.value,
                "amount": float(e.amount),
                "description": e.description or "",
            }
            for e in expenses
        ],
        columns=["date", "category", "amount", "description"],
    )
    st.dataframe(df.style.format({"amount": "{:.2f}"}), use_container_width=True, hide_index=True)

    for e in expenses:
        col_label, col_edit, col_delete = st.columns([6, 1, 1])
        col_label.text(f"{e.date} · {e.category.value} · {format_currency(e.amount)} {e.description or ''}")
        if col_edit.button("Edit", key=f"edit_{e.id}"):
            on_edit(e.id)
            st.rerun()
        if col_delete.button("Delete", key=f"delete_{e.id}"):
            try:
                ok = on_delete(e.id)
            except Exception as exc:
                st.error(f"Error deleting expense: {exc}")
                ok = False
            if ok:
                st.toast("Expense deleted.")
                st.rerun()
            else:
                st.error("Failed to delete expense. Check the server logs for details.")


def display_spending_chart(spending: List[Tuple[Category, float]]):
    """Pie chart of the filtered spending per category."""
    st.header("Spending by Category")
    df = spending_frame(spending)
    if df.empty or df["amount"].sum() <= 0:
        st.info("No expense data to display for the selected filters.")
        return

    color_scale = alt.Scale(domain=CATEGORIES, range=PALETTE)
    pie = alt.Chart(df).mark_arc(innerRadius=50).encode(
        theta=alt.Theta(field="amount", type="quantitative"),
        color=alt.Color(field="category", type="nominal", scale=color_scale, legend=alt.Legend(title="Category")),
        tooltip=[
            alt.Tooltip("category:N", title="Category"),
            alt.Tooltip("amount:Q", title="Amount", format=".2f"),
            alt.Tooltip("percent:Q", title="Share", format=".1f"),
        ],
    )
    st.altair_chart(pie, use_container_width=True)


def display_export_buttons(tracker: ExpenseTracker):
    """
    CSV and XLSX downloads of the currently filtered expenses.
    Offered even for an empty filter result (header-only file).
    """
    def _deliver(export: ExportFile):
        st.download_button(
            label="Export CSV",
            data=export.data.encode("utf-8"),
            file_name=export.file_name,
            mime=export.mime,
        )

    col_csv, col_xlsx = st.columns(2)
    with col_csv:
        tracker.export_expenses(deliver=_deliver)
    with col_xlsx:
        try:
            data = tracker.to_xlsx()
        except Exception as exc:
            st.error(f"XLSX export unavailable: {exc}")
            return
        st.download_button(
            label="Export XLSX",
            data=data,
            file_name=tracker.export_file_name("xlsx"),
            mime=XLSX_MIME,
        )
