"""
dashboard.py - Streamlit UI entrypoint and orchestration

This module wires the UI components (finance_tracker.ui.components) with the
business logic (finance_tracker.tracker). main() lays out the page and routes
user intents to tracker methods.

Design notes:
 - Keep the dashboard responsible only for UI orchestration and presentation.
 - All persistence and business rules live in finance_tracker.tracker.
 - One tracker per browser session, kept in st.session_state.
"""

import streamlit as st

from finance_tracker.models import Expense
from finance_tracker.tracker import ExpenseTracker
from finance_tracker.ui import components

SESSION_KEY = "expense_tracker"


def get_tracker() -> ExpenseTracker:
    if SESSION_KEY not in st.session_state:
        st.session_state[SESSION_KEY] = ExpenseTracker()
    return st.session_state[SESSION_KEY]


def main():
    """
    Streamlit page:
      - summary cards and total money editor
      - add / edit form (edit mode while an expense is being edited)
      - filter bar, expense history, category pie chart, exports
      - sidebar: storage location and Clear all data
    """
    st.set_page_config(page_title="Finance Tracker", layout="wide")
    st.title("Personal Finance Tracker")
    tracker = get_tracker()

    if tracker.store.available:
        st.sidebar.caption(f"Data file: {tracker.store.path}")
    else:
        st.sidebar.warning("Local storage unavailable; changes will not be saved.")
    if st.sidebar.button("Clear all data"):
        tracker.clear()
        st.sidebar.success("All data cleared.")

    components.display_summary(tracker.total_money, tracker.total_expenses, tracker.remaining_balance)
    components.display_total_money_editor(tracker.total_money, tracker.set_total_money)

    left, right = st.columns([1, 2])
    with left:
        editing = tracker.editing_expense

        def on_submit(exp_input: components.ExpenseInput):
            if editing:
                tracker.update_expense(Expense(
                    id=editing.id,
                    amount=exp_input.amount,
                    category=exp_input.category,
                    description=exp_input.description,
                    date=exp_input.date,
                ))
            else:
                tracker.add_expense(
                    amount=exp_input.amount,
                    category=exp_input.category,
                    description=exp_input.description,
                    date=exp_input.date,
                )

        components.display_expense_form(on_submit, editing=editing, on_cancel=tracker.cancel_editing)

    with right:
        components.display_filter_controls(tracker.filter, tracker.set_filter)
        components.display_expense_list(tracker.filtered_expenses, tracker.start_editing, tracker.delete_expense)
        components.display_export_buttons(tracker)
        components.display_spending_chart(tracker.spending_by_category)


if __name__ == "__main__":
    main()
