"""
Streamlit Frontend for Expense Tracker

This is the interface a single user works with day to day: record an
expense, see where the money went this month, browse history and export
a PDF report.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation before deleting anything
3. Clear error messages in simple language
4. Visual feedback for all operations

The UI holds no business logic: every page asks the tracker for a view
and renders it.
"""

import logging
from datetime import date

import streamlit as st

from expense_tracker.config import get_settings, validate_all_settings
from expense_tracker.models.expense import ALL, Category, ExpenseFilter, PaymentMethod, SortKey
from expense_tracker.orchestrator import (
    ExpenseTracker,
    ReceiptUploadData,
    create_app_components,
)
from expense_tracker.services.storage import StorageError


settings = get_settings()
logging.basicConfig(level=settings.app.log_level)
CURRENCY = settings.report.currency_symbol

# Page configuration
st.set_page_config(
    page_title="Expense Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .summary-box {
        padding: 20px;
        background-color: #eef2ff;
        border-radius: 10px;
        border-left: 5px solid #4f46e5;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


def money(amount) -> str:
    return f"{CURRENCY}{amount:,.2f}"


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    try:
        return create_app_components()
    except StorageError as e:
        st.error(f"Could not open the data directory ({e}). Changes will not be saved.")
        return create_app_components(in_memory=True)


def main():
    """Main application entry point."""
    tracker, audit_logger = get_components()

    # Sidebar navigation
    st.sidebar.title("💰 Expense Tracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🏠 Dashboard", "➕ Add Expense", "📄 Report", "📜 History", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(f"**Expenses recorded:** {len(tracker.store)}")

    # Route to appropriate page
    if page == "🏠 Dashboard":
        render_dashboard_page(tracker)
    elif page == "➕ Add Expense":
        render_add_page(tracker)
    elif page == "📄 Report":
        render_report_page(tracker)
    elif page == "📜 History":
        render_history_page(tracker)
    elif page == "⚙️ Settings":
        render_settings_page(audit_logger)


def render_dashboard_page(tracker: ExpenseTracker):
    """Render the current-month overview."""
    st.title("🏠 Dashboard")

    summary = tracker.dashboard()

    col1, col2 = st.columns(2)
    with col1:
        st.markdown(f"""
        <div class="summary-box">
            <p>This month</p>
            <p class="big-number">{money(summary.current_total)}</p>
        </div>
        """, unsafe_allow_html=True)
    with col2:
        arrow = "▲" if summary.is_increase else "▼"
        st.metric(
            "Compared with last month",
            money(summary.previous_total),
            f"{arrow} {abs(summary.change_percent)}%",
            delta_color="inverse",
        )

    st.markdown(f"### Last {len(summary.weekly)} days")
    for day, height in zip(summary.weekly, summary.weekly_bar_heights()):
        col1, col2 = st.columns([1, 5])
        col1.markdown(f"**{day.label}** {money(day.total)}")
        col2.progress(height)

    st.markdown("### Categories this month")
    if not summary.category_breakdown:
        st.info("No expenses this month yet. Use 'Add Expense' to record one.")
        return

    for category, amount in summary.category_breakdown.items():
        share = summary.category_share(category)
        st.markdown(f"{category.icon} **{category.value}** {money(amount)}")
        st.progress(min(float(share) / 100, 1.0))


def render_add_page(tracker: ExpenseTracker):
    """Render the add-expense form and the most recent entries."""
    st.title("➕ Add Expense")

    with st.form("add_expense", clear_on_submit=True):
        col1, col2 = st.columns(2)

        with col1:
            amount = st.text_input(
                f"Amount ({CURRENCY}) *",
                placeholder="0.00",
            )
            expense_date = st.date_input("Date *", value=date.today())
            category = st.selectbox(
                "Category *",
                options=list(Category),
                format_func=lambda c: f"{c.icon} {c.value}",
            )

        with col2:
            payment_method = st.selectbox(
                "Payment Method",
                options=list(PaymentMethod),
                format_func=lambda m: m.value,
            )
            description = st.text_input(
                "Description (optional)",
                placeholder="What was it for?",
            )
            uploaded_file = st.file_uploader(
                "Receipt (optional)",
                type=["jpg", "jpeg", "png", "webp", "gif", "pdf"],
            )

        submitted = st.form_submit_button("💾 Save Expense", type="primary")

    if submitted:
        receipt_upload = None
        if uploaded_file is not None:
            receipt_upload = ReceiptUploadData(
                content=uploaded_file.getvalue(),
                filename=uploaded_file.name,
                mime_type=uploaded_file.type or "",
            )

        form = {
            "amount": amount,
            "date": expense_date,
            "category": category.value,
            "payment_method": payment_method.value,
            "description": description,
        }
        try:
            outcome = tracker.add_expense(form, receipt_upload=receipt_upload)
        except StorageError as e:
            st.error(f"Failed to save: {e}")
        else:
            if outcome.success:
                st.success(
                    f"✅ Saved {money(outcome.expense.amount)} "
                    f"for {outcome.expense.display_title}"
                )
                for warning in outcome.warnings:
                    st.warning(f"⚠️ {warning}")
            else:
                st.error(f"❌ {outcome.message}")

    st.markdown("---")
    st.markdown("### Recent Expenses")
    recent = tracker.recent_expenses(get_settings().app.recent_expenses_limit)
    if not recent:
        st.info("No expenses yet.")
    for expense in recent:
        st.markdown(
            f"{expense.category.icon} **{expense.display_title}** · "
            f"{expense.date.strftime('%d %b %Y')} · {money(expense.amount)}"
        )


def _filter_controls(tracker: ExpenseTracker, key: str, with_dates: bool) -> ExpenseFilter:
    """Shared filter widgets for the report and history pages."""
    months = tracker.history().months

    col1, col2, col3 = st.columns(3)
    with col1:
        text_query = st.text_input("Search", key=f"{key}_search")
    with col2:
        category = st.selectbox(
            "Category",
            options=[ALL] + [c.value for c in Category],
            key=f"{key}_category",
        )
    with col3:
        month = st.selectbox(
            "Month",
            options=[ALL] + months,
            key=f"{key}_month",
        )

    date_from = date_to = None
    if with_dates:
        col1, col2 = st.columns(2)
        with col1:
            date_from = st.date_input("From", value=None, key=f"{key}_from")
        with col2:
            date_to = st.date_input("To", value=None, key=f"{key}_to")

    if st.button("Clear filters", key=f"{key}_clear"):
        for suffix in ("search", "category", "month", "from", "to"):
            st.session_state.pop(f"{key}_{suffix}", None)
        st.rerun()

    return ExpenseFilter(
        text_query=text_query,
        category=category,
        month_key=month,
        date_from=date_from,
        date_to=date_to,
    )


def render_report_page(tracker: ExpenseTracker):
    """Render the filtered report and PDF export."""
    st.title("📄 Report")

    criteria = _filter_controls(tracker, "report", with_dates=True)
    report = tracker.report(criteria)

    if report.filter_description:
        st.caption(f"Filters: {report.filter_description}")

    if report.is_empty:
        st.info("No expenses found. Try adjusting your filters.")
        return

    summary = report.summary
    col1, col2, col3 = st.columns(3)
    col1.metric("Total Expense", money(summary.total))
    col2.metric("Average Expense", money(summary.average))
    col3.metric("Total Transactions", summary.count)

    st.markdown("### By Category")
    for category, amount in summary.by_category.items():
        st.markdown(f"{category.icon} {category.value}: **{money(amount)}**")

    st.markdown("### Detailed Expenses")
    st.dataframe(
        [
            {
                "Date": e.date.isoformat(),
                "Description": e.description,
                "Category": e.category.value,
                "Payment": e.payment_method.value,
                "Amount": float(e.amount),
            }
            for e in report.expenses
        ],
        use_container_width=True,
    )

    if st.button("📥 Prepare PDF", type="primary"):
        outcome = tracker.export_report(criteria, generated_at=report.generated_at)
        if outcome.success:
            st.download_button(
                "⬇️ Download PDF",
                data=outcome.artifact.content,
                file_name=outcome.artifact.filename,
                mime=outcome.artifact.media_type,
            )
        else:
            st.error(outcome.error_message)


def render_history_page(tracker: ExpenseTracker):
    """Render the expense history with sorting and deletion."""
    st.title("📜 History")

    criteria = _filter_controls(tracker, "history", with_dates=False)
    sort_key = st.selectbox(
        "Sort by",
        options=list(SortKey),
        format_func=lambda k: k.label,
    )

    history = tracker.history(criteria, sort_key)
    st.markdown(f"**{len(history.expenses)} expenses · {money(history.total)}**")
    st.markdown("---")

    if not history.expenses:
        st.info("No expenses match these filters.")
        return

    for expense in history.expenses:
        col1, col2, col3 = st.columns([5, 2, 1])
        with col1:
            st.markdown(
                f"{expense.category.icon} **{expense.display_title}**  \n"
                f"{expense.date.strftime('%d %b %Y')} · {expense.payment_method.value}"
            )
        with col2:
            st.markdown(f"**{money(expense.amount)}**")
            if expense.has_receipt:
                receipt = tracker.receipt_for(expense.id)
                if receipt is not None:
                    if receipt.is_image:
                        with st.expander("View receipt"):
                            st.image(receipt.content)
                    st.download_button(
                        "🧾 Receipt",
                        data=receipt.content,
                        file_name=receipt.filename,
                        mime=receipt.mime_type,
                        key=f"receipt_{expense.id}",
                    )
        with col3:
            confirm_key = f"confirm_delete_{expense.id}"
            if st.session_state.get(confirm_key):
                if st.button("Confirm", key=f"yes_{expense.id}", type="primary"):
                    try:
                        tracker.delete_expense(expense.id)
                    except StorageError as e:
                        st.error(f"Failed to delete: {e}")
                    st.session_state[confirm_key] = False
                    st.rerun()
                if st.button("Cancel", key=f"no_{expense.id}"):
                    st.session_state[confirm_key] = False
                    st.rerun()
            elif st.button("🗑️", key=f"delete_{expense.id}"):
                st.session_state[confirm_key] = True
                st.rerun()


def render_settings_page(audit_logger):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()

    sections = [
        ("Storage", "storage"),
        ("Receipts", "receipts"),
        ("Report", "report"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown("---")
    st.markdown("### Recent Activity")
    events = audit_logger.recent_events(limit=20)
    if not events:
        st.info("Nothing recorded yet.")
    for event in events:
        st.markdown(
            f"`{event.timestamp.strftime('%H:%M:%S')}` "
            f"**{event.event_type.value}** {event.description}"
        )

    st.markdown("---")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
