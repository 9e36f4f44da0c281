"""
Streamlit Frontend for Expense Tracker

This is the user interface people use to record and review their
day-to-day spending.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Clear error messages in simple language
3. Visual feedback for all operations
4. No hidden actions: nothing is deleted without a confirmation

The UI only talks to the ExpenseManager and the UserSession:
- Filters and sorting change the list view, never the stored data
- Add / edit / delete go through the backend before the list changes
- Failures are shown with a message that says what to do next
"""

import asyncio
from datetime import date

import streamlit as st

from expense_tracker.config import get_settings, validate_all_settings
from expense_tracker.models.expense import ListViewState, SortKey, SortOrder, month_bounds
from expense_tracker.orchestrator import (
    ExpenseManager,
    FailureKind,
    classify_failure,
    create_gateways,
    create_user_components,
    describe_failure,
    refresh_with_retry,
)
from expense_tracker.queries import format_amount, format_percentage
from expense_tracker.services.gateway import GatewayError
from expense_tracker.services.session import MemorySessionStorage
from expense_tracker.session import NotAuthenticatedError, UserSession
from expense_tracker.validation import ExpenseValidationError


# Page configuration
st.set_page_config(
    page_title="Expense Tracker",
    page_icon="💸",
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
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


SORT_LABELS = {
    None: "No sorting",
    SortKey.DATE: "Date",
    SortKey.AMOUNT: "Amount",
    SortKey.CATEGORY: "Category",
}

FILTER_KEYS = ("filter_text", "filter_category", "filter_from", "filter_to", "sort_by", "sort_order")


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_gateways():
    """Backend gateways, shared by every browser session (cached)."""
    try:
        return create_gateways(use_remote=True)
    except Exception as e:
        st.error(f"Failed to initialize: {e}")
        return create_gateways(use_remote=False)


def get_components():
    """Session and manager of this browser session, created on first use."""
    if "components" not in st.session_state:
        user_gateway, expense_gateway = get_gateways()
        st.session_state["components"] = create_user_components(
            user_gateway,
            expense_gateway,
            storage=MemorySessionStorage(),
        )
    return st.session_state["components"]


def show_failure(error: Exception) -> None:
    """Show a failure with a message that matches its kind."""
    kind = classify_failure(error)
    if kind in (FailureKind.VALIDATION, FailureKind.NOT_FOUND):
        st.warning(describe_failure(error))
    else:
        st.error(describe_failure(error))


def main():
    """Main application entry point."""
    session, manager = get_components()

    st.sidebar.title("💸 Expense Tracker")
    st.sidebar.markdown("---")

    if not session.is_authenticated:
        render_auth_page(session)
        return

    user = session.current_user
    st.sidebar.markdown(f"Signed in as **{user.display_name}**")
    if st.sidebar.button("🚪 Sign out"):
        session.logout()
        reset_filter_widgets()
        st.session_state.pop("loaded_for", None)
        st.rerun()

    page = st.sidebar.radio(
        "Navigate to:",
        ["💸 Expenses", "🕑 Activity", "⚙️ Settings"],
        index=0,
    )
    st.sidebar.markdown("---")

    if page == "💸 Expenses":
        render_expenses_page(manager)
    elif page == "🕑 Activity":
        render_activity_page(manager)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_auth_page(session: UserSession):
    """Sign-in and registration forms."""
    st.title("💸 Expense Tracker")
    st.markdown("Sign in to see your expenses, or create an account.")

    login_tab, register_tab = st.tabs(["Sign in", "Create account"])

    with login_tab:
        with st.form("login_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign in", type="primary")

        if submitted:
            if not email or not password:
                st.warning("Please enter your email and password.")
            else:
                try:
                    run_async(session.login(email, password))
                except GatewayError as e:
                    show_failure(e)
                else:
                    st.rerun()

    with register_tab:
        with st.form("register_form"):
            name = st.text_input("Name")
            reg_email = st.text_input("Email", key="register_email")
            reg_password = st.text_input("Password", type="password", key="register_password")
            confirm = st.text_input("Confirm password", type="password")
            created = st.form_submit_button("Create account")

        if created:
            if not name or not reg_email or not reg_password:
                st.warning("Please fill in every field.")
            elif reg_password != confirm:
                st.warning("The passwords do not match.")
            else:
                try:
                    user = run_async(session.register(name, reg_email, reg_password))
                except GatewayError as e:
                    show_failure(e)
                else:
                    st.success(f"✅ Account created for {user.email}. You can sign in now.")


# =============================================================================
# EXPENSES PAGE
# =============================================================================

def reset_filter_widgets():
    for key in FILTER_KEYS:
        st.session_state.pop(key, None)


def _on_sort_key_change():
    # A new sort key always starts ascending
    st.session_state["sort_order"] = SortOrder.ASC


def render_filter_sidebar(manager: ExpenseManager, categories: list[str]) -> None:
    """Filter and sort controls; writes the result into the view state."""
    default = ListViewState.default()
    st.session_state.setdefault("filter_from", default.criteria.date_from)
    st.session_state.setdefault("filter_to", default.criteria.date_to)
    st.session_state.setdefault("sort_by", default.sort_by)
    st.session_state.setdefault("sort_order", default.sort_order)

    st.sidebar.subheader("🔎 Filters")
    text = st.sidebar.text_input("Search description", key="filter_text")
    category = st.sidebar.selectbox(
        "Category",
        options=[""] + categories,
        format_func=lambda c: "All Categories" if c == "" else c,
        key="filter_category",
    )
    date_from = st.sidebar.date_input("From", key="filter_from")
    date_to = st.sidebar.date_input("To", key="filter_to")

    st.sidebar.subheader("↕️ Sort")
    sort_by = st.sidebar.selectbox(
        "Sort by",
        options=list(SORT_LABELS),
        format_func=lambda k: SORT_LABELS[k],
        key="sort_by",
        on_change=_on_sort_key_change,
    )
    sort_order = st.sidebar.radio(
        "Order",
        options=[SortOrder.ASC, SortOrder.DESC],
        format_func=lambda o: "Ascending" if o == SortOrder.ASC else "Descending",
        key="sort_order",
        horizontal=True,
    )

    state = ListViewState(sort_by=sort_by, sort_order=sort_order).with_criteria(
        text=text,
        category=category,
        date_from=date_from,
        date_to=date_to,
    )
    manager.view.set_state(state)

    col1, col2 = st.sidebar.columns(2)
    with col1:
        if st.button("📅 This month"):
            st.session_state["pending_month"] = month_bounds()
            st.rerun()
    with col2:
        if st.button("♻️ Reset", disabled=not state.has_custom_filters()):
            reset_filter_widgets()
            manager.view.reset()
            st.rerun()


def ensure_loaded(manager: ExpenseManager) -> bool:
    """Load the user's expenses once per sign-in. False if it failed."""
    user = manager.session.current_user
    if st.session_state.get("loaded_for") == user.id:
        return True

    try:
        run_async(manager.load())
    except (GatewayError, NotAuthenticatedError) as e:
        show_failure(e)
        if classify_failure(e) == FailureKind.TRANSPORT and st.button("🔄 Retry"):
            attempts = get_settings().app.refresh_retry_attempts
            try:
                run_async(refresh_with_retry(manager, attempts=attempts))
            except GatewayError as retry_error:
                show_failure(retry_error)
                return False
            st.session_state["loaded_for"] = user.id
            st.rerun()
        return False

    st.session_state["loaded_for"] = user.id
    return True


def render_expenses_page(manager: ExpenseManager):
    """Render the expense manager."""
    # The "this month" shortcut has to land before the date widgets exist
    pending = st.session_state.pop("pending_month", None)
    if pending:
        st.session_state["filter_from"], st.session_state["filter_to"] = pending

    st.title("💸 Your Expenses")

    if not ensure_loaded(manager):
        return

    categories = manager.validator.categories
    render_filter_sidebar(manager, categories)

    if st.button("🔄 Refresh"):
        try:
            run_async(manager.refresh())
        except GatewayError as e:
            show_failure(e)

    render_summary(manager)
    st.markdown("---")
    render_add_form(manager, categories)
    st.markdown("---")
    render_expense_list(manager, categories)
    st.markdown("---")
    render_export(manager)


def render_summary(manager: ExpenseManager):
    symbol = get_settings().app.currency_symbol
    summary = manager.summary()

    col1, col2 = st.columns([1, 2])
    with col1:
        st.markdown("### Total")
        st.markdown(
            f"<div class='big-number'>{format_amount(summary.total, symbol)}</div>",
            unsafe_allow_html=True,
        )
        st.caption(f"{summary.count} expenses in view")

    with col2:
        st.markdown("### By category")
        if summary.is_empty:
            st.info("No expenses match the current filters.")
        for category, breakdown in summary.ranked_categories():
            st.markdown(
                f"**{category}** - {format_amount(breakdown.subtotal, symbol)} "
                f"({format_percentage(breakdown.percentage)})"
            )
            st.progress(min(breakdown.percentage / 100, 1.0))


def _expense_form(form_key: str, categories: list[str], expense=None) -> tuple[bool, dict]:
    with st.form(form_key, clear_on_submit=expense is None):
        col1, col2 = st.columns(2)
        with col1:
            amount = st.text_input(
                "Amount",
                value="" if expense is None else str(expense.amount),
            )
            category_index = 0
            if expense is not None and expense.category in categories:
                category_index = categories.index(expense.category)
            category = st.selectbox("Category", options=categories, index=category_index)
        with col2:
            expense_date = st.date_input(
                "Date",
                value=date.today() if expense is None else expense.date,
            )
            description = st.text_area(
                "Description",
                value="" if expense is None else expense.description,
                max_chars=1000,
            )
        submitted = st.form_submit_button("💾 Save", type="primary")

    return submitted, {
        "amount": amount,
        "category": category,
        "description": description,
        "date": expense_date,
    }


def _submit(manager: ExpenseManager, call) -> bool:
    try:
        run_async(call)
    except ExpenseValidationError as e:
        st.warning(manager.validator.get_user_friendly_summary(e.result))
        return False
    except (GatewayError, NotAuthenticatedError) as e:
        show_failure(e)
        return False
    return True


def render_add_form(manager: ExpenseManager, categories: list[str]):
    with st.expander("➕ Add expense"):
        submitted, data = _expense_form("add_expense", categories)
        if submitted and _submit(manager, manager.add_expense(data)):
            st.success("✅ Expense added!")
            st.rerun()


def render_expense_list(manager: ExpenseManager, categories: list[str]):
    symbol = get_settings().app.currency_symbol
    rows = manager.rows()

    st.markdown(f"### Expenses ({len(rows)})")
    if not rows:
        st.info("📋 No expenses to show. Add one above or change the filters.")
        return

    for expense in rows:
        with st.container(border=True):
            col1, col2, col3, col4 = st.columns([1, 1, 3, 1])
            col1.markdown(f"**{format_amount(expense.amount, symbol)}**")
            col2.markdown(expense.category)
            col3.markdown(expense.description or "_no description_")
            col4.markdown(expense.date.isoformat())

            with st.expander("✏️ Edit / delete"):
                submitted, data = _expense_form(f"edit_{expense.id}", categories, expense)
                if submitted and _submit(manager, manager.update_expense(expense.id, data)):
                    st.success("✅ Expense updated!")
                    st.rerun()

                confirm = st.checkbox("Yes, delete this expense", key=f"confirm_delete_{expense.id}")
                if st.button("🗑️ Delete", key=f"delete_{expense.id}", disabled=not confirm):
                    if _submit(manager, manager.delete_expense(expense.id)):
                        st.success("Expense deleted.")
                        st.rerun()


def render_export(manager: ExpenseManager):
    st.markdown("### 📤 Export")
    artifact, message = manager.export()
    if artifact is None:
        st.info(message)
        return

    st.download_button(
        "⬇️ Download CSV",
        data=artifact.to_bytes(),
        file_name=artifact.filename,
        mime="text/csv",
    )
    st.caption(f"{artifact.row_count} expenses, exactly as filtered and sorted above.")


# =============================================================================
# OTHER PAGES
# =============================================================================

def render_activity_page(manager: ExpenseManager):
    """Recent audit events for this session."""
    st.title("🕑 Recent Activity")

    events = manager.audit_logger.recent_events(limit=50)
    if not events:
        st.info("Nothing has happened yet.")
        return

    for event in events:
        line = f"`{event.timestamp:%Y-%m-%d %H:%M:%S}` {event.description}"
        if event.error_message:
            st.error(f"{line} - {event.error_message}")
        elif event.severity.value == "warning":
            st.warning(line)
        else:
            st.markdown(line)


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()

    sections = [
        ("Expense API (gateway)", "gateway"),
        ("Session storage", "session"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    settings = get_settings()
    st.markdown("---")
    st.markdown("### Connection")
    st.markdown(f"Backend: `{settings.gateway.base_url}`")
    st.markdown(f"Categories: {', '.join(settings.app.categories_list)}")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
