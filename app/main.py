"""
Streamlit Frontend for the Finance Tracker

A thin shell over ``FinanceTracker``: it collects input, forwards it with
the caller's RequestContext and renders what comes back. All numbers shown
here are computed by the aggregation engine; the UI does no arithmetic.

Pages:
1. Home - total balance, monthly summary, accounts, transactions
2. Add Transaction
3. Statistics - spending by category
4. Settings - accounts and categories
"""

import asyncio
from datetime import date

import streamlit as st

from finance_tracker.access import RequestContext
from finance_tracker.errors import FinanceTrackerError, ProtectedResourceError
from finance_tracker.models import TransactionType, YearMonth
from finance_tracker.orchestrator import FinanceTracker, create_app_components


# Page configuration
st.set_page_config(
    page_title="Finance Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_tracker() -> FinanceTracker:
    """Get or create the tracker (cached), bootstrapping the store once."""
    tracker = create_app_components()
    run_async(tracker.bootstrap())
    return tracker


def format_money(amount) -> str:
    return f"{amount:,.2f}"


def show_error(action: str, error: FinanceTrackerError) -> None:
    """Protected-resource refusals get their own message; everything else is generic."""
    if isinstance(error, ProtectedResourceError):
        st.warning(error.message)
    else:
        st.error(f"{action} failed: {error.message}")


def main():
    """Main application entry point."""
    tracker = get_tracker()

    if "context" not in st.session_state:
        render_login_page(tracker)
        return

    context: RequestContext = st.session_state.context

    st.sidebar.title("💰 Finance Tracker")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["🏠 Home", "➕ Add Transaction", "📊 Statistics", "⚙️ Settings"],
        index=0,
    )

    month = st.sidebar.date_input("Month", value=date.today())
    year_month = YearMonth.of(month)

    st.sidebar.markdown("---")
    if st.sidebar.button("Sign out"):
        del st.session_state["context"]
        st.rerun()

    try:
        if page == "🏠 Home":
            render_home_page(tracker, context, year_month)
        elif page == "➕ Add Transaction":
            render_add_transaction_page(tracker, context)
        elif page == "📊 Statistics":
            render_statistics_page(tracker, context, year_month)
        elif page == "⚙️ Settings":
            render_settings_page(tracker, context)
    except FinanceTrackerError as e:
        show_error("Loading", e)


def render_login_page(tracker: FinanceTracker):
    """Render the sign-in form."""
    st.title("Finance")
    st.markdown("Sign in to manage your finances")

    with st.form("login"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted:
        context = RequestContext(email=email, password=password)
        try:
            user = run_async(tracker.authenticate(context))
        except FinanceTrackerError:
            st.error("Invalid email or password")
            return
        st.session_state.context = context
        st.session_state.user_name = user.full_name
        st.rerun()


def render_home_page(tracker: FinanceTracker, context: RequestContext, month: YearMonth):
    """Render balances, the monthly summary and the transaction list."""
    st.title(f"Hello, {st.session_state.get('user_name', '')}")

    accounts = run_async(tracker.list_accounts(context))
    balances = run_async(tracker.account_balances(context))
    total = run_async(tracker.total_balance(context))
    summary = run_async(tracker.monthly_summary(context, month))

    st.metric("Total balance", format_money(total))

    col1, col2, col3 = st.columns(3)
    col1.metric(f"Income {month}", format_money(summary.total_income))
    col2.metric(f"Expenses {month}", format_money(summary.total_expenses))
    col3.metric("Net", format_money(summary.net))

    st.subheader("Financial accounts")
    account_cols = st.columns(max(len(accounts), 1))
    for col, account in zip(account_cols, accounts):
        col.metric(account.name, format_money(balances.get(account.id, 0)))

    st.subheader("Transactions")
    options = {"All accounts": None, **{a.name: a.id for a in accounts}}
    selected = st.selectbox("Account", list(options.keys()))
    transactions = run_async(tracker.list_transactions(context, options[selected], month))

    if not transactions:
        st.info("No transactions this month.")
        return

    st.dataframe(
        [
            {
                "Date": t.date.isoformat(),
                "Title": t.title,
                "Category": t.category.name,
                "Amount": format_money(t.amount if t.type == TransactionType.INCOME else -t.amount),
            }
            for t in transactions
        ],
        use_container_width=True,
        hide_index=True,
    )


def render_add_transaction_page(tracker: FinanceTracker, context: RequestContext):
    """Render the add-transaction form."""
    st.title("➕ Add Transaction")

    accounts = run_async(tracker.list_accounts(context))
    categories = run_async(tracker.list_categories(context))

    kind = st.radio("Type", [t.value for t in TransactionType], horizontal=True)
    matching = [c for c in categories if c.type.value == kind]

    with st.form("add_transaction", clear_on_submit=True):
        title = st.text_input("Title")
        amount = st.number_input("Amount", min_value=0.0, step=0.01, format="%.2f")
        when = st.date_input("Date", value=date.today())
        account = st.selectbox("Account", accounts, format_func=lambda a: a.name)
        category = st.selectbox("Category", matching, format_func=lambda c: c.name)
        submitted = st.form_submit_button("Save", type="primary")

    if submitted:
        try:
            run_async(tracker.record_transaction(context, {
                "title": title,
                "amount": f"{amount:.2f}",
                "type": kind,
                "date": when,
                "financial_account_id": account.id if account else None,
                "category_id": category.id if category else None,
            }))
        except FinanceTrackerError as e:
            show_error("Saving transaction", e)
            return
        st.success("Transaction saved")


def render_statistics_page(tracker: FinanceTracker, context: RequestContext, month: YearMonth):
    """Render spending by category for the month."""
    st.title(f"📊 Statistics {month}")

    accounts = run_async(tracker.list_accounts(context))
    options = {"All accounts": None, **{a.name: a.id for a in accounts}}
    selected = st.selectbox("Account", list(options.keys()))

    spending = run_async(tracker.category_spending(context, month, options[selected]))
    expenses = [s for s in spending if s.type == TransactionType.EXPENSE]
    income = [s for s in spending if s.type == TransactionType.INCOME]

    if not spending:
        st.info("No transactions this month.")
        return

    st.subheader("Expenses by category")
    if expenses:
        st.bar_chart({s.category_name: float(s.amount) for s in expenses})
    st.subheader("Income by category")
    if income:
        st.bar_chart({s.category_name: float(s.amount) for s in income})


def render_settings_page(tracker: FinanceTracker, context: RequestContext):
    """Render account and category management."""
    st.title("⚙️ Settings")

    st.subheader("Financial accounts")
    for account in run_async(tracker.list_accounts(context)):
        col1, col2 = st.columns([4, 1])
        col1.write(account.name + (" 🔒" if account.is_protected else ""))
        if col2.button("Delete", key=f"delete_account_{account.id}"):
            try:
                run_async(tracker.delete_account(context, account.id))
            except FinanceTrackerError as e:
                show_error("Deleting account", e)
            else:
                st.success("Financial account deleted")
                st.rerun()

    with st.form("new_account", clear_on_submit=True):
        name = st.text_input("New account name")
        if st.form_submit_button("Create account"):
            try:
                run_async(tracker.create_account(context, name))
            except FinanceTrackerError as e:
                show_error("Creating account", e)
            else:
                st.success("Financial account created")
                st.rerun()

    st.subheader("Categories")
    for category in run_async(tracker.list_categories(context)):
        col1, col2, col3 = st.columns([3, 1, 1])
        col1.write(category.name)
        col2.write(category.type.value)
        if col3.button("Delete", key=f"delete_category_{category.id}"):
            try:
                run_async(tracker.delete_category(context, category.id))
            except FinanceTrackerError as e:
                show_error("Deleting category", e)
            else:
                st.success('Category deleted - transactions moved to "Other"')
                st.rerun()

    with st.form("new_category", clear_on_submit=True):
        name = st.text_input("New category name")
        kind = st.selectbox("Type", [t.value for t in TransactionType])
        if st.form_submit_button("Create category"):
            try:
                run_async(tracker.create_category(context, name, kind))
            except FinanceTrackerError as e:
                show_error("Creating category", e)
            else:
                st.success("Category created")
                st.rerun()


if __name__ == "__main__":
    main()
