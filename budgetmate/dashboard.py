"""Streamlit app for BudgetMate.

The sidebar picks a local profile (a plain id, no credentials), the
regional mode and the period. The main area shows totals, the mood
banner, charts, the 50/30/20 allocation with its alerts, the health
score with its weekly delta, the peer comparison, savings goals and the
optional AI coach.

Session state holds the in-memory ledger for one profile at a time. It
is loaded from the user store when the profile changes and written back
after every mutation.

To run the dashboard from the command line::

    streamlit run budgetmate/dashboard.py
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, Dict, Optional

import streamlit as st

# Support both package execution and ``streamlit run budgetmate/dashboard.py``
if __package__:
    from . import visualization as viz
    from .advice import COACH_UNAVAILABLE, AdviceContext, AdviceGenerator, adopt_suggestion
    from .categorization import categories_for
    from .config import configure_logging
    from .formatting import escape_dollar_for_markdown, format_currency, format_percent
    from .goals import GoalTracker
    from .health_score import seed_previous_score, snapshot_score
    from .models import (
        Period,
        Transaction,
        TransactionType,
        example_goals,
        example_transactions,
    )
    from .regional import days_until_payday
    from .storage import UserStore
    from .summary import FinancialSnapshot, build_financial_snapshot
else:
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from budgetmate import visualization as viz  # type: ignore
    from budgetmate.advice import (  # type: ignore
        COACH_UNAVAILABLE,
        AdviceContext,
        AdviceGenerator,
        adopt_suggestion,
    )
    from budgetmate.categorization import categories_for  # type: ignore
    from budgetmate.config import configure_logging  # type: ignore
    from budgetmate.formatting import (  # type: ignore
        escape_dollar_for_markdown,
        format_currency,
        format_percent,
    )
    from budgetmate.goals import GoalTracker  # type: ignore
    from budgetmate.health_score import seed_previous_score, snapshot_score  # type: ignore
    from budgetmate.models import (  # type: ignore
        Period,
        Transaction,
        TransactionType,
        example_goals,
        example_transactions,
    )
    from budgetmate.regional import days_until_payday  # type: ignore
    from budgetmate.storage import UserStore  # type: ignore
    from budgetmate.summary import FinancialSnapshot, build_financial_snapshot  # type: ignore

logger = logging.getLogger(__name__)

DEFAULT_USER = 'default'
_store: Optional[UserStore] = None


def _get_store() -> UserStore:
    global _store
    if _store is None:
        _store = UserStore()
    return _store


def _rerun() -> None:
    rerun_fn = getattr(st, 'rerun', None) or getattr(st, 'experimental_rerun', None)
    if rerun_fn:
        rerun_fn()


def _money(amount: float) -> str:
    settings = st.session_state['settings']
    return format_currency(amount, settings.currency, settings.locale)


# Session state

def _ensure_session_state(user_id: str) -> None:
    """Load ``user_id`` into session state unless it is already active.

    Switching profile replaces the whole in-memory ledger.
    """
    state = st.session_state
    if state.get('user_id') == user_id:
        return
    data = _get_store().load_user_data(user_id)
    state['user_id'] = user_id
    state['transactions'] = data.transactions
    state['goals'] = data.goals
    state['settings'] = data.settings
    state['score_snapshot'] = data.score_snapshot
    state['period'] = Period.MONTHLY
    state['coach_text'] = None
    state['goal_suggestions'] = []
    state['prediction'] = None
    state['score_advice'] = None


def _persist(*parts: str) -> None:
    state = st.session_state
    store = _get_store()
    user_id = state['user_id']
    try:
        if 'transactions' in parts:
            store.save_transactions(user_id, state['transactions'])
        if 'goals' in parts:
            store.save_goals(user_id, state['goals'])
        if 'settings' in parts:
            store.save_settings(user_id, state['settings'])
        if 'score' in parts and state['score_snapshot'] is not None:
            store.save_score_snapshot(user_id, state['score_snapshot'])
    except OSError as e:
        logger.warning("Could not persist %s for %s: %s", ', '.join(parts), user_id, e)
        st.error(f"Could not save your data: {e}")


def _add_transaction(name: str, amount: float, transaction_type: TransactionType, category: str) -> Transaction:
    transaction = Transaction.create(name, amount, transaction_type, category)
    st.session_state['transactions'] = [transaction] + list(st.session_state['transactions'])
    _persist('transactions')
    return transaction


def _delete_transaction(transaction_id: str) -> None:
    st.session_state['transactions'] = [
        t for t in st.session_state['transactions'] if t.id != transaction_id
    ]
    _persist('transactions')


def _load_demo_data() -> None:
    settings = st.session_state['settings']
    st.session_state['transactions'] = example_transactions(settings)
    st.session_state['goals'] = example_goals(settings)
    _persist('transactions', 'goals')


def _toggle_colombian_mode() -> None:
    st.session_state['settings'] = st.session_state['settings'].toggle_colombian_mode()
    _persist('settings')


def _goal_tracker() -> GoalTracker:
    return GoalTracker(st.session_state['goals'])


def _commit_goals(tracker: GoalTracker) -> None:
    st.session_state['goals'] = list(tracker.goals)
    _persist('goals')


def _deposit_to_goal(goal_id: str) -> None:
    tracker = _goal_tracker()
    tracker.deposit(goal_id)
    _commit_goals(tracker)


def _delete_goal(goal_id: str) -> None:
    tracker = _goal_tracker()
    tracker.delete_goal(goal_id)
    _commit_goals(tracker)


def _ensure_score_baseline(score: int) -> None:
    """Seed the score baseline the first time a profile gets a score."""
    if st.session_state.get('score_snapshot') is None:
        st.session_state['score_snapshot'] = seed_previous_score(score)
        _persist('score')


def _take_score_snapshot(score: int) -> None:
    st.session_state['score_snapshot'] = snapshot_score(score)
    _persist('score')


def _current_snapshot() -> FinancialSnapshot:
    state = st.session_state
    return build_financial_snapshot(
        state['transactions'],
        state['settings'],
        state['period'],
        goals=state['goals'],
        previous_score=state['score_snapshot'],
    )


def _predict_next_month(generator: AdviceGenerator, context: AdviceContext) -> Optional[Dict[str, Any]]:
    """Ask for next month's spending forecast; None when the coach fails."""
    prediction = generator.predict_expenses(context)
    st.session_state['prediction'] = prediction
    return prediction


def _explain_score(generator: AdviceGenerator, context: AdviceContext) -> Optional[Dict[str, Any]]:
    advice = generator.explain_score(context)
    st.session_state['score_advice'] = advice
    return advice


def _adopt_goal_suggestion(index: int) -> None:
    """Turn a coach suggestion into a goal and drop it from the list."""
    suggestions = list(st.session_state.get('goal_suggestions') or [])
    if not 0 <= index < len(suggestions):
        return
    tracker = _goal_tracker()
    adopt_suggestion(tracker, suggestions[index])
    _commit_goals(tracker)
    del suggestions[index]
    st.session_state['goal_suggestions'] = suggestions


def _number(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# Rendering

def render_sidebar() -> None:
    st.sidebar.header("Profile")
    user_id = st.sidebar.text_input("Profile id", value=st.session_state.get('user_id', DEFAULT_USER))
    _ensure_session_state(user_id.strip() or DEFAULT_USER)

    settings = st.session_state['settings']
    st.sidebar.header("Settings")
    colombian = st.sidebar.toggle("🇨🇴 Colombia mode", value=settings.is_colombian_mode)
    if colombian != settings.is_colombian_mode:
        _toggle_colombian_mode()
        _rerun()

    period_label = st.sidebar.radio(
        "Period",
        options=["Monthly", "Annual"],
        index=0 if st.session_state['period'] is Period.MONTHLY else 1,
        horizontal=True,
    )
    st.session_state['period'] = Period.MONTHLY if period_label == "Monthly" else Period.ANNUAL

    if st.sidebar.button("Load demo data"):
        _load_demo_data()
        _rerun()


def render_transaction_form() -> None:
    settings = st.session_state['settings']
    with st.expander("➕ New transaction"):
        transaction_type = TransactionType(st.selectbox(
            "Type", options=[t.value for t in TransactionType], key="new_tx_type"
        ))
        with st.form("new_transaction", clear_on_submit=True):
            name = st.text_input("Description")
            amount = st.number_input("Amount", min_value=0.0, step=1.0)
            category = st.selectbox("Category", options=categories_for(transaction_type, settings))
            submitted = st.form_submit_button("Add")
        if submitted:
            if not name.strip() or amount <= 0:
                st.warning("Enter a description and an amount above zero.")
            else:
                _add_transaction(name.strip(), amount, transaction_type, category)
                _rerun()


def render_transactions() -> None:
    transactions = st.session_state['transactions']
    st.subheader("Transactions")
    if not transactions:
        st.info("No transactions yet. Add one or load the demo data.")
        return
    for transaction in transactions:
        col1, col2, col3, col4 = st.columns([4, 2, 2, 1])
        col1.write(f"**{transaction.name}** · {transaction.category}")
        col2.write(transaction.type.value.title())
        col3.write(escape_dollar_for_markdown(_money(transaction.amount)))
        if col4.button("🗑️", key=f"delete_tx_{transaction.id}"):
            _delete_transaction(transaction.id)
            _rerun()


def render_overview(snapshot: FinancialSnapshot) -> None:
    totals = snapshot.totals
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income", _money(totals.income))
    col2.metric("Expenses", _money(totals.expenses))
    col3.metric("Savings", _money(totals.savings))
    col4.metric("Balance", _money(totals.balance))

    mood = snapshot.mood
    st.info(f"{mood.emoji} **{mood.title}**  \n{mood.message}")

    if snapshot.settings.is_colombian_mode:
        days = days_until_payday(frequency=snapshot.settings.payment_frequency)
        payday = "Payday is today!" if days == 0 else f"{days} days to payday"
        smlv = snapshot.income_in_smlv if snapshot.income_in_smlv is not None else 0.0
        st.caption(
            f"🇨🇴 {snapshot.settings.payment_frequency.label} · {payday} · {smlv:.1f} SMLV"
        )

    left, right = st.columns(2)
    with left:
        st.plotly_chart(viz.create_expense_donut(snapshot.category_breakdown), use_container_width=True)
    with right:
        st.plotly_chart(viz.create_overview_bar_chart(snapshot.overview), use_container_width=True)


def render_budget(snapshot: FinancialSnapshot) -> None:
    st.subheader("50/30/20 rule")
    allocation = snapshot.allocation
    if not allocation.has_income:
        st.info("Add income to see how your budget is split.")
        return
    st.plotly_chart(viz.create_allocation_chart(allocation), use_container_width=True)
    for alert in snapshot.alerts:
        notify = {'danger': st.error, 'warning': st.warning}.get(alert.severity, st.info)
        notify(f"{alert.message} ({format_percent(alert.ratio)} of income)")

    projection = snapshot.projection
    cols = st.columns(len(projection) or 1)
    for col, (months, amount) in zip(cols, sorted(projection.items())):
        col.metric(f"Savings in {months // 12} year(s)", _money(amount))


def render_score(snapshot: FinancialSnapshot) -> None:
    score = snapshot.score
    _ensure_score_baseline(score.score)
    baseline = st.session_state['score_snapshot']
    change = score.score - baseline.score

    st.subheader("Financial health")
    left, right = st.columns([2, 3])
    with left:
        st.plotly_chart(viz.create_score_gauge(score), use_container_width=True)
        st.metric("Score", score.score, delta=change)
    with right:
        st.markdown(f"**{score.status}**: {score.description}")
        if score.breakdown is not None:
            st.table({key: [round(value, 1)] for key, value in score.breakdown.to_dict().items()})
        st.caption(f"Compared with the last weekly snapshot ({baseline.score}).")
        if st.button("Save weekly snapshot", disabled=not (snapshot.snapshot_due or baseline.seeded)):
            _take_score_snapshot(score.score)
            _rerun()

    peer = snapshot.peer_comparison
    if peer.has_income:
        st.metric("Savers you beat", f"{peer.percentile}%")
        st.write(peer.message)
        if snapshot.food_comparison.has_income:
            st.write(snapshot.food_comparison.message)

    if st.button("Why this score?"):
        generator = AdviceGenerator()
        with st.spinner("Thinking..."):
            advice = _explain_score(generator, AdviceContext.from_snapshot(snapshot))
        if advice is None:
            st.warning(COACH_UNAVAILABLE)
            if generator.last_error:
                st.caption(f"Coach unavailable: {generator.last_error}")
    advice = st.session_state.get('score_advice')
    if advice:
        st.markdown(f"💡 {escape_dollar_for_markdown(str(advice.get('reason', '')))}")
        for tip in advice.get('tips') or []:
            st.markdown(f"- {escape_dollar_for_markdown(str(tip))}")


def render_goals(snapshot: FinancialSnapshot) -> None:
    st.subheader("🎯 Savings goals")
    if snapshot.goals:
        st.plotly_chart(viz.create_goal_progress_chart(snapshot.goals), use_container_width=True)
    for row in snapshot.goals:
        col1, col2, col3 = st.columns([4, 1, 1])
        months = row['months_to_goal']
        eta = "done" if months == 0 else f"~{months} months" if months else "no estimate"
        col1.write(
            f"{row['emoji']} **{row['name']}** · "
            f"{escape_dollar_for_markdown(_money(row['current_amount']))} / "
            f"{escape_dollar_for_markdown(_money(row['target_amount']))} ({eta})"
        )
        if col2.button("Deposit", key=f"deposit_{row['id']}", disabled=row['status'] == 'Completed'):
            _deposit_to_goal(row['id'])
            _rerun()
        if col3.button("🗑️", key=f"delete_goal_{row['id']}"):
            _delete_goal(row['id'])
            _rerun()

    with st.form("new_goal", clear_on_submit=True):
        name = st.text_input("Goal name")
        target = st.number_input("Target amount", min_value=0.0, step=100.0)
        emoji = st.text_input("Emoji", value="🎯")
        if st.form_submit_button("Add goal"):
            tracker = _goal_tracker()
            try:
                tracker.add_goal(name, target, emoji=emoji)
            except ValueError as e:
                st.warning(str(e))
            else:
                _commit_goals(tracker)
                _rerun()


def render_coach(snapshot: FinancialSnapshot) -> None:
    st.subheader("🤖 AI coach")
    generator = AdviceGenerator()
    context = AdviceContext.from_snapshot(snapshot)
    col1, col2, col3 = st.columns(3)
    if col1.button("Analyse my finances"):
        with st.spinner("Thinking..."):
            st.session_state['coach_text'] = generator.coaching(context)
    if col2.button("Predict next month"):
        with st.spinner("Thinking..."):
            if _predict_next_month(generator, context) is None:
                st.warning(COACH_UNAVAILABLE)
    if col3.button("Suggest goals"):
        with st.spinner("Thinking..."):
            st.session_state['goal_suggestions'] = generator.suggest_goals(context)
    if generator.last_error:
        st.caption(f"Coach unavailable: {generator.last_error}")

    if st.session_state.get('coach_text'):
        st.markdown(escape_dollar_for_markdown(st.session_state['coach_text']))
    if st.session_state.get('prediction'):
        render_prediction(st.session_state['prediction'])
    for index, suggestion in enumerate(st.session_state.get('goal_suggestions') or []):
        label = f"{suggestion.get('emoji', '🎯')} {suggestion.get('name')} ({suggestion.get('reason', '')})"
        if st.button(f"Adopt: {label}", key=f"adopt_{index}"):
            try:
                _adopt_goal_suggestion(index)
            except ValueError as e:
                st.warning(str(e))
            else:
                _rerun()


def render_prediction(prediction: Dict[str, Any]) -> None:
    st.markdown("#### 🔮 Next month")
    total = _number(prediction.get('predictedTotal'))
    change = _number(prediction.get('percentageChange'))
    st.metric(
        "Predicted spending",
        _money(total) if total is not None else str(prediction.get('predictedTotal')),
        delta=f"{change:+.1f}%" if change is not None else None,
        delta_color="inverse",
    )
    if prediction.get('riskyCategory'):
        st.warning(f"⚠️ Watch {prediction['riskyCategory']}: {prediction.get('riskReason', '')}")
    if prediction.get('cutCategory'):
        st.info(f"✂️ {prediction['cutCategory']}: {prediction.get('cutSuggestion', '')}")


def main() -> None:
    """Entry point for the Streamlit app."""
    configure_logging()
    st.set_page_config(page_title="BudgetMate", page_icon="💸", layout="wide")
    render_sidebar()

    st.title("💸 BudgetMate")
    render_transaction_form()
    snapshot = _current_snapshot()

    overview_tab, budget_tab, score_tab, goals_tab, coach_tab = st.tabs(
        ["Overview", "Budget", "Health", "Goals", "Coach"]
    )
    with overview_tab:
        render_overview(snapshot)
        render_transactions()
    with budget_tab:
        render_budget(snapshot)
    with score_tab:
        render_score(snapshot)
    with goals_tab:
        render_goals(snapshot)
    with coach_tab:
        render_coach(snapshot)


if __name__ == "__main__":  # pragma: no cover
    main()
