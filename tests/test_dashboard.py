from types import SimpleNamespace

import pytest

from budgetmate import dashboard
from budgetmate.advice import AdviceContext, AdviceGenerator
from budgetmate.models import TransactionType, UserSettings
from budgetmate.storage import UserStore


@pytest.fixture
def store(tmp_path, monkeypatch):
    monkeypatch.setattr(dashboard, 'st', SimpleNamespace(session_state={}, error=pytest.fail))
    user_store = UserStore(tmp_path)
    monkeypatch.setattr(dashboard, '_store', user_store)
    return user_store


def state():
    return dashboard.st.session_state


def test_new_profile_starts_empty(store):
    dashboard._ensure_session_state('ana')
    assert state()['user_id'] == 'ana'
    assert state()['transactions'] == []
    assert state()['goals'] == []
    assert state()['settings'] == UserSettings.default()
    assert state()['score_snapshot'] is None


def test_added_transactions_are_persisted_newest_first(store):
    dashboard._ensure_session_state('ana')
    dashboard._add_transaction('Salary', 3500, TransactionType.INCOME, 'Salary')
    latest = dashboard._add_transaction('Rent', 1200, TransactionType.EXPENSE, 'Housing')
    assert state()['transactions'][0] is latest
    assert [t.name for t in store.load_transactions('ana')] == ['Rent', 'Salary']

    dashboard._delete_transaction(latest.id)
    assert [t.name for t in store.load_transactions('ana')] == ['Salary']


def test_switching_profile_replaces_ledger(store):
    dashboard._ensure_session_state('ana')
    dashboard._add_transaction('Salary', 3500, TransactionType.INCOME, 'Salary')
    dashboard._ensure_session_state('ben')
    assert state()['transactions'] == []
    dashboard._ensure_session_state('ana')
    assert len(state()['transactions']) == 1


def test_demo_data_and_goal_deposit(store):
    dashboard._ensure_session_state('ana')
    dashboard._load_demo_data()
    dashboard._deposit_to_goal('g1')
    assert state()['goals'][0].current_amount == 1700
    assert store.load_goals('ana')[0].current_amount == 1700

    dashboard._delete_goal('g1')
    assert store.load_goals('ana') == []


def test_colombian_toggle_is_persisted(store):
    dashboard._ensure_session_state('ana')
    dashboard._toggle_colombian_mode()
    assert state()['settings'].is_colombian_mode
    assert store.load_settings('ana').is_colombian_mode


def test_score_baseline_is_seeded_once(store):
    dashboard._ensure_session_state('ana')
    dashboard._ensure_score_baseline(80)
    seeded = state()['score_snapshot']
    assert seeded.seeded
    assert seeded.score <= 80
    dashboard._ensure_score_baseline(40)
    assert state()['score_snapshot'] is seeded
    assert store.load_score_snapshot('ana') == seeded


def test_weekly_snapshot_replaces_baseline(store):
    dashboard._ensure_session_state('ana')
    dashboard._ensure_score_baseline(80)
    dashboard._take_score_snapshot(90)
    snapshot = store.load_score_snapshot('ana')
    assert snapshot.score == 90
    assert not snapshot.seeded


def test_current_snapshot_reflects_session(store):
    dashboard._ensure_session_state('ana')
    dashboard._load_demo_data()
    snapshot = dashboard._current_snapshot()
    assert snapshot.totals.income == 3500
    assert snapshot.goals[0]['name'] == 'Emergency Fund'


def demo_context():
    dashboard._ensure_session_state('ana')
    dashboard._load_demo_data()
    return AdviceContext.from_snapshot(dashboard._current_snapshot())


def failing_generator():
    def create(**kwargs):
        raise RuntimeError('network down')
    generator = AdviceGenerator('mock')
    generator.provider = 'claude'
    generator.client = SimpleNamespace(messages=SimpleNamespace(create=create))
    return generator


def test_prediction_is_kept_in_session(store):
    prediction = dashboard._predict_next_month(AdviceGenerator('mock'), demo_context())
    assert prediction['riskyCategory'] == 'Housing'
    assert state()['prediction'] is prediction

    assert dashboard._predict_next_month(failing_generator(), demo_context()) is None
    assert state()['prediction'] is None


def test_score_explanation_is_kept_in_session(store):
    advice = dashboard._explain_score(AdviceGenerator('mock'), demo_context())
    assert set(advice) == {'reason', 'tips'}
    assert state()['score_advice'] is advice
    assert dashboard._explain_score(failing_generator(), demo_context()) is None


def test_switching_profile_clears_coach_answers(store):
    dashboard._predict_next_month(AdviceGenerator('mock'), demo_context())
    dashboard._ensure_session_state('ben')
    assert state()['prediction'] is None
    assert state()['score_advice'] is None


def test_adopted_suggestion_leaves_the_list(store):
    dashboard._ensure_session_state('ana')
    state()['goal_suggestions'] = [
        {'name': 'Trip', 'targetAmount': 900, 'emoji': '✈️'},
        {'name': 'Bike', 'targetAmount': 400},
    ]
    dashboard._adopt_goal_suggestion(0)
    assert [g.name for g in state()['goals']] == ['Trip']
    assert [s['name'] for s in state()['goal_suggestions']] == ['Bike']
    assert [g.name for g in store.load_goals('ana')] == ['Trip']

    dashboard._adopt_goal_suggestion(5)
    assert len(state()['goals']) == 1


def test_save_failure_is_reported(tmp_path, monkeypatch):
    errors = []
    monkeypatch.setattr(dashboard, 'st', SimpleNamespace(session_state={}, error=errors.append))
    blocker = tmp_path / 'blocker'
    blocker.write_text('not a directory', encoding='utf-8')
    monkeypatch.setattr(dashboard, '_store', UserStore(blocker))
    dashboard._ensure_session_state('ana')
    dashboard._toggle_colombian_mode()
    assert errors and 'Could not save' in errors[0]
