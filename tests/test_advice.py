from datetime import datetime
from types import SimpleNamespace

import pytest

from budgetmate.advice import (
    COACH_UNAVAILABLE,
    AdviceContext,
    AdviceGenerator,
    adopt_suggestion,
    build_coaching_prompt,
    build_goal_suggestions_prompt,
    build_prediction_prompt,
    build_score_advice_prompt,
    parse_json_payload,
)
from budgetmate.goals import GoalTracker
from budgetmate.health_score import ScoreSnapshot
from budgetmate.models import UserSettings, example_transactions
from budgetmate.summary import build_financial_snapshot


def demo_context(settings=None, previous_score=None):
    settings = settings or UserSettings.default()
    snapshot = build_financial_snapshot(example_transactions(settings), settings, previous_score=previous_score)
    return AdviceContext.from_snapshot(snapshot)


def claude_client(text=None, error=None):
    def create(**kwargs):
        if error:
            raise error
        return SimpleNamespace(content=[SimpleNamespace(text=text)])
    return SimpleNamespace(messages=SimpleNamespace(create=create))


def openai_client(text):
    def create(**kwargs):
        message = SimpleNamespace(content=text)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def generator_with(provider, client):
    generator = AdviceGenerator('mock')
    generator.provider = provider
    generator.client = client
    generator.model = 'test-model'
    return generator


def test_context_from_snapshot():
    previous = ScoreSnapshot(90, datetime(2024, 1, 1))
    context = demo_context(previous_score=previous)
    assert context.income == 3500
    assert context.expenses == 1800
    assert context.top_category == 'Housing'
    assert context.score == 100
    assert context.previous_score == 90
    assert context.income_in_smlv is None


def test_prompts_carry_metrics_and_regional_context():
    context = demo_context()
    coaching = build_coaching_prompt(context)
    assert 'Savings rate: 48.6%' in coaching
    assert '### 🔍 Detected Patterns' in coaching
    assert 'general personal finance' in coaching
    assert 'predictedTotal' in build_prediction_prompt(context)
    assert 'estimatedMonths' in build_goal_suggestions_prompt(context)
    assert 'Score: 100' in build_score_advice_prompt(context)

    colombian = demo_context(UserSettings.colombian())
    prompt = build_coaching_prompt(colombian)
    assert 'COLOMBIA MODE' in prompt
    assert '2.8 SMLV' in prompt
    assert 'corrientazos' in prompt
    assert 'Santa Marta' in build_goal_suggestions_prompt(colombian)


def test_parse_json_payload_is_lenient():
    assert parse_json_payload('{"reason": "ok", "tips": []}') == {'reason': 'ok', 'tips': []}
    assert parse_json_payload('```json\n[{"name": "Trip"}]\n```') == [{'name': 'Trip'}]
    assert parse_json_payload('Sure! Here it is: {"a": 1} Enjoy.') == {'a': 1}
    assert parse_json_payload('no json here') is None
    assert parse_json_payload('') is None
    assert parse_json_payload(None) is None


def test_mock_provider_answers_offline():
    generator = AdviceGenerator('mock')
    context = demo_context()
    assert not generator.uses_llm
    assert '### 🧠 Behaviour Analysis' in generator.coaching(context)
    prediction = generator.predict_expenses(context)
    assert prediction['riskyCategory'] == 'Housing'
    assert prediction['predictedTotal'] == round(1800 * 1.03)
    suggestions = generator.suggest_goals(context)
    assert len(suggestions) == 3
    assert all(s['targetAmount'] > 0 for s in suggestions)
    advice = generator.explain_score(context)
    assert set(advice) == {'reason', 'tips'}


def test_missing_key_or_unknown_provider_falls_back_to_mock():
    assert not AdviceGenerator('claude', api_key='').uses_llm
    unknown = AdviceGenerator('gemini', api_key='key')
    assert unknown.provider == 'mock'
    assert not unknown.uses_llm


def test_claude_client_is_created_with_key():
    generator = AdviceGenerator('claude', api_key='test-key')
    assert generator.uses_llm
    assert generator.model


def test_claude_json_answer_is_parsed():
    generator = generator_with('claude', claude_client('```json\n{"reason": "Less leisure", "tips": ["Cook"]}\n```'))
    assert generator.explain_score(demo_context()) == {'reason': 'Less leisure', 'tips': ['Cook']}


def test_openai_answers():
    generator = generator_with('openai', openai_client('[{"name": "Trip", "targetAmount": 900, "emoji": "✈️"}, {"oops": 1}]'))
    suggestions = generator.suggest_goals(demo_context())
    assert suggestions == [{'name': 'Trip', 'targetAmount': 900, 'emoji': '✈️'}]


def test_provider_failure_returns_fallbacks():
    generator = generator_with('claude', claude_client(error=RuntimeError('network down')))
    context = demo_context()
    assert generator.coaching(context) == COACH_UNAVAILABLE
    assert 'network down' in generator.last_error
    assert generator.predict_expenses(context) is None
    assert generator.suggest_goals(context) == []
    assert generator.explain_score(context) is None


def test_unexpected_shapes_are_rejected():
    generator = generator_with('claude', claude_client('{"something": "else"}'))
    context = demo_context()
    assert generator.predict_expenses(context) is None
    assert generator.explain_score(context) is None
    assert generator.suggest_goals(context) == []


def test_adopt_suggestion_creates_goal():
    tracker = GoalTracker()
    goal = adopt_suggestion(tracker, {'name': 'Trip', 'targetAmount': '1500', 'emoji': '✈️'})
    assert goal.target_amount == 1500
    assert goal.emoji == '✈️'
    assert tracker.get(goal.id) is goal


def test_adopt_suggestion_rejects_bad_input():
    tracker = GoalTracker()
    with pytest.raises(ValueError):
        adopt_suggestion(tracker, {'name': 'Trip', 'targetAmount': 'lots'})
    with pytest.raises(ValueError):
        adopt_suggestion(tracker, {'targetAmount': 100})
    assert len(tracker) == 0
