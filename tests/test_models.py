import math
from datetime import datetime, timezone

import pytest

from budgetmate.models import (
    PaymentFrequency,
    Period,
    SavingsGoal,
    Transaction,
    TransactionType,
    UserSettings,
    example_goals,
    example_transactions,
    parse_timestamp,
    with_current_amount,
)


def make_transaction(**overrides):
    fields = {
        'id': 't1',
        'name': 'Rent',
        'amount': 1200,
        'type': TransactionType.EXPENSE,
        'category': 'Housing',
        'date': '2024-03-01T00:00:00Z',
    }
    fields.update(overrides)
    return Transaction(**fields)


def test_transaction_rejects_negative_amount():
    with pytest.raises(ValueError):
        make_transaction(amount=-1)


def test_transaction_rejects_nan_and_text_amounts():
    with pytest.raises(ValueError):
        make_transaction(amount=math.nan)
    with pytest.raises(ValueError):
        make_transaction(amount='lots')


def test_transaction_rejects_unknown_type():
    with pytest.raises(ValueError):
        make_transaction(type='GIFT')


def test_transaction_coerces_type_and_date():
    transaction = make_transaction(type='INCOME', amount='3500')
    assert transaction.type is TransactionType.INCOME
    assert transaction.amount == 3500.0
    assert transaction.date.year == 2024
    assert transaction.date.tzinfo is not None


def test_create_assigns_unique_ids_and_timestamp():
    first = Transaction.create('Salary', 3500, TransactionType.INCOME, 'Salary')
    second = Transaction.create('Salary', 3500, TransactionType.INCOME, 'Salary')
    assert first.id != second.id
    assert first.date.tzinfo is not None


def test_transaction_dict_round_trip():
    transaction = make_transaction()
    data = transaction.to_dict()
    assert data['type'] == 'EXPENSE'
    restored = Transaction.from_dict(data)
    assert restored.id == transaction.id
    assert restored.amount == transaction.amount
    assert restored.date == transaction.date


def test_goal_validation():
    with pytest.raises(ValueError):
        SavingsGoal('g', '', 100)
    with pytest.raises(ValueError):
        SavingsGoal('g', 'Trip', 0)
    with pytest.raises(ValueError):
        SavingsGoal('g', 'Trip', 100, current_amount=150)
    with pytest.raises(ValueError):
        SavingsGoal('g', 'Trip', 100, current_amount=-1)


def test_goal_progress_properties():
    goal = SavingsGoal('g1', 'Emergency Fund', 5000, 1200)
    assert goal.remaining == 3800
    assert goal.progress == pytest.approx(0.24)
    assert not goal.is_complete
    assert with_current_amount(goal, 5000).is_complete


def test_goal_dict_uses_camel_case():
    goal = SavingsGoal('g1', 'Emergency Fund', 5000, 1200, deadline='2025-01-01')
    data = goal.to_dict()
    assert data['targetAmount'] == 5000
    assert data['currentAmount'] == 1200
    assert data['deadline'].startswith('2025-01-01')
    assert SavingsGoal.from_dict(data).deadline == goal.deadline


def test_with_current_amount_validates():
    goal = SavingsGoal('g1', 'Trip', 100)
    with pytest.raises(ValueError):
        with_current_amount(goal, 101)


def test_settings_toggle_switches_regional_preset():
    settings = UserSettings.default()
    colombian = settings.toggle_colombian_mode()
    assert colombian.is_colombian_mode
    assert colombian.currency == 'COP'
    assert colombian.locale == 'es-CO'
    assert colombian.payment_frequency is PaymentFrequency.BIWEEKLY
    assert colombian.toggle_colombian_mode() == UserSettings.default()


def test_settings_dict_round_trip():
    data = UserSettings.colombian().to_dict()
    assert data['isColombianMode'] is True
    assert data['paymentFrequency'] == 'BIWEEKLY'
    assert UserSettings.from_dict(data) == UserSettings.colombian()
    assert UserSettings.from_dict({}) == UserSettings.default()


def test_payment_frequency_accepts_labels():
    assert PaymentFrequency.parse('Quincenal') is PaymentFrequency.BIWEEKLY
    assert PaymentFrequency.parse('weekly') is PaymentFrequency.WEEKLY
    assert PaymentFrequency.MONTHLY.label == 'Mensual'
    with pytest.raises(ValueError):
        PaymentFrequency.parse('yearly')


def test_period_multiplier():
    assert Period.MONTHLY.multiplier == 1
    assert Period.ANNUAL.multiplier == 12


def test_parse_timestamp_accepts_datetimes_and_rejects_garbage():
    now = datetime.now(timezone.utc)
    assert parse_timestamp(now) is now
    with pytest.raises(ValueError):
        parse_timestamp('not a date')


def test_example_data_per_mode():
    global_ledger = example_transactions(UserSettings.default())
    assert sum(t.amount for t in global_ledger if t.type is TransactionType.INCOME) == 3500
    assert example_goals(UserSettings.default())[0].name == 'Emergency Fund'

    colombian = UserSettings.colombian()
    colombian_ledger = example_transactions(colombian)
    assert len(colombian_ledger) == 6
    assert sum(t.amount for t in colombian_ledger if t.type is TransactionType.INCOME) == 3_600_000
    assert example_goals(colombian)[0].target_amount == 2_000_000
