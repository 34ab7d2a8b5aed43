import pytest

from budgetmate.budget_rule import allocate, budget_alerts, split_needs_wants
from budgetmate.ledger import LedgerAggregator
from budgetmate.models import Transaction, TransactionType
from budgetmate.rules import load_rules


def ledger_of(income, *expenses, savings=0):
    rows = [Transaction.create('Salary', income, TransactionType.INCOME, 'Salary')] if income else []
    rows += [Transaction.create(cat, amount, TransactionType.EXPENSE, cat) for cat, amount in expenses]
    if savings:
        rows.append(Transaction.create('Saving', savings, TransactionType.SAVING, 'Emergency Fund'))
    return LedgerAggregator(rows)


def test_scenario_a_allocation():
    allocation = allocate(ledger_of(3500, ('Housing', 1200), ('Groceries', 450), ('Transport', 150)))
    assert allocation.needs == 1800
    assert allocation.wants == 0
    assert allocation.needs_ratio == pytest.approx(1800 / 3500)
    assert allocation.savings_ratio == pytest.approx(1700 / 3500)
    assert not allocation.needs_over_target
    assert not allocation.wants_over_target
    assert not allocation.savings_under_target
    assert budget_alerts(allocation) == []


def test_overshoot_is_detected_above_full_income():
    allocation = allocate(ledger_of(1000, ('Housing', 1300)))
    assert allocation.needs_ratio == pytest.approx(1.3)
    assert allocation.display_ratios['needs'] == 1.0
    assert allocation.needs_over_target
    assert allocation.savings_under_target
    codes = [alert.code for alert in budget_alerts(allocation)]
    assert codes == ['housing']


def test_alerts_fire_independently():
    allocation = allocate(ledger_of(
        1000,
        ('Housing', 400),
        ('Debt', 350),
        ('Groceries', 250),
        ('Leisure', 400),
    ))
    alerts = budget_alerts(allocation)
    assert [alert.code for alert in alerts] == ['housing', 'debt', 'food', 'wants']
    debt = alerts[1]
    assert debt.severity == 'danger'
    assert debt.ratio == pytest.approx(0.35)
    assert debt.threshold == 0.30


def test_alert_threshold_is_strict():
    allocation = allocate(ledger_of(1000, ('Housing', 350)))
    assert budget_alerts(allocation) == []


def test_regional_categories_feed_group_alerts():
    allocation = allocate(ledger_of(1000, ('Vivienda/Arriendo', 400), ('Mercado', 250)))
    assert allocation.group_totals == {'housing': 400, 'food': 250}
    assert [alert.code for alert in budget_alerts(allocation)] == ['housing', 'food']


def test_zero_income_has_no_ratios_or_alerts():
    allocation = allocate(ledger_of(0, ('Housing', 500), ('Leisure', 200)))
    assert not allocation.has_income
    assert allocation.needs == 500
    assert allocation.wants == 200
    assert allocation.needs_ratio == 0
    assert allocation.wants_ratio == 0
    assert not allocation.needs_over_target
    assert budget_alerts(allocation) == []


def test_display_ratios_are_clamped():
    allocation = allocate(ledger_of(100, ('Leisure', 250)))
    assert allocation.wants_ratio == pytest.approx(2.5)
    assert allocation.display_ratios == {'needs': 0.0, 'wants': 1.0, 'savings': 0.0}


def test_unknown_categories_count_as_wants():
    needs, wants, groups = split_needs_wants({'Housing': 100.0, 'Crypto': 50.0})
    assert (needs, wants) == (100.0, 50.0)
    assert groups == {'housing': 100.0}


def test_custom_flags_from_rules():
    rules = load_rules(needs_flag=0.4)
    allocation = allocate(ledger_of(3500, ('Housing', 1200), ('Groceries', 450), ('Transport', 150)), rules)
    assert allocation.needs_over_target


def test_to_dict_includes_display_ratios():
    data = allocate(ledger_of(1000, ('Housing', 500))).to_dict()
    assert data['needs_ratio'] == 0.5
    assert data['display_ratios']['needs'] == 0.5
