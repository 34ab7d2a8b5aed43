import pytest

from budgetmate.ledger import LedgerAggregator, LedgerTotals, transactions_frame
from budgetmate.models import Period, Transaction, TransactionType


def tx(amount, type_, category, name=None):
    return Transaction.create(name or category, amount, type_, category)


def scenario_a():
    return [
        tx(3500, TransactionType.INCOME, 'Salary'),
        tx(1200, TransactionType.EXPENSE, 'Housing'),
        tx(450, TransactionType.EXPENSE, 'Groceries'),
        tx(150, TransactionType.EXPENSE, 'Transport'),
    ]


def test_empty_ledger_has_zero_totals():
    totals = LedgerAggregator([]).totals()
    assert totals == LedgerTotals()
    assert totals.savings_rate == 0
    assert LedgerAggregator(None).is_empty


def test_totals_and_derived_aggregates():
    totals = LedgerAggregator(scenario_a()).totals()
    assert totals.income == 3500
    assert totals.expenses == 1800
    assert totals.savings == 0
    assert totals.balance == 1700
    assert totals.potential_savings == 1700
    assert totals.savings_rate == pytest.approx(0.4857, abs=1e-4)


def test_potential_savings_never_below_explicit_savings():
    ledger = LedgerAggregator([
        tx(1000, TransactionType.INCOME, 'Salary'),
        tx(1500, TransactionType.EXPENSE, 'Housing'),
        tx(200, TransactionType.SAVING, 'Emergency Fund'),
    ])
    totals = ledger.totals()
    assert totals.balance == -700
    assert totals.potential_savings == 200
    assert totals.potential_savings >= totals.savings


@pytest.mark.parametrize('multiplier', [1, 12, 0.5, 7])
def test_scaling_invariance(multiplier):
    ledger = LedgerAggregator(scenario_a() + [tx(0.1, TransactionType.SAVING, 'Vacation')])
    base = ledger.totals()
    scaled = ledger.totals(multiplier)
    assert scaled.income / multiplier == pytest.approx(base.income)
    assert scaled.expenses / multiplier == pytest.approx(base.expenses)
    assert scaled.savings / multiplier == pytest.approx(base.savings)
    assert scaled.savings_rate == pytest.approx(base.savings_rate)


def test_category_totals_sorted_descending():
    ledger = LedgerAggregator(scenario_a() + [tx(300, TransactionType.EXPENSE, 'Groceries')])
    totals = ledger.category_totals()
    assert list(totals.index) == ['Housing', 'Groceries', 'Transport']
    assert totals['Groceries'] == 750


def test_category_breakdown_scales_with_period():
    ledger = LedgerAggregator(scenario_a())
    annual = ledger.category_breakdown(Period.ANNUAL)
    assert annual[0] == {'name': 'Housing', 'value': 14400.0}
    assert [row['name'] for row in annual] == ['Housing', 'Groceries', 'Transport']


def test_overview_rows():
    rows = LedgerAggregator(scenario_a()).overview(Period.ANNUAL)
    assert rows == [
        {'name': 'Income', 'amount': 42000.0},
        {'name': 'Expenses', 'amount': 21600.0},
        {'name': 'Savings', 'amount': 0.0},
    ]


def test_malformed_records_are_dropped():
    records = [
        {'id': '1', 'name': 'Salary', 'amount': 3500, 'type': 'income', 'category': 'Salary'},
        {'id': '2', 'name': 'Bad', 'amount': 'abc', 'type': 'EXPENSE', 'category': 'Housing'},
        {'id': '3', 'name': 'Neg', 'amount': -5, 'type': 'EXPENSE', 'category': 'Housing'},
        {'id': '4', 'name': 'Odd', 'amount': 10, 'type': 'GIFT', 'category': 'Other'},
        'not a record',
    ]
    frame = transactions_frame(records)
    assert list(frame['id']) == ['1']
    assert LedgerAggregator(records).totals().income == 3500


def test_non_finite_amounts_are_dropped():
    records = [
        {'id': '1', 'name': 'Salary', 'amount': 3500, 'type': 'INCOME', 'category': 'Salary'},
        {'id': '2', 'name': 'Bonus', 'amount': 'inf', 'type': 'INCOME', 'category': 'Salary'},
        {'id': '3', 'name': 'Rent', 'amount': '1e309', 'type': 'EXPENSE', 'category': 'Housing'},
        {'id': '4', 'name': 'Gap', 'amount': float('nan'), 'type': 'EXPENSE', 'category': 'Housing'},
    ]
    assert list(transactions_frame(records)['id']) == ['1']
    totals = LedgerAggregator(records).totals()
    assert totals.income == 3500
    assert totals.expenses == 0


def test_non_iterable_ledger_is_empty():
    ledger = LedgerAggregator(42)
    assert ledger.is_empty
    assert ledger.totals().income == 0
    assert ledger.expense_categories() == {}
