from budgetmate.ledger import LedgerAggregator
from budgetmate.models import Transaction, TransactionType
from budgetmate.mood import AT_THE_EDGE, RELAXED, STRESSED, THOUGHTFUL, THRIVING, classify_mood
from budgetmate.rules import load_rules


def test_scenario_d_overspending_is_stressed():
    ledger = LedgerAggregator([
        Transaction.create('Salary', 1000, TransactionType.INCOME, 'Salary'),
        Transaction.create('Rent', 1500, TransactionType.EXPENSE, 'Housing'),
        Transaction.create('Piggy bank', 200, TransactionType.SAVING, 'Emergency Fund'),
    ])
    totals = ledger.totals()
    assert totals.balance == -700
    mood = classify_mood(totals.balance, totals.savings_rate)
    assert mood.key == STRESSED
    assert mood.emoji == '😰'


def test_negative_balance_wins_over_high_savings_rate():
    assert classify_mood(-1, 0.9).key == STRESSED


def test_thriving_from_twenty_percent():
    assert classify_mood(100, 0.2).key == THRIVING
    assert classify_mood(100, 0.45).key == THRIVING


def test_relaxed_reports_gap_to_thriving():
    mood = classify_mood(100, 0.15)
    assert mood.key == RELAXED
    assert "5.0% away" in mood.message
    assert classify_mood(100, 0.1).key == RELAXED


def test_thoughtful_reports_gap_to_relaxed():
    mood = classify_mood(10, 0.025)
    assert mood.key == THOUGHTFUL
    assert "7.5% away" in mood.message


def test_breaking_even_is_at_the_edge():
    mood = classify_mood(0, 0.0)
    assert mood.key == AT_THE_EDGE
    assert mood.emoji == '😐'


def test_thresholds_come_from_rules():
    rules = load_rules(thriving_rate=0.3, relaxed_rate=0.2)
    assert classify_mood(100, 0.25, rules).key == RELAXED
    assert classify_mood(100, 0.15, rules).key == THOUGHTFUL


def test_to_dict():
    assert classify_mood(0, 0.0).to_dict()['key'] == AT_THE_EDGE
