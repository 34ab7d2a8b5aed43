"""Display payload for one ledger, settings and period.

Runs the whole metrics pipeline (aggregation, 50/30/20 allocation,
alerts, health score, mood, peer comparison, projections and goal
progress) from scratch on every call. Nothing is patched incrementally,
so a settings change can never leave a stale ratio behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from functools import lru_cache
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple

from .budget_rule import BudgetAlert, BudgetAllocation, allocate, budget_alerts
from .comparison import CategoryComparison, PeerComparison, compare_food_spending, compare_savings
from .goals import GoalTracker
from .health_score import HealthScore, ScoreDelta, ScoreSnapshot, compute_score, score_delta, snapshot_due
from .ledger import LedgerAggregator, LedgerTotals
from .models import Period, SavingsGoal, Transaction, UserSettings
from .mood import Mood, classify_mood
from .regional import income_in_smlv, project_savings
from .rules import BudgetRules, default_rules

logger = logging.getLogger(__name__)


class _Metrics(NamedTuple):
    monthly: LedgerTotals
    totals: LedgerTotals
    overview: Tuple[Dict[str, Any], ...]
    category_breakdown: Tuple[Dict[str, Any], ...]
    allocation: BudgetAllocation
    alerts: Tuple[BudgetAlert, ...]
    score: HealthScore
    mood: Mood
    peer: PeerComparison
    food: CategoryComparison
    projection: Dict[int, float]
    smlv: Optional[float]
    has_transactions: bool


@dataclass(frozen=True)
class FinancialSnapshot:
    period: Period
    settings: UserSettings
    monthly_totals: LedgerTotals
    totals: LedgerTotals
    overview: List[Dict[str, Any]]
    category_breakdown: List[Dict[str, Any]]
    allocation: BudgetAllocation
    alerts: List[BudgetAlert]
    score: HealthScore
    score_delta: ScoreDelta
    snapshot_due: bool
    mood: Mood
    peer_comparison: PeerComparison
    food_comparison: CategoryComparison
    projection: Dict[int, float]
    income_in_smlv: Optional[float] = None
    goals: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'period': self.period.value,
            'settings': self.settings.to_dict(),
            'monthly_totals': self.monthly_totals.to_dict(),
            'totals': self.totals.to_dict(),
            'overview': self.overview,
            'category_breakdown': self.category_breakdown,
            'allocation': self.allocation.to_dict(),
            'alerts': [alert.to_dict() for alert in self.alerts],
            'score': self.score.to_dict(),
            'score_delta': self.score_delta.to_dict(),
            'snapshot_due': self.snapshot_due,
            'mood': self.mood.to_dict(),
            'peer_comparison': self.peer_comparison.to_dict(),
            'food_comparison': self.food_comparison.to_dict(),
            'projection': {str(months): amount for months, amount in self.projection.items()},
            'income_in_smlv': self.income_in_smlv,
            'goals': self.goals,
        }


def _compute_metrics(
    transactions: Tuple[Any, ...],
    settings: UserSettings,
    period: Period,
    rules: BudgetRules,
) -> _Metrics:
    ledger = LedgerAggregator(transactions)
    monthly = ledger.totals()
    allocation = allocate(ledger, rules)
    score = compute_score(ledger, rules, allocation=allocation)
    return _Metrics(
        monthly=monthly,
        totals=monthly.scaled(period.multiplier),
        overview=tuple(ledger.overview(period)),
        category_breakdown=tuple(ledger.category_breakdown(period)),
        allocation=allocation,
        alerts=tuple(budget_alerts(allocation, rules)),
        score=score,
        mood=classify_mood(monthly.balance, monthly.savings_rate, rules),
        peer=compare_savings(monthly.savings_rate, monthly.income, settings, rules),
        food=compare_food_spending(allocation.category_totals, monthly.income, settings, rules),
        projection=project_savings(monthly.potential_savings, rules),
        smlv=income_in_smlv(monthly.income, rules) if settings.is_colombian_mode else None,
        has_transactions=not ledger.is_empty,
    )


@lru_cache(maxsize=32)
def _cached_metrics(transactions: Tuple[Transaction, ...], settings: UserSettings, period: Period) -> _Metrics:
    return _compute_metrics(transactions, settings, period, default_rules())


def _as_tuple(transactions: Optional[Iterable[Any]]) -> Tuple[Any, ...]:
    try:
        return tuple(transactions or ())
    except TypeError:
        logger.warning("Ledger is not iterable (%r); treating it as empty", type(transactions))
        return ()


def _is_hashable(items: Tuple[Any, ...]) -> bool:
    try:
        hash(items)
    except TypeError:
        return False
    return True


def build_financial_snapshot(
    transactions: Optional[Iterable[Transaction]],
    settings: Optional[UserSettings] = None,
    period: Period = Period.MONTHLY,
    goals: Iterable[SavingsGoal] = (),
    previous_score: Optional[ScoreSnapshot] = None,
    rules: Optional[BudgetRules] = None,
) -> FinancialSnapshot:
    """Compute every derived figure the dashboard shows.

    Args:
        transactions: the ledger; raw record dicts are accepted too
        settings: regional mode and pay cycle, defaults to global mode
        period: MONTHLY or ANNUAL; only display totals are scaled
        goals: savings goals to report progress for
        previous_score: last persisted score baseline, if any
        rules: custom rules; the default rules are memoised per ledger

    Returns:
        A :class:`FinancialSnapshot` of plain dataclasses
    """
    settings = settings or UserSettings.default()
    period = Period(period)
    items = _as_tuple(transactions)

    if rules is None and _is_hashable(items):
        metrics = _cached_metrics(items, settings, period)
    else:
        metrics = _compute_metrics(items, settings, period, rules or default_rules())

    tracker = GoalTracker(goals, rules=rules)
    return FinancialSnapshot(
        period=period,
        settings=settings,
        monthly_totals=metrics.monthly,
        totals=metrics.totals,
        overview=[dict(row) for row in metrics.overview],
        category_breakdown=[dict(row) for row in metrics.category_breakdown],
        allocation=replace(
            metrics.allocation,
            category_totals=dict(metrics.allocation.category_totals),
            group_totals=dict(metrics.allocation.group_totals),
        ),
        alerts=list(metrics.alerts),
        score=metrics.score,
        score_delta=score_delta(metrics.score.score, previous_score),
        snapshot_due=snapshot_due(previous_score, rules=rules),
        mood=metrics.mood,
        peer_comparison=metrics.peer,
        food_comparison=metrics.food,
        projection=dict(metrics.projection),
        income_in_smlv=metrics.smlv,
        goals=tracker.progress(has_transactions=metrics.has_transactions),
    )


def clear_snapshot_cache() -> None:
    _cached_metrics.cache_clear()
