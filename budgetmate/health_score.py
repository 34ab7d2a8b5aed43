"""Composite financial health score.

The score (0 to 100) is the rounded sum of four capped sub-scores:

* savings (max 35): linear ramp to a 20% savings rate
* stability (max 25): full marks while expenses stay under 90% of income,
  then one point lost per percentage point above it
* control (max 25): same decay shape, on wants above 30% of income
* solvency (max 15): all or nothing on a strictly positive raw balance

Reading a score never writes history. The previous-week baseline is a
separate :class:`ScoreSnapshot` that callers seed and replace
explicitly (see :func:`seed_previous_score` and :func:`snapshot_score`).
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from .budget_rule import BudgetAllocation, allocate
from .ledger import LedgerAggregator
from .models import parse_timestamp
from .rules import BudgetRules, ScoreTier, default_rules

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreBreakdown:
    savings: float
    stability: float
    control: float
    solvency: float

    @property
    def total(self) -> float:
        return self.savings + self.stability + self.control + self.solvency

    def to_dict(self) -> Dict[str, float]:
        return {
            'savings': self.savings,
            'stability': self.stability,
            'control': self.control,
            'solvency': self.solvency,
        }


@dataclass(frozen=True)
class HealthScore:
    score: int
    tier: ScoreTier
    breakdown: Optional[ScoreBreakdown] = None
    savings_rate: float = 0.0
    expense_ratio: float = 0.0
    wants_ratio: float = 0.0

    @property
    def label(self) -> str:
        return self.tier.label

    @property
    def status(self) -> str:
        return self.tier.status

    @property
    def description(self) -> str:
        return self.tier.description

    @property
    def color(self) -> str:
        return self.tier.color

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': self.score,
            'label': self.label,
            'status': self.status,
            'description': self.description,
            'color': self.color,
            'breakdown': self.breakdown.to_dict() if self.breakdown else None,
            'savings_rate': self.savings_rate,
            'expense_ratio': self.expense_ratio,
            'wants_ratio': self.wants_ratio,
        }


def _decay(ratio: float, threshold: float, cap: float, per_unit: float) -> float:
    if ratio < threshold:
        return cap
    return max(0.0, cap - (ratio - threshold) * per_unit)


def savings_subscore(savings_rate: float, rules: Optional[BudgetRules] = None) -> float:
    rules = rules or default_rules()
    ramp = max(0.0, savings_rate) / rules.savings_score_target * rules.savings_max
    return min(rules.savings_max, ramp)


def stability_subscore(expense_ratio: float, rules: Optional[BudgetRules] = None) -> float:
    rules = rules or default_rules()
    return _decay(expense_ratio, rules.stability_threshold, rules.stability_max, rules.decay_per_unit)


def control_subscore(wants_ratio: float, rules: Optional[BudgetRules] = None) -> float:
    rules = rules or default_rules()
    return _decay(wants_ratio, rules.control_threshold, rules.control_max, rules.decay_per_unit)


def solvency_subscore(balance: float, rules: Optional[BudgetRules] = None) -> float:
    rules = rules or default_rules()
    return rules.solvency_max if balance > 0 else 0.0


def health_tier(score: float, rules: Optional[BudgetRules] = None) -> ScoreTier:
    """Label tier for a score; the same thresholds drive labels and descriptions."""
    return (rules or default_rules()).tier_for(score)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_score(
    ledger: LedgerAggregator,
    rules: Optional[BudgetRules] = None,
    allocation: Optional[BudgetAllocation] = None,
) -> HealthScore:
    """Score a ledger. Pure: no history is read or written.

    With zero income the score is 0 and there is no breakdown.
    """
    rules = rules or default_rules()
    totals = ledger.totals()
    if totals.income <= 0:
        return HealthScore(score=0, tier=health_tier(0, rules))

    allocation = allocation or allocate(ledger, rules)
    savings_rate = totals.savings_rate
    expense_ratio = totals.expenses / totals.income
    wants_ratio = allocation.wants_ratio

    breakdown = ScoreBreakdown(
        savings=savings_subscore(savings_rate, rules),
        stability=stability_subscore(expense_ratio, rules),
        control=control_subscore(wants_ratio, rules),
        solvency=solvency_subscore(totals.balance, rules),
    )
    score = max(0, min(100, round_half_up(breakdown.total)))
    return HealthScore(
        score=score,
        tier=health_tier(score, rules),
        breakdown=breakdown,
        savings_rate=savings_rate,
        expense_ratio=expense_ratio,
        wants_ratio=wants_ratio,
    )


@dataclass(frozen=True)
class ScoreSnapshot:
    """Persisted baseline score; ``seeded`` marks the synthetic first value."""

    score: int
    taken_at: datetime
    seeded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': self.score,
            'takenAt': self.taken_at.isoformat(),
            'seeded': self.seeded,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScoreSnapshot':
        return cls(
            score=int(data['score']),
            taken_at=parse_timestamp(data['takenAt']),
            seeded=bool(data.get('seeded', False)),
        )


@dataclass(frozen=True)
class ScoreDelta:
    previous: int
    current: int

    @property
    def change(self) -> int:
        return self.current - self.previous

    @property
    def direction(self) -> str:
        if self.change > 0:
            return 'up'
        if self.change < 0:
            return 'down'
        return 'flat'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'previous': self.previous,
            'current': self.current,
            'change': self.change,
            'direction': self.direction,
        }


def seed_previous_score(
    score: int,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
    rules: Optional[BudgetRules] = None,
) -> ScoreSnapshot:
    """Bootstrap a baseline a few points below the first score.

    This is a display device so a new user sees movement; the result is
    flagged ``seeded`` and is not a real historical value.
    """
    rules = rules or default_rules()
    rng = rng or random.Random()
    offset = rng.randint(0, rules.seed_jitter_max)
    snapshot = ScoreSnapshot(
        score=max(0, score - offset),
        taken_at=now or datetime.now(timezone.utc),
        seeded=True,
    )
    logger.info("Seeded previous score %d from %d", snapshot.score, score)
    return snapshot


def snapshot_score(score: int, timestamp: Optional[datetime] = None) -> ScoreSnapshot:
    """Record ``score`` as the new baseline (callers persist it)."""
    snapshot = ScoreSnapshot(score=int(score), taken_at=timestamp or datetime.now(timezone.utc))
    logger.info("Score snapshot %d taken at %s", snapshot.score, snapshot.taken_at.isoformat())
    return snapshot


def snapshot_due(
    snapshot: Optional[ScoreSnapshot],
    now: Optional[datetime] = None,
    rules: Optional[BudgetRules] = None,
) -> bool:
    """True when no baseline exists or the last one is older than the interval."""
    if snapshot is None:
        return True
    rules = rules or default_rules()
    now = now or datetime.now(timezone.utc)
    taken_at = snapshot.taken_at
    if (taken_at.tzinfo is None) != (now.tzinfo is None):
        taken_at = taken_at.replace(tzinfo=now.tzinfo)
    return now - taken_at >= timedelta(days=rules.snapshot_interval_days)


def score_delta(current: int, previous: Optional[ScoreSnapshot]) -> ScoreDelta:
    """Change since the baseline; without one the delta is flat."""
    baseline = previous.score if previous is not None else current
    return ScoreDelta(previous=baseline, current=current)
