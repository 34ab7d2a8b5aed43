"""Simulated peer comparison.

The percentile is not drawn from population data. It starts at a
baseline and moves linearly with the gap between the user's savings rate
and a regional benchmark rate:

    percentile = baseline +/- |rate - benchmark| * scale

clamped to ``[min_percentile, max_percentile]``. Baseline (50), scale
(150, i.e. 1.5 points per percentage point) and clamps (1, 99) are
tunable rules, as are the benchmarks (5% savings for Colombian mode, 8%
otherwise). A separate food-spend comparison uses the same "below the
benchmark is favorable" framing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import numpy as np

from .categorization import category_group
from .health_score import round_half_up
from .models import UserSettings
from .rules import BudgetRules, default_rules


@dataclass(frozen=True)
class PeerComparison:
    percentile: int
    savings_rate: float
    benchmark_rate: float
    better_than_average: bool
    message: str
    region: str
    has_income: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'percentile': self.percentile,
            'savings_rate': self.savings_rate,
            'benchmark_rate': self.benchmark_rate,
            'better_than_average': self.better_than_average,
            'message': self.message,
            'region': self.region,
            'has_income': self.has_income,
        }


@dataclass(frozen=True)
class CategoryComparison:
    ratio: float
    benchmark_ratio: float
    favorable: bool
    message: str
    has_income: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ratio': self.ratio,
            'benchmark_ratio': self.benchmark_ratio,
            'favorable': self.favorable,
            'message': self.message,
            'has_income': self.has_income,
        }


def estimate_percentile(
    savings_rate: float,
    benchmark_rate: float,
    rules: Optional[BudgetRules] = None,
) -> float:
    """Unrounded simulated percentile for a savings rate."""
    rules = rules or default_rules()
    if savings_rate > benchmark_rate:
        value = rules.baseline_percentile + (savings_rate - benchmark_rate) * rules.percentile_scale
    else:
        value = rules.baseline_percentile - (benchmark_rate - savings_rate) * rules.percentile_scale
    return float(np.clip(value, rules.min_percentile, rules.max_percentile))


def standing_message(percentile: float, rules: Optional[BudgetRules] = None) -> str:
    rules = rules or default_rules()
    if percentile > rules.standing_top:
        return "🚀 You're flying! You're a positive financial outlier."
    if percentile > rules.standing_above:
        return "👍 You're above average. Keep it up!"
    return "📉 You're below average. A good moment to adjust."


def compare_savings(
    savings_rate: float,
    income: float,
    settings: Optional[UserSettings] = None,
    rules: Optional[BudgetRules] = None,
) -> PeerComparison:
    """Place the user's savings rate against the regional benchmark.

    Without income there is nothing to compare: the percentile stays at
    the baseline and ``has_income`` is False.
    """
    rules = rules or default_rules()
    settings = settings or UserSettings.default()
    region = rules.region(settings.is_colombian_mode)
    benchmark = rules.benchmark_savings_rate.get(region, 0.0)

    if income <= 0:
        return PeerComparison(
            percentile=round_half_up(rules.baseline_percentile),
            savings_rate=0.0,
            benchmark_rate=benchmark,
            better_than_average=False,
            message='',
            region=region,
            has_income=False,
        )

    percentile = round_half_up(estimate_percentile(savings_rate, benchmark, rules))
    return PeerComparison(
        percentile=percentile,
        savings_rate=savings_rate,
        benchmark_rate=benchmark,
        better_than_average=savings_rate > benchmark,
        message=standing_message(percentile, rules),
        region=region,
    )


def food_spending(category_totals: Mapping[str, float], rules: Optional[BudgetRules] = None) -> float:
    """Total spent in the food comparison groups (groceries and eating out)."""
    rules = rules or default_rules()
    return sum(
        amount for category, amount in category_totals.items()
        if category_group(category, rules) in rules.food_groups
    )


def compare_food_spending(
    category_totals: Mapping[str, float],
    income: float,
    settings: Optional[UserSettings] = None,
    rules: Optional[BudgetRules] = None,
) -> CategoryComparison:
    rules = rules or default_rules()
    settings = settings or UserSettings.default()
    benchmark = rules.benchmark_food_ratio.get(rules.region(settings.is_colombian_mode), 0.0)

    if income <= 0:
        return CategoryComparison(
            ratio=0.0, benchmark_ratio=benchmark, favorable=False, message='', has_income=False
        )

    ratio = food_spending(category_totals, rules) / income
    if ratio < benchmark:
        message = (
            f"You spend {(benchmark - ratio) * 100:.0f}% less on food than average. "
            f"Master Chef! 👨‍🍳"
        )
        return CategoryComparison(ratio, benchmark, True, message)
    message = "Your food spending is higher than 60% of users. Too much delivery? 🛵"
    return CategoryComparison(ratio, benchmark, False, message)
