"""50/30/20 budget classification and category alerts.

Expenses are split into Needs and Wants through the category taxonomy.
Ratios against income are kept unclamped for every threshold check (a
needs share of 130% must still read as an overshoot); clamped copies
exist only for progress-bar display.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .categorization import NEEDS, WANTS, categorize_expense, category_group
from .ledger import LedgerAggregator
from .rules import BudgetRules, default_rules


@dataclass(frozen=True)
class BudgetAlert:
    code: str
    severity: str
    message: str
    ratio: float
    threshold: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'code': self.code,
            'severity': self.severity,
            'message': self.message,
            'ratio': self.ratio,
            'threshold': self.threshold,
        }


@dataclass(frozen=True)
class BudgetAllocation:
    """Needs/Wants/Savings amounts and their shares of income."""

    income: float = 0.0
    needs: float = 0.0
    wants: float = 0.0
    potential_savings: float = 0.0
    needs_ratio: float = 0.0
    wants_ratio: float = 0.0
    savings_ratio: float = 0.0
    needs_over_target: bool = False
    wants_over_target: bool = False
    savings_under_target: bool = False
    category_totals: Dict[str, float] = field(default_factory=dict)
    group_totals: Dict[str, float] = field(default_factory=dict)

    @property
    def has_income(self) -> bool:
        return self.income > 0

    @property
    def display_ratios(self) -> Dict[str, float]:
        """Ratios clamped to [0, 1] for progress bars."""
        raw = np.array([self.needs_ratio, self.wants_ratio, self.savings_ratio])
        needs, wants, savings = np.clip(raw, 0.0, 1.0)
        return {'needs': float(needs), 'wants': float(wants), 'savings': float(savings)}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'income': self.income,
            'needs': self.needs,
            'wants': self.wants,
            'potential_savings': self.potential_savings,
            'needs_ratio': self.needs_ratio,
            'wants_ratio': self.wants_ratio,
            'savings_ratio': self.savings_ratio,
            'display_ratios': self.display_ratios,
            'needs_over_target': self.needs_over_target,
            'wants_over_target': self.wants_over_target,
            'savings_under_target': self.savings_under_target,
        }


def split_needs_wants(
    category_totals: Dict[str, float],
    rules: Optional[BudgetRules] = None,
) -> Tuple[float, float, Dict[str, float]]:
    """Partition expense category totals into needs, wants and group totals.

    Returns:
        ``(needs, wants, group_totals)``; categories outside the taxonomy
        count as wants and are left out of ``group_totals``.
    """
    rules = rules or default_rules()
    needs = 0.0
    wants = 0.0
    groups: Dict[str, float] = {}
    for category, amount in category_totals.items():
        if categorize_expense(category, rules) == NEEDS:
            needs += amount
        else:
            wants += amount
        group = category_group(category, rules)
        if group:
            groups[group] = groups.get(group, 0.0) + amount
    return needs, wants, groups


def allocate(ledger: LedgerAggregator, rules: Optional[BudgetRules] = None) -> BudgetAllocation:
    """Compute the 50/30/20 allocation for a ledger.

    With zero income every ratio is 0 and no display flag is raised.

    Example:
        >>> ledger = LedgerAggregator(example_transactions(UserSettings()))
        >>> round(allocate(ledger).needs_ratio, 3)
        0.514
    """
    rules = rules or default_rules()
    totals = ledger.totals()
    categories = ledger.expense_categories()
    needs, wants, groups = split_needs_wants(categories, rules)

    income = totals.income
    if income <= 0:
        return BudgetAllocation(
            income=income,
            needs=needs,
            wants=wants,
            potential_savings=totals.potential_savings,
            category_totals=categories,
            group_totals=groups,
        )

    needs_ratio = needs / income
    wants_ratio = wants / income
    savings_ratio = totals.potential_savings / income
    return BudgetAllocation(
        income=income,
        needs=needs,
        wants=wants,
        potential_savings=totals.potential_savings,
        needs_ratio=needs_ratio,
        wants_ratio=wants_ratio,
        savings_ratio=savings_ratio,
        needs_over_target=needs_ratio > rules.needs_flag,
        wants_over_target=wants_ratio > rules.wants_flag,
        savings_under_target=savings_ratio < rules.savings_flag,
        category_totals=categories,
        group_totals=groups,
    )


def budget_alerts(allocation: BudgetAllocation, rules: Optional[BudgetRules] = None) -> List[BudgetAlert]:
    """Evaluate each alert rule independently; any subset may fire."""
    rules = rules or default_rules()
    if not allocation.has_income:
        return []

    bucket_totals = {NEEDS: allocation.needs, WANTS: allocation.wants}
    alerts: List[BudgetAlert] = []
    for rule in rules.alerts:
        if rule.group is not None:
            amount = allocation.group_totals.get(rule.group, 0.0)
        elif rule.bucket is not None:
            amount = bucket_totals.get(rule.bucket, 0.0)
        else:
            continue
        ratio = amount / allocation.income
        if ratio > rule.threshold:
            alerts.append(BudgetAlert(
                code=rule.code,
                severity=rule.severity,
                message=rule.message,
                ratio=ratio,
                threshold=rule.threshold,
            ))
    return alerts
