"""Budgeting rules and business constants.

Thresholds, benchmarks and the category taxonomy are stored in
``budget_rules.json`` so they can be tuned without code changes.
"""

from .defaults import (
    AlertRule,
    BudgetRules,
    ScoreTier,
    default_rules,
    get_config_value,
    load_config,
    load_rules,
)

__all__ = [
    'AlertRule',
    'BudgetRules',
    'ScoreTier',
    'default_rules',
    'get_config_value',
    'load_config',
    'load_rules',
]
