"""Category categorization utilities.

This module maps expense categories to the Needs/Wants buckets of the
50/30/20 rule and to the benchmark groups used by alerts and peer
comparisons. The mapping is read from the rules taxonomy so regional
category sets can change without touching the scoring code.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from .models import TransactionType, UserSettings
from .rules import BudgetRules, default_rules

NEEDS = 'needs'
WANTS = 'wants'


def _lookup(category: Optional[str], rules: BudgetRules) -> Optional[Dict[str, str]]:
    if not category:
        return None
    entry = rules.taxonomy.get(category)
    if entry is not None:
        return entry
    cat_lower = category.strip().lower()
    for name, candidate in rules.taxonomy.items():
        if name.lower() == cat_lower:
            return candidate
    return None


def categorize_expense(category_name: Optional[str], rules: Optional[BudgetRules] = None) -> str:
    """Categorize an expense category into 'needs' or 'wants'.

    Args:
        category_name: The category name to categorize
        rules: Rules holding the taxonomy, defaults to the bundled rules

    Returns:
        'needs' or 'wants'. Categories missing from the taxonomy fall
        into the rules' default bucket.

    Example:
        >>> categorize_expense('Groceries')
        'needs'
        >>> categorize_expense('Ocio/Rumba')
        'wants'
    """
    rules = rules or default_rules()
    entry = _lookup(category_name, rules)
    if entry is None:
        return rules.default_bucket
    return entry.get('bucket', rules.default_bucket)


def category_group(category_name: Optional[str], rules: Optional[BudgetRules] = None) -> Optional[str]:
    """Benchmark group of a category ('housing', 'food', ...) or None if unmapped.

    Example:
        >>> category_group('Vivienda/Arriendo')
        'housing'
    """
    entry = _lookup(category_name, rules or default_rules())
    return entry.get('group') if entry else None


def categories_for(
    transaction_type: TransactionType,
    settings: Optional[UserSettings] = None,
    rules: Optional[BudgetRules] = None,
) -> List[str]:
    """Selectable categories for a transaction type in the active regional mode."""
    rules = rules or default_rules()
    settings = settings or UserSettings.default()
    region = rules.region(settings.is_colombian_mode)
    return list(rules.categories.get(region, {}).get(TransactionType(transaction_type).value, []))
