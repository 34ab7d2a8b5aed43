"""Savings projections and Colombian-mode context figures.

These are display helpers only; none of them feeds the score or the
classifiers.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import Dict, Optional, Union

from .models import PaymentFrequency
from .rules import BudgetRules, default_rules

BIWEEKLY_PAYDAY = 15


def project_savings(monthly_savings: float, rules: Optional[BudgetRules] = None) -> Dict[int, float]:
    """Savings accumulated over each projection horizon, keyed by months.

    Example:
        >>> project_savings(1700)
        {12: 20400, 60: 102000}
    """
    rules = rules or default_rules()
    return {months: monthly_savings * months for months in rules.projection_months}


def income_in_smlv(income: float, rules: Optional[BudgetRules] = None) -> float:
    """Income expressed in Colombian minimum wages, one decimal."""
    rules = rules or default_rules()
    return round(income / rules.smlv, 1)


def next_payday(today: Union[date, datetime], frequency: PaymentFrequency) -> date:
    """Date of the next payday for a pay cycle.

    Biweekly pay lands on the 15th and on the last day of the month;
    monthly and weekly pay are both assumed to land on the last day.
    """
    if isinstance(today, datetime):
        today = today.date()
    frequency = PaymentFrequency.parse(frequency)
    month_end = today.replace(day=calendar.monthrange(today.year, today.month)[1])
    if frequency is PaymentFrequency.BIWEEKLY and today.day < BIWEEKLY_PAYDAY:
        return today.replace(day=BIWEEKLY_PAYDAY)
    return month_end


def days_until_payday(today: Union[date, datetime, None] = None,
                      frequency: PaymentFrequency = PaymentFrequency.MONTHLY) -> int:
    """Whole days left until the next payday; 0 means today."""
    today = today or date.today()
    if isinstance(today, datetime):
        today = today.date()
    return (next_payday(today, frequency) - today).days
