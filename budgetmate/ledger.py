"""Ledger aggregation.

Reduces a transaction list into per-type totals and per-category
expense totals. Sums are taken at native precision and only then
scaled by the period multiplier (1 for monthly, 12 for annual), so
ratios never depend on the view.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

import numpy as np
import pandas as pd

from .models import Period, Transaction, TransactionType

logger = logging.getLogger(__name__)

COLUMNS = ['id', 'name', 'amount', 'type', 'category', 'date']
TYPE_VALUES = {t.value for t in TransactionType}

LedgerInput = Optional[Iterable[Union[Transaction, Dict[str, Any]]]]


def transactions_frame(transactions: LedgerInput) -> pd.DataFrame:
    """Build a normalized DataFrame from transactions or raw records.

    Malformed input is treated softly: a missing ledger becomes an empty
    frame, and rows with non-numeric, non-finite or negative amounts or
    an unknown type are dropped.
    """
    records: List[Dict[str, Any]] = []
    try:
        items = list(transactions or [])
    except TypeError:
        logger.warning("Ledger is not iterable (%r); treating it as empty", type(transactions))
        items = []

    for item in items:
        if isinstance(item, Transaction):
            records.append({
                'id': item.id,
                'name': item.name,
                'amount': item.amount,
                'type': item.type.value,
                'category': item.category,
                'date': item.date,
            })
        elif isinstance(item, dict):
            records.append({col: item.get(col) for col in COLUMNS})

    data = pd.DataFrame(records, columns=COLUMNS)
    data['amount'] = pd.to_numeric(data['amount'], errors='coerce').astype(float)
    data['type'] = data['type'].map(
        lambda value: value.value if isinstance(value, TransactionType) else str(value).upper()
    )
    data['category'] = data['category'].fillna('').astype(str)

    valid = np.isfinite(data['amount']) & (data['amount'] >= 0) & data['type'].isin(TYPE_VALUES)
    dropped = int((~valid).sum())
    if dropped:
        logger.warning("Dropped %d malformed ledger rows", dropped)
    return data[valid].reset_index(drop=True)


@dataclass(frozen=True)
class LedgerTotals:
    """Per-type sums and the aggregates derived from them."""

    income: float = 0.0
    expenses: float = 0.0
    savings: float = 0.0

    @property
    def balance(self) -> float:
        """Raw balance: income minus expenses minus explicit savings."""
        return self.income - self.expenses - self.savings

    @property
    def potential_savings(self) -> float:
        """Explicit savings plus any unspent positive balance."""
        return self.savings + max(0.0, self.balance)

    @property
    def savings_rate(self) -> float:
        return self.potential_savings / self.income if self.income > 0 else 0.0

    def scaled(self, multiplier: float) -> 'LedgerTotals':
        return LedgerTotals(
            income=self.income * multiplier,
            expenses=self.expenses * multiplier,
            savings=self.savings * multiplier,
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            'income': self.income,
            'expenses': self.expenses,
            'savings': self.savings,
            'balance': self.balance,
            'potential_savings': self.potential_savings,
            'savings_rate': self.savings_rate,
        }


class LedgerAggregator:
    """Ledger totals and category breakdowns."""

    def __init__(self, transactions: LedgerInput):
        self.data = transactions_frame(transactions)

    @property
    def is_empty(self) -> bool:
        return self.data.empty

    def _type_sums(self) -> pd.Series:
        return self.data.groupby('type')['amount'].sum()

    def totals(self, multiplier: float = 1) -> LedgerTotals:
        """Sum of amounts per type, scaled by ``multiplier`` after summation."""
        sums = self._type_sums()
        base = LedgerTotals(
            income=float(sums.get(TransactionType.INCOME.value, 0.0)),
            expenses=float(sums.get(TransactionType.EXPENSE.value, 0.0)),
            savings=float(sums.get(TransactionType.SAVING.value, 0.0)),
        )
        return base if multiplier == 1 else base.scaled(multiplier)

    def category_totals(
        self,
        transaction_type: TransactionType = TransactionType.EXPENSE,
        multiplier: float = 1,
    ) -> pd.Series:
        """Per-category totals for one transaction type, largest first."""
        rows = self.data[self.data['type'] == TransactionType(transaction_type).value]
        if rows.empty:
            return pd.Series(dtype=float, name='amount')
        grouped = rows.groupby('category')['amount'].sum()
        grouped = grouped.sort_values(ascending=False, kind='mergesort')
        return grouped * multiplier

    def expense_categories(self) -> Dict[str, float]:
        """Unscaled expense totals keyed by category."""
        return {str(k): float(v) for k, v in self.category_totals().items()}

    def category_breakdown(self, period: Period = Period.MONTHLY) -> List[Dict[str, Any]]:
        """Expense categories as ``{name, value}`` rows for charting."""
        totals = self.category_totals(multiplier=Period(period).multiplier)
        return [{'name': str(name), 'value': float(value)} for name, value in totals.items()]

    def overview(self, period: Period = Period.MONTHLY) -> List[Dict[str, Any]]:
        """Income, expenses and savings rows for the overview chart."""
        totals = self.totals(Period(period).multiplier)
        return [
            {'name': 'Income', 'amount': totals.income},
            {'name': 'Expenses', 'amount': totals.expenses},
            {'name': 'Savings', 'amount': totals.savings},
        ]
