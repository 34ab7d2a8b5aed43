"""Ledger records and user settings.

Records serialise to the camelCase dictionaries used by the per-user
store (``targetAmount``, ``isColombianMode`` ...).
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd


class TransactionType(str, Enum):
    INCOME = 'INCOME'
    EXPENSE = 'EXPENSE'
    SAVING = 'SAVING'


class Period(str, Enum):
    MONTHLY = 'MONTHLY'
    ANNUAL = 'ANNUAL'

    @property
    def multiplier(self) -> int:
        return 12 if self is Period.ANNUAL else 1


class PaymentFrequency(str, Enum):
    MONTHLY = 'MONTHLY'
    BIWEEKLY = 'BIWEEKLY'
    WEEKLY = 'WEEKLY'

    @property
    def label(self) -> str:
        return _FREQUENCY_LABELS[self]

    @classmethod
    def parse(cls, value: Any) -> 'PaymentFrequency':
        """Accept enum names as well as the Spanish display labels."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for member, label in _FREQUENCY_LABELS.items():
            if text.upper() == member.value or text.lower() == label.lower():
                return member
        raise ValueError(f"Unknown payment frequency: {value!r}")


_FREQUENCY_LABELS = {
    PaymentFrequency.MONTHLY: 'Mensual',
    PaymentFrequency.BIWEEKLY: 'Quincenal',
    PaymentFrequency.WEEKLY: 'Semanal',
}


def parse_timestamp(value: Any) -> datetime:
    """Parse ISO strings (including a trailing ``Z``) and datetimes."""
    if isinstance(value, datetime):
        return value
    stamp = pd.Timestamp(value)
    if pd.isna(stamp):
        raise ValueError(f"Invalid timestamp: {value!r}")
    return stamp.to_pydatetime()


def _check_amount(name: str, value: Any) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(amount) or amount < 0:
        raise ValueError(f"{name} must be a non-negative number, got {value!r}")
    return amount


@dataclass(frozen=True)
class Transaction:
    id: str
    name: str
    amount: float
    type: TransactionType
    category: str
    date: datetime

    def __post_init__(self):
        object.__setattr__(self, 'amount', _check_amount('amount', self.amount))
        object.__setattr__(self, 'type', TransactionType(self.type))
        object.__setattr__(self, 'date', parse_timestamp(self.date))

    @classmethod
    def create(
        cls,
        name: str,
        amount: float,
        type: TransactionType,
        category: str,
        date: Optional[datetime] = None,
    ) -> 'Transaction':
        """Build a transaction with a fresh id, dated now unless given."""
        return cls(
            id=str(uuid.uuid4()),
            name=name,
            amount=amount,
            type=type,
            category=category,
            date=date or datetime.now(timezone.utc),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'amount': self.amount,
            'type': self.type.value,
            'category': self.category,
            'date': self.date.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        return cls(
            id=str(data['id']),
            name=str(data.get('name', '')),
            amount=data['amount'],
            type=data['type'],
            category=str(data.get('category', '')),
            date=data['date'],
        )


@dataclass
class SavingsGoal:
    """A savings target; ``current_amount`` always stays within ``[0, target_amount]``."""

    id: str
    name: str
    target_amount: float
    current_amount: float = 0.0
    emoji: str = '🎯'
    color: str = '#6366F1'
    deadline: Optional[datetime] = None

    def __post_init__(self):
        if not self.name or not str(self.name).strip():
            raise ValueError("Goal name cannot be empty")
        self.target_amount = _check_amount('target_amount', self.target_amount)
        if self.target_amount <= 0:
            raise ValueError("Goal target amount must be positive")
        self.current_amount = _check_amount('current_amount', self.current_amount)
        if self.current_amount > self.target_amount:
            raise ValueError(
                f"current_amount {self.current_amount} exceeds target_amount {self.target_amount}"
            )
        if self.deadline is not None:
            self.deadline = parse_timestamp(self.deadline)

    @property
    def remaining(self) -> float:
        return self.target_amount - self.current_amount

    @property
    def progress(self) -> float:
        """Fraction of the target reached, 0.0 to 1.0."""
        return self.current_amount / self.target_amount

    @property
    def is_complete(self) -> bool:
        return self.current_amount >= self.target_amount

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'name': self.name,
            'targetAmount': self.target_amount,
            'currentAmount': self.current_amount,
            'emoji': self.emoji,
            'color': self.color,
        }
        if self.deadline is not None:
            data['deadline'] = self.deadline.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SavingsGoal':
        return cls(
            id=str(data['id']),
            name=data['name'],
            target_amount=data['targetAmount'],
            current_amount=data.get('currentAmount', 0.0),
            emoji=data.get('emoji', '🎯'),
            color=data.get('color', '#6366F1'),
            deadline=data.get('deadline'),
        )


@dataclass(frozen=True)
class UserSettings:
    currency: str = 'USD'
    locale: str = 'en-US'
    is_colombian_mode: bool = False
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY

    def __post_init__(self):
        object.__setattr__(self, 'payment_frequency', PaymentFrequency.parse(self.payment_frequency))

    @classmethod
    def default(cls) -> 'UserSettings':
        return cls()

    @classmethod
    def colombian(cls) -> 'UserSettings':
        return cls(
            currency='COP',
            locale='es-CO',
            is_colombian_mode=True,
            payment_frequency=PaymentFrequency.BIWEEKLY,
        )

    def toggle_colombian_mode(self) -> 'UserSettings':
        """Switch between the regional presets (currency, locale and pay cycle)."""
        return UserSettings.default() if self.is_colombian_mode else UserSettings.colombian()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'currency': self.currency,
            'locale': self.locale,
            'isColombianMode': self.is_colombian_mode,
            'paymentFrequency': self.payment_frequency.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'UserSettings':
        defaults = cls.default()
        return cls(
            currency=str(data.get('currency', defaults.currency)),
            locale=str(data.get('locale', defaults.locale)),
            is_colombian_mode=bool(data.get('isColombianMode', defaults.is_colombian_mode)),
            payment_frequency=data.get('paymentFrequency', defaults.payment_frequency),
        )


# Demo data for the "load example" action
def example_transactions(settings: UserSettings) -> List[Transaction]:
    now = datetime.now(timezone.utc)
    if settings.is_colombian_mode:
        rows = [
            ('c1', 'Nómina Quincena 1', 1_800_000, TransactionType.INCOME, 'Salario'),
            ('c2', 'Nómina Quincena 2', 1_800_000, TransactionType.INCOME, 'Salario'),
            ('c3', 'Arriendo Apto', 1_200_000, TransactionType.EXPENSE, 'Vivienda/Arriendo'),
            ('c4', 'Mercado D1/Ara', 600_000, TransactionType.EXPENSE, 'Mercado'),
            ('c5', 'Recarga Transmilenio', 150_000, TransactionType.EXPENSE, 'Transporte'),
            ('c6', 'Corrientazos', 200_000, TransactionType.EXPENSE, 'Corrientazo'),
        ]
    else:
        rows = [
            ('1', 'Salary', 3500, TransactionType.INCOME, 'Salary'),
            ('2', 'Rent', 1200, TransactionType.EXPENSE, 'Housing'),
            ('3', 'Groceries', 450, TransactionType.EXPENSE, 'Groceries'),
            ('4', 'Transport', 150, TransactionType.EXPENSE, 'Transport'),
        ]
    return [
        Transaction(id=tid, name=name, amount=amount, type=ttype, category=category, date=now)
        for tid, name, amount, ttype, category in rows
    ]


def example_goals(settings: UserSettings) -> List[SavingsGoal]:
    if settings.is_colombian_mode:
        return [SavingsGoal('g1', 'Prima Diciembre', 2_000_000, 500_000, '🎄', '#10B981')]
    return [SavingsGoal('g1', 'Emergency Fund', 5000, 1200, '🚑', '#EF4444')]


def with_current_amount(goal: SavingsGoal, current_amount: float) -> SavingsGoal:
    """Copy of ``goal`` holding a new balance (validated like construction)."""
    return replace(goal, current_amount=current_amount)
