"""Financial mood banner.

Maps the raw balance and savings rate to one of five ordered states.
Rules are checked top-down and the first match wins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from .rules import BudgetRules, default_rules

STRESSED = 'stressed'
THRIVING = 'thriving'
RELAXED = 'relaxed'
THOUGHTFUL = 'thoughtful'
AT_THE_EDGE = 'at_the_edge'

MOOD_ORDER = (STRESSED, THRIVING, RELAXED, THOUGHTFUL, AT_THE_EDGE)


@dataclass(frozen=True)
class Mood:
    key: str
    emoji: str
    title: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {'key': self.key, 'emoji': self.emoji, 'title': self.title, 'message': self.message}


def _gap(target_rate: float, savings_rate: float) -> str:
    """Percentage points left to a tier, one decimal."""
    return f"{(target_rate - savings_rate) * 100:.1f}"


def classify_mood(
    raw_balance: float,
    savings_rate: float,
    rules: Optional[BudgetRules] = None,
) -> Mood:
    """Pick the mood for the current ledger.

    Args:
        raw_balance: income minus expenses minus savings
        savings_rate: potential savings over income, as a fraction
        rules: thresholds for the thriving and relaxed tiers

    Example:
        >>> classify_mood(-500, 0.3).key
        'stressed'
        >>> classify_mood(100, 0.15).message
        "You're on the right track. You're only 5.0% away from an extra-healthy month."
    """
    rules = rules or default_rules()

    if raw_balance < 0:
        return Mood(
            STRESSED,
            '😰',
            'Your finances are stressed',
            'You spend more than you earn. Your wallet urgently needs a break.',
        )
    if savings_rate >= rules.thriving_rate:
        return Mood(
            THRIVING,
            '🤩',
            'Your wallet feels great!',
            "You're in expert mode. An extra-healthy month!",
        )
    if savings_rate >= rules.relaxed_rate:
        return Mood(
            RELAXED,
            '😌',
            'Your wallet is relaxed today',
            f"You're on the right track. You're only {_gap(rules.thriving_rate, savings_rate)}% "
            f"away from an extra-healthy month.",
        )
    if savings_rate > 0:
        return Mood(
            THOUGHTFUL,
            '🤔',
            'Your finances are thoughtful',
            f"You save a little, but you could do better. You're {_gap(rules.relaxed_rate, savings_rate)}% "
            f"away from a relaxed state.",
        )
    return Mood(
        AT_THE_EDGE,
        '😐',
        'Your finances are at the edge',
        'You make it to the end of the month, but with no margin for error. Careful!',
    )
