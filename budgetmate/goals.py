"""Savings goal tracking.

Deposits are simulated: each one adds a fixed fraction of the goal's
target (10% by default, rounded up), never a user-entered amount. The
time-to-completion estimate divides what is left by a monthly
contribution rate that callers pass in; :func:`contribution_rate` gives
the flat default, which does not look at actual savings capacity.
"""

from __future__ import annotations

import logging
import math
import random
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .models import SavingsGoal, with_current_amount
from .rules import BudgetRules, default_rules

logger = logging.getLogger(__name__)


def random_goal_color(rng: Optional[random.Random] = None) -> str:
    rng = rng or random.Random()
    return f"hsl({rng.uniform(0, 360):.0f}, 70%, 50%)"


def deposit_increment(goal: SavingsGoal, rules: Optional[BudgetRules] = None) -> float:
    rules = rules or default_rules()
    return math.ceil(goal.target_amount * rules.deposit_fraction)


def contribution_rate(has_transactions: bool, rules: Optional[BudgetRules] = None) -> float:
    """Flat monthly contribution assumed for completion estimates."""
    rules = rules or default_rules()
    return rules.contribution_with_activity if has_transactions else rules.contribution_without_activity


def estimate_months_to_completion(goal: SavingsGoal, monthly_contribution: float) -> Optional[int]:
    """Months of ``monthly_contribution`` needed to reach the target.

    Returns 0 for a completed goal and None when nothing is contributed.
    """
    if goal.is_complete:
        return 0
    if monthly_contribution <= 0:
        return None
    return math.ceil(goal.remaining / monthly_contribution)


def goal_progress(goal: SavingsGoal, monthly_contribution: float) -> Dict[str, Any]:
    """Display row for one goal."""
    return {
        'id': goal.id,
        'name': goal.name,
        'emoji': goal.emoji,
        'color': goal.color,
        'current_amount': goal.current_amount,
        'target_amount': goal.target_amount,
        'remaining_amount': goal.remaining,
        'progress_percentage': goal.progress * 100,
        'months_to_goal': estimate_months_to_completion(goal, monthly_contribution),
        'status': 'Completed' if goal.is_complete else 'In Progress',
    }


class GoalTracker:
    """The user's savings goals, in insertion order."""

    def __init__(self, goals: Optional[Iterable[SavingsGoal]] = None, rules: Optional[BudgetRules] = None):
        self.rules = rules or default_rules()
        self.goals: List[SavingsGoal] = list(goals or [])

    def __len__(self) -> int:
        return len(self.goals)

    def __iter__(self):
        return iter(self.goals)

    def get(self, goal_id: str) -> Optional[SavingsGoal]:
        for goal in self.goals:
            if goal.id == goal_id:
                return goal
        return None

    def add_goal(
        self,
        name: str,
        target_amount: float,
        emoji: str = '🎯',
        color: Optional[str] = None,
        current_amount: float = 0.0,
        deadline: Optional[datetime] = None,
    ) -> SavingsGoal:
        """Create and append a goal.

        Raises:
            ValueError: empty name or non-positive target
        """
        goal = SavingsGoal(
            id=str(uuid.uuid4()),
            name=str(name).strip(),
            target_amount=target_amount,
            current_amount=current_amount,
            emoji=emoji or '🎯',
            color=color or random_goal_color(),
            deadline=deadline,
        )
        self.goals.append(goal)
        return goal

    def delete_goal(self, goal_id: str) -> bool:
        """Remove a goal; False when no goal has ``goal_id``."""
        before = len(self.goals)
        self.goals = [goal for goal in self.goals if goal.id != goal_id]
        return len(self.goals) < before

    def deposit(self, goal_id: str) -> Optional[SavingsGoal]:
        """Apply one simulated deposit, clamped at the target."""
        for index, goal in enumerate(self.goals):
            if goal.id != goal_id:
                continue
            proposed = goal.current_amount + deposit_increment(goal, self.rules)
            if proposed > goal.target_amount:
                logger.debug("Deposit to goal %s clamped at target %s", goal.id, goal.target_amount)
            updated = with_current_amount(goal, min(proposed, goal.target_amount))
            self.goals[index] = updated
            return updated
        return None

    def progress(self, has_transactions: bool = True, monthly_contribution: Optional[float] = None) -> List[Dict[str, Any]]:
        if monthly_contribution is None:
            monthly_contribution = contribution_rate(has_transactions, self.rules)
        return [goal_progress(goal, monthly_contribution) for goal in self.goals]

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [goal.to_dict() for goal in self.goals]

    @classmethod
    def from_dicts(cls, records: Iterable[Dict[str, Any]], rules: Optional[BudgetRules] = None) -> 'GoalTracker':
        return cls([SavingsGoal.from_dict(record) for record in records], rules=rules)
