"""AI coaching on top of the derived metrics.

The coach is an optional enrichment: every public method returns a
fallback (a canned sentence, ``None`` or an empty list) instead of
raising, and records the failure in ``last_error``. Without a configured
provider and API key the deterministic ``mock`` provider answers from the
metrics alone.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from anthropic import Anthropic
from openai import OpenAI

from . import config
from .categorization import WANTS, categorize_expense
from .goals import GoalTracker
from .models import Period, SavingsGoal
from .rules import default_rules
from .summary import FinancialSnapshot

logger = logging.getLogger(__name__)

MOCK_PROVIDER = 'mock'
CLAUDE_PROVIDER = 'claude'
OPENAI_PROVIDER = 'openai'
PROVIDERS = (MOCK_PROVIDER, CLAUDE_PROVIDER, OPENAI_PROVIDER)

COACH_UNAVAILABLE = "Your financial coach is on a coffee break ☕. Try again in a moment."
EMPTY_ANSWER = "I couldn't put an analysis together right now."

SYSTEM_PROMPT = (
    'You are "BudgetMate Coach", an expert in behavioural finance. '
    'You are empathetic, motivating and direct.'
)


@dataclass(frozen=True)
class AdviceContext:
    """Summary of the ledger handed to the coach."""

    income: float
    expenses: float
    savings: float
    savings_rate: float
    expense_breakdown: Dict[str, float] = field(default_factory=dict)
    period: Period = Period.MONTHLY
    is_colombian_mode: bool = False
    income_in_smlv: Optional[float] = None
    currency: str = 'USD'
    score: int = 0
    previous_score: int = 0

    @classmethod
    def from_snapshot(cls, snapshot: FinancialSnapshot) -> 'AdviceContext':
        return cls(
            income=snapshot.totals.income,
            expenses=snapshot.totals.expenses,
            savings=snapshot.totals.savings,
            savings_rate=snapshot.monthly_totals.savings_rate,
            expense_breakdown={row['name']: row['value'] for row in snapshot.category_breakdown},
            period=snapshot.period,
            is_colombian_mode=snapshot.settings.is_colombian_mode,
            income_in_smlv=snapshot.income_in_smlv,
            currency=snapshot.settings.currency,
            score=snapshot.score.score,
            previous_score=snapshot.score_delta.previous,
        )

    @property
    def top_category(self) -> Optional[str]:
        if not self.expense_breakdown:
            return None
        return max(self.expense_breakdown.items(), key=lambda item: item[1])[0]

    @property
    def monthly_savings(self) -> float:
        return (self.income - self.expenses) / self.period.multiplier


# Prompt builders

def _regional_context(context: AdviceContext) -> str:
    if not context.is_colombian_mode:
        return f"Context: general personal finance ({context.currency})."
    rules = default_rules()
    smlv = f"{context.income_in_smlv:.1f}" if context.income_in_smlv is not None else "unknown"
    return (
        "COLOMBIA MODE 🇨🇴:\n"
        "- Currency: Colombian pesos (COP).\n"
        f"- Income in minimum wages: the user earns about {smlv} SMLV.\n"
        f"- Transport allowance: {rules.transport_allowance:,.0f} COP for salaries up to 2 SMLV.\n"
        "- Economic context: local inflation, cost of living (rent, utilities by estrato, "
        "public transport such as Transmilenio, MIO or Metro).\n"
        "- Language: use natural local terms (plata, lucas, corrientazo, quincena, rumba) "
        "while staying professional.\n"
        "- Priorities: rent and groceries are critical in Colombia."
    )


def build_coaching_prompt(context: AdviceContext) -> str:
    """Markdown coaching request: behaviour, patterns and a weekly challenge."""
    view = 'Monthly view' if context.period is Period.MONTHLY else 'Annual projection'
    colombian = context.is_colombian_mode
    return "\n".join([
        SYSTEM_PROMPT,
        _regional_context(context),
        "",
        f"User context ({view}):",
        f"- Total income: {context.income:.0f}",
        f"- Total expenses: {context.expenses:.0f}",
        f"- Savings rate: {context.savings_rate * 100:.1f}%",
        f"- Breakdown: {json.dumps(context.expense_breakdown, ensure_ascii=False)}",
        "",
        "Write an analysis in Markdown:",
        "### 🧠 Behaviour Analysis",
        "Explain what these expenses say about the user's priorities."
        + (' If eating out is high, talk about "corrientazos" or delivery.' if colombian else ''),
        "",
        "### 🔍 Detected Patterns",
        "Point out 2 trends."
        + (' E.g. "Your rent takes 40% of your salary; in Colombia a healthy share is at most 30%."'
           if colombian else ''),
        "",
        "### 💡 The Coach's Challenge",
        "3 specific actions for this week."
        + (' Where it fits, suggest cooking more and ordering less delivery.' if colombian else ''),
        "",
        "Tone: empathetic, motivating, direct. Use emojis.",
    ])


def build_prediction_prompt(context: AdviceContext) -> str:
    region = (
        'Colombia (COP). Consider local inflation (IPC) and seasonality '
        '(prima in June and December, school costs in January and February).'
        if context.is_colombian_mode else 'General (USD)'
    )
    return "\n".join([
        "Expense prediction for next month.",
        f"Context: {region}",
        f"Current expenses: {json.dumps(context.expense_breakdown, ensure_ascii=False)}",
        f"Total: {context.expenses:.0f}",
        "",
        "Return JSON (predictedTotal, percentageChange, riskyCategory, riskReason, "
        "cutCategory, cutSuggestion).",
        "Keep riskReason and cutSuggestion very short (10 words max).",
    ])


def build_goal_suggestions_prompt(context: AdviceContext) -> str:
    region = (
        'Colombia. Suggest local goals such as "Trip to Santa Marta", '
        '"Down payment on a VIS apartment", "New motorbike" or "Pay off the credit card". '
        'Amounts in Colombian pesos (millions).'
        if context.is_colombian_mode else 'General'
    )
    return "\n".join([
        "Generate 3 smart savings goals (JSON).",
        f"Context: {region}",
        f"Savings rate: {context.savings_rate * 100:.1f}%.",
        "",
        "Format: JSON array [{name, targetAmount, reason, emoji, estimatedMonths}].",
    ])


def build_score_advice_prompt(context: AdviceContext) -> str:
    region = (
        'Colombia. If the score is low, mention the risk of "gota a gota" lenders and '
        'over-indebtedness. If it is high, suggest investing in CDTs or real estate.'
        if context.is_colombian_mode else 'General'
    )
    return "\n".join([
        "Explain the change in a financial health score (0-100).",
        f"Context: {region}",
        f"Score: {context.score} (Prev: {context.previous_score}).",
        "",
        "Return JSON {reason, tips[]}.",
    ])


_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_json_payload(text: Optional[str]) -> Any:
    """Parse a model answer as JSON, tolerating code fences and chatter.

    Returns None when no JSON value can be recovered.

    Example:
        >>> parse_json_payload('```json\\n{"reason": "ok", "tips": []}\\n```')
        {'reason': 'ok', 'tips': []}
    """
    if not text:
        return None
    cleaned = _FENCE.sub('', text.strip())
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass
    for opener, closer in (('[', ']'), ('{', '}')):
        start, end = cleaned.find(opener), cleaned.rfind(closer)
        if start != -1 and end > start:
            try:
                return json.loads(cleaned[start:end + 1])
            except json.JSONDecodeError:
                continue
    return None


def _as_prediction(payload: Any) -> Optional[Dict[str, Any]]:
    if isinstance(payload, dict) and 'predictedTotal' in payload:
        return payload
    return None


def _as_suggestions(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, dict):
        payload = payload.get('goals') or payload.get('suggestions') or []
    if not isinstance(payload, list):
        return []
    return [
        item for item in payload
        if isinstance(item, dict) and item.get('name') and 'targetAmount' in item
    ][:3]


def _as_score_advice(payload: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(payload, dict) or 'reason' not in payload:
        return None
    tips = payload.get('tips') or []
    return {'reason': str(payload['reason']), 'tips': [str(tip) for tip in tips] if isinstance(tips, list) else []}


class AdviceGenerator:
    """Coaching answers from Claude, OpenAI or the offline mock."""

    def __init__(self, provider: Optional[str] = None, api_key: Optional[str] = None,
                 model: Optional[str] = None):
        self.provider = MOCK_PROVIDER
        self.client = None
        self.model = ''
        self.last_error: Optional[str] = None
        provider = (provider or config.ADVICE_PROVIDER).lower()
        if api_key is None:
            api_key = config.advice_api_key(provider)
        self.set_provider(provider, api_key, model)

    def set_provider(self, provider: str, api_key: Optional[str] = None, model: Optional[str] = None) -> None:
        """Switch provider; without a usable key the mock answers instead."""
        self.provider = provider.lower()
        self.client = None
        self.last_error = None
        self.model = model or config.advice_model(self.provider)

        if self.provider not in PROVIDERS:
            logger.warning("Unknown advice provider %r, using mock answers", provider)
            self.provider = MOCK_PROVIDER
            return
        if self.provider == MOCK_PROVIDER:
            return
        if not api_key:
            logger.warning("No API key for advice provider %s, using mock answers", self.provider)
            return

        try:
            if self.provider == CLAUDE_PROVIDER:
                self.client = Anthropic(api_key=api_key)
            else:
                self.client = OpenAI(api_key=api_key)
        except Exception as e:
            self.last_error = f"{self.provider} init error: {e}"
            logger.warning("Could not initialise %s client: %s", self.provider, e)

    @property
    def uses_llm(self) -> bool:
        return self.provider != MOCK_PROVIDER and self.client is not None

    def _complete(self, prompt: str, max_tokens: int = 1000) -> Optional[str]:
        try:
            if self.provider == CLAUDE_PROVIDER:
                message = self.client.messages.create(
                    model=self.model,
                    max_tokens=max_tokens,
                    system=SYSTEM_PROMPT,
                    messages=[{"role": "user", "content": prompt}],
                )
                return message.content[0].text
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=max_tokens,
                temperature=0.7,
            )
            return response.choices[0].message.content
        except Exception as e:
            self.last_error = f"{self.provider} API error: {e}"
            logger.warning("Advice request to %s failed: %s", self.provider, e)
            return None

    def coaching(self, context: AdviceContext) -> str:
        """Free-text Markdown coaching."""
        if not self.uses_llm:
            return mock_coaching(context)
        text = self._complete(build_coaching_prompt(context))
        if text is None:
            return COACH_UNAVAILABLE
        return text.strip() or EMPTY_ANSWER

    def predict_expenses(self, context: AdviceContext) -> Optional[Dict[str, Any]]:
        if not self.uses_llm:
            return mock_prediction(context)
        return _as_prediction(parse_json_payload(self._complete(build_prediction_prompt(context))))

    def suggest_goals(self, context: AdviceContext) -> List[Dict[str, Any]]:
        if not self.uses_llm:
            return mock_goal_suggestions(context)
        return _as_suggestions(parse_json_payload(self._complete(build_goal_suggestions_prompt(context))))

    def explain_score(self, context: AdviceContext) -> Optional[Dict[str, Any]]:
        if not self.uses_llm:
            return mock_score_advice(context)
        return _as_score_advice(parse_json_payload(self._complete(build_score_advice_prompt(context))))


# Offline answers

def mock_coaching(context: AdviceContext) -> str:
    top = context.top_category
    rate = context.savings_rate * 100
    lines = ["### 🧠 Behaviour Analysis"]
    if top is None:
        lines.append("There are no expenses yet. Log a few to get a real analysis. 📝")
    else:
        share = context.expense_breakdown[top] / context.income * 100 if context.income > 0 else 0
        lines.append(f"Your biggest expense is **{top}**, about {share:.0f}% of your income.")
    lines += [
        "",
        "### 🔍 Detected Patterns",
        f"- You keep {rate:.1f}% of your income as potential savings.",
        "- " + ("That is above the 20% mark. Great job! 🎉" if rate >= 20
                else "The 50/30/20 rule aims for 20%. There is room to grow. 🌱"),
        "",
        "### 💡 The Coach's Challenge",
        "1. Review every subscription you pay for.",
        ("2. Swap two delivery orders for home-cooked meals." if context.is_colombian_mode
         else "2. Cook at home three more times this week."),
        "3. Move a small fixed amount to savings on payday.",
    ]
    return "\n".join(lines)


def mock_prediction(context: AdviceContext) -> Dict[str, Any]:
    top = context.top_category or 'Other'
    wants = [name for name in context.expense_breakdown if categorize_expense(name) == WANTS]
    cut = max(wants, key=lambda name: context.expense_breakdown[name]) if wants else top
    return {
        'predictedTotal': round(context.expenses * 1.03),
        'percentageChange': 3.0,
        'riskyCategory': top,
        'riskReason': 'Largest share of your spending',
        'cutCategory': cut,
        'cutSuggestion': 'Trim it by 10% next month',
    }


def mock_goal_suggestions(context: AdviceContext) -> List[Dict[str, Any]]:
    monthly = max(context.monthly_savings, 1.0)
    base = max(context.expenses / context.period.multiplier, 100.0)
    if context.is_colombian_mode:
        ideas = [
            ('Trip to Santa Marta', 2_500_000, 'A well-earned break', '🏖️'),
            ('Emergency fund', round(base * 3), 'Three months of expenses', '🚑'),
            ('Pay off the credit card', 1_500_000, 'Avoid high interest', '💳'),
        ]
    else:
        ideas = [
            ('Emergency fund', round(base * 3), 'Three months of expenses', '🚑'),
            ('Vacation', 1500, 'Rest without debt', '✈️'),
            ('New laptop', 1200, 'Invest in your tools', '💻'),
        ]
    return [
        {
            'name': name,
            'targetAmount': target,
            'reason': reason,
            'emoji': emoji,
            'estimatedMonths': math.ceil(target / monthly),
        }
        for name, target, reason, emoji in ideas
    ]


def mock_score_advice(context: AdviceContext) -> Dict[str, Any]:
    change = context.score - context.previous_score
    if change > 0:
        reason = f"Your score rose {change} points thanks to better control of your spending."
    elif change < 0:
        reason = f"Your score dropped {-change} points because expenses grew faster than income."
    else:
        reason = "Your score held steady since the last snapshot."
    return {
        'reason': reason,
        'tips': [
            'Keep wants under 30% of your income.',
            'Save at least 20% of what you earn.',
        ],
    }


def adopt_suggestion(tracker: GoalTracker, suggestion: Mapping[str, Any]) -> SavingsGoal:
    """Turn a coach suggestion into a real goal.

    Raises:
        ValueError: the suggestion has no name or a non-positive target
    """
    try:
        target = float(suggestion.get('targetAmount'))
    except (TypeError, ValueError):
        raise ValueError(f"Invalid suggested target: {suggestion.get('targetAmount')!r}") from None
    return tracker.add_goal(
        name=str(suggestion.get('name') or ''),
        target_amount=target,
        emoji=str(suggestion.get('emoji') or '🎯'),
    )
