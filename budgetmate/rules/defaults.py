"""Configuration loader for budgeting rules and business constants."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

# Configuration directory
CONFIG_DIR = Path(__file__).parent

GLOBAL_REGION = 'global'
COLOMBIA_REGION = 'colombia'


def load_config(config_name: str, config_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Load a configuration file by name.

    Args:
        config_name: Name of the config file (without .json extension)
        config_dir: Directory to look in, defaults to this package

    Returns:
        Dictionary containing the configuration

    Raises:
        FileNotFoundError: If the configuration file doesn't exist
        json.JSONDecodeError: If the configuration file is invalid JSON

    Example:
        >>> config = load_config('budget_rules')
        >>> config['allocation']['needs_target']
        0.5
    """
    config_path = (config_dir or CONFIG_DIR) / f"{config_name}.json"
    return _read_json(config_path)


def _read_json(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def get_config_value(config_name: str, *keys: str, default: Any = None) -> Any:
    """Get a nested configuration value by key path.

    Args:
        config_name: Name of the config file
        *keys: Path to the nested value (e.g., 'score', 'savings_max')
        default: Default value if key path doesn't exist

    Returns:
        The configuration value at the specified path, or default if not found

    Example:
        >>> get_config_value('budget_rules', 'goals', 'deposit_fraction')
        0.1
    """
    try:
        config = load_config(config_name)
        value = config
        for key in keys:
            value = value[key]
        return value
    except (KeyError, FileNotFoundError):
        return default


@dataclass(frozen=True)
class AlertRule:
    """Threshold check against income for a category group or a whole bucket."""

    code: str
    threshold: float
    severity: str
    message: str
    group: Optional[str] = None
    bucket: Optional[str] = None


@dataclass(frozen=True)
class ScoreTier:
    min_score: int
    label: str
    status: str
    description: str
    color: str


@dataclass(frozen=True)
class BudgetRules:
    """Every tunable constant used by the metrics engine.

    Build one with :func:`load_rules`; derive variants with
    ``dataclasses.replace`` or the keyword overrides of ``load_rules``.
    """

    taxonomy: Dict[str, Dict[str, str]] = field(default_factory=dict)
    default_bucket: str = 'wants'
    categories: Dict[str, Dict[str, List[str]]] = field(default_factory=dict)
    alerts: Tuple[AlertRule, ...] = ()

    # 50/30/20 allocation
    needs_target: float = 0.50
    wants_target: float = 0.30
    savings_target: float = 0.20
    needs_flag: float = 0.60
    wants_flag: float = 0.35
    savings_flag: float = 0.10

    # Health score
    savings_max: float = 35
    savings_score_target: float = 0.20
    stability_max: float = 25
    stability_threshold: float = 0.90
    control_max: float = 25
    control_threshold: float = 0.30
    decay_per_unit: float = 100
    solvency_max: float = 15
    seed_jitter_max: int = 4
    snapshot_interval_days: int = 7
    score_tiers: Tuple[ScoreTier, ...] = ()

    # Mood
    thriving_rate: float = 0.20
    relaxed_rate: float = 0.10

    # Peer comparison
    baseline_percentile: float = 50
    percentile_scale: float = 150
    min_percentile: float = 1
    max_percentile: float = 99
    benchmark_savings_rate: Dict[str, float] = field(default_factory=dict)
    benchmark_food_ratio: Dict[str, float] = field(default_factory=dict)
    food_groups: Tuple[str, ...] = ('food', 'dining')
    standing_top: float = 80
    standing_above: float = 50

    # Goals
    deposit_fraction: float = 0.10
    contribution_with_activity: float = 200
    contribution_without_activity: float = 100

    # Regional context
    smlv: float = 1_300_000
    transport_allowance: float = 162_000
    projection_months: Tuple[int, ...] = (12, 60)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'BudgetRules':
        allocation = config.get('allocation', {})
        score = config.get('score', {})
        mood = config.get('mood', {})
        comparison = config.get('comparison', {})
        goals = config.get('goals', {})
        regional = config.get('regional', {})
        contribution = goals.get('contribution_rate', {})
        standing = comparison.get('standing_tiers', {})

        alerts = tuple(
            AlertRule(
                code=entry['code'],
                threshold=float(entry['threshold']),
                severity=entry.get('severity', 'warning'),
                message=entry.get('message', ''),
                group=entry.get('group'),
                bucket=entry.get('bucket'),
            )
            for entry in config.get('alerts', [])
        )
        tiers = tuple(
            sorted(
                (ScoreTier(**tier) for tier in score.get('tiers', [])),
                key=lambda tier: tier.min_score,
                reverse=True,
            )
        )

        return cls(
            taxonomy=dict(config.get('taxonomy', {})),
            default_bucket=config.get('default_bucket', 'wants'),
            categories=dict(config.get('categories', {})),
            alerts=alerts,
            needs_target=allocation.get('needs_target', 0.50),
            wants_target=allocation.get('wants_target', 0.30),
            savings_target=allocation.get('savings_target', 0.20),
            needs_flag=allocation.get('needs_flag', 0.60),
            wants_flag=allocation.get('wants_flag', 0.35),
            savings_flag=allocation.get('savings_flag', 0.10),
            savings_max=score.get('savings_max', 35),
            savings_score_target=score.get('savings_target', 0.20),
            stability_max=score.get('stability_max', 25),
            stability_threshold=score.get('stability_threshold', 0.90),
            control_max=score.get('control_max', 25),
            control_threshold=score.get('control_threshold', 0.30),
            decay_per_unit=score.get('decay_per_unit', 100),
            solvency_max=score.get('solvency_max', 15),
            seed_jitter_max=int(score.get('seed_jitter_max', 4)),
            snapshot_interval_days=int(score.get('snapshot_interval_days', 7)),
            score_tiers=tiers,
            thriving_rate=mood.get('thriving_rate', 0.20),
            relaxed_rate=mood.get('relaxed_rate', 0.10),
            baseline_percentile=comparison.get('baseline_percentile', 50),
            percentile_scale=comparison.get('scale', 150),
            min_percentile=comparison.get('min_percentile', 1),
            max_percentile=comparison.get('max_percentile', 99),
            benchmark_savings_rate=dict(comparison.get('benchmark_savings_rate', {})),
            benchmark_food_ratio=dict(comparison.get('benchmark_food_ratio', {})),
            food_groups=tuple(comparison.get('food_groups', ('food', 'dining'))),
            standing_top=standing.get('top', 80),
            standing_above=standing.get('above', 50),
            deposit_fraction=goals.get('deposit_fraction', 0.10),
            contribution_with_activity=contribution.get('with_activity', 200),
            contribution_without_activity=contribution.get('without_activity', 100),
            smlv=regional.get('smlv', 1_300_000),
            transport_allowance=regional.get('transport_allowance', 162_000),
            projection_months=tuple(regional.get('projection_months', (12, 60))),
        )

    @staticmethod
    def region(is_colombian_mode: bool) -> str:
        return COLOMBIA_REGION if is_colombian_mode else GLOBAL_REGION

    def tier_for(self, score: float) -> ScoreTier:
        """Highest tier whose minimum the score reaches."""
        for tier in self.score_tiers:
            if score >= tier.min_score:
                return tier
        return self.score_tiers[-1]


def load_rules(path: Optional[Path] = None, **overrides: Any) -> BudgetRules:
    """Load :class:`BudgetRules` from JSON and apply keyword overrides.

    Args:
        path: Rules file to read. Defaults to ``BUDGETMATE_RULES_PATH`` or
            the bundled ``budget_rules.json``.
        **overrides: ``BudgetRules`` field values replacing the loaded ones

    Raises:
        FileNotFoundError: If the rules file doesn't exist
        TypeError: If an override names an unknown field

    Example:
        >>> load_rules(deposit_fraction=0.25).deposit_fraction
        0.25
    """
    rules = _rules_from_path(path) if path is not None else default_rules()
    return replace(rules, **overrides) if overrides else rules


@lru_cache(maxsize=1)
def default_rules() -> BudgetRules:
    """Rules from the configured rules file, read once per process."""
    from ..config import RULES_PATH

    if RULES_PATH is not None:
        return _rules_from_path(RULES_PATH)
    return BudgetRules.from_config(load_config('budget_rules'))


def _rules_from_path(path: Path) -> BudgetRules:
    return BudgetRules.from_config(_read_json(Path(path)))
