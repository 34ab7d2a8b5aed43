"""Plotly visualisation helpers for the BudgetMate dashboard.

Each function takes the plain data produced by the metrics modules
(category breakdown rows, overview rows, a :class:`HealthScore`, a
:class:`BudgetAllocation`, goal progress rows) and returns a
``plotly.graph_objects.Figure`` that Streamlit renders with
``st.plotly_chart``. Empty inputs give an empty figure titled
"No data to display".
"""

from __future__ import annotations

from typing import Any, Dict, Sequence

import numpy as np
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .budget_rule import BudgetAllocation
from .health_score import HealthScore
from .rules import BudgetRules, default_rules

CATEGORY_COLORS = [
    "#6366F1", "#10B981", "#F59E0B", "#EF4444", "#8B5CF6",
    "#EC4899", "#14B8A6", "#F97316",
]
OVERVIEW_COLORS = {"Income": "#10B981", "Expenses": "#EF4444", "Savings": "#6366F1"}


def _empty_figure() -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title="No data to display")
    return fig


def create_expense_donut(breakdown: Sequence[Dict[str, Any]], title: str | None = None) -> go.Figure:
    """Donut chart of expenses by category.

    Parameters
    ----------
    breakdown : sequence of dict
        ``{name, value}`` rows as returned by
        :meth:`LedgerAggregator.category_breakdown`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Pie chart with a hole.
    """
    df = pd.DataFrame(list(breakdown), columns=["name", "value"])
    df = df[df["value"] > 0]
    if df.empty:
        return _empty_figure()
    fig = px.pie(
        df,
        names="name",
        values="value",
        hole=0.55,
        color_discrete_sequence=CATEGORY_COLORS,
    )
    fig.update_layout(title=title or "Expenses by category")
    return fig


def create_overview_bar_chart(overview: Sequence[Dict[str, Any]], title: str | None = None) -> go.Figure:
    """Bar chart comparing income, expenses and savings.

    Parameters
    ----------
    overview : sequence of dict
        ``{name, amount}`` rows as returned by :meth:`LedgerAggregator.overview`.
    title : str, optional
        Chart title.
    """
    df = pd.DataFrame(list(overview), columns=["name", "amount"])
    if df.empty or not (df["amount"] > 0).any():
        return _empty_figure()
    fig = px.bar(df, x="name", y="amount", color="name", color_discrete_map=OVERVIEW_COLORS)
    fig.update_layout(
        title=title or "Income vs expenses",
        xaxis_title="",
        yaxis_title="Amount",
        showlegend=False,
    )
    return fig


def create_score_gauge(score: HealthScore, rules: BudgetRules | None = None) -> go.Figure:
    """Gauge for the 0-100 health score, colored by its tier.

    The gauge bands follow the same tier thresholds as the score labels.
    """
    rules = rules or default_rules()
    thresholds = sorted(tier.min_score for tier in rules.score_tiers)
    bounds = thresholds[1:] + [100]
    steps = [
        {"range": [low, high], "color": "#F3F4F6"}
        for low, high in zip(thresholds, bounds)
    ]
    fig = go.Figure(go.Indicator(
        mode="gauge+number",
        value=score.score,
        title={"text": f"{score.label} · {score.status}"},
        gauge={
            "axis": {"range": [0, 100]},
            "bar": {"color": score.color},
            "steps": steps,
        },
    ))
    fig.update_layout(height=260, margin={"t": 60, "b": 10, "l": 30, "r": 30})
    return fig


def create_allocation_chart(allocation: BudgetAllocation, rules: BudgetRules | None = None) -> go.Figure:
    """Horizontal bars of the 50/30/20 split against its targets.

    Bars use the display ratios (clamped to 100%); the hover text keeps
    the real share of income.
    """
    if not allocation.has_income:
        return _empty_figure()
    rules = rules or default_rules()
    display = allocation.display_ratios
    df = pd.DataFrame({
        "Bucket": ["Needs", "Wants", "Savings"],
        "Share": [display["needs"], display["wants"], display["savings"]],
        "Actual": [allocation.needs_ratio, allocation.wants_ratio, allocation.savings_ratio],
        "Target": [rules.needs_target, rules.wants_target, rules.savings_target],
    })
    fig = go.Figure()
    fig.add_trace(go.Bar(
        y=df["Bucket"],
        x=df["Share"] * 100,
        orientation="h",
        name="Actual",
        marker_color=["#6366F1", "#F59E0B", "#10B981"],
        customdata=np.round(df["Actual"] * 100, 1),
        hovertemplate="%{y}: %{customdata}% of income<extra></extra>",
    ))
    fig.add_trace(go.Scatter(
        y=df["Bucket"],
        x=df["Target"] * 100,
        mode="markers",
        name="Target",
        marker={"symbol": "line-ns-open", "size": 24, "color": "#111827"},
    ))
    fig.update_layout(
        title="50/30/20 rule",
        xaxis={"range": [0, 100], "title": "% of income"},
        barmode="overlay",
    )
    return fig


def create_goal_progress_chart(goals: Sequence[Dict[str, Any]], title: str | None = None) -> go.Figure:
    """Progress bars for savings goals.

    Parameters
    ----------
    goals : sequence of dict
        Rows from :meth:`GoalTracker.progress`.
    """
    if not goals:
        return _empty_figure()
    df = pd.DataFrame(list(goals))
    labels = df["emoji"] + " " + df["name"]
    fig = go.Figure(go.Bar(
        y=labels,
        x=df["progress_percentage"].clip(0, 100),
        orientation="h",
        marker_color=list(df["color"]),
        text=[f"{value:.0f}%" for value in df["progress_percentage"]],
        textposition="auto",
    ))
    fig.update_layout(
        title=title or "Savings goals",
        xaxis={"range": [0, 100], "title": "Progress (%)"},
        yaxis={"autorange": "reversed"},
    )
    return fig
