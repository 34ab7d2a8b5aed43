"""Top-level package for BudgetMate.

BudgetMate turns a personal transaction ledger into the figures a
budgeting dashboard shows. The primary modules are:

* ``ledger`` – per-type and per-category totals for a period
* ``budget_rule`` – the 50/30/20 Needs/Wants/Savings split and alerts
* ``health_score`` – the 0-100 financial health score and its baseline
* ``mood`` – the qualitative mood banner
* ``comparison`` – the simulated peer percentile
* ``goals`` – savings goals, deposits and completion estimates
* ``summary`` – everything above in one display payload
* ``dashboard`` – a Streamlit app that ties everything together

To run the dashboard from the command line you can execute:

```bash
streamlit run budgetmate/dashboard.py
```

The dashboard module is not imported here so the metrics can be used
without starting Streamlit.
"""

from .models import (  # noqa: F401
    PaymentFrequency,
    Period,
    SavingsGoal,
    Transaction,
    TransactionType,
    UserSettings,
)
from .summary import FinancialSnapshot, build_financial_snapshot  # noqa: F401

__version__ = "0.1.0"

__all__ = [
    "FinancialSnapshot",
    "PaymentFrequency",
    "Period",
    "SavingsGoal",
    "Transaction",
    "TransactionType",
    "UserSettings",
    "build_financial_snapshot",
]
