#!/usr/bin/env python3
"""Direct launcher for the BudgetMate dashboard.

Runs ``streamlit run budgetmate/dashboard.py`` from the project root,
creating the data directories first.
"""

import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent.resolve()

if __name__ == "__main__":
    sys.path.insert(0, str(project_root))
    from budgetmate.config import ensure_data_directories

    ensure_data_directories()
    subprocess.run(
        [sys.executable, "-m", "streamlit", "run", str(project_root / "budgetmate" / "dashboard.py")],
        cwd=project_root,
    )
