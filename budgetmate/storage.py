"""Per-user persistence of the ledger, goals, settings and score baseline.

Each user gets one directory under the users data dir holding
``transactions.json``, ``goals.json``, ``settings.json`` and
``score.json``. Loading is fail-soft: an unreadable file or a malformed
record is skipped with a warning and the caller gets an empty ledger or
default settings. Saving raises ``OSError`` naming the target file.
"""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar

from .config import USERS_DIR
from .health_score import ScoreSnapshot
from .models import SavingsGoal, Transaction, UserSettings

logger = logging.getLogger(__name__)

T = TypeVar('T')

TRANSACTIONS_FILE = 'transactions.json'
GOALS_FILE = 'goals.json'
SETTINGS_FILE = 'settings.json'
SCORE_FILE = 'score.json'


def safe_user_id(user_id: str, default: str = 'default') -> str:
    """Directory-safe form of a user id.

    Ids that are already safe are used as-is. Ids that had to be cleaned
    get a short digest of the raw id appended, so two different ids never
    share a directory.

    Example:
        >>> safe_user_id("ana")
        'ana'
        >>> safe_user_id("ana@mail.com")  # doctest: +ELLIPSIS
        'anamailcom-...'
    """
    if not user_id:
        return default
    raw = str(user_id)
    cleaned = ''.join(c for c in raw if c.isalnum() or c in {' ', '_', '-'})
    cleaned = cleaned.strip().replace(' ', '_')
    while '__' in cleaned:
        cleaned = cleaned.replace('__', '_')
    cleaned = cleaned.strip('_') or default
    if cleaned == raw:
        return cleaned
    digest = hashlib.sha256(raw.encode('utf-8')).hexdigest()[:8]
    return f"{cleaned}-{digest}"


@dataclass
class UserData:
    transactions: List[Transaction] = field(default_factory=list)
    goals: List[SavingsGoal] = field(default_factory=list)
    settings: UserSettings = field(default_factory=UserSettings.default)
    score_snapshot: Optional[ScoreSnapshot] = None


class UserStore:
    """JSON files for each user under ``base_dir``."""

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir) if base_dir is not None else USERS_DIR

    def user_dir(self, user_id: str) -> Path:
        return self.base_dir / safe_user_id(user_id)

    def _path(self, user_id: str, filename: str) -> Path:
        return self.user_dir(user_id) / filename

    def _read(self, path: Path) -> Any:
        if not path.exists():
            return None
        try:
            with path.open('r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", path, e)
            return None

    def _write(self, path: Path, payload: Any) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open('w', encoding='utf-8') as handle:
                json.dump(payload, handle, indent=2, ensure_ascii=False)
        except OSError as e:
            raise OSError(f"Failed to save data to {path}: {e}") from e

    def _load_records(self, path: Path, parse: Callable[[Any], T]) -> List[T]:
        data = self._read(path)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning("Expected a list in %s, got %s", path, type(data).__name__)
            return []
        items: List[T] = []
        for record in data:
            try:
                items.append(parse(record))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping malformed record in %s: %s", path, e)
        return items

    def load_transactions(self, user_id: str) -> List[Transaction]:
        return self._load_records(self._path(user_id, TRANSACTIONS_FILE), Transaction.from_dict)

    def load_goals(self, user_id: str) -> List[SavingsGoal]:
        return self._load_records(self._path(user_id, GOALS_FILE), SavingsGoal.from_dict)

    def load_settings(self, user_id: str) -> UserSettings:
        path = self._path(user_id, SETTINGS_FILE)
        data = self._read(path)
        if not isinstance(data, dict):
            return UserSettings.default()
        try:
            return UserSettings.from_dict(data)
        except ValueError as e:
            logger.warning("Invalid settings in %s: %s", path, e)
            return UserSettings.default()

    def load_score_snapshot(self, user_id: str) -> Optional[ScoreSnapshot]:
        path = self._path(user_id, SCORE_FILE)
        data = self._read(path)
        if not isinstance(data, dict):
            return None
        try:
            return ScoreSnapshot.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Invalid score snapshot in %s: %s", path, e)
            return None

    def load_user_data(self, user_id: str) -> UserData:
        """Everything stored for a user, with defaults for missing parts."""
        return UserData(
            transactions=self.load_transactions(user_id),
            goals=self.load_goals(user_id),
            settings=self.load_settings(user_id),
            score_snapshot=self.load_score_snapshot(user_id),
        )

    def save_transactions(self, user_id: str, transactions: List[Transaction]) -> None:
        self._write(self._path(user_id, TRANSACTIONS_FILE), [t.to_dict() for t in transactions])

    def save_goals(self, user_id: str, goals: List[SavingsGoal]) -> None:
        self._write(self._path(user_id, GOALS_FILE), [g.to_dict() for g in goals])

    def save_settings(self, user_id: str, settings: UserSettings) -> None:
        self._write(self._path(user_id, SETTINGS_FILE), settings.to_dict())

    def save_score_snapshot(self, user_id: str, snapshot: ScoreSnapshot) -> None:
        self._write(self._path(user_id, SCORE_FILE), snapshot.to_dict())

    def delete_user_data(self, user_id: str) -> None:
        """Remove everything stored for a user; missing users are ignored.

        Raises:
            OSError: If the directory cannot be removed
        """
        target = self.user_dir(user_id)
        if not target.exists():
            return
        try:
            shutil.rmtree(target)
        except OSError as e:
            raise OSError(f"Failed to delete user data {target}: {e}") from e
