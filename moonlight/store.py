"""Record store for expenses and budgets over a key-value backend."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Literal, Protocol

from . import models
from .errors import PersistenceError, ValidationError
from .models import BudgetEntry, ExpenseRecord, ImageAttachment

logger = logging.getLogger(__name__)

EXPENSES_KEY = "expenses"
MOODS_KEY = "moods"
BUDGETS_KEY = "budgets"

Collection = Literal["expenses", "budgets"]


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, text: str) -> None: ...


class MemoryKeyValueStore:
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, text: str) -> None:
        self.data[key] = text


class JsonFileStore:
    """One ``<key>.json`` file per key inside ``root``."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Could not read {path}: {exc}") from exc

    def set(self, key: str, text: str) -> None:
        path = self._path(key)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.root)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(text)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise PersistenceError(f"Could not write {path}: {exc}") from exc


def _decode(key: str, text: str | None) -> list[dict[str, Any]]:
    if text is None:
        return []
    try:
        value = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PersistenceError(f"Stored {key!r} is not valid JSON: {exc}") from exc
    if not isinstance(value, list):
        raise PersistenceError(f"Stored {key!r} must be a list, got {type(value).__name__}")
    for index, item in enumerate(value):
        if not isinstance(item, dict):
            raise PersistenceError(f"Stored {key!r}[{index}] is not a record")
    return value


def _encode(records: list[Any]) -> str:
    return json.dumps(records, ensure_ascii=False)


class RecordStore:
    """Owns the expense and budget collections and keeps them persisted.

    Every mutation is saved before the method returns, so reads that follow
    always see persisted state.
    """

    def __init__(self, backend: KeyValueStore) -> None:
        self.backend = backend
        self._expenses: list[ExpenseRecord] = []
        self._budgets: list[BudgetEntry] = []

    @property
    def expenses(self) -> list[ExpenseRecord]:
        return list(self._expenses)

    @property
    def budgets(self) -> list[BudgetEntry]:
        return list(self._budgets)

    def load(self) -> "RecordStore":
        try:
            expenses = [models.normalise_expense(raw) for raw in _decode(EXPENSES_KEY, self.backend.get(EXPENSES_KEY))]
            budgets = [models.normalise_budget(raw) for raw in _decode(BUDGETS_KEY, self.backend.get(BUDGETS_KEY))]
        except (AttributeError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Stored records have invalid fields: {exc}") from exc
        legacy = _decode(MOODS_KEY, self.backend.get(MOODS_KEY))

        self._expenses = expenses
        self._budgets = budgets
        if legacy:
            migrated, changed, unapplied = models.migrate_legacy_moods(expenses, legacy)
            if changed:
                self._expenses = migrated
                self._save(EXPENSES_KEY)
                # entries that matched no untagged expense stay in the legacy key
                self.backend.set(MOODS_KEY, _encode(unapplied))
                logger.info(
                    "Migrated %d legacy mood entries onto %d expenses; %d kept",
                    len(legacy) - len(unapplied),
                    changed,
                    len(unapplied),
                )

        logger.info("Loaded %d expenses and %d budgets", len(self._expenses), len(self._budgets))
        return self

    def _save(self, collection: str) -> None:
        records = self._expenses if collection == EXPENSES_KEY else self._budgets
        self.backend.set(collection, _encode(records))
        logger.debug("Saved %d %s", len(records), collection)

    def add_expense(
        self,
        amount: Any,
        category: Any,
        expense_date: Any,
        *,
        note: str = "",
        images: list[ImageAttachment] | None = None,
        mood: str | None = None,
        mood_note: str = "",
    ) -> ExpenseRecord:
        """Validate and append an expense; raises ``ValidationError`` untouched."""

        record = models.new_expense(
            amount,
            category,
            expense_date,
            note=note,
            images=images or (),
            mood=mood,
            mood_note=mood_note,
        )
        self._expenses.append(record)
        try:
            self._save(EXPENSES_KEY)
        except PersistenceError:
            self._expenses.pop()
            raise
        return record

    def upsert_budget(self, category: Any, amount: Any) -> tuple[BudgetEntry, bool]:
        """Create a budget, or overwrite the amount of the category's existing one."""

        candidate = models.new_budget(category, amount)
        for index, budget in enumerate(self._budgets):
            if budget["category"] == candidate["category"]:
                previous = budget
                updated: BudgetEntry = {**budget, "amount": candidate["amount"]}
                self._budgets[index] = updated
                try:
                    self._save(BUDGETS_KEY)
                except PersistenceError:
                    self._budgets[index] = previous
                    raise
                return updated, False

        self._budgets.append(candidate)
        try:
            self._save(BUDGETS_KEY)
        except PersistenceError:
            self._budgets.pop()
            raise
        return candidate, True

    def clear(self, collection: Collection) -> None:
        if collection == EXPENSES_KEY:
            self._expenses = []
        elif collection == BUDGETS_KEY:
            self._budgets = []
        else:
            raise ValidationError(f"unknown collection {collection!r}")
        self._save(collection)
        logger.info("Cleared %s", collection)

    def categories(self) -> list[str]:
        """Categories seen in expenses and budgets, first-seen order."""

        seen: dict[str, None] = {}
        for record in (*self._expenses, *self._budgets):
            seen.setdefault(record["category"], None)
        return list(seen)
