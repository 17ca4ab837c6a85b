import json
import time
from dataclasses import replace
from typing import Any, Generic, Iterable, Optional, Set, Tuple, TypeVar

import structlog

from tracker.domain import DEFAULT_CATEGORIES, ExpenseRecord, Goal, IncomeRecord
from tracker.events import COLLECTION_CHANGED, EventBus
from tracker.functional import Either, Maybe, Nothing, Right, Some, failure, parse_amount
from tracker.storage import KeyValueStorage

R = TypeVar('R')

logger = structlog.get_logger(__name__)


def new_id(taken: Set[str]) -> str:
    """Millisecond timestamp id, bumped until it is free in ``taken``."""
    candidate = int(time.time() * 1000)
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


def dump_collection(items: Iterable[Any]) -> str:
    return json.dumps(list(items), ensure_ascii=False, separators=(",", ":"))


class RecordStore(Generic[R]):
    """One persisted collection.

    The whole collection is the unit of persistence: every mutation writes
    the full list under ``key`` and then publishes ``COLLECTION_CHANGED``.
    """

    key: str = ""

    def __init__(self, storage: KeyValueStorage, bus: Optional[EventBus] = None):
        self._storage = storage
        self._bus = bus
        self._records: Tuple[R, ...] = self.load()

    # -- (de)serialization hooks

    def default(self) -> Tuple[R, ...]:
        return ()

    def decode(self, item: Any) -> R:
        raise NotImplementedError

    def encode(self, record: R) -> Any:
        return record.to_dict()

    def record_id(self, record: R) -> str:
        return record.id

    # -- reads

    def load(self) -> Tuple[R, ...]:
        raw = self._storage.get(self.key)
        if raw is None:
            return self.default()
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning("collection_corrupt", key=self.key, error=str(e))
            return self.default()
        if not isinstance(data, list):
            logger.warning("collection_wrong_shape", key=self.key, found=type(data).__name__)
            return self.default()

        records = []
        seen: Set[str] = set()
        for item in data:
            try:
                record = self.decode(item)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("record_dropped", key=self.key, error=str(e))
                continue
            rid = self.record_id(record)
            if rid in seen:
                logger.warning("duplicate_record_dropped", key=self.key, id=rid)
                continue
            seen.add(rid)
            records.append(record)
        return tuple(records)

    def reload(self) -> None:
        self._records = self.load()

    def all(self) -> Tuple[R, ...]:
        return self._records

    def find(self, record_id: str) -> Maybe[R]:
        for record in self._records:
            if self.record_id(record) == record_id:
                return Some(record)
        return Nothing()

    # -- writes

    def _save(self, records: Tuple[R, ...], action: str, record_id: str) -> None:
        self._storage.set(self.key, dump_collection(self.encode(r) for r in records))
        self._records = records
        logger.info("collection_saved", key=self.key, action=action, id=record_id, size=len(records))
        if self._bus is not None:
            self._bus.publish(COLLECTION_CHANGED, {"key": self.key, "action": action, "id": record_id})

    def add(self, record: R) -> R:
        taken = {self.record_id(r) for r in self._records}
        if not record.id or record.id in taken:
            record = replace(record, id=new_id(taken))
        self._save(self._records + (record,), "add", record.id)
        return record

    def remove(self, record_id: str) -> bool:
        remaining = tuple(r for r in self._records if self.record_id(r) != record_id)
        if len(remaining) == len(self._records):
            return False
        self._save(remaining, "remove", record_id)
        return True


class ExpenseStore(RecordStore[ExpenseRecord]):
    key = "expenses"

    def decode(self, item: Any) -> ExpenseRecord:
        return ExpenseRecord.from_dict(item)


class IncomeStore(RecordStore[IncomeRecord]):
    key = "income"

    def decode(self, item: Any) -> IncomeRecord:
        return IncomeRecord.from_dict(item)


class GoalStore(RecordStore[Goal]):
    key = "goals"

    def decode(self, item: Any) -> Goal:
        return Goal.from_dict(item)

    def update(self, goal_id: str, saved_amount) -> Either[dict, Tuple[Goal, ...]]:
        """Replace the saved amount of one goal; other fields never change."""
        parsed = parse_amount(saved_amount, "savedAmount")
        if parsed.is_left():
            return parsed
        amount = parsed.get_or_else(0.0)
        if self.find(goal_id).is_none():
            return Right(self._records)
        updated = tuple(
            replace(g, saved_amount=amount) if g.id == goal_id else g
            for g in self._records
        )
        self._save(updated, "update", goal_id)
        return Right(updated)


class CategoryStore(RecordStore[str]):
    key = "categories"

    def default(self) -> Tuple[str, ...]:
        return DEFAULT_CATEGORIES

    def decode(self, item: Any) -> str:
        if not isinstance(item, str) or not item.strip():
            raise ValueError(f"category must be a non-empty string, got {item!r}")
        return item.strip().lower()

    def encode(self, record: str) -> Any:
        return record

    def record_id(self, record: str) -> str:
        return record

    def load(self) -> Tuple[str, ...]:
        loaded = super().load()
        missing = tuple(c for c in DEFAULT_CATEGORIES if c not in loaded)
        if missing:
            logger.warning("default_categories_restored", missing=list(missing))
        return missing + loaded

    @staticmethod
    def is_default(name: str) -> bool:
        return name in DEFAULT_CATEGORIES

    def add(self, name: str) -> Either[dict, Tuple[str, ...]]:
        normalized = (name or "").strip().lower()
        if not normalized:
            return failure("required", "Category name is required", "messages.required", field="name")
        if normalized in (c.lower() for c in self._records):
            logger.info("category_rejected", reason="duplicate", category=normalized)
            return failure("duplicate_category", f"Category {normalized} already exists",
                           "messages.categoryExists", category=normalized)
        self._save(self._records + (normalized,), "add", normalized)
        return Right(self._records)

    def remove(self, name: str) -> Either[dict, Tuple[str, ...]]:
        if self.is_default(name):
            logger.info("category_rejected", reason="default", category=name)
            return failure("default_category", f"Cannot delete default category {name}",
                           "messages.cannotDeleteDefault", category=name)
        if name in self._records:
            self._save(tuple(c for c in self._records if c != name), "remove", name)
        return Right(self._records)
