import math
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Callable, Generic, Iterable, TypeVar, Union

from tracker.domain import ExpenseRecord, Goal, INCOME_TYPES, IncomeRecord

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Maybe(Generic[T], ABC):

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Maybe[U]']) -> 'Maybe[U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Some(f(self._value))

    def bind(self, f: Callable[[T], 'Maybe[U]']) -> 'Maybe[U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def map(self, f: Callable[[T], U]) -> 'Maybe[U]':
        return Nothing()

    def bind(self, f: Callable[[T], 'Maybe[U]']) -> 'Maybe[U]':
        return Nothing()

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):
    """Result of an operation that can be rejected.

    ``Right`` carries the value, ``Left`` carries an error dict with at least
    ``error`` (machine code), ``message`` and ``message_key`` (a string table
    path the UI translates for its notification).
    """

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        pass

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    @abstractmethod
    def get_error(self) -> E:
        pass

    def is_left(self) -> bool:
        return not self.is_right()


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Right(f(self._value))

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_right(self) -> bool:
        return True

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def map(self, f: Callable[[T], U]) -> 'Either[E, U]':
        return Left(self._error)

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return Left(self._error)

    def get_or_else(self, default: T) -> T:
        return default

    def is_right(self) -> bool:
        return False

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def failure(error: str, message: str, message_key: str, **context: Any) -> Left:
    return Left({"error": error, "message": message, "message_key": message_key, **context})


# --- Entry-time validation. Form values arrive as raw strings or numbers.

def parse_amount(raw: Union[str, int, float, None], field: str = "amount",
                 positive: bool = False) -> Either[dict, float]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return failure("required", f"{field} is required", "messages.required", field=field)
    if isinstance(raw, bool):
        return failure("invalid_amount", f"{field} must be a number", "messages.invalidAmount", field=field)
    try:
        value = float(raw.strip() if isinstance(raw, str) else raw)
    except (TypeError, ValueError):
        return failure("invalid_amount", f"{field} must be a number", "messages.invalidAmount",
                       field=field, value=raw)
    if not math.isfinite(value) or value < 0:
        return failure("invalid_amount", f"{field} must be a non-negative number",
                       "messages.invalidAmount", field=field, value=raw)
    if positive and value == 0:
        return failure("invalid_target", f"{field} must be greater than zero",
                       "messages.invalidTarget", field=field, value=raw)
    return Right(value)


def parse_date(raw: Union[str, date, None], field: str = "date") -> Either[dict, str]:
    if isinstance(raw, date):
        return Right(raw.isoformat())
    if raw is None or not str(raw).strip():
        return failure("required", f"{field} is required", "messages.required", field=field)
    try:
        return Right(date.fromisoformat(str(raw).strip()).isoformat())
    except ValueError:
        return failure("invalid_date", f"{field} must be an ISO date (YYYY-MM-DD)",
                       "messages.invalidDate", field=field, value=raw)


def require_text(raw: Union[str, None], field: str) -> Either[dict, str]:
    text = (raw or "").strip()
    if not text:
        return failure("required", f"{field} is required", "messages.required", field=field)
    return Right(text)


def build_expense(
    amount,
    category: str,
    on: Union[str, date],
    description: str = "",
    recurring: bool = False,
    categories: Iterable[str] = (),
) -> Either[dict, ExpenseRecord]:
    known = tuple(categories)

    def known_category(cat: str) -> Either[dict, str]:
        if known and cat not in known:
            return failure("category_not_found", f"Category {cat} does not exist",
                           "messages.unknownCategory", category=cat)
        return Right(cat)

    if not isinstance(recurring, bool):
        return failure("invalid_recurring", "recurring must be true or false",
                       "messages.invalidValue", value=recurring)
    return require_text(category, "category").bind(known_category).bind(
        lambda cat: parse_amount(amount).bind(
            lambda value: parse_date(on).map(
                lambda iso: ExpenseRecord(
                    amount=value,
                    category=cat,
                    date=iso,
                    description=(description or "").strip(),
                    recurring=recurring,
                )
            )
        )
    )


def build_income(amount, source: str, type: str, on: Union[str, date]) -> Either[dict, IncomeRecord]:
    if type not in INCOME_TYPES:
        return failure("invalid_income_type", f"Income type must be one of {', '.join(INCOME_TYPES)}",
                       "messages.invalidValue", value=type)
    return parse_amount(amount).bind(
        lambda value: require_text(source, "source").bind(
            lambda src: parse_date(on).map(
                lambda iso: IncomeRecord(amount=value, source=src, type=type, date=iso)
            )
        )
    )


def build_goal(name: str, target_amount, due_date: Union[str, date], saved_amount=None) -> Either[dict, Goal]:
    # an empty saved amount defaults to 0
    if saved_amount is None or (isinstance(saved_amount, str) and not saved_amount.strip()):
        saved_amount = 0
    return require_text(name, "name").bind(
        lambda goal_name: parse_amount(target_amount, "targetAmount", positive=True).bind(
            lambda target: parse_amount(saved_amount, "savedAmount").bind(
                lambda saved: parse_date(due_date, "dueDate").map(
                    lambda iso: Goal(name=goal_name, target_amount=target, saved_amount=saved, due_date=iso)
                )
            )
        )
    )
