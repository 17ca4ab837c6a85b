import json
from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache, reduce
from importlib import resources
from typing import Dict, Optional, Sequence

import structlog

from tracker.domain import CURRENCIES, LOCALES, RTL_LOCALES, THEMES, Preferences
from tracker.events import PREFERENCES_CHANGED, EventBus
from tracker.functional import Either, Maybe, Nothing, Right, Some, failure
from tracker.storage import KeyValueStorage

logger = structlog.get_logger(__name__)

CURRENCY_SYMBOLS: Dict[str, str] = {
    "USD": "$",
    "ILS": "₪",
    "EUR": "€",
    "AED": "د.إ",
    "SAR": "ر.س",
}

CENT = Decimal("0.01")


@lru_cache(maxsize=None)
def load_string_tables() -> dict:
    with resources.files("tracker").joinpath("locales.json").open("r", encoding="utf-8") as f:
        return json.load(f)


def lookup(table: dict, key: str) -> Maybe[str]:
    """Walk a dot-separated path through nested string tables."""
    def step(node: Maybe, segment: str) -> Maybe:
        return node.bind(
            lambda n: Some(n[segment]) if isinstance(n, dict) and segment in n else Nothing()
        )

    found = reduce(step, key.split("."), Some(table))
    return found.bind(lambda v: Some(v) if isinstance(v, str) else Nothing())


def format_amount(amount: float) -> str:
    # half-up on the exact value, two fraction digits, comma grouping
    return f"{Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP):,.2f}"


class PreferenceStore:
    """Locale, currency and theme for the running application.

    Each setter validates against its closed set, persists the single key,
    swaps the live snapshot and then publishes ``PREFERENCES_CHANGED``.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        bus: Optional[EventBus] = None,
        string_tables: Optional[dict] = None,
        system_dark: bool = False,
    ):
        self._storage = storage
        self._bus = bus
        self._tables = string_tables if string_tables is not None else load_string_tables()
        self._system_dark = system_dark
        defaults = Preferences()
        self._prefs = Preferences(
            locale=self._restore("locale", LOCALES, defaults.locale),
            currency=self._restore("currency", CURRENCIES, defaults.currency),
            theme=self._restore("theme", THEMES, defaults.theme),
        )

    def _restore(self, key: str, allowed: Sequence[str], default: str) -> str:
        raw = self._storage.get(key)
        if raw is None:
            return default
        try:
            value = json.loads(raw)
        except ValueError:
            # written unquoted by older versions
            value = raw
        if value not in allowed:
            logger.warning("preference_invalid", key=key, value=raw, fallback=default)
            return default
        return value

    def _set(self, field: str, value: str, allowed: Sequence[str]) -> Either[dict, Preferences]:
        if value not in allowed:
            logger.info("preference_rejected", field=field, value=value)
            return failure("invalid_preference", f"{field} must be one of {', '.join(allowed)}",
                           "messages.invalidValue", field=field, value=value)
        self._storage.set(field, json.dumps(value))
        self._prefs = replace(self._prefs, **{field: value})
        logger.info("preference_changed", field=field, value=value)
        self._notify(field, value)
        return Right(self._prefs)

    def _notify(self, field: str, value: str) -> None:
        if self._bus is not None:
            self._bus.publish(PREFERENCES_CHANGED, {"field": field, "value": value})

    def get(self) -> Preferences:
        return self._prefs

    def set_locale(self, locale: str) -> Either[dict, Preferences]:
        return self._set("locale", locale, LOCALES)

    def set_currency(self, currency: str) -> Either[dict, Preferences]:
        return self._set("currency", currency, CURRENCIES)

    def set_theme(self, theme: str) -> Either[dict, Preferences]:
        return self._set("theme", theme, THEMES)

    def toggle_theme(self) -> Either[dict, Preferences]:
        return self.set_theme("light" if self._prefs.theme == "dark" else "dark")

    @property
    def is_rtl(self) -> bool:
        return self._prefs.locale in RTL_LOCALES

    @property
    def direction(self) -> str:
        return "rtl" if self.is_rtl else "ltr"

    # -- theme

    def effective_theme(self) -> str:
        if self._prefs.theme == "system":
            return "dark" if self._system_dark else "light"
        return self._prefs.theme

    def set_system_dark(self, dark: bool) -> None:
        """Feed the host's colour-scheme preference; re-resolves a "system" theme."""
        before = self.effective_theme()
        self._system_dark = dark
        after = self.effective_theme()
        if after != before:
            logger.info("effective_theme_changed", value=after)
            self._notify("effective_theme", after)

    # -- formatting

    def translate(self, key: str) -> str:
        table = self._tables.get(self._prefs.locale, {})
        return lookup(table, key).get_or_else(key)

    def format_currency(self, amount: float) -> str:
        formatted = format_amount(amount)
        symbol = CURRENCY_SYMBOLS[self._prefs.currency]
        if self.is_rtl:
            return f"{formatted} {symbol}"
        return f"{symbol}{formatted}"
