from tracker.domain import Preferences
from tracker.events import PREFERENCES_CHANGED, EventBus
from tracker.preferences import PreferenceStore, format_amount, load_string_tables, lookup
from tracker.storage import MemoryStorage


def make_store(initial=None, **kwargs):
    storage = MemoryStorage(initial)
    bus = EventBus()
    return storage, bus, PreferenceStore(storage, bus, **kwargs)


def test_defaults_when_absent():
    _, _, prefs = make_store()
    assert prefs.get() == Preferences(locale="en", currency="USD", theme="system")


def test_restore_from_storage_with_fallback_for_malformed():
    _, _, prefs = make_store({"locale": '"ar"', "currency": "EUR", "theme": '"purple"'})
    assert prefs.get() == Preferences(locale="ar", currency="EUR", theme="system")


def test_setters_persist_json_and_update_snapshot():
    storage, _, prefs = make_store()

    assert prefs.set_locale("ar").is_right()
    assert prefs.set_currency("SAR").is_right()
    assert prefs.set_theme("dark").is_right()

    assert prefs.get() == Preferences(locale="ar", currency="SAR", theme="dark")
    assert storage.get("locale") == '"ar"'
    assert storage.get("currency") == '"SAR"'
    assert storage.get("theme") == '"dark"'

    restored = PreferenceStore(storage)
    assert restored.get() == prefs.get()


def test_invalid_value_rejected_and_nothing_changes():
    storage, bus, prefs = make_store()
    events = []
    bus.subscribe(PREFERENCES_CHANGED, lambda e, p: events.append(p))

    result = prefs.set_currency("GBP")

    assert result.is_left()
    assert result.get_error()["error"] == "invalid_preference"
    assert prefs.get().currency == "USD"
    assert storage.get("currency") is None
    assert events == []


def test_change_is_published_synchronously_after_persisting():
    storage, bus, prefs = make_store()
    seen = []
    bus.subscribe(PREFERENCES_CHANGED, lambda e, p: seen.append((p, storage.get(p["field"]), prefs.get().locale)))

    prefs.set_locale("ar")

    assert seen == [({"field": "locale", "value": "ar"}, '"ar"', "ar")]


def test_rtl_follows_locale():
    _, _, prefs = make_store()
    assert not prefs.is_rtl
    assert prefs.direction == "ltr"
    prefs.set_locale("ar")
    assert prefs.is_rtl
    assert prefs.direction == "rtl"


def test_translate_resolves_dot_path():
    _, _, prefs = make_store()
    assert prefs.translate("dashboard.title") == "Finance Tracker"
    assert prefs.translate("categories.food") == "Food"
    prefs.set_locale("ar")
    assert prefs.translate("categories.food") == "طعام"


def test_translate_missing_returns_key():
    _, _, prefs = make_store()
    assert prefs.translate("dashboard.nope") == "dashboard.nope"
    assert prefs.translate("nope.at.all") == "nope.at.all"
    # path ending on a table, not a string
    assert prefs.translate("dashboard") == "dashboard"
    assert prefs.translate("dashboard.title.extra") == "dashboard.title.extra"


def test_translate_with_injected_tables():
    tables = {"en": {"a": {"b": "value"}}, "ar": {}}
    _, _, prefs = make_store(string_tables=tables)
    assert prefs.translate("a.b") == "value"
    prefs.set_locale("ar")
    assert prefs.translate("a.b") == "a.b"


def test_lookup():
    assert lookup({"x": {"y": "z"}}, "x.y").get_or_else(None) == "z"
    assert lookup({"x": {"y": "z"}}, "x.q").is_none()


def test_string_tables_have_same_keys_per_locale():
    tables = load_string_tables()

    def paths(node, prefix=""):
        for key, value in node.items():
            if isinstance(value, dict):
                yield from paths(value, f"{prefix}{key}.")
            else:
                yield f"{prefix}{key}"

    assert set(paths(tables["en"])) == set(paths(tables["ar"]))


def test_format_currency_usd_en():
    _, _, prefs = make_store()
    assert prefs.format_currency(1234.5) == "$1,234.50"


def test_format_currency_ils_ar_symbol_after():
    _, _, prefs = make_store()
    prefs.set_currency("ILS")
    prefs.set_locale("ar")
    assert prefs.format_currency(1234.5) == "1,234.50 ₪"


def test_currency_change_relabels_without_conversion():
    _, _, prefs = make_store()
    prefs.set_currency("EUR")
    assert prefs.format_currency(100) == "€100.00"
    prefs.set_currency("AED")
    assert prefs.format_currency(100) == "د.إ100.00"


def test_format_amount_rounding_and_grouping():
    assert format_amount(0) == "0.00"
    assert format_amount(1234567.891) == "1,234,567.89"
    assert format_amount(0.125) == "0.13"
    assert format_amount(-5) == "-5.00"


def test_system_theme_follows_environment_signal():
    _, bus, prefs = make_store(system_dark=False)
    events = []
    bus.subscribe(PREFERENCES_CHANGED, lambda e, p: events.append(p))

    assert prefs.effective_theme() == "light"
    prefs.set_system_dark(True)
    assert prefs.effective_theme() == "dark"
    assert events == [{"field": "effective_theme", "value": "dark"}]

    prefs.set_system_dark(True)
    assert len(events) == 1


def test_explicit_theme_ignores_environment_signal():
    _, bus, prefs = make_store()
    prefs.set_theme("light")
    events = []
    bus.subscribe(PREFERENCES_CHANGED, lambda e, p: events.append(p))

    prefs.set_system_dark(True)

    assert prefs.effective_theme() == "light"
    assert events == []


def test_toggle_theme():
    _, _, prefs = make_store()
    prefs.toggle_theme()
    assert prefs.get().theme == "dark"
    prefs.toggle_theme()
    assert prefs.get().theme == "light"
