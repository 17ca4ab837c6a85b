from datetime import datetime

from tracker.events import (
    COLLECTION_CHANGED,
    DATA_IMPORTED,
    PREFERENCES_CHANGED,
    Event,
    EventBus,
)


def test_event_creation():
    event = Event(
        name=COLLECTION_CHANGED,
        ts=datetime.now().isoformat(),
        payload={"key": "expenses", "action": "add"}
    )
    assert event.name == COLLECTION_CHANGED
    assert event.payload["key"] == "expenses"


def test_publish_without_subscribers():
    bus = EventBus()
    assert bus.publish(COLLECTION_CHANGED, {"key": "goals"}) == []


def test_subscribe_and_publish():
    bus = EventBus()
    received = []

    def handler(event: Event, payload: dict) -> dict:
        received.append((event.name, payload))
        return {"processed": True}

    bus.subscribe(PREFERENCES_CHANGED, handler)
    results = bus.publish(PREFERENCES_CHANGED, {"field": "locale", "value": "ar"})

    assert results == [{"processed": True}]
    assert received == [(PREFERENCES_CHANGED, {"field": "locale", "value": "ar"})]


def test_handlers_run_in_subscription_order():
    bus = EventBus()
    order = []
    bus.subscribe(COLLECTION_CHANGED, lambda e, p: order.append(1))
    bus.subscribe(COLLECTION_CHANGED, lambda e, p: order.append(2))

    bus.publish(COLLECTION_CHANGED, {})

    assert order == [1, 2]


def test_unsubscribe():
    bus = EventBus()
    calls = []

    def handler(event: Event, payload: dict) -> None:
        calls.append(payload)

    bus.subscribe(DATA_IMPORTED, handler)
    bus.publish(DATA_IMPORTED, {"keys": ["goals"]})
    bus.unsubscribe(DATA_IMPORTED, handler)
    bus.publish(DATA_IMPORTED, {"keys": ["income"]})

    assert calls == [{"keys": ["goals"]}]


def test_handler_may_unsubscribe_itself():
    bus = EventBus()
    calls = []

    def once(event: Event, payload: dict) -> None:
        calls.append("once")
        bus.unsubscribe(COLLECTION_CHANGED, once)

    bus.subscribe(COLLECTION_CHANGED, once)
    bus.subscribe(COLLECTION_CHANGED, lambda e, p: calls.append("always"))

    bus.publish(COLLECTION_CHANGED, {})
    bus.publish(COLLECTION_CHANGED, {})

    assert calls == ["once", "always", "always"]


def test_event_types_are_independent():
    bus = EventBus()
    seen = []
    bus.subscribe(COLLECTION_CHANGED, lambda e, p: seen.append(e.name))
    bus.subscribe(PREFERENCES_CHANGED, lambda e, p: seen.append(e.name))

    bus.publish(PREFERENCES_CHANGED, {})

    assert seen == [PREFERENCES_CHANGED]
