from typing import Any, Callable, Dict, List, NamedTuple
from datetime import datetime

__all__ = [
    'EventBus', 'Event', 'Handler',
    'COLLECTION_CHANGED', 'PREFERENCES_CHANGED', 'DATA_IMPORTED',
]


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], Any]


class EventBus:
    """Synchronous publish/subscribe. Handlers run in subscription order
    before ``publish`` returns."""

    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        if name not in self._subscribers:
            self._subscribers[name] = []
        self._subscribers[name].append(handler)

    def publish(self, name: str, payload: dict) -> List[Any]:
        if name not in self._subscribers:
            return []

        event = Event(
            name=name,
            ts=datetime.now().isoformat(),
            payload=payload
        )

        results = []
        # copy so a handler may unsubscribe itself
        for handler in list(self._subscribers[name]):
            results.append(handler(event, payload))
        return results

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if name in self._subscribers:
            if handler in self._subscribers[name]:
                self._subscribers[name].remove(handler)


COLLECTION_CHANGED = "COLLECTION_CHANGED"
PREFERENCES_CHANGED = "PREFERENCES_CHANGED"
DATA_IMPORTED = "DATA_IMPORTED"
