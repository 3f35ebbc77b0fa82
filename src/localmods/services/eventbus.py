from __future__ import annotations
import time
from threading import RLock
from typing import Any, Callable, List, Mapping, Optional, Tuple

from localmods.domain import Event
from localmods.ports import EventBus

Handler = Callable[[Event], Any]


class LocalEventBus(EventBus):
    """
    Prefix-routed, synchronous in-process bus.
      * prefix "" or "*" subscribes to everything.
      * handlers run in subscription order inside ``publish``; their errors propagate.
    """

    def __init__(self) -> None:
        self._subs: List[Tuple[str, Handler]] = []
        self._lock = RLock()

    def subscribe(self, type_prefix: str, handler: Handler) -> Callable[[], None]:
        entry = (type_prefix, handler)
        with self._lock:
            self._subs.append(entry)

        def _unsubscribe() -> None:
            with self._lock:
                if entry in self._subs:
                    self._subs.remove(entry)

        return _unsubscribe

    def publish(self, event: Event) -> None:
        with self._lock:
            subs = self._subs[:]
        for prefix, handler in subs:
            if prefix in ("", "*") or event.type.startswith(prefix):
                handler(event)


def emit(bus: Optional[EventBus], type_: str, payload: Mapping[str, Any], source: str) -> None:
    if bus is None:
        return
    bus.publish(Event(type=type_, payload=dict(payload), source=source, ts=time.time()))
