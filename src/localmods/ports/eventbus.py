from __future__ import annotations
from typing import Any, Callable, Protocol

from localmods.domain import Event


class EventBus(Protocol):
    def subscribe(self, type_prefix: str, handler: Callable[[Event], Any]) -> Callable[[], None]:
        """Register ``handler``; the returned callable removes it again."""
        ...

    def publish(self, event: Event) -> None: ...
