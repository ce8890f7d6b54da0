from datetime import datetime
from typing import Protocol

from .types import Event, StatName


class IdleTimeSource(Protocol):
    def get_idle_milliseconds(self) -> int:
        """Milliseconds since the last keyboard/mouse input."""
        ...


class StatsSink(Protocol):
    def increment(self, name: StatName) -> None: ...

    def set(
        self, name: StatName, value: int | datetime, only_if_greater: bool = False
    ) -> None: ...


class NotificationSink(Protocol):
    def notify_break(self, enforced: bool, is_big: bool) -> None: ...


class EventSink(Protocol):
    def __call__(self, event: Event) -> None: ...


class NullStats:
    def increment(self, name: StatName) -> None:
        return None

    def set(self, name: StatName, value: int | datetime, only_if_greater: bool = False) -> None:
        return None


class NullNotifier:
    def notify_break(self, enforced: bool, is_big: bool) -> None:
        return None
