"""Progress-changed notifications.

Each engine owns its own ``ProgressEvents``; there is no module-level signal, so
two engines in one process never see each other's events.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from blinker import Signal


class ChangeKind(StrEnum):
    COMPLETED = "completed"
    RESET = "reset"


@dataclass(frozen=True)
class ProgressChange:
    """Payload delivered to listeners."""

    kind: ChangeKind
    total_points: int
    points_earned: int = 0
    module_id: str | None = None


Listener = Callable[[ProgressChange], None]


class ProgressEvents:
    """Subscription point for presentation surfaces that show derived summaries."""

    def __init__(self) -> None:
        self._signal = Signal("progress-changed")

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener and return a callable that unregisters it."""

        def receiver(sender: object, change: ProgressChange) -> None:
            listener(change)

        self._signal.connect(receiver, weak=False)

        def unsubscribe() -> None:
            self._signal.disconnect(receiver)

        return unsubscribe

    def emit(self, change: ProgressChange) -> None:
        self._signal.send(self, change=change)

    @property
    def has_listeners(self) -> bool:
        return bool(self._signal.receivers)
