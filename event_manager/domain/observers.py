"""Subscriber capability and the notification fan-out shared by all events.

Fan-out behavior:
1. Iterate an immutable snapshot of the subscribers, in subscription order
2. Call the callback matching the notification kind
3. Catch a failing callback, log it, continue with the next subscriber

A failing subscriber never aborts the operation that triggered the fan-out.
There is no atomicity across subscribers: if the process dies mid-loop,
earlier subscribers have been notified and later ones have not.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Protocol, runtime_checkable

logger = logging.getLogger("event_manager.notifications")


class NotificationKind(Enum):
    MODIFIED = "modified"
    CANCELLED = "cancelled"
    INFO_CHANGED = "info_changed"

    @property
    def callback_name(self) -> str:
        return f"on_{self.value}"


@runtime_checkable
class Subscriber(Protocol):
    """Anything that wants to hear about changes to an event."""

    def on_modified(self, event_name: str, message: str) -> None:
        ...

    def on_cancelled(self, event_name: str, message: str) -> None:
        ...

    def on_info_changed(self, event_name: str, message: str) -> None:
        ...


@dataclass(frozen=True)
class Notification:
    """A notification as received by a participant."""

    kind: NotificationKind
    event_name: str
    message: str
    received_at: datetime = field(default_factory=datetime.now)


@dataclass
class DispatchReport:
    """Outcome of one fan-out."""

    kind: NotificationKind
    event_name: str
    delivered: int = 0
    failed: int = 0
    failures: list[dict] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.delivered + self.failed


def fan_out(
    subscribers: Iterable[Subscriber],
    kind: NotificationKind,
    event_name: str,
    message: str,
) -> DispatchReport:
    """Deliver one notification to every subscriber.

    This function never raises because of a subscriber.
    """
    report = DispatchReport(kind=kind, event_name=event_name)
    targets = tuple(subscribers)
    if not targets:
        logger.debug(f"No subscribers for {kind.value} on '{event_name}'")
        return report

    for subscriber in targets:
        try:
            callback = getattr(subscriber, kind.callback_name)
            callback(event_name, message)
            report.delivered += 1
        except Exception as exc:
            report.failed += 1
            report.failures.append(
                {
                    "subscriber": repr(subscriber),
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                }
            )
            logger.error(
                f"Subscriber {subscriber!r} failed on {kind.value} "
                f"for '{event_name}': {exc}",
                exc_info=True,
            )

    logger.info(
        f"Notified {kind.value} '{event_name}': "
        f"{report.delivered} delivered, {report.failed} failed"
    )
    return report
