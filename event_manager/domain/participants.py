"""Participants and organizers.

A participant is identified by its id alone. Enrolling it in an event makes it
a subscriber of that event, so it also implements the subscriber callbacks.
"""

from __future__ import annotations

import logging
import threading
import weakref
from collections import deque
from enum import Enum
from typing import TYPE_CHECKING

from event_manager.domain.observers import Notification, NotificationKind

if TYPE_CHECKING:
    from event_manager.domain.models import Event

logger = logging.getLogger("event_manager.participants")

INBOX_SIZE = 100


class ParticipantKind(Enum):
    STANDARD = "standard"
    ORGANIZER = "organizer"


class Participant:
    """Someone who can enroll in events and receive their notifications."""

    kind = ParticipantKind.STANDARD

    def __init__(self, id: str, name: str, email: str) -> None:
        self._id = id
        self.name = name
        self.email = email
        self._inbox: deque[Notification] = deque(maxlen=INBOX_SIZE)
        self._inbox_lock = threading.Lock()

    @property
    def id(self) -> str:
        return self._id

    @property
    def notifications(self) -> tuple[Notification, ...]:
        """Most recent notifications received, oldest first."""
        with self._inbox_lock:
            return tuple(self._inbox)

    def clear_notifications(self) -> None:
        with self._inbox_lock:
            self._inbox.clear()

    def on_modified(self, event_name: str, message: str) -> None:
        self._receive(NotificationKind.MODIFIED, event_name, message)

    def on_cancelled(self, event_name: str, message: str) -> None:
        self._receive(NotificationKind.CANCELLED, event_name, message)

    def on_info_changed(self, event_name: str, message: str) -> None:
        self._receive(NotificationKind.INFO_CHANGED, event_name, message)

    def _receive(self, kind: NotificationKind, event_name: str, message: str) -> None:
        with self._inbox_lock:
            self._inbox.append(Notification(kind, event_name, message))
        logger.info(f"[{self.name}] {kind.value} '{event_name}': {message}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Participant):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(id={self._id!r}, name={self.name!r}, "
            f"email={self.email!r})"
        )


class Organizer(Participant):
    """A participant who also organizes events.

    Organized events are back-references for bookkeeping; the registry owns
    the events, so they are held weakly.
    """

    kind = ParticipantKind.ORGANIZER

    def __init__(self, id: str, name: str, email: str) -> None:
        super().__init__(id, name, email)
        self._organized: dict[str, weakref.ref[Event]] = {}

    @property
    def organized_events(self) -> list[Event]:
        """Events still alive, in the order they were added."""
        events = []
        for ref in list(self._organized.values()):
            event = ref()
            if event is not None:
                events.append(event)
        return events

    @property
    def organized_event_ids(self) -> list[str]:
        return [event.id for event in self.organized_events]

    @property
    def organized_count(self) -> int:
        return len(self.organized_events)

    def add_organized_event(self, event: Event) -> None:
        if event.id not in self._organized:
            self._organized[event.id] = weakref.ref(event)
            logger.debug(f"{self.name} now organizes '{event.name}'")

    def remove_organized_event(self, event: Event) -> bool:
        removed = self._organized.pop(event.id, None) is not None
        if removed:
            logger.debug(f"{self.name} no longer organizes '{event.name}'")
        return removed

    def organizes(self, event: Event) -> bool:
        ref = self._organized.get(event.id)
        return ref is not None and ref() is not None
