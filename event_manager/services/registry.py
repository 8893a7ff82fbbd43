"""Event registry - owns every event and participant of the process.

The registry:
- Resolves ids to entities and raises domain errors for unknown ones
- Delegates membership changes to the Event, which notifies subscribers
- Cancels an event with members before removing it
- Sends lifecycle signals for collaborators
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from event_manager import signals
from event_manager.domain.errors import (
    EventAlreadyExistsError,
    EventNotFoundError,
    ParticipantNotFoundError,
)
from event_manager.domain.models import Event, EventKind
from event_manager.domain.participants import Organizer, Participant

if TYPE_CHECKING:
    from event_manager.persistence.snapshot import Snapshot

logger = logging.getLogger("event_manager.registry")


@dataclass(frozen=True)
class RegistryStatistics:
    event_count: int
    participant_count: int
    count_by_kind: dict[str, int]
    total_enrollments: int
    total_subscribers: int
    average_occupancy: float | None
    subscribers_by_event: dict[str, int]


class EventRegistry:
    """Single owner of the events and participants of a process."""

    def __init__(self) -> None:
        self._events: dict[str, Event] = {}
        self._participants: dict[str, Participant] = {}
        self._lock = threading.RLock()

    # -- views ------------------------------------------------------------

    def events(self) -> list[Event]:
        """All events, in registration order."""
        with self._lock:
            return list(self._events.values())

    def participants(self) -> list[Participant]:
        """All participants, in registration order."""
        with self._lock:
            return list(self._participants.values())

    # -- events -----------------------------------------------------------

    def add_event(self, event: Event) -> None:
        """Register an event.

        Raises:
            EventAlreadyExistsError: If the id is already taken.
        """
        with self._lock:
            existing = self._events.get(event.id)
            if existing is not None:
                raise EventAlreadyExistsError(event.id, existing.name)
            self._events[event.id] = event
        logger.info(f"Event registered: {event.id} '{event.name}'")
        signals.event_registered.send_robust(sender=self, event=event)

    def find_event(self, event_id: str) -> Event:
        """Return an event by id.

        Raises:
            EventNotFoundError: If the event does not exist.
        """
        with self._lock:
            event = self._events.get(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    def remove_event(self, event_id: str) -> None:
        """Remove an event, cancelling it first when it has members.

        Raises:
            EventNotFoundError: If the event does not exist.
        """
        event = self.find_event(event_id)

        notified = 0
        if event.participant_count:
            logger.info(
                f"Cancelling '{event.name}' before removal, "
                f"{event.participant_count} members to notify"
            )
            notified = event.cancel().delivered

        with self._lock:
            self._events.pop(event_id, None)
            organizers = [
                p for p in self._participants.values() if isinstance(p, Organizer)
            ]
        for organizer in organizers:
            organizer.remove_organized_event(event)

        logger.info(f"Event removed: {event_id} '{event.name}'")
        signals.event_removed.send_robust(sender=self, event=event, notified=notified)

    def modify_event(
        self,
        event_id: str,
        name: str | None = None,
        date: datetime | None = None,
        location: str | None = None,
    ) -> None:
        """Apply the given fields; each change notifies subscribers on its own.

        Raises:
            EventNotFoundError: If the event does not exist.
        """
        event = self.find_event(event_id)
        if name is not None:
            event.rename(name)
        if date is not None:
            event.reschedule(date)
        if location is not None:
            event.relocate(location)

    # -- participants -----------------------------------------------------

    def add_participant(self, participant: Participant) -> None:
        """Register a participant, replacing any previous one with the same id.

        The new instance takes over the memberships and subscriptions of the
        one it replaces.
        """
        with self._lock:
            previous = self._participants.get(participant.id)
            self._participants[participant.id] = participant
            events = list(self._events.values())

        if previous is not None and previous is not participant:
            moved = sum(1 for event in events if event.replace_member(participant))
            if isinstance(previous, Organizer) and isinstance(participant, Organizer):
                for event in previous.organized_events:
                    participant.add_organized_event(event)
            logger.info(
                f"Participant replaced: {participant.id} "
                f"({moved} memberships carried over)"
            )
        else:
            logger.info(f"Participant registered: {participant.id} '{participant.name}'")
        signals.participant_registered.send_robust(
            sender=self, participant=participant, replaced=previous
        )

    def find_participant(self, participant_id: str) -> Participant:
        """Return a participant by id.

        Raises:
            ParticipantNotFoundError: If the participant does not exist.
        """
        with self._lock:
            participant = self._participants.get(participant_id)
        if participant is None:
            raise ParticipantNotFoundError(participant_id)
        return participant

    def enroll_participant(self, participant_id: str, event_id: str) -> None:
        """Enroll a participant; it becomes a subscriber of the event.

        Raises:
            ParticipantNotFoundError: If the participant does not exist.
            EventNotFoundError: If the event does not exist.
            CapacityExceededError: If the event is full.
            AlreadyEnrolledError: If the participant is already enrolled.
            EventCancelledError: If the event is cancelled.
        """
        participant = self.find_participant(participant_id)
        event = self.find_event(event_id)
        event.enroll(participant)

    def withdraw_participant(self, participant_id: str, event_id: str) -> None:
        """Withdraw a participant; it stops being a subscriber of the event.

        Raises:
            ParticipantNotFoundError: If the participant does not exist.
            EventNotFoundError: If the event does not exist.
        """
        participant = self.find_participant(participant_id)
        event = self.find_event(event_id)
        if not event.withdraw(participant):
            logger.debug(f"{participant_id} was not enrolled in {event_id}")

    def assign_organizer(self, organizer_id: str, event_id: str) -> None:
        """Record that an organizer runs an event.

        Raises:
            ParticipantNotFoundError: If the organizer does not exist.
            EventNotFoundError: If the event does not exist.
            TypeError: If the participant is not an organizer.
        """
        organizer = self.find_participant(organizer_id)
        if not isinstance(organizer, Organizer):
            raise TypeError(f"Participant '{organizer_id}' is not an organizer")
        organizer.add_organized_event(self.find_event(event_id))

    # -- bulk -------------------------------------------------------------

    def clear_all(self) -> None:
        """Drop everything without cancellation notices."""
        with self._lock:
            dropped_events = len(self._events)
            dropped_participants = len(self._participants)
            self._events.clear()
            self._participants.clear()
        logger.info(
            f"Registry cleared: {dropped_events} events, "
            f"{dropped_participants} participants"
        )
        signals.registry_cleared.send_robust(
            sender=self, events=dropped_events, participants=dropped_participants
        )

    def restore(self, snapshot: Snapshot) -> None:
        """Replace the registry content with a loaded snapshot.

        Like clear_all(), nobody is notified about the dropped content.
        """
        events = {event.id: event for event in snapshot.events}
        participants = {p.id: p for p in snapshot.participants}
        with self._lock:
            self._events = events
            self._participants = participants
        logger.info(
            f"Registry restored: {len(snapshot.events)} events, "
            f"{len(snapshot.participants)} participants"
        )
        signals.registry_restored.send_robust(sender=self, snapshot=snapshot)

    # -- search -----------------------------------------------------------

    def search_by_name(self, text: str) -> list[Event]:
        needle = text.lower()
        return [e for e in self.events() if needle in e.name.lower()]

    def search_by_location(self, text: str) -> list[Event]:
        needle = text.lower()
        return [e for e in self.events() if needle in e.location.lower()]

    def search_by_kind(self, kind: EventKind) -> list[Event]:
        return [e for e in self.events() if e.kind is kind]

    def search_by_date_range(self, start: datetime, end: datetime) -> list[Event]:
        return [e for e in self.events() if start <= e.date <= end]

    # -- statistics -------------------------------------------------------

    def count_by_kind(self) -> dict[str, int]:
        return dict(Counter(e.kind.value for e in self.events()))

    def total_enrollments(self) -> int:
        return sum(e.participant_count for e in self.events())

    def total_subscribers(self) -> int:
        return sum(len(e.subscribers) for e in self.events())

    def average_occupancy(self) -> float | None:
        """Mean occupancy percentage over events, None without events."""
        events = self.events()
        if not events:
            return None
        return sum(e.occupancy_pct for e in events) / len(events)

    def subscribers_by_event(self) -> dict[str, int]:
        return {e.name: len(e.subscribers) for e in self.events()}

    def statistics(self) -> RegistryStatistics:
        with self._lock:
            return RegistryStatistics(
                event_count=len(self._events),
                participant_count=len(self._participants),
                count_by_kind=self.count_by_kind(),
                total_enrollments=self.total_enrollments(),
                total_subscribers=self.total_subscribers(),
                average_occupancy=self.average_occupancy(),
                subscribers_by_event=self.subscribers_by_event(),
            )


_default_registry: EventRegistry | None = None
_default_registry_lock = threading.Lock()


def get_default_registry() -> EventRegistry:
    """Process-wide registry, built on first access exactly once."""
    global _default_registry
    if _default_registry is None:
        with _default_registry_lock:
            if _default_registry is None:
                _default_registry = EventRegistry()
                logger.debug("Default event registry created")
    return _default_registry
