"""Event aggregates.

An event owns its roster and, coupled to it, its subscriber list. Both are
guarded by one lock so they always move together; the subscriber list is an
immutable tuple replaced on every change, and notifications are delivered
from the tuple captured at mutation time, outside the lock.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import ClassVar, Iterable

from event_manager.domain.errors import (
    AlreadyEnrolledError,
    CapacityExceededError,
    EventCancelledError,
)
from event_manager.domain.observers import (
    DispatchReport,
    NotificationKind,
    Subscriber,
    fan_out,
)
from event_manager.domain.participants import Participant
from event_manager.domain.value_objects import Capacity, Speaker

logger = logging.getLogger("event_manager.events")

DATE_FORMAT = "%d/%m/%Y %H:%M"


class EventKind(Enum):
    TALK = "talk"
    CONCERT = "concert"


class Event(ABC):
    """Something participants enroll in and get notified about."""

    kind: ClassVar[EventKind]

    def __init__(
        self,
        id: str,
        name: str,
        date: datetime,
        location: str,
        capacity_max: int,
    ) -> None:
        self._id = id
        self._name = name
        self._date = date
        self._location = location
        self._capacity = Capacity(capacity_max)
        self._cancelled = False
        self._enrolled: dict[str, Participant] = {}
        self._subscribers: tuple[Subscriber, ...] = ()
        self._lock = threading.RLock()

    # -- read side --------------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def date(self) -> datetime:
        return self._date

    @property
    def location(self) -> str:
        return self._location

    @property
    def capacity_max(self) -> int:
        return self._capacity.value

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def enrolled(self) -> tuple[Participant, ...]:
        with self._lock:
            return tuple(self._enrolled.values())

    @property
    def subscribers(self) -> tuple[Subscriber, ...]:
        return self._subscribers

    @property
    def participant_count(self) -> int:
        return len(self._enrolled)

    @property
    def available_seats(self) -> int:
        return max(0, self.capacity_max - self.participant_count)

    @property
    def occupancy_pct(self) -> float:
        return self.participant_count / self.capacity_max * 100

    def is_enrolled(self, participant: Participant) -> bool:
        return participant.id in self._enrolled

    # -- membership -------------------------------------------------------

    def enroll(self, participant: Participant) -> None:
        """Add a participant to the roster and subscribe it.

        Raises:
            EventCancelledError: If the event is cancelled.
            CapacityExceededError: If every seat is taken.
            AlreadyEnrolledError: If the participant is already a member.
        """
        with self._lock:
            if self._cancelled:
                raise EventCancelledError(self._id, self._name)
            count = len(self._enrolled)
            if count >= self.capacity_max:
                raise CapacityExceededError(
                    self._id, self._name, self.capacity_max, count
                )
            if participant.id in self._enrolled:
                raise AlreadyEnrolledError(self._id, participant.id)

            self._enrolled[participant.id] = participant
            self._add_subscriber(participant)
            message = (
                f"New participant: {participant.name} "
                f"({len(self._enrolled)}/{self.capacity_max} seats)"
            )
            targets, name = self._subscribers, self._name

        logger.info(f"{participant.name} enrolled in '{name}'")
        self._dispatch(targets, name, NotificationKind.MODIFIED, message)

    def withdraw(self, participant: Participant) -> bool:
        """Remove a participant from the roster and unsubscribe it.

        Returns False when it was not a member, or when the event is
        cancelled and its roster frozen.
        """
        with self._lock:
            if self._cancelled:
                logger.debug(f"Roster of cancelled '{self._name}' is frozen")
                return False
            member = self._enrolled.pop(participant.id, None)
            if member is None:
                return False
            self._remove_subscriber(member)
            message = (
                f"Participant left: {member.name} "
                f"({len(self._enrolled)}/{self.capacity_max} seats)"
            )
            targets, name = self._subscribers, self._name

        logger.info(f"{member.name} withdrew from '{name}'")
        self._dispatch(targets, name, NotificationKind.MODIFIED, message)
        return True

    def subscribe(self, observer: Subscriber) -> None:
        """Subscribe an observer without enrolling it."""
        with self._lock:
            if self._cancelled:
                raise EventCancelledError(self._id, self._name)
            self._add_subscriber(observer)

    def unsubscribe(self, observer: Subscriber) -> bool:
        """Drop a non-member observer. Members stay subscribed until they withdraw."""
        with self._lock:
            if self._cancelled:
                return False
            if isinstance(observer, Participant) and observer.id in self._enrolled:
                logger.debug(f"{observer!r} is enrolled in '{self._name}', kept")
                return False
            return self._remove_subscriber(observer)

    # -- field changes ----------------------------------------------------

    def rename(self, new_name: str) -> None:
        with self._lock:
            old = self._name
            if new_name == old:
                return
            self._name = new_name
            targets, name = self._subscribers, self._name
        self._dispatch(
            targets,
            name,
            NotificationKind.INFO_CHANGED,
            f"Name changed: '{old}' → '{new_name}'",
        )

    def relocate(self, new_location: str) -> None:
        with self._lock:
            old = self._location
            if new_location == old:
                return
            self._location = new_location
            targets, name = self._subscribers, self._name
        self._dispatch(
            targets,
            name,
            NotificationKind.INFO_CHANGED,
            f"Location changed: '{old}' → '{new_location}'",
        )

    def resize(self, new_capacity: int) -> None:
        """Change the number of seats.

        Members are never evicted; shrinking below the roster size only
        blocks further enrollment.
        """
        capacity = Capacity(new_capacity)
        with self._lock:
            old = self._capacity
            if capacity == old:
                return
            self._capacity = capacity
            members = len(self._enrolled)
            targets, name = self._subscribers, self._name
        if capacity.value < members:
            logger.warning(
                f"'{name}' resized to {capacity.value} seats "
                f"below its {members} members"
            )
        self._dispatch(
            targets,
            name,
            NotificationKind.INFO_CHANGED,
            f"Capacity changed: {old.value} → {capacity.value} seats",
        )

    def reschedule(self, new_date: datetime) -> None:
        with self._lock:
            old = self._date
            if new_date == old:
                return
            self._date = new_date
            targets, name = self._subscribers, self._name
        self._dispatch(
            targets,
            name,
            NotificationKind.INFO_CHANGED,
            f"Date changed: {old:{DATE_FORMAT}} → {new_date:{DATE_FORMAT}}",
        )

    # -- lifecycle --------------------------------------------------------

    def cancel(self) -> DispatchReport:
        """Cancel the event and notify every subscriber.

        Cancelling twice notifies twice.
        """
        with self._lock:
            self._cancelled = True
            message = (
                f"Event '{self._name}' scheduled on "
                f"{self._date:%d/%m/%Y at %H:%M} at {self._location} "
                "has been cancelled. We apologize for the inconvenience."
            )
            targets, name = self._subscribers, self._name
        logger.info(f"'{name}' cancelled, notifying {len(targets)} subscribers")
        return self._dispatch(targets, name, NotificationKind.CANCELLED, message)

    def reset(self) -> None:
        """Reopen the event with an empty roster. Nobody is notified."""
        with self._lock:
            self._cancelled = False
            self._enrolled.clear()
            self._subscribers = ()
        logger.info(f"'{self._name}' reset")

    def restore(self, enrolled: Iterable[Participant], cancelled: bool = False) -> None:
        """Install persisted membership without notifying anyone.

        Subscriptions are left untouched; call rebuild_subscriptions() next.
        """
        with self._lock:
            self._enrolled = {participant.id: participant for participant in enrolled}
            self._cancelled = cancelled

    def rebuild_subscriptions(self) -> int:
        """Derive the subscriber list from the roster again.

        Any previous subscriber, member or not, is dropped first.
        """
        with self._lock:
            self._subscribers = tuple(self._enrolled.values())
            count = len(self._subscribers)
        logger.debug(f"'{self._name}' rebuilt {count} subscriptions")
        return count

    def replace_member(self, participant: Participant) -> bool:
        """Swap in a new instance for any entry with the same id, keeping positions.

        Roster and subscriber entries are both swapped; a non-member
        subscriber with that id is replaced as well. Returns True when the
        participant was a member.
        """
        with self._lock:
            is_member = participant.id in self._enrolled
            if is_member:
                self._enrolled = {
                    pid: participant if pid == participant.id else member
                    for pid, member in self._enrolled.items()
                }
            self._subscribers = tuple(
                participant
                if isinstance(sub, Participant) and sub.id == participant.id
                else sub
                for sub in self._subscribers
            )
            return is_member

    # -- notifications ----------------------------------------------------

    def notify_modified(self, message: str) -> DispatchReport:
        return self._dispatch(*self._targets(), NotificationKind.MODIFIED, message)

    def notify_cancelled(self, message: str) -> DispatchReport:
        return self._dispatch(*self._targets(), NotificationKind.CANCELLED, message)

    def notify_info_changed(self, message: str) -> DispatchReport:
        return self._dispatch(
            *self._targets(), NotificationKind.INFO_CHANGED, message
        )

    def _targets(self) -> tuple[tuple[Subscriber, ...], str]:
        with self._lock:
            return self._subscribers, self._name

    def _dispatch(
        self,
        targets: tuple[Subscriber, ...],
        event_name: str,
        kind: NotificationKind,
        message: str,
    ) -> DispatchReport:
        return fan_out(targets, kind, event_name, message)

    def _add_subscriber(self, observer: Subscriber) -> None:
        if observer not in self._subscribers:
            self._subscribers = self._subscribers + (observer,)
            logger.debug(
                f"Subscriber added to '{self._name}' "
                f"({len(self._subscribers)} total)"
            )

    def _remove_subscriber(self, observer: Subscriber) -> bool:
        remaining = tuple(sub for sub in self._subscribers if sub != observer)
        removed = len(remaining) != len(self._subscribers)
        if removed:
            self._subscribers = remaining
            logger.debug(
                f"Subscriber removed from '{self._name}' "
                f"({len(self._subscribers)} total)"
            )
        return removed

    # -- display ----------------------------------------------------------

    @abstractmethod
    def details(self) -> dict[str, object]:
        """Fields specific to the event kind."""

    def describe(self) -> str:
        lines = [
            f"{self.kind.value.capitalize()} {self._id}: {self._name}",
            f"Date: {self._date:{DATE_FORMAT}}",
            f"Location: {self._location}",
            f"Seats: {self.participant_count}/{self.capacity_max}",
            f"Status: {'CANCELLED' if self._cancelled else 'ACTIVE'}",
            f"Subscribers: {len(self._subscribers)}",
        ]
        lines.extend(f"{key}: {value}" for key, value in self.details().items())
        return "\n".join(lines)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return self._id == other._id

    def __hash__(self) -> int:
        return hash(self._id)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(id={self._id!r}, name={self._name!r}, "
            f"participants={self.participant_count}/{self.capacity_max}, "
            f"subscribers={len(self._subscribers)})"
        )


class Talk(Event):
    """A talk with a theme and an ordered list of speakers."""

    kind = EventKind.TALK

    def __init__(
        self,
        id: str,
        name: str,
        date: datetime,
        location: str,
        capacity_max: int,
        theme: str = "",
        speakers: Iterable[Speaker] = (),
    ) -> None:
        super().__init__(id, name, date, location, capacity_max)
        self.theme = theme
        self._speakers: list[Speaker] = []
        for speaker in speakers:
            self.add_speaker(speaker)

    @property
    def speakers(self) -> tuple[Speaker, ...]:
        return tuple(self._speakers)

    def add_speaker(self, speaker: Speaker) -> None:
        with self._lock:
            if speaker not in self._speakers:
                self._speakers.append(speaker)

    def remove_speaker(self, speaker: Speaker) -> bool:
        with self._lock:
            if speaker in self._speakers:
                self._speakers.remove(speaker)
                return True
            return False

    def details(self) -> dict[str, object]:
        return {
            "Theme": self.theme,
            "Speakers": ", ".join(str(s) for s in self._speakers) or "none",
        }


class Concert(Event):
    """A concert by an artist in a musical genre."""

    kind = EventKind.CONCERT

    def __init__(
        self,
        id: str,
        name: str,
        date: datetime,
        location: str,
        capacity_max: int,
        artist: str = "",
        genre: str = "",
    ) -> None:
        super().__init__(id, name, date, location, capacity_max)
        self.artist = artist
        self.genre = genre

    def details(self) -> dict[str, object]:
        return {"Artist": self.artist, "Genre": self.genre}
