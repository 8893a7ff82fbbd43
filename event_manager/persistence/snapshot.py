"""Snapshot of the registry content, as saved and loaded by the codec."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from event_manager.conf import event_manager_settings
from event_manager.domain.models import Event, EventKind
from event_manager.domain.participants import Participant, ParticipantKind


@dataclass(frozen=True)
class SnapshotStats:
    talk_count: int = 0
    concert_count: int = 0
    organizer_count: int = 0
    participant_count: int = 0
    total_enrollments: int = 0
    avg_occupancy_pct: float = 0.0

    @classmethod
    def compute(
        cls, events: Iterable[Event], participants: Iterable[Participant]
    ) -> SnapshotStats:
        events = list(events)
        kinds = Counter(e.kind for e in events)
        roles = Counter(p.kind for p in participants)
        occupancy = [e.occupancy_pct for e in events]
        return cls(
            talk_count=kinds[EventKind.TALK],
            concert_count=kinds[EventKind.CONCERT],
            organizer_count=roles[ParticipantKind.ORGANIZER],
            participant_count=roles[ParticipantKind.STANDARD],
            total_enrollments=sum(e.participant_count for e in events),
            avg_occupancy_pct=sum(occupancy) / len(occupancy) if occupancy else 0.0,
        )

    @property
    def event_total(self) -> int:
        return self.talk_count + self.concert_count

    @property
    def participant_total(self) -> int:
        return self.organizer_count + self.participant_count


@dataclass
class Snapshot:
    """Registry content plus save metadata.

    Subscriptions are not part of the saved data; a loaded snapshot has them
    rebuilt from each event's roster.
    """

    events: list[Event]
    participants: list[Participant]
    saved_at: datetime
    app_version: str
    format_version: str
    total_subscribers_at_save: int = 0
    comment: str = ""
    stats: SnapshotStats = field(default_factory=SnapshotStats)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def capture(
        cls,
        events: Iterable[Event],
        participants: Iterable[Participant],
        comment: str | None = None,
    ) -> Snapshot:
        events = list(events)
        participants = list(participants)
        subscribers = sum(len(e.subscribers) for e in events)
        if comment is None:
            comment = (
                f"Automatic save - {len(events)} events, "
                f"{len(participants)} participants, {subscribers} subscriptions"
            )
        return cls(
            events=events,
            participants=participants,
            saved_at=datetime.now(),
            app_version=event_manager_settings.APP_VERSION,
            format_version=event_manager_settings.FORMAT_VERSION,
            total_subscribers_at_save=subscribers,
            comment=comment,
            stats=SnapshotStats.compute(events, participants),
        )

    @property
    def is_compatible(self) -> bool:
        return self.format_version in event_manager_settings.SUPPORTED_FORMAT_VERSIONS

    @property
    def age_hours(self) -> int:
        return int((datetime.now() - self.saved_at).total_seconds() // 3600)

    @property
    def total_subscribers(self) -> int:
        return sum(len(e.subscribers) for e in self.events)

    def summary(self) -> str:
        stats = self.stats
        return "\n".join(
            [
                "=== SNAPSHOT SUMMARY ===",
                f"Saved at: {self.saved_at:%d/%m/%Y %H:%M:%S}",
                f"Version: {self.app_version} (format {self.format_version})",
                f"Comment: {self.comment}",
                f"Events: {len(self.events)}",
                f"Participants: {len(self.participants)}",
                f"Subscriptions at save: {self.total_subscribers_at_save}",
                f"Talks: {stats.talk_count}",
                f"Concerts: {stats.concert_count}",
                f"Organizers: {stats.organizer_count}",
                f"Standard participants: {stats.participant_count}",
                f"Enrollments: {stats.total_enrollments}",
                f"Average occupancy: {stats.avg_occupancy_pct:.1f}%",
            ]
        )
