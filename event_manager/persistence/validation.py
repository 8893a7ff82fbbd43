"""Integrity checks run before a save and after a load.

Both return every violation found instead of stopping at the first one; the
codec raises a single ValidationError carrying the whole list.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping, Sequence

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email

from event_manager.conf import event_manager_settings
from event_manager.domain.models import Event
from event_manager.domain.participants import Participant


def _duplicates(ids: Iterable[str]) -> list[str]:
    return [value for value, count in Counter(ids).items() if count > 1]


def _over_capacity(event_id: str, count: int, capacity: int) -> str:
    return f"Event '{event_id}' has {count} participants for {capacity} seats"


def check_before_save(
    events: Sequence[Event], participants: Sequence[Participant]
) -> list[str]:
    violations = []

    for event_id in _duplicates(e.id for e in events):
        violations.append(f"Duplicate event id: '{event_id}'")
    for participant_id in _duplicates(p.id for p in participants):
        violations.append(f"Duplicate participant id: '{participant_id}'")

    known = {p.id for p in participants}
    for event in events:
        if not (event.id or "").strip():
            violations.append(f"Event '{event.name}' has no id")
        if not (event.name or "").strip():
            violations.append(f"Event '{event.id}' has no name")
        if event.participant_count > event.capacity_max:
            violations.append(
                _over_capacity(event.id, event.participant_count, event.capacity_max)
            )
        for member in event.enrolled:
            if member.id not in known:
                violations.append(
                    f"Participant '{member.id}' enrolled in '{event.id}' "
                    "is missing from the participant list"
                )

    for participant in participants:
        if not (participant.id or "").strip():
            violations.append(f"Participant '{participant.name}' has no id")
        if not (participant.name or "").strip():
            violations.append(f"Participant '{participant.id}' has no name")
        try:
            validate_email(participant.email)
        except DjangoValidationError:
            violations.append(
                f"Participant '{participant.id}' has an invalid email: "
                f"{participant.email!r}"
            )

    return violations


def check_structure(
    attrs: Mapping[str, Any], now: datetime | None = None
) -> list[str]:
    """Cross-record checks on validated snapshot data (snake_case keys)."""
    violations = []
    events = attrs.get("events", [])
    participants = attrs.get("participants", [])

    for event_id in _duplicates(e["id"] for e in events):
        violations.append(f"Duplicate event id: '{event_id}'")
    for participant_id in _duplicates(p["id"] for p in participants):
        violations.append(f"Duplicate participant id: '{participant_id}'")

    known_participants = {p["id"] for p in participants}
    known_events = {e["id"] for e in events}

    for event in events:
        enrolled = event.get("enrolled", [])
        for participant_id in _duplicates(enrolled):
            violations.append(
                f"Participant '{participant_id}' is listed twice in '{event['id']}'"
            )
        for participant_id in enrolled:
            if participant_id not in known_participants:
                violations.append(
                    f"Event '{event['id']}' references unknown participant "
                    f"'{participant_id}'"
                )
        if len(set(enrolled)) > event["capacity_max"]:
            violations.append(
                _over_capacity(event["id"], len(set(enrolled)), event["capacity_max"])
            )

    for participant in participants:
        for event_id in participant.get("organized_event_ids", ()):
            if event_id not in known_events:
                violations.append(
                    f"Organizer '{participant['id']}' references unknown event "
                    f"'{event_id}'"
                )

    saved_at = attrs.get("saved_at")
    if saved_at is not None:
        tolerance = timedelta(
            minutes=event_manager_settings.FUTURE_SAVE_TOLERANCE_MINUTES
        )
        if saved_at > (now or datetime.now()) + tolerance:
            violations.append(f"savedAt is in the future: {saved_at.isoformat()}")

    stats = attrs.get("stats")
    if stats:
        kind_total = stats["talk_count"] + stats["concert_count"]
        if kind_total != len(events):
            violations.append(
                f"stats count {kind_total} events but the snapshot has {len(events)}"
            )
        role_total = stats["organizer_count"] + stats["participant_count"]
        if role_total != len(participants):
            violations.append(
                f"stats count {role_total} participants but the snapshot has "
                f"{len(participants)}"
            )

    return violations
