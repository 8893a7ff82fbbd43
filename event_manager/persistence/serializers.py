"""Serializers between domain objects and the JSON snapshot format.

Field names on the wire are camelCase and mapped onto the domain attributes
with ``source``. Events are polymorphic on their ``type`` key; supporting a
new kind takes one variant serializer plus one entry in
``EventSerializer.variants``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from rest_framework import serializers
from rest_framework.settings import api_settings

from event_manager.domain.models import Concert, Event, EventKind, Talk
from event_manager.domain.participants import Organizer, Participant
from event_manager.domain.value_objects import Speaker
from event_manager.persistence.snapshot import Snapshot, SnapshotStats
from event_manager.persistence.validation import check_structure


class ParticipantReferenceField(serializers.Field):
    """A member of an event: written as its id, read from an id or an object."""

    default_error_messages = {
        "invalid": "Expected a participant id or an object with an id.",
    }

    def to_representation(self, value: Participant) -> str:
        return value.id

    def to_internal_value(self, data: Any) -> str:
        if isinstance(data, Mapping):
            data = data.get("id")
        if not isinstance(data, str) or not data.strip():
            self.fail("invalid")
        return data


class SpeakerSerializer(serializers.Serializer):
    name = serializers.CharField()
    specialty = serializers.CharField(allow_blank=True, default="")
    biography = serializers.CharField(allow_blank=True, default="")

    def create(self, validated_data):
        return Speaker(**validated_data)


class ParticipantSerializer(serializers.Serializer):
    """Participants and organizers; organizers carry ``organizedEvents``."""

    id = serializers.CharField()
    name = serializers.CharField()
    email = serializers.EmailField()
    organizedEvents = serializers.ListField(
        child=serializers.CharField(), source="organized_event_ids", required=False
    )

    def create(self, validated_data):
        if "organized_event_ids" in validated_data:
            cls = Organizer
        else:
            cls = Participant
        return cls(validated_data["id"], validated_data["name"], validated_data["email"])


class BaseEventSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    date = serializers.DateTimeField()
    location = serializers.CharField(allow_blank=True, default="")
    capacityMax = serializers.IntegerField(source="capacity_max", min_value=1)
    cancelled = serializers.BooleanField(default=False)
    participants = serializers.ListField(
        child=ParticipantReferenceField(), source="enrolled", default=list
    )

    @staticmethod
    def common_kwargs(validated_data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "id": validated_data["id"],
            "name": validated_data["name"],
            "date": validated_data["date"],
            "location": validated_data["location"],
            "capacity_max": validated_data["capacity_max"],
        }


class TalkSerializer(BaseEventSerializer):
    theme = serializers.CharField(allow_blank=True, default="")
    speakers = SpeakerSerializer(many=True, default=list)

    def create(self, validated_data):
        speakers = [SpeakerSerializer().create(s) for s in validated_data["speakers"]]
        return Talk(
            theme=validated_data["theme"],
            speakers=speakers,
            **self.common_kwargs(validated_data),
        )


class ConcertSerializer(BaseEventSerializer):
    artist = serializers.CharField(allow_blank=True, default="")
    genre = serializers.CharField(allow_blank=True, default="")

    def create(self, validated_data):
        return Concert(
            artist=validated_data["artist"],
            genre=validated_data["genre"],
            **self.common_kwargs(validated_data),
        )


class EventSerializer(serializers.Serializer):
    """Dispatches to the variant serializer named by the ``type`` key.

    ``create`` resolves members against ``context["participants"]``, a map of
    id to the canonical Participant instance.
    """

    variants: dict[EventKind, type[BaseEventSerializer]] = {
        EventKind.TALK: TalkSerializer,
        EventKind.CONCERT: ConcertSerializer,
    }

    def to_representation(self, instance: Event) -> dict[str, Any]:
        variant = self.variants[instance.kind](context=self.context)
        return {"type": instance.kind.value, **variant.to_representation(instance)}

    def to_internal_value(self, data: Any) -> dict[str, Any]:
        if not isinstance(data, Mapping):
            raise serializers.ValidationError(
                {api_settings.NON_FIELD_ERRORS_KEY: ["Expected an event object."]}
            )
        try:
            kind = EventKind(data.get("type"))
        except ValueError:
            raise serializers.ValidationError(
                {"type": [f"Unknown event type: {data.get('type')!r}."]}
            ) from None

        variant = self.variants[kind](data=data, context=self.context)
        variant.is_valid(raise_exception=True)
        return {"kind": kind, **variant.validated_data}

    def create(self, validated_data):
        members = self.context.get("participants", {})
        variant = self.variants[validated_data["kind"]](context=self.context)
        event = variant.create(validated_data)
        event.restore(
            (members[pid] for pid in validated_data["enrolled"]),
            cancelled=validated_data["cancelled"],
        )
        return event


class SnapshotStatsSerializer(serializers.Serializer):
    talkCount = serializers.IntegerField(source="talk_count", min_value=0, default=0)
    concertCount = serializers.IntegerField(
        source="concert_count", min_value=0, default=0
    )
    organizerCount = serializers.IntegerField(
        source="organizer_count", min_value=0, default=0
    )
    participantCount = serializers.IntegerField(
        source="participant_count", min_value=0, default=0
    )
    totalEnrollments = serializers.IntegerField(
        source="total_enrollments", min_value=0, default=0
    )
    avgOccupancyPct = serializers.FloatField(
        source="avg_occupancy_pct", min_value=0, default=0.0
    )


class SnapshotSerializer(serializers.Serializer):
    """The whole snapshot document.

    ``validate`` runs the cross-record checks once every field is valid, and
    ``save()`` returns a Snapshot whose events share the participant instances
    of its participant list.
    """

    events = EventSerializer(many=True)
    participants = ParticipantSerializer(many=True)
    savedAt = serializers.DateTimeField(source="saved_at")
    appVersion = serializers.CharField(source="app_version")
    formatVersion = serializers.CharField(source="format_version", default="1.0")
    totalSubscribersAtSave = serializers.IntegerField(
        source="total_subscribers_at_save", min_value=0, default=0
    )
    comment = serializers.CharField(allow_blank=True, allow_null=True, default="")
    stats = SnapshotStatsSerializer(required=False)

    def validate(self, attrs):
        violations = check_structure(attrs)
        if violations:
            raise serializers.ValidationError(violations)
        return attrs

    def create(self, validated_data):
        participant_data = validated_data["participants"]
        participants = [ParticipantSerializer().create(p) for p in participant_data]
        members = {p.id: p for p in participants}

        event_serializer = EventSerializer(
            context={**self.context, "participants": members}
        )
        events = [event_serializer.create(e) for e in validated_data["events"]]

        by_id = {event.id: event for event in events}
        for participant, data in zip(participants, participant_data):
            for event_id in data.get("organized_event_ids", ()):
                participant.add_organized_event(by_id[event_id])

        if "stats" in validated_data:
            stats = SnapshotStats(**validated_data["stats"])
        else:
            stats = SnapshotStats.compute(events, participants)

        return Snapshot(
            events=events,
            participants=participants,
            saved_at=validated_data["saved_at"],
            app_version=validated_data["app_version"],
            format_version=validated_data["format_version"],
            total_subscribers_at_save=validated_data["total_subscribers_at_save"],
            comment=validated_data["comment"] or "",
            stats=stats,
        )


def error_messages(errors: Any, path: str = "") -> list[str]:
    """Flatten DRF's nested error structure into ``"path: message"`` strings."""
    if isinstance(errors, Mapping):
        messages = []
        for key, value in errors.items():
            if key == api_settings.NON_FIELD_ERRORS_KEY:
                child = path
            elif isinstance(key, int):
                child = f"{path}[{key}]"
            else:
                child = f"{path}.{key}" if path else key
            messages.extend(error_messages(value, child))
        return messages
    if isinstance(errors, list):
        if all(isinstance(item, str) for item in errors):
            return [f"{path}: {item}" if path else str(item) for item in errors]
        messages = []
        for index, item in enumerate(errors):
            messages.extend(error_messages(item, f"{path}[{index}]"))
        return messages
    return [f"{path}: {errors}" if path else str(errors)]
