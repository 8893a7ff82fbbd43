"""Save and load the registry content as a JSON snapshot.

Saving:
- Validates the entities and reports every violation at once
- Captures stats and the subscriber count, then renders JSON with DRF
- Hands the bytes to the configured SnapshotStore, which replaces the
  destination atomically

Loading goes the other way and finishes by rebuilding every event's
subscriptions from its roster, since subscriptions are never persisted.
"""

from __future__ import annotations

import io
import logging
import tempfile
import time
from datetime import datetime
from pathlib import Path
from typing import Iterable

from rest_framework.exceptions import ParseError
from rest_framework.parsers import JSONParser
from rest_framework.renderers import JSONRenderer

from event_manager.conf import event_manager_settings
from event_manager.domain.errors import (
    DomainError,
    SerializationError,
    SerializationPhase,
    ValidationError,
)
from event_manager.domain.models import Event
from event_manager.domain.participants import Participant
from event_manager.persistence.serializers import SnapshotSerializer, error_messages
from event_manager.persistence.snapshot import Snapshot
from event_manager.persistence.validation import check_before_save
from event_manager.stores.interfaces import SnapshotStore, StorePath

logger = logging.getLogger("event_manager.persistence")

REQUIRED_KEYS = frozenset({"events", "participants", "savedAt"})


class PersistenceCodec:
    """Encodes registry content to snapshots and decodes it back."""

    def __init__(self, store: SnapshotStore | None = None) -> None:
        if store is None:
            store = event_manager_settings.SNAPSHOT_STORE_CLASS()
        self.store = store

    def save(
        self,
        events: Iterable[Event],
        participants: Iterable[Participant],
        destination: StorePath,
        comment: str | None = None,
    ) -> None:
        """Write a snapshot to destination.

        Validation covers the whole registry: a single event resized below
        its member count blocks every save, autosave and safety backup until
        it is resized back or members withdraw.

        Raises:
            ValidationError: If the entities would produce an invalid snapshot.
            SerializationError: If encoding or writing fails. The previous
                content of destination is left untouched.
        """
        snapshot = self._capture(events, participants, comment)
        payload = self._render(snapshot, SerializationPhase.SAVE, str(destination))
        self.store.write_bytes(destination, payload)
        logger.info(
            f"Saved {len(snapshot.events)} events and "
            f"{len(snapshot.participants)} participants to {destination}"
        )

    def load(self, source: StorePath) -> Snapshot:
        """Read a snapshot and rebuild the subscriptions of its events.

        The returned snapshot is detached; pass it to EventRegistry.restore()
        to make it live.

        Raises:
            SerializationError: If the file cannot be read or is not JSON.
            ValidationError: With every shape and integrity violation found.
        """
        payload = self._parse(self.store.read_bytes(source), str(source))

        serializer = SnapshotSerializer(data=payload)
        if not serializer.is_valid():
            violations = error_messages(serializer.errors)
            logger.warning(f"Rejected {source}: {len(violations)} violations")
            raise ValidationError(violations)
        snapshot = serializer.save()

        rebuilt = sum(event.rebuild_subscriptions() for event in snapshot.events)
        if not snapshot.is_compatible:
            snapshot.warnings.append(
                f"Format version {snapshot.format_version!r} is not supported"
            )
        if rebuilt != snapshot.total_subscribers_at_save:
            snapshot.warnings.append(
                f"Rebuilt {rebuilt} subscriptions, "
                f"{snapshot.total_subscribers_at_save} were recorded at save"
            )
        for warning in snapshot.warnings:
            logger.warning(f"{source}: {warning}")

        logger.info(
            f"Loaded {len(snapshot.events)} events and "
            f"{len(snapshot.participants)} participants from {source}"
        )
        return snapshot

    def export_json(
        self,
        events: Iterable[Event],
        participants: Iterable[Participant],
        comment: str | None = None,
    ) -> str:
        """Same document as save() would write, returned as text."""
        snapshot = self._capture(events, participants, comment)
        return self._render(snapshot, SerializationPhase.EXPORT).decode("utf-8")

    def autosave(
        self,
        events: Iterable[Event],
        participants: Iterable[Participant],
        directory: StorePath,
    ) -> Path:
        """Save into directory under a timestamped name and return the path."""
        name = f"{event_manager_settings.AUTOSAVE_PREFIX}{datetime.now():%Y%m%d_%H%M%S}.json"
        destination = Path(directory) / name
        self.save(events, participants, destination)
        return destination

    def safety_backup(
        self, events: Iterable[Event], participants: Iterable[Participant]
    ) -> Path:
        destination = Path(tempfile.gettempdir()) / f"backup_{int(time.time() * 1000)}.json"
        self.save(events, participants, destination, comment="Safety backup")
        return destination

    def is_valid_snapshot(self, path: StorePath) -> bool:
        """Cheap check: readable JSON object with the top-level snapshot keys."""
        try:
            payload = self._parse(self.store.read_bytes(path), str(path))
        except SerializationError:
            return False
        return isinstance(payload, dict) and REQUIRED_KEYS.issubset(payload)

    def describe_snapshot(self, path: StorePath) -> str:
        try:
            snapshot = self.load(path)
        except DomainError as exc:
            return f"Unreadable snapshot {path}: {exc}"
        return (
            f"Saved {snapshot.saved_at:%d/%m/%Y %H:%M} | "
            f"{len(snapshot.events)} events | "
            f"{len(snapshot.participants)} participants | "
            f"version {snapshot.app_version}"
        )

    # -- internals --------------------------------------------------------

    def _capture(
        self,
        events: Iterable[Event],
        participants: Iterable[Participant],
        comment: str | None,
    ) -> Snapshot:
        events = list(events)
        participants = list(participants)
        violations = check_before_save(events, participants)
        if violations:
            logger.warning(f"Snapshot rejected: {len(violations)} violations")
            raise ValidationError(violations)
        return Snapshot.capture(events, participants, comment)

    def _render(
        self, snapshot: Snapshot, phase: SerializationPhase, file: str | None = None
    ) -> bytes:
        try:
            data = SnapshotSerializer(snapshot).data
            return JSONRenderer().render(
                data, renderer_context={"indent": event_manager_settings.JSON_INDENT}
            )
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                "could not encode snapshot", phase, file, exc
            ) from exc

    @staticmethod
    def _parse(raw: bytes, file: str) -> object:
        try:
            return JSONParser().parse(io.BytesIO(raw))
        except (ParseError, RecursionError) as exc:
            raise SerializationError(
                "invalid JSON", SerializationPhase.LOAD, file, exc
            ) from exc
