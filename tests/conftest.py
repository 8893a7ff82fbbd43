"""Pytest configuration and shared fixtures."""

from datetime import datetime

import pytest

from event_manager.domain import Concert, Organizer, Participant, Speaker, Talk
from event_manager.persistence import PersistenceCodec
from event_manager.services import EventRegistry


class RecordingSubscriber:
    """Subscriber that keeps every callback it receives."""

    def __init__(self, label: str = "recorder") -> None:
        self.label = label
        self.calls = []

    def on_modified(self, event_name, message):
        self.calls.append(("modified", event_name, message))

    def on_cancelled(self, event_name, message):
        self.calls.append(("cancelled", event_name, message))

    def on_info_changed(self, event_name, message):
        self.calls.append(("info_changed", event_name, message))

    def kinds(self) -> list[str]:
        return [kind for kind, _, _ in self.calls]

    def __repr__(self) -> str:
        return f"RecordingSubscriber({self.label!r})"


class FailingSubscriber(RecordingSubscriber):
    """Subscriber whose callbacks always raise."""

    def on_modified(self, event_name, message):
        raise RuntimeError("modified callback failed")

    def on_cancelled(self, event_name, message):
        raise RuntimeError("cancelled callback failed")

    def on_info_changed(self, event_name, message):
        raise RuntimeError("info callback failed")


@pytest.fixture
def registry() -> EventRegistry:
    return EventRegistry()


@pytest.fixture
def codec() -> PersistenceCodec:
    return PersistenceCodec()


@pytest.fixture
def talk() -> Talk:
    return Talk(
        "T1",
        "Python at scale",
        datetime(2030, 6, 1, 19, 30),
        "Main hall",
        2,
        theme="Engineering",
        speakers=[Speaker("Ada", "Compilers", "Wrote the first program")],
    )


@pytest.fixture
def concert() -> Concert:
    return Concert(
        "C1",
        "Summer night",
        datetime(2030, 7, 14, 21, 0),
        "Open air stage",
        100,
        artist="The Quartet",
        genre="Jazz",
    )


@pytest.fixture
def alice() -> Participant:
    return Participant("P1", "Alice", "alice@example.com")


@pytest.fixture
def bob() -> Participant:
    return Participant("P2", "Bob", "bob@example.com")


@pytest.fixture
def carol() -> Participant:
    return Participant("P3", "Carol", "carol@example.com")


@pytest.fixture
def organizer() -> Organizer:
    return Organizer("O1", "Olivia", "olivia@example.com")


@pytest.fixture
def recorder() -> RecordingSubscriber:
    return RecordingSubscriber()


@pytest.fixture
def failing() -> FailingSubscriber:
    return FailingSubscriber("failing")
