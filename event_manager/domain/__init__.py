from event_manager.domain.models import Concert, Event, EventKind, Talk
from event_manager.domain.observers import (
    DispatchReport,
    Notification,
    NotificationKind,
    Subscriber,
)
from event_manager.domain.participants import Organizer, Participant, ParticipantKind
from event_manager.domain.value_objects import Capacity, Speaker

__all__ = [
    "Event",
    "Talk",
    "Concert",
    "EventKind",
    "Participant",
    "Organizer",
    "ParticipantKind",
    "Subscriber",
    "Notification",
    "NotificationKind",
    "DispatchReport",
    "Speaker",
    "Capacity",
]
