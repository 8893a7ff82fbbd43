"""Concurrency tests for enrollment and notification.

Run with: pytest tests/test_concurrency.py -v
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from event_manager.domain import Concert, Participant
from event_manager.domain.errors import CapacityExceededError
from event_manager.services import get_default_registry


def make_participants(count):
    return [Participant(f"P{i}", f"Member {i}", f"m{i}@example.com") for i in range(count)]


class TestConcurrentEnrollment:
    """Roster and subscribers stay consistent under contention."""

    def test_capacity_is_never_exceeded(self):
        event = Concert("C1", "Rush", datetime(2030, 1, 1, 20, 0), "Arena", 10)
        participants = make_participants(50)

        def attempt(participant):
            try:
                event.enroll(participant)
                return True
            except CapacityExceededError:
                return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(attempt, participants))

        assert results.count(True) == 10
        assert event.participant_count == 10
        assert set(event.subscribers) == set(event.enrolled)
        assert len(event.subscribers) == 10

    def test_enroll_and_withdraw_keep_lists_in_step(self):
        event = Concert("C2", "Churn", datetime(2030, 1, 1, 20, 0), "Club", 1000)
        participants = make_participants(40)

        def churn(participant):
            for _ in range(5):
                event.enroll(participant)
                event.withdraw(participant)
            event.enroll(participant)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(churn, participants))

        assert event.participant_count == 40
        assert set(event.subscribers) == set(participants)
        assert len(event.subscribers) == 40

    def test_every_member_hears_cancellation_once(self):
        event = Concert("C3", "Finale", datetime(2030, 1, 1, 20, 0), "Hall", 100)
        participants = make_participants(30)
        with ThreadPoolExecutor(max_workers=6) as pool:
            list(pool.map(event.enroll, participants))
        for participant in participants:
            participant.clear_notifications()

        report = event.cancel()

        assert report.delivered == 30
        assert all(len(p.notifications) == 1 for p in participants)


class TestDefaultRegistryConcurrency:
    """Lazy initialization yields one instance across threads."""

    def test_single_instance(self):
        with ThreadPoolExecutor(max_workers=8) as pool:
            registries = list(pool.map(lambda _: get_default_registry(), range(32)))
        assert len({id(registry) for registry in registries}) == 1


class RenameOnEnrollLog(logging.Handler):
    """Renames the event once, right after the enrollment is logged."""

    def __init__(self, event, new_name):
        super().__init__()
        self.event = event
        self.new_name = new_name
        self.fired = False

    def emit(self, record):
        if not self.fired and "enrolled in" in record.getMessage():
            self.fired = True
            self.event.rename(self.new_name)


class TestNotificationName:
    """Notifications carry the name the event had when it was mutated."""

    def test_rename_after_enroll_does_not_relabel_its_notification(self, talk, alice, recorder):
        talk.subscribe(recorder)
        events_logger = logging.getLogger("event_manager.events")
        handler = RenameOnEnrollLog(talk, "Renamed talk")
        previous_level = events_logger.level
        events_logger.setLevel(logging.INFO)
        events_logger.addHandler(handler)
        try:
            talk.enroll(alice)
        finally:
            events_logger.removeHandler(handler)
            events_logger.setLevel(previous_level)

        assert handler.fired
        assert talk.name == "Renamed talk"
        assert ("modified", "Python at scale", "New participant: Alice (1/2 seats)") in recorder.calls
