"""Unit tests for the event aggregate.

These test the enrollment state machine and the notifications it emits.
Run with: pytest tests/test_events.py -v
"""

from datetime import datetime

import pytest

from event_manager.domain import NotificationKind, Participant
from event_manager.domain.errors import (
    AlreadyEnrolledError,
    CapacityExceededError,
    EventCancelledError,
)


class TestEnrollment:
    """Tests for enroll and withdraw."""

    def test_enroll_adds_member_and_subscriber(self, talk, alice):
        talk.enroll(alice)
        assert talk.enrolled == (alice,)
        assert talk.subscribers == (alice,)
        assert talk.is_enrolled(alice)
        assert talk.available_seats == 1
        assert talk.occupancy_pct == 50.0

    def test_enroll_notifies_existing_subscribers(self, talk, alice, bob, recorder):
        talk.subscribe(recorder)
        talk.enroll(alice)
        talk.enroll(bob)
        assert recorder.kinds() == ["modified", "modified"]
        assert recorder.calls[-1][2] == "New participant: Bob (2/2 seats)"

    def test_capacity_scenario(self, talk, alice, bob, carol):
        """A full event rejects the next participant and keeps its roster."""
        talk.enroll(alice)
        talk.enroll(bob)
        with pytest.raises(CapacityExceededError) as excinfo:
            talk.enroll(carol)
        assert excinfo.value.capacity_max == 2
        assert excinfo.value.current_count == 2
        assert talk.participant_count == 2
        assert carol not in talk.subscribers

    def test_enroll_twice_raises(self, concert, alice):
        concert.enroll(alice)
        with pytest.raises(AlreadyEnrolledError):
            concert.enroll(alice)
        assert concert.participant_count == 1

    def test_cancelled_is_checked_before_capacity(self, talk, alice, bob, carol):
        talk.enroll(alice)
        talk.enroll(bob)
        talk.cancel()
        with pytest.raises(EventCancelledError):
            talk.enroll(carol)

    def test_withdraw_removes_member_and_subscriber(self, talk, alice, bob):
        talk.enroll(alice)
        talk.enroll(bob)
        alice.clear_notifications()

        assert talk.withdraw(bob) is True
        assert talk.enrolled == (alice,)
        assert talk.subscribers == (alice,)
        assert alice.notifications[-1].message == "Participant left: Bob (1/2 seats)"

    def test_withdraw_non_member_returns_false(self, talk, alice):
        assert talk.withdraw(alice) is False

    def test_withdraw_from_cancelled_event_is_a_no_op(self, talk, alice):
        talk.enroll(alice)
        talk.cancel()
        assert talk.withdraw(alice) is False
        assert talk.is_enrolled(alice)

    def test_replacement_instance_counts_as_same_member(self, talk, alice):
        talk.enroll(alice)
        with pytest.raises(AlreadyEnrolledError):
            talk.enroll(Participant("P1", "Alice again", "alice2@example.com"))


class TestSubscriptions:
    """Tests for observers that are not members."""

    def test_subscribe_without_enrolling(self, concert, recorder):
        concert.subscribe(recorder)
        concert.subscribe(recorder)
        assert concert.subscribers == (recorder,)
        assert concert.participant_count == 0

    def test_unsubscribe_observer(self, concert, recorder):
        concert.subscribe(recorder)
        assert concert.unsubscribe(recorder) is True
        assert concert.subscribers == ()
        assert concert.unsubscribe(recorder) is False

    def test_member_cannot_unsubscribe_alone(self, concert, alice):
        concert.enroll(alice)
        assert concert.unsubscribe(alice) is False
        assert concert.subscribers == (alice,)

    def test_subscribe_to_cancelled_event_raises(self, concert, recorder):
        concert.cancel()
        with pytest.raises(EventCancelledError):
            concert.subscribe(recorder)


class TestInformationChanges:
    """Tests for rename, relocate, resize and reschedule."""

    def test_rename_notifies_with_old_and_new_name(self, talk, recorder):
        talk.subscribe(recorder)
        talk.rename("Python at large")
        assert talk.name == "Python at large"
        assert recorder.calls == [
            (
                "info_changed",
                "Python at large",
                "Name changed: 'Python at scale' → 'Python at large'",
            )
        ]

    def test_rename_to_same_value_is_silent(self, talk, recorder):
        talk.subscribe(recorder)
        talk.rename("Python at scale")
        talk.relocate("Main hall")
        talk.reschedule(datetime(2030, 6, 1, 19, 30))
        talk.resize(2)
        assert recorder.calls == []

    def test_reschedule_message(self, talk, recorder):
        talk.subscribe(recorder)
        talk.reschedule(datetime(2030, 6, 2, 20, 0))
        assert recorder.calls[0][2] == "Date changed: 01/06/2030 19:30 → 02/06/2030 20:00"

    def test_resize_below_roster_keeps_members(self, concert, alice, bob):
        concert.enroll(alice)
        concert.enroll(bob)
        concert.resize(1)
        assert concert.capacity_max == 1
        assert concert.participant_count == 2
        assert concert.available_seats == 0
        with pytest.raises(CapacityExceededError):
            concert.enroll(Participant("P9", "Zoe", "zoe@example.com"))

    def test_resize_rejects_invalid_capacity(self, concert):
        with pytest.raises(ValueError):
            concert.resize(0)
        assert concert.capacity_max == 100


class TestCancellation:
    """Tests for cancel and reset."""

    def test_every_member_is_notified(self, concert):
        members = [Participant(f"P{i}", f"Member {i}", f"m{i}@example.com") for i in range(5)]
        for member in members:
            concert.enroll(member)
        for member in members:
            member.clear_notifications()

        report = concert.cancel()

        assert report.delivered == 5
        assert report.failed == 0
        for member in members:
            assert [n.kind for n in member.notifications] == [NotificationKind.CANCELLED]
        message = members[0].notifications[0].message
        assert "has been cancelled" in message
        assert "14/07/2030 at 21:00" in message

    def test_cancel_twice_notifies_twice(self, talk, recorder):
        talk.subscribe(recorder)
        talk.cancel()
        talk.cancel()
        assert recorder.kinds() == ["cancelled", "cancelled"]
        assert talk.cancelled is True

    def test_reset_reopens_with_empty_roster(self, talk, alice, recorder):
        talk.enroll(alice)
        talk.subscribe(recorder)
        talk.cancel()
        talk.reset()
        assert talk.cancelled is False
        assert talk.enrolled == ()
        assert talk.subscribers == ()
        talk.enroll(alice)
        assert talk.participant_count == 1


class TestFanOut:
    """A failing subscriber never stops the others."""

    def test_failure_is_isolated(self, concert, failing, recorder, alice):
        concert.subscribe(failing)
        concert.subscribe(recorder)
        concert.enroll(alice)

        report = concert.cancel()

        assert report.attempted == 3
        assert report.delivered == 2
        assert report.failed == 1
        assert report.failures[0]["error_type"] == "RuntimeError"
        assert recorder.kinds() == ["modified", "cancelled"]
        assert alice.notifications[-1].kind is NotificationKind.CANCELLED

    def test_failure_is_logged(self, concert, failing, caplog):
        concert.subscribe(failing)
        with caplog.at_level("ERROR", logger="event_manager.notifications"):
            concert.rename("Winter night")
        assert "failed on info_changed" in caplog.text

    def test_operation_still_applies(self, concert, failing):
        concert.subscribe(failing)
        concert.relocate("Indoor arena")
        assert concert.location == "Indoor arena"

    def test_delivery_follows_subscription_order(self, concert):
        order = []

        class Probe:
            def __init__(self, label):
                self.label = label

            def on_modified(self, event_name, message):
                order.append(self.label)

            def on_cancelled(self, event_name, message):
                order.append(self.label)

            def on_info_changed(self, event_name, message):
                order.append(self.label)

        for label in "abc":
            concert.subscribe(Probe(label))
        concert.notify_modified("ping")
        assert order == ["a", "b", "c"]


class TestRestore:
    """Tests for silent restoration of persisted membership."""

    def test_restore_then_rebuild(self, talk, alice, bob, recorder):
        talk.subscribe(recorder)
        talk.restore([alice, bob], cancelled=True)
        assert talk.subscribers == (recorder,)
        assert alice.notifications == ()

        assert talk.rebuild_subscriptions() == 2
        assert talk.subscribers == (alice, bob)
        assert talk.cancelled is True
