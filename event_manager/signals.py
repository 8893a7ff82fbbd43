"""Django signals sent by the event registry.

Collaborators (views, log panels, autosave hooks) connect receivers here
instead of polling the registry. The registry sends with send_robust, so a
broken receiver is logged by Django and never fails the registry operation.

Every signal is sent with the registry as sender.
"""

from django.dispatch import Signal

# kwargs: event
event_registered = Signal()

# kwargs: event, notified (members told of the cancellation)
event_removed = Signal()

# kwargs: participant, replaced (previous instance with that id, or None)
participant_registered = Signal()

# kwargs: events, participants (counts dropped)
registry_cleared = Signal()

# kwargs: snapshot
registry_restored = Signal()
