"""Settings for event_manager, read from ``settings.EVENT_MANAGER``.

Example::

    EVENT_MANAGER = {
        "MAX_SNAPSHOT_BYTES": 10 * 1024 * 1024,
        "SNAPSHOT_STORE_CLASS": "event_manager.stores.file_store.FileSnapshotStore",
    }

Values are resolved lazily and reloaded when Django's ``setting_changed``
fires, so test overrides apply immediately.
"""

from django.conf import settings
from django.core.signals import setting_changed
from rest_framework.settings import APISettings

DEFAULTS = {
    "APP_VERSION": "1.0",
    "FORMAT_VERSION": "1.1",
    "SUPPORTED_FORMAT_VERSIONS": ("1.0", "1.1"),
    "MAX_SNAPSHOT_BYTES": 100 * 1024 * 1024,
    "JSON_INDENT": 2,
    "FUTURE_SAVE_TOLERANCE_MINUTES": 5,
    "AUTOSAVE_PREFIX": "snapshot_auto_",
    "SNAPSHOT_STORE_CLASS": "event_manager.stores.file_store.FileSnapshotStore",
}

IMPORT_STRINGS = ("SNAPSHOT_STORE_CLASS",)


class EventManagerSettings(APISettings):
    @property
    def user_settings(self):
        if not hasattr(self, "_user_settings"):
            self._user_settings = getattr(settings, "EVENT_MANAGER", {})
        return self._user_settings


event_manager_settings = EventManagerSettings(None, DEFAULTS, IMPORT_STRINGS)


def reload_event_manager_settings(*args, **kwargs) -> None:
    if kwargs["setting"] == "EVENT_MANAGER":
        event_manager_settings.reload()


setting_changed.connect(reload_event_manager_settings)
