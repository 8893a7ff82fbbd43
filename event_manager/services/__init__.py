from event_manager.services.registry import (
    EventRegistry,
    RegistryStatistics,
    get_default_registry,
)

__all__ = ["EventRegistry", "RegistryStatistics", "get_default_registry"]
