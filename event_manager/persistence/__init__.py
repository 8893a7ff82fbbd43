from event_manager.persistence.codec import PersistenceCodec
from event_manager.persistence.snapshot import Snapshot, SnapshotStats

__all__ = ["PersistenceCodec", "Snapshot", "SnapshotStats"]
