"""Local filesystem implementation of the SnapshotStore."""

import contextlib
import logging
import os
import tempfile
from pathlib import Path

from event_manager.conf import event_manager_settings
from event_manager.domain.errors import SerializationError, SerializationPhase
from event_manager.stores.interfaces import SnapshotStore, StorePath

logger = logging.getLogger("event_manager.stores")


class FileSnapshotStore(SnapshotStore):
    """Snapshots as files; writes go through a temp file and an atomic rename."""

    def __init__(self, max_bytes: int | None = None) -> None:
        self._max_bytes = max_bytes

    @property
    def max_bytes(self) -> int:
        if self._max_bytes is not None:
            return self._max_bytes
        return event_manager_settings.MAX_SNAPSHOT_BYTES

    def read_bytes(self, source: StorePath) -> bytes:
        path = Path(source)
        self._check_readable(path)
        try:
            payload = path.read_bytes()
        except OSError as exc:
            raise self._load_error("could not read file", path, exc) from exc
        logger.debug(f"Read {len(payload)} bytes from {path}")
        return payload

    def write_bytes(self, destination: StorePath, payload: bytes) -> None:
        path = Path(destination)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
            )
        except OSError as exc:
            raise SerializationError(
                "could not prepare destination directory",
                SerializationPhase.SAVE,
                str(path),
                exc,
            ) from exc

        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except OSError as exc:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_name)
            logger.error(f"Write to {path} failed, previous content kept")
            raise SerializationError(
                "could not write file", SerializationPhase.SAVE, str(path), exc
            ) from exc
        logger.debug(f"Wrote {len(payload)} bytes to {path}")

    def _check_readable(self, path: Path) -> None:
        if not path.exists():
            raise self._load_error("file does not exist", path)
        if not path.is_file():
            raise self._load_error("path is not a regular file", path)
        if not os.access(path, os.R_OK):
            raise self._load_error("file is not readable", path)
        size = path.stat().st_size
        if size == 0:
            raise self._load_error("file is empty", path)
        if size > self.max_bytes:
            raise self._load_error(
                f"file is too large ({size} bytes, limit {self.max_bytes})", path
            )

    @staticmethod
    def _load_error(
        message: str, path: Path, cause: BaseException | None = None
    ) -> SerializationError:
        return SerializationError(message, SerializationPhase.LOAD, str(path), cause)
