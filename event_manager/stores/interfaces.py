"""Store interfaces (repository pattern).

Stores move raw snapshot bytes; encoding and validation belong to the codec.
"""

import os
from abc import ABC, abstractmethod
from typing import Union

StorePath = Union[str, os.PathLike]


class SnapshotStore(ABC):
    """Interface for snapshot storage."""

    @abstractmethod
    def read_bytes(self, source: StorePath) -> bytes:
        """Return the stored snapshot.

        Raises:
            SerializationError: With the LOAD phase if it cannot be read.
        """
        ...

    @abstractmethod
    def write_bytes(self, destination: StorePath, payload: bytes) -> None:
        """Replace the destination with payload, all or nothing.

        Raises:
            SerializationError: With the SAVE phase if it cannot be written.
        """
        ...
