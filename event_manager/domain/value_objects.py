"""Domain primitives that enforce validity at creation time."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Capacity:
    """Strictly positive integer representing the seats of an event."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError("Capacity must be an integer")
        if self.value <= 0:
            raise ValueError("Capacity must be greater than zero")

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.value} seats"


@dataclass(frozen=True)
class Speaker:
    """Someone presenting at a talk.

    Two speakers are the same when name and specialty match; the biography
    is descriptive only.
    """

    name: str
    specialty: str
    biography: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Speaker name cannot be empty")

    def __str__(self) -> str:
        return f"{self.name} ({self.specialty})"
