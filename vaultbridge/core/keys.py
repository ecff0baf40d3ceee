"""
Key scheme shared by the hot store.

Keys are hierarchical strings: ``{category}/{timestamp}/{name}``, e.g.
``images/16390812345670000/cat.png``. The name is used as given; a name
containing ``/`` produces a key whose segments are ambiguous.
"""
import enum
import threading
import time
from typing import Any, Callable

from vaultbridge.errors import InvalidArgumentError

StorageKey = str

KEY_SEPARATOR = '/'


def category_string(category: Any) -> str:
    """Canonical string form of a category tag."""
    if isinstance(category, enum.Enum):
        if isinstance(category.value, str):
            return category.value
        return category.name
    return str(category)


def build_key(category: Any, name: str, timestamp: int) -> StorageKey:
    """
    Build the storage key for an object.

    Args:
        category: Classification tag (string or Enum member)
        name: File name, must be non-blank
        timestamp: Non-negative integer, usually from TickClock.now()

    Returns:
        Key of the form ``{category}/{timestamp}/{name}``

    Raises:
        InvalidArgumentError: If name is blank or timestamp is not a non-negative int
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidArgumentError("name cannot be empty")
    if isinstance(timestamp, bool) or not isinstance(timestamp, int) or timestamp < 0:
        raise InvalidArgumentError(f"timestamp must be a non-negative integer, got {timestamp!r}")

    return KEY_SEPARATOR.join((category_string(category), str(timestamp), name))


class TickClock:
    """
    Timestamp source for keys.

    Returns wall-clock time in 100ns ticks since the epoch. Values are
    strictly increasing within one clock instance, so rapid uploads from the
    same process never share a timestamp. Separate processes can still
    collide.
    """

    def __init__(self, time_ns: Callable[[], int] = time.time_ns):
        self._time_ns = time_ns
        self._last = -1
        self._lock = threading.Lock()

    def now(self) -> int:
        ticks = self._time_ns() // 100
        with self._lock:
            if ticks <= self._last:
                ticks = self._last + 1
            self._last = ticks
            return ticks
