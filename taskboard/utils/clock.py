"""Time and identifier sources.

Services take a ``Clock`` so tests can pin "now" and predict ids.
"""

from __future__ import annotations

import time
import uuid
from typing import Callable


def now_ms() -> int:
    """Current UNIX time in milliseconds."""
    return int(time.time() * 1000)


def new_id() -> str:
    """Random UUID4 string in canonical 8-4-4-4-12 form."""
    return str(uuid.uuid4())


class Clock:
    """Bundle of the time source and id generator used by the board service."""

    def __init__(
        self,
        *,
        time_ms: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_id,
    ) -> None:
        self._time_ms = time_ms
        self._id_factory = id_factory

    def now_ms(self) -> int:
        return int(self._time_ms())

    def new_id(self) -> str:
        return self._id_factory()
