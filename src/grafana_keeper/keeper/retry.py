"""Constant-interval retry policy for the bootstrap and polling loops."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field


@dataclass(frozen=True)
class RetryPolicy:
    """How long to wait between attempts and how many attempts to make.

    Attributes:
        interval: Seconds to sleep between attempts.
        max_attempts: Upper bound on attempts; ``None`` means unbounded.
        sleep: Blocking sleep function, replaceable in tests.
    """

    interval: float = 30.0
    max_attempts: int | None = None
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self) -> None:
        if self.interval < 0:
            raise ValueError("interval must not be negative")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def wait(self) -> None:
        self.sleep(self.interval)

    def attempts(self) -> Iterator[int]:
        """Yield attempt numbers starting at 1, waiting between them.

        There is no wait before the first attempt nor after the last one.
        """
        attempt = 1
        while self.max_attempts is None or attempt <= self.max_attempts:
            if attempt > 1:
                self.wait()
            yield attempt
            attempt += 1
