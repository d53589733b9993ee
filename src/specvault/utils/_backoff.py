"""Exponential backoff calculator for lock acquisition retries.

Spreads out retry attempts from competing processes with optional random
jitter so they do not retry in lockstep.
"""

import random
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Exponential backoff calculator with jitter.

    The delay formula is:
        delay = min(base * (multiplier ^ attempt), max_delay)
        delay = delay * (1 - jitter/2 + random() * jitter)

    Attributes:
        base: Base delay in seconds for the first retry.
        max_delay: Maximum delay in seconds.
        multiplier: Factor to multiply delay for each attempt.
        jitter: Fraction of delay to randomize (0.0-1.0).
    """

    base: float = 0.1
    max_delay: float = 2.0
    multiplier: float = 2.0
    jitter: float = 0.1

    def delay(self, attempt: int) -> float:
        """Calculate the delay for a given attempt number.

        Args:
            attempt: The attempt number (0-indexed, where 0 is the first retry).

        Returns:
            The delay in seconds before the next attempt.
        """
        capped_delay = min(self.base * (self.multiplier**attempt), self.max_delay)

        if self.jitter > 0:
            jitter_range = capped_delay * self.jitter
            jitter_offset = random.uniform(-jitter_range / 2, jitter_range / 2)  # noqa: S311
            capped_delay = max(0.0, capped_delay + jitter_offset)

        return capped_delay

    def total_budget(self, retries: int) -> float:
        """Upper bound of the time spent sleeping across ``retries`` retries."""
        return sum(
            min(self.base * (self.multiplier**attempt), self.max_delay)
            * (1 + self.jitter / 2)
            for attempt in range(retries)
        )
