"""Exponential backoff for connectivity re-probing."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 5
    base_delay: float = 60.0  # seconds
    max_delay: float = 300.0  # seconds
    exponential_base: float = 2.0


def calculate_delay(
    attempt: int,
    base_delay: float = 60.0,
    max_delay: float = 300.0,
    exponential_base: float = 2.0,
) -> float:
    """Calculate delay for a retry attempt with exponential backoff.

    Args:
        attempt: Current retry count (0-indexed)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay cap
        exponential_base: Base for exponential calculation

    Returns:
        Delay in seconds
    """
    attempt = max(0, attempt)
    try:
        delay = base_delay * (exponential_base ** attempt)
    except OverflowError:
        return max_delay
    return max(0.0, min(delay, max_delay))


class BackoffScheduler:
    """Computes re-probe delays and decides when to give up."""

    def __init__(self, config: Optional[RetryConfig] = None):
        self.config = config or RetryConfig()

    @property
    def max_retries(self) -> int:
        return self.config.max_retries

    def next_delay(self, retry_count: int) -> float:
        """Delay before the next probe: ``min(base * 2**retry_count, ceiling)``."""
        return calculate_delay(
            retry_count,
            self.config.base_delay,
            self.config.max_delay,
            self.config.exponential_base,
        )

    def should_retry(self, retry_count: int, max_retries: Optional[int] = None) -> bool:
        """Whether another re-probe is allowed after ``retry_count`` retries."""
        if max_retries is None:
            max_retries = self.config.max_retries
        return retry_count < max_retries
