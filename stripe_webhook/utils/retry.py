"""Retry scheduling for Stripe API requests."""

from typing import Optional


def next_retry_delay(
    elapsed: float,
    interval: float = 2.0,
    max_elapsed: float = 30.0
) -> Optional[float]:
    """
    Calculate the delay before the next retry.

    Stripe asks for retries with a Stripe-Should-Retry header; those are
    retried on a fixed interval until the total time spent passes
    max_elapsed.

    Args:
        elapsed: Seconds since the first attempt was sent
        interval: Delay between attempts in seconds
        max_elapsed: Retry budget in seconds

    Returns:
        Delay in seconds, or None once the budget is spent
    """
    if elapsed > max_elapsed:
        return None
    return interval
