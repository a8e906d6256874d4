"""Freshness and backoff helpers for the query cache."""

from __future__ import annotations


def is_fresh(updated_at: float | None, ttl_seconds: float, now: float) -> bool:
    """Check if data fetched at ``updated_at`` is still fresh at ``now``.

    Args:
        updated_at: Clock reading when the data was stored, or None if never.
        ttl_seconds: Freshness window in seconds. If <= 0, data goes stale
            immediately.
        now: Current clock reading, in the same units as ``updated_at``.

    Returns:
        True if the data is within its freshness window.
    """
    if updated_at is None or ttl_seconds <= 0:
        return False
    return (now - updated_at) < ttl_seconds


def is_expired(inactive_since: float | None, gc_seconds: float, now: float) -> bool:
    """Check if unobserved data has outlived its retention window.

    Args:
        inactive_since: Clock reading when the last observer went away, or
            None while the data is observed.
        gc_seconds: Retention window in seconds. If < 0, data is kept forever.
        now: Current clock reading.
    """
    if inactive_since is None or gc_seconds < 0:
        return False
    return (now - inactive_since) >= gc_seconds


def backoff_delay(attempt: int, base_seconds: float, max_seconds: float) -> float:
    """Exponential backoff: ``base * 2**attempt`` capped at ``max_seconds``.

    Args:
        attempt: Zero-based index of the failed attempt.
        base_seconds: Delay after the first failure.
        max_seconds: Upper bound for any single delay.
    """
    return min(base_seconds * (2**attempt), max_seconds)
