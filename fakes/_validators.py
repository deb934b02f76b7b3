"""Shared validation helpers."""

from __future__ import annotations

import math


def validate_fallback_delay(delay: float, *, name: str = "fallback_delay") -> float:
    """Ensure *delay* is a usable number of seconds and return it as a float."""
    if isinstance(delay, bool) or not isinstance(delay, int | float):
        msg = f"{name} must be a real number"
        raise TypeError(msg)

    if not (delay >= 0 and math.isfinite(delay)):
        msg = f"{name} must be >= 0 and finite"
        raise ValueError(msg)
    return float(delay)


def parse_fallback_delay(raw: str, *, name: str) -> float:
    """Parse *raw* (from an environment variable or ini file) as a delay."""
    try:
        value = float(raw)
    except ValueError as exc:
        msg = f"{name} must be a number of seconds, got {raw!r}"
        raise ValueError(msg) from exc
    return validate_fallback_delay(value, name=name)
