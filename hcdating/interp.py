from __future__ import annotations
from typing import Any, Callable, Iterable, Optional
import numpy as np

from .table import ReferenceRow, ReferenceTable, as_rows, field_values

Extractor = Callable[[ReferenceRow], float]


def _lerp(x: float, x0: float, x1: float, y0: float, y1: float) -> float:
    if x1 == x0:
        # zero-width interval resolves to the lower endpoint
        return float(y0)
    return float(y0 + (x - x0) * ((y1 - y0) / (x1 - x0)))


def _bracket(xs: np.ndarray, x: float) -> int:
    """Index i of the first interval with xs[i] <= x <= xs[i+1] (xs ascending)."""
    i = int(np.searchsorted(xs, x, side="left")) - 1
    return min(max(i, 0), xs.size - 2)


def interpolate(x: float,
                table: ReferenceTable | Iterable[Any],
                x_field: str = "week",
                y_field: str = "mean") -> Optional[float]:
    """Linear interpolation of ``y_field`` at ``x`` along ``x_field``.

    ``table`` may be a :class:`ReferenceTable` or any sequence of row
    mappings/objects.  Rows are ordered by ``x_field`` (stable sort, a
    no-op for a valid table).  Returns ``None`` when ``x`` lies outside
    ``[min, max]`` of ``x_field``.
    """
    xs = field_values(table, x_field)
    ys = field_values(table, y_field)
    if xs.size == 0:
        return None
    order = np.argsort(xs, kind="stable")
    xs, ys = xs[order], ys[order]
    if x < xs[0] or x > xs[-1]:
        return None
    if xs.size == 1:
        return float(ys[0])
    i = _bracket(xs, x)
    return _lerp(x, xs[i], xs[i + 1], ys[i], ys[i + 1])


def inverse_estimate(target: float,
                     extractor: Extractor,
                     table: ReferenceTable | Iterable[Any] | None = None) -> float:
    """Week at which ``extractor(row)`` equals ``target``.

    Builds (value, week) pairs ordered by value.  Inside the value span the
    week is interpolated; below or above it the week is projected linearly
    from the two nearest points.  Always returns a number.

    Parameters
    ----------
    target : float
        Measured value (e.g. head circumference in mm).
    extractor : callable
        Maps a :class:`ReferenceRow` to the curve value, e.g.
        :func:`mean_curve` or :func:`sd_curve`.
    table : ReferenceTable or rows, optional
        Defaults to the built-in table.
    """
    if table is None:
        from .presets import get_table
        table = get_table()
    rows = as_rows(table)
    if len(rows) < 2:
        raise ValueError("Inverse lookup needs at least two reference rows")
    vals = np.asarray([extractor(r) for r in rows], dtype=float)
    weeks = np.asarray([r.week for r in rows], dtype=float)
    order = np.argsort(vals, kind="stable")
    vals, weeks = vals[order], weeks[order]
    n = vals.size

    if target < vals[0]:
        x0, x1, y0, y1 = vals[0], vals[1], weeks[0], weeks[1]
        if x1 == x0:
            return float(y0)
        m = (y1 - y0) / (x1 - x0)
        return float(y0 + (target - x0) * m)

    if target > vals[-1]:
        x0, x1, y0, y1 = vals[n - 2], vals[n - 1], weeks[n - 2], weeks[n - 1]
        if x1 == x0:
            return float(y1)
        m = (y1 - y0) / (x1 - x0)
        return float(y1 + (target - x1) * m)

    i = _bracket(vals, target)
    return _lerp(target, vals[i], vals[i + 1], weeks[i], weeks[i + 1])


def mean_curve(row: ReferenceRow) -> float:
    return row.mean


def sd_curve(k: float) -> Extractor:
    """Extractor for the ``mean + k*sd`` curve."""
    def extract(row: ReferenceRow) -> float:
        return row.mean + k * row.sd
    extract.__name__ = f"mean{k:+g}sd"
    return extract


upper_curve = sd_curve(2.0)
lower_curve = sd_curve(-2.0)


__all__ = [
    "interpolate",
    "inverse_estimate",
    "mean_curve",
    "sd_curve",
    "upper_curve",
    "lower_curve",
]
