from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Optional, Sequence, Tuple
import json, logging
import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

# accepted column aliases (case-insensitive); JSON tables often use pregweek/mu/sd
WEEK_ALIASES = ["week", "pregweek", "ga_weeks", "ga", "weeks"]
MEAN_ALIASES = ["mean", "mu", "hc_mean", "mean_mm"]
SD_ALIASES = ["sd", "sigma", "std", "hc_sd", "sd_mm"]

FIELDS = ("week", "mean", "sd")


class ReferenceTableError(ValueError):
    """Reference table is malformed or breaks the monotonic-curve assumption."""


@dataclass(frozen=True)
class ReferenceRow:
    week: float
    mean: float
    sd: float


@dataclass(frozen=True, eq=False)
class ReferenceTable:
    """Immutable per-week mean/SD growth curve.

    Rows are held as three read-only float arrays sorted by ``week``.  The
    constructor validates the table and raises :class:`ReferenceTableError`
    on the first violation, so every instance is safe for inverse lookup:

    * at least two rows, all values finite, ``week >= 0`` and ``sd > 0``
    * ``week`` strictly ascending
    * ``mean`` strictly increasing, and so are ``mean ± curve_sd * sd``
    """

    weeks: np.ndarray
    means: np.ndarray
    sds: np.ndarray
    name: str = "custom"
    curve_sd: float = 2.0

    def __post_init__(self):
        w = np.array(self.weeks, dtype=float)
        m = np.array(self.means, dtype=float)
        s = np.array(self.sds, dtype=float)
        _check_columns(w, m, s, self.curve_sd)
        for arr in (w, m, s):
            arr.setflags(write=False)
        object.__setattr__(self, "weeks", w)
        object.__setattr__(self, "means", m)
        object.__setattr__(self, "sds", s)

    def __len__(self) -> int:
        return int(self.weeks.size)

    def __iter__(self) -> Iterator[ReferenceRow]:
        for w, m, s in zip(self.weeks, self.means, self.sds):
            yield ReferenceRow(float(w), float(m), float(s))

    def __getitem__(self, i: int) -> ReferenceRow:
        return ReferenceRow(float(self.weeks[i]), float(self.means[i]), float(self.sds[i]))

    def __repr__(self) -> str:
        return (f"ReferenceTable(name={self.name!r}, rows={len(self)}, "
                f"weeks={self.min_week:g}..{self.max_week:g})")

    @property
    def rows(self) -> Tuple[ReferenceRow, ...]:
        return tuple(self)

    @property
    def min_week(self) -> float:
        return float(self.weeks[0])

    @property
    def max_week(self) -> float:
        return float(self.weeks[-1])

    def column(self, field: str) -> np.ndarray:
        """Return the read-only array for ``week``, ``mean`` or ``sd``."""
        try:
            return {"week": self.weeks, "mean": self.means, "sd": self.sds}[field]
        except KeyError:
            raise KeyError(f"Unknown reference field {field!r}; expected one of {FIELDS}") from None

    def check_curves(self, curve_sd: float) -> None:
        """Raise :class:`ReferenceTableError` unless ``mean ± curve_sd * sd`` rise strictly."""
        if curve_sd != self.curve_sd:
            _check_columns(self.weeks, self.means, self.sds, curve_sd)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"week": self.weeks, "mean": self.means, "sd": self.sds})


def _check_columns(w: np.ndarray, m: np.ndarray, s: np.ndarray, curve_sd: float) -> None:
    if not (w.ndim == m.ndim == s.ndim == 1) or not (w.size == m.size == s.size):
        raise ReferenceTableError("week, mean and sd must be 1-D columns of equal length")
    if w.size < 2:
        raise ReferenceTableError("Reference table needs at least two rows")
    for label, arr in (("week", w), ("mean", m), ("sd", s)):
        bad = np.flatnonzero(~np.isfinite(arr))
        if bad.size:
            raise ReferenceTableError(f"Non-finite {label} at row {int(bad[0])}")
    if np.any(w < 0):
        raise ReferenceTableError(f"Negative week at row {int(np.flatnonzero(w < 0)[0])}")
    if np.any(s <= 0):
        raise ReferenceTableError(f"Non-positive sd at row {int(np.flatnonzero(s <= 0)[0])}")
    curves = [("week", w), ("mean", m)]
    if curve_sd:
        curves += [(f"mean+{curve_sd:g}sd", m + curve_sd * s),
                   (f"mean-{curve_sd:g}sd", m - curve_sd * s)]
    for label, arr in curves:
        step = np.diff(arr)
        if np.any(step <= 0):
            i = int(np.flatnonzero(step <= 0)[0])
            raise ReferenceTableError(
                f"{label} is not strictly increasing between rows {i} and {i + 1} "
                f"(weeks {w[i]:g} and {w[i + 1]:g})"
            )


def _pick(columns: Iterable[str], names: Sequence[str]) -> Optional[str]:
    low = {str(c).strip().lower(): c for c in columns}
    for n in names:
        if n in low:
            return low[n]
    return None


def table_from_frame(df: pd.DataFrame, *, name: str = "custom", curve_sd: float = 2.0) -> ReferenceTable:
    """Build a validated :class:`ReferenceTable` from a DataFrame.

    Columns are matched through :data:`WEEK_ALIASES`, :data:`MEAN_ALIASES`
    and :data:`SD_ALIASES`; rows are sorted by week before validation.
    """
    cols = {}
    for field, aliases in (("week", WEEK_ALIASES), ("mean", MEAN_ALIASES), ("sd", SD_ALIASES)):
        c = _pick(df.columns, aliases)
        if c is None:
            raise ReferenceTableError(
                f"Reference table has no {field} column (looked for {', '.join(aliases)})"
            )
        cols[field] = c
    out = pd.DataFrame({f: pd.to_numeric(df[c], errors="coerce") for f, c in cols.items()})
    out = out.sort_values("week", kind="stable").reset_index(drop=True)
    return ReferenceTable(
        out["week"].to_numpy(float),
        out["mean"].to_numpy(float),
        out["sd"].to_numpy(float),
        name=name,
        curve_sd=curve_sd,
    )


def load_reference_table(path: str | Path, *, name: Optional[str] = None,
                         curve_sd: float = 2.0) -> ReferenceTable:
    """Load a reference table from CSV or JSON.

    JSON may be a list of row objects or ``{"rows": [...]}``.  Anything else
    is read with :func:`pandas.read_csv`.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Reference table not found: {path}")
    if path.suffix.lower() == ".json":
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise ReferenceTableError(f"Invalid JSON in {path}: {e}") from e
        if isinstance(data, dict):
            data = data.get("rows", data)
        df = pd.DataFrame(data)
    else:
        df = pd.read_csv(path)
    table = table_from_frame(df, name=name or path.stem, curve_sd=curve_sd)
    logger.debug("Loaded reference table %s from %s (%d rows, weeks %g..%g)",
                 table.name, path, len(table), table.min_week, table.max_week)
    return table


def _row_value(row: Any, field: str) -> float:
    if isinstance(row, Mapping):
        aliases = {"week": WEEK_ALIASES, "mean": MEAN_ALIASES, "sd": SD_ALIASES}.get(field, [field])
        key = _pick(row.keys(), [field.lower()] + list(aliases))
        if key is None:
            raise KeyError(f"Row has no {field!r} field: {dict(row)!r}")
        return float(row[key])
    return float(getattr(row, field))


def as_rows(data: ReferenceTable | Iterable[Any]) -> list[ReferenceRow]:
    """Normalize a table or an iterable of mappings/row objects to rows.

    No validation is applied; callers that pass raw rows accept whatever
    ordering and duplicates they contain.
    """
    if isinstance(data, ReferenceTable):
        return list(data)
    return [
        r if isinstance(r, ReferenceRow)
        else ReferenceRow(_row_value(r, "week"), _row_value(r, "mean"), _row_value(r, "sd"))
        for r in data
    ]


def field_values(data: ReferenceTable | Iterable[Any], field: str) -> np.ndarray:
    if isinstance(data, ReferenceTable):
        return np.asarray(data.column(field), dtype=float)
    return np.asarray([_row_value(r, field) for r in data], dtype=float)


def valid_measurement_range(table: ReferenceTable, sd_multiplier: float = 4.0) -> Tuple[float, float]:
    """(MIN_VALID, MAX_VALID): first-row mean - k*sd and last-row mean + k*sd."""
    first, last = table[0], table[-1]
    return (first.mean - sd_multiplier * first.sd, last.mean + sd_multiplier * last.sd)


__all__ = [
    "ReferenceRow",
    "ReferenceTable",
    "ReferenceTableError",
    "table_from_frame",
    "load_reference_table",
    "as_rows",
    "field_values",
    "valid_measurement_range",
]
