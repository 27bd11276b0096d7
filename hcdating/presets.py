from __future__ import annotations
from functools import lru_cache
from pathlib import Path

from .table import ReferenceTable, load_reference_table

DATA_DIR = Path(__file__).resolve().parent / "data"

# Built-in tables shipped as package data.  Each CSV has week,mean,sd columns.
TABLES: dict[str, Path] = {
    # INTERGROWTH-21st fetal head circumference (mm), completed weeks 14-40
    "intergrowth_hc": DATA_DIR / "hc_reference.csv",
}
DEFAULT_TABLE = "intergrowth_hc"


@lru_cache(maxsize=None)
def _load(name: str, curve_sd: float) -> ReferenceTable:
    return load_reference_table(TABLES[name], name=name, curve_sd=curve_sd)


def get_table(name: str = DEFAULT_TABLE, curve_sd: float = 2.0) -> ReferenceTable:
    """Load a built-in table once per ``curve_sd``; later calls share the instance.

    The table is validated so that ``mean ± curve_sd * sd`` rise strictly,
    which :func:`~hcdating.engine.estimate_age` needs for its interval.
    """
    if name not in TABLES:
        raise KeyError(f"Unknown reference table {name!r}; choose from {sorted(TABLES)}")
    return _load(name, float(curve_sd))


__all__ = ["DATA_DIR", "TABLES", "DEFAULT_TABLE", "get_table"]
