from __future__ import annotations
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional
import json, math

from .presets import DEFAULT_TABLE, get_table
from .table import ReferenceTable, load_reference_table


@dataclass
class EngineConfig:
    """Tunable bounds for the dating/percentile engine.

    ``lower_week``/``upper_week`` are the plausible-age limits used to flag a
    point estimate; ``ci_sd_multiplier`` sets the width of the confidence
    interval curves (mean ± k·sd) and ``valid_sd_multiplier`` the accepted
    measurement band around the first and last rows.  ``table_path`` wins
    over ``table_preset`` when both are given.
    """

    lower_week: float = 14.0
    upper_week: float = 40.0
    ci_sd_multiplier: float = 2.0
    valid_sd_multiplier: float = 4.0
    table_preset: str = DEFAULT_TABLE
    table_path: Optional[str] = None

    def __post_init__(self):
        for nm in ("lower_week", "upper_week", "ci_sd_multiplier", "valid_sd_multiplier"):
            v = float(getattr(self, nm))
            if not math.isfinite(v):
                raise ValueError(f"{nm} must be finite")
            setattr(self, nm, v)
        if not (0 <= self.lower_week < self.upper_week):
            raise ValueError("Require 0 <= lower_week < upper_week")
        if self.ci_sd_multiplier <= 0:
            raise ValueError("ci_sd_multiplier must be > 0")
        if self.valid_sd_multiplier <= 0:
            raise ValueError("valid_sd_multiplier must be > 0")

    def resolve_table(self) -> ReferenceTable:
        if self.table_path:
            return load_reference_table(self.table_path, curve_sd=self.ci_sd_multiplier)
        return get_table(self.table_preset, curve_sd=self.ci_sd_multiplier)

    def as_dict(self) -> dict:
        return asdict(self)


DEFAULT_CONFIG = EngineConfig()


def load_config(path: str | Path) -> EngineConfig:
    """Read a JSON object of :class:`EngineConfig` fields."""
    with open(path) as fh:
        cfg_dict = json.load(fh)
    if not isinstance(cfg_dict, dict):
        raise ValueError(f"Config {path} must hold a JSON object")
    return EngineConfig(**cfg_dict)


__all__ = ["EngineConfig", "DEFAULT_CONFIG", "load_config"]
