from __future__ import annotations
from pathlib import Path
from typing import Optional
import numpy as np
import matplotlib
matplotlib.use("Agg")  # headless
import matplotlib.pyplot as plt

from .table import ReferenceTable, valid_measurement_range


def plot_growth_chart(
    outdir: Path,
    table: ReferenceTable,
    measurement: Optional[float] = None,
    weeks: Optional[float] = None,
    *,
    sd_multiplier: float = 2.0,
    valid_sd_multiplier: float = 4.0,
    title: str = "Head circumference reference",
    stem: str = "growth_chart",
) -> str:
    """
    Plot the mean and mean ± k·sd curves of ``table`` against week.
    - the accepted measurement band (first/last row ± valid_sd_multiplier·sd) is shaded
    - ``measurement`` alone is drawn as a horizontal line; with ``weeks`` as a point
    Output file: outdir / f"{stem}.png"
    """
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    w = np.asarray(table.weeks, dtype=float)
    m = np.asarray(table.means, dtype=float)
    s = np.asarray(table.sds, dtype=float)
    lo, hi = valid_measurement_range(table, valid_sd_multiplier)

    fig, ax = plt.subplots(figsize=(8, 5))
    ax.axhspan(lo, hi, color="0.92", zorder=0, label=f"Accepted range (±{valid_sd_multiplier:g} SD)")
    ax.fill_between(w, m - sd_multiplier * s, m + sd_multiplier * s, alpha=0.25,
                    label=f"Mean ± {sd_multiplier:g} SD")
    ax.plot(w, m, label="Mean")
    ax.plot(w, m + sd_multiplier * s, linestyle="--", linewidth=0.8)
    ax.plot(w, m - sd_multiplier * s, linestyle="--", linewidth=0.8)
    if measurement is not None:
        if weeks is not None:
            ax.plot([weeks], [measurement], marker="o", color="C3", linestyle="none",
                    label=f"Measured {measurement:g} mm")
        else:
            ax.axhline(measurement, color="C3", linewidth=1.0, label=f"Measured {measurement:g} mm")
    ax.set_xlabel("Gestational age (weeks)")
    ax.set_ylabel("Head circumference (mm)")
    ax.set_xlim(w.min(), w.max())
    ax.set_title(title)
    ax.legend(loc="upper left")
    fig.tight_layout()
    p = outdir / f"{stem}.png"
    fig.savefig(p, dpi=150)
    plt.close(fig)
    return str(p)


__all__ = ["plot_growth_chart"]
