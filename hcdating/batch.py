from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, Optional
import json, logging
import pandas as pd

from .config import DEFAULT_CONFIG, EngineConfig
from .engine import estimate_age, get_percentile
from .table import ReferenceTable
from .timefmt import format_time
from .validate import InputError, check_age, check_measurement

logger = logging.getLogger(__name__)

DATE_COLUMNS = ["ga_exact_weeks", "ga_weeks", "ga_days", "ga_flag", "ga_text", "ci_lower", "ci_upper", "error"]


def _blank(v: Any) -> Any:
    return None if v is None or (not isinstance(v, str) and pd.isna(v)) else v


def date_frame(df: pd.DataFrame, hc_col: str = "hc_mm",
               table: Optional[ReferenceTable] = None,
               config: Optional[EngineConfig] = None) -> pd.DataFrame:
    """Append gestational-age estimates for every row of ``df[hc_col]``.

    Added columns: ``ga_exact_weeks``, ``ga_weeks``, ``ga_days``, ``ga_flag``,
    ``ga_text``, ``ci_lower``, ``ci_upper`` and ``error``.  Rows whose
    measurement fails validation carry the message in ``error`` and blanks
    elsewhere.
    """
    if hc_col not in df.columns:
        raise ValueError(f"CSV must contain '{hc_col}' column")
    cfg = config or DEFAULT_CONFIG
    tbl = table if table is not None else cfg.resolve_table()
    rows = []
    for raw in df[hc_col].tolist():
        rec: Dict[str, Any] = dict.fromkeys(DATE_COLUMNS)
        try:
            hc = check_measurement(_blank(raw), tbl, cfg.valid_sd_multiplier)
        except InputError as e:
            rec["error"] = str(e)
            rows.append(rec)
            continue
        est = estimate_age(hc, tbl, cfg)
        rec["ga_exact_weeks"] = est.exact_weeks
        if est.in_range:
            rec["ga_weeks"] = est.point.weeks
            rec["ga_days"] = est.point.days
        if est.flag is not None:
            rec["ga_flag"] = est.flag.value
        rec["ga_text"] = est.describe_point()
        rec["ci_lower"] = format_time(est.interval.lower)
        rec["ci_upper"] = format_time(est.interval.upper)
        rows.append(rec)
    out = df.copy()
    added = pd.DataFrame(rows, index=df.index, columns=DATE_COLUMNS)
    for c in ("ga_weeks", "ga_days"):
        added[c] = pd.array(added[c].tolist(), dtype="Int64")
    for c in added.columns:
        out[c] = added[c]
    n_err = int(out["error"].notna().sum())
    if n_err:
        logger.warning("%d of %d rows rejected during dating", n_err, len(out))
    return out


def percentile_frame(df: pd.DataFrame, weeks_col: str = "weeks", days_col: str = "days",
                     hc_col: str = "hc_mm", table: Optional[ReferenceTable] = None,
                     config: Optional[EngineConfig] = None) -> pd.DataFrame:
    """Append ``percentile`` (nullable int) and ``error`` columns.

    ``days_col`` may be absent from ``df``; days then count as 0.
    """
    for c in (weeks_col, hc_col):
        if c not in df.columns:
            raise ValueError(f"CSV must contain '{c}' column")
    cfg = config or DEFAULT_CONFIG
    tbl = table if table is not None else cfg.resolve_table()
    days = df[days_col].tolist() if days_col in df.columns else [None] * len(df)
    pcts, errs = [], []
    for w_raw, d_raw, hc_raw in zip(df[weeks_col].tolist(), days, df[hc_col].tolist()):
        try:
            w, d = check_age(_blank(w_raw), _blank(d_raw),
                             lower_week=cfg.lower_week, upper_week=cfg.upper_week)
            hc = check_measurement(_blank(hc_raw), tbl, cfg.valid_sd_multiplier)
        except InputError as e:
            pcts.append(None); errs.append(str(e))
            continue
        p = get_percentile(w, d, hc, tbl, cfg)
        pcts.append(p)
        errs.append(None if p is not None else "Cannot calculate percentile (Data missing for input)")
    out = df.copy()
    out["percentile"] = pd.array(pcts, dtype="Int64")
    out["error"] = errs
    n_err = sum(e is not None for e in errs)
    if n_err:
        logger.warning("%d of %d rows rejected during percentile lookup", n_err, len(out))
    return out


def write_batch_outputs(outdir: Path, frame: pd.DataFrame, stem: str,
                        table: Optional[ReferenceTable] = None) -> Dict[str, str]:
    """Write ``<stem>.csv`` and ``<stem>_summary.json``; return their paths."""
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)
    csv_path = outdir / f"{stem}.csv"
    frame.to_csv(csv_path, index=False)
    n_err = int(frame["error"].notna().sum()) if "error" in frame.columns else 0
    summary = {
        "rows": int(frame.shape[0]),
        "errors": n_err,
        "table": table.name if table is not None else None,
        "csv": str(csv_path),
    }
    json_path = outdir / f"{stem}_summary.json"
    json_path.write_text(json.dumps(summary, indent=2))
    return {"csv": str(csv_path), "json": str(json_path)}


__all__ = ["date_frame", "percentile_frame", "write_batch_outputs"]
