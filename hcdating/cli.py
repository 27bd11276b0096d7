from __future__ import annotations
import argparse, json, logging
from pathlib import Path
import pandas as pd

from .batch import date_frame, percentile_frame, write_batch_outputs
from .config import EngineConfig, load_config
from .engine import estimate_age, get_percentile
from .presets import TABLES
from .table import ReferenceTableError, valid_measurement_range
from .timefmt import to_decimal_weeks
from .validate import InputError, check_age, check_measurement
from .visuals import plot_growth_chart


def build_parser():
    p = argparse.ArgumentParser(prog="hcdating", description="Fetal head-circumference dating & percentiles")
    p.add_argument("--table", type=Path, default=None, help="Reference table CSV/JSON (week, mean, sd)")
    p.add_argument("--preset", default=None, choices=sorted(TABLES), help="Built-in reference table")
    p.add_argument("--config", type=Path, default=None, help="JSON file with EngineConfig fields")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    pc = sub.add_parser("percentile", help="Percentile of a measurement at a gestational age")
    pc.add_argument("--weeks", required=True, help="Completed weeks (14-40)")
    pc.add_argument("--days", default=None, help="Extra days (0-6), default 0")
    pc.add_argument("--hc", required=True, help="Head circumference [mm]")

    dt = sub.add_parser("date", help="Estimate gestational age from a measurement")
    dt.add_argument("--hc", required=True, help="Head circumference [mm]")

    sub.add_parser("bounds", help="Accepted measurement range and table span")

    tb = sub.add_parser("table", help="Dump the active reference table")
    tb.add_argument("--out", type=Path, default=None, help="Write CSV here instead of stdout")

    bt = sub.add_parser("batch", help="Date or rank every row of a CSV")
    bt.add_argument("--csv", required=True, type=Path)
    bt.add_argument("--mode", choices=["date", "percentile"], default="date")
    bt.add_argument("--hc-col", default="hc_mm")
    bt.add_argument("--weeks-col", default="weeks")
    bt.add_argument("--days-col", default="days")
    bt.add_argument("--outdir", required=True, type=Path)

    ch = sub.add_parser("chart", help="Render the growth chart PNG")
    ch.add_argument("--outdir", required=True, type=Path)
    ch.add_argument("--hc", default=None, help="Overlay this measurement [mm]")
    ch.add_argument("--weeks", default=None, help="Place the measurement at this age")
    ch.add_argument("--days", default=None)
    return p


def _engine_config(a) -> EngineConfig:
    cfg = load_config(a.config) if a.config else EngineConfig()
    if a.preset:
        cfg.table_preset = a.preset
        cfg.table_path = None
    if a.table:
        cfg.table_path = str(a.table)
    return cfg


def main(argv=None):
    ap = build_parser()
    a = ap.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if a.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        cfg = _engine_config(a)
        table = cfg.resolve_table()
    except (ReferenceTableError, FileNotFoundError, KeyError, TypeError, ValueError) as e:
        raise SystemExit(f"Cannot load reference table/config: {e}")

    try:
        if a.cmd == "percentile":
            w, d = check_age(a.weeks, a.days, lower_week=cfg.lower_week, upper_week=cfg.upper_week)
            hc = check_measurement(a.hc, table, cfg.valid_sd_multiplier)
            pct = get_percentile(w, d, hc, table, cfg)
            if pct is None:
                raise SystemExit("Cannot calculate percentile (Data missing for input)")
            print(json.dumps({"weeks": w, "days": d, "hc_mm": hc, "percentile": pct, "table": table.name}))
        elif a.cmd == "date":
            hc = check_measurement(a.hc, table, cfg.valid_sd_multiplier)
            res = estimate_age(hc, table, cfg).as_dict()
            res["hc_mm"] = hc
            res["table"] = table.name
            print(json.dumps(res, indent=2))
        elif a.cmd == "bounds":
            lo, hi = valid_measurement_range(table, cfg.valid_sd_multiplier)
            print(json.dumps({
                "table": table.name,
                "rows": len(table),
                "min_week": table.min_week,
                "max_week": table.max_week,
                "min_valid_mm": lo,
                "max_valid_mm": hi,
            }, indent=2))
        elif a.cmd == "table":
            df = table.to_frame()
            if a.out:
                Path(a.out).parent.mkdir(parents=True, exist_ok=True)
                df.to_csv(a.out, index=False)
                print(json.dumps({"table_csv": str(Path(a.out)), "rows": int(df.shape[0])}))
            else:
                print(df.to_csv(index=False), end="")
        elif a.cmd == "batch":
            df = pd.read_csv(a.csv)
            try:
                if a.mode == "date":
                    out = date_frame(df, hc_col=a.hc_col, table=table, config=cfg)
                else:
                    out = percentile_frame(df, weeks_col=a.weeks_col, days_col=a.days_col,
                                           hc_col=a.hc_col, table=table, config=cfg)
            except ValueError as e:
                raise SystemExit(str(e))
            paths = write_batch_outputs(a.outdir, out, stem=f"{a.mode}_results", table=table)
            errors = int(out["error"].notna().sum())
            print(json.dumps({"rows": int(out.shape[0]), "errors": errors, **paths}, indent=2))
        elif a.cmd == "chart":
            hc = check_measurement(a.hc, table, cfg.valid_sd_multiplier) if a.hc is not None else None
            ga = None
            if a.weeks is not None:
                w, d = check_age(a.weeks, a.days, lower_week=cfg.lower_week, upper_week=cfg.upper_week)
                ga = to_decimal_weeks(w, d)
            elif hc is not None:
                est = estimate_age(hc, table, cfg)
                ga = est.exact_weeks if est.in_range else None
            png = plot_growth_chart(a.outdir, table, hc, ga,
                                    sd_multiplier=cfg.ci_sd_multiplier,
                                    valid_sd_multiplier=cfg.valid_sd_multiplier)
            print(json.dumps({"chart_png": png}))
    except (InputError, ReferenceTableError) as e:
        raise SystemExit(str(e))


if __name__ == "__main__":
    main()
