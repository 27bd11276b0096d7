import json
from pathlib import Path

import pandas as pd
import pytest

from hcdating.batch import date_frame, percentile_frame, write_batch_outputs


def test_date_frame(table):
    df = pd.DataFrame({"id": [1, 2, 3, 4], "hc_mm": [172.5, 50.0, None, 336.9]})
    out = date_frame(df, table=table)
    assert list(out["id"]) == [1, 2, 3, 4]
    assert out.loc[0, "ga_weeks"] == 20
    assert out.loc[0, "ga_days"] == 0
    assert out.loc[0, "ci_lower"] == "18w 6d"
    assert out.loc[0, "ci_upper"] == "21w 2d"
    assert pd.isna(out.loc[0, "error"])
    assert "at least" in out.loc[1, "error"]
    assert out.loc[2, "error"] == "Please enter a numeric value"
    assert out.loc[3, "ga_flag"] == "above_upper_bound"
    assert out.loc[3, "ga_text"] == "More than 40 weeks"
    assert pd.isna(out.loc[3, "ga_weeks"])
    assert str(out["ga_weeks"].dtype) == "Int64"


def test_date_frame_requires_column(table):
    with pytest.raises(ValueError, match="hc_mm"):
        date_frame(pd.DataFrame({"x": [1.0]}), table=table)


def test_date_frame_empty(table):
    out = date_frame(pd.DataFrame({"hc_mm": []}), table=table)
    assert out.empty
    assert "ga_exact_weeks" in out.columns


def test_percentile_frame(table):
    df = pd.DataFrame({
        "weeks": [20, 13, 20],
        "days": [0, 0, None],
        "hc_mm": [172.5, 100.0, 172.5 + 7.44],
    })
    out = percentile_frame(df, table=table)
    assert out.loc[0, "percentile"] == 50
    assert pd.isna(out.loc[1, "percentile"])
    assert out.loc[1, "error"] == "Week must be between 14-40"
    assert out.loc[2, "percentile"] == 84


def test_percentile_frame_without_days_column(table):
    out = percentile_frame(pd.DataFrame({"weeks": [20], "hc_mm": [172.5]}), table=table)
    assert out.loc[0, "percentile"] == 50


def test_write_batch_outputs(tmp_path: Path, table):
    out = date_frame(pd.DataFrame({"hc_mm": [172.5, 10.0]}), table=table)
    paths = write_batch_outputs(tmp_path / "res", out, "date_results", table=table)
    assert Path(paths["csv"]).exists()
    summary = json.loads(Path(paths["json"]).read_text())
    assert summary["rows"] == 2
    assert summary["errors"] == 1
    assert summary["table"] == table.name
