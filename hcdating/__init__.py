"""
hcdating - fetal gestational age and head-circumference percentiles from a
mean/SD reference table.
"""

__version__ = "0.1.0"

from .normal import pnorm, zscore
from .table import (
    ReferenceRow,
    ReferenceTable,
    ReferenceTableError,
    load_reference_table,
    table_from_frame,
    valid_measurement_range,
)
from .presets import TABLES, DEFAULT_TABLE, get_table
from .interp import interpolate, inverse_estimate, mean_curve, sd_curve, upper_curve, lower_curve
from .timefmt import GestationalTime, to_weeks_days, to_decimal_weeks, format_time
from .config import EngineConfig, load_config
from .engine import (
    RangeFlag,
    ConfidenceInterval,
    GestationalAgeEstimate,
    get_percentile,
    estimate_age,
)
from .validate import InputError, check_measurement, check_age
from .batch import date_frame, percentile_frame, write_batch_outputs

__all__ = [
    "__version__",
    "pnorm", "zscore",
    "ReferenceRow", "ReferenceTable", "ReferenceTableError",
    "load_reference_table", "table_from_frame", "valid_measurement_range",
    "TABLES", "DEFAULT_TABLE", "get_table",
    "interpolate", "inverse_estimate", "mean_curve", "sd_curve", "upper_curve", "lower_curve",
    "GestationalTime", "to_weeks_days", "to_decimal_weeks", "format_time",
    "EngineConfig", "load_config",
    "RangeFlag", "ConfidenceInterval", "GestationalAgeEstimate", "get_percentile", "estimate_age",
    "InputError", "check_measurement", "check_age",
    "date_frame", "percentile_frame", "write_batch_outputs",
]
