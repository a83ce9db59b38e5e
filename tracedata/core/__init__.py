"""
Core domain objects for tracedata.

This module defines the in-memory data model, independent from any file
format or drawing surface:
- TimeSeries: validated, immutable trace of one variable, with timestamp
  lookup and peak-preserving decimation
- Recording: the variables of one trace file
"""

from .timeseries import TimeSeries, PEAK_TOLERANCE_RATIO
from .recording import Recording
from .exceptions import CoreError, ValidationError, VariableNotFound


__all__ = [
    # time series
    "TimeSeries",
    "PEAK_TOLERANCE_RATIO",

    # domain objects
    "Recording",

    # exceptions
    "CoreError",
    "ValidationError",
    "VariableNotFound",
]
