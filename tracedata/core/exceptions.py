# tracedata/core/exceptions.py
from __future__ import annotations


class CoreError(Exception):
    """Base error for all core-domain exceptions."""


# ---- Validation / construction errors ----
class ValidationError(CoreError):
    """Raised when a TimeSeries / Recording is constructed with invalid inputs."""


# ---- Lookup errors (also behave like KeyError for dict-like APIs) ----
class VariableNotFound(CoreError, KeyError):
    """Raised when a requested trace variable is not present."""
