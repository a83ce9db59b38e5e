# core/timeseries.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

# A sample is a peak when it moves away from its predecessor by more than this
# fraction of the value range of the resampled window.
PEAK_TOLERANCE_RATIO = 0.1


def _as_readonly_1d(data: Any, label: str) -> np.ndarray:
    try:
        arr = np.array(data, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"`{label}` must contain numbers: {e}") from e
    if arr.ndim != 1:
        raise ValidationError(f"`{label}` must be 1D, got shape {arr.shape}")
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True, slots=True, eq=False)
class TimeSeries:
    """
    Immutable trace of one variable: sorted timestamps + matching values.

    Invariants (checked on construction, raising ValidationError):
    - same length for both arrays, at least one sample
    - finite, non-decreasing timestamps (duplicates allowed)

    Summary fields (duration, value range) are computed once here and never
    recomputed. Every transformation returns a new TimeSeries.
    """

    name: str
    timestamps: np.ndarray = field(repr=False)
    values: np.ndarray = field(repr=False)

    min_timestamp: float = field(init=False)
    max_timestamp: float = field(init=False)
    duration: float = field(init=False)
    min_value: float = field(init=False)
    max_value: float = field(init=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise ValidationError("TimeSeries.name must be a string.")

        t = _as_readonly_1d(self.timestamps, "timestamps")
        v = _as_readonly_1d(self.values, "values")

        if t.size != v.size:
            raise ValidationError(
                f"`timestamps` and `values` must have same length, got {t.size} vs {v.size}"
            )
        if t.size == 0:
            raise ValidationError("TimeSeries needs at least one sample.")
        if not np.isfinite(t).all():
            raise ValidationError("`timestamps` contains non-finite values (NaN/Inf).")

        dt = np.diff(t)
        if np.any(dt < 0):
            bad = int(np.argmax(dt < 0)) + 1
            raise ValidationError(
                f"`timestamps` must be non-decreasing, "
                f"timestamps[{bad}]={t[bad]} < timestamps[{bad - 1}]={t[bad - 1]}"
            )

        object.__setattr__(self, "timestamps", t)
        object.__setattr__(self, "values", v)
        object.__setattr__(self, "min_timestamp", float(t[0]))
        object.__setattr__(self, "max_timestamp", float(t[-1]))
        object.__setattr__(self, "duration", float(t[-1] - t[0]))
        # NaN samples are skipped; an all-NaN trace has no value range.
        if np.isnan(v).all():
            object.__setattr__(self, "min_value", float("nan"))
            object.__setattr__(self, "max_value", float("nan"))
        else:
            object.__setattr__(self, "min_value", float(np.nanmin(v)))
            object.__setattr__(self, "max_value", float(np.nanmax(v)))

    @classmethod
    def create(cls, name: str, timestamps: Any, values: Any) -> "TimeSeries":
        """Validating factory; the arrays are copied, never aliased."""
        return cls(name=name, timestamps=timestamps, values=values)

    @property
    def length(self) -> int:
        return int(self.timestamps.size)

    def __len__(self) -> int:
        return self.length

    # ---- lookup ----
    def index_at_or_before(self, t: float) -> int:
        """
        Largest index i with timestamps[i] <= t, or -1 if t precedes the series.

        Binary search; for a run of equal timestamps the last index of the run
        is returned.
        """
        return int(np.searchsorted(self.timestamps, t, side="right")) - 1

    def _window_indices(
        self,
        lower: float | None,
        upper: float | None,
    ) -> tuple[int, int]:
        if lower is None:
            lower = self.min_timestamp
        if upper is None:
            upper = self.max_timestamp

        lower_index = max(self.index_at_or_before(lower), 0)
        upper_index = self.index_at_or_before(upper)

        # Window before the data or reversed bounds: keep the nearest sample.
        if upper_index < lower_index:
            upper_index = lower_index
        return lower_index, upper_index

    def window(self, lower: float | None = None, upper: float | None = None) -> "TimeSeries":
        """
        Sub-series between the samples resolved for `lower` and `upper`.

        The lower bound resolves to the sample at or before it (clamped to the
        first sample), the upper bound to the last sample at or before it.
        Omitted bounds default to the full range.
        """
        lo, hi = self._window_indices(lower, upper)
        return TimeSeries(
            name=self.name,
            timestamps=self.timestamps[lo:hi + 1],
            values=self.values[lo:hi + 1],
        )

    # ---- decimation ----
    def resample(
        self,
        target_length: int,
        lower: float | None = None,
        upper: float | None = None,
        *,
        tolerance_ratio: float = PEAK_TOLERANCE_RATIO,
    ) -> "TimeSeries":
        """
        Decimate the window to roughly `target_length` samples.

        Every `gap`-th sample is kept (gap = M // target_length), plus every
        peak: a sample whose value differs from its predecessor by more than
        `tolerance_ratio` of the window's value range. Peaks are never thinned
        away, so the result may be much longer than `target_length`.

        The window is closed: the sample at or before `upper` is included.
        Entering or leaving a run of NaN values counts as a peak, so gaps in a
        trace keep their edges; an all-NaN window is thinned by stride only.
        """
        if isinstance(target_length, bool) or not isinstance(target_length, (int, np.integer)):
            raise ValueError(f"target_length must be an integer, got {target_length!r}")
        if target_length < 1:
            raise ValueError(f"target_length must be >= 1, got {target_length}")

        win = self.window(lower, upper)
        m = win.length
        if m <= 1:
            return win

        t, v = win.timestamps, win.values
        tolerance = tolerance_ratio * (win.max_value - win.min_value)

        keep = np.zeros(m, dtype=bool)
        missing = np.isnan(v)
        with np.errstate(invalid="ignore"):
            keep[1:] = np.abs(np.diff(v)) > tolerance
        keep[1:] |= missing[1:] != missing[:-1]
        n_peaks = int(keep.sum())

        gap = max(m // int(target_length), 1)
        keep |= (np.arange(m) % gap) == 0

        out = TimeSeries(name=self.name, timestamps=t[keep], values=v[keep])
        logger.debug(
            "resample %r: %d -> %d samples (target=%d, gap=%d, peaks=%d)",
            self.name, m, out.length, target_length, gap, n_peaks,
        )
        return out

    def to_numpy(self, *, copy: bool = False) -> tuple[np.ndarray, np.ndarray]:
        if copy:
            return self.timestamps.copy(), self.values.copy()
        return self.timestamps, self.values
