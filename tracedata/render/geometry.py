# tracedata/render/geometry.py
"""
Screen-space mapping used by canvas renderers.

The renderer owns every drawing call; this module only answers where a
sample lands inside a ``width x height`` viewport showing the time window
``[lower_timestamp, upper_timestamp]``, and which samples are worth drawing.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from tracedata.core import TimeSeries


@dataclass(frozen=True, slots=True)
class ViewMapping:
    width: float
    height: float
    lower_timestamp: float
    upper_timestamp: float
    min_value: float
    max_value: float

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(
                f"viewport must have a positive size, got {self.width}x{self.height}"
            )
        if self.upper_timestamp < self.lower_timestamp:
            raise ValueError(
                f"upper_timestamp ({self.upper_timestamp}) is before "
                f"lower_timestamp ({self.lower_timestamp})"
            )

    @classmethod
    def for_series(
        cls,
        series: TimeSeries,
        width: float,
        height: float,
        lower: float | None = None,
        upper: float | None = None,
    ) -> "ViewMapping":
        """
        Mapping for `series` over a window (full range by default).

        The vertical scale comes from the extrema of the whole series, not of
        the visible window, so it stays put while panning or zooming in time.
        """
        return cls(
            width=width,
            height=height,
            lower_timestamp=series.min_timestamp if lower is None else lower,
            upper_timestamp=series.max_timestamp if upper is None else upper,
            min_value=series.min_value,
            max_value=series.max_value,
        )

    @property
    def sx(self) -> float:
        span = self.upper_timestamp - self.lower_timestamp
        return 0.0 if span == 0 else self.width / span

    @property
    def flat(self) -> bool:
        # no usable value range: equal extrema, or NaN extrema of an all-NaN trace
        span = self.max_value - self.min_value
        return not np.isfinite(span) or span == 0

    @property
    def sy(self) -> float:
        return 0.0 if self.flat else self.height / (self.max_value - self.min_value)

    @property
    def ty(self) -> float:
        # flat series are drawn through the middle of the viewport
        return self.height / 2 if self.flat else self.height

    def x(self, timestamps: Any) -> Any:
        return self.sx * (np.asarray(timestamps, dtype=np.float64) - self.lower_timestamp)

    def y(self, values: Any) -> Any:
        # larger values render higher: the y axis points down
        return self.ty - self.sy * (np.asarray(values, dtype=np.float64) - self.min_value)


def visible_range(series: TimeSeries, lower: float, upper: float) -> tuple[int, int]:
    """
    Slice bounds ``(start, stop)`` of the samples to draw for a window.

    Starts at the sample at or before `lower`, and keeps one sample past
    `upper` when the window edge falls between two samples, so the line runs
    all the way to the viewport border.
    """
    start = max(series.index_at_or_before(lower), 0)
    end = series.index_at_or_before(upper)
    if end < 0:
        return start, start
    if series.timestamps[end] < upper and end + 1 < series.length:
        end += 1
    return start, max(end + 1, start)


def project(series: TimeSeries, mapping: ViewMapping) -> tuple[np.ndarray, np.ndarray]:
    """Screen coordinates (xs, ys) of the samples visible through `mapping`."""
    start, stop = visible_range(series, mapping.lower_timestamp, mapping.upper_timestamp)
    return (
        mapping.x(series.timestamps[start:stop]),
        mapping.y(series.values[start:stop]),
    )
