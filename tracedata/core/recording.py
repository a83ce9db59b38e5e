# tracedata/core/recording.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping

from .exceptions import ValidationError, VariableNotFound
from .timeseries import TimeSeries


@dataclass(frozen=True, slots=True, eq=False)
class Recording:
    """
    All variables captured in one trace file, keyed by variable name.

    Variables are independent series: each keeps its own time base, nothing
    is aligned or joined. Transformations return a new Recording.
    """
    name: str
    variables: Mapping[str, TimeSeries] = field(default_factory=dict, repr=False)
    source: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValidationError("Recording.name must be a non-empty string.")
        if not isinstance(self.variables, Mapping):
            raise ValidationError("Recording.variables must be a mapping (e.g., dict).")

        normalized: dict[str, TimeSeries] = {}
        for key, series in self.variables.items():
            if not isinstance(key, str):
                raise ValidationError("Recording.variables keys must be strings.")
            if not isinstance(series, TimeSeries):
                raise ValidationError("Recording.variables values must be TimeSeries instances.")
            if series.name != key:
                raise ValidationError(
                    f"Variable name mismatch: key '{key}' but TimeSeries.name is '{series.name}'."
                )
            normalized[key] = series

        object.__setattr__(self, "variables", normalized)

    def __len__(self) -> int:
        return len(self.variables)

    def __iter__(self) -> Iterator[str]:
        return iter(self.variables)

    def __contains__(self, name: object) -> bool:
        return name in self.variables

    def __getitem__(self, name: str) -> TimeSeries:
        if name not in self.variables:
            raise VariableNotFound(name)
        return self.variables[name]

    @property
    def time_span(self) -> tuple[float, float] | None:
        """(earliest, latest) timestamp over all variables; None when empty."""
        if not self.variables:
            return None
        series = self.variables.values()
        return (
            min(s.min_timestamp for s in series),
            max(s.max_timestamp for s in series),
        )

    # ---- transformations ----
    def select(self, names: Iterable[str]) -> "Recording":
        """Keep only the given variables, in the order of `names`."""
        selected: dict[str, TimeSeries] = {}
        for n in names:
            selected[n] = self[n]
        return Recording(name=self.name, variables=selected, source=self.source)

    def resample(
        self,
        target_length: int,
        lower: float | None = None,
        upper: float | None = None,
    ) -> "Recording":
        """Resample every variable over the same window."""
        return Recording(
            name=self.name,
            variables={
                name: series.resample(target_length, lower, upper)
                for name, series in self.variables.items()
            },
            source=self.source,
        )
