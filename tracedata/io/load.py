# tracedata/io/load.py
from __future__ import annotations

from pathlib import Path

from tracedata.io.codesys import CodesysTraceReader, TraceFormatError
from tracedata.core import Recording, TimeSeries


def load_variable(path: str | Path, var_index: int = 0) -> TimeSeries:
    return CodesysTraceReader(path).read_variable(var_index)


def load_trace(path: str | Path) -> Recording:
    reader = CodesysTraceReader(path)

    variables: dict[str, TimeSeries] = {}
    for info in reader.list_variables():
        if info.name in variables:
            raise TraceFormatError(f"{path}: duplicate trace variable '{info.name}'")
        variables[info.name] = reader.read_variable(info.index)

    return Recording(
        name=Path(path).stem,
        variables=variables,
        source=str(path),
    )
