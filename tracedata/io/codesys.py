from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List
import logging
import xml.etree.ElementTree as ET

import numpy as np

from tracedata.core import TimeSeries

logger = logging.getLogger(__name__)

# CoDeSys stores timestamps as integer milliseconds; series use seconds.
TIMESTAMP_SCALE = 1e-3


class TraceFormatError(Exception):
    """Raised when a trace document cannot be read as a CoDeSys trace."""


@dataclass
class RawVariableInfo:
    """
    Metadata + lazy loader for one <TraceVariable> of a trace document.

    The loader parses the comma-separated sample lists only when called and
    returns (timestamps in seconds, values).
    """

    name: str                  # VarName attribute, e.g. "PLC_PRG.fTemp"
    index: int                 # position among the document's variables
    n_samples: int

    loader: Callable[[], tuple["np.ndarray", "np.ndarray"]]


def _local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from an element tag."""
    return tag.rsplit("}", 1)[-1]


def _child_text(elem: ET.Element, name: str) -> str:
    for child in elem:
        if _local_name(child.tag) == name:
            return child.text or ""
    raise TraceFormatError(f"<TraceVariable> has no <{name}> element")


def _parse_numbers(text: str, what: str) -> np.ndarray:
    """Parse a comma-separated number list, e.g. "0,10,20"."""
    parts = text.split(",")
    try:
        return np.array([float(p) for p in parts], dtype=np.float64)
    except ValueError as e:
        raise TraceFormatError(f"invalid number in <{what}>: {e}") from e


class CodesysTraceReader:
    """Reader for CoDeSys trace XML exports.

    Every <TraceVariable> element (at any depth, namespace-agnostic) is one
    variable. Sample lists are parsed lazily, per variable.
    """

    def __init__(self, path: str | Path, *, timestamp_scale: float = TIMESTAMP_SCALE):
        self.source = str(path)
        try:
            tree = ET.parse(path)
        except ET.ParseError as e:
            raise TraceFormatError(f"{path}: not a valid XML document ({e})") from e
        self._init_from_root(tree.getroot(), timestamp_scale)

    @classmethod
    def from_string(
        cls,
        text: str,
        *,
        timestamp_scale: float = TIMESTAMP_SCALE,
    ) -> "CodesysTraceReader":
        try:
            root = ET.fromstring(text)
        except ET.ParseError as e:
            raise TraceFormatError(f"not a valid XML document ({e})") from e
        reader = cls.__new__(cls)
        reader.source = None
        reader._init_from_root(root, timestamp_scale)
        return reader

    # ------------------------------------------------------------------
    # Index construction
    # ------------------------------------------------------------------
    def _init_from_root(self, root: ET.Element, timestamp_scale: float) -> None:
        self._timestamp_scale = timestamp_scale
        self._variables: list[RawVariableInfo] = []

        elems = [e for e in root.iter() if _local_name(e.tag) == "TraceVariable"]
        for index, elem in enumerate(elems):
            name = elem.get("VarName")
            if name is None:
                raise TraceFormatError(f"<TraceVariable> #{index} has no VarName attribute")

            ts_text = _child_text(elem, "Timestamps")

            def make_loader(e: ET.Element = elem):
                def _loader() -> tuple[np.ndarray, np.ndarray]:
                    t = _parse_numbers(_child_text(e, "Timestamps"), "Timestamps")
                    v = _parse_numbers(_child_text(e, "Values"), "Values")
                    return t * self._timestamp_scale, v

                return _loader

            self._variables.append(
                RawVariableInfo(
                    name=name,
                    index=index,
                    n_samples=len(ts_text.split(",")) if ts_text.strip() else 0,
                    loader=make_loader(),
                )
            )

        logger.debug("found %d trace variables in %s", len(self._variables), self.source)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def list_variables(self) -> List[RawVariableInfo]:
        """List the document's variables in document order."""
        return list(self._variables)

    def _lookup(self, key: int | str) -> RawVariableInfo:
        if isinstance(key, str):
            for info in self._variables:
                if info.name == key:
                    return info
            raise KeyError(f"Variable '{key}' not found in trace")
        if isinstance(key, bool) or not isinstance(key, (int, np.integer)):
            raise TypeError(f"variable key must be an index or a VarName, got {key!r}")
        if not 0 <= key < len(self._variables):
            raise IndexError(
                f"variable index {key} out of range (trace has {len(self._variables)})"
            )
        return self._variables[key]

    def read_variable(self, key: int | str = 0) -> TimeSeries:
        """Read one variable by position or by VarName.

        ValidationError from the series constructor (length mismatch,
        decreasing timestamps) is left to propagate unchanged.
        """
        info = self._lookup(key)
        t, v = info.loader()
        logger.debug("read %r: %d samples", info.name, t.size)
        return TimeSeries.create(info.name, t, v)
