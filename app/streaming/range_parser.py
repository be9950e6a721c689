"""
Parsing only: parse_range_header(header) -> FullRequest | SingleRange | MultiRange | Malformed.
No I/O and no knowledge of the file length; bounds are checked by plan_window().
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

_SINGLE_RANGE_RE = re.compile(r"^([0-9]+)-([0-9]*)$")


@dataclass(frozen=True)
class FullRequest:
    """No Range header: serve the whole blob."""


@dataclass(frozen=True)
class SingleRange:
    start: int
    end: int | None = None  # None = up to the last byte


@dataclass(frozen=True)
class MultiRange:
    """bytes=a-b,c-d: recognised, not served."""

    specs: tuple[str, ...]


@dataclass(frozen=True)
class Malformed:
    reason: str


ParsedRange = Union[FullRequest, SingleRange, MultiRange, Malformed]


def parse_range_header(header: str | None) -> ParsedRange:
    """
    Parse a Range header of the form ``bytes=<start>-[<end>]``.

    start is mandatory: suffix ranges (``bytes=-500``) are reported as Malformed,
    as is anything that is not a plain decimal offset.
    """
    if header is None or not header.strip():
        return FullRequest()

    unit, sep, spec = header.strip().partition("=")
    if not sep or unit.strip().lower() != "bytes":
        return Malformed("unsupported range unit")

    specs = tuple(s.strip() for s in spec.split(","))
    if len(specs) > 1:
        return MultiRange(specs)

    match = _SINGLE_RANGE_RE.match(specs[0])
    if match is None:
        return Malformed(f"invalid range spec: {specs[0]!r}")

    start_s, end_s = match.groups()
    return SingleRange(start=int(start_s), end=int(end_s) if end_s else None)
