from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional

from econdash.indicators import DEFAULT_SURFACES, SurfaceSpec
from econdash.slicing import ENTIRE_HISTORY, RangeSelection, parse_range

RANGE_CHOICES = ("3", "6", "12", "24", "60", "120", ENTIRE_HISTORY)


def range_label(range_: RangeSelection) -> str:
    return ENTIRE_HISTORY if range_ == ENTIRE_HISTORY else str(range_)


def default_ranges(surfaces: Iterable[SurfaceSpec] = DEFAULT_SURFACES) -> Dict[str, RangeSelection]:
    return {s.name: parse_range(s.default_range) for s in surfaces}


def normalize_ranges(
    raw: Optional[Mapping[str, object]],
    surfaces: Iterable[SurfaceSpec] = DEFAULT_SURFACES,
) -> Dict[str, RangeSelection]:
    """Per-surface range selections from untrusted input (URL query, saved state).

    Unknown surfaces are ignored; missing or invalid values keep the surface default.
    """
    out = default_ranges(surfaces)
    for name, value in (raw or {}).items():
        if name not in out:
            continue
        try:
            out[name] = parse_range(value)
        except ValueError:
            continue
    return out
