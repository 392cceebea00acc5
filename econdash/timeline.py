from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union


class Missing:
    """Marker for a timeline label the series has no observation for."""

    _instance: Optional["Missing"] = None

    def __new__(cls) -> "Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (Missing, ())


MISSING = Missing()

AlignedValue = Union[float, Missing]


def is_missing(value: object) -> bool:
    return value is MISSING


def union_sorted(label_sets: Iterable[Iterable[str]]) -> Tuple[str, ...]:
    """Sorted, de-duplicated union of label sequences.

    YYYY-MM labels sort chronologically as plain strings.
    """
    seen = set()
    for labels in label_sets:
        seen.update(labels)
    return tuple(sorted(seen))


def align_to_master(
    master: Sequence[str],
    labels: Sequence[str],
    values: Sequence[float],
) -> Tuple[AlignedValue, ...]:
    lookup: Dict[str, float] = dict(zip(labels, values))
    return tuple(lookup.get(label, MISSING) for label in master)


def to_optional(values: Iterable[AlignedValue]) -> List[Optional[float]]:
    """Convert aligned values to plain floats with ``None`` for gaps (JSON/chart boundary)."""
    return [None if is_missing(v) else float(v) for v in values]
