from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Sequence, Tuple, TypeVar, Union

ENTIRE_HISTORY = "max"

RangeSelection = Union[int, str]

MONTHLY = "monthly"
QUARTERLY = "quarterly"

T = TypeVar("T")


@dataclass(frozen=True)
class SliceResult(Generic[T]):
    labels: Tuple[str, ...]
    data: Tuple[T, ...]


def parse_range(raw: object) -> RangeSelection:
    """Normalize a range choice to a positive month count or ``"max"``."""
    if isinstance(raw, bool):
        raise ValueError(f"invalid range: {raw!r}")
    if isinstance(raw, int):
        months = raw
    else:
        text = str(raw).strip().lower()
        if text == ENTIRE_HISTORY:
            return ENTIRE_HISTORY
        try:
            months = int(text)
        except ValueError:
            raise ValueError(f"invalid range: {raw!r}") from None
    if months < 1:
        raise ValueError(f"range must be a positive month count, got {months}")
    return months


def quarterly_points(months: int) -> int:
    # 1Y -> 4 points, 2Y -> 8 points; never fewer than one.
    return max(round(months / 3), 1)


def _trailing(labels: Sequence[str], data: Sequence[T], points: int) -> SliceResult[T]:
    start = max(len(labels) - points, 0)
    return SliceResult(labels=tuple(labels[start:]), data=tuple(data[start:]))


def slice_for_range_monthly(labels: Sequence[str], data: Sequence[T], range_: RangeSelection) -> SliceResult[T]:
    range_ = parse_range(range_)
    if range_ == ENTIRE_HISTORY:
        return SliceResult(labels=tuple(labels), data=tuple(data))
    return _trailing(labels, data, range_)


def slice_for_range_quarterly(labels: Sequence[str], data: Sequence[T], range_: RangeSelection) -> SliceResult[T]:
    range_ = parse_range(range_)
    if range_ == ENTIRE_HISTORY:
        return SliceResult(labels=tuple(labels), data=tuple(data))
    return _trailing(labels, data, quarterly_points(range_))


Slicer = Callable[[Sequence[str], Sequence[T], RangeSelection], SliceResult[T]]

_SLICERS = {
    MONTHLY: slice_for_range_monthly,
    QUARTERLY: slice_for_range_quarterly,
}


def slicer_for(frequency: str) -> Slicer:
    try:
        return _SLICERS[frequency]
    except KeyError:
        raise ValueError(f"unknown frequency: {frequency!r}") from None
