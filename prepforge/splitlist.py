"""Ordered split points of one audio asset, addressed by stable id."""

from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator

from prepforge.errors import InvalidRange
from prepforge.models import new_id


@dataclass(frozen=True)
class SplitPoint:
    time: float
    id: str = field(default_factory=new_id)


class SplitList:
    """Strictly ascending split times inside ``(0, duration)``.

    Points keep their id when moved, so callers never have to find a point
    again by comparing floats.
    """

    def __init__(self, duration: float, times: Iterable[float] = ()):
        self.duration = duration
        self._points: list[SplitPoint] = []
        self.replace(times)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[SplitPoint]:
        return iter(list(self._points))

    @property
    def times(self) -> list[float]:
        return [p.time for p in self._points]

    def get(self, point_id: str) -> SplitPoint:
        for p in self._points:
            if p.id == point_id:
                return p
        raise KeyError(point_id)

    def _check(self, time: float, ignore_id: str | None = None) -> None:
        if not 0 < time < self.duration:
            raise InvalidRange(f"split at {time:.3f}s is outside (0, {self.duration:.3f})")
        if any(p.time == time and p.id != ignore_id for p in self._points):
            raise InvalidRange(f"split at {time:.3f}s already exists")

    def add(self, time: float) -> SplitPoint:
        """Insert a split at *time*, clamped to the asset's bounds."""
        time = min(max(time, 0.0), self.duration)
        self._check(time)
        point = SplitPoint(time=time)
        self._points.append(point)
        self._points.sort(key=lambda p: p.time)
        return point

    def adjust(self, point_id: str, delta: float) -> SplitPoint:
        """Move a split by *delta* seconds, keeping its id."""
        old = self.get(point_id)
        time = min(max(old.time + delta, 0.0), self.duration)
        self._check(time, ignore_id=point_id)
        moved = replace(old, time=time)
        self._points = sorted(
            (moved if p.id == point_id else p for p in self._points),
            key=lambda p: p.time,
        )
        return moved

    def remove(self, point_id: str) -> SplitPoint:
        point = self.get(point_id)
        self._points = [p for p in self._points if p.id != point_id]
        return point

    def replace(self, times: Iterable[float]) -> None:
        """Swap in a new set of split times; every point gets a fresh id."""
        points = [SplitPoint(time=t) for t in times]
        previous = 0.0
        for p in points:
            if not 0 < p.time < self.duration or p.time <= previous:
                raise InvalidRange("split times must be strictly ascending inside the asset")
            previous = p.time
        self._points = points
