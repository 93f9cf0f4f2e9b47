"""
Region derivation for BeatSlicer.
Joins the slice set with the track duration into contiguous playable regions.
"""
from __future__ import annotations
import logging
from typing import Callable, Optional, Sequence

from .types import Region, SliceSet

logger = logging.getLogger("BeatSlicer")


def synchronize(slices: Sequence[float], duration: Optional[float]) -> list[Region]:
    """
    Derive ordered, non-overlapping regions covering [0, duration).

    Args:
        slices: Canonical slice set (ascending, 0.0 first)
        duration: Track duration in seconds, or None while unknown

    Returns:
        One region per slice that starts before `duration`; empty while
        the duration is unknown
    """
    if duration is None or duration <= 0:
        return []

    playable = [s for s in slices if s < duration]
    regions: list[Region] = []
    for i, start in enumerate(playable):
        end = playable[i + 1] if i + 1 < len(playable) else duration
        regions.append(Region(index=i, start=start, end=end))
    return regions


class RegionSynchronizer:
    """
    Holds the two independently arriving inputs (slice set, duration) for the
    current track and recomputes regions whenever either changes.

    Every input is tagged with the track generation it belongs to; inputs for
    any other generation are rejected, so regions are never derived from a
    previous track's duration.
    """
    __slots__ = ('_generation', '_slices', '_duration', '_regions', '_on_changed')

    def __init__(self, on_changed: Optional[Callable[[list[Region]], None]] = None) -> None:
        self._generation: int = 0
        self._slices: SliceSet = []
        self._duration: Optional[float] = None
        self._regions: list[Region] = []
        self._on_changed = on_changed

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def slices(self) -> SliceSet:
        return list(self._slices)

    @property
    def duration(self) -> Optional[float]:
        return self._duration

    @property
    def regions(self) -> list[Region]:
        return list(self._regions)

    def reset(self, generation: int) -> None:
        """Start a new track: both inputs become unknown/empty."""
        self._generation = generation
        self._slices = []
        self._duration = None
        self._recompute()

    def set_slices(self, slices: SliceSet, generation: int) -> bool:
        if generation != self._generation:
            logger.debug("Ignoring slices for generation %d (current %d)", generation, self._generation)
            return False
        self._slices = list(slices)
        self._recompute()
        return True

    def set_duration(self, duration: Optional[float], generation: int) -> bool:
        if generation != self._generation:
            logger.debug("Ignoring duration for generation %d (current %d)", generation, self._generation)
            return False
        self._duration = duration
        self._recompute()
        return True

    def _recompute(self) -> None:
        regions = synchronize(self._slices, self._duration)
        if regions == self._regions:
            return
        self._regions = regions
        if self._slices and len(regions) < len(self._slices):
            logger.debug(
                "Dropped %d slice(s) at or beyond %.3fs",
                len(self._slices) - len(regions), self._duration or 0.0
            )
        if self._on_changed:
            self._on_changed(self.regions)
