"""
Pad binding table for BeatSlicer.
Maps the fixed trigger slots (and their keyboard legend) onto regions by position.
"""
from __future__ import annotations
import time
from typing import Callable, Optional, Sequence

from .config import PAD_CONFIG
from .types import PadSlot, Region

PAD_SLOTS: tuple[PadSlot, ...] = tuple(
    PadSlot(slot_index=i, key_binding=key) for i, key in enumerate(PAD_CONFIG.key_legend)
)
PAD_COUNT = len(PAD_SLOTS)


def resolve(slot_index: int, regions: Sequence[Region]) -> Optional[Region]:
    """Return the region bound to `slot_index`, or None for an inert slot."""
    if 0 <= slot_index < len(regions):
        return regions[slot_index]
    return None


def is_live(slot_index: int, regions: Sequence[Region]) -> bool:
    return resolve(slot_index, regions) is not None


def live_slots(regions: Sequence[Region]) -> set[int]:
    return {slot.slot_index for slot in PAD_SLOTS if slot.slot_index < len(regions)}


def slot_for_key(key: str) -> Optional[int]:
    """Look up the slot bound to a key (case-insensitive)."""
    if not key or len(key) != 1:
        return None
    index = PAD_CONFIG.key_legend.find(key.lower())
    return index if index >= 0 else None


class PadTriggerFilter:
    """
    Drops duplicate trigger signals.
    Auto-repeat events and re-triggers of the same slot inside the
    debounce window are rejected.
    """
    __slots__ = ('_window', '_clock', '_last')

    def __init__(
        self,
        debounce_seconds: float = PAD_CONFIG.debounce_seconds,
        clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._window = debounce_seconds
        self._clock = clock
        self._last: dict[int, float] = {}

    def accept(self, slot_index: int, auto_repeat: bool = False) -> bool:
        if auto_repeat:
            return False
        now = self._clock()
        last = self._last.get(slot_index)
        if last is not None and now - last < self._window:
            return False
        self._last[slot_index] = now
        return True

    def reset(self) -> None:
        self._last.clear()
