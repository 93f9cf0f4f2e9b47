"""
Type definitions for the BeatSlicer core module.
Provides value types, callback aliases and the collaborator protocols.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, Sequence

import numpy as np
from numpy.typing import NDArray

from .config import ANALYSIS_CONFIG, TransportState

# Audio data types
AudioArray = NDArray[np.float32]  # Shape: (samples,) or (samples, channels)

# Strictly increasing timestamps in seconds, 0.0 first when non-empty
SliceSet = list[float]

# Callback types
StateCallback = Callable[[TransportState], None]
PositionCallback = Callable[[float], None]
PhaseCallback = Callable[[str], None]


class TransportError(Exception):
    """A transport command was rejected by the playback collaborator."""


class TransportNotReadyError(TransportError):
    """A transport command was issued before the track reported ready."""


class AnalysisError(ValueError):
    """The analysis collaborator returned an unusable payload."""


@dataclass(frozen=True, slots=True)
class Region:
    """
    A playable, time-bounded segment of the track.
    Derived from the slice set and duration; has no identity beyond its values.
    """
    index: int
    start: float
    end: float

    @property
    def length(self) -> float:
        return self.end - self.start

    def contains(self, seconds: float) -> bool:
        return self.start <= seconds < self.end


@dataclass(frozen=True, slots=True)
class PadSlot:
    """One of the fixed trigger positions and its key legend."""
    slot_index: int
    key_binding: str


@dataclass(frozen=True, slots=True)
class ProcessingStatus:
    """Busy flag plus a human-readable phase message."""
    is_processing: bool = False
    message: str = ""


@dataclass(frozen=True, slots=True)
class TrackMetadata:
    """Descriptive fields returned alongside an analysis."""
    bpm: Optional[float] = None
    genre: Optional[str] = None


@dataclass(slots=True)
class AnalysisResult:
    """Result from a slice analysis request."""
    slices: list[float] = field(default_factory=list)
    bpm: Optional[float] = None
    genre: Optional[str] = None
    degraded: bool = False

    @classmethod
    def fallback(cls) -> "AnalysisResult":
        """Degraded result returned when analysis cannot complete."""
        return cls(slices=[0.0], genre=ANALYSIS_CONFIG.fallback_genre, degraded=True)

    @property
    def metadata(self) -> TrackMetadata:
        return TrackMetadata(bpm=self.bpm, genre=self.genre)


@dataclass(frozen=True, slots=True)
class AnalysisRequest:
    """Identifies which track load an analysis was requested for."""
    generation: int
    source: str
    mime_type: Optional[str] = None


class TransportListener(Protocol):
    """Events emitted by the playback collaborator."""
    def on_ready(self, duration: float) -> None: ...
    def on_play(self) -> None: ...
    def on_pause(self) -> None: ...
    def on_finish(self) -> None: ...
    def on_timeupdate(self, seconds: float) -> None: ...
    def on_error(self, message: str) -> None: ...


class Transport(Protocol):
    """Commands accepted by the playback collaborator."""
    def set_listener(self, listener: Optional[TransportListener]) -> None: ...
    def load(self, source: str) -> None: ...
    def play_pause(self) -> None: ...
    def zoom(self, pixels_per_second: float) -> None: ...
    def add_region(self, region: Region) -> None: ...
    def clear_regions(self) -> None: ...
    def play_region(self, region: Region) -> None: ...
    def close(self) -> None: ...


TransportFactory = Callable[[], Transport]


class AnalysisClient(Protocol):
    """Proposes slice timestamps for encoded audio."""
    def analyze(self, audio_base64: str, mime_type: str) -> AnalysisResult: ...


RawTimestamps = Sequence[float]
