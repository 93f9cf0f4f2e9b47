"""
Centralized configuration for BeatSlicer.
All magic numbers and default settings in one place.
"""
import os
from dataclasses import dataclass, field
from enum import Enum, auto


class TransportState(Enum):
    """Transport state enumeration."""
    IDLE = auto()
    LOADED = auto()
    PLAYING = auto()
    PAUSED = auto()


@dataclass(frozen=True, slots=True)
class SliceConfig:
    """Slice set invariants."""
    epsilon: float = 0.05  # Seconds; closer timestamps are duplicates
    max_slices: int = 16   # One slice per pad


@dataclass(frozen=True, slots=True)
class PadConfig:
    """Pad controller layout and input handling."""
    key_legend: str = "1234qwerasdfzxcv"
    columns: int = 4
    debounce_seconds: float = 0.08
    flash_ms: int = 150


def _env_api_key() -> str:
    for name in ("GEMINI_API_KEY", "API_KEY"):
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return ""


@dataclass(frozen=True, slots=True)
class AnalysisConfig:
    """Audio analysis collaborator settings."""
    model: str = field(default_factory=lambda: os.environ.get("BEATSLICER_MODEL", "gemini-2.5-flash"))
    endpoint: str = "https://generativelanguage.googleapis.com/v1beta/models"
    api_key: str = field(default_factory=_env_api_key, repr=False)
    timeout_seconds: float = 120.0
    fallback_genre: str = "Unknown"
    onset_hop_length: int = 512


@dataclass(frozen=True, slots=True)
class AudioConfig:
    """Playback transport configuration."""
    playback_blocksize: int = 1024
    playback_channels: int = 2
    position_interval_s: float = 0.05  # timeupdate throttle


@dataclass(frozen=True, slots=True)
class WaveformConfig:
    """Waveform visualization settings."""
    default_zoom: int = 50  # Pixels per second
    min_zoom: int = 10
    max_zoom: int = 300
    height: int = 280
    wave_color: tuple[int, int, int] = (82, 82, 91)
    progress_color: tuple[int, int, int] = (59, 130, 246)
    playhead_color: tuple[int, int, int] = (255, 255, 255)
    region_colors: tuple[tuple[int, int, int, int], ...] = (
        (59, 130, 246, 51),   # blue
        (161, 161, 170, 51),  # zinc
        (34, 197, 94, 51),    # green
    )


# Global config instances (immutable singletons)
SLICE_CONFIG = SliceConfig()
PAD_CONFIG = PadConfig()
ANALYSIS_CONFIG = AnalysisConfig()
AUDIO_CONFIG = AudioConfig()
WAVEFORM_CONFIG = WaveformConfig()
