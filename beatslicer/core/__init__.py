"""
BeatSlicer Core Module

This module contains the slice management and playback logic:
- slices: Slice set normalization and manual edits
- regions: Region derivation (slice set joined with track duration)
- pads: Fixed pad slots and slot -> region binding
- PlaybackCoordinator: Transport state machine and event mediation
- analysis: Slice analysis collaborators (Gemini, librosa onsets)
- export: Per-region audio export (soundfile)

The sounddevice transport lives in `beatslicer.core.transport` and is
imported by the GUI only, so the core stays importable without PortAudio.
"""
from .coordinator import PlaybackCoordinator
from .regions import RegionSynchronizer, synchronize
from .slices import normalize, insert_slice, remove_slice, move_slice
from .pads import PAD_SLOTS, PAD_COUNT, PadTriggerFilter, resolve, slot_for_key, live_slots
from .config import (
    SLICE_CONFIG,
    PAD_CONFIG,
    ANALYSIS_CONFIG,
    AUDIO_CONFIG,
    WAVEFORM_CONFIG,
    TransportState
)
from .types import (
    AnalysisRequest,
    AnalysisResult,
    PadSlot,
    ProcessingStatus,
    Region,
    TrackMetadata,
    TransportError,
    TransportNotReadyError,
)
from . import analysis, export

__all__ = [
    # Main classes
    'PlaybackCoordinator',
    'RegionSynchronizer',
    'PadTriggerFilter',
    # Operations
    'normalize',
    'insert_slice',
    'remove_slice',
    'move_slice',
    'synchronize',
    'resolve',
    'slot_for_key',
    'live_slots',
    'PAD_SLOTS',
    'PAD_COUNT',
    # Config
    'SLICE_CONFIG',
    'PAD_CONFIG',
    'ANALYSIS_CONFIG',
    'AUDIO_CONFIG',
    'WAVEFORM_CONFIG',
    'TransportState',
    # Types
    'AnalysisRequest',
    'AnalysisResult',
    'PadSlot',
    'ProcessingStatus',
    'Region',
    'TrackMetadata',
    'TransportError',
    'TransportNotReadyError',
    # Submodules
    'analysis',
    'export',
]
