"""
Playback coordinator for BeatSlicer.
Owns the transport, the slice set join and the transport state machine.
"""
from __future__ import annotations
import logging
from typing import Callable, Optional

from .analysis import guess_mime_type
from .config import WAVEFORM_CONFIG, TransportState
from .pads import resolve
from .regions import RegionSynchronizer
from .slices import normalize
from .types import (
    AnalysisRequest, AnalysisResult, PositionCallback, ProcessingStatus, RawTimestamps,
    Region, SliceSet, StateCallback, TrackMetadata, Transport, TransportError,
    TransportFactory,
)

logger = logging.getLogger("BeatSlicer")


class _TrackListener:
    """Forwards transport events tagged with the generation they belong to."""
    __slots__ = ('_coordinator', '_generation')

    def __init__(self, coordinator: "PlaybackCoordinator", generation: int) -> None:
        self._coordinator = coordinator
        self._generation = generation

    def on_ready(self, duration: float) -> None:
        self._coordinator.track_ready(duration, generation=self._generation)

    def on_play(self) -> None:
        self._coordinator.transport_played(generation=self._generation)

    def on_pause(self) -> None:
        self._coordinator.transport_paused(generation=self._generation)

    def on_finish(self) -> None:
        self._coordinator.finished(generation=self._generation)

    def on_timeupdate(self, seconds: float) -> None:
        self._coordinator.timeupdate(seconds, generation=self._generation)

    def on_error(self, message: str) -> None:
        self._coordinator.track_failed(message, generation=self._generation)


class PlaybackCoordinator:
    """
    Mediates between the trigger surface and the transport.

    State machine: Idle -> Loaded -> Playing <-> Paused, Playing -> Loaded
    on natural finish. Any (state, event) pair not listed is a no-op.
    All events are expected on one thread (the GUI event loop).
    """

    def __init__(
        self,
        transport_factory: TransportFactory,
        on_state_changed: Optional[StateCallback] = None,
        on_regions_changed: Optional[Callable[[list[Region]], None]] = None,
        on_status_changed: Optional[Callable[[ProcessingStatus], None]] = None,
        on_metadata_changed: Optional[Callable[[TrackMetadata], None]] = None,
        on_position_changed: Optional[PositionCallback] = None,
        on_analysis_failed: Optional[Callable[[str], None]] = None
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            transport_factory: Creates one transport per selected track
            on_state_changed: Called with the new TransportState
            on_regions_changed: Called with the recomputed region list
            on_status_changed: Called when the processing flag/message changes
            on_metadata_changed: Called with bpm/genre of the applied analysis
            on_position_changed: Called with the playhead position in seconds
            on_analysis_failed: Called once per failed analysis with a message
        """
        self._transport_factory = transport_factory
        self._transport: Optional[Transport] = None
        self._state = TransportState.IDLE
        self._generation = 0
        self._source: Optional[str] = None
        self._pending: Optional[AnalysisRequest] = None
        self._status = ProcessingStatus()
        self._metadata = TrackMetadata()
        self._position: float = 0.0
        self._zoom: float = float(WAVEFORM_CONFIG.default_zoom)

        self._on_state_changed = on_state_changed
        self._on_regions_changed = on_regions_changed
        self._on_status_changed = on_status_changed
        self._on_metadata_changed = on_metadata_changed
        self._on_position_changed = on_position_changed
        self._on_analysis_failed = on_analysis_failed

        self._sync = RegionSynchronizer(on_changed=self._regions_changed)

    # --- Read-only state ---

    @property
    def state(self) -> TransportState:
        return self._state

    @property
    def generation(self) -> int:
        """Identity of the current track load."""
        return self._generation

    @property
    def source(self) -> Optional[str]:
        return self._source

    @property
    def slices(self) -> SliceSet:
        return self._sync.slices

    @property
    def regions(self) -> list[Region]:
        return self._sync.regions

    @property
    def duration(self) -> Optional[float]:
        return self._sync.duration

    @property
    def status(self) -> ProcessingStatus:
        return self._status

    @property
    def metadata(self) -> TrackMetadata:
        return self._metadata

    @property
    def position(self) -> float:
        return self._position

    @property
    def zoom_level(self) -> float:
        return self._zoom

    @property
    def is_loaded(self) -> bool:
        return self._state is not TransportState.IDLE

    @property
    def transport(self) -> Optional[Transport]:
        """The live transport, for read-only rendering access."""
        return self._transport

    # --- Notifications ---

    def _set_state(self, state: TransportState) -> None:
        if self._state != state:
            logger.debug("Transport state %s -> %s", self._state.name, state.name)
            self._state = state
            if self._on_state_changed:
                self._on_state_changed(state)

    def _set_status(self, is_processing: bool, message: str = "") -> None:
        status = ProcessingStatus(is_processing=is_processing, message=message)
        if status != self._status:
            self._status = status
            if self._on_status_changed:
                self._on_status_changed(status)

    def _set_metadata(self, metadata: TrackMetadata) -> None:
        if metadata != self._metadata:
            self._metadata = metadata
            if self._on_metadata_changed:
                self._on_metadata_changed(metadata)

    def _set_position(self, seconds: float) -> None:
        self._position = seconds
        if self._on_position_changed:
            self._on_position_changed(seconds)

    def _regions_changed(self, regions: list[Region]) -> None:
        if self.is_loaded:
            self._command("clear_regions")
            for region in regions:
                self._command("add_region", region)
        if self._on_regions_changed:
            self._on_regions_changed(regions)

    def _command(self, name: str, *args) -> bool:
        """Issue one transport command; rejected commands are logged no-ops."""
        if self._transport is None or not self.is_loaded:
            logger.debug("Blocked transport command '%s' before track is ready", name)
            return False
        try:
            getattr(self._transport, name)(*args)
            return True
        except TransportError as e:
            logger.warning("Transport rejected '%s': %s", name, e)
            return False

    def _is_current(self, generation: Optional[int]) -> bool:
        return generation is None or generation == self._generation

    # --- Track lifecycle ---

    def track_selected(self, source: str) -> int:
        """
        Replace the current track with `source`.

        Returns:
            The generation tag of the new track load
        """
        self._release_transport()
        self._generation += 1
        self._source = source
        self._pending = None
        self._set_state(TransportState.IDLE)
        self._sync.reset(self._generation)
        self._set_metadata(TrackMetadata())
        self._set_position(0.0)
        self._set_status(True, "Initializing audio stream...")
        logger.info("Track selected (generation %d): %s", self._generation, source)

        transport = self._transport_factory()
        transport.set_listener(_TrackListener(self, self._generation))
        self._transport = transport
        try:
            transport.load(source)
        except TransportError as e:
            logger.error("Transport could not load %s: %s", source, e)
            self._set_status(False, "Failed to load audio")
        return self._generation

    def track_ready(self, duration: float, generation: Optional[int] = None) -> bool:
        """Decoded duration is known: Idle -> Loaded."""
        if not self._is_current(generation):
            logger.debug("Discarding ready event from generation %s", generation)
            return False
        if self._state is not TransportState.IDLE or self._transport is None:
            return False
        if duration is None or duration <= 0:
            return False

        self._set_state(TransportState.LOADED)
        self._set_status(False)
        logger.info("Track ready: %.2fs", duration)
        self._command("zoom", self._zoom)
        self._sync.set_duration(float(duration), self._generation)
        return True

    def track_failed(self, message: str, generation: Optional[int] = None) -> bool:
        """The transport could not decode the track; it stays Idle."""
        if not self._is_current(generation) or self._state is not TransportState.IDLE:
            return False
        logger.error("Track failed to load: %s", message)
        self._set_status(False, "Failed to load audio")
        return True

    def close(self) -> None:
        """Release the transport and return to Idle."""
        self._release_transport()
        self._generation += 1
        self._pending = None
        self._source = None
        self._sync.reset(self._generation)
        self._set_state(TransportState.IDLE)
        self._set_metadata(TrackMetadata())
        self._set_position(0.0)
        self._set_status(False)

    def _release_transport(self) -> None:
        transport, self._transport = self._transport, None
        if transport is None:
            return
        transport.set_listener(None)
        try:
            transport.close()
        except TransportError as e:
            logger.warning("Error closing transport: %s", e)

    # --- Transport events ---

    def toggle_play(self) -> bool:
        """Loaded/Paused -> Playing, Playing -> Paused. No-op while Idle."""
        if self._state is TransportState.IDLE:
            logger.debug("toggle-play ignored: no track ready")
            return False
        if not self._command("play_pause"):
            return False
        if self._state is TransportState.PLAYING:
            self._set_state(TransportState.PAUSED)
        else:
            self._set_state(TransportState.PLAYING)
        return True

    def trigger_region(self, slot_index: int) -> bool:
        """Play the region bound to `slot_index`. Inert slots are no-ops."""
        if self._state is TransportState.IDLE:
            return False
        region = resolve(slot_index, self._sync.regions)
        if region is None:
            return False
        return self._play_region(region)

    def region_clicked(self, region: Region) -> bool:
        """Play a region picked in the waveform; stale regions are discarded."""
        if self._state is TransportState.IDLE:
            return False
        if region not in self._sync.regions:
            logger.debug("Discarding stale region reference %s", region)
            return False
        return self._play_region(region)

    def _play_region(self, region: Region) -> bool:
        if not self._command("play_region", region):
            return False
        self._set_state(TransportState.PLAYING)
        return True

    def finished(self, generation: Optional[int] = None) -> bool:
        """Playback reached its end: Playing -> Loaded."""
        if not self._is_current(generation) or self._state is not TransportState.PLAYING:
            return False
        self._set_state(TransportState.LOADED)
        return True

    def transport_played(self, generation: Optional[int] = None) -> bool:
        if not self._is_current(generation) or self._state not in (TransportState.LOADED, TransportState.PAUSED):
            return False
        self._set_state(TransportState.PLAYING)
        return True

    def transport_paused(self, generation: Optional[int] = None) -> bool:
        if not self._is_current(generation) or self._state is not TransportState.PLAYING:
            return False
        self._set_state(TransportState.PAUSED)
        return True

    def timeupdate(self, seconds: float, generation: Optional[int] = None) -> bool:
        if not self._is_current(generation) or self._state is TransportState.IDLE:
            return False
        self._set_position(seconds)
        return True

    def zoom(self, pixels_per_second: float) -> bool:
        level = max(WAVEFORM_CONFIG.min_zoom, min(float(pixels_per_second), WAVEFORM_CONFIG.max_zoom))
        if self._state is TransportState.IDLE:
            return False
        if not self._command("zoom", level):
            return False
        self._zoom = level
        return True

    # --- Slice set ---

    def set_slices(self, raw: RawTimestamps) -> SliceSet:
        """Apply a manual edit; returns the normalized slice set."""
        slices = normalize(raw)
        self._sync.set_slices(slices, self._generation)
        return slices

    def clear_slices(self) -> None:
        """Reset the slice set; transport state is unchanged."""
        self._sync.set_slices([], self._generation)

    # --- Analysis ---

    def request_analysis(self) -> Optional[AnalysisRequest]:
        """
        Tag an analysis request with the current track.
        Returns None when no track is ready or a request is outstanding.
        """
        if self._state is TransportState.IDLE or self._source is None:
            return None
        if self._pending is not None:
            return None
        request = AnalysisRequest(
            generation=self._generation,
            source=self._source,
            mime_type=guess_mime_type(self._source),
        )
        self._pending = request
        self._set_status(True, "Extracting audio signature...")
        return request

    def analysis_progress(self, request: AnalysisRequest, message: str) -> bool:
        if request != self._pending:
            return False
        self._set_status(True, message)
        return True

    def apply_analysis(self, request: AnalysisRequest, result: AnalysisResult) -> bool:
        """
        Apply an analysis result if it was requested for the current track.

        A degraded result is normalized like any other, but it only replaces
        the slice set when no slices exist yet.
        """
        if request.generation != self._generation:
            logger.debug(
                "Discarding stale analysis for generation %d (current %d)",
                request.generation, self._generation
            )
            return False
        if request == self._pending:
            self._pending = None

        slices = normalize(result.slices)
        if result.degraded:
            if not self._sync.slices:
                self._sync.set_slices(slices, self._generation)
            self._set_status(False, "Analysis failed")
            logger.warning("Analysis failed for %s", request.source)
            if self._on_analysis_failed:
                self._on_analysis_failed(
                    "Failed to analyze audio. Please try a shorter clip or different file."
                )
            return True

        self._sync.set_slices(slices, self._generation)
        self._set_metadata(result.metadata)
        self._set_status(False, "Analysis complete")
        logger.info("Analysis applied: %d slice(s)", len(slices))
        return True
