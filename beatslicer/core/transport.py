"""
Playback transport for BeatSlicer.
Decodes a track in the background and streams it (or one region of it)
through sounddevice with low-latency output.
"""
from __future__ import annotations
import logging
import threading
from typing import Callable, Optional

import numpy as np
import sounddevice as sd

from .config import AUDIO_CONFIG, WAVEFORM_CONFIG
from .types import AudioArray, Region, TransportError, TransportListener, TransportNotReadyError

logger = logging.getLogger("BeatSlicer")

Dispatch = Callable[[Callable[[], None]], None]


def _call_now(fn: Callable[[], None]) -> None:
    fn()


class SoundDeviceTransport:
    """
    One transport per loaded track.
    Events are delivered through `dispatch`, which the GUI uses to hop
    from the decoder/audio threads onto its own event loop.
    """
    __slots__ = (
        '_listener', '_dispatch', '_data', '_samplerate', '_stream',
        '_current_frame', '_stop_frame', '_regions', '_pixels_per_second',
        '_closed', '_pausing', '_last_notified', '_lock'
    )

    def __init__(self, dispatch: Optional[Dispatch] = None) -> None:
        self._listener: Optional[TransportListener] = None
        self._dispatch = dispatch or _call_now
        self._data: Optional[AudioArray] = None
        self._samplerate: int = 0
        self._stream: Optional[sd.OutputStream] = None
        self._current_frame: int = 0
        self._stop_frame: Optional[int] = None
        self._regions: list[Region] = []
        self._pixels_per_second: float = float(WAVEFORM_CONFIG.default_zoom)
        self._closed: bool = False
        self._pausing: bool = False
        self._last_notified: int = 0
        self._lock = threading.Lock()

    # --- State ---

    @property
    def is_ready(self) -> bool:
        return self._data is not None

    @property
    def is_playing(self) -> bool:
        return self._stream is not None

    @property
    def samples(self) -> Optional[AudioArray]:
        """Decoded samples, shape (samples, channels)."""
        return self._data

    @property
    def samplerate(self) -> int:
        return self._samplerate

    @property
    def duration(self) -> float:
        if self._data is None or self._samplerate <= 0:
            return 0.0
        return len(self._data) / self._samplerate

    @property
    def current_time(self) -> float:
        return self._current_frame / self._samplerate if self._samplerate > 0 else 0.0

    @property
    def regions(self) -> list[Region]:
        return list(self._regions)

    @property
    def pixels_per_second(self) -> float:
        return self._pixels_per_second

    def set_listener(self, listener: Optional[TransportListener]) -> None:
        self._listener = listener

    def _emit(self, event: str, *args) -> None:
        if self._closed:
            return

        def deliver() -> None:
            if self._closed or self._listener is None:
                return
            getattr(self._listener, event)(*args)

        self._dispatch(deliver)

    # --- Loading ---

    def load(self, source: str) -> None:
        """Decode `source` on a worker thread; `on_ready` fires when done."""
        if self._data is not None:
            raise RuntimeError("Transport already holds a track; create a new one per load")
        thread = threading.Thread(target=self._decode, args=(source,), name="beatslicer-decode", daemon=True)
        thread.start()

    def _decode(self, source: str) -> None:
        logger.info("Decoding: %s", source)
        try:
            import librosa

            data, samplerate = librosa.load(source, sr=None, mono=False)
            if data.ndim > 1:
                data = data.T
            data = np.ascontiguousarray(data, dtype=np.float32)
        except Exception as e:
            logger.error("Failed to decode %s: %s", source, e, exc_info=True)
            self._emit("on_error", str(e))
            return

        if self._closed:
            return
        self._data = data
        self._samplerate = int(samplerate)
        duration = self.duration
        logger.info("Decoded %.2fs at %d Hz", duration, self._samplerate)
        if duration > 0:
            self._emit("on_ready", duration)

    # --- Commands ---

    def _require_ready(self) -> AudioArray:
        if self._closed or self._data is None:
            raise TransportNotReadyError("Track is not decoded yet")
        return self._data

    def play_pause(self) -> None:
        self._require_ready()
        if self.is_playing:
            self.pause()
        else:
            if self._current_frame >= len(self._data) or self._stop_frame is not None:
                # Resume whole-track playback after a region or natural end
                if self._current_frame >= len(self._data):
                    self._current_frame = 0
                self._stop_frame = None
            self._start()

    def pause(self) -> None:
        self._require_ready()
        if self._stop_stream():
            logger.info("Playback paused at %.3fs", self.current_time)
            self._emit("on_pause")

    def play_region(self, region: Region) -> None:
        data = self._require_ready()
        self._stop_stream()
        total = len(data)
        self._current_frame = max(0, min(int(region.start * self._samplerate), total))
        self._stop_frame = max(self._current_frame, min(int(region.end * self._samplerate), total))
        self._start()

    def zoom(self, pixels_per_second: float) -> None:
        self._require_ready()
        self._pixels_per_second = float(pixels_per_second)

    def add_region(self, region: Region) -> None:
        self._require_ready()
        self._regions.append(region)

    def clear_regions(self) -> None:
        self._regions.clear()

    def close(self) -> None:
        """Release the output stream; no events are delivered afterwards."""
        self._closed = True
        self._listener = None
        self._stop_stream()
        self._data = None

    # --- Streaming ---

    def _start(self) -> None:
        data = self._data
        end_frame = self._stop_frame if self._stop_frame is not None else len(data)
        self._last_notified = self._current_frame
        interval = max(1, int(AUDIO_CONFIG.position_interval_s * self._samplerate))

        def playback_callback(outdata: np.ndarray, frames: int, time: object, status: sd.CallbackFlags) -> None:
            """Real-time audio callback."""
            start = self._current_frame
            stop = min(start + frames, end_frame)
            count = max(0, stop - start)
            outdata.fill(0)
            if count:
                segment = data[start:stop]
                if segment.ndim == 1:
                    outdata[:count, 0] = segment
                    outdata[:count, 1] = segment
                else:
                    outdata[:count, :segment.shape[1]] = segment[:, :outdata.shape[1]]
            self._current_frame = stop

            if stop - self._last_notified >= interval:
                self._last_notified = stop
                self._emit("on_timeupdate", stop / self._samplerate)

            if stop >= end_frame:
                raise sd.CallbackStop()

        def on_finished() -> None:
            """Called when the stream stops, naturally or via pause."""
            with self._lock:
                stream, self._stream = self._stream, None
                if self._pausing or stream is None:
                    return
            self._stop_frame = None
            logger.info("Playback finished at %.3fs", self.current_time)
            self._emit("on_timeupdate", self.current_time)
            self._emit("on_finish")

        try:
            stream = sd.OutputStream(
                samplerate=self._samplerate,
                channels=AUDIO_CONFIG.playback_channels,
                blocksize=AUDIO_CONFIG.playback_blocksize,
                callback=playback_callback,
                finished_callback=on_finished
            )
            with self._lock:
                self._stream = stream
            stream.start()
        except Exception as e:
            with self._lock:
                self._stream = None
            logger.error("Failed to start playback: %s", e, exc_info=True)
            raise TransportError(f"Could not start output stream: {e}") from e

        logger.info("Playback started at %.3fs", self.current_time)
        self._emit("on_play")

    def _stop_stream(self) -> bool:
        with self._lock:
            stream = self._stream
            if stream is None:
                return False
            self._pausing = True
        try:
            stream.stop()
            stream.close()
        except Exception as e:
            logger.warning("Error stopping stream: %s", e)
        finally:
            with self._lock:
                self._stream = None
                self._pausing = False
        return True
