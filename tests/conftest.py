"""
Pytest configuration and fixtures for BeatSlicer tests.
"""
import sys
import types

import numpy as np
import pytest

from beatslicer.core.coordinator import PlaybackCoordinator
from beatslicer.core.types import AnalysisResult, TransportNotReadyError


class FakeTransport:
    """Records commands; events are fired by the test through the listener."""

    def __init__(self):
        self.listener = None
        self.commands = []
        self.regions = []
        self.loaded = None
        self.ready = False
        self.closed = False

    def set_listener(self, listener):
        self.listener = listener

    def _record(self, name, *args):
        if not self.ready and name != "load":
            raise TransportNotReadyError(name)
        self.commands.append((name, *args))

    def load(self, source):
        self.loaded = source
        self.commands.append(("load", source))

    def play_pause(self):
        self._record("play_pause")

    def zoom(self, pixels_per_second):
        self._record("zoom", pixels_per_second)

    def add_region(self, region):
        self._record("add_region", region)
        self.regions.append(region)

    def clear_regions(self):
        self._record("clear_regions")
        self.regions.clear()

    def play_region(self, region):
        self._record("play_region", region)

    def close(self):
        self.closed = True

    # Test helpers
    def fire_ready(self, duration):
        self.ready = True
        self.listener.on_ready(duration)

    def command_names(self):
        return [c[0] for c in self.commands]


class FakeAnalysisClient:
    def __init__(self, result=None):
        self.result = result or AnalysisResult(slices=[0.0, 1.0])
        self.calls = []

    def analyze(self, audio_base64, mime_type):
        self.calls.append((audio_base64, mime_type))
        return self.result


class Recorder:
    """Collects coordinator callbacks."""

    def __init__(self):
        self.states = []
        self.regions = []
        self.statuses = []
        self.metadata = []
        self.positions = []
        self.failures = []


@pytest.fixture
def transports():
    """Every transport the coordinator created, oldest first."""
    return []


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def coordinator(transports, recorder) -> PlaybackCoordinator:
    def factory():
        transport = FakeTransport()
        transports.append(transport)
        return transport

    return PlaybackCoordinator(
        transport_factory=factory,
        on_state_changed=recorder.states.append,
        on_regions_changed=recorder.regions.append,
        on_status_changed=recorder.statuses.append,
        on_metadata_changed=recorder.metadata.append,
        on_position_changed=recorder.positions.append,
        on_analysis_failed=recorder.failures.append,
    )


@pytest.fixture
def loaded_coordinator(coordinator, transports) -> PlaybackCoordinator:
    """Coordinator with a 12 second track ready."""
    coordinator.track_selected("loop.wav")
    transports[-1].fire_ready(12.0)
    return coordinator


@pytest.fixture
def fake_client() -> FakeAnalysisClient:
    return FakeAnalysisClient()


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "break.wav"
    path.write_bytes(b"RIFF\x00\x00\x00\x00WAVEfmt ")
    return path


class FakeOutputStream:
    """Stands in for sd.OutputStream; the test drives the audio callback."""

    def __init__(self, module, samplerate, channels, blocksize, callback, finished_callback):
        self.module = module
        self.samplerate = samplerate
        self.channels = channels
        self.callback = callback
        self.finished_callback = finished_callback
        self.active = False
        self.closed = False
        module.streams.append(self)

    def start(self):
        if self.module.fail_start:
            raise RuntimeError("no output device")
        self.active = True

    def stop(self):
        if self.active:
            self.active = False
            self.finished_callback()

    def close(self):
        self.closed = True

    def pump(self, frames):
        """Run one audio block; returns the rendered buffer."""
        outdata = np.zeros((frames, self.channels), dtype=np.float32)
        try:
            self.callback(outdata, frames, None, 0)
        except self.module.CallbackStop:
            self.active = False
            self.finished_callback()
        return outdata


@pytest.fixture
def fake_sd(monkeypatch):
    """Headless sounddevice; transport modules imported afterwards bind to it."""
    module = types.ModuleType("sounddevice")
    module.CallbackStop = type("CallbackStop", (Exception,), {})
    module.CallbackFlags = int
    module.streams = []
    module.fail_start = False
    module.OutputStream = lambda **kwargs: FakeOutputStream(module, **kwargs)
    monkeypatch.setitem(sys.modules, "sounddevice", module)
    monkeypatch.delitem(sys.modules, "beatslicer.core.transport", raising=False)
    return module
