"""
Tests for SoundDeviceTransport, run headless against a fake sounddevice module.
"""
import importlib
import queue
import threading

import numpy as np
import pytest
import soundfile as sf

from beatslicer.core.config import TransportState
from beatslicer.core.coordinator import PlaybackCoordinator
from beatslicer.core.types import Region, TransportError, TransportNotReadyError

SR = 1000  # 1 kHz keeps frame arithmetic readable


@pytest.fixture
def transport_module(fake_sd):
    return importlib.import_module("beatslicer.core.transport")


@pytest.fixture
def track_path(tmp_path):
    """One second stereo ramp."""
    ramp = np.linspace(0.0, 0.999, SR, dtype=np.float32)
    path = tmp_path / "ramp.wav"
    sf.write(str(path), np.stack([ramp, -ramp], axis=1), SR, subtype="FLOAT")
    return path


class EventLog:
    """TransportListener that records events and signals readiness."""

    def __init__(self):
        self.events = []
        self.ready = threading.Event()

    def names(self):
        return [e[0] for e in self.events]

    def on_ready(self, duration):
        self.events.append(("ready", duration))
        self.ready.set()

    def on_play(self):
        self.events.append(("play",))

    def on_pause(self):
        self.events.append(("pause",))

    def on_finish(self):
        self.events.append(("finish",))

    def on_timeupdate(self, seconds):
        self.events.append(("timeupdate", seconds))

    def on_error(self, message):
        self.events.append(("error", message))
        self.ready.set()


@pytest.fixture
def events():
    return EventLog()


@pytest.fixture
def transport(transport_module, track_path, events):
    transport = transport_module.SoundDeviceTransport()
    transport.set_listener(events)
    transport.load(str(track_path))
    assert events.ready.wait(timeout=30)
    assert events.names() == ["ready"]
    yield transport
    transport.close()


class TestLoading:
    def test_ready_reports_duration(self, transport, events):
        assert events.events[0] == ("ready", pytest.approx(1.0))
        assert transport.samples.shape == (SR, 2)
        assert transport.samplerate == SR

    def test_commands_rejected_before_ready(self, transport_module):
        transport = transport_module.SoundDeviceTransport()
        with pytest.raises(TransportNotReadyError):
            transport.play_pause()
        with pytest.raises(TransportNotReadyError):
            transport.play_region(Region(0, 0.0, 1.0))

    def test_decode_failure_reported(self, transport_module, tmp_path, events):
        path = tmp_path / "broken.wav"
        path.write_bytes(b"not audio at all")
        transport = transport_module.SoundDeviceTransport()
        transport.set_listener(events)
        transport.load(str(path))
        assert events.ready.wait(timeout=30)
        assert events.names() == ["error"]
        assert not transport.is_ready


class TestRegionPlayback:
    def test_region_stops_at_its_end(self, transport, events, fake_sd):
        transport.play_region(Region(1, 0.25, 0.5))
        stream = fake_sd.streams[-1]

        out = stream.pump(1024)

        np.testing.assert_array_equal(out[:250], transport.samples[250:500])
        assert not out[250:].any()
        assert transport.current_time == pytest.approx(0.5)
        assert not transport.is_playing
        assert events.names()[-1] == "finish"

    def test_region_replaces_current_playback(self, transport, fake_sd):
        transport.play_pause()
        first = fake_sd.streams[-1]
        transport.play_region(Region(0, 0.5, 0.75))
        assert first.closed
        assert transport.current_time == pytest.approx(0.5)


class TestFinishAndPause:
    def test_natural_end_emits_finish(self, transport, events, fake_sd):
        transport.play_pause()
        fake_sd.streams[-1].pump(2048)
        assert events.names()[-1] == "finish"
        assert ("play",) in events.events

    def test_pause_does_not_emit_finish(self, transport, events, fake_sd):
        transport.play_pause()
        fake_sd.streams[-1].pump(100)
        transport.play_pause()

        assert "finish" not in events.names()
        assert events.names()[-1] == "pause"
        assert transport.current_time == pytest.approx(0.1)

    def test_timeupdate_throttled(self, transport, events, fake_sd):
        transport.play_pause()
        stream = fake_sd.streams[-1]
        for _ in range(10):
            stream.pump(10)
        updates = [e[1] for e in events.events if e[0] == "timeupdate"]
        assert updates == [pytest.approx(0.05), pytest.approx(0.1)]


class TestResume:
    def test_play_pause_after_track_end_restarts(self, transport, fake_sd):
        transport.play_pause()
        fake_sd.streams[-1].pump(2048)
        transport.play_pause()
        assert transport.current_time == 0.0
        assert transport.is_playing

    def test_play_pause_after_region_plays_rest_of_track(self, transport, fake_sd):
        transport.play_region(Region(0, 0.0, 0.25))
        fake_sd.streams[-1].pump(1024)
        transport.play_pause()

        out = fake_sd.streams[-1].pump(1024)
        np.testing.assert_array_equal(out[:750], transport.samples[250:])
        assert transport.current_time == pytest.approx(1.0)

    def test_paused_region_resumes_whole_track(self, transport, fake_sd):
        transport.play_region(Region(0, 0.0, 0.25))
        fake_sd.streams[-1].pump(100)
        transport.play_pause()
        transport.play_pause()

        fake_sd.streams[-1].pump(2048)
        assert transport.current_time == pytest.approx(1.0)


class TestClose:
    def test_no_events_after_close(self, transport, events, fake_sd):
        transport.play_pause()
        stream = fake_sd.streams[-1]
        before = list(events.events)

        transport.close()
        stream.pump(2048)

        assert events.events == before
        assert stream.closed
        with pytest.raises(TransportNotReadyError):
            transport.play_pause()


class TestStreamStartFailure:
    def test_start_failure_raises_transport_error(self, transport, events, fake_sd):
        fake_sd.fail_start = True
        with pytest.raises(TransportError):
            transport.play_pause()
        with pytest.raises(TransportError):
            transport.play_region(Region(0, 0.0, 0.5))
        assert not transport.is_playing
        assert "play" not in events.names()

    def test_coordinator_stays_loaded(self, transport_module, track_path, fake_sd):
        # Events are queued like the GUI dispatcher does and run on this thread
        posted = queue.Queue()
        coordinator = PlaybackCoordinator(
            transport_factory=lambda: transport_module.SoundDeviceTransport(dispatch=posted.put),
        )
        coordinator.track_selected(str(track_path))
        posted.get(timeout=30)()
        assert coordinator.state is TransportState.LOADED
        coordinator.set_slices([0.0, 0.5])

        fake_sd.fail_start = True
        assert not coordinator.toggle_play()
        assert not coordinator.trigger_region(1)
        assert coordinator.state is TransportState.LOADED
        coordinator.close()
