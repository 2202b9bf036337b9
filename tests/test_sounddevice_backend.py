"""Tests for the sounddevice sink with the PortAudio stream faked out."""

import numpy as np
import pytest

try:
    import sounddevice
except OSError:
    pytest.skip("PortAudio library not available", allow_module_level=True)

from tonearm.backends import sounddevice_backend
from tonearm.backends.sounddevice_backend import SounddeviceBackend, SounddeviceSink
from tonearm.core.exceptions import DeviceUnavailableError
from tonearm.core.models import AudioFormat, DecodedSource, PlaybackState


class FakeOutputStream:
    """Stands in for sd.OutputStream; the test drives the callback by hand."""

    instances = []

    def __init__(self, samplerate, channels, dtype, device, latency, callback):
        self.samplerate = samplerate
        self.channels = channels
        self.callback = callback
        self.started = False
        self.closed = False
        FakeOutputStream.instances.append(self)

    def start(self):
        self.started = True

    def abort(self):
        self.started = False

    def close(self):
        self.closed = True


@pytest.fixture
def fake_stream(monkeypatch):
    FakeOutputStream.instances = []
    monkeypatch.setattr(sounddevice_backend.sd, "OutputStream", FakeOutputStream)
    return FakeOutputStream


def create_stereo_source(num_frames: int, sample_rate: int = 100) -> DecodedSource:
    """Stereo ramp so copied samples can be checked."""
    samples = np.arange(num_frames * 2, dtype=np.int16)
    format = AudioFormat(
        sample_rate=sample_rate,
        channels=2,
        bits_per_sample=16,
        block_align=4,
        avg_bytes_per_sec=sample_rate * 4,
    )
    return DecodedSource(format=format, data=samples.tobytes(), total_duration=None)


def pull(sink: SounddeviceSink, frames: int) -> np.ndarray:
    """Run one device callback and return what it wrote."""
    outdata = np.full((frames, 2), 7, dtype=np.int16)
    sink._callback(outdata, frames, None, None)
    return outdata


def test_append_opens_stream(fake_stream):
    """Test that appending opens a stream matching the source."""
    sink = SounddeviceSink("sd_0", None, "high")
    sink.append(create_stereo_source(50, sample_rate=22050))

    stream = fake_stream.instances[-1]
    assert stream.started
    assert stream.samplerate == 22050
    assert stream.channels == 2
    assert sink.get_state() == PlaybackState.PAUSED


def test_paused_callback_writes_silence(fake_stream):
    """Test that a paused sink outputs zeros and does not advance."""
    sink = SounddeviceSink("sd_0", None, "high")
    sink.append(create_stereo_source(50))

    out = pull(sink, 10)

    assert not out.any()
    assert sink.get_pos() == 0.0


def test_playing_callback_copies_frames(fake_stream):
    """Test that playing copies PCM and advances the position."""
    sink = SounddeviceSink("sd_0", None, "high")
    sink.append(create_stereo_source(50))
    sink.play()

    out = pull(sink, 10)

    assert out[0].tolist() == [0, 1]
    assert out[9].tolist() == [18, 19]
    assert sink.get_pos() == pytest.approx(0.1)


def test_callback_finishes_at_end(fake_stream):
    """Test that running out of frames pads with silence and finishes."""
    sink = SounddeviceSink("sd_0", None, "high")
    sink.append(create_stereo_source(15))
    sink.play()

    pull(sink, 10)
    out = pull(sink, 10)

    assert out[4].tolist() == [28, 29]
    assert not out[5:].any()
    assert sink.get_state() == PlaybackState.FINISHED
    assert sink.get_pos() == pytest.approx(0.15)


def test_stop_closes_stream(fake_stream):
    """Test that stop closes the stream and blocks reuse."""
    sink = SounddeviceSink("sd_0", None, "high")
    sink.append(create_stereo_source(15))
    stream = fake_stream.instances[-1]

    sink.stop()

    assert stream.closed
    assert sink.get_state() == PlaybackState.STOPPED
    assert not pull(sink, 5).any()
    with pytest.raises(RuntimeError):
        sink.append(create_stereo_source(15))


def test_stream_open_failure(monkeypatch):
    """Test that PortAudio refusing the stream is a device error."""
    def refuse(**kwargs):
        raise sounddevice.PortAudioError("Device unavailable")

    monkeypatch.setattr(sounddevice_backend.sd, "OutputStream", refuse)
    sink = SounddeviceSink("sd_0", None, "high")

    with pytest.raises(DeviceUnavailableError):
        sink.append(create_stereo_source(15))


def test_backend_without_output_device(monkeypatch):
    """Test that a missing output device fails initialization."""
    def no_device(device=None, kind=None):
        raise sounddevice.PortAudioError("No output device")

    monkeypatch.setattr(sounddevice_backend.sd, "query_devices", no_device)
    backend = SounddeviceBackend()

    with pytest.raises(DeviceUnavailableError):
        backend.initialize()
    with pytest.raises(DeviceUnavailableError):
        backend.create_sink()


def test_backend_shutdown_stops_live_sinks(monkeypatch, fake_stream):
    """Test that shutdown stops sinks the session left running."""
    monkeypatch.setattr(
        sounddevice_backend.sd,
        "query_devices",
        lambda device=None, kind=None: {"name": "fake", "default_samplerate": 48000.0},
    )
    backend = SounddeviceBackend()
    backend.initialize()
    sink = backend.create_sink()
    sink.append(create_stereo_source(15))

    backend.shutdown()

    assert sink.get_state() == PlaybackState.STOPPED
    with pytest.raises(DeviceUnavailableError):
        backend.create_sink()
