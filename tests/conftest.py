"""Shared fixtures: simulated clock, null device, fake file library, WAV writer."""

import io
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from tonearm.backends.null_backend import NullBackend
from tonearm.core.exceptions import FileUnreadableError, PlaybackError
from tonearm.core.models import (
    AudioFormat,
    ContainerKind,
    DecodedSource,
    StreamProperties,
    TagSet,
)
from tonearm.services.resource import PlaybackResource
from tonearm.services.session import PlaybackSession

# Low rate keeps three minutes of silence small
TEST_SAMPLE_RATE = 1000


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def create_test_source(seconds: float, total_duration: Optional[float] = None) -> DecodedSource:
    """Mono 16-bit silence of the given length."""
    format = AudioFormat(
        sample_rate=TEST_SAMPLE_RATE,
        channels=1,
        bits_per_sample=16,
        block_align=2,
        avg_bytes_per_sec=TEST_SAMPLE_RATE * 2,
    )
    return DecodedSource(
        format=format,
        data=b"\x00\x00" * int(seconds * TEST_SAMPLE_RATE),
        total_duration=total_duration,
    )


def create_test_wav(
    sample_rate: int = 8000,
    channels: int = 1,
    bits_per_sample: int = 16,
    num_samples: int = 8000,
    audio_format: int = 1,
) -> bytes:
    """Create a WAV file in memory."""
    block_align = (channels * bits_per_sample) // 8
    byte_rate = sample_rate * block_align
    data_size = num_samples * block_align
    file_size = 36 + data_size

    wav = io.BytesIO()

    wav.write(b"RIFF")
    wav.write(struct.pack("<I", file_size))
    wav.write(b"WAVE")

    wav.write(b"fmt ")
    wav.write(struct.pack("<I", 16))
    wav.write(struct.pack("<H", audio_format))
    wav.write(struct.pack("<H", channels))
    wav.write(struct.pack("<I", sample_rate))
    wav.write(struct.pack("<I", byte_rate))
    wav.write(struct.pack("<H", block_align))
    wav.write(struct.pack("<H", bits_per_sample))

    wav.write(b"data")
    wav.write(struct.pack("<I", data_size))
    wav.write(b"\x00" * data_size)

    return wav.getvalue()


@dataclass
class FakeTrack:
    seconds: float = 180.0
    container_kind: ContainerKind = ContainerKind.FLAC
    bitrate_kbps: Optional[int] = 900
    report_duration: bool = True
    title: Optional[str] = None
    artist: Optional[str] = None
    artwork: Optional[bytes] = None
    probe_error: Optional[PlaybackError] = None
    decode_error: Optional[PlaybackError] = None


class FakeLibrary:
    """Prober and decoder over an in-memory set of tracks, keyed by file name."""

    def __init__(self):
        self.tracks: Dict[str, FakeTrack] = {}
        self.calls: List[Tuple[str, str]] = []

    def add(self, name: str, **kwargs) -> Path:
        self.tracks[name] = FakeTrack(**kwargs)
        return Path("/music") / name

    def _track(self, path) -> FakeTrack:
        name = Path(path).name
        if name not in self.tracks:
            raise FileUnreadableError(f"Failed to open file: {name}", path)
        return self.tracks[name]

    def probe_stream(self, path) -> StreamProperties:
        self.calls.append(("stream", Path(path).name))
        track = self._track(path)
        if track.probe_error is not None:
            raise track.probe_error
        return StreamProperties(
            container_kind=track.container_kind,
            bitrate_kbps=track.bitrate_kbps,
            duration=track.seconds if track.report_duration else None,
        )

    def probe_tags(self, path) -> TagSet:
        self.calls.append(("tags", Path(path).name))
        track = self._track(path)
        return TagSet(title=track.title, artist=track.artist, artwork=track.artwork)

    def load(self, path) -> DecodedSource:
        self.calls.append(("decode", Path(path).name))
        track = self._track(path)
        if track.decode_error is not None:
            raise track.decode_error
        return create_test_source(
            track.seconds, track.seconds if track.report_duration else None
        )

    def count(self, kind: str, name: str) -> int:
        return self.calls.count((kind, name))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend(clock) -> NullBackend:
    return NullBackend(clock=clock)


@pytest.fixture
def library() -> FakeLibrary:
    return FakeLibrary()


@pytest.fixture
def session(backend, library) -> PlaybackSession:
    resource = PlaybackResource.acquire_device(backend)
    session = PlaybackSession(resource, decoder=library, prober=library)
    yield session
    session.close()


@pytest.fixture
def wav_file(tmp_path) -> Path:
    """One second of 8 kHz mono silence on disk."""
    path = tmp_path / "tone.wav"
    path.write_bytes(create_test_wav())
    return path
