"""Data models and configuration classes."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union


class ContainerKind(Enum):
    """Audio container type; the value doubles as the display label."""

    AAC = "aac"
    AIFF = "aiff"
    APE = "ape"
    FLAC = "flac"
    MP3 = "mp3"
    MP4 = "mp4"
    MPC = "mpc"
    OPUS = "opus"
    OGG = "ogg"
    SPX = "spx"
    WAV = "wav"
    WV = "wv"
    UNKNOWN = "unknown"


class PlaybackState(Enum):
    """State of a single sink."""

    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"
    FINISHED = "finished"


class SessionState(Enum):
    """State of the playback session as seen by the presentation layer."""

    EMPTY = "empty"
    LOADED_PAUSED = "loaded-paused"
    LOADED_PLAYING = "loaded-playing"


class ErrorKind(Enum):
    """Category of a failed load."""

    DEVICE_UNAVAILABLE = "device-unavailable"
    FILE_UNREADABLE = "file-unreadable"
    METADATA_UNREADABLE = "metadata-unreadable"
    DECODE_UNSUPPORTED = "decode-unsupported"


@dataclass
class PlayerConfig:
    """Configuration for AudioPlayer."""

    allowed_extensions: tuple[str, ...] = ("m4a", "mp3", "flac")
    """Extensions offered by the file picker (case-insensitive, no dot)."""

    redraw_interval_seconds: float = 1.0
    """Upper bound between two presentation polls. Default: 1 second."""

    device: Optional[Union[int, str]] = None
    """Output device index or name. Default: system default output."""

    latency: str = "high"
    """Output latency hint passed to the device ("low" or "high")."""


@dataclass
class AudioFormat:
    """Audio format specification."""

    sample_rate: int
    """Sample rate in Hz."""

    channels: int
    """Number of channels (1=mono, 2=stereo)."""

    bits_per_sample: int
    """Bits per sample (16 for every decoder in this package)."""

    block_align: int
    """Block alignment in bytes."""

    avg_bytes_per_sec: int
    """Average bytes per second."""

    @property
    def frame_size(self) -> int:
        """Frame size in bytes."""
        return self.block_align

    @property
    def bytes_per_sample(self) -> int:
        """Bytes per sample."""
        return self.bits_per_sample // 8


@dataclass
class DecodedSource:
    """Decoded PCM ready to be attached to a sink."""

    format: AudioFormat
    """Audio format specification."""

    data: bytes
    """Raw interleaved PCM audio data."""

    total_duration: Optional[float] = None
    """Duration in seconds as reported by the container, if it has one."""

    @property
    def num_frames(self) -> int:
        """Number of audio frames."""
        return len(self.data) // self.format.frame_size

    @property
    def playable_seconds(self) -> float:
        """Length of the PCM payload in seconds, known even without a reported duration."""
        if self.format.sample_rate <= 0:
            return 0.0
        return self.num_frames / self.format.sample_rate


@dataclass(frozen=True)
class StreamProperties:
    """Result of the lightweight container probe."""

    container_kind: ContainerKind = ContainerKind.UNKNOWN
    bitrate_kbps: Optional[int] = None
    duration: Optional[float] = None


@dataclass(frozen=True)
class TagSet:
    """Title, artist and artwork from the file's primary tag."""

    title: Optional[str] = None
    artist: Optional[str] = None
    artwork: Optional[bytes] = None

    @property
    def is_empty(self) -> bool:
        return self.title is None and self.artist is None and self.artwork is None


@dataclass(frozen=True)
class MetadataSnapshot:
    """
    Everything known about one loaded file.

    Built once per successful load and replaced, never mutated, by the next
    load. Each field is independently optional.
    """

    container_kind: ContainerKind = ContainerKind.UNKNOWN
    bitrate_kbps: Optional[int] = None
    total_duration: Optional[float] = None
    title: Optional[str] = None
    artist: Optional[str] = None
    artwork: Optional[bytes] = None

    @classmethod
    def from_probes(
        cls,
        stream: StreamProperties,
        tags: TagSet,
        decoded_duration: Optional[float] = None,
    ) -> "MetadataSnapshot":
        """Combine both probes; the decoder's duration wins over the container's."""
        duration = decoded_duration if decoded_duration is not None else stream.duration
        return cls(
            container_kind=stream.container_kind,
            bitrate_kbps=stream.bitrate_kbps,
            total_duration=duration,
            title=tags.title,
            artist=tags.artist,
            artwork=tags.artwork,
        )

    @property
    def has_tags(self) -> bool:
        return self.title is not None or self.artist is not None or self.artwork is not None


@dataclass(frozen=True)
class SessionSnapshot:
    """What the presentation layer pulls on every redraw tick."""

    is_playing: bool
    elapsed: float
    total_duration: Optional[float]
    metadata: Optional[MetadataSnapshot]
    last_error: Optional[ErrorKind]
    last_error_message: Optional[str] = None
    current_path: Optional[Path] = None
    progress: float = 0.0
