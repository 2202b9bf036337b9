"""Protocol interfaces for the collaborators of a playback session."""

from pathlib import Path
from typing import Protocol, Union, runtime_checkable

from tonearm.core.models import DecodedSource, PlaybackState, StreamProperties, TagSet

PathLike = Union[str, Path]


class ISink(Protocol):
    """Interface for a playback sink bound to an output device."""

    def append(self, source: DecodedSource) -> None:
        """Queue decoded audio. The sink stays in its current state."""
        ...

    def play(self) -> None:
        """Resume playback from a paused state."""
        ...

    def pause(self) -> None:
        """Pause playback; the position is kept."""
        ...

    def stop(self) -> None:
        """Stop playback and discard every buffered sample. Terminal."""
        ...

    def is_paused(self) -> bool:
        """True while the sink is paused."""
        ...

    def get_pos(self) -> float:
        """Seconds of audio delivered so far."""
        ...

    def get_state(self) -> PlaybackState:
        """Current sink state."""
        ...


class IAudioBackend(Protocol):
    """Interface for an audio output device."""

    def initialize(self) -> None:
        """Open the output device."""
        ...

    def create_sink(self) -> ISink:
        """Create a fresh, paused, empty sink on the open device."""
        ...

    def shutdown(self) -> None:
        """Release the device and any sink still attached to it."""
        ...


@runtime_checkable
class IAudioFormat(Protocol):
    """Interface for audio decoders."""

    @property
    def extensions(self) -> tuple[str, ...]:
        """
        File extensions handled by this decoder (e.g., ('.wav', '.wave')).

        Returns:
            Tuple of supported file extensions (lowercase, with dot).
        """
        ...

    def can_load(self, path: PathLike) -> bool:
        """
        Check if this decoder can load the given file.

        Args:
            path: Path to audio file.

        Returns:
            True if this decoder should be tried, False otherwise.
        """
        ...

    def load(self, path: PathLike) -> DecodedSource:
        """
        Decode an audio file.

        Args:
            path: Path to audio file.

        Returns:
            DecodedSource with format and PCM data.

        Raises:
            FileUnreadableError: If the file cannot be opened.
            DecodeUnsupportedError: If the content cannot be decoded.
        """
        ...


class IDecoder(Protocol):
    """Anything that turns a path into a DecodedSource."""

    def load(self, path: PathLike) -> DecodedSource:
        ...


class IMetadataProber(Protocol):
    """Interface for metadata probing."""

    def probe_stream(self, path: PathLike) -> StreamProperties:
        """
        Read container type, bitrate and duration.

        Raises:
            FileUnreadableError: If the file cannot be opened.
            MetadataUnreadableError: If the container cannot be parsed.
        """
        ...

    def probe_tags(self, path: PathLike) -> TagSet:
        """Read title, artist and artwork. Never raises; missing data is None."""
        ...
