"""Exception classes for tonearm."""

from pathlib import Path
from typing import Optional, Union

from tonearm.core.models import ErrorKind


class PlaybackError(Exception):
    """Base exception for every failure reported by a load."""

    kind: ErrorKind

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None):
        self.message = message
        self.path = Path(path) if path is not None else None
        super().__init__(message)


class DeviceUnavailableError(PlaybackError):
    """Raised when no audio output device or sink can be opened."""

    kind = ErrorKind.DEVICE_UNAVAILABLE


class FileUnreadableError(PlaybackError):
    """Raised when the chosen path cannot be opened for reading."""

    kind = ErrorKind.FILE_UNREADABLE


class MetadataUnreadableError(PlaybackError):
    """Raised when the container probe cannot make sense of the file."""

    kind = ErrorKind.METADATA_UNREADABLE


class DecodeUnsupportedError(PlaybackError):
    """Raised when the audio content cannot be decoded."""

    kind = ErrorKind.DECODE_UNSUPPORTED


class PlayerNotStartedError(RuntimeError):
    """Raised when the player is used before start() or after shutdown()."""
    pass
