"""
tonearm - playback session core for a single-file desktop audio player.

This package loads one local audio file at a time, caches its metadata
(container, bitrate, duration, title, artist, artwork), plays and pauses it
through a replaceable output sink, and exposes a polled snapshot of the
playback position for a presentation layer.
"""

from tonearm.api.player import AudioPlayer
from tonearm.core.models import (
    ContainerKind,
    ErrorKind,
    MetadataSnapshot,
    PlaybackState,
    PlayerConfig,
    SessionSnapshot,
    SessionState,
)
from tonearm.core.exceptions import (
    PlaybackError,
    DeviceUnavailableError,
    FileUnreadableError,
    MetadataUnreadableError,
    DecodeUnsupportedError,
    PlayerNotStartedError,
)
from tonearm.presentation.adapter import PlayerView, PresentationAdapter, format_duration
from tonearm.services import PlaybackResource, PlaybackSession

__version__ = "0.1.0"

__all__ = [
    "AudioPlayer",
    "PlaybackSession",
    "PlaybackResource",
    "PresentationAdapter",
    "PlayerView",
    "format_duration",
    "PlayerConfig",
    "ContainerKind",
    "ErrorKind",
    "MetadataSnapshot",
    "PlaybackState",
    "SessionSnapshot",
    "SessionState",
    "PlaybackError",
    "DeviceUnavailableError",
    "FileUnreadableError",
    "MetadataUnreadableError",
    "DecodeUnsupportedError",
    "PlayerNotStartedError",
]
