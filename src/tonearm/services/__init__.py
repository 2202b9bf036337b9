"""Services layer: device ownership and the playback session."""

from tonearm.services.resource import PlaybackResource
from tonearm.services.session import PlaybackSession

__all__ = ["PlaybackResource", "PlaybackSession"]
