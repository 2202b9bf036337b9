"""Null backend for testing and headless runs (no actual audio output)."""

import time
from typing import Callable, Dict, List, Optional
from tonearm.core.exceptions import DeviceUnavailableError
from tonearm.core.interfaces import IAudioBackend, ISink
from tonearm.core.models import DecodedSource, PlaybackState
from tonearm.utils.log import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]


class NullSink(ISink):
    """Sink that advances its position against a clock instead of a device."""

    def __init__(self, sink_id: str, clock: Clock):
        self.sink_id = sink_id
        self._clock = clock
        self._source: Optional[DecodedSource] = None
        self._state = PlaybackState.PAUSED
        self._resumed_at: float = 0.0
        self._total_played: float = 0.0

    @property
    def source(self) -> Optional[DecodedSource]:
        return self._source

    def append(self, source: DecodedSource) -> None:
        """Queue decoded audio."""
        if self._state == PlaybackState.STOPPED:
            raise RuntimeError(f"NullSink {self.sink_id} is stopped")
        self._source = source
        if self._state == PlaybackState.FINISHED:
            self._state = PlaybackState.PAUSED
        logger.debug(f"NullSink {self.sink_id}: appended {source.playable_seconds:.2f}s")

    def play(self) -> None:
        """Resume playback."""
        if self._state == PlaybackState.PAUSED:
            self._resumed_at = self._clock()
            self._state = PlaybackState.PLAYING
            logger.debug(f"NullSink {self.sink_id}: playing")

    def pause(self) -> None:
        """Pause playback."""
        self._refresh()
        if self._state == PlaybackState.PLAYING:
            self._total_played += self._clock() - self._resumed_at
            self._state = PlaybackState.PAUSED
            logger.debug(f"NullSink {self.sink_id}: paused")

    def stop(self) -> None:
        """Stop playback and drop the queued audio."""
        if self._state == PlaybackState.PLAYING:
            self._total_played += self._clock() - self._resumed_at
        self._state = PlaybackState.STOPPED
        self._source = None
        logger.debug(f"NullSink {self.sink_id}: stopped")

    def is_paused(self) -> bool:
        return self._state == PlaybackState.PAUSED

    def get_pos(self) -> float:
        """Seconds played, capped at the length of the queued audio."""
        played = self._total_played
        if self._state == PlaybackState.PLAYING:
            played += self._clock() - self._resumed_at
        if self._source is not None:
            played = min(played, self._source.playable_seconds)
        return max(played, 0.0)

    def get_state(self) -> PlaybackState:
        """Get sink state."""
        self._refresh()
        return self._state

    def _refresh(self) -> None:
        # Simulate the source running dry
        if self._state == PlaybackState.PLAYING and self._source is not None:
            length = self._source.playable_seconds
            if self._total_played + (self._clock() - self._resumed_at) >= length:
                self._total_played = length
                self._state = PlaybackState.FINISHED


class NullBackend(IAudioBackend):
    """Null backend implementation for testing."""

    def __init__(self, clock: Clock = time.monotonic, available: bool = True):
        self._clock = clock
        self._available = available
        self._initialized = False
        self._sinks: Dict[str, NullSink] = {}
        self._next_sink_id = 0

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def available(self) -> bool:
        return self._available

    @available.setter
    def available(self, value: bool) -> None:
        """Simulate the device disappearing (or coming back)."""
        self._available = value

    def initialize(self) -> None:
        """Initialize backend."""
        if not self._available:
            raise DeviceUnavailableError("No audio output device available")
        if self._initialized:
            return
        self._initialized = True
        logger.info("NullBackend initialized")

    def create_sink(self) -> ISink:
        """Create a paused, empty sink."""
        if not self._initialized or not self._available:
            raise DeviceUnavailableError("Failed to create sink: no audio output device")
        # Stopped sinks are terminal; forget them
        self._sinks = {
            sink_id: sink for sink_id, sink in self._sinks.items()
            if sink.get_state() != PlaybackState.STOPPED
        }
        sink_id = f"null_{self._next_sink_id}"
        self._next_sink_id += 1
        sink = NullSink(sink_id, self._clock)
        self._sinks[sink_id] = sink
        logger.debug(f"Created NullSink {sink_id}")
        return sink

    def live_sinks(self) -> List[NullSink]:
        """Sinks created on this backend that have not been stopped."""
        return [
            sink for sink in self._sinks.values()
            if sink.get_state() != PlaybackState.STOPPED
        ]

    def shutdown(self) -> None:
        """Shutdown backend."""
        for sink in self._sinks.values():
            if sink.get_state() != PlaybackState.STOPPED:
                logger.warning(f"NullSink {sink.sink_id} still live at shutdown")
                sink.stop()
        self._sinks.clear()
        self._initialized = False
        logger.info("NullBackend shut down")
