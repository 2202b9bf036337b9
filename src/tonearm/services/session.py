"""The playback session controller."""

from pathlib import Path
from typing import Optional
from tonearm.core.exceptions import PlaybackError
from tonearm.core.interfaces import IDecoder, IMetadataProber, PathLike
from tonearm.core.models import (
    ErrorKind,
    MetadataSnapshot,
    PlaybackState,
    SessionSnapshot,
    SessionState,
)
from tonearm.formats import FormatDecoder
from tonearm.metadata import MutagenProber
from tonearm.services.resource import PlaybackResource
from tonearm.utils.log import get_logger
from tonearm.utils.validate import clamp_unit

logger = get_logger(__name__)


class PlaybackSession:
    """
    Single source of truth for what file is loaded and whether it plays.

    Responsibilities:
    - Load a file: discard the old sink, probe, decode, attach to a new
      paused sink
    - Cache the file's metadata for the lifetime of the load
    - Toggle play/pause against the sink's real state
    - Report position and progress for polling

    All methods are meant to be called from one controlling thread.
    """

    def __init__(
        self,
        resource: PlaybackResource,
        decoder: Optional[IDecoder] = None,
        prober: Optional[IMetadataProber] = None,
    ):
        """
        Initialize the session in the empty state.

        Args:
            resource: Acquired output device.
            decoder: Decoder for audio files (default: extension registry).
            prober: Metadata prober (default: mutagen).
        """
        self._resource = resource
        self._decoder = decoder or FormatDecoder()
        self._prober = prober or MutagenProber()
        self._current_path: Optional[Path] = None
        self._metadata: Optional[MetadataSnapshot] = None
        self._last_error: Optional[PlaybackError] = None

    def load(self, path: PathLike) -> MetadataSnapshot:
        """
        Replace whatever is loaded with `path`, paused at the start.

        The previous sink is stopped before anything else happens. If any
        later step fails the session is left empty; the previous file is
        not restored.

        Args:
            path: Audio file to load.

        Returns:
            The metadata cached for this load.

        Raises:
            DeviceUnavailableError: If no sink can be created.
            FileUnreadableError: If the file cannot be opened.
            MetadataUnreadableError: If the container probe fails.
            DecodeUnsupportedError: If the audio cannot be decoded.
        """
        path = Path(path)
        self._clear()

        try:
            stream = self._prober.probe_stream(path)
            tags = self._prober.probe_tags(path)
            source = self._decoder.load(path)
            sink = self._resource.new_sink()
            try:
                sink.append(source)
                sink.pause()
            except BaseException:
                sink.stop()
                raise
            self._resource.replace_sink(sink)
        except PlaybackError as e:
            self._last_error = e
            logger.warning(f"Failed to load {path}: {e}")
            raise

        self._current_path = path
        self._metadata = MetadataSnapshot.from_probes(stream, tags, source.total_duration)
        self._last_error = None
        logger.info(
            f"Loaded {path.name} ({self._metadata.container_kind.value}, "
            f"{self._metadata.bitrate_kbps or '?'} kbps)"
        )
        return self._metadata

    def _clear(self) -> None:
        self._resource.replace_sink(None)
        self._current_path = None
        self._metadata = None

    def toggle_play_pause(self) -> bool:
        """
        Resume a paused sink or pause a playing one.

        Does nothing when no file is loaded or the file already played to
        its end.

        Returns:
            Whether the session is playing afterwards.
        """
        sink = self._resource.sink
        if self._current_path is None or sink is None:
            logger.debug("toggle_play_pause: nothing loaded")
            return False

        state = sink.get_state()
        if state == PlaybackState.PAUSED:
            sink.play()
        elif state == PlaybackState.PLAYING:
            sink.pause()
        else:
            logger.debug(f"toggle_play_pause: sink is {state.value}, ignoring")
        return self.is_playing

    def elapsed(self) -> float:
        """Seconds played of the current file; 0.0 when nothing is loaded."""
        sink = self._resource.sink
        if self._current_path is None or sink is None:
            return 0.0
        return sink.get_pos()

    def progress_fraction(self) -> float:
        """Elapsed over total duration in [0, 1]; 0.0 if the total is unknown or zero."""
        total = self.total_duration
        if not total or total <= 0:
            return 0.0
        return clamp_unit(self.elapsed() / total)

    @property
    def is_playing(self) -> bool:
        """Read from the sink every time, never cached."""
        sink = self._resource.sink
        if self._current_path is None or sink is None:
            return False
        return sink.get_state() == PlaybackState.PLAYING

    @property
    def state(self) -> SessionState:
        if self._current_path is None:
            return SessionState.EMPTY
        if self.is_playing:
            return SessionState.LOADED_PLAYING
        return SessionState.LOADED_PAUSED

    @property
    def current_path(self) -> Optional[Path]:
        return self._current_path

    @property
    def metadata(self) -> Optional[MetadataSnapshot]:
        return self._metadata

    @property
    def total_duration(self) -> Optional[float]:
        """Decoder's duration, falling back to the container's."""
        if self._metadata is not None:
            return self._metadata.total_duration
        return None

    @property
    def last_error(self) -> Optional[ErrorKind]:
        return self._last_error.kind if self._last_error is not None else None

    @property
    def last_error_message(self) -> Optional[str]:
        return str(self._last_error) if self._last_error is not None else None

    @property
    def resource(self) -> PlaybackResource:
        return self._resource

    def snapshot(self) -> SessionSnapshot:
        """Everything the presentation layer needs for one redraw."""
        return SessionSnapshot(
            is_playing=self.is_playing,
            elapsed=self.elapsed(),
            total_duration=self.total_duration,
            metadata=self._metadata,
            last_error=self.last_error,
            last_error_message=self.last_error_message,
            current_path=self._current_path,
            progress=self.progress_fraction(),
        )

    def close(self) -> None:
        """Drop the loaded file and release the device (sink first)."""
        self._current_path = None
        self._metadata = None
        self._resource.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
