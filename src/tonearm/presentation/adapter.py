"""Toolkit-neutral view model polled by the redraw loop."""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional
from tonearm.core.exceptions import PlaybackError
from tonearm.core.interfaces import PathLike
from tonearm.core.models import PlayerConfig, SessionSnapshot
from tonearm.services.session import PlaybackSession
from tonearm.utils.log import get_logger
from tonearm.utils.validate import has_allowed_extension

logger = get_logger(__name__)

PLAY_LABEL = "▶ Play"
PAUSE_LABEL = "⏸ Pause"
UNKNOWN_ARTIST = "Unknown artist"
UNKNOWN_TITLE = "Unknown title"
UNKNOWN_CONTAINER = "Unknown"
UNKNOWN_BITRATE = "-- kbps"
UNKNOWN_TIME = "--:--"
NO_FILE = "No file selected."
NO_TAGS = "No metadata available"


def format_duration(seconds: Optional[float]) -> str:
    """Format seconds as MM:SS (minutes keep counting past 59)."""
    if seconds is None:
        return UNKNOWN_TIME
    total_secs = int(max(seconds, 0.0))
    minutes, secs = divmod(total_secs, 60)
    return f"{minutes:02}:{secs:02}"


@dataclass(frozen=True)
class PlayerView:
    """Strings and values a window needs to draw one frame."""

    file_label: str
    artist_label: str
    title_label: str
    container_label: str
    bitrate_label: str
    play_button_label: str
    time_label: str
    progress: float
    artwork: Optional[bytes]
    error_message: Optional[str]
    is_playing: bool


class PresentationAdapter:
    """
    Sits between a window and the playback session.

    Pushes user intents (open, toggle) into the session and pulls one
    SessionSnapshot per redraw tick, turning it into a PlayerView.
    """

    def __init__(self, session: PlaybackSession, config: Optional[PlayerConfig] = None):
        self._session = session
        self._config = config or PlayerConfig()

    @property
    def redraw_interval(self) -> float:
        return self._config.redraw_interval_seconds

    def accepts(self, path: PathLike) -> bool:
        """File-picker filter: True for the configured extensions."""
        return has_allowed_extension(path, self._config.allowed_extensions)

    def open(self, path: PathLike) -> bool:
        """
        Load a user-selected file.

        Returns:
            True on success. On failure the error stays on the view until the
            next attempt.
        """
        try:
            self._session.load(path)
        except PlaybackError as e:
            logger.info(f"Open failed ({e.kind.value}): {e}")
            return False
        return True

    def toggle(self) -> bool:
        """Play/pause button pressed."""
        return self._session.toggle_play_pause()

    def tick(self) -> PlayerView:
        """Poll the session once and build the view for this frame."""
        return self.render(self._session.snapshot())

    @staticmethod
    def render(snapshot: SessionSnapshot) -> PlayerView:
        metadata = snapshot.metadata
        if snapshot.current_path is None:
            file_label = NO_FILE
        elif metadata is None or not metadata.has_tags:
            file_label = NO_TAGS
        else:
            file_label = Path(snapshot.current_path).name

        if metadata is not None:
            container_label = metadata.container_kind.value
            bitrate_label = (
                f"{metadata.bitrate_kbps} kbps"
                if metadata.bitrate_kbps is not None
                else UNKNOWN_BITRATE
            )
        else:
            container_label = UNKNOWN_CONTAINER
            bitrate_label = UNKNOWN_BITRATE

        return PlayerView(
            file_label=file_label,
            artist_label=(metadata.artist if metadata and metadata.artist else UNKNOWN_ARTIST),
            title_label=(metadata.title if metadata and metadata.title else UNKNOWN_TITLE),
            container_label=container_label,
            bitrate_label=bitrate_label,
            play_button_label=PAUSE_LABEL if snapshot.is_playing else PLAY_LABEL,
            time_label=(
                f"{format_duration(snapshot.elapsed)} / "
                f"{format_duration(snapshot.total_duration)}"
            ),
            progress=snapshot.progress,
            artwork=metadata.artwork if metadata is not None else None,
            error_message=snapshot.last_error_message,
            is_playing=snapshot.is_playing,
        )

    def run(
        self,
        draw: Callable[[PlayerView], None],
        should_stop: Callable[[], bool],
        sleep: Callable[[float], None] = time.sleep,
        handle_input: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        Redraw loop: apply input, poll, draw, wait one interval, until
        `should_stop()`.

        Runs on the calling thread; the session is only touched from here.

        Args:
            draw: Receives the view for each frame.
            should_stop: Checked before every frame.
            sleep: Waits between frames.
            handle_input: Applies queued user intents (open, toggle) before
                the frame is polled, so the frame already reflects them.
        """
        while not should_stop():
            if handle_input is not None:
                handle_input()
            draw(self.tick())
            sleep(self.redraw_interval)
