"""Ownership of the audio output device and the active sink."""

from typing import Optional
from tonearm.core.exceptions import DeviceUnavailableError, PlaybackError
from tonearm.core.interfaces import IAudioBackend, ISink
from tonearm.utils.log import get_logger

logger = get_logger(__name__)


class PlaybackResource:
    """
    Holds the output device for the application's lifetime and the one sink
    currently attached to it.

    Responsibilities:
    - Open the device once (acquire_device) and release it last
    - Hand out fresh sinks
    - Swap sinks so the old one is stopped before the new one is installed
    """

    def __init__(self, backend: IAudioBackend):
        """
        Wrap an already initialized backend. Use acquire_device() instead.

        Args:
            backend: Audio backend implementation.
        """
        self._backend = backend
        self._sink: Optional[ISink] = None
        self._acquired = True

    @classmethod
    def acquire_device(cls, backend: IAudioBackend) -> "PlaybackResource":
        """
        Open the output device behind `backend`.

        Raises:
            DeviceUnavailableError: If the device cannot be opened.
        """
        try:
            backend.initialize()
        except DeviceUnavailableError:
            raise
        except Exception as e:
            raise DeviceUnavailableError(f"Failed to initialize audio output: {e}") from e
        logger.info(f"Audio device acquired ({type(backend).__name__})")
        return cls(backend)

    def new_sink(self) -> ISink:
        """
        Create a fresh, paused, empty sink on the held device.

        The sink is not installed; pass it to replace_sink().

        Raises:
            DeviceUnavailableError: If the device is released or refuses.
        """
        if not self._acquired:
            raise DeviceUnavailableError("Failed to create sink: audio device released")
        try:
            return self._backend.create_sink()
        except PlaybackError:
            raise
        except Exception as e:
            raise DeviceUnavailableError(f"Failed to create sink: {e}") from e

    def replace_sink(self, new: Optional[ISink]) -> None:
        """
        Stop the active sink, then install `new` (or nothing).

        The old sink is stopped first, discarding any unplayed samples, so
        two sinks are never live for this resource at the same time.
        """
        old, self._sink = self._sink, None
        if old is not None:
            old.stop()
            logger.debug("Previous sink stopped")
        self._sink = new

    @property
    def sink(self) -> Optional[ISink]:
        """The active sink, if any."""
        return self._sink

    @property
    def is_acquired(self) -> bool:
        return self._acquired

    @property
    def backend(self) -> IAudioBackend:
        return self._backend

    def release(self) -> None:
        """
        Release the sink, then the device.

        This method is idempotent and safe to call multiple times.
        """
        if not self._acquired:
            logger.debug("Audio device already released")
            return

        try:
            self.replace_sink(None)
        except Exception as e:
            logger.warning(f"Error stopping sink during release: {e}")

        try:
            self._backend.shutdown()
        except Exception as e:
            logger.warning(f"Error during backend shutdown: {e}")

        self._acquired = False
        logger.info("Audio device released")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
