"""AudioPlayer - main public API."""

from typing import Optional
from tonearm.core.exceptions import DeviceUnavailableError, PlayerNotStartedError
from tonearm.core.interfaces import IAudioBackend, IDecoder, IMetadataProber, PathLike
from tonearm.core.models import MetadataSnapshot, PlayerConfig, SessionSnapshot
from tonearm.presentation.adapter import PlayerView, PresentationAdapter
from tonearm.services.resource import PlaybackResource
from tonearm.services.session import PlaybackSession
from tonearm.utils.log import get_logger

logger = get_logger(__name__)


class AudioPlayer:
    """
    Main player facade.

    Wires the output device, the playback session and the presentation
    adapter together, and tears them down in reverse order.
    """

    def __init__(
        self,
        config: Optional[PlayerConfig] = None,
        backend: Optional[IAudioBackend] = None,
        decoder: Optional[IDecoder] = None,
        prober: Optional[IMetadataProber] = None,
    ):
        """
        Initialize AudioPlayer.

        Args:
            config: Player configuration (default: PlayerConfig()).
            backend: Optional backend implementation (default: SounddeviceBackend).
            decoder: Optional decoder (default: extension registry).
            prober: Optional metadata prober (default: mutagen).
        """
        self._config = config or PlayerConfig()
        self._backend = backend
        self._decoder = decoder
        self._prober = prober
        self._session: Optional[PlaybackSession] = None
        self._adapter: Optional[PresentationAdapter] = None

    def start(self) -> None:
        """
        Open the audio device and create the session.

        Raises:
            DeviceUnavailableError: If there is no usable output device.
        """
        if self._session is not None:
            return

        if self._backend is None:
            self._backend = self._default_backend()

        resource = PlaybackResource.acquire_device(self._backend)
        self._session = PlaybackSession(resource, decoder=self._decoder, prober=self._prober)
        self._adapter = PresentationAdapter(self._session, self._config)
        logger.info("AudioPlayer started")

    def _default_backend(self) -> IAudioBackend:
        # Lazy import to avoid loading PortAudio on import
        try:
            from tonearm.backends.sounddevice_backend import SounddeviceBackend
        except OSError as e:
            raise DeviceUnavailableError(f"PortAudio library not found: {e}") from e
        return SounddeviceBackend(device=self._config.device, latency=self._config.latency)

    def shutdown(self) -> None:
        """Stop playback and release the device."""
        if self._session is None:
            return

        logger.info("Shutting down AudioPlayer...")
        self._session.close()
        self._session = None
        self._adapter = None
        logger.info("AudioPlayer shut down")

    @property
    def session(self) -> PlaybackSession:
        """
        The playback session.

        Raises:
            PlayerNotStartedError: If the player is not started.
        """
        if self._session is None:
            raise PlayerNotStartedError("Player must be started before use")
        return self._session

    @property
    def adapter(self) -> PresentationAdapter:
        if self._adapter is None:
            raise PlayerNotStartedError("Player must be started before use")
        return self._adapter

    def load(self, path: PathLike) -> MetadataSnapshot:
        """Load a file, paused. See PlaybackSession.load."""
        return self.session.load(path)

    def open(self, path: PathLike) -> bool:
        """Load a file, keeping any error on the view instead of raising."""
        return self.adapter.open(path)

    def toggle(self) -> bool:
        return self.session.toggle_play_pause()

    def snapshot(self) -> SessionSnapshot:
        return self.session.snapshot()

    def view(self) -> PlayerView:
        return self.adapter.tick()

    @property
    def config(self) -> PlayerConfig:
        return self._config

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.shutdown()
