"""PortAudio output backend built on sounddevice."""

import threading
from typing import Dict, Optional, Union

import numpy as np
import sounddevice as sd

from tonearm.core.exceptions import DeviceUnavailableError
from tonearm.core.interfaces import IAudioBackend, ISink
from tonearm.core.models import DecodedSource, PlaybackState
from tonearm.utils.log import get_logger

logger = get_logger(__name__)

Device = Optional[Union[int, str]]


class SounddeviceSink(ISink):
    """
    Sink backed by one sounddevice OutputStream.

    The stream is opened when audio is appended (the source decides the
    sample rate and channel count) and runs for the lifetime of the sink.
    While paused the callback writes silence and the cursor does not move,
    so the position only counts frames actually handed to the device.
    """

    def __init__(self, sink_id: str, device: Device, latency: str):
        self.sink_id = sink_id
        self._device = device
        self._latency = latency
        self._lock = threading.Lock()
        self._stream: Optional[sd.OutputStream] = None
        self._frames: Optional[np.ndarray] = None
        self._cursor = 0
        self._sample_rate = 0
        self._state = PlaybackState.PAUSED

    def append(self, source: DecodedSource) -> None:
        """Attach decoded 16-bit PCM and open the output stream for it."""
        if self._state == PlaybackState.STOPPED:
            raise RuntimeError(f"Sink {self.sink_id} is stopped")
        if source.format.bits_per_sample != 16:
            raise ValueError(
                f"Unsupported bits per sample: {source.format.bits_per_sample} (only 16-bit)"
            )
        frames = np.frombuffer(source.data, dtype=np.int16)
        frames = frames[: source.num_frames * source.format.channels]
        frames = frames.reshape(-1, source.format.channels)

        self._close_stream()
        with self._lock:
            self._frames = frames
            self._cursor = 0
            self._sample_rate = source.format.sample_rate
            if self._state == PlaybackState.FINISHED:
                self._state = PlaybackState.PAUSED

        try:
            self._stream = sd.OutputStream(
                samplerate=source.format.sample_rate,
                channels=source.format.channels,
                dtype="int16",
                device=self._device,
                latency=self._latency,
                callback=self._callback,
            )
            self._stream.start()
        except (sd.PortAudioError, ValueError) as e:
            self._stream = None
            raise DeviceUnavailableError(f"Failed to open output stream: {e}") from e
        logger.debug(
            f"Sink {self.sink_id}: {len(frames)} frames at {self._sample_rate}Hz queued"
        )

    def _callback(self, outdata, frames, time_info, status) -> None:
        if status:
            logger.debug(f"Sink {self.sink_id}: stream status {status}")
        outdata.fill(0)
        with self._lock:
            if self._state != PlaybackState.PLAYING or self._frames is None:
                return
            chunk = self._frames[self._cursor:self._cursor + frames]
            filled = len(chunk)
            outdata[:filled] = chunk
            self._cursor += filled
            if self._cursor >= len(self._frames):
                self._state = PlaybackState.FINISHED

    def play(self) -> None:
        with self._lock:
            if self._state == PlaybackState.PAUSED:
                self._state = PlaybackState.PLAYING
        logger.debug(f"Sink {self.sink_id}: play")

    def pause(self) -> None:
        with self._lock:
            if self._state == PlaybackState.PLAYING:
                self._state = PlaybackState.PAUSED
        logger.debug(f"Sink {self.sink_id}: pause")

    def stop(self) -> None:
        """Stop the stream immediately, discarding anything not yet played."""
        with self._lock:
            self._state = PlaybackState.STOPPED
            self._frames = None
        self._close_stream()
        logger.debug(f"Sink {self.sink_id}: stopped")

    def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.abort()
        finally:
            stream.close()

    def is_paused(self) -> bool:
        with self._lock:
            return self._state == PlaybackState.PAUSED

    def get_pos(self) -> float:
        with self._lock:
            if self._sample_rate <= 0:
                return 0.0
            return self._cursor / self._sample_rate

    def get_state(self) -> PlaybackState:
        with self._lock:
            return self._state


class SounddeviceBackend(IAudioBackend):
    """Default system output through PortAudio."""

    def __init__(self, device: Device = None, latency: str = "high"):
        self._device = device
        self._latency = latency
        self._device_info: Optional[dict] = None
        self._sinks: Dict[str, SounddeviceSink] = {}
        self._next_sink_id = 0

    def initialize(self) -> None:
        """Resolve the output device, failing if none is present."""
        if self._device_info is not None:
            return
        try:
            info = sd.query_devices(self._device, kind="output")
        except (sd.PortAudioError, ValueError) as e:
            raise DeviceUnavailableError(f"Failed to initialize audio output: {e}") from e
        self._device_info = dict(info)
        logger.info(
            f"SounddeviceBackend initialized on '{self._device_info.get('name')}' "
            f"({self._device_info.get('default_samplerate')}Hz default)"
        )

    def create_sink(self) -> ISink:
        if self._device_info is None:
            raise DeviceUnavailableError("Failed to create sink: audio output not initialized")
        # Drop bookkeeping for sinks the session already stopped
        self._sinks = {
            sink_id: sink for sink_id, sink in self._sinks.items()
            if sink.get_state() != PlaybackState.STOPPED
        }
        sink_id = f"sd_{self._next_sink_id}"
        self._next_sink_id += 1
        sink = SounddeviceSink(sink_id, self._device, self._latency)
        self._sinks[sink_id] = sink
        return sink

    def shutdown(self) -> None:
        for sink in self._sinks.values():
            if sink.get_state() != PlaybackState.STOPPED:
                logger.warning(f"Sink {sink.sink_id} still live at shutdown")
                sink.stop()
        self._sinks.clear()
        self._device_info = None
        logger.info("SounddeviceBackend shut down")
