"""Compressed container decoder (MP3, M4A, FLAC, Ogg, ...) via pydub and ffmpeg."""

from pathlib import Path

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

from tonearm.core.exceptions import DecodeUnsupportedError, FileUnreadableError
from tonearm.core.interfaces import IAudioFormat, PathLike
from tonearm.core.models import AudioFormat, DecodedSource
from tonearm.utils.log import get_logger

logger = get_logger(__name__)


class PydubFormat(IAudioFormat):
    """Decoder for every container ffmpeg understands and this player offers."""

    @property
    def extensions(self) -> tuple[str, ...]:
        """Supported file extensions."""
        return (
            ".mp3", ".m4a", ".mp4", ".aac", ".flac", ".ogg", ".oga",
            ".opus", ".spx", ".aif", ".aiff", ".ape", ".mpc", ".wv",
        )

    def can_load(self, path: PathLike) -> bool:
        """Extension check only; content is validated by ffmpeg in load()."""
        path_obj = Path(path)
        return path_obj.is_file() and path_obj.suffix.lower() in self.extensions

    def load(self, path: PathLike) -> DecodedSource:
        """
        Decode a compressed file to 16-bit PCM.

        Mono and stereo are preserved, anything wider is downmixed to stereo.
        The sample rate is left alone; the output device resamples.

        Raises:
            FileUnreadableError: If the file cannot be opened.
            DecodeUnsupportedError: If ffmpeg is missing or cannot decode it.
        """
        path_obj = Path(path)
        try:
            with open(path_obj, "rb") as f:
                audio = AudioSegment.from_file(f)
        except CouldntDecodeError as e:
            raise DecodeUnsupportedError(f"Failed to decode audio: {e}", path) from e
        except FileNotFoundError as e:
            if path_obj.exists():
                # File is there, so the missing executable is ffmpeg/ffprobe
                raise DecodeUnsupportedError(
                    "ffmpeg is required to decode this file. Install ffmpeg and "
                    "make sure 'ffmpeg' and 'ffprobe' are on PATH.",
                    path,
                ) from e
            raise FileUnreadableError(f"File open error: {e}", path) from e
        except OSError as e:
            raise FileUnreadableError(f"File open error: {e}", path) from e
        except Exception as e:
            raise DecodeUnsupportedError(f"Failed to decode audio: {e}", path) from e

        try:
            audio = _to_playable(audio)
        except Exception as e:
            raise DecodeUnsupportedError(f"Failed to convert audio: {e}", path) from e

        sample_rate = audio.frame_rate
        num_channels = audio.channels
        bits_per_sample = audio.sample_width * 8
        block_align = num_channels * audio.sample_width

        format = AudioFormat(
            sample_rate=sample_rate,
            channels=num_channels,
            bits_per_sample=bits_per_sample,
            block_align=block_align,
            avg_bytes_per_sec=sample_rate * block_align,
        )

        # pydub reports length in milliseconds
        duration_seconds = len(audio) / 1000.0

        logger.info(
            f"Decoded {path_obj.name}: {num_channels}ch, {sample_rate}Hz, "
            f"{bits_per_sample}bit, {duration_seconds:.2f}s"
        )

        return DecodedSource(
            format=format,
            data=audio.raw_data,
            total_duration=duration_seconds if duration_seconds > 0 else None,
        )


def _to_playable(audio: AudioSegment) -> AudioSegment:
    """16-bit samples, mono or stereo."""
    if audio.sample_width != 2:
        audio = audio.set_sample_width(2)

    if audio.channels > 2:
        # pydub only converts multichannel to mono, so go through mono
        logger.warning(f"Audio has {audio.channels} channels, downmixing to stereo")
        audio = audio.set_channels(1).set_channels(2)

    return audio


# Format instance for automatic registration
pydub_format = PydubFormat()
