"""16-bit PCM decoder for RIFF/WAVE files, used without ffmpeg."""

import struct
from pathlib import Path
from typing import BinaryIO, Iterator, Tuple
from tonearm.core.exceptions import DecodeUnsupportedError, FileUnreadableError
from tonearm.core.interfaces import IAudioFormat, PathLike
from tonearm.core.models import AudioFormat, DecodedSource
from tonearm.utils.log import get_logger

logger = get_logger(__name__)

_WAVE_FORMAT_PCM = 1
_WAVE_FORMAT_EXTENSIBLE = 0xFFFE

# format tag, channels, sample rate, byte rate, block align, bits per sample
_FMT_STRUCT = struct.Struct("<HHIIHH")


class WavFormat(IAudioFormat):
    """Decoder for plain and WAVE_FORMAT_EXTENSIBLE 16-bit PCM."""

    @property
    def extensions(self) -> tuple[str, ...]:
        return (".wav", ".wave")

    def can_load(self, path: PathLike) -> bool:
        """True for a .wav/.wave file that starts with RIFF....WAVE."""
        if Path(path).suffix.lower() not in self.extensions:
            return False
        try:
            with open(path, "rb") as f:
                magic = f.read(12)
        except OSError:
            return False
        return magic[:4] == b"RIFF" and magic[8:] == b"WAVE"

    def load(self, path: PathLike) -> DecodedSource:
        """
        Read a WAV file into memory.

        Mono or stereo, 16-bit, any sample rate.

        Raises:
            FileUnreadableError: If the file cannot be opened.
            DecodeUnsupportedError: If the content is not 16-bit PCM WAV.
        """
        try:
            with open(path, "rb") as f:
                return _parse_wav(f)
        except OSError as e:
            raise FileUnreadableError(f"File open error: {e}", path) from e
        except struct.error as e:
            raise DecodeUnsupportedError(f"Truncated WAV file: {e}", path) from e


def _iter_chunks(f: BinaryIO) -> Iterator[Tuple[bytes, int]]:
    """
    Yield (chunk id, size) with the stream at the chunk body.

    The caller either reads the body or leaves it; whatever is left,
    including the pad byte of odd-sized chunks, is skipped before the next
    header is read.
    """
    while True:
        header = f.read(8)
        if len(header) < 8:
            if len(header) > 4:
                raise struct.error(f"chunk header cut short after {len(header)} bytes")
            return
        chunk_id, size = header[:4], struct.unpack("<I", header[4:])[0]
        body_start = f.tell()
        yield chunk_id, size
        f.seek(body_start + size + (size & 1))


def _decode_fmt(fmt: bytes) -> AudioFormat:
    if len(fmt) < _FMT_STRUCT.size:
        raise DecodeUnsupportedError(f"fmt chunk too short: {len(fmt)} bytes")

    tag, channels, rate, byte_rate, block_align, bits = _FMT_STRUCT.unpack_from(fmt)
    if tag == _WAVE_FORMAT_EXTENSIBLE and len(fmt) >= 26:
        # Sub-format GUID starts with the real format tag
        tag = struct.unpack_from("<H", fmt, 24)[0]

    if tag != _WAVE_FORMAT_PCM:
        raise DecodeUnsupportedError(f"WAV format tag {tag:#06x} is not PCM")
    if bits != 16:
        raise DecodeUnsupportedError(f"{bits}-bit WAV is not supported, only 16-bit")
    if channels not in (1, 2):
        raise DecodeUnsupportedError(f"{channels}-channel WAV is not supported, only mono/stereo")
    if rate == 0:
        raise DecodeUnsupportedError("WAV sample rate is 0 Hz")
    if block_align != channels * 2:
        raise DecodeUnsupportedError(f"Inconsistent block alignment: {block_align}")

    return AudioFormat(
        sample_rate=rate,
        channels=channels,
        bits_per_sample=bits,
        block_align=block_align,
        avg_bytes_per_sec=byte_rate,
    )


def _parse_wav(f: BinaryIO) -> DecodedSource:
    """Decode a WAV stream positioned at its first byte."""
    riff = f.read(12)
    if riff[:4] != b"RIFF" or riff[8:12] != b"WAVE":
        raise DecodeUnsupportedError("Not a RIFF/WAVE file")

    format = None
    for chunk_id, size in _iter_chunks(f):
        if chunk_id == b"fmt ":
            format = _decode_fmt(f.read(size))
        elif chunk_id == b"data":
            if format is None:
                raise DecodeUnsupportedError("data chunk before fmt chunk")
            pcm = f.read(size)
            break
    else:
        raise DecodeUnsupportedError(
            "Missing fmt chunk" if format is None else "Missing data chunk"
        )

    # Drop a trailing partial frame
    pcm = pcm[: len(pcm) - len(pcm) % format.frame_size]
    source = DecodedSource(format=format, data=pcm)
    source.total_duration = source.playable_seconds
    logger.info(
        f"Decoded WAV: {format.channels}ch {format.sample_rate}Hz, "
        f"{source.total_duration:.2f}s"
    )
    return source


# Module-level instance picked up by the registry
wav_format = WavFormat()
