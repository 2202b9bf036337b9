"""Container and tag probing with mutagen."""

import base64
import binascii
from typing import Any, Optional

import mutagen
from mutagen import MutagenError
from mutagen.aac import AAC
from mutagen.aiff import AIFF
from mutagen.apev2 import APEv2
from mutagen.flac import FLAC, Picture
from mutagen.id3 import ID3
from mutagen.monkeysaudio import MonkeysAudio
from mutagen.mp3 import MP3
from mutagen.mp4 import MP4, MP4Tags
from mutagen.musepack import Musepack
from mutagen.oggopus import OggOpus
from mutagen.oggspeex import OggSpeex
from mutagen.oggvorbis import OggVorbis
from mutagen.wave import WAVE
from mutagen.wavpack import WavPack

from tonearm.core.exceptions import FileUnreadableError, MetadataUnreadableError
from tonearm.core.interfaces import IMetadataProber, PathLike
from tonearm.core.models import ContainerKind, StreamProperties, TagSet
from tonearm.utils.log import get_logger

logger = get_logger(__name__)

# Order matters only for subclasses; none of these derive from each other
_CONTAINER_KINDS = (
    (AAC, ContainerKind.AAC),
    (AIFF, ContainerKind.AIFF),
    (MonkeysAudio, ContainerKind.APE),
    (FLAC, ContainerKind.FLAC),
    (MP3, ContainerKind.MP3),
    (MP4, ContainerKind.MP4),
    (Musepack, ContainerKind.MPC),
    (OggOpus, ContainerKind.OPUS),
    (OggVorbis, ContainerKind.OGG),
    (OggSpeex, ContainerKind.SPX),
    (WAVE, ContainerKind.WAV),
    (WavPack, ContainerKind.WV),
)


def container_kind_of(audio: Any) -> ContainerKind:
    """Map a mutagen file object to its container kind."""
    for cls, kind in _CONTAINER_KINDS:
        if isinstance(audio, cls):
            return kind
    return ContainerKind.UNKNOWN


class MutagenProber(IMetadataProber):
    """Metadata prober backed by mutagen."""

    def probe_stream(self, path: PathLike) -> StreamProperties:
        """
        Read container type, bitrate and duration.

        Args:
            path: Path to audio file.

        Returns:
            StreamProperties; bitrate and duration are None when the
            container does not state them.

        Raises:
            FileUnreadableError: If the file cannot be opened.
            MetadataUnreadableError: If mutagen does not recognise the file.
        """
        try:
            with open(path, "rb") as fileobj:
                audio = mutagen.File(fileobj)
        except OSError as e:
            raise FileUnreadableError(f"Failed to open file: {e}", path) from e
        except MutagenError as e:
            raise MetadataUnreadableError(f"Failed to read audio metadata: {e}", path) from e

        if audio is None:
            raise MetadataUnreadableError(
                "Failed to read audio metadata: unrecognised file format", path
            )

        info = audio.info
        bitrate = getattr(info, "bitrate", None)
        length = getattr(info, "length", None)
        properties = StreamProperties(
            container_kind=container_kind_of(audio),
            bitrate_kbps=round(bitrate / 1000) if bitrate else None,
            duration=float(length) if length and length > 0 else None,
        )
        logger.debug(f"Stream probe {path}: {properties}")
        return properties

    def probe_tags(self, path: PathLike) -> TagSet:
        """
        Read title, artist and first embedded picture from the primary tag.

        A file without tags, or whose tags cannot be read, yields an empty
        TagSet; the failure is logged, not raised.
        """
        try:
            with open(path, "rb") as fileobj:
                audio = mutagen.File(fileobj)
        except (OSError, MutagenError) as e:
            logger.warning(f"Failed to read tags from {path}: {e}")
            return TagSet()

        if audio is None or audio.tags is None:
            return TagSet()

        tags = audio.tags
        if isinstance(tags, ID3):
            return _id3_tags(tags)
        if isinstance(tags, MP4Tags):
            return _mp4_tags(tags)
        if isinstance(tags, APEv2):
            return _ape_tags(tags)
        return _vorbis_tags(audio, tags)


def _first_text(values: Any) -> Optional[str]:
    """First non-blank string from a tag value list, or None."""
    if values is None:
        return None
    if isinstance(values, (str, bytes)):
        values = [values]
    for value in values:
        text = value.decode("utf-8", "replace") if isinstance(value, bytes) else str(value)
        text = text.strip()
        if text:
            return text
    return None


def _id3_tags(tags: ID3) -> TagSet:
    def text(frame_id: str) -> Optional[str]:
        frame = tags.get(frame_id)
        return _first_text(frame.text) if frame is not None else None

    pictures = tags.getall("APIC")
    return TagSet(
        title=text("TIT2"),
        artist=text("TPE2") or text("TPE1"),
        artwork=bytes(pictures[0].data) if pictures else None,
    )


def _mp4_tags(tags: MP4Tags) -> TagSet:
    covers = tags.get("covr")
    return TagSet(
        title=_first_text(tags.get("\xa9nam")),
        artist=_first_text(tags.get("aART")) or _first_text(tags.get("\xa9ART")),
        artwork=bytes(covers[0]) if covers else None,
    )


def _ape_tags(tags: APEv2) -> TagSet:
    def text(key: str) -> Optional[str]:
        value = tags.get(key)
        return _first_text(str(value).split("\x00")) if value is not None else None

    artwork = None
    cover = tags.get("Cover Art (Front)")
    if cover is not None:
        # Binary item: "<filename>\0<image bytes>"
        _, _, artwork = bytes(cover.value).partition(b"\x00")
    return TagSet(
        title=text("Title"),
        artist=text("Album Artist") or text("Artist"),
        artwork=artwork or None,
    )


def _vorbis_tags(audio: Any, tags: Any) -> TagSet:
    artwork = None
    if isinstance(audio, FLAC) and audio.pictures:
        artwork = bytes(audio.pictures[0].data)
    else:
        for encoded in tags.get("metadata_block_picture") or []:
            try:
                artwork = bytes(Picture(base64.b64decode(encoded)).data)
                break
            except (binascii.Error, MutagenError) as e:
                logger.debug(f"Skipping unreadable embedded picture: {e}")

    return TagSet(
        title=_first_text(tags.get("title")),
        artist=_first_text(tags.get("albumartist")) or _first_text(tags.get("artist")),
        artwork=artwork,
    )
