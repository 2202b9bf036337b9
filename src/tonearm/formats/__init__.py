"""Audio decoders with automatic registration."""

import importlib
import pkgutil
from pathlib import Path
from typing import Dict, Optional
from tonearm.core.exceptions import DecodeUnsupportedError, FileUnreadableError
from tonearm.core.interfaces import IAudioFormat, PathLike
from tonearm.core.models import DecodedSource
from tonearm.utils.log import get_logger

logger = get_logger(__name__)

# Registry of all available decoders, keyed by lowercase extension
_format_registry: Dict[str, IAudioFormat] = {}


def _register_format(format: IAudioFormat) -> None:
    """
    Register a decoder.

    Args:
        format: Decoder instance implementing IAudioFormat.
    """
    for ext in format.extensions:
        ext_lower = ext.lower()
        if ext_lower in _format_registry:
            logger.warning(
                f"Decoder for extension {ext_lower} already registered, "
                f"overwriting with {type(format).__name__}"
            )
        _format_registry[ext_lower] = format
    logger.debug(f"Registered {type(format).__name__} for extensions: {format.extensions}")


def _auto_discover_formats() -> None:
    """Discover and register every decoder module in this package."""
    package_path = Path(__file__).parent
    for module_info in pkgutil.iter_modules([str(package_path)]):
        module = importlib.import_module(f"{__name__}.{module_info.name}")
        # Decoder instances are module-level names ending with _format
        for attr_name in dir(module):
            if attr_name.endswith("_format") and not attr_name.startswith("_"):
                attr = getattr(module, attr_name)
                if isinstance(attr, IAudioFormat):
                    _register_format(attr)


def get_format_for_file(path: PathLike) -> Optional[IAudioFormat]:
    """
    Get the decoder registered for a file's extension.

    Args:
        path: Path to audio file.

    Returns:
        IAudioFormat instance if one accepts the file, None otherwise.
    """
    if not _format_registry:
        _auto_discover_formats()

    format = _format_registry.get(Path(path).suffix.lower())
    if format is not None and format.can_load(path):
        return format
    return None


def supported_extensions() -> tuple[str, ...]:
    """All extensions some registered decoder handles, sorted."""
    if not _format_registry:
        _auto_discover_formats()
    return tuple(sorted(_format_registry))


def load_audio(path: PathLike) -> DecodedSource:
    """
    Decode an audio file with the matching decoder.

    Args:
        path: Path to audio file.

    Returns:
        DecodedSource with format and PCM data.

    Raises:
        FileUnreadableError: If the file does not exist or cannot be opened.
        DecodeUnsupportedError: If no decoder accepts the file or decoding fails.
    """
    path_obj = Path(path)
    if not path_obj.is_file():
        raise FileUnreadableError(f"File open error: no such file: {path}", path)

    format = get_format_for_file(path_obj)
    if format is None:
        raise DecodeUnsupportedError(
            f"No decoder for file: {path_obj.name}. "
            f"Supported extensions: {', '.join(supported_extensions())}",
            path,
        )

    return format.load(path_obj)


class FormatDecoder:
    """Registry-backed decoder handed to a playback session."""

    def load(self, path: PathLike) -> DecodedSource:
        return load_audio(path)


_auto_discover_formats()

__all__ = [
    "FormatDecoder",
    "IAudioFormat",
    "get_format_for_file",
    "load_audio",
    "supported_extensions",
]
