"""Validation utilities."""

from pathlib import Path
from typing import Iterable, Union


def clamp_unit(value: float) -> float:
    """Clamp a fraction to [0.0, 1.0]."""
    if value < 0.0:
        return 0.0
    if value > 1.0:
        return 1.0
    return value


def has_allowed_extension(path: Union[str, Path], allowed: Iterable[str]) -> bool:
    """Case-insensitive extension check; `allowed` entries may omit the dot."""
    suffix = Path(path).suffix.lower().lstrip(".")
    if not suffix:
        return False
    return any(suffix == ext.lower().lstrip(".") for ext in allowed)
