"""Metadata probing for loaded files."""

from tonearm.metadata.probe import MutagenProber, container_kind_of

__all__ = ["MutagenProber", "container_kind_of"]
