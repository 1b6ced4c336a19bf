"""
Archive — Build a zip with an external tool and move it into place.
"""

from .builder import ArchiveBuilder
from .compressors import Compressor, PowerShellCompressor, SevenZipCompressor
from .relocator import ArchiveRelocator

__all__ = [
    "ArchiveBuilder",
    "ArchiveRelocator",
    "Compressor",
    "PowerShellCompressor",
    "SevenZipCompressor",
]
