"""
Mirror — Exact directory mirroring through an external tool.
"""

from .directory import DirectoryMirror
from .exit_codes import EXIT_CODE_DESCRIPTIONS, classify, describe
from .tools import MirrorTool, RobocopyTool, RsyncTool, get_mirror_tool

__all__ = [
    "DirectoryMirror",
    "EXIT_CODE_DESCRIPTIONS",
    "classify",
    "describe",
    "MirrorTool",
    "RobocopyTool",
    "RsyncTool",
    "get_mirror_tool",
]
