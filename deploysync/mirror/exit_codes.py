"""
Exit Code Classifier — Interpret mirror tool exit statuses.

Exit statuses follow the robocopy convention, where the low three bits
report what was copied and only a status of 16 or more means nothing
was processed:

    0-7    success              files copied / extras removed / no change
    8-15   success_with_notes   mismatches or copy errors, still non-fatal
    >=16   fatal                the run did not happen

Statuses 8-15 are not fatal even where they name copy errors; callers
log them as warnings.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from ..models.outcomes import MirrorOutcome

SUCCESS_MAX = 7
NOTES_MAX = 15
UNKNOWN = "unknown"

EXIT_CODE_DESCRIPTIONS: Mapping[int, str] = MappingProxyType({
    0: "No changes; source and target already identical",
    1: "Files copied",
    2: "Extra files or directories removed from target",
    3: "Files copied; extra files or directories removed",
    4: "Mismatched files or directories detected",
    5: "Files copied; mismatches detected",
    6: "Extra entries removed; mismatches detected",
    7: "Files copied; extra entries removed; mismatches detected",
    8: "Attribute mismatch",
    9: "Data mismatch, attribute mismatch",
    10: "Folder mismatch, data mismatch, attribute mismatch",
    11: "File errors, folder mismatch, data mismatch, attribute mismatch",
    12: "File errors, folder mismatch, data mismatch",
    13: "File errors, folder mismatch",
    14: "Folder mismatch, file errors",
    15: "Copy error(s)",
    16: "Serious error; no files were processed",
})


def describe(code: int) -> str:
    """Human-readable meaning of a mirror exit status, or 'unknown'."""
    return EXIT_CODE_DESCRIPTIONS.get(code, UNKNOWN)


def classify(code: int) -> MirrorOutcome:
    """Map a raw exit status to a MirrorOutcome. Total over all integers."""
    code = int(code)
    description = describe(code)

    if 0 <= code <= SUCCESS_MAX:
        return MirrorOutcome.success(code, description)
    if SUCCESS_MAX < code <= NOTES_MAX:
        return MirrorOutcome.with_notes(code, description)
    return MirrorOutcome.fatal(code, description)
