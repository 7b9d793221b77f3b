from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Dict, Mapping, Optional

from .models import DecisionKind, ExtensionDecision, ExtensionRule
from .rules import DEFAULT_MIN_LINES

logger = logging.getLogger(__name__)


def file_extension(filename: str) -> str:
    """Upper-cased extension of ``filename`` without the dot, or ""."""
    return PurePath(filename).suffix[1:].upper()


class ExtensionPolicy:
    """
    Lookup of the minimum valid line count by file extension.

    ``entries`` maps an extension to its configured minimum line count.
    ``None`` means the extension is configured but carries no count, which is
    different from the extension not being configured at all.
    """

    def __init__(self, entries: Mapping[str, Optional[int]]):
        self._entries: Dict[str, Optional[int]] = {
            str(ext).upper(): n for ext, n in entries.items()
        }

    @property
    def extensions(self) -> list[str]:
        return sorted(self._entries)

    def __contains__(self, extension: str) -> bool:
        return extension.upper() in self._entries

    def resolve(self, filename: str) -> ExtensionDecision:
        ext = file_extension(filename)
        if not ext:
            return ExtensionDecision(kind=DecisionKind.SKIP)

        if ext not in self._entries:
            return ExtensionDecision(kind=DecisionKind.UNKNOWN, extension=ext)

        min_lines = self._entries[ext]
        defaulted = min_lines is None
        if defaulted:
            min_lines = DEFAULT_MIN_LINES
            logger.warning(
                "%s: failed to obtain minimum number of lines for '%s' from config; defaulting to %d",
                filename, ext, min_lines,
            )

        rule = ExtensionRule(extension=ext, min_lines=min_lines, defaulted=defaulted)
        return ExtensionDecision(kind=DecisionKind.RULE, extension=ext, rule=rule)
