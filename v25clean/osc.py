"""
Timestamp column for OSC (oscar / chemiluminescence detector) files.

The first line of an OSC file holds the datetime the measurement started.
Rows of data carry no date, so the datetime is added to every row as a new
leading field, with a matching column name in the header line.
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence

from .rules import OSC_DATETIME_PATTERN, OSC_HEADER_INDEX, OSC_MARKER


class OscRewriter:
    def __init__(
        self,
        pattern: str = OSC_DATETIME_PATTERN,
        marker: str = OSC_MARKER,
        header_index: int = OSC_HEADER_INDEX,
    ):
        self.datetime_re = re.compile(pattern)
        self.marker = marker
        self.header_index = header_index

    def datetime_of(self, lines: Sequence[str]) -> Optional[str]:
        """The datetime found in the first line, else None."""
        match = self.datetime_re.search(lines[0]) if lines else None
        if match is None:
            return None
        return match.group(0)

    def already_applied(self, lines: Sequence[str]) -> bool:
        return self.marker in lines[self.header_index]

    def rewrite(self, lines: Sequence[str]) -> Optional[List[str]]:
        """
        Return the rewritten lines, or None if nothing is to be done.

        Nothing is done when the first line holds no datetime, when the file
        has no header line, or when the header already has the marker column.
        """
        if len(lines) <= self.header_index:
            return None
        datetime = self.datetime_of(lines)
        if datetime is None or self.already_applied(lines):
            return None

        data_start = self.header_index + 1
        out = list(lines[: self.header_index])
        out.append(f"\t{self.marker}\t{lines[self.header_index]}")
        out.extend(f"\t{datetime}\t{line}" for line in lines[data_start:])
        return out
