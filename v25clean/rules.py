"""
Deterministic cleaning rules.

This file exists to make the fixed parts of the log format explicit.
"""

FIELD_DELIMITER = "\t"
DEFAULT_MIN_LINES = 2

# Marker written into a cleaned directory once a full run completes.
CLEANUP_DONE = "V25Logs_cleaned.done"

# OSC files (oscar / chemiluminescence detector) get a timestamp column.
OSC_EXTENSION = "OSC"
OSC_DATETIME_PATTERN = r"\d{2}\.\d{2}\.\d{2} \d{2}:\d{2}:\d{2}\.\d{2}"
OSC_MARKER = "DateTime"
OSC_HEADER_INDEX = 4

FALLBACK_ENCODING = "utf-8"
