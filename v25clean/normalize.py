"""
Line integrity checks for V25 log files.

Responsibilities:
- encoding detection for reading and writing back log files
- line splitting / joining
- the ordered validation pipeline deciding whether a file is kept,
  trimmed or deleted
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from charset_normalizer import from_bytes

from .models import ExtensionRule, Outcome, PipelineOutcome, ReportItem
from .osc import OscRewriter
from .rules import FALLBACK_ENCODING, FIELD_DELIMITER, OSC_EXTENSION

_UTF8_BOM = b"\xef\xbb\xbf"


def decode_bytes(raw: bytes) -> tuple[str, str]:
    """
    Decode raw file content.

    Rules:
    - Detect encoding best-effort via charset-normalizer.
    - A UTF-8 BOM is kept by decoding with utf-8-sig, so writing back with
      the same encoding restores it.
    - If decode fails, fall back to UTF-8 with surrogateescape so that
      undecodable bytes survive a rewrite unchanged.

    Returns the text and the encoding to use when writing it back.
    """
    match = from_bytes(raw).best()
    encoding = match.encoding if match is not None else FALLBACK_ENCODING

    if raw.startswith(_UTF8_BOM) and encoding.lower().replace("-", "_") in ("utf_8", "utf8"):
        encoding = "utf-8-sig"

    try:
        return raw.decode(encoding), encoding
    except (UnicodeDecodeError, LookupError):
        return raw.decode(FALLBACK_ENCODING, errors="surrogateescape"), FALLBACK_ENCODING


def encode_text(text: str, encoding: str) -> bytes:
    return text.encode(encoding, errors="surrogateescape")


def split_lines(text: str) -> List[str]:
    """
    Split text into lines on LF, dropping a CR before each LF.

    A final line terminator does not produce an extra empty line, but every
    additional blank line at the end does.
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def join_lines(lines: Sequence[str]) -> str:
    return "".join(f"{line}\n" for line in lines)


def n_data_fields(line: str, delimiter: str = FIELD_DELIMITER) -> int:
    """Number of fields in ``line`` after trimming surrounding whitespace."""
    return len(line.strip().split(delimiter))


def n_chars_last_field(line: str, delimiter: str = FIELD_DELIMITER) -> int:
    """Number of characters in the last field of ``line``."""
    return len(line.strip().split(delimiter)[-1])


def check_lines(lines: Sequence[str], min_lines: int) -> PipelineOutcome:
    """
    Run the integrity checks on the lines of one file.

    The checks run in a fixed order and the first one deciding on deletion
    ends the run. Lines are only ever removed from the end. The input
    sequence is not modified.
    """
    buf = list(lines)
    issues: List[ReportItem] = []
    modified = False

    def delete(issue: str, value: Optional[str] = None, row: Optional[int] = None) -> PipelineOutcome:
        issues.append(ReportItem(row=row, issue=issue, value=value, action="delete_file"))
        return PipelineOutcome(outcome=Outcome.DELETE, issues=issues)

    # trailing newlines
    while buf and buf[-1] == "":
        issues.append(ReportItem(row=len(buf), issue="last_line_empty", action="removed_line"))
        buf.pop()
        modified = True

    if len(buf) < min_lines:
        return delete("too_few_lines", value=f"{len(buf)}<{min_lines}")

    # column header and first row of data must agree
    n_col_header = n_data_fields(buf[min_lines - 2])
    n_col_data = n_data_fields(buf[min_lines - 1])
    if n_col_data != n_col_header:
        return delete(
            "first_data_line_field_count",
            value=f"{n_col_data}!={n_col_header}",
            row=min_lines,
        )

    # at most one partially written line at the end
    n_col_last = n_data_fields(buf[-1])
    if n_col_last != n_col_header:
        issues.append(ReportItem(
            row=len(buf),
            issue="last_line_field_count",
            value=f"{n_col_last}!={n_col_header}",
            action="removed_line",
        ))
        buf.pop()
        modified = True

    # Needs two rows of data. A shorter last field than in the row before
    # is taken as a line cut off mid-write; this is a heuristic only.
    if len(buf) > min_lines:
        have = n_chars_last_field(buf[-1])
        want = n_chars_last_field(buf[-2])
        if have < want:
            issues.append(ReportItem(
                row=len(buf),
                issue="last_field_too_short",
                value=f"{have}<{want}",
                action="removed_line",
            ))
            buf.pop()
            modified = True

    if len(buf) < min_lines:
        return delete("too_few_lines", value=f"{len(buf)}<{min_lines}")

    if not modified:
        return PipelineOutcome(outcome=Outcome.UNCHANGED, issues=issues)
    return PipelineOutcome(outcome=Outcome.REWRITTEN, lines=buf, issues=issues)


def clean_lines(
    lines: Sequence[str],
    rule: ExtensionRule,
    rewriter: Optional[OscRewriter] = None,
) -> tuple[PipelineOutcome, bool]:
    """
    Run the pipeline and, for OSC files, the timestamp rewrite.

    Returns the final outcome and whether the timestamp column was added.
    """
    result = check_lines(lines, rule.min_lines)
    if result.outcome is Outcome.DELETE or rule.extension != OSC_EXTENSION:
        return result, False

    rewriter = rewriter or OscRewriter()
    current = result.lines if result.lines is not None else list(lines)
    rewritten = rewriter.rewrite(current)
    if rewritten is None:
        return result, False

    issues = result.issues + [ReportItem(
        row=rewriter.header_index + 1,
        issue="missing_datetime_column",
        value=rewriter.datetime_of(current),
        action="prefixed_datetime",
    )]
    return PipelineOutcome(outcome=Outcome.REWRITTEN, lines=rewritten, issues=issues), True
