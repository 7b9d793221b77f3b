"""
Cleaning of a directory of V25 log files.

Files are handled one at a time: read, checked, then rewritten or deleted
before the next one is opened. Any OSError aborts the run; the directory is
only marked as cleaned after every file went through.
"""

from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path
from typing import List, Optional, Sequence

from .models import DecisionKind, FileAction, FileReport, Outcome, ReportItem, RunSummary
from .normalize import clean_lines, decode_bytes, encode_text, join_lines, split_lines
from .osc import OscRewriter
from .policy import ExtensionPolicy
from .rules import CLEANUP_DONE

logger = logging.getLogger(__name__)


class RunGuard:
    """Marker file telling that a directory was cleaned by a complete run."""

    def __init__(self, directory: str | Path, force: bool = False, marker_name: str = CLEANUP_DONE):
        self.directory = Path(directory)
        self.force = force
        self.marker_name = marker_name

    @property
    def path(self) -> Path:
        return self.directory / self.marker_name

    def already_done(self) -> bool:
        return not self.force and self.path.is_file()

    def mark_done(self) -> None:
        self.path.touch()


def list_files(directory: str | Path, exclude: Sequence[str] = (CLEANUP_DONE,)) -> List[Path]:
    """Regular files directly in ``directory``, sorted by name."""
    return sorted(
        p for p in Path(directory).iterdir()
        if p.is_file() and p.name not in exclude
    )


def write_lines(path: Path, lines: Sequence[str], encoding: str) -> None:
    """Replace the content of ``path``; a failed write leaves the old file in place."""
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        tmp.write_bytes(encode_text(join_lines(lines), encoding))
        shutil.copymode(path, tmp)
        tmp.replace(path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def _narrate(path: Path, issues: Sequence[ReportItem]) -> None:
    for item in issues:
        where = f" line {item.row}" if item.row is not None else ""
        value = f" ({item.value})" if item.value is not None else ""
        logger.debug("nok: %s%s: %s%s -> %s", path, where, item.issue, value, item.action)


def clean_file(
    path: str | Path,
    policy: ExtensionPolicy,
    rewriter: Optional[OscRewriter] = None,
) -> FileReport:
    path = Path(path)
    decision = policy.resolve(path.name)

    if decision.kind is DecisionKind.SKIP:
        issues = [ReportItem(issue="no_extension", action="delete_file")]
        _narrate(path, issues)
        path.unlink()
        return FileReport(path=str(path), action=FileAction.DELETED, issues=issues)

    if decision.kind is DecisionKind.UNKNOWN:
        logger.debug("unknown file extension '%s', skipping %s", decision.extension, path)
        return FileReport(path=str(path), extension=decision.extension, action=FileAction.SKIPPED)

    text, encoding = decode_bytes(path.read_bytes())
    result, timestamped = clean_lines(split_lines(text), decision.rule, rewriter)
    _narrate(path, result.issues)

    if result.outcome is Outcome.DELETE:
        path.unlink()
        action = FileAction.DELETED
    elif result.outcome is Outcome.REWRITTEN:
        write_lines(path, result.lines, encoding)
        action = FileAction.REWRITTEN
    else:
        logger.debug("ok:  %s", path)
        action = FileAction.UNCHANGED

    return FileReport(
        path=str(path),
        extension=decision.extension,
        action=action,
        timestamped=timestamped,
        encoding=encoding,
        issues=result.issues,
    )


def clean_directory(
    directory: str | Path,
    policy: ExtensionPolicy,
    guard: Optional[RunGuard] = None,
    rewriter: Optional[OscRewriter] = None,
) -> RunSummary:
    started = time.perf_counter()
    basepath = Path(directory).resolve(strict=True)
    guard = guard or RunGuard(basepath)

    logger.info("cleaning files in %s", basepath)
    if guard.already_done():
        logger.info("cleanup was already done, found file '%s'", guard.marker_name)
        return RunSummary(directory=str(basepath), already_cleaned=True)

    rewriter = rewriter or OscRewriter()
    reports = [
        clean_file(p, policy, rewriter)
        for p in list_files(basepath, exclude=(guard.marker_name,))
    ]
    guard.mark_done()

    summary = RunSummary(
        directory=str(basepath),
        files=reports,
        elapsed_seconds=time.perf_counter() - started,
    )
    logger.info(
        "updated %d files in %.2fs %s",
        len(reports), summary.elapsed_seconds, summary.counts(),
    )
    return summary
