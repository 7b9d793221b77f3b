from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .rules import DEFAULT_MIN_LINES


class Outcome(str, Enum):
    DELETE = "delete"
    UNCHANGED = "unchanged"
    REWRITTEN = "rewritten"


class DecisionKind(str, Enum):
    SKIP = "skip"
    UNKNOWN = "unknown"
    RULE = "rule"


class FileAction(str, Enum):
    DELETED = "deleted"
    SKIPPED = "skipped"
    UNCHANGED = "unchanged"
    REWRITTEN = "rewritten"


class ExtensionEntry(BaseModel):
    """One entry of the extension config file."""

    min_n_lines: Optional[int] = Field(default=None, ge=DEFAULT_MIN_LINES)


class ExtensionRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    extension: str
    min_lines: int = DEFAULT_MIN_LINES
    defaulted: bool = False


class ExtensionDecision(BaseModel):
    kind: DecisionKind
    extension: str = ""
    rule: Optional[ExtensionRule] = None


class ReportItem(BaseModel):
    row: Optional[int] = None
    issue: str
    value: Optional[str] = None
    action: str


class PipelineOutcome(BaseModel):
    outcome: Outcome
    lines: Optional[List[str]] = None
    issues: List[ReportItem] = Field(default_factory=list)


class FileReport(BaseModel):
    path: str
    extension: str = ""
    action: FileAction
    timestamped: bool = False
    encoding: Optional[str] = None
    issues: List[ReportItem] = Field(default_factory=list)


class RunSummary(BaseModel):
    directory: str
    already_cleaned: bool = False
    files: List[FileReport] = Field(default_factory=list)
    elapsed_seconds: float = 0.0

    def counts(self) -> Dict[str, int]:
        out = {action.value: 0 for action in FileAction}
        for report in self.files:
            out[report.action.value] += 1
        return out


class CleanedContent(BaseModel):
    sha256: str
    encoding: str
    content_b64: str


class CleanReport(BaseModel):
    rows_in: int
    rows_out: Optional[int] = None
    issues: List[ReportItem] = Field(default_factory=list)


class CleanResponse(BaseModel):
    extension: str
    outcome: Outcome
    timestamped: bool = False
    cleaned: Optional[CleanedContent] = None
    report: CleanReport


class HealthResponse(BaseModel):
    ok: bool = True
