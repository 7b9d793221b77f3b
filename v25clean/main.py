import base64
import hashlib
from functools import lru_cache

from fastapi import Depends, FastAPI, File, HTTPException, UploadFile

from .config import load_policy
from .models import (
    CleanedContent,
    CleanReport,
    CleanResponse,
    DecisionKind,
    HealthResponse,
    Outcome,
)
from .normalize import clean_lines, decode_bytes, encode_text, join_lines, split_lines
from .osc import OscRewriter
from .policy import ExtensionPolicy

app = FastAPI(
    title="v25clean",
    description="Validation and repair of V25 instrument log files",
    version="0.1.0",
)

_rewriter = OscRewriter()


@lru_cache(maxsize=1)
def get_policy() -> ExtensionPolicy:
    return load_policy()


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/clean", response_model=CleanResponse)
async def clean_log(
    file: UploadFile = File(...),
    policy: ExtensionPolicy = Depends(get_policy),
):
    decision = policy.resolve(file.filename or "")
    if decision.kind is DecisionKind.SKIP:
        raise HTTPException(status_code=422, detail="File has no extension")
    if decision.kind is DecisionKind.UNKNOWN:
        raise HTTPException(
            status_code=422,
            detail=f"Unknown file extension '{decision.extension}'",
        )

    raw = await file.read()
    text, encoding = decode_bytes(raw)
    lines = split_lines(text)
    result, timestamped = clean_lines(lines, decision.rule, _rewriter)

    cleaned = None
    rows_out = None
    if result.outcome is not Outcome.DELETE:
        out_lines = result.lines if result.lines is not None else lines
        out_bytes = raw if result.outcome is Outcome.UNCHANGED else encode_text(join_lines(out_lines), encoding)
        cleaned = CleanedContent(
            sha256=hashlib.sha256(out_bytes).hexdigest(),
            encoding=encoding,
            content_b64=base64.b64encode(out_bytes).decode("ascii"),
        )
        rows_out = len(out_lines)

    return CleanResponse(
        extension=decision.extension,
        outcome=result.outcome,
        timestamped=timestamped,
        cleaned=cleaned,
        report=CleanReport(rows_in=len(lines), rows_out=rows_out, issues=result.issues),
    )
