"""Markdown run report plus the persisted last-run status."""
from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from jobcheck.config import LAST_RUN_PATH, REPORTS_DIR
from jobcheck.log import get_logger
from jobcheck.models import CheckOutcome, Evidence, RunSummary

log = get_logger(__name__)


def _truncate(text: str, n: int) -> str:
    return text[:n] + ("…" if len(text) > n else "")


def _position(role: str | None, company: str | None) -> str:
    return f"{role or 'Unknown'} @ {company or 'Unknown'}"


def build_run_report(summary: RunSummary) -> str:
    date = summary.started_at[:10] or datetime.now(timezone.utc).strftime("%Y-%m-%d")
    lines: list[str] = [f"# Job Change Check — {date}", ""]

    if not summary.success:
        lines.append(f"**Run failed:** {summary.error or 'unknown error'}")
        lines.append("")
        return "\n".join(lines)

    lines.append(
        f"**{summary.total_checked}** checked | **{summary.changes_detected}** changed"
        f" | **{summary.error_count}** errors | {summary.duration_seconds:.1f}s"
    )
    lines.append("")

    changed = [o for o in summary.outcomes if o.changed]
    if changed:
        lines.append("## Changes")
        lines.append("")
        for o in changed:
            lines.append(f"### {o.name}")
            lines.append(f"- **Previous:** {_position(o.previous_role, o.previous_company)}")
            lines.append(f"- **New:** {_position(o.new_role, o.new_company)}")
            lines.append(f"- **Confidence:** {o.confidence}%")
            for e in o.evidence:
                lines.append(f"- **Evidence:** {_truncate(e.snippet_excerpt, 120)} ([source]({e.source_link}))")
            if o.notification_error:
                lines.append(f"- _Alert not sent: {o.notification_error}_")
            lines.append("")

    if summary.outcomes:
        lines.append("## All Checks")
        lines.append("")
        lines.append("| # | Person | Current | Confidence | Result |")
        lines.append("|--:|--------|---------|-----------:|--------|")
        for i, o in enumerate(summary.outcomes, 1):
            if o.error:
                result = f"Error: {_truncate(o.error, 40)}"
            elif o.changed:
                result = "Changed"
            else:
                result = "No change"
            current = _position(o.new_role, o.new_company) if o.changed else _position(o.previous_role, o.previous_company)
            lines.append(f"| {i} | {o.name} | {_truncate(current, 40)} | {o.confidence}% | {result} |")
        lines.append("")

    log.info("Built run report: %d checked, %d changed", summary.total_checked, summary.changes_detected)
    return "\n".join(lines)


def write_run_report(content: str, reports_dir: Path = REPORTS_DIR) -> Path:
    reports_dir.mkdir(parents=True, exist_ok=True)
    date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    path = reports_dir / f"run_{date}.md"
    path.write_text(content, encoding="utf-8")
    log.info("Report written → %s", path)
    return path


def _evidence_from_dict(data: dict[str, Any]) -> Evidence:
    return Evidence(
        kind=data.get("kind", ""),
        source_link=data.get("source_link", ""),
        snippet_excerpt=data.get("snippet_excerpt", ""),
        extracted_role=data.get("extracted_role"),
        extracted_company=data.get("extracted_company"),
        matched_keywords=list(data.get("matched_keywords") or []),
        has_date_signal=bool(data.get("has_date_signal")),
    )


def summary_from_dict(data: dict[str, Any]) -> RunSummary:
    outcomes = []
    for raw in data.get("outcomes") or []:
        fields = {k: v for k, v in raw.items() if k != "evidence"}
        outcomes.append(
            CheckOutcome(**fields, evidence=[_evidence_from_dict(e) for e in raw.get("evidence") or []])
        )
    return RunSummary(
        started_at=data.get("started_at", ""),
        duration_seconds=float(data.get("duration_seconds", 0.0)),
        total_checked=int(data.get("total_checked", 0)),
        changes_detected=int(data.get("changes_detected", 0)),
        error_count=int(data.get("error_count", 0)),
        outcomes=outcomes,
        success=bool(data.get("success", True)),
        error=data.get("error"),
    )


def save_last_run(summary: RunSummary, path: Path = LAST_RUN_PATH) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(summary.to_dict(), indent=2), encoding="utf-8")
    log.debug("Last run status saved → %s", path)
    return path


def load_last_run(path: Path = LAST_RUN_PATH) -> RunSummary | None:
    if not path.exists():
        return None
    try:
        return summary_from_dict(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError, TypeError) as exc:
        log.warning("Could not read last run status %s: %s", path.name, exc)
        return None


def record_run(summary: RunSummary) -> None:
    """Post-run hook: write the markdown report and the last-run status."""
    write_run_report(build_run_report(summary))
    save_last_run(summary)
