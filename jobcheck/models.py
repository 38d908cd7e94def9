"""Data models for tracked people, search evidence and run results."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any

DATE_FORMAT = "%d/%m/%Y"


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


@dataclass
class Position:
    company: str
    role: str
    start_date: str | None = None
    end_date: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Position":
        data = data or {}
        return cls(
            company=data.get("company") or "",
            role=data.get("role") or "",
            start_date=data.get("startDate"),
            end_date=data.get("endDate"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "company": self.company,
            "role": self.role,
            "startDate": self.start_date,
        }
        if self.end_date is not None:
            out["endDate"] = self.end_date
        return out

    def same_job(self, other: "Position") -> bool:
        return self.company == other.company and self.role == other.role


@dataclass
class TrackedPerson:
    id: str
    name: str
    current_position: Position
    job_history: list[Position] = field(default_factory=list)
    email_recipients: list[str] = field(default_factory=list)
    last_checked: str | None = None
    image_url: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackedPerson":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            current_position=Position.from_dict(data.get("currentJob")),
            job_history=[Position.from_dict(p) for p in data.get("jobHistory") or []],
            email_recipients=list(data.get("emailRecipients") or []),
            last_checked=data.get("lastChecked"),
            image_url=data.get("imageUrl"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "imageUrl": self.image_url,
            "lastChecked": self.last_checked,
            "currentJob": self.current_position.to_dict(),
            "jobHistory": [p.to_dict() for p in self.job_history],
            "emailRecipients": list(self.email_recipients),
        }


@dataclass
class SearchResultItem:
    title: str = ""
    snippet: str = ""
    link: str = ""


@dataclass
class SearchResponse:
    query: str
    items: list[SearchResultItem] = field(default_factory=list)
    knowledge_graph_role: str | None = None


@dataclass
class ExtractedCandidate:
    role: str | None = None
    company: str | None = None

    @property
    def found(self) -> bool:
        return bool(self.role or self.company)


COMPANY_CHANGE = "company_change"
ROLE_CHANGE = "role_change"


@dataclass
class Evidence:
    kind: str
    source_link: str
    snippet_excerpt: str
    extracted_role: str | None
    extracted_company: str | None
    matched_keywords: list[str] = field(default_factory=list)
    has_date_signal: bool = False

    @property
    def strength(self) -> tuple[int, bool]:
        """Sort key: keyword count first, date signal breaks ties."""
        return (len(self.matched_keywords), self.has_date_signal)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CandidateMention:
    """Every extracted (role, company) pair, kept for inspection."""

    role: str | None
    company: str | None
    source_link: str
    has_change_signal: bool
    has_date_signal: bool
    matched_keywords: list[str] = field(default_factory=list)


@dataclass
class ChangeHypothesis:
    detected: bool = False
    confidence: int = 0
    proposed_role: str | None = None
    proposed_company: str | None = None
    evidence: list[Evidence] = field(default_factory=list)
    candidates: list[CandidateMention] = field(default_factory=list)

    @property
    def strongest(self) -> Evidence | None:
        return self.evidence[0] if self.evidence else None


@dataclass
class CheckOutcome:
    person_id: str
    name: str
    changed: bool = False
    previous_role: str | None = None
    previous_company: str | None = None
    new_role: str | None = None
    new_company: str | None = None
    confidence: int = 0
    evidence: list[Evidence] = field(default_factory=list)
    error: str | None = None
    notified: bool = False
    notification_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RunSummary:
    started_at: str
    duration_seconds: float = 0.0
    total_checked: int = 0
    changes_detected: int = 0
    error_count: int = 0
    outcomes: list[CheckOutcome] = field(default_factory=list)
    success: bool = True
    error: str | None = None

    @classmethod
    def from_outcomes(
        cls, started_at: str, duration_seconds: float, outcomes: list[CheckOutcome]
    ) -> "RunSummary":
        return cls(
            started_at=started_at,
            duration_seconds=round(duration_seconds, 1),
            total_checked=len(outcomes),
            changes_detected=sum(1 for o in outcomes if o.changed),
            error_count=sum(1 for o in outcomes if o.error),
            outcomes=outcomes,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RunSkipped:
    skipped: bool = True
    message: str = "Check already in progress"


@dataclass
class RunStatus:
    running: bool
    last_run: RunSummary | None = None


@dataclass
class ChangeAlert:
    person_name: str
    previous_role: str | None
    previous_company: str | None
    new_role: str | None
    new_company: str | None
    confidence: int
    evidence: list[Evidence] = field(default_factory=list)
    recipients: list[str] = field(default_factory=list)


@dataclass
class NotificationResult:
    success: bool
    email_ids: list[str] = field(default_factory=list)
    error: str | None = None
