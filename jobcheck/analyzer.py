"""Aggregate extracted candidates from search results into a change hypothesis."""
from __future__ import annotations

import re
from dataclasses import dataclass, fields
from typing import Any, Iterable

from jobcheck.extractor import extract_candidate
from jobcheck.log import get_logger
from jobcheck.models import (
    COMPANY_CHANGE,
    ROLE_CHANGE,
    CandidateMention,
    ChangeHypothesis,
    Evidence,
    Position,
    SearchResultItem,
)

log = get_logger(__name__)

CHANGE_KEYWORDS: list[str] = [
    "joins", "joined", "joining",
    "appointed", "named", "promoted",
    "new role", "new position", "new job",
    "now serves", "now works", "now leads",
    "starts as", "started as", "starting as",
    "announces", "announced",
    "hired as", "hired to",
    "moves to", "moved to",
    "takes over", "taking over",
    "becomes", "became",
]

_MONTHS = "january|february|march|april|may|june|july|august|september|october|november|december"
_MONTHS_SHORT = "jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec"

DATE_PATTERNS: list[re.Pattern] = [
    re.compile(rf"\b(?:{_MONTHS})\s+\d{{4}}\b", re.IGNORECASE),
    re.compile(rf"\b(?:{_MONTHS_SHORT})\.?\s+\d{{4}}\b", re.IGNORECASE),
    re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b"),
    re.compile(r"\bq[1-4]\s+\d{4}\b", re.IGNORECASE),
    re.compile(r"\b\d{4}\b"),
    re.compile(r"\brecently\b", re.IGNORECASE),
    re.compile(r"\bthis (?:month|year|week)\b", re.IGNORECASE),
    re.compile(r"\blast (?:month|year|week)\b", re.IGNORECASE),
]

SNIPPET_EXCERPT_LEN = 200


@dataclass(frozen=True)
class ScoringPolicy:
    """Weights that turn the strongest evidence into a 0-100 confidence.

    The defaults favour precision: one mention with a single keyword and no
    date scores 30 and is not reported.
    """

    threshold: int = 50
    keyword_weight: int = 20
    keyword_cap: int = 2
    date_weight: int = 30
    corroboration_weight: int = 20
    role_weight: int = 10
    max_confidence: int = 100

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> "ScoringPolicy":
        known = {f.name for f in fields(cls)}
        unknown = set(data or {}) - known
        if unknown:
            log.warning("Ignoring unknown scoring settings: %s", ", ".join(sorted(unknown)))
        return cls(**{k: int(v) for k, v in (data or {}).items() if k in known})

    def score(self, evidence: list[Evidence]) -> int:
        """Confidence for an evidence list already sorted strongest first."""
        if not evidence:
            return 0
        strongest = evidence[0]
        confidence = self.keyword_weight * min(len(strongest.matched_keywords), self.keyword_cap)
        if strongest.has_date_signal:
            confidence += self.date_weight
        if len(evidence) > 1:
            confidence += self.corroboration_weight
        if strongest.extracted_role:
            confidence += self.role_weight
        return min(confidence, self.max_confidence)

    def is_change(self, confidence: int) -> bool:
        return confidence >= self.threshold


DEFAULT_POLICY = ScoringPolicy()


def find_change_keywords(text: str) -> list[str]:
    low = text.lower()
    return [kw for kw in CHANGE_KEYWORDS if kw in low]


def has_date_signal(text: str) -> bool:
    return any(p.search(text) for p in DATE_PATTERNS)


def differs(extracted: str | None, current: str | None) -> bool:
    """True when *extracted* is neither contained in nor contains *current*."""
    if not extracted:
        return False
    a = extracted.lower()
    b = (current or "").lower()
    return a not in b and b not in a


def rank_evidence(evidence: Iterable[Evidence]) -> list[Evidence]:
    return sorted(evidence, key=lambda e: e.strength, reverse=True)


def analyze(
    results: list[SearchResultItem] | None,
    current_position: Position | None,
    person_name: str,
    policy: ScoringPolicy | None = None,
) -> ChangeHypothesis:
    policy = policy or DEFAULT_POLICY
    hypothesis = ChangeHypothesis()
    if not results:
        return hypothesis

    current = current_position or Position(company="", role="")
    evidence: list[Evidence] = []

    for item in results:
        title = item.title or ""
        snippet = item.snippet or ""
        combined = f"{title} {snippet}".lower()

        keywords = find_change_keywords(combined)
        dated = has_date_signal(combined)
        candidate = extract_candidate(title, snippet, person_name)

        if candidate.found:
            hypothesis.candidates.append(
                CandidateMention(
                    role=candidate.role,
                    company=candidate.company,
                    source_link=item.link or "",
                    has_change_signal=bool(keywords),
                    has_date_signal=dated,
                    matched_keywords=keywords,
                )
            )

        if not keywords:
            continue

        new_company = differs(candidate.company, current.company)
        new_role = differs(candidate.role, current.role)
        if new_company or new_role:
            evidence.append(
                Evidence(
                    kind=COMPANY_CHANGE if new_company else ROLE_CHANGE,
                    source_link=item.link or "",
                    snippet_excerpt=snippet[:SNIPPET_EXCERPT_LEN],
                    extracted_role=candidate.role,
                    extracted_company=candidate.company,
                    matched_keywords=keywords,
                    has_date_signal=dated,
                )
            )

    hypothesis.evidence = rank_evidence(evidence)
    hypothesis.confidence = policy.score(hypothesis.evidence)

    strongest = hypothesis.strongest
    if strongest and policy.is_change(hypothesis.confidence):
        hypothesis.detected = True
        hypothesis.proposed_role = strongest.extracted_role or current.role
        hypothesis.proposed_company = strongest.extracted_company or current.company

    log.debug(
        "Analyzed %d result(s) for %s: %d evidence, confidence %d",
        len(results), person_name, len(hypothesis.evidence), hypothesis.confidence,
    )
    return hypothesis
