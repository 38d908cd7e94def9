"""Pull a candidate (role, company) pair out of one search result."""
from __future__ import annotations

import re
from dataclasses import dataclass

from jobcheck.models import ExtractedCandidate

# "Jane Doe - VP of Engineering at Meta - LinkedIn" / "... at Meta | Profile"
PROFILE_TITLE_PATTERN = re.compile(
    r"^.+?\s*[-–]\s*(.+?)\s+at\s+(.+?)(?:\s*\||\s*-\s*LinkedIn|$)",
    re.IGNORECASE,
)

_END = r"(?:\.|,|$)"
_PIPE_TAIL = re.compile(r"\s*\|.*$")
_LINKEDIN_TAIL = re.compile(r"\s*-\s*LinkedIn.*$", re.IGNORECASE)
_QUOTES = re.compile(r"[\"“”]")


@dataclass(frozen=True)
class ExtractionTemplate:
    """A snippet phrasing plus which capture group holds the role and which the company."""

    name: str
    pattern: re.Pattern
    role_group: int
    company_group: int

    def match(self, text: str) -> ExtractedCandidate | None:
        m = self.pattern.search(text)
        if not m:
            return None
        return ExtractedCandidate(
            role=m.group(self.role_group).strip(),
            company=m.group(self.company_group).strip(),
        )


def _template(name: str, regex: str, role_group: int, company_group: int) -> ExtractionTemplate:
    return ExtractionTemplate(name, re.compile(regex, re.IGNORECASE), role_group, company_group)


# Order matters: first match wins, so the looser phrasings go last.
SNIPPET_TEMPLATES: list[ExtractionTemplate] = [
    _template("joins", r"\bjoins?\s+(.+?)\s+as\s+(.+?)" + _END, 2, 1),
    _template(
        "appointed",
        r"\b(?:appointed|named|promoted to)\s+(.+?)\s+(?:at|of)\s+(.+?)" + _END,
        1, 2,
    ),
    _template("new", r"\bnew\s+(.+?)\s+at\s+(.+?)" + _END, 1, 2),
    _template("is_now", r"\bis\s+now\s+(.+?)\s+at\s+(.+?)" + _END, 1, 2),
    _template("starts_as", r"\bstarts?\s+as\s+(.+?)\s+at\s+(.+?)" + _END, 1, 2),
]


def normalize_field(value: str | None) -> str | None:
    """Drop trailing "| ..." segments, LinkedIn suffixes and quote marks."""
    if not value:
        return None
    value = _PIPE_TAIL.sub("", value)
    value = _LINKEDIN_TAIL.sub("", value)
    value = _QUOTES.sub("", value).strip()
    return value or None


def _overlaps_name(role: str, person_name: str) -> bool:
    name = person_name.strip().lower()
    if not name:
        return False
    low = role.lower()
    return name in low or low in name


def match_profile_title(title: str) -> ExtractedCandidate | None:
    m = PROFILE_TITLE_PATTERN.match(title or "")
    if not m:
        return None
    return ExtractedCandidate(role=m.group(1).strip(), company=m.group(2).strip())


def match_snippet(snippet: str) -> ExtractedCandidate | None:
    for template in SNIPPET_TEMPLATES:
        found = template.match(snippet or "")
        if found:
            return found
    return None


def extract_candidate(title: str, snippet: str, person_name: str) -> ExtractedCandidate:
    """Best-effort (role, company) for one result; fields are None when nothing matched."""
    candidate = match_profile_title(title) or ExtractedCandidate()

    if not candidate.role:
        from_snippet = match_snippet(snippet)
        if from_snippet:
            candidate = from_snippet

    role = normalize_field(candidate.role)
    company = normalize_field(candidate.company)

    if role and _overlaps_name(role, person_name):
        role = None

    return ExtractedCandidate(role=role, company=company)
