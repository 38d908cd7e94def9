"""Tracked-people roster kept in a JSON file with advisory file locking."""
from __future__ import annotations

import fcntl
import json
import uuid
from datetime import date
from pathlib import Path
from typing import Any, Callable

from jobcheck.errors import PersistenceError
from jobcheck.log import get_logger
from jobcheck.models import Position, TrackedPerson, format_date

log = get_logger(__name__)


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    try:
        op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(f.fileno(), op)
    except (OSError, AttributeError):
        pass


def _unlock(f) -> None:
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except (OSError, AttributeError):
        pass


class PeopleStore:
    """Key-addressed store of TrackedPerson records.

    ``update`` owns the history rollover: when the supplied current position
    differs in company or role from the stored one, the stored position is
    closed with an end date and prepended to the history.
    """

    def __init__(self, path: Path, *, today: Callable[[], date] = date.today) -> None:
        self.path = Path(path)
        self._today = today

    def ensure(self) -> None:
        if self.path.exists():
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                _lock(f)
                json.dump({"people": []}, f, indent=2)
                _unlock(f)
        except OSError as exc:
            raise PersistenceError(f"Cannot create roster {self.path}: {exc}") from exc
        log.info("Created people roster → %s", self.path.name)

    def _load(self, f) -> list[dict[str, Any]]:
        raw = f.read()
        if not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Roster {self.path.name} is not valid JSON: {exc}") from exc
        return list(data.get("people") or [])

    def _read_all(self) -> list[dict[str, Any]]:
        self.ensure()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                _lock(f, exclusive=False)
                try:
                    return self._load(f)
                finally:
                    _unlock(f)
        except OSError as exc:
            raise PersistenceError(f"Cannot read roster {self.path}: {exc}") from exc

    def _mutate(self, change: Callable[[list[dict[str, Any]]], Any]) -> Any:
        """Read-modify-write under one exclusive lock; returns what *change* returns."""
        self.ensure()
        try:
            with open(self.path, "r+", encoding="utf-8") as f:
                _lock(f)
                try:
                    people = self._load(f)
                    result = change(people)
                    f.seek(0)
                    f.truncate()
                    json.dump({"people": people}, f, indent=2)
                finally:
                    _unlock(f)
        except OSError as exc:
            raise PersistenceError(f"Cannot write roster {self.path}: {exc}") from exc
        return result

    def get_all(self) -> list[TrackedPerson]:
        return [TrackedPerson.from_dict(p) for p in self._read_all()]

    def get_by_id(self, person_id: str) -> TrackedPerson | None:
        for p in self._read_all():
            if str(p.get("id")) == person_id:
                return TrackedPerson.from_dict(p)
        return None

    def add(
        self,
        name: str,
        company: str,
        role: str | None = None,
        email_recipients: list[str] | None = None,
    ) -> TrackedPerson:
        today = format_date(self._today())
        person = TrackedPerson(
            id=str(uuid.uuid4()),
            name=name,
            current_position=Position(company=company, role=role or "Unknown", start_date=today),
            email_recipients=list(email_recipients or []),
            last_checked=today,
        )
        self._mutate(lambda people: people.append(person.to_dict()))
        log.info("Tracking %s (%s at %s)", name, person.current_position.role, company)
        return person

    def update(
        self,
        person_id: str,
        *,
        current_position: Position | None = None,
        email_recipients: list[str] | None = None,
    ) -> TrackedPerson | None:
        """Apply the given fields and refresh lastChecked; None when the id is unknown."""
        today = format_date(self._today())

        def change(people: list[dict[str, Any]]) -> TrackedPerson | None:
            for i, raw in enumerate(people):
                if str(raw.get("id")) != person_id:
                    continue
                person = TrackedPerson.from_dict(raw)
                if current_position is not None:
                    if not current_position.same_job(person.current_position):
                        closed = Position(
                            company=person.current_position.company,
                            role=person.current_position.role,
                            start_date=person.current_position.start_date,
                            end_date=today,
                        )
                        person.job_history.insert(0, closed)
                    person.current_position = current_position
                if email_recipients is not None:
                    person.email_recipients = list(email_recipients)
                person.last_checked = today
                people[i] = {**raw, **person.to_dict()}
                return person
            return None

        updated = self._mutate(change)
        if updated is None:
            log.debug("Update skipped: no person with id %s", person_id)
        return updated
