"""One person's cycle: search → analyze → persist → notify."""
from __future__ import annotations

from datetime import date
from typing import Callable

from jobcheck.analyzer import DEFAULT_POLICY, ScoringPolicy, analyze
from jobcheck.errors import PersistenceError
from jobcheck.log import get_logger
from jobcheck.models import (
    ChangeAlert,
    CheckOutcome,
    NotificationResult,
    Position,
    TrackedPerson,
    format_date,
)
from jobcheck.search.base import SearchBase
from jobcheck.store import PeopleStore

log = get_logger(__name__)

Notify = Callable[[ChangeAlert], NotificationResult]


class PersonChecker:
    """Checks a single tracked person; never raises for that person's failures.

    Search and persistence failures end up in ``CheckOutcome.error`` and the
    person counts as unchanged. A notification failure after a successful
    update is kept in ``notification_error``; the update stands.
    """

    def __init__(
        self,
        search: SearchBase,
        store: PeopleStore,
        notify: Notify,
        *,
        policy: ScoringPolicy | None = None,
        evidence_limit: int = 3,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.search = search
        self.store = store
        self.notify = notify
        self.policy = policy or DEFAULT_POLICY
        self.evidence_limit = evidence_limit
        self._today = today

    def _save(self, person: TrackedPerson, new_position: Position | None = None) -> TrackedPerson:
        updated = self.store.update(person.id, current_position=new_position)
        if updated is None:
            raise PersistenceError(f"Person {person.id} not found")
        return updated

    def check(self, person: TrackedPerson) -> CheckOutcome:
        current = person.current_position
        outcome = CheckOutcome(
            person_id=person.id,
            name=person.name,
            previous_role=current.role,
            previous_company=current.company,
        )

        try:
            response = self.search.search(person.name, current.company or "")
            hypothesis = analyze(response.items, current, person.name, self.policy)
            outcome.confidence = hypothesis.confidence
            outcome.evidence = hypothesis.evidence[: self.evidence_limit]

            if hypothesis.detected:
                new_position = Position(
                    company=hypothesis.proposed_company or current.company,
                    role=hypothesis.proposed_role or current.role,
                    start_date=format_date(self._today()),
                )
                self._save(person, new_position)
                outcome.changed = True
                outcome.new_role = new_position.role
                outcome.new_company = new_position.company
                log.info(
                    "Job change detected for %s (confidence: %d%%): %s at %s → %s at %s",
                    person.name, hypothesis.confidence,
                    current.role, current.company,
                    new_position.role, new_position.company,
                )
            else:
                self._save(person)
        except Exception as exc:
            outcome.error = str(exc) or exc.__class__.__name__
            outcome.changed = False
            log.error("Error checking %s: %s", person.name, outcome.error)
            return outcome

        if outcome.changed:
            self._send_alert(person, outcome)
        return outcome

    def _send_alert(self, person: TrackedPerson, outcome: CheckOutcome) -> None:
        alert = ChangeAlert(
            person_name=person.name,
            previous_role=outcome.previous_role,
            previous_company=outcome.previous_company,
            new_role=outcome.new_role,
            new_company=outcome.new_company,
            confidence=outcome.confidence,
            evidence=outcome.evidence,
            recipients=person.email_recipients,
        )
        try:
            result = self.notify(alert)
        except Exception as exc:
            outcome.notification_error = str(exc) or exc.__class__.__name__
            log.error("Error sending alert for %s: %s", person.name, outcome.notification_error)
            return

        if result.success:
            outcome.notified = True
            if result.error:
                outcome.notification_error = result.error
            log.info("Alert sent for %s (%d email(s))", person.name, len(result.email_ids))
        else:
            outcome.notification_error = result.error or "Notification failed"
            log.warning("Alert not sent for %s: %s", person.name, outcome.notification_error)
