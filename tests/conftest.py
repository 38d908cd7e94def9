"""
Pytest configuration and shared fixtures.

Everything here is offline: search, email and sleeping are faked, the
roster lives in a temporary JSON file.
"""
import json
import os
from datetime import date

os.environ.setdefault("JOBCHECK_LOG_FILE", "false")

import pytest

from jobcheck.models import NotificationResult, SearchResponse, SearchResultItem
from jobcheck.search.base import SearchBase
from jobcheck.store import PeopleStore

TODAY = date(2024, 3, 15)


def make_person(person_id, name, company, role, recipients=None, **extra):
    raw = {
        "id": person_id,
        "name": name,
        "imageUrl": None,
        "lastChecked": "01/01/2024",
        "currentJob": {"company": company, "role": role, "startDate": "01/06/2020"},
        "jobHistory": [],
        "emailRecipients": recipients or [],
    }
    raw.update(extra)
    return raw


def joins_item(link="https://news.example.com/realknife"):
    """One change mention: a single keyword, a date, an extractable role."""
    return SearchResultItem(
        title="Realknife news, March 2024",
        snippet="Jim Hanson joins Realknife, LLC as Talent Business Partner",
        link=link,
    )


class FakeSearch(SearchBase):
    """Returns canned items per person name; an Exception value is raised instead."""

    def __init__(self, by_name=None, default=None):
        self.by_name = by_name or {}
        self.default = default or []
        self.calls = []

    def search(self, name, company):
        self.calls.append((name, company))
        found = self.by_name.get(name, self.default)
        if isinstance(found, Exception):
            raise found
        return SearchResponse(query=f'"{name}" "{company}"', items=list(found))


class FakeNotifier:
    def __init__(self, result=None, error=None):
        self.result = result or NotificationResult(success=True, email_ids=["<id-1@jobcheck>"])
        self.error = error
        self.alerts = []

    def __call__(self, alert):
        self.alerts.append(alert)
        if self.error is not None:
            raise self.error
        return self.result


class SleepRecorder:
    def __init__(self, hook=None):
        self.calls = []
        self.hook = hook

    def __call__(self, seconds):
        self.calls.append(seconds)
        if self.hook is not None:
            self.hook()


@pytest.fixture
def people_path(tmp_path):
    return tmp_path / "people.json"


@pytest.fixture
def store(people_path):
    return PeopleStore(people_path, today=lambda: TODAY)


@pytest.fixture
def seed(people_path):
    """Write raw person dicts straight into the roster file."""

    def _seed(*people):
        people_path.write_text(json.dumps({"people": list(people)}), encoding="utf-8")

    return _seed


@pytest.fixture
def jim(seed, store):
    seed(make_person("p-1", "Jim Hanson", "Jackknife, Inc", "VP of HR", ["boss@example.com"]))
    return store.get_by_id("p-1")


@pytest.fixture
def no_retry_sleep(monkeypatch):
    monkeypatch.setattr("jobcheck.retry.time.sleep", lambda s: None)
