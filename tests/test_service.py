"""
Unit tests for jobcheck/service.py wiring and the run_check CLI.
"""
import json
from functools import partial

import pytest

from conftest import make_person
from jobcheck import cli, service
from jobcheck.config import ScheduleSettings, Settings
from jobcheck.models import RunSummary
from jobcheck.search import MockSearch


@pytest.fixture
def wired(monkeypatch, tmp_path):
    recorded = []
    monkeypatch.setattr(service, "ensure_dirs", lambda: None)
    monkeypatch.setattr(service, "record_run", recorded.append)
    settings = Settings(
        check_delay_seconds=0,
        evidence_limit=2,
        scoring={"threshold": 70},
        schedule=ScheduleSettings(day="wed"),
    )
    coordinator = service.build_coordinator(
        settings,
        env_getter=lambda key: "true" if key == "JOBCHECK_MOCK_SEARCH" else "",
        people_path=tmp_path / "people.json",
        lock_path=tmp_path / "run.lock",
    )
    return coordinator, recorded, tmp_path


class TestBuildCoordinator:
    @pytest.mark.unit
    def test_settings_flow_into_components(self, wired):
        coordinator, _, _ = wired
        assert coordinator.delay_seconds == 0
        assert coordinator.checker.policy.threshold == 70
        assert coordinator.checker.evidence_limit == 2
        assert isinstance(coordinator.checker.search, MockSearch)

    @pytest.mark.unit
    def test_run_now_records_the_run(self, wired):
        coordinator, recorded, tmp_path = wired
        coordinator.store.ensure()
        (tmp_path / "people.json").write_text(
            json.dumps({"people": [make_person("a", "Ann Lee", "Globex", "CTO")]}),
            encoding="utf-8",
        )

        summary = service.run_now(coordinator)

        assert isinstance(summary, RunSummary)
        assert summary.total_checked == 1
        assert summary.changes_detected == 0
        assert recorded == [summary]
        assert service.get_status(coordinator).last_run is summary


class TestCli:
    @pytest.mark.unit
    def test_help(self, capsys):
        assert cli.main(["--help"]) == 0
        assert "--status" in capsys.readouterr().out

    @pytest.mark.unit
    def test_failed_run_exit_code(self, monkeypatch):
        failed = RunSummary(started_at="2024-03-17T02:00:00+00:00", success=False, error="boom")
        monkeypatch.setattr(service, "run_now", lambda: failed)
        assert cli.main([]) == 1

    @pytest.mark.unit
    def test_json_output(self, monkeypatch, capsys):
        ok = RunSummary(started_at="2024-03-17T02:00:00+00:00")
        monkeypatch.setattr(service, "run_now", lambda: ok)
        assert cli.main(["--json"]) == 0
        assert '"total_checked": 0' in capsys.readouterr().out

    @pytest.mark.unit
    def test_add_person(self, monkeypatch, tmp_path, capsys):
        people_path = tmp_path / "people.json"
        monkeypatch.setattr(service, "add_person", partial(service.add_person, people_path=people_path))

        code = cli.main(["--add", "Ann Lee", "Globex", "CTO", "--email", "boss@example.com, cto@example.com"])

        assert code == 0
        [person] = service.PeopleStore(people_path).get_all()
        assert person.name == "Ann Lee"
        assert (person.current_position.company, person.current_position.role) == ("Globex", "CTO")
        assert person.email_recipients == ["boss@example.com", "cto@example.com"]
        assert f"id {person.id}" in capsys.readouterr().out

    @pytest.mark.unit
    def test_add_person_role_is_optional(self, tmp_path):
        person = service.add_person("Bo Chan", "Initech", people_path=tmp_path / "people.json")
        assert person.current_position.role == "Unknown"
        assert person.email_recipients == []

    @pytest.mark.unit
    def test_add_needs_name_and_company(self, capsys):
        assert cli.main(["--add", "Ann Lee"]) == 2
        assert "--add NAME COMPANY" in capsys.readouterr().out
