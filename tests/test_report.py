"""
Unit tests for jobcheck/report.py and the status lookup in jobcheck/service.py
"""
import pytest

from jobcheck.models import COMPANY_CHANGE, CheckOutcome, Evidence, RunSummary
from jobcheck.report import build_run_report, load_last_run, save_last_run, write_run_report
from jobcheck.service import get_status


def _summary():
    changed = CheckOutcome(
        person_id="a", name="Ann Lee", changed=True,
        previous_role="VP of HR", previous_company="Jackknife, Inc",
        new_role="Talent Business Partner", new_company="Realknife, LLC",
        confidence=60, notification_error="No recipients configured",
        evidence=[Evidence(
            kind=COMPANY_CHANGE, source_link="https://e.com/1",
            snippet_excerpt="Ann Lee joins Realknife, LLC as Talent Business Partner",
            extracted_role="Talent Business Partner", extracted_company="Realknife, LLC",
            matched_keywords=["joins"], has_date_signal=True,
        )],
    )
    failed = CheckOutcome(person_id="b", name="Bo Chan", previous_role="CFO",
                          previous_company="Initech", error="Serper API error: 502")
    quiet = CheckOutcome(person_id="c", name="Cy Park", previous_role="CTO", previous_company="Globex")
    return RunSummary.from_outcomes("2024-03-17T02:00:00+00:00", 4.26, [changed, failed, quiet])


class TestBuildRunReport:
    @pytest.mark.unit
    def test_counts_and_sections(self):
        report = build_run_report(_summary())
        assert report.startswith("# Job Change Check — 2024-03-17")
        assert "**3** checked | **1** changed | **1** errors | 4.3s" in report
        assert "### Ann Lee" in report
        assert "- **New:** Talent Business Partner @ Realknife, LLC" in report
        assert "_Alert not sent: No recipients configured_" in report
        assert "| 2 | Bo Chan | CFO @ Initech | 0% | Error: Serper API error: 502 |" in report
        assert "| 3 | Cy Park | CTO @ Globex | 0% | No change |" in report

    @pytest.mark.unit
    def test_failed_run(self):
        summary = RunSummary(started_at="2024-03-17T02:00:00+00:00", success=False, error="roster unreadable")
        assert "**Run failed:** roster unreadable" in build_run_report(summary)

    @pytest.mark.unit
    def test_write_report(self, tmp_path):
        path = write_run_report("# hi", reports_dir=tmp_path)
        assert path.parent == tmp_path
        assert path.name.startswith("run_")
        assert path.read_text(encoding="utf-8") == "# hi"


class TestLastRun:
    @pytest.mark.unit
    def test_saved_status_reads_back(self, tmp_path):
        path = tmp_path / "last_run.json"
        summary = _summary()
        save_last_run(summary, path)
        assert load_last_run(path) == summary

    @pytest.mark.unit
    def test_missing_or_corrupt(self, tmp_path):
        path = tmp_path / "last_run.json"
        assert load_last_run(path) is None
        path.write_text("[1, 2", encoding="utf-8")
        assert load_last_run(path) is None

    @pytest.mark.unit
    def test_get_status_from_disk(self, tmp_path):
        last_run, lock = tmp_path / "last_run.json", tmp_path / "run.lock"
        status = get_status(last_run_path=last_run, lock_path=lock)
        assert not status.running
        assert status.last_run is None

        save_last_run(_summary(), last_run)
        status = get_status(last_run_path=last_run, lock_path=lock)
        assert status.last_run.changes_detected == 1
