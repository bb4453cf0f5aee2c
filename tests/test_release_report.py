"""
Unit tests for the release report

Tests cover document rendering, the task table and the command line.
"""

import pytest
import pandas as pd
from datetime import datetime

from relnotes.config import ReleaseSettings
from relnotes.jira.dates import parse_jira_date
from relnotes.jira.models import IssueCategory, Task
from relnotes.release_report import (
    CUTOFF_NOTE,
    HIDDEN_CELL,
    build_session,
    build_task_table,
    main,
    render_release_html,
    save_task_table,
)


# ============================================================================
# Test Fixtures
# ============================================================================

@pytest.fixture
def tasks():
    return [
        Task(backlog_id="CCRSP-1", epic_name="Cards", summary="Virtual card",
             status="Approved", fix_build="5.2.0.9",
             status_changed_at="20/Nov/25 10:00 AM", original_key="ISCEPIPHONE-1"),
        Task(backlog_id="CCRSP-2", epic_name="Cards", summary="Card limits <beta>",
             status="Approved", fix_build="5.2.0.14",
             status_changed_at="28/Nov/25 3:39 PM", original_key="ISCEPIPHONE-2"),
        Task(backlog_id="-", external_id="ISCEPEXTRC-7", epic_name="Accounts",
             summary="Balance rounding", status="Test Passed",
             issue_category=IssueCategory.DEFECT,
             status_changed_at="25/Nov/25 1:00 PM", original_key="ISCEPIPHONE-3"),
        Task(backlog_id="CCRSP-9", epic_name="Cards", summary="Not ready",
             status="In Progress", fix_build="6.0.0.0"),
    ]


@pytest.fixture
def settings():
    return ReleaseSettings(browse_url="https://jira.example/browse/", project_name="Mobile")


@pytest.fixture
def session(tasks, settings):
    return build_session(tasks, settings)


# ============================================================================
# Tests for render_release_html
# ============================================================================

class TestRenderReleaseHtml:
    """Test suite for the release document."""

    def test_version_info(self, session, settings):
        """Test part A values."""
        document = render_release_html(session, settings, today=datetime(2025, 12, 1))

        assert "01.12.2025" in document
        assert "Mobile" in document
        assert "5.2.0.14" in document
        assert "IOS" in document
        assert "6.0.0.0" not in document

    def test_requests_grouped_by_epic(self, session, settings):
        """Test the epic cell spanning both card requests."""
        document = render_release_html(session, settings)

        assert document.count('rowspan="2"') == 1
        assert 'href="https://jira.example/browse/CCRSP-1"' in document
        assert "Not ready" not in document

    def test_summaries_are_escaped(self, session, settings):
        """Test HTML escaping of free text."""
        document = render_release_html(session, settings)
        assert "Card limits &lt;beta&gt;" in document

    def test_defect_rows(self, session, settings):
        """Test defects listed by external id."""
        document = render_release_html(session, settings)

        assert 'href="https://jira.example/browse/ISCEPEXTRC-7"' in document
        assert "Balance rounding" in document

    def test_no_cutoff_note_without_cutoff(self, session, settings):
        """Test that the gray-row legend only appears with a cutoff."""
        document = render_release_html(session, settings)

        assert CUTOFF_NOTE not in document
        assert HIDDEN_CELL not in document

    def test_hidden_rows_grayed_out(self, session, settings):
        """Test gray rendering and version after a cutoff."""
        filtered = session.with_cutoff(parse_jira_date("25/Nov/25 1:00 PM"))
        document = render_release_html(filtered, settings)

        assert CUTOFF_NOTE in document
        assert HIDDEN_CELL in document
        assert "Virtual card" in document
        assert "5.2.0.14" in document

    def test_empty_session(self, settings):
        """Test placeholders for an export without approved tasks."""
        document = render_release_html(build_session([], settings), settings)

        assert "Talepler" in document
        assert "Tamamlanan Kayıtlar" in document
        assert ">-<" in document


# ============================================================================
# Tests for the task table
# ============================================================================

def test_build_task_table(session):
    """Test rows, spans and hidden flags of the exported table."""
    filtered = session.with_cutoff(parse_jira_date("25/Nov/25 1:00 PM"))
    df = build_task_table(filtered)

    assert list(df['Backlog ID']) == ['CCRSP-2', '-', 'CCRSP-1']
    assert list(df['Hidden']) == [False, True, True]
    assert list(df['Epic Span']) == [1, 1, 1]
    assert list(df['Category']) == ['Request', 'Defect', 'Request']


def test_build_task_table_empty(settings):
    """Test that an empty session still has all columns."""
    df = build_task_table(build_session([], settings))

    assert df.empty
    assert 'Epic Span' in df.columns


def test_save_task_table_csv(tmp_path, session):
    """Test CSV output of the task table."""
    path = tmp_path / "tasks.csv"
    save_task_table(build_task_table(session), path)

    df = pd.read_csv(path)
    assert len(df) == 3
    assert list(df['Epic Span']) == [1, 2, 0]


# ============================================================================
# Tests for the command line
# ============================================================================

@pytest.fixture
def export_csv(tmp_path):
    path = tmp_path / "export.csv"
    pd.DataFrame([
        {'Issue key': 'ISCEPANDROID-1', 'Summary': 'New login', 'Status': 'Approved',
         'Parent summary': 'Auth', 'Custom field (Fix Build)': '1.2.3.4',
         'Linked Issues': 'CCRSP-10', 'Status Category Changed': '28/Nov/25 3:39 PM'},
        {'Issue key': 'ISCEPANDROID-2', 'Summary': 'Old login', 'Status': 'Rejected',
         'Parent summary': 'Auth', 'Custom field (Fix Build)': '9.9.9.9',
         'Linked Issues': 'CCRSP-11', 'Status Category Changed': '29/Nov/25 3:39 PM'},
    ]).to_csv(path, index=False)
    return path


def test_main_writes_outputs(tmp_path, export_csv):
    """Test a full run producing the document and the table."""
    out = tmp_path / "out"

    code = main([str(export_csv), "-c", str(tmp_path / "none.yaml"), "-o", str(out)])

    assert code == 0
    document = (out / "release_notes.html").read_text(encoding="utf-8")
    assert "1.2.3.4" in document
    assert "ANDROID" in document
    assert "Old login" not in document
    assert pd.read_excel(out / "release_tasks.xlsx")['Backlog ID'].tolist() == ['CCRSP-10']


def test_main_with_cutoff(tmp_path, export_csv):
    """Test a run with a cutoff hiding the only approved task."""
    out = tmp_path / "out"

    code = main([str(export_csv), "-o", str(out), "--cutoff", "28/Kas/25 3:39 ÖS"])

    assert code == 0
    document = (out / "release_notes.html").read_text(encoding="utf-8")
    assert CUTOFF_NOTE in document
    assert "1.2.3.4" not in document


def test_main_unrecognized_cutoff(tmp_path, export_csv):
    """Test that an unparseable cutoff stops the run."""
    code = main([str(export_csv), "-o", str(tmp_path / "out"), "--cutoff", "someday"])

    assert code == 1
    assert not (tmp_path / "out" / "release_notes.html").exists()


def test_main_missing_export(tmp_path):
    """Test the exit code for an unreadable export."""
    assert main([str(tmp_path / "missing.csv"), "-o", str(tmp_path / "out")]) == 1


def test_main_malformed_export(tmp_path):
    """Test the exit code for an HTML file without a table."""
    path = tmp_path / "export.html"
    path.write_text("<html><body>No table</body></html>", encoding="utf-8")

    assert main([str(path), "-o", str(tmp_path / "out")]) == 1


def test_main_binary_xls_export(tmp_path):
    """Test the exit code for a legacy binary workbook."""
    path = tmp_path / "export.xls"
    path.write_bytes(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 504)

    assert main([str(path), "-o", str(tmp_path / "out")]) == 1


def test_main_invalid_config(tmp_path, export_csv):
    """Test the exit code for a broken config file."""
    config = tmp_path / "config.yaml"
    config.write_text("approved_statuses: []\n", encoding="utf-8")

    assert main([str(export_csv), "-c", str(config), "-o", str(tmp_path / "out")]) == 1
