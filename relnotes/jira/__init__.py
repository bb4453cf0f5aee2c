"""
Jira export pipeline for release notes.

This module contains the steps that turn a Jira issue export into report data:
- Date parsing for localized Jira timestamps
- Task extraction from spreadsheet and HTML exports
- Approval, issue type and platform classification
- Build number resolution
- Cutoff filtering and epic grouping
"""

from relnotes.jira.classify import classify_issue_type, detect_platform, is_approved
from relnotes.jira.dates import JiraDateParser, parse_jira_date
from relnotes.jira.exceptions import (
    MalformedInput,
    ReadFailure,
    ReleaseNotesError,
    UnrecognizedDate,
)
from relnotes.jira.extract import (
    extract_from_html,
    extract_from_rows,
    load_tasks,
)
from relnotes.jira.filtering import ReleaseSession, epic_span, epic_spans
from relnotes.jira.models import IssueCategory, Platform, Task
from relnotes.jira.versions import resolve_display_version

__all__ = [
    'IssueCategory',
    'JiraDateParser',
    'MalformedInput',
    'Platform',
    'ReadFailure',
    'ReleaseNotesError',
    'ReleaseSession',
    'Task',
    'UnrecognizedDate',
    'classify_issue_type',
    'detect_platform',
    'epic_span',
    'epic_spans',
    'extract_from_html',
    'extract_from_rows',
    'is_approved',
    'load_tasks',
    'parse_jira_date',
    'resolve_display_version',
]
