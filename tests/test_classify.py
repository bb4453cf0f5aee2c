"""
Unit tests for issue classification

Tests focus on pure functions with no side effects.
"""

import pytest

from relnotes.jira.classify import classify_issue_type, detect_platform, is_approved
from relnotes.jira.models import IssueCategory, Platform, Task


# ============================================================================
# Tests for is_approved
# ============================================================================

@pytest.mark.parametrize("status", [
    "Approved",
    "APPROVED BY PO",
    "Test Passed",
    "Onaylandı",
    "Onay Bekliyor",
])
def test_is_approved_tokens(status):
    """Test English and Turkish approval statuses."""
    assert is_approved(Task(status=status))


@pytest.mark.parametrize("status", ["Rejected", "In Progress", "Test Failed", "Unknown"])
def test_is_approved_rejects_other_statuses(status):
    """Test statuses that are not approvals."""
    assert not is_approved(Task(status=status))


def test_is_approved_custom_tokens():
    """Test a configured token list."""
    task = Task(status="Ready for Release")
    assert is_approved(task, ["ready for release"])
    assert not is_approved(task)


# ============================================================================
# Tests for classify_issue_type
# ============================================================================

@pytest.mark.parametrize("issue_type, expected", [
    ("Bug", IssueCategory.DEFECT),
    ("bug", IssueCategory.DEFECT),
    ("Production Bug", IssueCategory.DEFECT),
    ("Story", IssueCategory.REQUEST),
    ("Task", IssueCategory.REQUEST),
    ("", IssueCategory.REQUEST),
    (None, IssueCategory.REQUEST),
])
def test_classify_issue_type(issue_type, expected):
    """Test defect detection from the raw issue type."""
    assert classify_issue_type(issue_type) == expected


# ============================================================================
# Tests for detect_platform
# ============================================================================

def test_detect_platform_android():
    """Test a set of Android keys."""
    tasks = [Task(original_key="ISCEPANDROID-1"), Task(original_key="iscepandroid-2")]
    assert detect_platform(tasks) == Platform.ANDROID


def test_detect_platform_android_wins_over_ios():
    """Test that a single Android key decides the platform."""
    tasks = [Task(original_key="ISCEPIPHONE-1"), Task(original_key="ISCEPANDROID-2")]
    assert detect_platform(tasks) == Platform.ANDROID


def test_detect_platform_ios():
    """Test a set of iPhone keys."""
    assert detect_platform([Task(original_key="ISCEPIPHONE-9")]) == Platform.IOS


@pytest.mark.parametrize("tasks", [[], [Task(original_key="WEB-1")], [Task()]])
def test_detect_platform_defaults_to_ios(tasks):
    """Test the default for empty or unrelated keys."""
    assert detect_platform(tasks) == Platform.IOS


def test_detect_platform_custom_prefix():
    """Test configured project prefixes."""
    tasks = [Task(original_key="DROID-3")]
    assert detect_platform(tasks, android_prefix="DROID") == Platform.ANDROID
