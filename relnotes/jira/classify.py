"""
Issue classification: approval state, issue category and platform.
"""

import logging
from typing import Iterable, Optional, Sequence

from relnotes.jira.models import IssueCategory, Platform, Task

logger = logging.getLogger(__name__)

# English workflow names and the Turkish "Onaylandı"/"Onay Bekliyor" family
APPROVED_STATUS_TOKENS = ("approved", "test passed", "onay")

ANDROID_KEY_PREFIX = "ISCEPANDROID"
IOS_KEY_PREFIX = "ISCEPIPHONE"

DEFECT_TYPE_TOKEN = "bug"


def is_approved(task: Task, tokens: Optional[Sequence[str]] = None) -> bool:
    """
    Check whether a task's status marks it as approved or passed.

    Args:
        task: Task to check
        tokens: Lower-case status fragments counted as approval

    Returns:
        True if the status contains any of the tokens, ignoring case
    """
    if tokens is None:
        tokens = APPROVED_STATUS_TOKENS
    status = task.status.lower()
    return any(token in status for token in tokens)


def classify_issue_type(issue_type: Optional[str]) -> IssueCategory:
    """Map a raw Jira issue type ("Bug", "Story", "Hata/Bug", ...) to a category."""
    if issue_type and DEFECT_TYPE_TOKEN in issue_type.lower():
        return IssueCategory.DEFECT
    return IssueCategory.REQUEST


def detect_platform(
    tasks: Iterable[Task],
    android_prefix: str = ANDROID_KEY_PREFIX,
    ios_prefix: str = IOS_KEY_PREFIX,
) -> Platform:
    """
    Decide the release platform from the project prefixes of all issue keys.

    Any Android key wins; otherwise any iPhone key means iOS; an export with
    neither defaults to iOS.
    """
    keys = [(task.original_key or "").upper() for task in tasks]

    if any(android_prefix.upper() in key for key in keys):
        return Platform.ANDROID
    if any(ios_prefix.upper() in key for key in keys):
        return Platform.IOS

    logger.debug("No platform prefix found in issue keys, defaulting to iOS")
    return Platform.IOS
