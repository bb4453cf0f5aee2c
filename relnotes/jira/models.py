"""
Canonical records built from a Jira export.
"""

from dataclasses import dataclass
from enum import Enum

NOT_AVAILABLE = "N/A"
NO_REFERENCE = "-"
NO_EPIC = "No Epic"
UNSCHEDULED = "Unscheduled"
GENERAL_BUILD = "General"
UNKNOWN_STATUS = "Unknown"


class IssueCategory(Enum):
    REQUEST = "Request"
    DEFECT = "Defect"


class Platform(Enum):
    ANDROID = "ANDROID"
    IOS = "IOS"


@dataclass(frozen=True)
class Task:
    """A single issue row, normalized and read-only."""

    backlog_id: str = NO_REFERENCE
    external_id: str = NO_REFERENCE
    summary: str = NOT_AVAILABLE
    epic_name: str = NO_EPIC
    fix_version: str = UNSCHEDULED
    fix_build: str = GENERAL_BUILD
    status: str = UNKNOWN_STATUS
    issue_category: IssueCategory = IssueCategory.REQUEST
    original_key: str = NOT_AVAILABLE
    status_changed_at: str = ""

    @property
    def is_defect(self) -> bool:
        return self.issue_category is IssueCategory.DEFECT
