"""
Release Session Filtering

A ReleaseSession holds the tasks of one export plus an optional cutoff
instant. Tasks whose status changed at or before the cutoff were already
reported in an earlier release note; they stay in every list but are
flagged hidden so the report can gray them out.

Sessions are immutable: setting or clearing a cutoff returns a new session.
All lists are computed from the task tuple and the cutoff on each call.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Sequence, Tuple

from relnotes.jira.classify import (
    ANDROID_KEY_PREFIX,
    APPROVED_STATUS_TOKENS,
    IOS_KEY_PREFIX,
    detect_platform,
    is_approved,
)
from relnotes.jira.dates import parse_jira_date
from relnotes.jira.exceptions import UnrecognizedDate
from relnotes.jira.models import Platform, Task
from relnotes.jira.versions import resolve_display_version

logger = logging.getLogger(__name__)


# ============================================================================
# Epic grouping
# ============================================================================

def epic_span(rows: Sequence[Task], index: int) -> int:
    """
    Row span of the epic cell at index in a list sorted by epic name.

    The first row of a run of equal epic names gets the run length; every
    following row of the run gets 0.
    """
    current = rows[index].epic_name
    if index > 0 and rows[index - 1].epic_name == current:
        return 0

    span = 1
    for row in rows[index + 1:]:
        if row.epic_name != current:
            break
        span += 1
    return span


def epic_spans(rows: Sequence[Task]) -> List[int]:
    return [epic_span(rows, i) for i in range(len(rows))]


# ============================================================================
# Session
# ============================================================================

@dataclass(frozen=True)
class ReleaseSession:
    """Tasks of one export plus the active cutoff (None when no filter)."""

    tasks: Tuple[Task, ...] = ()
    cutoff: Optional[int] = None
    approved_statuses: Tuple[str, ...] = APPROVED_STATUS_TOKENS
    android_key_prefix: str = ANDROID_KEY_PREFIX
    ios_key_prefix: str = IOS_KEY_PREFIX
    date_parser: Callable[[str], int] = field(default=parse_jira_date, compare=False)

    @classmethod
    def from_tasks(cls, tasks, **options) -> "ReleaseSession":
        return cls(tasks=tuple(tasks), **options)

    # -- transitions ---------------------------------------------------------

    def with_cutoff(self, instant: int) -> "ReleaseSession":
        """Return a session hiding every task changed at or before instant."""
        logger.info(f"Cutoff set to {instant}")
        return replace(self, cutoff=instant)

    def cleared(self) -> "ReleaseSession":
        return replace(self, cutoff=None)

    def cutoff_from_text(self, date_text: str) -> int:
        """
        Parse a date picked from the history list into a cutoff instant.

        Raises:
            UnrecognizedDate: If the date text cannot be parsed
        """
        instant = self.date_parser(date_text)
        if instant <= 0:
            raise UnrecognizedDate(date_text)
        return instant

    # -- per task ------------------------------------------------------------

    def changed_at(self, task: Task) -> int:
        return self.date_parser(task.status_changed_at)

    def is_approved(self, task: Task) -> bool:
        return is_approved(task, self.approved_statuses)

    def is_hidden(self, task: Task) -> bool:
        if self.cutoff is None:
            return False
        return self.changed_at(task) <= self.cutoff

    # -- views ---------------------------------------------------------------

    def approved_tasks(self) -> List[Task]:
        return [task for task in self.tasks if self.is_approved(task)]

    def visible_list(self) -> List[Task]:
        """
        Approved tasks for the report: visible rows first, hidden rows last,
        each group ordered by epic name. Hidden rows are never dropped.
        """
        return sorted(
            self.approved_tasks(),
            key=lambda task: (self.is_hidden(task), task.epic_name),
        )

    def active_tasks(self) -> List[Task]:
        """Visible-list rows not hidden by the cutoff."""
        return [task for task in self.visible_list() if not self.is_hidden(task)]

    def request_tasks(self) -> List[Task]:
        return [task for task in self.visible_list() if not task.is_defect]

    def defect_tasks(self) -> List[Task]:
        return [task for task in self.visible_list() if task.is_defect]

    def history_list(self) -> List[Task]:
        """Approved tasks, most recent status change first."""
        return sorted(self.approved_tasks(), key=self.changed_at, reverse=True)

    # -- derived values ------------------------------------------------------

    @property
    def display_version(self) -> str:
        return resolve_display_version(self.active_tasks())

    @property
    def platform(self) -> Platform:
        return detect_platform(
            self.tasks,
            android_prefix=self.android_key_prefix,
            ios_prefix=self.ios_key_prefix,
        )

    def newly_hidden_count(self, instant: int) -> int:
        """Number of currently active approved tasks a cutoff at instant would hide."""
        currently_active = [
            task for task in self.approved_tasks() if not self.is_hidden(task)
        ]
        still_active = [
            task for task in currently_active if self.changed_at(task) > instant
        ]
        return len(currently_active) - len(still_active)
