"""
Build number resolution.

Jira "Fix Build" values are free text lists such as "1.9.0.3, 1.10.0.0".
Only strict four-part numeric builds take part in the release version and
they are compared numerically, part by part ("1.10.0.0" > "1.9.0.0").
"""

import re
from typing import Iterable, List, Tuple

from relnotes.jira.models import NO_REFERENCE, Task

BUILD_PATTERN = re.compile(r"^\d+\.\d+\.\d+\.\d+$")


def is_build_number(token: str) -> bool:
    return bool(BUILD_PATTERN.match(token))


def build_sort_key(build: str) -> Tuple[int, ...]:
    return tuple(int(part) for part in build.split("."))


def collect_builds(tasks: Iterable[Task]) -> List[str]:
    """
    Gather every valid four-part build number from the tasks' fix builds.

    Args:
        tasks: Tasks whose fix_build lists should be scanned

    Returns:
        Build numbers in task order, duplicates kept
    """
    builds = []
    for task in tasks:
        for token in task.fix_build.split(","):
            token = token.strip()
            if token and is_build_number(token):
                builds.append(token)
    return builds


def sort_builds(builds: Iterable[str]) -> List[str]:
    """Order build numbers newest first."""
    return sorted(builds, key=build_sort_key, reverse=True)


def resolve_display_version(tasks: Iterable[Task]) -> str:
    """
    Pick the highest build number among the given tasks.

    Pass only the tasks still in the report (not hidden by a cutoff).

    Returns:
        The winning build, or "-" when no task carries a valid build
    """
    builds = collect_builds(tasks)
    if not builds:
        return NO_REFERENCE
    return max(builds, key=build_sort_key)
