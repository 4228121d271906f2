"""Selection, location and ranking of pull request issues.

Functions:
    select_new_issues(issues)                              -> list[Issue]
    locate(issue, project_key, files, diff, links)         -> (location, url) | None
    rank_issues(located)                                   -> list[RankedIssue]
    build_tally(ranked)                                    -> SeverityTally
"""

import logging
from typing import Iterable

from sonar_pr_report.collaborators import DiffVisibility, FileResolver, LinkBuilder
from sonar_pr_report.models import (
    DirectoryLevel,
    FileLevel,
    FileLine,
    Issue,
    ProjectLevel,
    RankedIssue,
    ReportLocation,
    SeverityTally,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Filter
# ---------------------------------------------------------------------------

def select_new_issues(issues: Iterable[Issue]) -> list[Issue]:
    """Keep the issues introduced by the pull request, preserving order."""
    return [issue for issue in issues if issue.is_new]


# ---------------------------------------------------------------------------
# Locator
# ---------------------------------------------------------------------------

def _classify_component(component_key: str, project_key: str) -> ReportLocation:
    """Project or directory location for a key that does not resolve to a file.

    Keys look like ``project`` or ``project:some/dir``. Anything without a
    path part is reported on the project rather than dropped.
    """
    if component_key == project_key:
        return ProjectLevel()
    _, sep, path = component_key.partition(":")
    if not sep or not path:
        return ProjectLevel()
    return DirectoryLevel(path)


def locate(
    issue: Issue,
    project_key: str,
    files: FileResolver,
    diff: DiffVisibility,
    links: LinkBuilder,
) -> tuple[ReportLocation, str | None] | None:
    """Return where *issue* is reported and its link, or None to exclude it."""
    source = files.by_component_key(issue.component_key)
    if source is None:
        return _classify_component(issue.component_key, project_key), None

    # Files untouched by the pull request are irrelevant to the review
    if not diff.has_file(source):
        logger.debug("Skipping %s: %s is not part of the pull request", issue.key, source.path)
        return None

    if issue.line is None or not diff.has_line(source, issue.line):
        return FileLevel(source), None

    return FileLine(source, issue.line), links.url_for(source, issue.line)


# ---------------------------------------------------------------------------
# Ranker
# ---------------------------------------------------------------------------

def rank_issues(
    located: Iterable[tuple[Issue, ReportLocation, str | None]],
) -> list[RankedIssue]:
    """Order located issues for display.

    Project issues come first, then directory issues, then file issues;
    within a tier the most severe first, then by path and line.
    """
    ranked = [
        RankedIssue(issue=issue, location=location, url=url, position=position)
        for position, (issue, location, url) in enumerate(located)
    ]
    ranked.sort(key=lambda r: r.sort_key)
    return ranked


def build_tally(ranked: Iterable[RankedIssue]) -> SeverityTally:
    tally = SeverityTally()
    for item in ranked:
        tally.add(item.issue.severity)
    return tally
