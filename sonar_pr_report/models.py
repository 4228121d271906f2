"""Data models for pull request reports.

Contains the dataclasses shared by every stage of a reporting run:
    - Severity         ordered SonarQube severities
    - Issue            one analysis issue, as returned by the issue provider
    - SourceFile       a file of the analysed repository
    - ProjectLevel / DirectoryLevel / FileLevel / FileLine
                       where an issue is reported on the pull request
    - RankedIssue      an issue with its location, link and input position
    - SeverityTally    issue count per severity
    - Verdict          the commit status posted for the run
    - PullRequestReport
                       everything a run produced, JSON-serializable
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Union


# ---------------------------------------------------------------------------
# Severities
# ---------------------------------------------------------------------------

class Severity(IntEnum):
    INFO = 0
    MINOR = 1
    MAJOR = 2
    CRITICAL = 3
    BLOCKER = 4

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Return the severity named *value* (case-insensitive).

        Raises:
            ValueError: if *value* is not a SonarQube severity.
        """
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown severity '{value}'") from None

    @property
    def label(self) -> str:
        """Lower-case name used in messages, e.g. ``"blocker"``."""
        return self.name.lower()


#: Most severe first, the order used for display
SEVERITIES_DESCENDING: tuple[Severity, ...] = tuple(sorted(Severity, reverse=True))


# ---------------------------------------------------------------------------
# Issues and files
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Issue:
    component_key: str
    rule_key: str
    severity: Severity
    is_new: bool
    message: str
    line: int | None = None
    key: str | None = None


@dataclass(frozen=True)
class SourceFile:
    path: str

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]


# ---------------------------------------------------------------------------
# Report locations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProjectLevel:
    pass


@dataclass(frozen=True)
class DirectoryLevel:
    path: str


@dataclass(frozen=True)
class FileLevel:
    file: SourceFile


@dataclass(frozen=True)
class FileLine:
    file: SourceFile
    line: int


ReportLocation = Union[ProjectLevel, DirectoryLevel, FileLevel, FileLine]

# File-scoped locations share a tier whether or not a line is pinned
LOCATION_TIERS: dict[type, int] = {
    ProjectLevel: 0,
    DirectoryLevel: 1,
    FileLevel: 2,
    FileLine: 2,
}


def location_path(location: ReportLocation) -> str:
    """Return the path shown for *location*, empty for project-level issues."""
    if isinstance(location, DirectoryLevel):
        return location.path
    if isinstance(location, (FileLevel, FileLine)):
        return location.file.path
    return ""


def location_to_dict(location: ReportLocation) -> dict[str, Any]:
    kinds = {
        ProjectLevel: "project",
        DirectoryLevel: "directory",
        FileLevel: "file",
        FileLine: "line",
    }
    data: dict[str, Any] = {"kind": kinds[type(location)], "path": location_path(location) or None}
    if isinstance(location, FileLine):
        data["line"] = location.line
    return data


# ---------------------------------------------------------------------------
# Ranking and aggregation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RankedIssue:
    issue: Issue
    location: ReportLocation
    url: str | None = None
    position: int = 0

    @property
    def sort_key(self) -> tuple:
        """Tier, severity (most severe first), path, line, input position.

        Within a file, an issue without a line sorts before any issue with
        one. The raw issue line is used, so an issue degraded to file level
        because its line is hidden keeps its place in reading order.
        """
        line = self.issue.line
        return (
            LOCATION_TIERS[type(self.location)],
            -self.issue.severity,
            location_path(self.location),
            line is not None,
            line or 0,
            self.position,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "key":       self.issue.key,
            "rule":      self.issue.rule_key,
            "severity":  self.issue.severity.name,
            "component": self.issue.component_key,
            "line":      self.issue.line,
            "message":   self.issue.message,
            "location":  location_to_dict(self.location),
            "url":       self.url,
        }


@dataclass
class SeverityTally:
    counts: dict[Severity, int] = field(default_factory=lambda: {s: 0 for s in Severity})

    def add(self, severity: Severity) -> None:
        self.counts[severity] = self.counts.get(severity, 0) + 1

    def __getitem__(self, severity: Severity) -> int:
        return self.counts.get(severity, 0)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def as_dict(self) -> dict[str, int]:
        return {s.name: self[s] for s in SEVERITIES_DESCENDING}


class CommitState(str, Enum):
    """GitHub commit status states posted for a run."""

    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Verdict:
    state: CommitState
    message: str

    @property
    def passed(self) -> bool:
        return self.state is CommitState.SUCCESS


@dataclass(frozen=True)
class InlineComment:
    file: SourceFile
    line: int
    body: str


@dataclass
class PullRequestReport:
    ranked: list[RankedIssue]
    tally: SeverityTally
    verdict: Verdict
    global_comment: str | None
    inline_comments: list[InlineComment] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": {
                "state":   self.verdict.state.value,
                "message": self.verdict.message,
            },
            "summary": {
                "total":       self.tally.total,
                "by_severity": self.tally.as_dict(),
            },
            "global_comment": self.global_comment,
            "inline_comments": [
                {"path": c.file.path, "line": c.line, "body": c.body}
                for c in self.inline_comments
            ],
            "issues": [r.to_dict() for r in self.ranked],
        }
