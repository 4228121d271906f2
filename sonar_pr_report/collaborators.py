"""Interfaces between the issue reporter and the outside world.

The reporter only talks to these protocols. The SonarQube side lives in
``sonar_pr_report.reports.issues``, the GitHub side in ``sonar_pr_report.github``;
tests substitute plain fakes.
"""

from typing import Protocol, Sequence

from sonar_pr_report.models import CommitState, Issue, SourceFile


class IssueProvider(Protocol):
    def issues(self) -> Sequence[Issue]:
        """All issues of the current analysis, in no particular order."""
        ...


class FileResolver(Protocol):
    def by_component_key(self, key: str) -> SourceFile | None:
        """Return the file behind a component key, or None if it is not a file."""
        ...


class DiffVisibility(Protocol):
    def has_file(self, file: SourceFile) -> bool:
        ...

    def has_line(self, file: SourceFile, line: int) -> bool:
        ...


class LinkBuilder(Protocol):
    def url_for(self, file: SourceFile, line: int) -> str:
        ...


class RuleLinkBuilder(Protocol):
    def url_for(self, rule_key: str) -> str:
        ...


class Publisher(Protocol):
    def post_status(self, state: CommitState, message: str) -> None:
        ...

    def post_aggregated_comment(self, body: str | None) -> None:
        """Create or update the global comment; None removes it."""
        ...

    def post_inline_comment(self, file: SourceFile, line: int, text: str) -> None:
        ...
