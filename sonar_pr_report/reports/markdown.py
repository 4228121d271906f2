"""Markdown rendering of pull request comments.

Usage:
    formatter = MarkdownFormatter(RuleLinks("https://sonar.example.com"))
    body      = formatter.global_comment(ranked, tally)    # aggregated comment
    text      = formatter.inline_comment(issue)            # one line comment
"""

from urllib.parse import quote

from sonar_pr_report.collaborators import RuleLinkBuilder
from sonar_pr_report.models import (
    SEVERITIES_DESCENDING,
    DirectoryLevel,
    FileLevel,
    FileLine,
    Issue,
    RankedIssue,
    Severity,
    SeverityTally,
)

IMAGES_ROOT_URL = "https://raw.githubusercontent.com/SonarCommunity/sonar-github/master/images/"


# ---------------------------------------------------------------------------
# Wording helpers
# ---------------------------------------------------------------------------

def pluralize(count: int, noun: str) -> str:
    """``1 issue``, ``2 issues``."""
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def join_words(parts: list[str]) -> str:
    """Join with commas and a final ``and``: ``a, b and c``."""
    if len(parts) <= 1:
        return "".join(parts)
    return ", ".join(parts[:-1]) + " and " + parts[-1]


def severity_clause(tally: SeverityTally, severities: tuple[Severity, ...]) -> str:
    """Nonzero counts of *severities*, in the given order: ``1 critical and 2 blocker``."""
    return join_words([f"{tally[s]} {s.label}" for s in severities if tally[s]])


# ---------------------------------------------------------------------------
# Formatter
# ---------------------------------------------------------------------------

class RuleLinks:
    """Rule pages on the SonarQube server."""

    def __init__(self, server_url: str) -> None:
        self.server_url = server_url.rstrip("/")

    def url_for(self, rule_key: str) -> str:
        return f"{self.server_url}/coding_rules#rule_key={quote(rule_key, safe='')}"


class MarkdownFormatter:
    """Render issues as GitHub Markdown, linking each rule through *rules*."""

    def __init__(self, rules: RuleLinkBuilder, max_global_issues: int | None = None) -> None:
        self.rules = rules
        self.max_global_issues = max_global_issues or None

    def severity_icon(self, severity: Severity) -> str:
        return f"![{severity.name}]({IMAGES_ROOT_URL}severity-{severity.label}.png)"

    def rule_icon(self, rule_key: str) -> str:
        return f"[![rule]({IMAGES_ROOT_URL}rule.png)]({self.rules.url_for(rule_key)})"

    def inline_comment(self, issue: Issue) -> str:
        return f"{self.severity_icon(issue.severity)} {issue.message} {self.rule_icon(issue.rule_key)}"

    def header(self, tally: SeverityTally) -> str:
        if tally.total == 0:
            return "SonarQube analysis reported no issues"
        breakdown = severity_clause(tally, SEVERITIES_DESCENDING)
        return f"SonarQube analysis reported {pluralize(tally.total, 'issue')}: {breakdown}"

    def entry(self, index: int, item: RankedIssue) -> str:
        location = item.location
        issue = item.issue
        if isinstance(location, FileLine):
            where = f"[{location.file.name}#L{location.line}]({item.url}): "
        elif isinstance(location, FileLevel) and issue.line is not None:
            # line outside the diff: keep the number, no link
            where = f"`{location.file.path}#L{issue.line}`: "
        elif isinstance(location, FileLevel):
            where = f"`{location.file.path}`: "
        elif isinstance(location, DirectoryLevel):
            where = f"`{location.path}`: "
        else:
            where = ""
        return (
            f"{index}. {self.severity_icon(issue.severity)} {where}{issue.message} "
            f"{self.rule_icon(issue.rule_key)}"
        )

    def global_comment(self, ranked: list[RankedIssue], tally: SeverityTally) -> str:
        lines = [self.header(tally)]
        if not ranked:
            return lines[0]

        shown = ranked[: self.max_global_issues] if self.max_global_issues else ranked
        lines.append("")
        lines.extend(self.entry(i, item) for i, item in enumerate(shown, start=1))

        hidden = len(ranked) - len(shown)
        if hidden:
            lines.append("")
            lines.append(f"... and {pluralize(hidden, 'more issue')}")
        return "\n".join(lines) + "\n"
