"""Issue reporter: turns analysis issues into pull request feedback.

Usage:
    reporter = IssueReporter(settings, provider, files, diff, links, publisher)
    report   = reporter.run()          # builds everything, then publishes

A run is all-or-nothing up to publication: issues are filtered, located,
ranked and rendered in memory first, and only then are comments and the
status sent to the publisher. Collaborator errors propagate to the caller.
"""

import logging
from dataclasses import dataclass

from sonar_pr_report.collaborators import (
    DiffVisibility,
    FileResolver,
    IssueProvider,
    LinkBuilder,
    Publisher,
    RuleLinkBuilder,
)
from sonar_pr_report.models import FileLine, InlineComment, PullRequestReport
from sonar_pr_report.reports.markdown import MarkdownFormatter, RuleLinks
from sonar_pr_report.reports.ranking import build_tally, locate, rank_issues, select_new_issues
from sonar_pr_report.reports.status import compute_verdict

logger = logging.getLogger(__name__)


@dataclass
class ReporterSettings:
    project_key: str
    server_url: str
    inline_comments: bool = True
    max_global_issues: int | None = None


class IssueReporter:
    def __init__(
        self,
        settings: ReporterSettings,
        provider: IssueProvider,
        files: FileResolver,
        diff: DiffVisibility,
        links: LinkBuilder,
        publisher: Publisher | None = None,
        rules: RuleLinkBuilder | None = None,
    ) -> None:
        self.settings = settings
        self._provider = provider
        self._files = files
        self._diff = diff
        self._links = links
        self._publisher = publisher
        rules = rules or RuleLinks(settings.server_url)
        self._formatter = MarkdownFormatter(rules, settings.max_global_issues)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def build_report(self) -> PullRequestReport:
        """Compute the full report without publishing anything."""
        new_issues = select_new_issues(self._provider.issues())
        logger.debug("%d new issue(s) to locate", len(new_issues))

        located = []
        for issue in new_issues:
            result = locate(issue, self.settings.project_key, self._files, self._diff, self._links)
            if result is not None:
                located.append((issue, *result))

        ranked = rank_issues(located)
        tally = build_tally(ranked)
        verdict = compute_verdict(tally)

        inline = []
        if self.settings.inline_comments:
            inline = [
                InlineComment(r.location.file, r.location.line, self._formatter.inline_comment(r.issue))
                for r in ranked
                if isinstance(r.location, FileLine)
            ]

        global_comment = self._formatter.global_comment(ranked, tally) if ranked else None
        logger.info("%s (%d inline comment(s))", verdict.message, len(inline))

        return PullRequestReport(
            ranked=ranked,
            tally=tally,
            verdict=verdict,
            global_comment=global_comment,
            inline_comments=inline,
        )

    def publish(self, report: PullRequestReport) -> None:
        if self._publisher is None:
            raise RuntimeError("No publisher configured for this reporter")

        for comment in report.inline_comments:
            self._publisher.post_inline_comment(comment.file, comment.line, comment.body)
        self._publisher.post_aggregated_comment(report.global_comment)
        self._publisher.post_status(report.verdict.state, report.verdict.message)

    def run(self) -> PullRequestReport:
        report = self.build_report()
        self.publish(report)
        return report
