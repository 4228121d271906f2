"""Pass/fail verdict posted as the pull request commit status."""

from sonar_pr_report.models import CommitState, Severity, SeverityTally, Verdict
from sonar_pr_report.reports.markdown import pluralize, severity_clause

# Severities that fail the status, in the order they are listed in the message
FAILING_SEVERITIES: tuple[Severity, ...] = (Severity.CRITICAL, Severity.BLOCKER)


def compute_verdict(tally: SeverityTally) -> Verdict:
    total = tally.total
    if total == 0:
        return Verdict(CommitState.SUCCESS, "SonarQube reported no issues")

    reported = f"SonarQube reported {pluralize(total, 'issue')}"
    if not any(tally[s] for s in FAILING_SEVERITIES):
        return Verdict(CommitState.SUCCESS, f"{reported}, no critical nor blocker")

    return Verdict(CommitState.ERROR, f"{reported}, with {severity_clause(tally, FAILING_SEVERITIES)}")
