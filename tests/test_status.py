"""Tests for sonar_pr_report/reports/status.py"""

import itertools

import pytest

from sonar_pr_report.models import CommitState, Severity, SeverityTally
from sonar_pr_report.reports.status import compute_verdict


def _tally(*severities: Severity) -> SeverityTally:
    tally = SeverityTally()
    for s in severities:
        tally.add(s)
    return tally


@pytest.mark.parametrize("severities,state,message", [
    ((), CommitState.SUCCESS, "SonarQube reported no issues"),
    ((Severity.MAJOR,), CommitState.SUCCESS, "SonarQube reported 1 issue, no critical nor blocker"),
    ((Severity.MINOR, Severity.INFO), CommitState.SUCCESS,
     "SonarQube reported 2 issues, no critical nor blocker"),
    ((Severity.CRITICAL,), CommitState.ERROR, "SonarQube reported 1 issue, with 1 critical"),
    ((Severity.BLOCKER,), CommitState.ERROR, "SonarQube reported 1 issue, with 1 blocker"),
    ((Severity.BLOCKER,) * 5, CommitState.ERROR, "SonarQube reported 5 issues, with 5 blocker"),
    ((Severity.CRITICAL, Severity.BLOCKER), CommitState.ERROR,
     "SonarQube reported 2 issues, with 1 critical and 1 blocker"),
    ((Severity.BLOCKER, Severity.BLOCKER, Severity.CRITICAL, Severity.MAJOR), CommitState.ERROR,
     "SonarQube reported 4 issues, with 1 critical and 2 blocker"),
])
def test_verdict(severities, state, message):
    verdict = compute_verdict(_tally(*severities))
    assert verdict.state is state
    assert verdict.message == message
    assert verdict.passed is (state is CommitState.SUCCESS)


def test_verdict_fails_iff_blocker_or_critical():
    for severities in itertools.combinations_with_replacement(Severity, 3):
        tally = _tally(*severities)
        failing = tally[Severity.BLOCKER] + tally[Severity.CRITICAL] > 0
        assert compute_verdict(tally).passed is not failing
