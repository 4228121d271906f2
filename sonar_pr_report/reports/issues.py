"""SonarQube side of a pull request report.

Classes:
    SonarIssueProvider(client, project_key, pr_id)   issues of a pull request analysis
    ComponentIndex(components)                       component key -> SourceFile
"""

import logging
from typing import Any, Iterable

from sonar_pr_report.client import SonarClient
from sonar_pr_report.models import Issue, Severity, SourceFile

logger = logging.getLogger(__name__)

# Component qualifiers that designate a source or test file
_FILE_QUALIFIERS = ("FIL", "UTS")


# ---------------------------------------------------------------------------
# Component lookup
# ---------------------------------------------------------------------------

class ComponentIndex:
    """Resolve component keys to repository files.

    Built from the ``components`` list SonarQube returns alongside issues.
    Projects, modules and directories are not files and resolve to None.
    """

    def __init__(self, components: Iterable[dict[str, Any]] = ()) -> None:
        self._files: dict[str, SourceFile] = {}
        for component in components:
            self.add(component)

    def add(self, component: dict[str, Any]) -> None:
        if component.get("qualifier") not in _FILE_QUALIFIERS:
            return
        key = component.get("key")
        path = component.get("path")
        if key and path:
            self._files[key] = SourceFile(path)

    def by_component_key(self, key: str) -> SourceFile | None:
        return self._files.get(key)

    def __len__(self) -> int:
        return len(self._files)


# ---------------------------------------------------------------------------
# Issue provider
# ---------------------------------------------------------------------------

def parse_issue(raw: dict[str, Any], is_new: bool = True) -> Issue:
    """Convert a raw SonarQube issue into an Issue."""
    try:
        severity = Severity.parse(raw.get("severity", ""))
    except ValueError:
        logger.warning("Issue %s has unknown severity %r, reporting it as INFO",
                       raw.get("key"), raw.get("severity"))
        severity = Severity.INFO

    line = raw.get("line")
    return Issue(
        component_key=raw.get("component", ""),
        rule_key=raw.get("rule", ""),
        severity=severity,
        is_new=is_new,
        message=raw.get("message", ""),
        line=int(line) if line is not None else None,
        key=raw.get("key"),
    )


class SonarIssueProvider:
    """Unresolved issues of a pull request analysis.

    Every unresolved issue of a pull request analysis was raised on code the
    pull request touches, so all of them are new relative to the target
    branch. Results are fetched once per provider.
    """

    def __init__(self, client: SonarClient, project_key: str, pr_id: str) -> None:
        self._client = client
        self.project_key = project_key
        self.pr_id = pr_id
        self._issues: list[Issue] | None = None
        self._components = ComponentIndex()

    def issues(self) -> list[Issue]:
        if self._issues is None:
            self._load()
        return list(self._issues)

    @property
    def components(self) -> ComponentIndex:
        if self._issues is None:
            self._load()
        return self._components

    def _load(self) -> None:
        params = {
            "componentKeys": self.project_key,
            "pullRequest":   self.pr_id,
            "resolved":      "false",
        }
        issues: list[Issue] = []
        for page in self._client.iter_pages("/api/issues/search", params, results_key="issues"):
            issues.extend(parse_issue(raw) for raw in page.get("issues", []))
            for component in page.get("components", []):
                self._components.add(component)

        logger.debug("Fetched %d issue(s) and %d file(s) for %s PR#%s",
                     len(issues), len(self._components), self.project_key, self.pr_id)
        self._issues = issues
