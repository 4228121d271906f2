"""Configuration loading and validation.

Usage:
    config = load("sonar-config.yaml")       # raises ConfigError on bad config
    key = config.resolve_project("wcs")      # returns "ch.corren.wcs"
    github = config.require_github()         # raises ConfigError if incomplete
    generate_template("sonar-config.yaml")   # writes example file to disk
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from sonar_pr_report.github import GITHUB_API_URL


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


class ProjectNotFoundError(ConfigError):
    """Raised when a project alias is not found in the config."""


# ---------------------------------------------------------------------------
# Config dataclasses
# ---------------------------------------------------------------------------

@dataclass
class GitHubConfig:
    token: str = ""
    repository: str = ""
    api_url: str = GITHUB_API_URL


@dataclass
class ReportConfig:
    inline_comments: bool = True
    max_global_issues: int = 0        # 0 = list every issue
    status_context: str = "sonarqube"


@dataclass
class Config:
    url: str
    token: str
    projects: dict[str, str] = field(default_factory=dict)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    report: ReportConfig = field(default_factory=ReportConfig)

    def resolve_project(self, name: str) -> str:
        """Return the SonarQube project key for a given alias.

        Accepts either a configured alias (e.g. "wcs") or a raw project key
        passed directly (e.g. "ch.corren.wcs") as a convenience fallback.
        """
        if name in self.projects:
            return self.projects[name]
        # Allow passing the raw key directly if it's not in the mapping
        if name in self.projects.values():
            return name
        available = ", ".join(self.projects.keys()) or "(none configured)"
        raise ProjectNotFoundError(
            f"Project '{name}' not found. Available aliases: {available}"
        )

    def require_github(self) -> GitHubConfig:
        """Return the GitHub settings, or raise ConfigError if incomplete."""
        errors: list[str] = []
        if not self.github.token:
            errors.append(
                "  - 'github.token' is missing (or set the GITHUB_TOKEN environment variable)"
            )
        if not self.github.repository:
            errors.append(
                "  - 'github.repository' is missing (or set the GITHUB_REPOSITORY environment variable)"
            )
        elif "/" not in self.github.repository:
            errors.append(
                f"  - 'github.repository' must look like 'owner/name', got '{self.github.repository}'"
            )
        if errors:
            raise ConfigError("Invalid GitHub configuration:\n" + "\n".join(errors))
        return self.github


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load(config_path: str = "sonar-config.yaml") -> Config:
    """Load and validate configuration from a YAML file.

    Environment variables SONAR_URL, SONAR_TOKEN, GITHUB_TOKEN,
    GITHUB_REPOSITORY and GITHUB_API_URL override file values.

    Raises:
        ConfigError: if the file is missing, malformed, or required fields
                     are absent.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(
            f"Config file not found: '{config_path}'\n"
            "Run `python -m sonar_pr_report init` to generate a template."
        )

    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse '{config_path}': {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"'{config_path}' must be a YAML mapping at the top level.")

    server = raw.get("server") or {}
    url   = os.environ.get("SONAR_URL")  or server.get("url",   "")
    token = os.environ.get("SONAR_TOKEN") or server.get("token", "")
    projects: dict[str, str] = raw.get("projects") or {}

    gh = raw.get("github") or {}
    github = GitHubConfig(
        token=str(os.environ.get("GITHUB_TOKEN") or gh.get("token", "")).strip(),
        repository=str(os.environ.get("GITHUB_REPOSITORY") or gh.get("repository", "")).strip(),
        api_url=str(os.environ.get("GITHUB_API_URL") or gh.get("api_url") or GITHUB_API_URL).strip(),
    )

    config = Config(
        url=str(url).strip(),
        token=str(token).strip(),
        projects=projects,
        github=github,
        report=_load_report(raw.get("report") or {}),
    )
    _validate(config)
    return config


def _load_report(raw: dict) -> ReportConfig:
    if not isinstance(raw, dict):
        raise ConfigError("'report' must be a YAML mapping.")

    defaults = ReportConfig()
    inline = raw.get("inline_comments", defaults.inline_comments)
    limit = raw.get("max_global_issues", defaults.max_global_issues)
    context = raw.get("status_context", defaults.status_context)

    if not isinstance(inline, bool):
        raise ConfigError(f"'report.inline_comments' must be true or false, got {inline!r}")
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise ConfigError(f"'report.max_global_issues' must be a non-negative integer, got {limit!r}")
    if not context:
        raise ConfigError("'report.status_context' must not be empty")

    return ReportConfig(inline_comments=inline, max_global_issues=limit, status_context=str(context))


def _validate(config: Config) -> None:
    """Raise ConfigError if required fields are missing."""
    errors: list[str] = []

    if not config.url:
        errors.append(
            "  - 'server.url' is missing (or set the SONAR_URL environment variable)"
        )
    if not config.token:
        errors.append(
            "  - 'server.token' is missing (or set the SONAR_TOKEN environment variable)"
        )
    if not config.projects:
        errors.append(
            "  - 'projects' mapping is empty — add at least one project alias"
        )

    if errors:
        raise ConfigError("Invalid configuration:\n" + "\n".join(errors))


# ---------------------------------------------------------------------------
# Template generator (used by `init` command)
# ---------------------------------------------------------------------------

TEMPLATE = """\
server:
  url: "https://sonar.example.com"
  token: "squ_xxxxxxxxxxxx"       # Generate at: <your-sonar-url>/account/security

github:
  token: "ghp_xxxxxxxxxxxx"       # Needs repo:status and pull request write access
  repository: "owner/name"
  # api_url: "https://github.example.com/api/v3"   # GitHub Enterprise only

projects:
  # Human-readable alias: SonarQube project key
  my-project: "com.example.my-project"
  another:    "com.example.another-service"

report:
  inline_comments: true           # Also comment issues on their diff line
  max_global_issues: 0            # Cap the list in the global comment (0 = no cap)
  status_context: "sonarqube"
"""


def generate_template(output_path: str = "sonar-config.yaml") -> None:
    """Write a template sonar-config.yaml to *output_path*.

    Raises:
        ConfigError: if the file already exists (to avoid overwriting secrets).
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(
            f"'{output_path}' already exists. Remove it first or choose a different path."
        )
    path.write_text(TEMPLATE, encoding="utf-8")
