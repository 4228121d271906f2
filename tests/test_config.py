"""Tests for sonar_pr_report/config.py"""

import os
import textwrap
from pathlib import Path

import pytest

from sonar_pr_report.config import (
    TEMPLATE,
    Config,
    ConfigError,
    GitHubConfig,
    ProjectNotFoundError,
    generate_template,
    load,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def write_config(tmp_path: Path, content: str) -> Path:
    p = tmp_path / "sonar-config.yaml"
    p.write_text(textwrap.dedent(content), encoding="utf-8")
    return p


VALID_YAML = """\
    server:
      url: "https://sonar.example.com"
      token: "squ_abc123"
    projects:
      wcs: "ch.corren.wcs"
      wct: "ch.corren.wct"
    """


# ---------------------------------------------------------------------------
# load() — happy path
# ---------------------------------------------------------------------------

def test_load_valid_config(tmp_path):
    p = write_config(tmp_path, VALID_YAML)
    config = load(str(p))
    assert config.url == "https://sonar.example.com"
    assert config.token == "squ_abc123"
    assert config.projects == {"wcs": "ch.corren.wcs", "wct": "ch.corren.wct"}


# ---------------------------------------------------------------------------
# load() — missing file
# ---------------------------------------------------------------------------

def test_load_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load(str(tmp_path / "no-such-file.yaml"))


# ---------------------------------------------------------------------------
# load() — missing required fields
# ---------------------------------------------------------------------------

def test_load_missing_url(tmp_path):
    p = write_config(tmp_path, """\
        server:
          token: "squ_abc123"
        projects:
          wcs: "ch.corren.wcs"
        """)
    with pytest.raises(ConfigError, match="server.url"):
        load(str(p))


def test_load_missing_token(tmp_path):
    p = write_config(tmp_path, """\
        server:
          url: "https://sonar.example.com"
        projects:
          wcs: "ch.corren.wcs"
        """)
    with pytest.raises(ConfigError, match="server.token"):
        load(str(p))


def test_load_empty_projects(tmp_path):
    p = write_config(tmp_path, """\
        server:
          url: "https://sonar.example.com"
          token: "squ_abc123"
        projects: {}
        """)
    with pytest.raises(ConfigError, match="projects"):
        load(str(p))


# ---------------------------------------------------------------------------
# load() — environment variable overrides
# ---------------------------------------------------------------------------

def test_env_sonar_url_overrides_config(tmp_path, monkeypatch):
    p = write_config(tmp_path, VALID_YAML)
    monkeypatch.setenv("SONAR_URL", "https://override.example.com")
    config = load(str(p))
    assert config.url == "https://override.example.com"


def test_env_sonar_token_overrides_config(tmp_path, monkeypatch):
    p = write_config(tmp_path, VALID_YAML)
    monkeypatch.setenv("SONAR_TOKEN", "squ_override")
    config = load(str(p))
    assert config.token == "squ_override"


def test_env_vars_can_supply_missing_fields(tmp_path, monkeypatch):
    """Config with no server section is valid when env vars are set."""
    p = write_config(tmp_path, """\
        projects:
          wcs: "ch.corren.wcs"
        """)
    monkeypatch.setenv("SONAR_URL", "https://sonar.example.com")
    monkeypatch.setenv("SONAR_TOKEN", "squ_from_env")
    config = load(str(p))
    assert config.url == "https://sonar.example.com"
    assert config.token == "squ_from_env"


# ---------------------------------------------------------------------------
# resolve_project()
# ---------------------------------------------------------------------------

def test_resolve_known_alias():
    config = Config(url="u", token="t", projects={"wcs": "ch.corren.wcs"})
    assert config.resolve_project("wcs") == "ch.corren.wcs"


def test_resolve_raw_key_fallback():
    """Passing the raw SonarQube key directly should also work."""
    config = Config(url="u", token="t", projects={"wcs": "ch.corren.wcs"})
    assert config.resolve_project("ch.corren.wcs") == "ch.corren.wcs"


def test_resolve_unknown_raises():
    config = Config(url="u", token="t", projects={"wcs": "ch.corren.wcs"})
    with pytest.raises(ProjectNotFoundError, match="unknown-project"):
        config.resolve_project("unknown-project")


# ---------------------------------------------------------------------------
# generate_template()
# ---------------------------------------------------------------------------

def test_generate_template_creates_file(tmp_path):
    out = tmp_path / "sonar-config.yaml"
    generate_template(str(out))
    assert out.exists()
    content = out.read_text()
    assert "server:" in content
    assert "projects:" in content
    assert "github:" in content
    assert "report:" in content


def test_generate_template_refuses_to_overwrite(tmp_path):
    out = tmp_path / "sonar-config.yaml"
    out.write_text("existing content")
    with pytest.raises(ConfigError, match="already exists"):
        generate_template(str(out))



def test_template_is_a_loadable_config(tmp_path, monkeypatch):
    for var in ("SONAR_URL", "SONAR_TOKEN", "GITHUB_TOKEN", "GITHUB_REPOSITORY", "GITHUB_API_URL"):
        monkeypatch.delenv(var, raising=False)
    p = write_config(tmp_path, TEMPLATE)
    config = load(str(p))
    assert config.github.repository == "owner/name"
    assert config.report.inline_comments is True
    assert config.report.max_global_issues == 0


# ---------------------------------------------------------------------------
# github section
# ---------------------------------------------------------------------------

@pytest.fixture
def no_github_env(monkeypatch):
    for var in ("GITHUB_TOKEN", "GITHUB_REPOSITORY", "GITHUB_API_URL"):
        monkeypatch.delenv(var, raising=False)


def test_github_section_loaded(tmp_path, no_github_env):
    p = write_config(tmp_path, VALID_YAML.rstrip() + "\n" + """\
    github:
      token: "ghp_abc"
      repository: "corren/wcs"
    """)
    config = load(str(p))
    assert config.github.token == "ghp_abc"
    assert config.github.repository == "corren/wcs"
    assert config.github.api_url == "https://api.github.com"


def test_github_section_is_optional(tmp_path, no_github_env):
    p = write_config(tmp_path, VALID_YAML)
    config = load(str(p))
    assert config.github == GitHubConfig()


def test_env_github_vars_override_config(tmp_path, no_github_env, monkeypatch):
    p = write_config(tmp_path, VALID_YAML)
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_env")
    monkeypatch.setenv("GITHUB_REPOSITORY", "corren/wct")
    monkeypatch.setenv("GITHUB_API_URL", "https://github.corren.ch/api/v3")
    config = load(str(p))
    assert config.github.token == "ghp_env"
    assert config.github.repository == "corren/wct"
    assert config.github.api_url == "https://github.corren.ch/api/v3"


def test_require_github_returns_settings():
    config = Config(url="u", token="t", github=GitHubConfig(token="ghp", repository="o/r"))
    assert config.require_github().repository == "o/r"


def test_require_github_missing_token():
    config = Config(url="u", token="t", github=GitHubConfig(repository="o/r"))
    with pytest.raises(ConfigError, match="github.token"):
        config.require_github()


def test_require_github_bad_repository():
    config = Config(url="u", token="t", github=GitHubConfig(token="ghp", repository="just-a-name"))
    with pytest.raises(ConfigError, match="owner/name"):
        config.require_github()


# ---------------------------------------------------------------------------
# report section
# ---------------------------------------------------------------------------

def test_report_section_loaded(tmp_path):
    p = write_config(tmp_path, VALID_YAML.rstrip() + "\n" + """\
    report:
      inline_comments: false
      max_global_issues: 20
      status_context: "sonarqube/pr"
    """)
    config = load(str(p))
    assert config.report.inline_comments is False
    assert config.report.max_global_issues == 20
    assert config.report.status_context == "sonarqube/pr"


def test_report_negative_limit_rejected(tmp_path):
    p = write_config(tmp_path, VALID_YAML.rstrip() + "\n" + """\
    report:
      max_global_issues: -1
    """)
    with pytest.raises(ConfigError, match="max_global_issues"):
        load(str(p))


def test_report_inline_comments_must_be_boolean(tmp_path):
    p = write_config(tmp_path, VALID_YAML.rstrip() + "\n" + """\
    report:
      inline_comments: "sometimes"
    """)
    with pytest.raises(ConfigError, match="inline_comments"):
        load(str(p))
