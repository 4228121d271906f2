"""CLI entry point — command definitions using Click.

Commands:
    init          Generate a template config file
    pr-report     Report the new issues of a pull request on GitHub
"""

import json
import logging
import sys
from typing import Any

import click

from sonar_pr_report import __version__


# ---------------------------------------------------------------------------
# Helpers shared by all data commands
# ---------------------------------------------------------------------------

def _load_config(ctx: click.Context):
    """Load config from the --config path. Exits on error."""
    from sonar_pr_report.config import ConfigError, load

    try:
        return load(ctx.obj["config_path"])
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)


def _emit_json(data: Any, ctx: click.Context) -> None:
    """Write JSON to stdout or to the file specified by --output."""
    obj = ctx.obj
    indent = 2 if obj["pretty"] else None
    text = json.dumps(data, indent=indent, ensure_ascii=False)

    output_path: str | None = obj["output_path"]
    if output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)
        click.echo(f"Report written to '{output_path}'", err=True)
    else:
        click.echo(text)


def _handle_client_errors(func):
    """Decorator that catches SonarQube and GitHub client exceptions and exits cleanly."""
    import functools

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from sonar_pr_report.client import (
            AuthenticationError,
            NetworkError,
            NotFoundError,
            SonarClientError,
        )
        from sonar_pr_report.config import ConfigError, ProjectNotFoundError
        from sonar_pr_report.github import GitHubError

        try:
            return func(*args, **kwargs)
        except ProjectNotFoundError as exc:
            click.echo(f"Project error: {exc}", err=True)
            sys.exit(1)
        except ConfigError as exc:
            click.echo(f"Configuration error: {exc}", err=True)
            sys.exit(1)
        except AuthenticationError as exc:
            click.echo(f"Authentication error: {exc}", err=True)
            sys.exit(1)
        except NotFoundError as exc:
            click.echo(f"Not found: {exc}", err=True)
            sys.exit(1)
        except NetworkError as exc:
            click.echo(f"Network error: {exc}", err=True)
            sys.exit(1)
        except SonarClientError as exc:
            click.echo(f"SonarQube error: {exc}", err=True)
            sys.exit(1)
        except GitHubError as exc:
            click.echo(f"GitHub error: {exc}", err=True)
            sys.exit(1)

    return wrapper


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", "config_path", default="sonar-config.yaml", show_default=True,
              help="Path to the configuration file.")
@click.option("--output", "output_path", default=None,
              help="Write JSON output to a file instead of stdout.")
@click.option("--pretty", is_flag=True, default=False,
              help="Pretty-print the JSON output.")
@click.option("--verbose", is_flag=True, default=False,
              help="Enable verbose logging.")
@click.version_option(__version__, prog_name="sonar-pr-report")
@click.pass_context
def cli(ctx: click.Context, config_path: str, output_path: str | None,
        pretty: bool, verbose: bool) -> None:
    """SonarQube pull request reporter: comment new issues and set a status on GitHub."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["output_path"] = output_path
    ctx.obj["pretty"] = pretty
    ctx.obj["verbose"] = verbose


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "output_path", default="sonar-config.yaml", show_default=True,
              help="Path where the template config file will be written.")
def init_command(output_path: str) -> None:
    """Generate a template sonar-config.yaml file."""
    from sonar_pr_report.config import ConfigError, generate_template
    try:
        generate_template(output_path)
        click.echo(f"Template written to '{output_path}'.")
        click.echo("Edit it with your server URL, tokens, repository and project key mappings.")
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# pr-report
# ---------------------------------------------------------------------------

@cli.command("pr-report")
@click.argument("project")
@click.argument("pr_id")
@click.option("--dry-run", is_flag=True, default=False,
              help="Build the report but post nothing to GitHub.")
@click.pass_context
@_handle_client_errors
def pr_report_command(ctx: click.Context, project: str, pr_id: str, dry_run: bool) -> None:
    """Comment the new issues of pull request PR_ID and set its status."""
    from sonar_pr_report.client import SonarClient
    from sonar_pr_report.github import GitHubClient, GitHubPublisher, PullRequestDiff
    from sonar_pr_report.reporter import IssueReporter, ReporterSettings
    from sonar_pr_report.reports.issues import SonarIssueProvider

    config = _load_config(ctx)
    project_key = config.resolve_project(project)
    github = config.require_github()
    verbose = ctx.obj["verbose"]

    if verbose:
        click.echo(f"[verbose] Connecting to {config.url}", err=True)
        click.echo(f"[verbose] Fetching PR issues for {project_key} PR#{pr_id}", err=True)

    provider = SonarIssueProvider(SonarClient(url=config.url, token=config.token), project_key, pr_id)
    files = provider.components

    if verbose:
        click.echo(f"[verbose] Fetching PR#{pr_id} diff from {github.repository}", err=True)

    gh_client = GitHubClient(token=github.token, repository=github.repository, api_url=github.api_url)
    diff = PullRequestDiff.load(gh_client, pr_id)
    publisher = None
    if not dry_run:
        publisher = GitHubPublisher(gh_client, pr_id, diff.head_sha, config.report.status_context)

    settings = ReporterSettings(
        project_key=project_key,
        server_url=config.url,
        inline_comments=config.report.inline_comments,
        max_global_issues=config.report.max_global_issues,
    )
    reporter = IssueReporter(settings, provider, files, diff, diff, publisher)

    if dry_run:
        report = reporter.build_report()
    else:
        report = reporter.run()
        if verbose:
            click.echo(f"[verbose] Published to {github.repository} PR#{pr_id}", err=True)

    if verbose:
        click.echo(f"[verbose] {report.verdict.message}", err=True)

    _emit_json({
        "report_type":  "pr_report",
        "project_key":  project_key,
        "pull_request": pr_id,
        "published":    not dry_run,
        **report.to_dict(),
    }, ctx)
