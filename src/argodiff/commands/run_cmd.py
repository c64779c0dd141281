"""The `run` command: diff a pull request and comment the result."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import rich_click as click

from argodiff import console as con
from argodiff.argocd import (
    DEFAULT_BINARY_PATH,
    ArgoCDClient,
    ArgoCDError,
    download_cli,
    run_app_diff,
)
from argodiff.commands.options import argocd_options, build_config
from argodiff.github import GitHubAPIError, GitHubClient, load_pull_request_context
from argodiff.report import render_report
from argodiff.runner import RunResult, collect_diffs, run

if TYPE_CHECKING:
    from collections.abc import Callable

    from argodiff.config import ArgoDiffConfig
    from argodiff.models import Application, DiffOutcome


@click.command("run")
@argocd_options
@click.option("--github-token", envvar="GITHUB_TOKEN", help="Token for the GitHub API.")
@click.option("--repository", envvar="GITHUB_REPOSITORY", help="owner/repo of the pull request.")
@click.option("--pr-number", type=int, envvar="PR_NUMBER", help="Pull request number.")
@click.option("--commit-sha", envvar="COMMIT_SHA", help="Commit shown in the report heading.")
@click.option(
    "--event-path",
    type=click.Path(path_type=Path),
    envvar="GITHUB_EVENT_PATH",
    help="GitHub Actions event payload, used for PR number and head commit.",
)
@click.option("--github-api-url", envvar="GITHUB_API_URL", help="GitHub API base URL.")
@click.option("--environment", "-e", envvar="ENVIRONMENT", help="Environment name shown in the report.")
@click.option("--collapse-diff/--no-collapse-diff", default=None, envvar="COLLAPSE_DIFF", help="Fold diffs in the comment.")
@click.option("--timezone", envvar="TIMEZONE", help="Timezone of the report timestamp.")
@click.option("--timezone-locale", envvar="TIMEZONE_LOCALE", help="Locale of the report timestamp.")
@click.option("--diff-tool", envvar="DIFF_TOOL", help="KUBECTL_EXTERNAL_DIFF command.")
@click.option("--tracking-label", envvar="TRACKING_LABEL", help="Label naming the owning application.")
@click.option("--dry-run", is_flag=True, help="Print the report instead of commenting.")
def run_cmd(
    config_file: Path | None,
    event_path: Path | None,
    dry_run: bool,
    **options: Any,
) -> None:
    """Diff the applications touched by a pull request and comment the result.

    Exits with status 1 when any application could not be diffed.
    """
    config = build_config(config_file, **options)

    if event_path and (config.github.pr_number is None or not config.github.commit_sha):
        context = load_pull_request_context(event_path)
        if context:
            if config.github.pr_number is None:
                config.github.pr_number = context.number
            config.github.commit_sha = config.github.commit_sha or context.head_sha

    if not config.argocd.server_url:
        con.print_error("No ArgoCD server configured")
        con.print_hint("Pass --argocd-server-url or set ARGOCD_SERVER_URL.")
        raise SystemExit(1)
    if config.github.pr_number is None or not config.github.repository:
        con.print_error("Could not determine the pull request to report on")
        con.print_hint("Pass --repository and --pr-number, or run inside a pull_request workflow.")
        raise SystemExit(1)

    cwd = Path.cwd()
    try:
        binary = _ensure_cli(config)
        argocd = ArgoCDClient(config)
        github = GitHubClient(config.github_token, config.github.repository, config.github.api_url)

        def diff_fn(app: Application) -> DiffOutcome:
            return run_app_diff(binary, app, config, cwd)

        if dry_run:
            result = _dry_run(config, argocd, github, diff_fn, cwd)
        else:
            result = run(config, argocd, github, diff_fn, cwd)
    except (ArgoCDError, GitHubAPIError) as e:
        con.print_error(str(e))
        raise SystemExit(1) from None

    if result.comments_posted:
        con.print_success(f"Posted report to #{config.github.pr_number}")
    elif not dry_run:
        con.print_info("Nothing to report")

    con.print_summary(len(result.diffs) - len(result.errors), len(result.errors))
    if result.failed:
        con.print_error(f"ArgoCD diff failed: encountered {len(result.errors)} error(s)")
        raise SystemExit(1)


def _ensure_cli(config: ArgoDiffConfig) -> Path:
    if config.argocd.binary_path:
        return Path(config.argocd.binary_path)
    with con.status(f"Downloading argocd {config.argocd.version}..."):
        path: Path = download_cli(
            config.argocd.version, config.argocd.arch, DEFAULT_BINARY_PATH
        )
    con.print_success(
        f"Downloaded argocd {config.argocd.version} to {con.format_path(str(path))}"
    )
    return path


def _dry_run(
    config: ArgoDiffConfig,
    argocd: ArgoCDClient,
    github: GitHubClient,
    diff_fn: Callable[[Application], DiffOutcome],
    cwd: Path,
) -> RunResult:
    apps: list[Application] = argocd.repo_applications(config.github.repository)
    changed_files: list[str] = github.list_pull_request_files(config.github.pr_number)
    result: RunResult = collect_diffs(apps, changed_files, config, diff_fn, cwd)
    result.report = render_report(
        result.diffs, config.report.environment, config.github.commit_sha, config
    )
    if result.report is None:
        con.print_info("Nothing to report")
    else:
        con.print_header("Report")
        con.console.print(result.report, markup=False, highlight=False)
    return result
