"""End-to-end pull request evaluation.

Applications are processed strictly one after another: the affected check,
the diff command and the filtering. The comment is rendered and posted once,
after every application has been evaluated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from argodiff import console as con
from argodiff.diff_filter import filter_diff
from argodiff.labels import is_affected
from argodiff.models import AppDiff, DiffFailed, NoDiff
from argodiff.report import (
    MAX_COMMENT_LENGTH,
    render_report,
    report_marker,
    scrub_secrets,
    split_into_chunks,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from argodiff.argocd import ArgoCDClient
    from argodiff.config import ArgoDiffConfig
    from argodiff.github import GitHubClient
    from argodiff.models import Application, DiffOutcome

    DiffFunction = Callable[[Application], DiffOutcome]


@dataclass
class RunResult:
    """Outcome of one pull request evaluation."""

    diffs: list[AppDiff] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    report: str | None = None
    comments_deleted: int = 0
    comments_posted: int = 0

    @property
    def errors(self) -> list[AppDiff]:
        return [d for d in self.diffs if d.error is not None]

    @property
    def failed(self) -> bool:
        return bool(self.errors)


def diff_application(
    app: Application, config: ArgoDiffConfig, diff_fn: DiffFunction
) -> AppDiff | None:
    """Run the diff for one application and filter its output.

    Returns None when there is nothing worth reporting.
    """
    outcome: DiffOutcome = diff_fn(app)

    if isinstance(outcome, NoDiff):
        con.print_success(f"{con.format_app(app.name)} has no diff")
        return None

    if isinstance(outcome, DiffFailed):
        con.print_error(f"Diff failed for {con.format_app(app.name)}")
        con.err_console.print(
            scrub_secrets(outcome.stderr, [config.argocd_token]),
            markup=False,
            highlight=False,
        )
        return AppDiff(app=app, error=outcome)

    filtered: str = filter_diff(
        outcome.text,
        tracking_label=config.diff.tracking_label,
        part_of_label=config.diff.part_of_label,
        noisy_key=config.diff.noisy_key,
    )
    if not filtered:
        con.print_info(f"{con.format_app(app.name)} only differs in ignored fields")
        return None

    con.print_warning(f"{con.format_app(app.name)} has changes")
    return AppDiff(app=app, diff=filtered)


def collect_diffs(
    apps: Sequence[Application],
    changed_files: Sequence[str],
    config: ArgoDiffConfig,
    diff_fn: DiffFunction,
    cwd: Path | None = None,
) -> RunResult:
    """Diff every application touched by the changed files."""
    result = RunResult()

    for step, app in enumerate(apps, start=1):
        if not is_affected(changed_files, app.name, config.diff.tracking_label, root=cwd):
            con.print_step(f"{con.format_app(app.name)} not affected by changes", step)
            result.skipped.append(app.name)
            continue

        con.print_step(f"Diffing {con.format_app(app.name)} ({app.source.path})", step)
        app_diff: AppDiff | None = diff_application(app, config, diff_fn)
        if app_diff is not None:
            result.diffs.append(app_diff)

    return result


def publish_report(
    github: GitHubClient, pr_number: int, report: str | None, env: str
) -> tuple[int, int]:
    """Replace earlier report comments with the new report.

    Stale comments are deleted even when there is nothing new to post.
    Returns (deleted, posted) comment counts.
    """
    marker: str = report_marker(env)
    deleted: int = github.delete_stale_reports(pr_number, marker)
    if deleted:
        con.print_info(f"Deleted {deleted} previous report comment(s)")

    if report is None:
        return deleted, 0

    posted = 0
    for chunk in split_into_chunks(report, MAX_COMMENT_LENGTH - len(marker) - 1):
        if marker not in chunk:
            chunk = marker + "\n" + chunk.lstrip("\n")
        github.create_comment(pr_number, chunk)
        posted += 1
    return deleted, posted


def run(
    config: ArgoDiffConfig,
    argocd: ArgoCDClient,
    github: GitHubClient,
    diff_fn: DiffFunction,
    cwd: Path | None = None,
) -> RunResult:
    """Evaluate the configured pull request and publish the report.

    Raises:
        ArgoCDError: when the application list cannot be fetched.
        GitHubAPIError: when changed files cannot be listed or the report
            cannot be published.
    """
    pr_number = config.github.pr_number
    if pr_number is None:
        raise ValueError("A pull request number is required")

    apps: list[Application] = argocd.repo_applications(config.github.repository)
    con.print_info(
        f"Found {len(apps)} application(s): "
        + (", ".join(con.format_app(a.name) for a in apps) or "none")
    )

    changed_files: list[str] = github.list_pull_request_files(pr_number)
    con.print_info(f"{len(changed_files)} file(s) changed in #{pr_number}")

    result: RunResult = collect_diffs(apps, changed_files, config, diff_fn, cwd)
    result.report = render_report(
        result.diffs,
        config.report.environment,
        config.github.commit_sha,
        config,
    )

    result.comments_deleted, result.comments_posted = publish_report(
        github, pr_number, result.report, config.report.environment
    )
    return result
