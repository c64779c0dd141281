"""Markdown rendering of the pull request comment."""

from __future__ import annotations

import re
from datetime import UTC, datetime, tzinfo
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from argodiff import console as con
from argodiff.config import ArgoDiffConfig
from argodiff.models import SyncStatus

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from argodiff.models import AppDiff

MAX_COMMENT_LENGTH = 65536
"""GitHub rejects comment bodies longer than this."""

REDACTED = "***"
AUTH_TOKEN_FLAG = re.compile(r"--auth-token[= ]([^\s'\"]+)")

STATUS_GLYPHS: dict[str, str] = {
    "synced": "✅",
    "out_of_sync": "⚠️",
    "error": "🛑",
}

LEGEND = f"""| Legend | Status |
| :---:  | :---   |
| {STATUS_GLYPHS["synced"]} | The app is synced in ArgoCD, and diffs you see are solely from this PR. |
| {STATUS_GLYPHS["out_of_sync"]} | The app is out-of-sync in ArgoCD, and the diffs you see include those changes plus any from this PR. |
| {STATUS_GLYPHS["error"]} | There was an error generating the ArgoCD diffs due to changes in this PR. |
"""

# strftime layouts matching what browsers print for Date.toLocaleString().
LOCALE_FORMATS: dict[str, str] = {
    "en-US": "%m/%d/%Y, %I:%M:%S %p",
    "en-GB": "%d/%m/%Y, %H:%M:%S",
    "en": "%m/%d/%Y, %I:%M:%S %p",
    "de": "%d.%m.%Y, %H:%M:%S",
    "fr": "%d/%m/%Y %H:%M:%S",
    "nl": "%d-%m-%Y, %H:%M:%S",
    "ja": "%Y/%m/%d %H:%M:%S",
    "sv": "%Y-%m-%d %H:%M:%S",
}
DEFAULT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def report_marker(env: str) -> str:
    """Hidden marker identifying this tool's comments for an environment."""
    return f"<!-- argodiff report: {env} -->"


def scrub_secrets(text: str, secrets: Iterable[str | None] = ()) -> str:
    """Replace every occurrence of known secrets with a redaction marker.

    Secrets are the values passed after ``--auth-token`` anywhere in the text,
    plus any explicitly given ones.
    """
    tokens: set[str] = set(AUTH_TOKEN_FLAG.findall(text))
    tokens.update(s for s in secrets if s)
    tokens.discard(REDACTED)

    for token in sorted(tokens, key=len, reverse=True):
        text = text.replace(token, REDACTED)
    return text


def format_timestamp(
    now: datetime, timezone: str = "UTC", locale: str = "en-US"
) -> str:
    zone: tzinfo
    try:
        zone = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        con.print_warning(f"Unknown timezone '{timezone}', using UTC")
        zone = UTC

    local: datetime = now.astimezone(zone)
    pattern: str = LOCALE_FORMATS.get(
        locale, LOCALE_FORMATS.get(locale.split("-")[0], DEFAULT_TIME_FORMAT)
    )
    return f"{local.strftime(pattern)} {local.tzname()}"


def status_glyph(app_diff: AppDiff) -> str:
    if app_diff.error is not None:
        return STATUS_GLYPHS["error"]
    if app_diff.app.sync_status == SyncStatus.SYNCED:
        return STATUS_GLYPHS["synced"]
    return STATUS_GLYPHS["out_of_sync"]


def app_url(app_name: str, config: ArgoDiffConfig) -> str:
    return f"{config.api_scheme}://{config.argocd.server_url}/applications/{app_name}"


def render_app_block(app_diff: AppDiff, config: ArgoDiffConfig) -> str:
    """Render the comment block of a single application."""
    app = app_diff.app
    lines: list[str] = [
        f"### {status_glyph(app_diff)} [`{app.name}`]({app_url(app.name, config)})",
        f"App sync status: {app.sync_status}",
        "",
    ]

    if app_diff.error is not None:
        lines += [
            "**`stderr:`**",
            "```",
            app_diff.error.stderr.strip() or "(no output)",
            "```",
        ]
        if app_diff.error.command:
            lines += ["**`command:`**", "```", app_diff.error.command, "```"]
        lines.append("")

    if app_diff.diff.strip():
        fenced: list[str] = ["```diff", app_diff.diff.strip(), "```"]
        if config.report.collapse_diff:
            lines += ["<details>", "<summary>Diff</summary>", "", *fenced, "", "</details>"]
        else:
            lines += fenced
        lines.append("")

    lines.append("---")
    return "\n".join(lines)


def render_report(
    results: Sequence[AppDiff],
    env: str,
    commit_ref: str,
    config: ArgoDiffConfig | None = None,
    now: datetime | None = None,
) -> str | None:
    """Render the full comment, or None when there is nothing to report."""
    if config is None:
        config = ArgoDiffConfig()

    blocks: list[str] = [
        render_app_block(result, config) for result in results if result.has_content
    ]
    if not blocks:
        return None

    timestamp: str = format_timestamp(
        now or datetime.now(UTC),
        config.report.timezone,
        config.report.timezone_locale,
    )

    body = "\n".join(
        [
            report_marker(env),
            f"## ArgoCD Diff on {env} for commit {_commit_link(commit_ref, config)}",
            f"_Updated at {timestamp}_",
            "",
            "\n\n".join(blocks),
            "",
            LEGEND,
        ]
    )
    return scrub_secrets(body, [config.argocd_token, config.github_token])


def _commit_link(commit_ref: str, config: ArgoDiffConfig) -> str:
    short: str = commit_ref[:7] if commit_ref else "unknown"
    if commit_ref and config.github.repository:
        return f"[`{short}`](https://github.com/{config.github.repository}/commit/{commit_ref})"
    return f"`{short}`"


def split_into_chunks(text: str, max_length: int = MAX_COMMENT_LENGTH) -> list[str]:
    """Split text into pieces of at most max_length, preferring line breaks."""
    chunks: list[str] = []
    start = 0
    while start < len(text):
        end: int = start + max_length
        if end >= len(text):
            end = len(text)
        else:
            last_newline: int = text.rfind("\n", start, end + 1)
            if last_newline > start:
                end = last_newline
        chunks.append(text[start:end])
        start = end
    return chunks
