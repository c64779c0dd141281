"""Options shared by commands that talk to the ArgoCD server."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

import rich_click as click

from argodiff.config import ArgoDiffConfig, load_config

if TYPE_CHECKING:
    from collections.abc import Callable

# option name -> (config section, field)
OVERRIDES: dict[str, tuple[str, str]] = {
    "argocd_server_url": ("argocd", "server_url"),
    "argocd_token": ("argocd", "token"),
    "argocd_version": ("argocd", "version"),
    "argocd_extra_cli_args": ("argocd", "extra_cli_args"),
    "argocd_binary": ("argocd", "binary_path"),
    "arch": ("argocd", "arch"),
    "plaintext": ("argocd", "plaintext"),
    "diff_tool": ("diff", "diff_tool"),
    "tracking_label": ("diff", "tracking_label"),
    "environment": ("report", "environment"),
    "collapse_diff": ("report", "collapse_diff"),
    "timezone": ("report", "timezone"),
    "timezone_locale": ("report", "timezone_locale"),
    "github_token": ("github", "token"),
    "repository": ("github", "repository"),
    "pr_number": ("github", "pr_number"),
    "commit_sha": ("github", "commit_sha"),
    "github_api_url": ("github", "api_url"),
}


def argocd_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the config file and ArgoCD server options to a command."""
    options = [
        click.option(
            "--config",
            "config_file",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            envvar="ARGODIFF_CONFIG",
            help="Path to .argodiff.yaml (searched upwards from cwd by default).",
        ),
        click.option("--argocd-server-url", envvar="ARGOCD_SERVER_URL", help="ArgoCD server host, without scheme."),
        click.option("--argocd-token", envvar="ARGOCD_TOKEN", help="ArgoCD auth token."),
        click.option("--argocd-version", envvar="ARGOCD_VERSION", help="ArgoCD CLI release to download."),
        click.option("--argocd-extra-cli-args", envvar="ARGOCD_EXTRA_CLI_ARGS", help="Extra arguments for the argocd CLI."),
        click.option(
            "--argocd-binary",
            envvar="ARGOCD_BINARY",
            help="Use an existing argocd binary instead of downloading one.",
        ),
        click.option("--arch", envvar="ARCH", help="Platform of the argocd release (default: linux)."),
        click.option(
            "--plaintext/--no-plaintext",
            default=None,
            envvar="ARGOCD_PLAINTEXT",
            help="Use HTTP instead of HTTPS to reach ArgoCD.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_config(config_file: Path | None, **values: Any) -> ArgoDiffConfig:
    """Load the config file and apply every option that was given."""
    config: ArgoDiffConfig = load_config(config_file)
    for name, value in values.items():
        if value is None or name not in OVERRIDES:
            continue
        section, attr = OVERRIDES[name]
        setattr(getattr(config, section), attr, value)
    return config
