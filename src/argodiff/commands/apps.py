"""The `apps` command: list applications deployed from a repository."""

from __future__ import annotations

from pathlib import Path

import rich_click as click

from argodiff import console as con
from argodiff.argocd import ArgoCDClient, ArgoCDError
from argodiff.commands.options import argocd_options, build_config
from argodiff.models import Application


@click.command("apps")
@argocd_options
@click.option(
    "--repository",
    envvar="GITHUB_REPOSITORY",
    help="Only list applications sourced from owner/repo on its default branch.",
)
def apps(config_file: Path | None, repository: str | None, **options: str | bool | None) -> None:
    """List ArgoCD applications and their sync status."""
    config = build_config(config_file, **options)
    if not config.argocd.server_url:
        con.print_error("No ArgoCD server configured")
        con.print_hint("Pass --argocd-server-url or set ARGOCD_SERVER_URL.")
        raise SystemExit(1)

    client = ArgoCDClient(config)
    try:
        with con.status(f"Fetching applications from {config.argocd.server_url}..."):
            found: list[Application] = (
                client.repo_applications(repository)
                if repository
                else client.list_applications()
            )
    except ArgoCDError as e:
        con.print_error(str(e))
        raise SystemExit(1) from None

    if not found:
        con.print_info("No applications found")
        return

    con.print_app_list(found)
