"""The `affected` command: check which changed files belong to an application."""

from __future__ import annotations

from pathlib import Path

import rich_click as click

from argodiff import console as con
from argodiff.config import DEFAULT_TRACKING_LABEL
from argodiff.labels import label_index


@click.command("affected")
@click.argument("app_name")
@click.argument("files", nargs=-1, required=True)
@click.option("--tracking-label", default=DEFAULT_TRACKING_LABEL, show_default=True, envvar="TRACKING_LABEL")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory relative file paths are resolved against.",
)
def affected(app_name: str, files: tuple[str, ...], tracking_label: str, root: Path | None) -> None:
    """Tell whether FILES change the application APP_NAME.

    Exits with status 0 when the application is affected, 1 otherwise.
    """
    index: dict[str, str | None] = label_index(files, tracking_label, root=root)
    con.print_label_index(index, app_name)

    if app_name in index.values():
        con.print_success(f"{con.format_app(app_name)} is affected")
        return

    con.print_info(f"{con.format_app(app_name)} is not affected")
    raise SystemExit(1)
