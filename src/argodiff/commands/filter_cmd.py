"""The `filter` command: strip noise from saved `argocd app diff` output."""

from __future__ import annotations

from typing import TextIO

import rich_click as click

from argodiff import console as con
from argodiff.config import (
    DEFAULT_NOISY_KEY,
    DEFAULT_PART_OF_LABEL,
    DEFAULT_TRACKING_LABEL,
)
from argodiff.diff_filter import filter_diff


@click.command("filter")
@click.argument("diff_file", type=click.File("r", encoding="utf-8"), default="-")
@click.option("--tracking-label", default=DEFAULT_TRACKING_LABEL, show_default=True, envvar="TRACKING_LABEL")
@click.option("--part-of-label", default=DEFAULT_PART_OF_LABEL, show_default=True)
@click.option("--noisy-key", default=DEFAULT_NOISY_KEY, show_default=True, help="Metadata block to drop.")
@click.option("--raw", is_flag=True, help="Print plain text instead of colored output.")
def filter_cmd(
    diff_file: TextIO,
    tracking_label: str,
    part_of_label: str,
    noisy_key: str,
    raw: bool,
) -> None:
    """Filter a diff file (or stdin) the same way reports are filtered.

    Exits with status 1 when nothing is left after filtering.
    """
    filtered: str = filter_diff(
        diff_file.read(),
        tracking_label=tracking_label,
        part_of_label=part_of_label,
        noisy_key=noisy_key,
    )

    if not filtered:
        if not raw:
            con.print_info("No meaningful changes")
        raise SystemExit(1)

    if raw:
        click.echo(filtered)
    else:
        con.print_diff(filtered.split("\n"))
