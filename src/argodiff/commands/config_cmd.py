"""Configuration management commands."""

from __future__ import annotations

from pathlib import Path

import rich_click as click
import yaml

from argodiff import console as con
from argodiff.config import (
    CONFIG_FILE_NAME,
    find_config_file,
    generate_default_config,
    load_config,
)


@click.group()
def config() -> None:
    """Manage argodiff configuration."""
    pass


@config.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing config file.")
def config_init(force: bool) -> None:
    """Write a default .argodiff.yaml in the current directory."""
    config_path = Path.cwd() / CONFIG_FILE_NAME

    if config_path.exists() and not force:
        con.print_error(f"Config file already exists: {config_path}")
        con.print_hint("Use --force to overwrite.")
        raise SystemExit(1)

    config_content = generate_default_config()

    with config_path.open("w", encoding="utf-8") as f:
        f.write(config_content)

    con.print_success(f"Created {con.format_path(str(config_path))}")
    con.console.print()
    con.print_yaml(config_content)


@config.command("show")
def config_show() -> None:
    """Show current configuration."""
    config_path = find_config_file()
    cfg = load_config(config_path)

    if config_path:
        con.print_key_value("Config file", con.format_path(str(config_path)))
    else:
        con.print_key_value("Config file", "(using defaults)")
    con.console.print()

    con.print_yaml(yaml.safe_dump(cfg.to_dict(), default_flow_style=False, sort_keys=False))
