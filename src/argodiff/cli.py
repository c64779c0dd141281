"""argodiff CLI - ArgoCD diffs for pull requests.

Finds the ArgoCD applications a pull request touches, diffs them against
the live cluster state and comments the result on the pull request.
"""

from __future__ import annotations

import rich_click as click

from argodiff.commands import affected, apps, config, filter_cmd, run_cmd

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.USE_MARKDOWN = False
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = (
    "Try running the '--help' flag for more information."
)
click.rich_click.STYLE_OPTION = "cyan"
click.rich_click.STYLE_ARGUMENT = "green"
click.rich_click.STYLE_COMMAND = "bold yellow"
click.rich_click.STYLE_SWITCH = "cyan"
click.rich_click.HEADER_TEXT = "argodiff - ArgoCD diffs for pull requests"
click.rich_click.STYLE_HEADER_TEXT = "bold magenta"
click.rich_click.ALIGN_COMMANDS_PANEL = "left"
click.rich_click.ALIGN_OPTIONS_PANEL = "left"
click.rich_click.MAX_WIDTH = 100

CLI_HELP = """Comment ArgoCD diffs on pull requests.

\b
[bold cyan]Quick Start:[/bold cyan]
  [bold yellow]argodiff run[/bold yellow]                    Diff a pull request and comment
  [bold yellow]argodiff run --dry-run[/bold yellow]          Print the report instead
  [bold yellow]argodiff apps[/bold yellow]                   List ArgoCD applications
  [bold yellow]argodiff affected APP FILE...[/bold yellow]   Check files against an app
  [bold yellow]argodiff filter diff.txt[/bold yellow]        Filter a saved diff
"""


@click.group(help=CLI_HELP)
def cli() -> None:
    """argodiff CLI entry point."""
    pass


cli.add_command(affected)
cli.add_command(apps)
cli.add_command(config)
cli.add_command(filter_cmd)
cli.add_command(run_cmd)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
