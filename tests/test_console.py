from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from rich.table import Table

from argodiff.console import (
    create_table,
    format_app,
    format_path,
    format_status,
    print_app_list,
    print_diff,
    print_error,
    print_header,
    print_hint,
    print_info,
    print_key_value,
    print_label_index,
    print_step,
    print_success,
    print_summary,
    print_warning,
    print_yaml,
    status,
)
from argodiff.models import Application, AppSource, SyncStatus


class TestFormatFunctions:
    def test_format_app(self):
        result: str = format_app("web")
        assert "web" in result

    def test_format_path(self):
        result: str = format_path("apps/web/deployment.yaml")
        assert "apps/web/deployment.yaml" in result

    def test_format_status(self):
        assert "success" in format_status("Synced")
        assert "warning" in format_status("OutOfSync")
        assert "muted" in format_status("Unknown")


class TestCreateTable:
    def test_create_table_with_title(self):
        table: Table = create_table(title="Applications")
        assert table.title == "Applications"

    def test_create_table_without_header(self):
        table: Table = create_table(show_header=False)
        assert table.show_header is False

    def test_print_messages_no_crash(self):
        print_success("Posted report")
        print_error("Diff failed")
        print_warning("Unknown timezone")
        print_info("Nothing to report")
        print_step("Diffing web")
        print_header("Report")
        print_key_value("Config file", "(using defaults)", indent=1)
        print_hint("Pass --argocd-server-url")

    def test_print_step_numbering(self, capsys):
        print_step("Diffing web", step=2)

        assert "(2) Diffing web" in capsys.readouterr().out

    def test_print_summary_no_crash(self):
        print_summary(3, 0)
        print_summary(2, 1)

    def test_print_yaml_no_crash(self):
        print_yaml("argocd:\n  server_url: argocd.example.com\n")

    def test_print_diff_with_markup_characters(self, capsys):
        print_diff(
            [
                "===== apps/Deployment default/web ======",
                "--- /tmp/live",
                "+++ /tmp/merged",
                "@@ -1 +1 @@",
                "-  args: [--verbose]",
                "+  args: [--quiet]",
                "   [bold]context[/bold]",
            ]
        )

        output: str = capsys.readouterr().out
        assert "[--verbose]" in output
        assert "[--quiet]" in output
        assert "[bold]context[/bold]" in output

    def test_print_app_list(self, capsys):
        apps = [
            Application(name="web", source=AppSource(path="apps/web", targetRevision="main")),
            Application(name="api", sync_status=SyncStatus.OUT_OF_SYNC),
        ]

        print_app_list(apps)

        output: str = capsys.readouterr().out
        assert "web" in output
        assert "apps/web" in output
        assert "OutOfSync" in output

    def test_print_label_index(self, capsys):
        print_label_index({"apps/web.yaml": "web", "README.md": None}, "web")

        output: str = capsys.readouterr().out
        assert "apps/web.yaml" in output
        assert "README.md" in output


class TestStatus:
    def test_status_runs_block(self):
        with status("Fetching applications..."):
            fetched = ["web", "api"]

        assert fetched == ["web", "api"]

    def test_status_propagates_errors(self):
        with pytest.raises(RuntimeError), status("Fetching applications..."):
            raise RuntimeError("boom")
