"""Configuration management for argodiff.

All inputs of a run (ArgoCD server, diff tool, report and GitHub settings)
live in one ``ArgoDiffConfig`` built once at the CLI entry point. Values can
come from a ``.argodiff.yaml`` file and are overridden by command-line
options or their environment variables.
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILE_NAME = ".argodiff.yaml"

DEFAULT_DIFF_TOOL = "diff -N -u"
DEFAULT_TRACKING_LABEL = "argocd.argoproj.io/instance"
DEFAULT_PART_OF_LABEL = "app.kubernetes.io/part-of"
DEFAULT_NOISY_KEY = "managedFields"


@dataclass
class ArgoCDConfig:
    """Connection to the ArgoCD server and its CLI."""

    server_url: str = ""
    """Host (and optional port) of the ArgoCD server, without scheme."""

    token: str | None = None
    """Auth token. Can be an env var reference like '$ARGOCD_TOKEN'."""

    version: str = "v2.11.0"
    """ArgoCD CLI release to download."""

    arch: str = "linux"
    """Platform part of the release asset name (argocd-<arch>-amd64)."""

    plaintext: bool = False
    """Talk to the server over plain HTTP."""

    extra_cli_args: str = ""
    """Extra arguments appended to every argocd invocation."""

    binary_path: str | None = None
    """Use an existing argocd binary instead of downloading one."""


@dataclass
class DiffConfig:
    """How diffs are produced and filtered."""

    diff_tool: str = DEFAULT_DIFF_TOOL
    """Value of KUBECTL_EXTERNAL_DIFF passed to the argocd CLI."""

    tracking_label: str = DEFAULT_TRACKING_LABEL
    """Label whose value names the ArgoCD application owning a manifest."""

    part_of_label: str = DEFAULT_PART_OF_LABEL
    """Secondary label whose changes are always dropped from diffs."""

    noisy_key: str = DEFAULT_NOISY_KEY
    """Nested metadata block suppressed from diffs."""


@dataclass
class ReportConfig:
    """How the pull request comment is rendered."""

    environment: str = "default"
    """Environment label shown in the comment heading."""

    collapse_diff: bool = False
    """Wrap each diff in a collapsible <details> block."""

    timezone: str = "UTC"
    """IANA timezone for the 'Updated at' timestamp."""

    timezone_locale: str = "en-US"
    """Locale deciding the timestamp layout."""


@dataclass
class GitHubConfig:
    """Pull request the run reports on."""

    token: str | None = None
    """API token. Can be an env var reference like '$GITHUB_TOKEN'."""

    repository: str = ""
    """'owner/repo' of the pull request."""

    pr_number: int | None = None

    commit_sha: str = ""

    api_url: str = "https://api.github.com"


@dataclass
class ArgoDiffConfig:
    """Main configuration for argodiff."""

    argocd: ArgoCDConfig = field(default_factory=ArgoCDConfig)
    diff: DiffConfig = field(default_factory=DiffConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)

    @property
    def api_scheme(self) -> str:
        return "http" if self.argocd.plaintext else "https"

    @property
    def argocd_token(self) -> str:
        return resolve_env_var(self.argocd.token) or ""

    @property
    def github_token(self) -> str:
        return resolve_env_var(self.github.token) or ""

    def effective_cli_args(self) -> list[str]:
        """Extra argocd arguments, with --plaintext added when enabled."""
        args: list[str] = shlex.split(self.argocd.extra_cli_args or "")
        if self.argocd.plaintext and "--plaintext" not in args:
            args.append("--plaintext")
        return args

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ArgoDiffConfig:
        """Create config from a dictionary."""
        argocd_data = data.get("argocd", {}) or {}
        argocd = ArgoCDConfig(
            server_url=argocd_data.get("server_url", ""),
            token=argocd_data.get("token"),
            version=argocd_data.get("version", "v2.11.0"),
            arch=argocd_data.get("arch", "linux"),
            plaintext=bool(argocd_data.get("plaintext", False)),
            extra_cli_args=argocd_data.get("extra_cli_args", "") or "",
            binary_path=argocd_data.get("binary_path"),
        )

        diff_data = data.get("diff", {}) or {}
        diff = DiffConfig(
            diff_tool=diff_data.get("diff_tool", DEFAULT_DIFF_TOOL),
            tracking_label=diff_data.get("tracking_label", DEFAULT_TRACKING_LABEL),
            part_of_label=diff_data.get("part_of_label", DEFAULT_PART_OF_LABEL),
            noisy_key=diff_data.get("noisy_key", DEFAULT_NOISY_KEY),
        )

        report_data = data.get("report", {}) or {}
        report = ReportConfig(
            environment=report_data.get("environment", "default"),
            collapse_diff=bool(report_data.get("collapse_diff", False)),
            timezone=report_data.get("timezone", "UTC"),
            timezone_locale=report_data.get("timezone_locale", "en-US"),
        )

        github_data = data.get("github", {}) or {}
        pr_number = github_data.get("pr_number")
        github = GitHubConfig(
            token=github_data.get("token"),
            repository=github_data.get("repository", ""),
            pr_number=int(pr_number) if pr_number is not None else None,
            commit_sha=github_data.get("commit_sha", ""),
            api_url=github_data.get("api_url", "https://api.github.com"),
        )

        return cls(argocd=argocd, diff=diff, report=report, github=github)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary."""
        argocd_dict: dict[str, Any] = {
            "server_url": self.argocd.server_url,
            "version": self.argocd.version,
            "arch": self.argocd.arch,
            "plaintext": self.argocd.plaintext,
            "extra_cli_args": self.argocd.extra_cli_args,
        }
        # Only references are written back; a resolved secret never is.
        if self.argocd.token and self.argocd.token.startswith("$"):
            argocd_dict["token"] = self.argocd.token
        if self.argocd.binary_path:
            argocd_dict["binary_path"] = self.argocd.binary_path

        github_dict: dict[str, Any] = {
            "repository": self.github.repository,
            "api_url": self.github.api_url,
        }
        if self.github.token and self.github.token.startswith("$"):
            github_dict["token"] = self.github.token

        return {
            "argocd": argocd_dict,
            "diff": {
                "diff_tool": self.diff.diff_tool,
                "tracking_label": self.diff.tracking_label,
                "part_of_label": self.diff.part_of_label,
                "noisy_key": self.diff.noisy_key,
            },
            "report": {
                "environment": self.report.environment,
                "collapse_diff": self.report.collapse_diff,
                "timezone": self.report.timezone,
                "timezone_locale": self.report.timezone_locale,
            },
            "github": github_dict,
        }

    @classmethod
    def get_default(cls) -> ArgoDiffConfig:
        """Get default configuration with secrets read from the environment."""
        return cls(
            argocd=ArgoCDConfig(token="$ARGOCD_TOKEN"),
            github=GitHubConfig(token="$GITHUB_TOKEN"),
        )


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find the config file by walking up the directory tree.

    Starts from start_path (or cwd) and walks up looking for .argodiff.yaml.
    """
    if start_path is None:
        start_path: Path = Path.cwd()

    current: Path = start_path
    while current != current.parent:
        config_path: Path = current / CONFIG_FILE_NAME
        if config_path.exists():
            return config_path
        current: Path = current.parent

    return None


def load_config(config_path: Path | None = None) -> ArgoDiffConfig:
    """Load configuration from file or return defaults.

    If config_path is None, searches for .argodiff.yaml in the directory tree.
    If no config file is found, returns default configuration.
    """
    if config_path is None:
        config_path: Path | None = find_config_file()

    if config_path is None or not config_path.exists():
        return ArgoDiffConfig.get_default()

    with config_path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return ArgoDiffConfig.from_dict(data)


def save_config(config: ArgoDiffConfig, config_path: Path) -> None:
    """Save configuration to a file."""
    with config_path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)


def generate_default_config() -> str:
    """Generate default configuration as YAML string."""
    config: ArgoDiffConfig = ArgoDiffConfig.get_default()
    return yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False)


def resolve_env_var(value: str | None) -> str | None:
    """Resolve environment variable references in a string.

    Supports:
    - $VAR_NAME -> os.environ.get("VAR_NAME")
    - ${VAR_NAME} -> os.environ.get("VAR_NAME")
    - Plain values returned as-is

    Returns None if the value is None or if the env var is not set.
    """
    if value is None:
        return None

    if value.startswith("$"):
        var_name: str = value[1:]
        if var_name.startswith("{") and var_name.endswith("}"):
            var_name: str = var_name[1:-1]
        return os.environ.get(var_name)

    return value
