"""ArgoCD server API and CLI integration."""

from __future__ import annotations

import os
import shlex
import subprocess
from pathlib import Path
from subprocess import CompletedProcess
from typing import TYPE_CHECKING, Any

import requests
from pydantic import ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from argodiff.models import (
    Application,
    ApplicationList,
    DiffFailed,
    DiffFound,
    DiffOutcome,
    NoDiff,
)

if TYPE_CHECKING:
    from argodiff.config import ArgoDiffConfig

RELEASES_URL = "https://github.com/argoproj/argo-cd/releases/download"
DEFAULT_BINARY_PATH = Path("bin/argo")


class ArgoCDError(Exception):
    """Raised when the ArgoCD server cannot be queried."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code: int | None = status_code


def _create_session() -> requests.Session:
    session = requests.Session()
    retry_strategy = Retry(
        total=3,
        backoff_factor=1,
        status_forcelist=[429, 500, 502, 503, 504],
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class ArgoCDClient:
    """Read-only client for the ArgoCD REST API."""

    def __init__(self, config: ArgoDiffConfig, session: requests.Session | None = None):
        self.config = config
        self.session: requests.Session = session or _create_session()

    @property
    def applications_url(self) -> str:
        return f"{self.config.api_scheme}://{self.config.argocd.server_url}/api/v1/applications"

    def list_applications(self) -> list[Application]:
        """Fetch every application visible to the configured token.

        Raises:
            ArgoCDError: on connection errors, non-2xx answers or a body that
                is not a valid application list.
        """
        try:
            response: requests.Response = self.session.get(
                self.applications_url,
                cookies={"argocd.token": self.config.argocd_token},
                timeout=60,
            )
        except requests.RequestException as e:
            raise ArgoCDError(f"Could not reach ArgoCD at {self.applications_url}: {e}") from e

        if not response.ok:
            raise ArgoCDError(
                f"ArgoCD returned {response.status_code} for {self.applications_url}",
                status_code=response.status_code,
            )

        try:
            payload: Any = response.json()
        except ValueError as e:
            raise ArgoCDError(f"ArgoCD returned invalid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise ArgoCDError("ArgoCD returned an unexpected response body")

        try:
            return ApplicationList.from_api(payload).items
        except ValidationError as e:
            raise ArgoCDError(f"ArgoCD returned malformed applications: {e}") from e

    def repo_applications(self, repository: str) -> list[Application]:
        """Applications sourced from `owner/repo` that follow its default branch."""
        return [
            app
            for app in self.list_applications()
            if repository in app.source.repo_url and app.source.tracks_primary_branch
        ]


def cli_download_url(version: str, arch: str = "linux") -> str:
    return f"{RELEASES_URL}/{version}/argocd-{arch}-amd64"


def download_cli(
    version: str,
    arch: str = "linux",
    dest: Path = DEFAULT_BINARY_PATH,
    session: requests.Session | None = None,
) -> Path:
    """Download an argocd CLI release and make it executable.

    Raises:
        ArgoCDError: if the release cannot be downloaded.
    """
    url: str = cli_download_url(version, arch)
    session = session or _create_session()

    dest.parent.mkdir(parents=True, exist_ok=True)
    try:
        with session.get(url, stream=True, timeout=300) as response:
            response.raise_for_status()
            with dest.open("wb") as f:
                for chunk in response.iter_content(chunk_size=1024 * 1024):
                    f.write(chunk)
    except requests.RequestException as e:
        raise ArgoCDError(f"Failed to download argocd {version} from {url}: {e}") from e

    dest.chmod(0o755)
    return dest


def build_diff_command(
    binary: Path | str, app: Application, config: ArgoDiffConfig, cwd: Path
) -> list[str]:
    return [
        str(binary),
        "app",
        "diff",
        app.name,
        f"--local-repo-root={cwd}",
        f"--local={app.source.path}",
        f"--auth-token={config.argocd_token}",
        f"--server={config.argocd.server_url}",
        *config.effective_cli_args(),
    ]


def run_app_diff(
    binary: Path | str,
    app: Application,
    config: ArgoDiffConfig,
    cwd: Path | None = None,
) -> DiffOutcome:
    """Diff an application's local manifests against its live state.

    `argocd app diff` exits 1 when differences exist, so a non-zero exit with
    output on stdout is a found diff, not a failure. Output that is not valid
    UTF-8 is decoded with replacement characters.
    """
    cwd = cwd or Path.cwd()
    cmd: list[str] = build_diff_command(binary, app, config, cwd)
    command_line: str = shlex.join(cmd)
    env: dict[str, str] = {**os.environ, "KUBECTL_EXTERNAL_DIFF": config.diff.diff_tool}

    try:
        result: CompletedProcess[str] = subprocess.run(
            cmd, capture_output=True, text=True, errors="replace", cwd=cwd, env=env
        )
    except OSError as e:
        return DiffFailed(stderr=f"{type(e).__name__}: {e}", command=command_line)

    if result.returncode == 0:
        return NoDiff()
    if result.stdout.strip():
        return DiffFound(text=result.stdout)
    return DiffFailed(
        stderr=result.stderr or f"argocd exited with code {result.returncode}",
        command=command_line,
    )
