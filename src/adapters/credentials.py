"""Ambient credential lookup.

The tool never stores credentials. A token comes either from the
environment (`GITHUB_TOKEN`, `GH_TOKEN`, `CCP_GITHUB_TOKEN`) or from the
GitHub CLI's stored session via `gh auth token`.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass

from core.config import AppSettings
from core.domain.errors import CredentialError, DependencyMissingError

_LOG = logging.getLogger(__name__)

_GH_TIMEOUT_SECONDS = 15


@dataclass(frozen=True)
class ResolvedToken:
    token: str
    source: str

    @property
    def masked(self) -> str:
        if len(self.token) <= 8:
            return "****"
        return f"{self.token[:4]}…{self.token[-4:]}"


def find_gh(settings: AppSettings) -> str | None:
    return shutil.which(settings.gh_binary)


def _token_from_gh(settings: AppSettings) -> str:
    gh = find_gh(settings)
    if gh is None:
        raise DependencyMissingError(
            "GitHub CLI (gh) is not installed. Install from https://cli.github.com "
            "or set GITHUB_TOKEN."
        )

    cmd = [gh, "auth", "token"]
    if settings.gh_hostname:
        cmd += ["--hostname", settings.gh_hostname]
    _LOG.debug("Reading token from %s", " ".join(cmd))

    try:
        completed = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=_GH_TIMEOUT_SECONDS,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as exc:
        raise CredentialError(f"Could not run `gh auth token`: {exc}") from exc

    token = (completed.stdout or "").strip()
    if completed.returncode != 0 or not token:
        detail = (completed.stderr or "").strip() or "no token returned"
        raise CredentialError(f"GitHub CLI is not authenticated ({detail}). Run `gh auth login`.")
    return token


def resolve_token(settings: AppSettings | None = None) -> ResolvedToken:
    """Return the token to use for billing calls.

    Raises `DependencyMissingError` when no token is configured and `gh` is
    absent, `CredentialError` when `gh` has no usable session.
    """

    settings = settings or AppSettings()
    if settings.github_token and settings.github_token.strip():
        return ResolvedToken(settings.github_token.strip(), source="environment")
    return ResolvedToken(_token_from_gh(settings), source="gh")
