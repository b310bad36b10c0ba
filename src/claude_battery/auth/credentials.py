"""Read-only lookup of the Claude Code OAuth credential.

Claude Code keeps its OAuth token in the macOS Keychain or, on other
platforms, in ``~/.claude/.credentials.json``. The monitor only needs the
capability ``fetch_credential() -> Optional[Credential]``; each store below
implements it and none of them ever writes back.
"""

import json
import logging
import os
import shutil
import subprocess
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence

from claude_battery.core.models import Credential

logger = logging.getLogger(__name__)

DEFAULT_CREDENTIALS_PATH = Path.home() / ".claude" / ".credentials.json"
KEYCHAIN_SERVICE = "Claude Code-credentials"
TOKEN_ENV_VAR = "CLAUDE_OAUTH_TOKEN"


class CredentialProvider(Protocol):
    """Capability the monitor uses to obtain the current credential."""

    def fetch_credential(self) -> Optional[Credential]:
        ...


def parse_credential_payload(payload: Any) -> Optional[Credential]:
    """
    Build a Credential from the JSON document Claude Code stores.

    Accepts either the full document (``{"claudeAiOauth": {...}}``) or the inner object.
    ``expiresAt`` is read as epoch milliseconds. Returns None when no access token is present.
    """
    if not isinstance(payload, dict):
        return None

    oauth = payload.get("claudeAiOauth", payload)
    if not isinstance(oauth, dict):
        return None

    token = oauth.get("accessToken")
    if not isinstance(token, str) or not token:
        return None

    expires_at = None
    raw_expiry = oauth.get("expiresAt")
    if isinstance(raw_expiry, (int, float)) and not isinstance(raw_expiry, bool):
        try:
            expires_at = datetime.fromtimestamp(raw_expiry / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.debug("Ignoring out-of-range credential expiry")

    plan = oauth.get("subscriptionType")
    return Credential(
        access_token=token,
        expires_at=expires_at,
        plan=plan if isinstance(plan, str) else None,
    )


class FileCredentialStore:
    """Reads ``~/.claude/.credentials.json``."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path else DEFAULT_CREDENTIALS_PATH

    def fetch_credential(self) -> Optional[Credential]:
        if not self.path.exists():
            return None
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.debug(f"Unreadable credentials file {self.path}: {type(e).__name__}")
            return None
        return parse_credential_payload(payload)


class KeychainCredentialStore:
    """Reads the Claude Code entry from the macOS login Keychain."""

    def __init__(self, service: str = KEYCHAIN_SERVICE, timeout: float = 5.0) -> None:
        self.service = service
        self.timeout = timeout

    def fetch_credential(self) -> Optional[Credential]:
        if not shutil.which("security"):
            return None
        try:
            result = subprocess.run(
                ["security", "find-generic-password", "-s", self.service, "-w"],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"Keychain lookup failed: {type(e).__name__}")
            return None

        secret = result.stdout.strip()
        if result.returncode != 0 or not secret:
            return None
        try:
            return parse_credential_payload(json.loads(secret))
        except json.JSONDecodeError:
            logger.debug("Keychain entry is not JSON")
            return None


class EnvironmentCredentialProvider:
    """Token supplied through ``CLAUDE_OAUTH_TOKEN`` (no known expiry)."""

    def __init__(
        self, variable: str = TOKEN_ENV_VAR, environ: Optional[Dict[str, str]] = None
    ) -> None:
        self.variable = variable
        self.environ = os.environ if environ is None else environ

    def fetch_credential(self) -> Optional[Credential]:
        token = self.environ.get(self.variable)
        return Credential(access_token=token) if token else None


class ChainedCredentialProvider:
    """Returns the credential of the first provider that has one."""

    def __init__(self, providers: Sequence[CredentialProvider]) -> None:
        self.providers = list(providers)

    def fetch_credential(self) -> Optional[Credential]:
        for provider in self.providers:
            credential = provider.fetch_credential()
            if credential is not None:
                return credential
        return None


def default_credential_provider(
    credentials_path: Optional[Path] = None,
) -> ChainedCredentialProvider:
    """Environment override, then the Keychain on macOS, then the credentials file."""
    providers: List[CredentialProvider] = [EnvironmentCredentialProvider()]
    if sys.platform == "darwin":
        providers.append(KeychainCredentialStore())
    providers.append(FileCredentialStore(credentials_path))
    return ChainedCredentialProvider(providers)
