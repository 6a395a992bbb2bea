# src/branchflow/hosting.py: Remote hosting API client.
# This module provides a thin adapter over the hosting service's HTTP API.
# It exchanges credentials for a token once, keeps the token on disk, and
# issues authenticated POST requests whose raw responses are left for the
# caller to interpret.

import os
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from .config import HostingConfig
from .util.errors import AuthenticationError, RemoteError
from .util.log import get_logger

logger = get_logger(__name__)


class HostingClient:
    """Authenticated access to the hosting service API."""

    def __init__(self, config: HostingConfig, timeout: float = 30.0):
        self.api_url = config.api_url.rstrip("/")
        self.token_path: Path = config.resolved_token_path()
        self.timeout = timeout
        self._token: Optional[str] = None

    def _url(self, path: str) -> str:
        return f"{self.api_url}/{path.lstrip('/')}"

    def authenticate(self, username: str, password: str, note: str = "branchflow") -> str:
        """
        Exchanges credentials for an API token and persists it.

        Raises:
            AuthenticationError: If the service rejects the credentials.
            RemoteError: If the service cannot be reached.
        """
        try:
            response = requests.post(
                self._url("authorizations"),
                json={"note": note, "scopes": ["repo"]},
                auth=(username, password),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RemoteError(f"Could not reach hosting API at {self.api_url}: {e}")

        if response.status_code in (401, 403):
            raise AuthenticationError(f"Hosting API rejected the credentials for '{username}'.")
        if not response.ok:
            raise RemoteError(f"Hosting API returned HTTP {response.status_code}: {response.text}")

        try:
            body = response.json()
        except ValueError as e:
            raise RemoteError(f"Hosting API returned a response that is not JSON: {response.text[:200]}") from e
        token = body.get("token") if isinstance(body, dict) else None
        if not token:
            raise AuthenticationError("Hosting API response did not contain a token.")
        self._save_token(token)
        logger.info(f"Stored hosting API token at {self.token_path}")
        return token

    def _save_token(self, token: str) -> None:
        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.token_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(token)
        self._token = token

    def token(self) -> str:
        if self._token is None:
            if not self.token_path.is_file():
                raise AuthenticationError("Not logged in to the hosting API. Run 'branchflow login' first.")
            self._token = self.token_path.read_text().strip()
        return self._token

    def post(self, path: str, payload: Dict[str, Any]) -> requests.Response:
        """Sends an authenticated POST and returns the raw response."""
        try:
            return requests.post(
                self._url(path),
                json=payload,
                headers={"Authorization": f"token {self.token()}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise RemoteError(f"Hosting API request to '{path}' failed: {e}")
