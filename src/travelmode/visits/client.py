"""
Backend RPC client.

Visits are recorded by stored procedures on the hosted backend, reached through its
REST gateway: `POST {base_url}/rest/v1/rpc/{function}` with a JSON object of named
arguments. The same API key goes in the `apikey` header and as a bearer token.
"""

from __future__ import annotations

import logging
from typing import Any

from travelmode.config.settings import BackendSettings
from travelmode.core.http import post_json

logger = logging.getLogger(__name__)


class BackendNotConfiguredError(RuntimeError):
    """Raised when an RPC is attempted without `backend.base_url`."""


class BackendRpcClient:
    def __init__(self, settings: BackendSettings, *, access_token: str | None = None):
        self._settings = settings
        self._access_token = access_token

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        key = self._settings.api_key
        if key:
            headers["apikey"] = key
        token = self._access_token or key
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def rpc(self, function: str, params: dict[str, Any]) -> Any:
        """Call a backend function and return its decoded JSON result."""
        base_url = (self._settings.base_url or "").rstrip("/")
        if not base_url:
            raise BackendNotConfiguredError("backend.base_url is not configured (set TRAVELMODE_BACKEND_URL)")
        logger.debug("RPC %s", function)
        return post_json(
            f"{base_url}/rest/v1/rpc/{function}",
            payload=params,
            headers=self._headers(),
            timeout_seconds=self._settings.timeout_seconds,
        )
