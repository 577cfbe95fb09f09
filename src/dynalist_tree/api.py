"""Dynalist API client with retries."""

import os
from typing import Any

import requests
from loguru import logger
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from dynalist_tree.config import (
    API_BASE_URL,
    API_TOKEN_ENV,
    API_TOKEN_FILES,
    MAX_RETRIES,
    REQUEST_TIMEOUT,
    RETRY_BACKOFF_FACTOR,
    RETRY_STATUS_CODES,
)
from dynalist_tree.errors import ApiError


def load_api_token() -> str:
    """Read the API token from the environment or the first existing token file."""
    token = os.environ.get(API_TOKEN_ENV, "").strip()
    if token:
        return token
    for token_path in API_TOKEN_FILES:
        try:
            return token_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            pass
    msg = (
        f"Cannot find dynalist token, set {API_TOKEN_ENV} "
        f"or create one of {API_TOKEN_FILES!r}"
    )
    raise RuntimeError(msg)


class DynalistApi:
    """Synchronous Dynalist API v1 client.

    Rate limiting (429) and server errors (5xx) are retried by the session with
    exponential backoff, so callers see one terminal success or failure.
    """

    def __init__(
        self,
        *,
        token: str | None = None,
        base_url: str = API_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        max_retries: int = MAX_RETRIES,
    ) -> None:
        self.api_token = token or load_api_token()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        retry = Retry(
            total=max_retries,
            backoff_factor=RETRY_BACKOFF_FACTOR,
            status_forcelist=RETRY_STATUS_CODES,
            allowed_methods=frozenset({"POST"}),
            raise_on_status=False,
        )
        self.sess = requests.Session()
        self.sess.mount("https://", HTTPAdapter(max_retries=retry))
        self.sess.mount("http://", HTTPAdapter(max_retries=retry))

        logger.debug("API ready: base_url {!r}, max_retries {}", self.base_url, max_retries)

    def call(self, path: str, args: dict[str, Any]) -> dict[str, Any]:
        """Invoke dynalist API, return json."""
        logger.debug("Making request: {!r} {}", path, repr(args)[:64])

        r = self.sess.post(
            f"{self.base_url}/api/v1/{path}",
            json={"token": self.api_token, **args},
            timeout=self.timeout,
        )
        r.raise_for_status()
        rv: dict[str, Any] = r.json()
        code = str(rv.get("_code") or "")
        if code.lower() != "ok":
            message = rv.get("_msg") or "Unknown error"
            logger.error("API call failed: {!r} -> ({!r}, {!r})", path, code, message)
            raise ApiError(code or "Unknown", message)
        return rv
