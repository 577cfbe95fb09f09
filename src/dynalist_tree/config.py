"""Configuration constants for dynalist-tree."""

import os
from pathlib import Path

API_BASE_URL: str = "https://dynalist.io"

# Environment variable checked before the token files.
API_TOKEN_ENV: str = "DYNALIST_TOKEN"

# API token location. First file found is used.
API_TOKEN_FILES: list[Path] = [
    Path("~/.config/dynalist-token.txt").expanduser(),
    Path("~/.config/secret/dynalist-token.txt").expanduser(),
    Path(f"/run/user/{os.getuid()}/dynalist-token"),
]

# Transport: seconds per request, and urllib3 retry policy for 429/5xx.
REQUEST_TIMEOUT: float = 30.0
MAX_RETRIES: int = 3
RETRY_BACKOFF_FACTOR: float = 0.3
RETRY_STATUS_CODES: tuple[int, ...] = (429, 500, 502, 503, 504)

# List creation retries on top of the transport, only for lock/rate-limit failures.
CREATE_LIST_ATTEMPTS: int = 3
CREATE_LIST_BACKOFF: float = 0.3
TRANSIENT_ERROR_PATTERN: str = r"lock|TooManyRequests"

MAX_LIST_NAME_LENGTH: int = 200

ROOT_NODE_ID: str = "root"
