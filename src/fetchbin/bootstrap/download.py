"""HTTP download helpers.

All network access goes through :func:`secure_urlopen`, which refuses
anything other than https (plain http is allowed for loopback hosts so
tests and local mirrors work).
"""

from __future__ import annotations

import json
import os
from http.client import HTTPResponse
from typing import Any, Dict, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from fetchbin import __version__
from fetchbin.core.errors import NetworkError, ParseError
from fetchbin.core.logging import get_logger

LOGGER = get_logger(__name__)

USER_AGENT = f"fetchbin/{__version__}"
DEFAULT_TIMEOUT = 60.0

GITHUB_TOKEN_ENV = "GITHUB_TOKEN"

_LOOPBACK_HOSTS = {"localhost", "127.0.0.1", "::1"}


def _validate_url(url: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme == "https":
        return
    if parsed.scheme == "http" and parsed.hostname in _LOOPBACK_HOSTS:
        return
    raise ValueError(f"Refusing to download from non-https URL: {url}")


def secure_urlopen(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> HTTPResponse:
    """Open ``url`` after validating its scheme.

    Args:
        url: URL to open.
        headers: Extra request headers.
        timeout: Socket timeout in seconds.

    Returns:
        The open HTTP response (use as a context manager).

    Raises:
        ValueError: If the URL scheme is not allowed.
    """
    _validate_url(url)
    request_headers = {"User-Agent": USER_AGENT}
    if headers:
        request_headers.update(headers)
    request = Request(url, headers=request_headers)
    return urlopen(request, timeout=timeout)  # nosec B310 - scheme validated above


def github_headers() -> Dict[str, str]:
    """Headers for the GitHub API, including a token when one is configured."""
    headers = {"Accept": "application/vnd.github+json"}
    token = os.environ.get(GITHUB_TOKEN_ENV)
    if token:
        headers["Authorization"] = f"token {token}"
    return headers


def fetch_bytes(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> bytes:
    """Download ``url`` and return the body.

    Raises:
        NetworkError: On any transport failure or non-2xx status.
    """
    LOGGER.debug(f"GET {url}")
    try:
        with secure_urlopen(url, headers=headers, timeout=timeout) as response:
            return response.read()
    except HTTPError as e:
        raise NetworkError(url, f"HTTP {e.code} {e.reason}") from e
    except URLError as e:
        raise NetworkError(url, str(e.reason)) from e
    except (OSError, ValueError) as e:
        raise NetworkError(url, str(e)) from e


def fetch_text(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    """Download ``url`` and decode it as UTF-8."""
    return fetch_bytes(url, headers=headers, timeout=timeout).decode("utf-8", errors="replace")


def fetch_json(
    url: str,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """Download ``url`` and parse it as JSON.

    Raises:
        NetworkError: On transport failure.
        ParseError: If the body is not valid JSON.
    """
    body = fetch_bytes(url, headers=headers, timeout=timeout)
    try:
        return json.loads(body)
    except ValueError as e:
        raise ParseError(f"invalid JSON from {url}: {e}") from e
