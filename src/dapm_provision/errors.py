"""Error taxonomy for provisioning runs.

Maps HTTP status codes and connection failures to provisioning errors.
Every run-time error is fatal to the run; none are retryable.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import httpx


@dataclass
class ProvisionError(Exception):
    """Base error class for provisioning errors."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class TransportError(ProvisionError):
    """No response reached the server (connect error, timeout, ...)."""

    message: str = "Transport error"
    url: str | None = None


@dataclass
class ApiError(ProvisionError):
    """Server answered with a non-2xx status."""

    message: str = "API error"
    status_code: int = 0
    body: Any = None


@dataclass
class InvalidResponseError(ProvisionError):
    """Server answered 2xx but the body is unusable."""

    message: str = "Invalid response"
    body: Any = None


@dataclass
class FileAccessError(ProvisionError):
    """Template or config-schema file is unreadable."""

    message: str = "File not readable"
    path: Path | None = None


@dataclass
class SessionMismatchError(ProvisionError):
    """A session was used against a deployment that did not issue it."""

    message: str = "Session belongs to another deployment"


@dataclass
class ConfigError(ProvisionError):
    """Configuration or scenario definition is invalid."""

    message: str = "Invalid configuration"
    details: list[str] = field(default_factory=list)


def response_body(response: httpx.Response) -> Any:
    """Return the response body as JSON if possible, else as text."""
    try:
        return response.json()
    except ValueError:
        return response.text


def map_http_error(response: httpx.Response) -> ApiError:
    """Map a non-2xx response to ApiError.

    Args:
        response: HTTP response with an error status

    Returns:
        ApiError carrying status code and body
    """
    body = response_body(response)
    message = f"HTTP error {response.status_code}"
    if isinstance(body, dict):
        detail = body.get("message") or body.get("detail") or body.get("error")
        if detail:
            message = f"{message}: {detail}"
    return ApiError(message=message, status_code=response.status_code, body=body)


def map_connection_error(error: httpx.TransportError, url: str) -> TransportError:
    """Map a transport failure to TransportError.

    Args:
        error: Exception raised by httpx
        url: URL that was being accessed

    Returns:
        TransportError with a readable message
    """
    if isinstance(error, httpx.TimeoutException):
        return TransportError(message=f"Request timeout connecting to {url}", url=url)

    parsed = urlparse(url)
    host_port = f"{parsed.hostname}:{parsed.port}" if parsed.port else parsed.hostname
    return TransportError(
        message=f"Cannot reach deployment at {host_port}: {error}",
        url=url,
    )


def map_request_error(error: Exception, url: str) -> ProvisionError:
    """Map any other httpx failure to a ProvisionError.

    Args:
        error: httpx.HTTPError or httpx.InvalidURL raised while sending
        url: URL that was being accessed

    Returns:
        InvalidResponseError for undecodable bodies, TransportError otherwise
    """
    if isinstance(error, httpx.DecodingError):
        return InvalidResponseError(message=f"Cannot decode response from {url}: {error}")
    return TransportError(message=f"Request to {url} failed: {error}", url=url)
