"""HTTP client for one platform deployment.

Each deployment has its own base URL and its own authentication domain, so
one client instance is bound to exactly one deployment.
"""

from typing import Any

import httpx

from .errors import ProvisionError, map_connection_error, map_http_error, map_request_error
from .shared.logging import get_logger

logger = get_logger(__name__)

AUTHENTICATE_PATH = "/api/auth/authenticate"
UPLOAD_PROCESSING_ELEMENT_PATH = "/api/templates/uploadNewProcessingElement"


class PlatformClient:
    """Async HTTP client for a platform deployment's REST API."""

    def __init__(
        self,
        base_url: str,
        timeout: float | None = None,
        insecure: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            base_url: Deployment URL (e.g., http://localhost:8081)
            timeout: Request timeout in seconds, None for the httpx default
            insecure: Skip SSL certificate verification (like curl -k)
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.insecure = insecure
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "PlatformClient":
        """Enter async context."""
        kwargs: dict[str, Any] = {
            "base_url": self.base_url,
            "verify": not self.insecure,
        }
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        if self._transport is not None:
            kwargs["transport"] = self._transport
        self._client = httpx.AsyncClient(**kwargs)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure client is initialized."""
        if not self._client:
            raise ProvisionError("Client not initialized. Use 'async with' context.")
        return self._client

    async def post(
        self,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        data: dict[str, str] | None = None,
        files: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """POST to the deployment.

        Args:
            path: API path (e.g., /api/auth/authenticate)
            json: JSON body
            data: Scalar multipart fields
            files: Binary multipart fields
            headers: Extra request headers

        Returns:
            The 2xx response

        Raises:
            TransportError: When no response reached the server
            InvalidResponseError: When the response body cannot be decoded
            ApiError: On non-2xx responses
        """
        client = self._ensure_client()
        url = f"{self.base_url}{path}"
        logger.debug("http_request", method="POST", url=url)
        try:
            response = await client.post(path, json=json, data=data, files=files, headers=headers)
        except httpx.TransportError as e:
            raise map_connection_error(e, url) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise map_request_error(e, url) from e

        logger.debug("http_response", url=url, status_code=response.status_code)
        if not response.is_success:
            raise map_http_error(response)
        return response
