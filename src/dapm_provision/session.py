"""Per-deployment authentication.

A Session is the bearer token issued by one deployment. It is created by a
successful login, never mutated, and only ever sent back to the deployment
that issued it.
"""

from dataclasses import dataclass

from .client import AUTHENTICATE_PATH, PlatformClient
from .errors import InvalidResponseError, response_body
from .shared.auth import auth_headers
from .shared.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Session:
    """Authenticated context bound to one deployment."""

    deployment: str
    base_url: str
    token: str

    def headers(self) -> dict[str, str]:
        """Authorization header for requests to this session's deployment."""
        return auth_headers(self.token)

    def __repr__(self) -> str:
        return f"Session(deployment={self.deployment!r}, base_url={self.base_url!r})"


async def authenticate(
    client: PlatformClient,
    username: str,
    password: str,
    deployment: str,
) -> Session:
    """Log in to a deployment and return its session.

    Args:
        client: Client bound to the deployment
        username: Account name (identical on every deployment)
        password: Account password
        deployment: Deployment name, carried on the session for display

    Returns:
        Session holding the issued bearer token

    Raises:
        TransportError: When the deployment is unreachable
        ApiError: When the deployment rejects the credentials
        InvalidResponseError: When the response carries no token
    """
    response = await client.post(
        AUTHENTICATE_PATH,
        json={"username": username, "password": password},
    )

    body = response_body(response)
    token = body.get("token") if isinstance(body, dict) else None
    if not isinstance(token, str) or not token:
        raise InvalidResponseError(
            message="Authentication response did not contain a token",
            body=body,
        )

    logger.info("authenticated", deployment=deployment, username=username)
    return Session(deployment=deployment, base_url=client.base_url, token=token)
