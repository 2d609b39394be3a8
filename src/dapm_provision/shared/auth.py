"""Authorization header helpers.

Tokens are opaque strings issued by a deployment's auth endpoint and passed
back unchanged. Nothing here inspects or validates them.
"""


def auth_headers(token: str | None) -> dict[str, str]:
    """Build Authorization header dict.

    Args:
        token: Bearer token string

    Returns:
        Dict with Authorization header, or empty dict if no token
    """
    if token:
        return {"Authorization": f"Bearer {token}"}
    return {}
