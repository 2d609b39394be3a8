"""Operator-facing output helpers.

Token claims shown here are decoded WITHOUT verifying the signature. They
are for the operator to eyeball who they logged in as and must never feed
any authorization decision.
"""

import json
from datetime import datetime, timezone
from typing import Any

import jwt
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .session import Session

TIMESTAMP_CLAIMS = ("iat", "exp", "nbf")


def peek_token_claims(token: str) -> dict[str, Any] | None:
    """Decode a JWT payload for display, without signature verification.

    Args:
        token: Compact JWS string (header.payload.signature)

    Returns:
        Claims dict, or None if the token is not a decodable JWT
    """
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None


def _format_claim(key: str, value: Any) -> str:
    if key in TIMESTAMP_CLAIMS and isinstance(value, (int, float)):
        try:
            stamp = datetime.fromtimestamp(value, tz=timezone.utc).isoformat()
        except (ValueError, OverflowError, OSError):
            # not seconds since the epoch (e.g. milliseconds), show it raw
            return str(value)
        return f"{value} ({stamp})"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def print_session(console: Console, session: Session, username: str) -> None:
    """Print the login confirmation, the token and its unverified claims.

    Args:
        console: Output console
        session: Freshly created session
        username: Account that logged in
    """
    console.print(f"{escape(username)} successfully logged in to {escape(session.deployment)}")
    console.print(f"Token: [green]{escape(session.token)}[/green]")

    claims = peek_token_claims(session.token)
    if claims is None:
        console.print("[dim]Token payload is not a decodable JWT[/dim]")
        return

    table = Table(title="Token claims (unverified)")
    table.add_column("Claim")
    table.add_column("Value")
    for key, value in claims.items():
        table.add_row(escape(str(key)), escape(_format_claim(key, value)))
    console.print(table)
