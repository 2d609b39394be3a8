"""Shared test fixtures for dapm-provision tests.

This module provides an in-process stand-in for the platform:
- MockPlatform: Simulates any number of deployments behind one httpx.MockTransport
- template_dir: Template and config-schema files for the built-in scenario
- provision_config: Configuration pointing the built-in scenario at MockPlatform
"""

import base64
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
import pytest

from dapm_provision.client import PlatformClient
from dapm_provision.config import ProvisionConfig

ORGA_URL = "http://org-a.test"
ORGB_URL = "http://org-b.test"

DEFAULT_TEMPLATE_FILES = [
    "HospitalEventSource.java",
    "orga_hospitaleventsource_config_schema.json",
    "DepartmentFilter.java",
    "orga_departmentfilter_config_schema.json",
    "PetriNetSink.java",
    "orga_petrinetsink_config_schema.json",
    "HeuristicsMiner.java",
    "orgb_heuristicsminer_config_schema.json",
]


def encode_token(claims: dict[str, Any]) -> str:
    """Build an unsigned compact JWT carrying the given claims."""

    def segment(data: dict[str, Any]) -> str:
        raw = json.dumps(data).encode()
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()

    return f"{segment({'alg': 'HS256', 'typ': 'JWT'})}.{segment(claims)}.c2lnbmF0dXJl"


def parse_multipart(request: httpx.Request) -> dict[str, dict[str, Any]]:
    """Split a multipart/form-data request into its named parts."""
    boundary = request.headers["content-type"].split("boundary=", 1)[1].encode()
    parts: dict[str, dict[str, Any]] = {}
    for chunk in request.content.split(b"--" + boundary):
        if not chunk or chunk.startswith(b"--"):
            continue
        head, _, body = chunk[2:].partition(b"\r\n\r\n")
        name = re.search(rb'name="([^"]+)"', head).group(1).decode()
        filename = re.search(rb'filename="([^"]+)"', head)
        parts[name] = {
            "filename": filename.group(1).decode() if filename else None,
            "content": body[:-2],
        }
    return parts


# =============================================================================
# Mock platform - Simulates the auth and template upload endpoints
# =============================================================================


@dataclass
class RecordedRequest:
    """One request as seen by the mock platform."""

    host: str
    path: str
    authorization: str | None
    json: dict[str, Any] | None = None
    parts: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def fields(self) -> dict[str, str]:
        """Scalar multipart fields decoded as text."""
        return {
            name: part["content"].decode()
            for name, part in self.parts.items()
            if part["filename"] is None
        }


@dataclass
class MockPlatformState:
    """State for MockPlatform to track requests and configure responses."""

    # Request tracking
    requests: list[RecordedRequest] = field(default_factory=list)

    # Response configuration, keyed by host
    tokens: dict[str, str] = field(default_factory=dict)
    login_status: dict[str, int] = field(default_factory=dict)
    login_body: dict[str, Any] = field(default_factory=dict)
    # Upload failures keyed by (host, template filename)
    upload_status: dict[tuple[str, str], int] = field(default_factory=dict)
    unreachable: set[str] = field(default_factory=set)
    # Raw upload responses keyed by host, served instead of the normal handling
    upload_response: dict[str, httpx.Response] = field(default_factory=dict)

    expected_username: str = "anna"
    expected_password: str = "dapm"

    @property
    def logins(self) -> list[RecordedRequest]:
        return [r for r in self.requests if r.path == "/api/auth/authenticate"]

    @property
    def uploads(self) -> list[RecordedRequest]:
        return [r for r in self.requests if r.path == "/api/templates/uploadNewProcessingElement"]


class MockPlatform:
    """Mock platform serving every deployment from one transport.

    Provides:
    - POST /api/auth/authenticate - returns the host's token
    - POST /api/templates/uploadNewProcessingElement - checks the bearer token
    """

    def __init__(self, state: MockPlatformState | None = None):
        self.state = state or MockPlatformState()
        self.transport = httpx.MockTransport(self.handle)

    def token_for(self, host: str) -> str:
        """Token the given host issues on login."""
        if host not in self.state.tokens:
            self.state.tokens[host] = encode_token({"sub": "anna", "iss": host, "iat": 1700000000})
        return self.state.tokens[host]

    def issue_token(self, host: str, **claims: Any) -> str:
        """Make the given host issue a token with these claims."""
        self.state.tokens[host] = encode_token(claims)
        return self.state.tokens[host]

    def client_factory(self, base_url: str) -> PlatformClient:
        """Build clients that talk to this mock."""
        return PlatformClient(base_url, transport=self.transport)

    def handle(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        if host in self.state.unreachable:
            raise httpx.ConnectError("Connection refused", request=request)

        recorded = RecordedRequest(
            host=host,
            path=request.url.path,
            authorization=request.headers.get("authorization"),
        )
        self.state.requests.append(recorded)

        if request.url.path == "/api/auth/authenticate":
            recorded.json = json.loads(request.content)
            return self.handle_login(host, recorded.json)
        if request.url.path == "/api/templates/uploadNewProcessingElement":
            recorded.parts = parse_multipart(request)
            return self.handle_upload(host, recorded)
        return httpx.Response(404, json={"message": "Not found"})

    def handle_login(self, host: str, body: dict[str, Any]) -> httpx.Response:
        status = self.state.login_status.get(host, 200)
        if status != 200:
            return httpx.Response(status, json={"message": "Bad credentials"})
        if (
            body.get("username") != self.state.expected_username
            or body.get("password") != self.state.expected_password
        ):
            return httpx.Response(401, json={"message": "Bad credentials"})
        if self.state.login_body:
            return httpx.Response(200, json=self.state.login_body)
        return httpx.Response(200, json={"token": self.token_for(host)})

    def handle_upload(self, host: str, recorded: RecordedRequest) -> httpx.Response:
        if recorded.authorization != f"Bearer {self.token_for(host)}":
            return httpx.Response(403, json={"message": "Forbidden"})
        if host in self.state.upload_response:
            return self.state.upload_response[host]
        template = recorded.parts.get("template", {}).get("filename")
        status = self.state.upload_status.get((host, template), 200)
        if status != 200:
            return httpx.Response(status, json={"message": "Template rejected"})
        return httpx.Response(200, json={"message": "Processing element uploaded"})


@pytest.fixture
def mock_platform_state() -> MockPlatformState:
    """Fixture providing MockPlatform state for configuration."""
    return MockPlatformState()


@pytest.fixture
def mock_platform(mock_platform_state: MockPlatformState) -> MockPlatform:
    """Fixture providing a MockPlatform instance."""
    return MockPlatform(mock_platform_state)


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """Directory with every file the built-in scenario uploads."""
    for name in DEFAULT_TEMPLATE_FILES:
        if name.endswith(".json"):
            (tmp_path / name).write_text(json.dumps({"type": "object", "properties": {}}))
        else:
            (tmp_path / name).write_text(f"// {name}\npublic class Template {{}}\n")
    return tmp_path


@pytest.fixture
def provision_config(template_dir: Path) -> ProvisionConfig:
    """Built-in scenario aimed at the mock platform."""
    return ProvisionConfig(
        deployments={"orga": ORGA_URL, "orgb": ORGB_URL},
        templates_dir=template_dir,
    )
