"""Multipart upload of processing element templates.

A processing element is uploaded as its template source plus a JSON config
schema, along with optional metadata describing its tier and the event types
it consumes and produces.
"""

import contextlib
import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import httpx

from .client import UPLOAD_PROCESSING_ELEMENT_PATH, PlatformClient
from .errors import FileAccessError, SessionMismatchError
from .session import Session
from .shared.logging import get_logger

logger = get_logger(__name__)


class ProcessingElementType(str, Enum):
    """Role of a processing element in a stream pipeline."""

    SOURCE = "SOURCE"
    OPERATOR = "OPERATOR"
    SINK = "SINK"


# Which port metadata each element type declares: (inputs, output)
EXPECTED_PORTS = {
    ProcessingElementType.SOURCE: (False, True),
    ProcessingElementType.OPERATOR: (True, True),
    ProcessingElementType.SINK: (True, False),
}


@dataclass
class UploadRequest:
    """One processing element upload."""

    template: Path
    config_schema: Path
    tier: str | None = None
    output: str | None = None
    inputs: list[str] = field(default_factory=list)
    processing_element_type: ProcessingElementType | None = None

    def form_fields(self) -> dict[str, str]:
        """Scalar multipart fields, only those that are set."""
        fields: dict[str, str] = {}
        if self.tier:
            fields["tier"] = self.tier
        if self.output:
            fields["output"] = self.output
        if self.inputs:
            fields["inputs"] = ",".join(self.inputs)
        if self.processing_element_type is not None:
            fields["processingElementType"] = self.processing_element_type.value
        return fields

    def port_mismatches(self) -> list[str]:
        """Describe metadata that does not fit the element type.

        The platform is the authority on this; the result is only used to
        warn before sending.
        """
        if self.processing_element_type is None:
            return []
        wants_inputs, wants_output = EXPECTED_PORTS[self.processing_element_type]
        kind = self.processing_element_type.value
        problems = []
        if wants_inputs and not self.inputs:
            problems.append(f"{kind} should declare inputs")
        if not wants_inputs and self.inputs:
            problems.append(f"{kind} should not declare inputs")
        if wants_output and not self.output:
            problems.append(f"{kind} should declare an output")
        if not wants_output and self.output:
            problems.append(f"{kind} should not declare an output")
        return problems


def _open_part(stack: contextlib.ExitStack, path: Path) -> tuple[str, object, str]:
    """Open a file for a multipart part and register it for closing."""
    try:
        handle = stack.enter_context(path.open("rb"))
    except OSError as e:
        raise FileAccessError(message=f"Cannot read {path}: {e.strerror or e}", path=path) from e
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return (path.name, handle, content_type)


async def upload_processing_element(
    client: PlatformClient,
    session: Session,
    request: UploadRequest,
) -> httpx.Response:
    """Upload a processing element template to a deployment.

    Both files are opened right before sending and closed once the request
    settles, whatever the outcome.

    Args:
        client: Client bound to the target deployment
        session: Session obtained from that same deployment
        request: Files and metadata to upload

    Returns:
        The 2xx response

    Raises:
        SessionMismatchError: If the session belongs to another deployment
        FileAccessError: If a file cannot be opened
        TransportError: When the deployment is unreachable
        ApiError: When the deployment rejects the upload
    """
    if session.base_url != client.base_url:
        raise SessionMismatchError(
            f"Session for {session.base_url} cannot be used against {client.base_url}"
        )

    for problem in request.port_mismatches():
        logger.warning("port_metadata_mismatch", template=request.template.name, problem=problem)

    with contextlib.ExitStack() as stack:
        files = {
            "template": _open_part(stack, request.template),
            "configSchema": _open_part(stack, request.config_schema),
        }
        logger.info(
            "uploading_processing_element",
            deployment=session.deployment,
            template=request.template.name,
            **request.form_fields(),
        )
        return await client.post(
            UPLOAD_PROCESSING_ELEMENT_PATH,
            data=request.form_fields(),
            files=files,
            headers=session.headers(),
        )
