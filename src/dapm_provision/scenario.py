"""Declarative provisioning scenario.

A scenario is an ordered list of deployment plans. Each plan logs in to one
deployment and then uploads its processing elements in order.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .upload import ProcessingElementType, UploadRequest


def default_config_schema(deployment: str, template: str) -> str:
    """Conventional config-schema file name for a template."""
    return f"{deployment}_{Path(template).stem.lower()}_config_schema.json"


@dataclass(frozen=True)
class UploadSpec:
    """A processing element to upload, with file names relative to the templates dir."""

    template: str
    config_schema: str
    processing_element_type: ProcessingElementType | None = None
    tier: str | None = None
    output: str | None = None
    inputs: tuple[str, ...] = ()

    def to_request(self, templates_dir: Path) -> UploadRequest:
        return UploadRequest(
            template=templates_dir / self.template,
            config_schema=templates_dir / self.config_schema,
            tier=self.tier,
            output=self.output,
            inputs=list(self.inputs),
            processing_element_type=self.processing_element_type,
        )


@dataclass(frozen=True)
class DeploymentPlan:
    """Login to one deployment followed by its uploads."""

    deployment: str
    uploads: tuple[UploadSpec, ...] = field(default_factory=tuple)


DEFAULT_SCENARIO: tuple[DeploymentPlan, ...] = (
    DeploymentPlan(
        deployment="orga",
        uploads=(
            UploadSpec(
                template="HospitalEventSource.java",
                config_schema="orga_hospitaleventsource_config_schema.json",
                processing_element_type=ProcessingElementType.SOURCE,
                tier="FREE",
                output="Event",
            ),
            UploadSpec(
                template="DepartmentFilter.java",
                config_schema="orga_departmentfilter_config_schema.json",
                processing_element_type=ProcessingElementType.OPERATOR,
                tier="FREE",
                output="Event",
                inputs=("Event",),
            ),
            UploadSpec(
                template="PetriNetSink.java",
                config_schema="orga_petrinetsink_config_schema.json",
                processing_element_type=ProcessingElementType.SINK,
                tier="FREE",
                inputs=("PetriNet",),
            ),
        ),
    ),
    DeploymentPlan(
        deployment="orgb",
        uploads=(
            UploadSpec(
                template="HeuristicsMiner.java",
                config_schema="orgb_heuristicsminer_config_schema.json",
                processing_element_type=ProcessingElementType.OPERATOR,
                tier="BASIC",
                output="PetriNet",
                inputs=("Event",),
            ),
        ),
    ),
)


def _parse_inputs(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    if isinstance(value, list):
        return tuple(str(part) for part in value)
    raise ConfigError(f"inputs must be a string or a list, got {type(value).__name__}")


def _parse_upload(deployment: str, raw: Any) -> UploadSpec:
    if not isinstance(raw, dict) or "template" not in raw:
        raise ConfigError(f"Upload entry for '{deployment}' needs a 'template' key")

    template = str(raw["template"])
    element_type = None
    if raw.get("type") is not None:
        try:
            element_type = ProcessingElementType(str(raw["type"]).upper())
        except ValueError:
            allowed = ", ".join(t.value for t in ProcessingElementType)
            raise ConfigError(
                f"Unknown processing element type '{raw['type']}' (expected {allowed})"
            ) from None

    return UploadSpec(
        template=template,
        config_schema=str(raw.get("config_schema") or default_config_schema(deployment, template)),
        processing_element_type=element_type,
        tier=str(raw["tier"]) if raw.get("tier") is not None else None,
        output=str(raw["output"]) if raw.get("output") is not None else None,
        inputs=_parse_inputs(raw.get("inputs")),
    )


def parse_scenario(raw: Any, deployments: dict[str, str]) -> tuple[DeploymentPlan, ...]:
    """Build a scenario from its YAML representation.

    Args:
        raw: List of {deployment, uploads} mappings
        deployments: Known deployment names mapped to URLs

    Returns:
        Ordered deployment plans

    Raises:
        ConfigError: On unknown deployments, types or malformed entries
    """
    if not isinstance(raw, list) or not raw:
        raise ConfigError("scenario must be a non-empty list")

    plans = []
    for entry in raw:
        if not isinstance(entry, dict) or "deployment" not in entry:
            raise ConfigError("Each scenario entry needs a 'deployment' key")
        deployment = str(entry["deployment"])
        if deployment not in deployments:
            raise ConfigError(f"Scenario refers to unknown deployment '{deployment}'")
        uploads = tuple(_parse_upload(deployment, item) for item in entry.get("uploads") or [])
        plans.append(DeploymentPlan(deployment=deployment, uploads=uploads))
    return tuple(plans)
