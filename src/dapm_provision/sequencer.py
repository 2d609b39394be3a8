"""Runs a provisioning scenario step by step.

For every deployment plan the sequencer logs in, then uploads each element
with the session that login produced. The first failed step aborts the
whole run.
"""

from typing import Callable

from rich.console import Console

from .client import PlatformClient
from .config import ProvisionConfig
from .formatters import print_session
from .runner import RunResult, RunState, StepRunner
from .scenario import DeploymentPlan, UploadSpec
from .session import Session, authenticate
from .shared.logging import get_logger
from .upload import upload_processing_element

logger = get_logger(__name__)

ClientFactory = Callable[[str], PlatformClient]


class ScenarioSequencer:
    """Executes a scenario once: NOT_STARTED -> RUNNING -> COMPLETED | ABORTED."""

    def __init__(
        self,
        config: ProvisionConfig,
        console: Console | None = None,
        client_factory: ClientFactory | None = None,
    ):
        """Initialize sequencer.

        Args:
            config: Credentials, deployments, templates dir and scenario
            console: Output console for step narration
            client_factory: Builds a PlatformClient for a base URL
        """
        self.config = config
        self.console = console or Console()
        self.client_factory = client_factory or self._default_client
        self.state = RunState.NOT_STARTED
        self._runner = StepRunner(self.console)

    def _default_client(self, base_url: str) -> PlatformClient:
        return PlatformClient(base_url, timeout=self.config.timeout)

    async def run(self) -> RunResult:
        """Run every step of the scenario in order.

        Returns:
            RunResult with COMPLETED state only if every step succeeded

        Raises:
            RuntimeError: If this sequencer already ran
        """
        if self.state != RunState.NOT_STARTED:
            raise RuntimeError(f"Scenario already {self.state.value}")

        self.state = RunState.RUNNING
        logger.info("run_started", plans=len(self.config.scenario))

        for plan in self.config.scenario:
            if not await self._run_plan(plan):
                self.state = RunState.ABORTED
                break
        else:
            self.state = RunState.COMPLETED

        logger.info("run_finished", state=self.state.value, steps=len(self._runner.outcomes))
        return RunResult(state=self.state, outcomes=list(self._runner.outcomes))

    async def _run_plan(self, plan: DeploymentPlan) -> bool:
        username = self.config.username
        base_url = self.config.deployment_url(plan.deployment)

        async with self.client_factory(base_url) as client:
            login = await self._runner.execute(
                f"{username} logs in to {plan.deployment}",
                lambda: authenticate(client, username, self.config.password, plan.deployment),
            )
            if not login.ok:
                return False

            session = login.value
            print_session(self.console, session, username)

            for spec in plan.uploads:
                outcome = await self._runner.execute(
                    self._upload_description(plan.deployment, spec),
                    self._upload_action(client, session, spec),
                )
                if not outcome.ok:
                    return False
        return True

    def _upload_description(self, deployment: str, spec: UploadSpec) -> str:
        kind = spec.processing_element_type.value if spec.processing_element_type else "untyped"
        return f"{self.config.username} uploads {spec.template} ({kind}) to {deployment}"

    def _upload_action(self, client: PlatformClient, session: Session, spec: UploadSpec):
        async def action():
            request = spec.to_request(self.config.templates_dir)
            return await upload_processing_element(client, session, request)

        return action
