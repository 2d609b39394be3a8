"""Sequential step execution with fail-fast outcomes.

Each step is narrated to the operator, awaited to completion, and reported
as a StepOutcome. The runner never retries and never continues on its own;
the caller stops at the first failed outcome.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, TypeVar

from rich.console import Console
from rich.markup import escape

from .errors import ApiError, ProvisionError
from .shared.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class RunState(str, Enum):
    """Lifecycle of a provisioning run."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class StepOutcome(Generic[T]):
    """Result of one step: a value on success, an error on failure."""

    description: str
    value: T | None = None
    error: ProvisionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RunResult:
    """Result of a whole run."""

    state: RunState
    outcomes: list[StepOutcome[Any]] = field(default_factory=list)

    @property
    def failed_step(self) -> StepOutcome[Any] | None:
        for outcome in self.outcomes:
            if not outcome.ok:
                return outcome
        return None

    @property
    def exit_code(self) -> int:
        return 0 if self.state == RunState.COMPLETED else 1


class StepRunner:
    """Runs one named action at a time and narrates the result."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()
        self.outcomes: list[StepOutcome[Any]] = []

    async def execute(
        self,
        description: str,
        action: Callable[[], Awaitable[T]],
    ) -> StepOutcome[T]:
        """Run a step and report its outcome.

        Args:
            description: Human-readable step name
            action: Coroutine factory performing the step

        Returns:
            StepOutcome holding the action's value or the error it raised
        """
        self.console.print(escape(description))
        logger.info("step_started", step=description)

        try:
            value = await action()
        except ProvisionError as e:
            outcome: StepOutcome[T] = StepOutcome(description=description, error=e)
            self._report_failure(outcome)
        else:
            outcome = StepOutcome(description=description, value=value)
            self.console.print("[green]✔ Success[/green]\n")
            logger.info("step_succeeded", step=description)

        self.outcomes.append(outcome)
        return outcome

    def _report_failure(self, outcome: StepOutcome[Any]) -> None:
        error = outcome.error
        self.console.print(f'[red]❌ Failed at step: "{escape(outcome.description)}"[/red]')
        if isinstance(error, ApiError):
            body = error.body if isinstance(error.body, str) else json.dumps(error.body)
            self.console.print(f"Status: {error.status_code}")
            self.console.print(f"Response: {escape(body)}")
        else:
            self.console.print(escape(str(error)))
        logger.error(
            "step_failed",
            step=outcome.description,
            error_type=type(error).__name__,
            error=str(error),
        )
