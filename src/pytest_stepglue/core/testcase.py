"""Executable test case.

This module defines the runtime representation of a compiled scenario:
an ordered sequence of executable steps (hook steps and scenario steps)
and the sequential execution model that runs them, publishing progress
to an event bus.
"""

import logging
from time import perf_counter_ns
from typing import TYPE_CHECKING, Any, assert_never

from pytest_stepglue.errors import PendingStepError
from pytest_stepglue.events import TestCaseFinished, TestCaseStarted, TestStepFinished, TestStepStarted
from pytest_stepglue.models import SchemaModel
from pytest_stepglue.schema.definitions import HookPhase  # noqa: TC001
from pytest_stepglue.schema.matches import Ambiguous, FailedInstantiation, Found, Match, Undefined
from pytest_stepglue.schema.pickles import Scenario, Step  # noqa: TC001
from pytest_stepglue.schema.results import Result, Status

if TYPE_CHECKING:
    from collections.abc import Mapping

if TYPE_CHECKING:
    from pytest_stepglue.context import World
    from pytest_stepglue.events import EventPublisher

logger = logging.getLogger(__name__)

#: Worlds of a running scenario keyed by provider name.
type Worlds = Mapping[str, World]


def execute(found: Found, worlds: 'Worlds') -> Any:  # noqa: ANN401
    """Run a found definition with the world of its provider.

    Args:
        found: Resolved definition with bound arguments.
        worlds: Worlds of the running scenario.

    Returns:
        Value returned by the handler.
    """
    world = worlds.get(found.definition.provider)

    return found.definition.execute(world, *found.arguments)


class ExecutableStepMixin(SchemaModel):
    """Common execution behavior of hook and scenario steps."""

    match: Match

    def run_match(self, worlds: 'Worlds', *, skip: bool = False) -> Result:
        """Execute the resolved match and classify the outcome.

        Unresolved outcomes are reported even when skipping, so dry runs
        still surface undefined, ambiguous and unbindable steps.

        Args:
            worlds: Worlds of the running scenario.
            skip: Whether found definitions must not be executed.

        Returns:
            Result of the step.
        """
        start = perf_counter_ns()

        match self.match:
            case Found():
                if skip:
                    return Result(status=Status.SKIPPED)
                try:
                    execute(self.match, worlds)
                except PendingStepError as error:
                    return self.result(Status.PENDING, start, error)
                except Exception as error:  # noqa: BLE001
                    return self.result(Status.FAILED, start, error)
                return self.result(Status.PASSED, start)

            case Undefined():
                return self.result(Status.UNDEFINED, start, self.match.error())

            case Ambiguous():
                return self.result(Status.AMBIGUOUS, start, self.match.error)

            case FailedInstantiation():
                return self.result(Status.FAILED, start, self.match.cause)

            case _:
                assert_never(self.match)

    @staticmethod
    def result(status: Status, start: int,
               error: BaseException | None = None) -> Result:
        """Build a result timed from `start`."""
        return Result(
            status=status,
            duration=perf_counter_ns() - start,
            error=error,
        )


class HookStep(ExecutableStepMixin):
    """Step running a lifecycle hook.

    Hook steps are never skipped: after hooks run even when previous
    steps failed, so that they can release resources.
    """

    phase: HookPhase

    def run(self, worlds: 'Worlds', *, skip: bool = False) -> Result:  # noqa: ARG002
        """Execute the hook regardless of previous failures.

        The signature is shared with `ScenarioStep.run` so test cases run
        every step alike; `skip` only reflects earlier failures, which
        hooks ignore. Dry runs never compile hook steps.
        """
        return self.run_match(worlds, skip=False)


class ScenarioStep(ExecutableStepMixin):
    """Step of the scenario bound to its resolution outcome."""

    step: Step

    def run(self, worlds: 'Worlds', *, skip: bool = False) -> Result:
        """Execute the step, unless skipping.

        The current step line is published to every world so nested
        invocations are attributed to this step.
        """
        for world in worlds.values():
            world.line = self.step.line

        return self.run_match(worlds, skip=skip)


#: Any step of a test case.
type ExecutableStep = HookStep | ScenarioStep


class TestCase:
    """Executable representation of a compiled scenario.

    A test case is built for a single run and owned by the invocation
    that built it. Steps run sequentially on the calling thread: the
    side effects of a step are visible to every following step.
    """

    __test__ = False

    def __init__(self, steps: list[ExecutableStep], scenario: Scenario) -> None:
        """Initialize a test case.

        Args:
            steps: Ordered executable steps.
            scenario: Scenario the test case was compiled from.
        """
        self.steps = steps
        self.scenario = scenario

    def __repr__(self) -> str:
        """Scenario identifier with step count."""
        return f'<TestCase {self.scenario.id!r} steps={len(self.steps)}>'

    def run(self, bus: 'EventPublisher', worlds: 'Worlds', *,
            skip: bool = False) -> Result:
        """Execute every step in order.

        After the first step that does not pass, scenario steps are
        skipped; hook steps still run.

        Args:
            bus: Sink receiving lifecycle events.
            worlds: Worlds of the running scenario keyed by provider name.
            skip: Whether to skip scenario steps from the start (dry run).

        Returns:
            The aggregated test case result.
        """
        bus.send(TestCaseStarted(test_case=self))

        results = []
        skip_next = skip

        for test_step in self.steps:
            bus.send(TestStepStarted(test_case=self, test_step=test_step))

            result = test_step.run(worlds, skip=skip_next)
            logger.debug('%s step finished with %s', self.scenario.id, result.status)

            if result.status is not Status.PASSED:
                skip_next = True

            results.append(result)
            bus.send(TestStepFinished(test_case=self, test_step=test_step, result=result))

        result = Result.worst(results)
        bus.send(TestCaseFinished(test_case=self, result=result))

        return result
