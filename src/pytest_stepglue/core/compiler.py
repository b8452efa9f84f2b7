"""Scenario compilation into executable test cases."""

import logging
from typing import TYPE_CHECKING

from pytest_stepglue.schema import HookPhase

from .testcase import ExecutableStep, ScenarioStep, TestCase

if TYPE_CHECKING:
    from pytest_stepglue.config import RuntimeOptions
    from pytest_stepglue.schema import Scenario

logger = logging.getLogger(__name__)


class ScenarioCompilerMixin:
    """Mixin compiling scenarios into test cases.

    Relies on the match resolver and hook selector mixins.
    """

    options: 'RuntimeOptions'

    def compile(self, scenario: 'Scenario') -> TestCase:
        """Compile a scenario into a test case.

        Before hooks come first, then scenario steps in their original
        order, then after hooks. Dry runs contain scenario steps only.
        Compilation never fails: unresolved steps are kept as their
        resolution outcome and fail when executed.

        Args:
            scenario: Scenario to compile.

        Returns:
            A new test case.
        """
        steps: list[ExecutableStep] = []
        dry_run = self.options.dry_run

        if not dry_run:
            steps.extend(self.select_hooks(HookPhase.BEFORE, scenario.tags))  # type: ignore[attr-defined]

        for step in scenario.steps:
            steps.append(ScenarioStep(
                step=step,
                match=self.resolve_step(scenario.uri, step),  # type: ignore[attr-defined]
            ))

        if not dry_run:
            steps.extend(self.select_hooks(HookPhase.AFTER, scenario.tags))  # type: ignore[attr-defined]

        logger.debug('Compiled %s into %d steps', scenario.id, len(steps))

        return TestCase(steps, scenario)
