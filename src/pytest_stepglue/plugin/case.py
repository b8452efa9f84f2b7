"""Pytest item executing a compiled scenario."""

from typing import TYPE_CHECKING

import pytest

from pytest_stepglue.errors import GlueError
from pytest_stepglue.schema import Status

if TYPE_CHECKING:
    from typing import Any

if TYPE_CHECKING:
    from pytest_stepglue.core import Runner
    from pytest_stepglue.schema import Scenario


class ScenarioItem(pytest.Item):
    """Pytest item running a single scenario through a shared runner.

    Passed and skipped results pass, pending results are reported as
    pytest skips, every other status fails with the step failure.
    """

    __test__ = False

    def __init__(self, *, scenario: 'Scenario', runner: 'Runner',
                 **kwargs: 'Any') -> None:
        """Initialize a pytest item backed by a scenario.

        Args:
            scenario: Compiled scenario.
            runner: Shared scenario runner.
            **kwargs: Keyword pytest.Item arguments.
        """
        super().__init__(**kwargs)

        self.scenario = scenario
        self.runner = runner

    def runtest(self) -> None:
        """Execute the scenario.

        Raises:
            GlueError: If a step fails without an exception of its own.
            Exception: The failure of the first failing step.
        """
        result = self.runner.run(self.scenario)

        if result.status is Status.PENDING:
            pytest.skip(f'Pending: {result.error}')

        if result.ok:
            return None

        if result.error is not None:
            raise result.error

        raise GlueError(f'Scenario finished with status {result.status}')

    def reportinfo(self) -> tuple[str, int | None, str]:
        """Location of the scenario in its feature file."""
        line = self.scenario.line - 1 if self.scenario.line is not None else None

        return self.scenario.uri, line, f'scenario: {self.scenario.name}'
