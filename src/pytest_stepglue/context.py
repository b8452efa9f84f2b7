"""Per-scenario execution context.

This module defines the world object: the mutable namespace a provider
builds before a scenario runs and disposes after it finishes. The world
is passed explicitly to every step handler and hook, and it is the entry
point for invoking nested steps from handler code.
"""

from typing import TYPE_CHECKING, Any, Protocol

from pytest_stepglue.errors import GlueError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

if TYPE_CHECKING:
    from pytest_stepglue.schema.pickles import DocString, Scenario


class NestedStepInvoker(Protocol):
    """Callback used by handler code to execute a further step."""

    def invoke_nested_step(self, path: str, language: str, text: str,  # noqa: PLR0913
                           line: int | None,
                           rows: 'Sequence[Sequence[str]] | None' = None,
                           doc_string: 'DocString | str | None' = None, *,
                           world: 'World | None' = None) -> Any:  # noqa: ANN401
        ...  # pragma: no cover


class World(dict[str, Any]):
    """Execution context shared by the steps of one scenario.

    The world acts as a plain mapping for values exchanged between steps.
    Runtime attributes describe the scenario being executed and are
    maintained by the runner:

    - `scenario` and `language` are attached before the first step;
    - `line` tracks the source line of the step being executed;
    - `siblings` maps provider names to every world of the running
      scenario, so nested steps reach the world of their own provider.

    World instances are owned by a single scenario execution and are
    never shared between concurrently running scenarios.
    """

    def __init__(self, *, provider: str = '',
                 invoker: NestedStepInvoker | None = None) -> None:
        """Initialize an empty world.

        Args:
            provider: Name of the provider that built the world.
            invoker: Nested step invoker available to handler code.
        """
        super().__init__()

        self.provider = provider
        self.invoker = invoker

        self.scenario: Scenario | None = None
        self.language = 'en'
        self.line: int | None = None
        self.siblings: Mapping[str, World] = {}

    def attach(self, scenario: 'Scenario', language: str) -> None:
        """Bind the world to the scenario about to run.

        Args:
            scenario: Scenario being executed.
            language: Gherkin dialect of the scenario.
        """
        self.scenario = scenario
        self.language = language
        self.line = scenario.line

    def step(self, text: str, *,
             rows: 'Sequence[Sequence[str]] | None' = None,
             doc_string: 'DocString | str | None' = None) -> Any:  # noqa: ANN401
        """Execute a further step from handler code.

        The step is resolved the same way as scenario steps and runs
        immediately with the world of the provider owning the matching
        definition. Failures are attributed to the current scenario
        file and line.

        Args:
            text: Step text without a keyword.
            rows: Optional data table rows.
            doc_string: Optional doc string.

        Returns:
            Value returned by the matching handler.

        Raises:
            GlueError: If the world has no invoker or no scenario.
            UndefinedStepError: If no single definition matches the text.
        """
        if self.invoker is None or self.scenario is None:
            raise GlueError('Nested steps require a world attached to a running scenario')

        return self.invoker.invoke_nested_step(
            self.scenario.uri,
            self.language,
            text,
            self.line,
            rows,
            doc_string,
            world=self,
        )

    def __eq__(self, other: object) -> bool:
        """Compare by identity, worlds are stateful per scenario."""
        return self is other

    def __hash__(self) -> int:
        """Hash by identity."""
        return id(self)
