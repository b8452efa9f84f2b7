"""Scenario runner.

The runner wires definition providers to the glue registry and executes
compiled scenarios. It is also the nested step invoker handed to every
provider, letting handler code run further steps at run time.
"""

import logging
from typing import TYPE_CHECKING, Any, assert_never

from pytest_stepglue.config import RuntimeOptions
from pytest_stepglue.errors import NESTED_STEP_LABEL, Frame, UndefinedStepError, WorldDisposalError
from pytest_stepglue.events import EventBus
from pytest_stepglue.schema import Ambiguous, FailedInstantiation, Found, Step, Undefined

from .compiler import ScenarioCompilerMixin
from .hooks import HookSelectorMixin
from .registry import Glue
from .resolver import MatchResolverMixin
from .testcase import execute

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

if TYPE_CHECKING:
    from pytest_stepglue.context import World
    from pytest_stepglue.core.providers import Provider
    from pytest_stepglue.core.registry import StepDefinitionReporter
    from pytest_stepglue.events import EventPublisher
    from pytest_stepglue.schema import DocString, Result, Scenario

logger = logging.getLogger(__name__)


class Runner(ScenarioCompilerMixin, HookSelectorMixin, MatchResolverMixin):
    """Compiles and executes scenarios against registered glue.

    During initialization every provider loads its handlers into the
    registry and receives the runner as nested step invoker, then the
    registry is frozen. A runner may be reused, also concurrently, to
    run many scenarios.
    """

    def __init__(self, glue: Glue | None = None,
                 bus: 'EventPublisher | None' = None,
                 providers: 'Collection[Provider]' = (),
                 options: RuntimeOptions | None = None) -> None:
        """Initialize the runner.

        Args:
            glue: Registry to load definitions into.
            bus: Sink receiving execution events.
            providers: Definition providers.
            options: Runtime options, resolved from the environment
                when omitted.

        Raises:
            PluginError: If a provider fails to load glue on strict mode.
        """
        self.options = options or RuntimeOptions()
        self.glue = glue or Glue(strict=self.options.strict)
        self.bus = bus or EventBus()
        self.providers = tuple(providers)

        for provider in self.providers:
            provider.load_handlers(self.glue, self.options.glue)
            provider.set_nested_step_invoker(self)

        self.glue.freeze()

    def run(self, scenario: 'Scenario', language: str | None = None) -> 'Result':
        """Compile and execute a scenario end-to-end.

        Worlds are built even for dry runs and are always disposed,
        including after failures. A failure raised while building worlds
        or executing the scenario is re-raised unchanged; disposal
        failures that follow it are attached to it as notes.

        Args:
            scenario: Scenario to run.
            language: Gherkin dialect, defaults to the scenario language.

        Returns:
            The aggregated test case result.

        Raises:
            WorldDisposalError: If any provider fails to dispose its world
                after a completed run.
        """
        language = language or scenario.language
        worlds: dict[str, World] = {}

        logger.debug('Running %s', scenario.id)

        try:
            for provider in self.providers:
                world = provider.build_world()
                world.attach(scenario, language)
                worlds[provider.name] = world

            for world in worlds.values():
                world.siblings = worlds

            test_case = self.compile(scenario)
            result = test_case.run(self.bus, worlds, skip=self.options.dry_run)

        except BaseException as error:
            try:
                self.dispose_worlds(worlds)
            except WorldDisposalError as disposal:
                error.add_note(str(disposal))
            raise

        self.dispose_worlds(worlds)

        logger.debug('Finished %s with %s', scenario.id, result.status)

        return result

    def dispose_worlds(self, worlds: dict[str, 'World']) -> None:
        """Dispose built worlds, attempting every provider.

        Args:
            worlds: Worlds keyed by provider name.

        Raises:
            WorldDisposalError: If any provider fails to dispose its world.
        """
        errors = []
        for provider in self.providers:
            if (world := worlds.get(provider.name)) is None:
                continue
            try:
                provider.dispose_world(world)
            except Exception as error:  # noqa: BLE001
                logger.warning('Provider %r failed to dispose its world: %r', provider.name, error)
                errors.append(error)

        if errors:
            raise WorldDisposalError(errors) from errors[0]

    def invoke_nested_step(self, path: str, language: str, text: str,  # noqa: PLR0913
                           line: int | None,
                           rows: 'Sequence[Sequence[str]] | None' = None,
                           doc_string: 'DocString | str | None' = None, *,
                           world: 'World | None' = None) -> Any:  # noqa: ANN401
        """Execute a step constructed by handler code.

        The step is resolved exactly like a scenario step and executed
        immediately, on the calling thread, with the world the owning
        provider built for the running scenario. The calling world is
        used when it has no sibling from that provider.

        Args:
            path: Source path of the calling scenario.
            language: Gherkin dialect of the calling scenario.
            text: Step text.
            line: Source line of the calling step.
            rows: Optional data table rows, preferred over a doc string.
            doc_string: Optional doc string.
            world: World of the calling handler.

        Returns:
            Value returned by the matching handler; handler failures
            propagate unchanged.

        Raises:
            UndefinedStepError: If the step does not resolve to a single
                definition. Its first provenance frame points at `path`
                and `line`.
        """
        step = Step.build(text, rows=rows, doc_string=doc_string)
        resolved = self.resolve_step(path, step)

        match resolved:
            case Found():
                worlds = {} if world is None else {resolved.definition.provider: world, **world.siblings}
                return execute(resolved, worlds)

            case Undefined():
                error = resolved.error()
                cause = None

            case Ambiguous():
                error = UndefinedStepError(step, filename=path)
                cause = resolved.error

            case FailedInstantiation():
                error = UndefinedStepError(step, filename=path)
                cause = resolved.cause

            case _:
                assert_never(resolved)

        error.prepend_frame(Frame(filename=path, line=line, label=NESTED_STEP_LABEL))

        raise error from cause

    def report_step_definitions(self, reporter: 'StepDefinitionReporter') -> None:
        """Report every registered step definition.

        Args:
            reporter: Callable receiving definitions in registration order.
        """
        self.glue.report_step_definitions(reporter)
