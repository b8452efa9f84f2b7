"""Glue registry.

The registry stores compiled step definitions and hooks and resolves
step text to a single definition. Registration happens once, before any
scenario runs, and ends with `Glue.freeze()`; afterwards the registry is
read-only and safe for concurrent resolution.
"""

import logging
from typing import TYPE_CHECKING
from warnings import warn

from pytest_stepglue.errors import AmbiguousStepDefinitionsError, GlueError, PluginWarning
from pytest_stepglue.schema import Found, HookDefinition, HookPhase, StepDefinition

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from pytest_stepglue.schema import Step

logger = logging.getLogger(__name__)

#: Receives every registered step definition, in registration order.
type StepDefinitionReporter = Callable[[StepDefinition], object]


class Glue:
    """In-memory registry of step definitions and hooks.

    Collections are stored as tuples that are replaced on every write,
    so readers always observe a consistent snapshot.

    Attributes:
        strict_mode: If True, a step definition shadowing an existing
            pattern raises an error, otherwise a warning is emitted.
    """

    def __init__(self, *, strict: bool = False) -> None:
        """Initialize an empty registry.

        Args:
            strict: Whether shadowed patterns raise instead of warning.
        """
        self.strict_mode = strict
        self.frozen = False

        self._step_definitions: tuple[StepDefinition, ...] = ()
        self._before_hooks: tuple[HookDefinition, ...] = ()
        self._after_hooks: tuple[HookDefinition, ...] = ()

    @property
    def step_definitions(self) -> tuple[StepDefinition, ...]:
        """Registered step definitions in registration order."""
        return self._step_definitions

    @property
    def before_hooks(self) -> tuple[HookDefinition, ...]:
        """Registered before hooks in registration order."""
        return self._before_hooks

    @property
    def after_hooks(self) -> tuple[HookDefinition, ...]:
        """Registered after hooks in registration order."""
        return self._after_hooks

    def freeze(self) -> None:
        """End the registration phase."""
        self.frozen = True

        logger.debug(
            'Glue frozen with %d step definitions, %d before and %d after hooks',
            len(self._step_definitions),
            len(self._before_hooks),
            len(self._after_hooks),
        )

    def _ensure_writable(self) -> None:
        """Reject writes after the registration phase.

        Raises:
            GlueError: If the registry is frozen.
        """
        if self.frozen:
            raise GlueError('Glue is frozen, definitions must be registered before execution')

    def add_step_definition(self, definition: StepDefinition) -> None:
        """Register a step definition.

        Args:
            definition: Compiled step definition.

        Raises:
            GlueError: If the registry is frozen, or the pattern is
                already registered on strict mode.
        """
        self._ensure_writable()

        for existing in self._step_definitions:
            if existing.pattern.pattern != definition.pattern.pattern:
                continue
            message = f'Step definition {definition} is shadowing {existing}'
            if self.strict_mode:
                raise GlueError(message)
            warn(message, category=PluginWarning, stacklevel=2)

        self._step_definitions = (*self._step_definitions, definition)
        logger.debug('Registered step definition %s', definition)

    def add_hook(self, definition: HookDefinition) -> None:
        """Register a hook at the end of its phase.

        Args:
            definition: Compiled hook definition.

        Raises:
            GlueError: If the registry is frozen.
        """
        self._ensure_writable()

        if definition.phase is HookPhase.BEFORE:
            self._before_hooks = (*self._before_hooks, definition)
        else:
            self._after_hooks = (*self._after_hooks, definition)

        logger.debug('Registered %s', definition)

    def resolve(self, path: str | None, step: 'Step') -> Found | None:
        """Find the single step definition matching a step.

        Args:
            path: Source path of the scenario, used for diagnostics.
            step: Step to resolve.

        Returns:
            The found definition with bound arguments, or `None` when
            no definition matches.

        Raises:
            AmbiguousStepDefinitionsError: If more than one definition matches.
            StepBindingError: If the definition can not bind the step arguments.
        """
        candidates = []
        for definition in self._step_definitions:
            if (groups := definition.match(step)) is not None:
                candidates.append((definition, groups))

        if not candidates:
            return None

        if len(candidates) > 1:
            raise AmbiguousStepDefinitionsError(
                step,
                tuple(definition for definition, _ in candidates),
                filename=path,
            )

        definition, groups = candidates[0]

        return Found(
            definition=definition,
            arguments=definition.bind(groups, step),
        )

    def report_step_definitions(self, reporter: StepDefinitionReporter) -> None:
        """Report every registered step definition.

        Args:
            reporter: Callable receiving definitions in registration order.
        """
        for definition in self._step_definitions:
            reporter(definition)
