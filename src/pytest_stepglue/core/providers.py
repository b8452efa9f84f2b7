"""Definition providers.

A provider is a pluggable backend supplying handler discovery, world
lifecycle and snippet suggestions for one implementation ecosystem.
The runner holds a collection of providers and invokes each uniformly.
"""

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pytest_stepglue.context import World
from pytest_stepglue.snippets import render_snippet

from .loader import GlueLoaderMixin

if TYPE_CHECKING:
    from collections.abc import Sequence

if TYPE_CHECKING:
    from pytest_stepglue.context import NestedStepInvoker
    from pytest_stepglue.core.registry import Glue
    from pytest_stepglue.extensions import Plugin
    from pytest_stepglue.schema import Step
    from pytest_stepglue.snippets import SnippetType

logger = logging.getLogger(__name__)


class Provider(ABC):
    """Capability contract of a definition provider."""

    #: Name under which the provider world is passed to its handlers.
    name: str

    @abstractmethod
    def load_handlers(self, glue: 'Glue', paths: 'Sequence[str]') -> None:
        """Register handlers and hooks in the registry.

        Args:
            glue: Registry receiving the definitions.
            paths: Configured glue paths.
        """

    @abstractmethod
    def set_nested_step_invoker(self, invoker: 'NestedStepInvoker') -> None:
        """Receive the callback used by handlers to run further steps.

        Args:
            invoker: Nested step invoker.
        """

    @abstractmethod
    def build_world(self) -> World:
        """Build the execution context of a new scenario.

        Returns:
            A world owned by the calling scenario execution.
        """

    @abstractmethod
    def dispose_world(self, world: World) -> None:
        """Release the execution context of a finished scenario.

        Args:
            world: World previously returned by `build_world`.
        """

    @abstractmethod
    def get_snippet(self, step: 'Step', keyword: str,
                    naming: 'SnippetType') -> str | None:
        """Suggest code implementing an undefined step.

        Args:
            step: Undefined step.
            keyword: Placeholder for the Gherkin keyword.
            naming: Naming convention for generated functions.

        Returns:
            Snippet source, or `None` if the provider has no suggestion.
        """


class PluginProvider(GlueLoaderMixin, Provider):
    """Python provider loading declarative glue plugins.

    Plugins are taken from the constructor, the `stepglue_plugins`
    entry point group and configured glue paths. Every scenario gets a
    fresh `World`; disposal clears it.
    """

    def __init__(self, *plugins: 'Plugin', name: str = 'python',
                 strict: bool = False) -> None:
        """Initialize the provider.

        Args:
            *plugins: Plugins registered before discovered ones.
            name: Provider name.
            strict: Whether plugin loading issues raise errors.
        """
        self.plugins = plugins
        self.name = name
        self.strict_mode = strict

        self.invoker: NestedStepInvoker | None = None

    def load_handlers(self, glue: 'Glue', paths: 'Sequence[str]') -> None:
        """Register explicit and discovered plugins."""
        for plugin in self.plugins:
            self.add_plugin(glue, plugin)

        self.load_plugins(glue, list(paths))

    def set_nested_step_invoker(self, invoker: 'NestedStepInvoker') -> None:
        """Keep the invoker for worlds built later."""
        self.invoker = invoker

    def build_world(self) -> World:
        """Build an empty world bound to the nested step invoker."""
        return World(provider=self.name, invoker=self.invoker)

    def dispose_world(self, world: World) -> None:
        """Drop every value stored in the world."""
        world.clear()
        world.scenario = None
        world.siblings = {}

    def get_snippet(self, step: 'Step', keyword: str,
                    naming: 'SnippetType') -> str | None:
        """Render a Python glue snippet."""
        return render_snippet(step, keyword, naming)
