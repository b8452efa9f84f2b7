"""Plugin discovery and glue loading infrastructure.

This module defines a mixin responsible for discovering glue plugins
exposed via Python entry points or configured glue paths, and for
registering their step handlers and hooks in a glue registry.

Plugins are loaded defensively: individual failures do not interrupt
the loading process unless strict mode is enabled.
"""

import logging
from pkgutil import resolve_name
from types import ModuleType
from typing import TYPE_CHECKING
from warnings import warn

from pydantic import ValidationError

from pytest_stepglue.errors import GlueError, PluginError, PluginWarning
from pytest_stepglue.extensions import Plugin

if TYPE_CHECKING:
    from importlib.metadata import EntryPoint

if TYPE_CHECKING:
    from pytest_stepglue.core.registry import Glue
    from pytest_stepglue.extensions import HookHandler, StepHandler

logger = logging.getLogger(__name__)

#: Entry point group of glue plugins.
ENTRYPOINT_GROUP = 'stepglue_plugins'


class GlueLoaderMixin:
    """Mixin defining glue plugin loading behavior.

    Attributes:
        strict_mode: If True, any plugin loading issue raises an error.
            If False, issues are emitted as warnings and loading continues.
        name: Provider name recorded on every compiled definition.
    """

    strict_mode: bool = False
    name: str

    def add_plugin(self, glue: 'Glue', plugin: Plugin,
                   entrypoint: 'EntryPoint | None' = None) -> None:
        """Register every handler and hook of a plugin.

        Args:
            glue: Registry receiving the definitions.
            plugin: Declarative plugin.
            entrypoint: Entry point the plugin was loaded from, if any.

        Raises:
            PluginError: If a definition is rejected on strict mode.
        """
        for step in plugin.steps:
            self.add_step(glue, step, entrypoint, namespace=plugin.name)

        for hook in plugin.hooks:
            self.add_hook(glue, hook, entrypoint, namespace=plugin.name)

        logger.info(
            'Loaded plugin %r: %d steps, %d hooks',
            plugin.name,
            len(plugin.steps),
            len(plugin.hooks),
        )

    def add_step(self, glue: 'Glue', step: 'StepHandler',
                 entrypoint: 'EntryPoint | None' = None,
                 namespace: str | None = None) -> None:
        """Register a step handler.

        Args:
            glue: Registry receiving the definition.
            step: Declarative step handler.
            entrypoint: Entry point the handler was loaded from, if any.
            namespace: Optional plugin namespace.

        Raises:
            PluginError: If the handler is rejected on strict mode.
        """
        try:
            glue.add_step_definition(step.build(namespace, provider=self.name))

        except GlueError as base:
            if error := self.emit_plugin_issue(
                f'Step {step.pattern.pattern!r} from {namespace or 'builtins'!r} is rejected',
                entrypoint,
            ):
                raise error from base

    def add_hook(self, glue: 'Glue', hook: 'HookHandler',
                 entrypoint: 'EntryPoint | None' = None,
                 namespace: str | None = None) -> None:
        """Register a hook.

        Args:
            glue: Registry receiving the definition.
            hook: Declarative hook.
            entrypoint: Entry point the hook was loaded from, if any.
            namespace: Optional plugin namespace.

        Raises:
            PluginError: If the hook is rejected on strict mode.
        """
        try:
            glue.add_hook(hook.build(namespace, provider=self.name))

        except GlueError as base:
            if error := self.emit_plugin_issue(
                f'Hook {hook.phase} from {namespace or 'builtins'!r} is rejected',
                entrypoint,
            ):
                raise error from base

    def emit_plugin_issue(self, message: str,
                          entrypoint: 'EntryPoint | None' = None) -> Exception | None:
        """Emit a plugin warning or return the exception.

        Args:
            message: Warning message to emit.
            entrypoint: Entry point associated with the issue, if any.

        Returns:
            PluginError on strict mode, otherwise `None`
                with producing a PluginWarning.
        """
        if self.strict_mode:
            return PluginError(message, entrypoint=entrypoint)

        warn(message, category=PluginWarning, stacklevel=2)

        return None

    def _load_entrypoint(self, glue: 'Glue', entrypoint: 'EntryPoint') -> None:
        """Load and register a single plugin entry point.

        Args:
            glue: Registry receiving the definitions.
            entrypoint: Entry point describing the plugin to load.

        Raises:
            PluginError: If any loading issues occur on strict mode.
        """
        try:
            plugin = entrypoint.load()

        except ValidationError as base:
            if error := self.emit_plugin_issue(
                f'Failed to validate entrypoint {entrypoint.name!r}',
                entrypoint,
            ):
                raise error from base
            return None

        except Exception as base:
            if error := self.emit_plugin_issue(
                f'Failed to load entrypoint {entrypoint.name!r}',
                entrypoint,
            ):
                raise error from base
            return None

        if not isinstance(plugin, Plugin):
            if error := self.emit_plugin_issue(
                f'Loaded from entrypoint {entrypoint.name!r} object is not a plugin',
                entrypoint,
            ):
                raise error
            return None

        self.add_plugin(glue, plugin, entrypoint)

    def _load_path(self, glue: 'Glue', path: str) -> None:
        """Load and register plugins from a glue path.

        A path names either a plugin object (`package.module:attribute`)
        or a module (`package.module`) whose module-level plugins are
        registered in definition order.

        Args:
            glue: Registry receiving the definitions.
            path: Glue path.

        Raises:
            PluginError: If any loading issues occur on strict mode.
        """
        try:
            target = resolve_name(path)

        except ValidationError as base:
            if error := self.emit_plugin_issue(f'Failed to validate glue {path!r}'):
                raise error from base
            return None

        except Exception as base:
            if error := self.emit_plugin_issue(f'Failed to load glue {path!r}'):
                raise error from base
            return None

        if isinstance(target, ModuleType):
            plugins = [
                value
                for value in vars(target).values()
                if isinstance(value, Plugin)
            ]
        else:
            plugins = [target]

        if not plugins or not all(isinstance(plugin, Plugin) for plugin in plugins):
            if error := self.emit_plugin_issue(f'Loaded from glue {path!r} object is not a plugin'):
                raise error
            return None

        for plugin in plugins:
            self.add_plugin(glue, plugin)

    def load_plugins(self, glue: 'Glue', paths: 'list[str] | None' = None) -> None:
        """Load plugins from entry points and glue paths.

        Discovers plugins from the `stepglue_plugins` entry point group
        first, then from every configured glue path.

        Args:
            glue: Registry receiving the definitions.
            paths: Optional glue paths.

        Raises:
            PluginError: If any loading issues occur on strict mode.
        """
        from importlib.metadata import entry_points  # noqa: PLC0415

        for entrypoint in entry_points().select(group=ENTRYPOINT_GROUP):
            self._load_entrypoint(glue, entrypoint)

        for path in paths or ():
            self._load_path(glue, path)
