"""Step resolution against the glue registry.

This module defines a mixin classifying the outcome of resolving a step
into one of four matches. Resolution never raises: ambiguity, missing
definitions and binding failures are returned as data.
"""

import logging
from typing import TYPE_CHECKING

from pytest_stepglue.errors import AmbiguousStepDefinitionsError
from pytest_stepglue.names import KEYWORD_PLACEHOLDER
from pytest_stepglue.schema import Ambiguous, FailedInstantiation, Undefined

if TYPE_CHECKING:
    from collections.abc import Collection

if TYPE_CHECKING:
    from pytest_stepglue.config import RuntimeOptions
    from pytest_stepglue.core.providers import Provider
    from pytest_stepglue.core.registry import Glue
    from pytest_stepglue.schema import Match, Step

logger = logging.getLogger(__name__)


class MatchResolverMixin:
    """Mixin resolving steps to matches.

    Implementers provide the registry, the providers asked for snippets
    and the options holding the snippet naming convention.
    """

    glue: 'Glue'
    providers: 'Collection[Provider]'
    options: 'RuntimeOptions'

    def resolve_step(self, path: str | None, step: 'Step') -> 'Match':
        """Resolve a step to exactly one match.

        Args:
            path: Source path of the scenario.
            step: Step to resolve.

        Returns:
            `Found` for a single definition, `Ambiguous` for several,
            `Undefined` with provider snippets for none, and
            `FailedInstantiation` when the definition fails to bind.
        """
        try:
            match = self.glue.resolve(path, step)

        except AmbiguousStepDefinitionsError as error:
            logger.debug('Step %r is ambiguous', step.text)
            return Ambiguous(step=step, error=error)

        except Exception as error:  # noqa: BLE001
            logger.debug('Step %r failed to bind: %r', step.text, error)
            return FailedInstantiation(step=step, cause=error)

        if match is None:
            logger.debug('Step %r is undefined', step.text)
            return Undefined(
                step=step,
                path=path,
                snippets=self.collect_snippets(step),
            )

        return match

    def collect_snippets(self, step: 'Step') -> tuple[str, ...]:
        """Ask every provider for a snippet implementing the step.

        Args:
            step: Undefined step.

        Returns:
            Non-empty suggestions in provider order.
        """
        snippets = (
            provider.get_snippet(step, KEYWORD_PLACEHOLDER, self.options.snippet_type)
            for provider in self.providers
        )

        return tuple(snippet for snippet in snippets if snippet is not None)
