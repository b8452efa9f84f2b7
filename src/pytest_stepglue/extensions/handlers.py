"""Declarative step handler and hook definitions.

This module defines the glue abstractions used by plugin authors:
step handlers bound to text patterns and lifecycle hooks bound to tag
expressions.

Handlers are declarative objects describing how compiled definitions
are constructed; they are compiled into `StepDefinition` and
`HookDefinition` models when a provider loads them into the registry.
"""

from re import Pattern  # noqa: TC003

from pydantic import Field

from pytest_stepglue.models import DescribedMixin, SchemaModel
from pytest_stepglue.names import TagExpression  # noqa: TC001
from pytest_stepglue.schema import HookDefinition, HookPhase, HookRunner, StepDefinition, StepRunner


class StepHandler(DescribedMixin, SchemaModel):
    """Declarative step definition.

    The handler is called with the world of its provider, followed by
    the groups captured by the pattern (converted to the annotated types
    of the handler parameters) and the step argument, if any.
    """

    pattern: Pattern[str] = Field(
        title='Step pattern',
        description=(
            'Regular expression matched against the whole step text. '
            'Capturing groups become handler arguments.'
        ),
        examples=[
            r'^I have (\d+) cukes in my belly$',
        ],
    )

    handler: StepRunner = Field(
        title='Handler function',
        description='Callable implementing the step.',
    )

    def build(self, namespace: str | None = None,
              provider: str = '') -> StepDefinition:
        """Compile the handler into a registry definition.

        Args:
            namespace: Optional plugin namespace.
            provider: Name of the provider owning the handler.

        Returns:
            Compiled step definition.
        """
        return StepDefinition(
            pattern=self.pattern,
            handler=self.handler,
            namespace=namespace or 'builtins',
            provider=provider,
        )


class HookHandler(DescribedMixin, SchemaModel):
    """Declarative lifecycle hook.

    Hooks run before or after every scenario whose tags satisfy all of
    the hook tag expressions, in registration order. The handler is
    called with the world of its provider.
    """

    phase: HookPhase = Field(
        title='Hook phase',
        description='Whether the hook runs before or after scenarios.',
    )

    tags: list[TagExpression] = Field(
        default_factory=list,
        title='Tag expressions',
        description='Expressions restricting the hook to tagged scenarios.',
    )

    handler: HookRunner = Field(
        title='Hook function',
        description='Callable implementing the hook.',
    )

    def build(self, namespace: str | None = None,
              provider: str = '') -> HookDefinition:
        """Compile the hook into a registry definition.

        Args:
            namespace: Optional plugin namespace.
            provider: Name of the provider owning the hook.

        Returns:
            Compiled hook definition.
        """
        return HookDefinition(
            phase=self.phase,
            tags=tuple(self.tags),
            handler=self.handler,
            namespace=namespace or 'builtins',
            provider=provider,
        )
