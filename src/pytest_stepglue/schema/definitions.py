"""Compiled glue definitions.

Defines the runtime form of step definitions and hooks stored in the
glue registry. Definitions are compiled from declarative plugin
extensions and bind a handler callable to a step text pattern or to
a tag predicate.
"""

from collections.abc import Callable, Collection
from enum import StrEnum
from functools import cached_property
from inspect import Parameter, Signature, signature
from re import Pattern  # noqa: TC003
from typing import Any

from pydantic import Field, TypeAdapter, ValidationError

from pytest_stepglue.errors import StepBindingError
from pytest_stepglue.models import SchemaModel
from pytest_stepglue.names import TagExpression  # noqa: TC001
from pytest_stepglue.schema.pickles import Step  # noqa: TC001

#: A handler receives the world of its provider followed by converted
#: captured groups and, if present, the step argument.
type StepRunner = Callable[..., Any]

#: A hook receives the world of its provider.
type HookRunner = Callable[..., Any]

_POSITIONAL = (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)


class HookPhase(StrEnum):
    """Lifecycle phase of a hook."""

    BEFORE = 'before'
    AFTER = 'after'


class DefinitionMixin(SchemaModel):
    """Common fields of compiled definitions."""

    handler: Callable[..., Any] = Field(
        title='Handler',
        description='Callable executed when the definition is matched.',
    )

    namespace: str = Field(
        default='builtins',
        title='Plugin namespace',
        description='Namespace of the plugin that declared the definition.',
    )

    provider: str = Field(
        default='',
        title='Provider name',
        description='Name of the provider whose world is passed to the handler.',
    )

    @property
    def location(self) -> str:
        """Source location of the handler for reporting."""
        code = getattr(self.handler, '__code__', None)
        if code is None:
            return repr(self.handler)

        return f'{code.co_filename}:{code.co_firstlineno}'

    def execute(self, world: Any, *arguments: Any) -> Any:  # noqa: ANN401
        """Invoke the handler.

        Args:
            world: World of the definition provider.
            *arguments: Bound step arguments.

        Returns:
            Value returned by the handler. Handler failures propagate
            unchanged.
        """
        return self.handler(world, *arguments)


class StepDefinition(DefinitionMixin):
    """Step definition binding a text pattern to a handler."""

    pattern: Pattern[str] = Field(
        title='Step pattern',
        description='Regular expression matched against the whole step text.',
    )

    def __str__(self) -> str:
        """Pattern with location."""
        return f'{self.pattern.pattern!r} in {self.location}'

    @cached_property
    def signature(self) -> Signature:
        """Handler signature with evaluated annotations."""
        return signature(self.handler, eval_str=True)

    def match(self, step: Step) -> tuple[str | None, ...] | None:
        """Match the step text against the pattern.

        Args:
            step: Step to match.

        Returns:
            Captured groups when the whole text matches, otherwise `None`.
        """
        if found := self.pattern.fullmatch(step.text):
            return found.groups()

        return None

    def bind(self, groups: tuple[str | None, ...], step: Step) -> tuple[Any, ...]:
        """Bind captured groups and the step argument to the handler.

        Values are converted to the annotated types of the corresponding
        handler parameters. Unannotated parameters receive raw values.

        Args:
            groups: Groups captured by `match`.
            step: Matched step.

        Returns:
            Arguments to pass to the handler after the world.

        Raises:
            StepBindingError: If the signature can not be inspected, the
                values do not fit the signature or the conversion fails.
        """
        values: list[Any] = list(groups)
        if step.argument is not None:
            values.append(step.argument)

        try:
            handler_signature = self.signature
            handler_signature.bind(None, *values)
        except (TypeError, ValueError, NameError) as base:
            raise StepBindingError(
                f'Handler of {self} can not accept {len(values)} argument(s)',
            ) from base

        parameters = [
            parameter
            for parameter in handler_signature.parameters.values()
            if parameter.kind in _POSITIONAL
        ][1:]

        arguments = []
        for position, value in enumerate(values):
            if position >= len(parameters):
                arguments.append(value)
                continue
            annotation = parameters[position].annotation
            if value is None or annotation is Parameter.empty:
                arguments.append(value)
                continue
            try:
                arguments.append(TypeAdapter(annotation).validate_python(value))
            except ValidationError as base:
                raise StepBindingError(
                    f'Can not convert argument {position + 1} of {self}: {value!r}',
                ) from base

        return tuple(arguments)


class HookDefinition(DefinitionMixin):
    """Lifecycle hook bound to a tag predicate."""

    phase: HookPhase = Field(
        title='Hook phase',
    )

    tags: tuple[TagExpression, ...] = Field(
        default=(),
        title='Tag expressions',
        description=(
            'Every expression must hold for the hook to run. '
            'An expression holds when any of its comma separated tags '
            'holds, a tag prefixed with `~` holds when absent.'
        ),
    )

    def __str__(self) -> str:
        """Phase with location."""
        return f'{self.phase} hook in {self.location}'

    def matches(self, tags: Collection[str]) -> bool:
        """Evaluate the tag predicate.

        Args:
            tags: Tags of the scenario.

        Returns:
            Whether the hook applies to a scenario with these tags.
        """
        return all(
            any(
                (alternative[1:] not in tags)
                if alternative.startswith('~') else
                (alternative in tags)
                for alternative in (item.strip() for item in expression.split(','))
            )
            for expression in self.tags
        )
