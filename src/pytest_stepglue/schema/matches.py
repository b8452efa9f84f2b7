"""Step resolution outcomes.

Resolving a step or a hook against the glue registry yields exactly one
of four outcomes, modelled as a closed union of immutable models. The
outcome is stored in the compiled test case as data and only turns into
a failure when the step is executed.
"""

from pydantic import Field

from pytest_stepglue.errors import AmbiguousStepDefinitionsError, UndefinedStepError
from pytest_stepglue.models import SchemaModel
from pytest_stepglue.schema.definitions import HookDefinition, StepDefinition  # noqa: TC001
from pytest_stepglue.schema.pickles import Step  # noqa: TC001


class Found(SchemaModel):
    """Exactly one definition matches."""

    definition: StepDefinition | HookDefinition = Field(
        title='Matched definition',
    )

    arguments: tuple[object, ...] = Field(
        default=(),
        title='Bound arguments',
        description='Converted captured groups followed by the step argument.',
    )


class Ambiguous(SchemaModel):
    """More than one definition matches equally well."""

    step: Step
    error: AmbiguousStepDefinitionsError = Field(
        title='Ambiguity error',
        description='Error raised by the registry, carrying every candidate.',
    )

    @property
    def candidates(self) -> tuple[StepDefinition, ...]:
        """All conflicting definitions."""
        return self.error.candidates


class Undefined(SchemaModel):
    """No definition matches."""

    step: Step
    path: str | None = None
    snippets: tuple[str, ...] = Field(
        default=(),
        title='Snippet suggestions',
        description='Code suggestions collected from every provider.',
    )

    def error(self) -> UndefinedStepError:
        """Create the failure reported when the step executes."""
        return UndefinedStepError(self.step, self.snippets, filename=self.path)


class FailedInstantiation(SchemaModel):
    """A definition matches, but could not be bound to the step."""

    step: Step
    cause: Exception = Field(
        title='Failure cause',
    )


#: Closed union of resolution outcomes.
type Match = Found | Ambiguous | Undefined | FailedInstantiation
