"""Declarative glue plugin definition.

This module defines the top-level declarative container used to describe
glue code provided by a pytest-stepglue plugin.

A plugin aggregates independent glue elements:
- step handlers (text patterns bound to callables),
- hooks (callables bound to a lifecycle phase and tag expressions).

The plugin model itself is purely declarative. It contains no execution
logic and is consumed by a provider while loading handlers into the
glue registry.
"""

from pydantic import Field

from pytest_stepglue.errors import PendingStepError
from pytest_stepglue.models import SchemaModel
from pytest_stepglue.names import Variable  # noqa: TC001
from pytest_stepglue.schema import DataTable, DocString, HookPhase

from .handlers import HookHandler, StepHandler

__all__ = (
    'DataTable',
    'DocString',
    'HookHandler',
    'HookPhase',
    'PendingStepError',
    'Plugin',
    'StepHandler',
)


class Plugin(SchemaModel):
    """Declarative container for glue extensions.

    A plugin represents a logical namespace that groups together all
    glue elements contributed by an extension module. Plugin instances
    are loaded from the `stepglue_plugins` entry point group or from
    configured glue paths.

    All contained elements are optional.
    """

    name: Variable = Field(
        title='Plugin namespace',
        description=(
            'Logical namespace of the plugin. '
            'Used for identification, diagnostics, and conflict detection.'
        ),
    )

    steps: list[StepHandler] = Field(
        default_factory=list,
        title='Step handlers',
        description='Step definitions provided by the plugin.',
    )

    hooks: list[HookHandler] = Field(
        default_factory=list,
        title='Hooks',
        description=(
            'Lifecycle hooks provided by the plugin, '
            'registered in declaration order.'
        ),
    )
