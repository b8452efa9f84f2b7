"""Immutable data model of compiled scenarios and glue.

Defines Pydantic models for compiled scenarios and their steps, compiled
step definitions and hooks, step resolution outcomes and execution
results. The module specifies data only; compilation and execution live
in `pytest_stepglue.core`.
"""

from .definitions import HookDefinition, HookPhase, HookRunner, StepDefinition, StepRunner
from .matches import Ambiguous, FailedInstantiation, Found, Match, Undefined
from .pickles import Argument, DataTable, DocString, Location, Scenario, Step
from .results import Result, Status

__all__ = (
    'Ambiguous',
    'Argument',
    'DataTable',
    'DocString',
    'FailedInstantiation',
    'Found',
    'HookDefinition',
    'HookPhase',
    'HookRunner',
    'Location',
    'Match',
    'Result',
    'Scenario',
    'Status',
    'Step',
    'StepDefinition',
    'StepRunner',
    'Undefined',
)
