"""Scenario compilation and execution runtime.

This module defines the core infrastructure for binding compiled
scenarios to glue code and executing them.

It provides:
- the glue registry holding step definitions and hooks;
- step resolution, hook selection and scenario compilation;
- definition providers and plugin discovery;
- loading of compiled pickle documents.

The primary public entry point is `Runner`, which loads glue from its
providers and runs scenarios end-to-end.
"""

from .pickles import PickleLoader
from .providers import PluginProvider, Provider
from .registry import Glue
from .runner import Runner
from .testcase import HookStep, ScenarioStep, TestCase

__all__ = (
    'Glue',
    'HookStep',
    'PickleLoader',
    'PluginProvider',
    'Provider',
    'Runner',
    'ScenarioStep',
    'TestCase',
)
