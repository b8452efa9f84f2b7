"""Pytest plugin and runtime for executing compiled Gherkin scenarios.

The `pytest_stepglue` package binds compiled scenarios (pickles) to
registered Python glue code and executes them as pytest test items.

Key features:
- compilation of a scenario into an ordered test case with hooks;
- four-way classification of step resolution outcomes;
- tag-driven selection of lifecycle hooks;
- nested step invocation from glue code with source attribution.

Glue code is described declaratively and discovered from entry points
or from explicitly configured glue paths.
"""
