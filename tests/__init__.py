"""Test suite for the pytest-stepglue package.

This package contains unit and integration tests validating step
resolution, hook selection, scenario compilation, nested step
invocation, pickle loading, and pytest and CLI integration.
"""
