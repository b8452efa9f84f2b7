"""Tests for the glue registry."""

import pytest

from pytest_stepglue.core import Glue
from pytest_stepglue.errors import AmbiguousStepDefinitionsError, GlueError, PluginWarning, StepBindingError
from pytest_stepglue.extensions import HookHandler, HookPhase, StepHandler
from pytest_stepglue.schema import Found, Step


def noop(world: object, *args: object) -> None:
    pass


def test_resolve_found() -> None:
    """Resolve a step to the single matching definition."""
    glue = Glue()
    glue.add_step_definition(StepHandler(pattern=r'^I have (\d+) cukes$', handler=noop).build())
    glue.add_step_definition(StepHandler(pattern=r'^I eat (\d+) cukes$', handler=noop).build())

    found = glue.resolve('a.feature', Step(text='I eat 3 cukes'))

    assert isinstance(found, Found)
    assert found.definition is glue.step_definitions[1]
    assert found.arguments == ('3',)


def test_resolve_none() -> None:
    """Return nothing when no definition matches."""
    glue = Glue()
    glue.add_step_definition(StepHandler(pattern=r'^I have cukes$', handler=noop).build())

    assert glue.resolve('a.feature', Step(text='I have no cukes')) is None


def test_resolve_ambiguous() -> None:
    """Report every matching definition in registration order."""
    glue = Glue()
    glue.add_step_definition(StepHandler(pattern=r'^I have (\d+) cukes$', handler=noop).build())
    glue.add_step_definition(StepHandler(pattern=r'^I have unrelated things$', handler=noop).build())
    glue.add_step_definition(StepHandler(pattern=r'^I have (.+) cukes$', handler=noop).build())

    with pytest.raises(AmbiguousStepDefinitionsError) as error:
        glue.resolve('a.feature', Step(text='I have 5 cukes'))

    assert error.value.candidates == (glue.step_definitions[0], glue.step_definitions[2])
    assert 'a.feature' in str(error.value)


def test_resolve_binding_failure() -> None:
    """Propagate binding failures of the matching definition."""
    def handler(world: object, count: int) -> None:
        pass

    glue = Glue()
    glue.add_step_definition(StepHandler(pattern=r'^I have (\w+) cukes$', handler=handler).build())

    with pytest.raises(StepBindingError):
        glue.resolve('a.feature', Step(text='I have many cukes'))


def test_shadowed_pattern_relaxed() -> None:
    """Warn about a pattern registered twice outside strict mode."""
    glue = Glue()
    glue.add_step_definition(StepHandler(pattern=r'^x$', handler=noop).build())

    with pytest.warns(PluginWarning, match='is shadowing'):
        glue.add_step_definition(StepHandler(pattern=r'^x$', handler=noop).build())

    assert len(glue.step_definitions) == 2


def test_shadowed_pattern_strict() -> None:
    """Reject a pattern registered twice on strict mode."""
    glue = Glue(strict=True)
    glue.add_step_definition(StepHandler(pattern=r'^x$', handler=noop).build())

    with pytest.raises(GlueError, match='is shadowing'):
        glue.add_step_definition(StepHandler(pattern=r'^x$', handler=noop).build())

    assert len(glue.step_definitions) == 1


def test_hooks_keep_registration_order() -> None:
    """Store hooks by phase in registration order."""
    glue = Glue()
    hooks = [
        HookHandler(phase=HookPhase.AFTER, handler=noop).build('first'),
        HookHandler(phase=HookPhase.BEFORE, handler=noop).build('second'),
        HookHandler(phase=HookPhase.AFTER, handler=noop).build('third'),
    ]
    for hook in hooks:
        glue.add_hook(hook)

    assert glue.before_hooks == (hooks[1],)
    assert glue.after_hooks == (hooks[0], hooks[2])


def test_frozen_glue() -> None:
    """Reject registration after the registry is frozen."""
    glue = Glue()
    glue.freeze()

    with pytest.raises(GlueError, match='Glue is frozen'):
        glue.add_step_definition(StepHandler(pattern=r'^x$', handler=noop).build())

    with pytest.raises(GlueError, match='Glue is frozen'):
        glue.add_hook(HookHandler(phase=HookPhase.BEFORE, handler=noop).build())


def test_report_step_definitions() -> None:
    """Report step definitions in registration order."""
    glue = Glue()
    glue.add_step_definition(StepHandler(pattern=r'^b$', handler=noop).build())
    glue.add_step_definition(StepHandler(pattern=r'^a$', handler=noop).build())

    reported = []
    glue.report_step_definitions(reported.append)

    assert [definition.pattern.pattern for definition in reported] == ['^b$', '^a$']
