"""Tests for definition providers and glue plugin loading."""

from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

from pytest_stepglue.context import World
from pytest_stepglue.core import Glue, PluginProvider, Runner
from pytest_stepglue.errors import PluginError, PluginWarning
from pytest_stepglue.extensions import HookHandler, HookPhase, Plugin, StepHandler
from pytest_stepglue.schema import Step
from pytest_stepglue.snippets import SnippetType
from tests.examples.plugins import calculator, memory

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from pytest_mock import MockerFixture, MockType


def noop(world: World) -> None:
    pass


def test_entrypoint_loading(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Register definitions of plugins exposed via entry points."""
    patch_entrypoints(Plugin(
        name='test',
        steps=[StepHandler(pattern=r'^x$', handler=noop)],
        hooks=[HookHandler(phase=HookPhase.AFTER, tags=['@db'], handler=noop)],
    ))

    glue = Glue()
    PluginProvider(name='custom').load_handlers(glue, [])

    step, = glue.step_definitions
    hook, = glue.after_hooks

    assert step.namespace == 'test'
    assert step.provider == 'custom'
    assert hook.tags == ('@db',)
    assert glue.before_hooks == ()


def test_explicit_plugins_first(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Register explicit plugins before discovered ones."""
    patch_entrypoints(Plugin(name='discovered', steps=[
        StepHandler(pattern=r'^discovered$', handler=noop),
    ]))

    glue = Glue()
    PluginProvider(Plugin(name='explicit', steps=[
        StepHandler(pattern=r'^explicit$', handler=noop),
    ])).load_handlers(glue, [])

    assert [item.namespace for item in glue.step_definitions] == ['explicit', 'discovered']


def test_entrypoint_load_failure(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Warn about entry points that fail to load."""
    patch_entrypoints(object(), raises=ImportError('no module'))

    glue = Glue()
    with pytest.warns(PluginWarning, match="Failed to load entrypoint 'tests'"):
        PluginProvider().load_handlers(glue, [])

    assert glue.step_definitions == ()


def test_entrypoint_load_failure_strict(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Raise on entry points that fail to load on strict mode."""
    patch_entrypoints(object(), raises=ImportError('no module'))

    with pytest.raises(PluginError, match="Failed to load entrypoint 'tests'") as error:
        PluginProvider(strict=True).load_handlers(Glue(), [])

    assert isinstance(error.value.__cause__, ImportError)
    assert error.value.entrypoint is not None


def test_entrypoint_validation_failure(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Warn about entry points declaring invalid plugins."""
    with pytest.raises(ValidationError) as invalid:
        Plugin(name='1nvalid')

    patch_entrypoints(object(), raises=invalid.value)

    with pytest.warns(PluginWarning, match="Failed to validate entrypoint 'tests'"):
        PluginProvider().load_handlers(Glue(), [])


def test_entrypoint_not_a_plugin(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Reject entry points exposing other objects."""
    patch_entrypoints({'name': 'test'})

    with pytest.raises(PluginError, match='object is not a plugin'):
        PluginProvider(strict=True).load_handlers(Glue(), [])


def test_glue_path_module(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Register every plugin of a glue module in definition order."""
    patch_entrypoints()

    glue = Glue()
    PluginProvider(strict=True).load_handlers(glue, ['tests.examples.plugins'])

    assert len(glue.step_definitions) == len(calculator.steps) + len(memory.steps)
    assert glue.step_definitions[0].namespace == 'calculator'
    assert glue.step_definitions[-1].namespace == 'memory'
    assert [hook.tags for hook in glue.before_hooks] == [(), ('@memory',)]


def test_glue_path_attribute(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Register a single plugin named by a glue path."""
    patch_entrypoints()

    glue = Glue()
    PluginProvider(strict=True).load_handlers(glue, ['tests.examples.plugins:memory'])

    assert [item.namespace for item in glue.step_definitions] == ['memory']


@pytest.mark.parametrize('path, message', (
    pytest.param('tests.examples.missing', "Failed to load glue 'tests.examples.missing'", id='missing module'),
    pytest.param('tests.examples.plugins:missing', 'Failed to load glue', id='missing attribute'),
    pytest.param('tests.examples.plugins:OPERATIONS', 'object is not a plugin', id='not a plugin'),
    pytest.param('tests.conftest', 'object is not a plugin', id='no plugins'),
))
def test_glue_path_failure(patch_entrypoints: 'Callable[..., MockType]',
                           path: str, message: str) -> None:
    """Warn about invalid glue paths and raise on strict mode."""
    patch_entrypoints()

    with pytest.warns(PluginWarning, match=message):
        PluginProvider().load_handlers(Glue(), [path])

    with pytest.raises(PluginError, match=message):
        PluginProvider(strict=True).load_handlers(Glue(), [path])


def test_shadowed_step_relaxed(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Keep both definitions of a shadowed pattern outside strict mode."""
    patch_entrypoints()

    glue = Glue()
    with pytest.warns(PluginWarning, match='is shadowing'):
        PluginProvider(calculator, calculator).load_handlers(glue, [])

    assert len(glue.step_definitions) == 2 * len(calculator.steps)


def test_shadowed_step_strict(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Reject a shadowed pattern on strict mode."""
    patch_entrypoints()

    with pytest.raises(PluginError, match="from 'calculator' is rejected"):
        PluginProvider(calculator, calculator, strict=True).load_handlers(Glue(strict=True), [])


def test_frozen_glue(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Reject plugins registered after the registry is frozen."""
    patch_entrypoints()

    glue = Glue()
    glue.freeze()

    with pytest.warns(PluginWarning, match='Hook before'):
        PluginProvider(memory).load_handlers(glue, [])

    assert glue.before_hooks == ()


def test_runner_strict_loading(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Fail runner construction on plugin issues on strict mode."""
    patch_entrypoints(object(), raises=ImportError('no module'))

    with pytest.raises(PluginError):
        Runner(providers=[PluginProvider(strict=True)])


def test_world_lifecycle(mocker: 'MockerFixture') -> None:
    """Build fresh worlds bound to the invoker and clear them on disposal."""
    invoker = mocker.Mock()
    provider = PluginProvider(name='python')
    provider.set_nested_step_invoker(invoker)

    world = provider.build_world()
    other = provider.build_world()
    world['key'] = 'value'

    assert world is not other
    assert world.provider == 'python'
    assert world.invoker is invoker

    provider.dispose_world(world)

    assert world == world
    assert dict(world) == {}
    assert world.scenario is None


@pytest.mark.parametrize('naming, expected', (
    pytest.param(SnippetType.UNDERSCORE, 'def i_have_5_cukes(world):', id='underscore'),
    pytest.param(SnippetType.CAMELCASE, 'def iHave5Cukes(world):', id='camelcase'),
))
def test_snippet(naming: SnippetType, expected: str) -> None:
    """Suggest glue code for undefined steps."""
    snippet = PluginProvider().get_snippet(Step(text='I have 5 cukes'), '**KEYWORD**', naming)

    assert expected in snippet
    assert "title='**KEYWORD** I have 5 cukes'" in snippet
    assert r"pattern='^I\\ have\\ 5\\ cukes$'" in snippet
