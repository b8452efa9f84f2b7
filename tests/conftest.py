"""Tests configurations and fixtures."""

from importlib.metadata import EntryPoint, EntryPoints
from typing import TYPE_CHECKING

import pytest

from pytest_stepglue.config import RuntimeOptions
from pytest_stepglue.core import PluginProvider, Runner
from pytest_stepglue.events import Event, EventBus

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from pytest_mock import MockerFixture, MockType

if TYPE_CHECKING:
    from pytest_stepglue.extensions import Plugin


@pytest.fixture
def patch_entrypoints(mocker: 'MockerFixture') -> 'Callable[..., MockType]':
    """Provide a factory for mocking `importlib.metadata.entry_points`.

    Returns a callable that patches `entry_points()` to simulate
    discovery of plugins in the `stepglue_plugins` entry point group.

    The returned factory allows configuring:
    - a successfully loadable plugin,
    - or an exception raised during plugin loading,
    - or an empty entry point list.

    This fixture is intended for testing plugin discovery and error
    handling logic without relying on real installed entry points.
    """
    def patch(*plugins: 'Plugin | object', raises: Exception | None = None) -> 'MockType':
        """Patch `entry_points` with a controlled plugin configuration.

        Args:
            plugins: Objects to be returned by `EntryPoint.load()`.
                If empty, no entry points are registered.
            raises: Exception to raise when `EntryPoint.load()` is called.
                Used to simulate plugin load failures.

        Returns:
            A mock patch object produced by `mocker.patch` that replaces
            `importlib.metadata.entry_points` for the duration of the test.
        """
        entrypoints = []
        for plugin in plugins:
            ep = mocker.Mock(spec=EntryPoint)
            ep.group = 'stepglue_plugins'
            ep.name = 'tests'
            ep.value = 'tests.plugins:test'
            ep.load.return_value = plugin
            if raises is not None:
                ep.load.side_effect = raises
            entrypoints.append(ep)

        return mocker.patch(
            'importlib.metadata.entry_points',
            return_value=EntryPoints(entrypoints),
        )

    return patch


@pytest.fixture
def events() -> tuple[EventBus, list[Event]]:
    """Provide an event bus recording every published event."""
    bus = EventBus()
    published: list[Event] = []
    bus.register(Event, published.append)

    return bus, published


@pytest.fixture
def make_runner(patch_entrypoints: 'Callable[..., MockType]') -> 'Callable[..., Runner]':
    """Provide a factory of runners isolated from installed plugins.

    The factory accepts explicit plugins followed by runtime option
    overrides and an optional event bus.
    """
    patch_entrypoints()

    def make(*plugins: 'Plugin', bus: EventBus | None = None, **options: object) -> Runner:
        """Build a runner with a single plugin provider."""
        settings = RuntimeOptions(**options)  # type: ignore[arg-type]

        return Runner(
            bus=bus,
            providers=[PluginProvider(*plugins, strict=settings.strict)],
            options=settings,
        )

    return make
