"""Pytest collector for compiled pickle documents.

Each collected file is loaded with `PickleLoader` and every scenario it
contains is wrapped into a `ScenarioItem`.
"""

from typing import TYPE_CHECKING

import pytest

from pytest_stepglue.core import PickleLoader

from .case import ScenarioItem

if TYPE_CHECKING:
    from collections.abc import Iterable


class PickleSpec(pytest.File):
    """Pytest file collector for pickle documents."""

    __test__ = False

    def collect(self) -> 'Iterable[ScenarioItem]':
        """Collect one pytest item per scenario.

        Items are named after the scenario and its line, so outline
        examples with identical names stay distinguishable.

        Returns:
            Iterable of `ScenarioItem` instances for pytest execution.

        Raises:
            PickleError: If the document is malformed.
        """
        with self.path.open('rt', encoding='utf-8') as content:
            scenarios = PickleLoader().load(content, filename=str(self.path))

        for position, scenario in enumerate(scenarios):
            name = scenario.name or self.path.stem
            suffix = scenario.line if scenario.line is not None else position + 1
            yield ScenarioItem.from_parent(
                self,
                name=f'{name}[{suffix}]',
                scenario=scenario,
                runner=self.config.glue_runner,  # type: ignore[attr-defined]
            )
