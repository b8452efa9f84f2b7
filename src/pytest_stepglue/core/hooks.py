"""Hook selection by scenario tags."""

from typing import TYPE_CHECKING

from pytest_stepglue.schema import Found, HookPhase

from .testcase import HookStep

if TYPE_CHECKING:
    from collections.abc import Collection

if TYPE_CHECKING:
    from pytest_stepglue.core.registry import Glue


class HookSelectorMixin:
    """Mixin selecting hooks applicable to a scenario."""

    glue: 'Glue'

    def select_hooks(self, phase: HookPhase, tags: 'Collection[str]') -> list[HookStep]:
        """Select hook steps of a phase matching the scenario tags.

        Hooks keep their registration order; no re-sorting by
        specificity is applied.

        Args:
            phase: Lifecycle phase.
            tags: Tags of the scenario.

        Returns:
            Non-skippable hook steps.
        """
        hooks = self.glue.before_hooks if phase is HookPhase.BEFORE else self.glue.after_hooks

        return [
            HookStep(phase=phase, match=Found(definition=hook))
            for hook in hooks
            if hook.matches(tags)
        ]
