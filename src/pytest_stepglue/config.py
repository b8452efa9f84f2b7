"""Runtime options.

Options are resolved from `STEPGLUE_*` environment variables and may be
overridden explicitly, for example from pytest command-line options.
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from pytest_stepglue.models import SettingsModel
from pytest_stepglue.snippets import SnippetType


class RuntimeOptions(SettingsModel):
    """Options controlling compilation and execution of scenarios."""

    model_config = SettingsConfigDict(
        env_prefix='STEPGLUE_',
    )

    dry_run: bool = Field(
        default=False,
        title='Dry run',
        description=(
            'Compile scenarios without hooks and skip every step body. '
            'Used to check that each step has exactly one definition.'
        ),
    )

    strict: bool = Field(
        default=True,
        title='Strict mode',
        description=(
            'Raise on plugin loading issues and shadowed step definitions '
            'instead of emitting warnings.'
        ),
    )

    glue: list[str] = Field(
        default_factory=list,
        title='Glue paths',
        description=(
            'Additional glue locations handed to providers: '
            '`package.module:attribute` or `package.module` paths.'
        ),
    )

    snippet_type: SnippetType = Field(
        default=SnippetType.UNDERSCORE,
        title='Snippet naming convention',
    )
