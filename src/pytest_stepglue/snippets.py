"""Step snippet naming conventions and rendering.

Snippets are code suggestions reported for undefined steps. This module
provides the naming conventions used to derive handler function names
from step text, and the template of the Python glue snippet.
"""

from enum import StrEnum
from re import compile as regexp
from re import escape
from typing import TYPE_CHECKING

from pytest_stepglue.schema.pickles import DataTable, DocString

if TYPE_CHECKING:
    from pytest_stepglue.schema.pickles import Step

_WORDS_PATTERN = regexp(r'[^\W_]+')

SNIPPET_TEMPLATE = '''\
def {function}({parameters}):
    raise PendingStepError


StepHandler(
    title={title!r},
    pattern={pattern!r},
    handler={function},
),
'''


class SnippetType(StrEnum):
    """Naming convention for handler functions in snippets."""

    UNDERSCORE = 'underscore'
    CAMELCASE = 'camelcase'

    def function_name(self, text: str) -> str:
        """Derive a function name from step text.

        Args:
            text: Step text.

        Returns:
            A valid identifier; `step` when the text has no words.
        """
        words = [word.lower() for word in _WORDS_PATTERN.findall(text)]
        if not words:
            return 'step'

        if self is SnippetType.CAMELCASE:
            name = words[0] + ''.join(word.capitalize() for word in words[1:])
        else:
            name = '_'.join(words)

        if name[0].isdigit():
            return f'_{name}'

        return name


def render_snippet(step: 'Step', keyword: str, naming: SnippetType) -> str:
    """Render a Python glue snippet for an undefined step.

    The snippet defines the handler function first, followed by a
    `StepHandler` entry for the `steps` list of a glue plugin.

    Args:
        step: Undefined step.
        keyword: Keyword placeholder shown in the handler title.
        naming: Naming convention for the handler function.

    Returns:
        Snippet source code.
    """
    parameters = ['world']
    if isinstance(step.argument, DataTable):
        parameters.append('table: DataTable')
    elif isinstance(step.argument, DocString):
        parameters.append('doc_string: DocString')

    return SNIPPET_TEMPLATE.format(
        title=f'{keyword} {step.text}',
        pattern=f'^{escape(step.text)}$',
        function=naming.function_name(step.text),
        parameters=', '.join(parameters),
    )
