"""Name primitive types and validation rules.

This module defines base name patterns and strongly-typed aliases used by
the runtime to validate tags, tag expressions, and plugin namespaces.

The rules defined here form part of the public glue contract and are
relied upon by pickle loaders, hook predicates, and plugins.
"""

from re import ASCII
from re import compile as regexp
from typing import Annotated

from pydantic import Field

#: Base pattern for plugin namespaces.
_NAME_PATTERN = r'[a-zA-Z][\w]*'

#: Base pattern for tag names. Tags start with `@` and contain no
#: whitespace or commas, commas being reserved for tag expressions.
_TAG_PATTERN = r'@[^\s,@~][^\s,]*'

#: Compiled pattern for a single tag.
TAG_PATTERN = regexp(rf'^{_TAG_PATTERN}$')

#: Compiled pattern for a single tag expression entry.
#: An entry is a comma separated OR group of optionally negated tags.
TAG_EXPRESSION_PATTERN = regexp(
    rf'^~?{_TAG_PATTERN}(\s*,\s*~?{_TAG_PATTERN})*$',
)

#: Compiled pattern for plugin namespaces.
VARIABLE_PATTERN = regexp(
    rf'^(?P<name>{_NAME_PATTERN})$',
    flags=ASCII,
)

#: Placeholder passed to providers in place of a Gherkin keyword
#: when asking for step snippets.
KEYWORD_PLACEHOLDER = '**KEYWORD**'


Tag = Annotated[
    str, Field(
        pattern=rf'^{_TAG_PATTERN}$',
        title='Tag name',
        description=(
            'Name of a scenario tag, including the leading `@`. '
            'Tag membership is tested by exact string match.'
        ),
        examples=[
            '@smoke',
            '@db',
        ],
    ),
]

TagExpression = Annotated[
    str, Field(
        pattern=TAG_EXPRESSION_PATTERN.pattern,
        title='Tag expression',
        description=(
            'Comma separated list of tags, any of which must be present. '
            'A tag prefixed with `~` must be absent instead.'
        ),
        examples=[
            '@db',
            '@fast,@slow',
            '~@wip',
        ],
    ),
]

Variable = Annotated[
    str, Field(
        pattern=rf'^{_NAME_PATTERN}$',
        title='Plugin namespace',
        description=(
            'Identifier used as a plugin namespace. '
            'Identifiers must start with a letter and may contain '
            'letters, digits, or underscores.'
        ),
        examples=[
            'calculator',
            'web_ui',
        ],
    ),
]
