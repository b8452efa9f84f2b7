"""Compiled scenario definitions.

Defines immutable models describing a compiled scenario (a *pickle*):
its steps, step arguments, tags and source locations. These models are
the input of the scenario compiler and are independent of the Gherkin
source they were compiled from.
"""

from collections.abc import Sequence  # noqa: TC003
from typing import TYPE_CHECKING

from pydantic import Field

from pytest_stepglue.models import SchemaModel
from pytest_stepglue.names import Tag  # noqa: TC001

if TYPE_CHECKING:
    from typing import Self


class Location(SchemaModel):
    """Position of an element in a feature file."""

    line: int = Field(
        ge=1,
        title='Line number',
        description='1-based line number in the feature file.',
    )

    column: int | None = Field(
        default=None,
        ge=1,
        title='Column number',
        description='1-based column number in the feature file.',
    )


class DataTable(SchemaModel):
    """Tabular step argument."""

    rows: tuple[tuple[str, ...], ...] = Field(
        min_length=1,
        title='Table rows',
        description='Rows of cells, the first row usually being a header.',
    )

    def raw(self) -> list[list[str]]:
        """Return the table as a mutable list of rows."""
        return [list(row) for row in self.rows]

    def hashes(self) -> list[dict[str, str]]:
        """Return data rows as mappings keyed by the header row."""
        header, *rows = self.rows

        return [dict(zip(header, row, strict=True)) for row in rows]


class DocString(SchemaModel):
    """Text block step argument."""

    content: str = Field(
        title='Content',
        description='Text block content without the enclosing delimiters.',
    )

    content_type: str | None = Field(
        default=None,
        title='Content type',
        description='Optional media type hint written after the opening delimiter.',
    )

    def __str__(self) -> str:
        """Text content."""
        return self.content


#: A step carries at most one argument: a table or a text block.
type Argument = DataTable | DocString


class Step(SchemaModel):
    """Single step of a compiled scenario."""

    text: str = Field(
        title='Step text',
        description='Step text without the Gherkin keyword.',
    )

    argument: Argument | None = Field(
        default=None,
        title='Step argument',
        description='Optional data table or doc string attached to the step.',
    )

    locations: tuple[Location, ...] = Field(
        default=(),
        title='Source locations',
        description=(
            'Locations of the step in the feature file. '
            'Steps of outline examples have one location per source row.'
        ),
    )

    @classmethod
    def build(cls, text: str, *,
              rows: 'Sequence[Sequence[str]] | None' = None,
              doc_string: 'DocString | str | None' = None,
              locations: 'Sequence[Location]' = ()) -> 'Self':
        """Build a step from raw argument parts.

        Non-empty rows take precedence over a doc string; a step never
        carries both arguments.

        Args:
            text: Step text.
            rows: Optional data table rows.
            doc_string: Optional doc string or its content.
            locations: Optional source locations.

        Returns:
            A new step.
        """
        argument: Argument | None = None

        if rows:
            argument = DataTable(rows=tuple(tuple(row) for row in rows))
        elif isinstance(doc_string, DocString):
            argument = doc_string
        elif doc_string is not None:
            argument = DocString(content=doc_string)

        return cls(text=text, argument=argument, locations=tuple(locations))

    @property
    def line(self) -> int | None:
        """First source line of the step, if known."""
        if not self.locations:
            return None

        return self.locations[0].line


class Scenario(SchemaModel):
    """Compiled scenario ready for execution."""

    name: str = Field(
        default='',
        title='Scenario name',
    )

    uri: str = Field(
        title='Source path',
        description='Path of the feature file the scenario was compiled from.',
    )

    language: str = Field(
        default='en',
        title='Language',
        description='Gherkin dialect of the feature file.',
    )

    steps: tuple[Step, ...] = Field(
        default=(),
        title='Steps',
    )

    tags: frozenset[Tag] = Field(
        default=frozenset(),
        title='Tags',
        description='Tags inherited from the feature, rule, scenario and examples.',
    )

    locations: tuple[Location, ...] = Field(
        default=(),
        title='Source locations',
    )

    @property
    def line(self) -> int | None:
        """First source line of the scenario, if known."""
        if not self.locations:
            return None

        return self.locations[0].line

    @property
    def id(self) -> str:
        """Stable identifier in the `uri:line` form."""
        if self.line is None:
            return self.uri

        return f'{self.uri}:{self.line}'
