"""Compiled pickle document loading.

This module converts pickle documents produced by Gherkin compilers into
`Scenario` models. Documents are read with PyYAML, so YAML streams, JSON
documents and newline-delimited JSON are accepted alike.

Supported document shapes:
- a pickle event `{"type": "pickle", "uri": ..., "pickle": {...}}`;
- an envelope `{"pickle": {...}}` with the uri inside the pickle;
- a bare pickle mapping, or a list of any of the above.

Step arguments may be given in the compiler layout (`arguments` list with
`rows`/`cells` or `content`, or `argument` with `dataTable`/`docString`)
or in the plain layout (`rows` as lists of strings, `docString`).
"""

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from yaml import SafeLoader, load, load_all
from yaml.error import MarkedYAMLError

from pytest_stepglue.errors import PickleError
from pytest_stepglue.names import TAG_PATTERN
from pytest_stepglue.schema import DocString, Location, Scenario, Step

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from io import TextIOBase

if TYPE_CHECKING:
    from yaml import BaseLoader

logger = logging.getLogger(__name__)

#: File suffixes holding one JSON document per line.
LINE_DELIMITED_SUFFIXES = ('.ndjson', '.jsonl')


class PickleLoader:
    """Loader of compiled pickle documents into scenarios.

    Unreadable tag data never fails loading: such scenarios get an
    empty tag set.
    """

    def __init__(self, loader: type['BaseLoader'] = SafeLoader) -> None:
        """Initialize the loader.

        Args:
            loader: PyYAML loader class used to read documents.
        """
        self.loader = loader

    def load(self, content: 'TextIOBase | str', *,
             filename: str | None = None) -> tuple[Scenario, ...]:
        """Load every scenario from a document stream.

        Args:
            content: Document stream as a string or file-like object.
            filename: Optional name of the source, used as default uri
                and for diagnostics. Line-delimited JSON is detected by
                the `.ndjson` and `.jsonl` suffixes.

        Returns:
            Scenarios in document order.

        Raises:
            PickleError: If a document can not be parsed or validated.
        """
        try:
            documents = list(self.read(content, filename))

        except MarkedYAMLError as base:
            raise PickleError.from_yaml_error(base) from base

        except Exception as base:
            raise PickleError('Unexpected error') from base

        scenarios = []
        for document in documents:
            for item in document if isinstance(document, list) else [document]:
                if (scenario := self.convert(item, filename)) is not None:
                    scenarios.append(scenario)

        logger.debug('Loaded %d scenarios from %s', len(scenarios), filename or '<stream>')

        return tuple(scenarios)

    def read(self, content: 'TextIOBase | str', filename: str | None) -> 'Iterable[Any]':
        """Parse raw documents from the stream."""
        if filename and filename.endswith(LINE_DELIMITED_SUFFIXES):
            text = content if isinstance(content, str) else content.read()
            for line in text.splitlines():
                if line.strip():
                    yield load(line, Loader=self.loader)  # noqa: S506
            return

        yield from load_all(content, Loader=self.loader)  # noqa: S506

    def convert(self, document: Any, filename: str | None = None) -> Scenario | None:  # noqa: ANN401
        """Convert one document into a scenario.

        Non-pickle events of a message stream are ignored.

        Args:
            document: Parsed document.
            filename: Optional source name used as default uri.

        Returns:
            The scenario, or `None` for ignored documents.

        Raises:
            PickleError: If the document is not a valid pickle.
        """
        if document is None:
            return None

        if not isinstance(document, dict):
            raise PickleError('Pickle document must be a mapping', context={
                'filename': filename,
                'element': document,
            })

        if document.get('type', 'pickle') != 'pickle':
            return None

        pickle = document.get('pickle', document)
        if not isinstance(pickle, dict):
            raise PickleError('Pickle must be a mapping', context={
                'filename': filename,
                'element': document,
            })

        steps = pickle.get('steps') or []

        try:
            data = {
                'name': pickle.get('name', ''),
                'uri': document.get('uri') or pickle.get('uri') or filename or '<unicode string>',
                'language': pickle.get('language') or 'en',
                'steps': [self.convert_step(step) for step in steps] if isinstance(steps, list) else steps,
                'tags': self.read_tags(pickle.get('tags')),
                'locations': self.read_locations(pickle.get('locations')),
            }
            return Scenario.model_validate(data)

        except ValidationError as base:
            raise PickleError.from_pydantic_error(base, data=pickle, filename=filename) from base

    def convert_step(self, step: Any) -> Step | dict[str, Any]:  # noqa: ANN401
        """Convert a pickle step, leaving invalid data to validation."""
        if not isinstance(step, dict):
            return step

        rows, doc_string = self.read_argument(step)

        return Step.build(
            step.get('text', ''),
            rows=rows,
            doc_string=doc_string,
            locations=self.read_locations(step.get('locations')),
        )

    @classmethod
    def read_argument(cls, step: 'Mapping[str, Any]') -> tuple[list[list[str]] | None, DocString | None]:
        """Extract table rows and doc string of a pickle step."""
        candidates: list[Any] = [*(step.get('arguments') or ()), step.get('argument'), step]

        rows: list[list[str]] | None = None
        doc_string: DocString | None = None

        for candidate in candidates:
            if not isinstance(candidate, dict):
                continue
            table = candidate.get('dataTable', candidate)
            if rows is None and isinstance(table, dict) and isinstance(table.get('rows'), list):
                rows = [cls.read_row(row) for row in table['rows']]
            text = candidate.get('docString', candidate)
            if doc_string is None and isinstance(text, dict) and 'content' in text:
                doc_string = DocString(
                    content=str(text['content']),
                    content_type=text.get('mediaType') or text.get('contentType'),
                )
            elif doc_string is None and isinstance(text, str):
                doc_string = DocString(content=text)

        return rows, doc_string

    @staticmethod
    def read_row(row: Any) -> list[str]:  # noqa: ANN401
        """Extract cell values of a table row."""
        cells = row.get('cells', ()) if isinstance(row, dict) else row

        return [
            str(cell.get('value', '')) if isinstance(cell, dict) else str(cell)
            for cell in cells
        ]

    @staticmethod
    def read_tags(tags: Any) -> frozenset[str]:  # noqa: ANN401
        """Extract tag names.

        Tags that can not be read make the whole tag set empty.

        Args:
            tags: Raw tag data: a list of names or of `{"name": ...}`.

        Returns:
            Tag names, or an empty set when the data is unreadable.
        """
        if not isinstance(tags, list):
            return frozenset()

        names = [
            tag.get('name') if isinstance(tag, dict) else tag
            for tag in tags
        ]

        if not all(isinstance(name, str) and TAG_PATTERN.match(name) for name in names):
            logger.debug('Ignoring unreadable tags %r', tags)
            return frozenset()

        return frozenset(names)

    @staticmethod
    def read_locations(locations: Any) -> list[Location]:  # noqa: ANN401
        """Extract valid source locations."""
        if not isinstance(locations, list):
            return []

        return [
            Location(line=item['line'], column=item.get('column'))
            for item in locations
            if isinstance(item, dict) and isinstance(item.get('line'), int) and item['line'] >= 1
            and (item.get('column') is None or (isinstance(item['column'], int) and item['column'] >= 1))
        ]
