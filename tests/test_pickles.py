"""Tests for compiled pickle document loading."""

import json
from textwrap import dedent
from typing import TYPE_CHECKING

import pytest

from pytest_stepglue.context import World
from pytest_stepglue.core import HookStep, PickleLoader
from pytest_stepglue.errors import PickleError
from pytest_stepglue.extensions import HookHandler, HookPhase, Plugin
from pytest_stepglue.schema import DataTable, DocString, Location

if TYPE_CHECKING:
    from collections.abc import Callable

    from pyfakefs.fake_filesystem import FakeFilesystem

    from pytest_stepglue.core import Runner

PICKLE_EVENT = {
    'type': 'pickle',
    'uri': 'features/calculator.feature',
    'pickle': {
        'name': 'Adding',
        'language': 'en',
        'locations': [{'line': 5, 'column': 3}],
        'tags': [{'name': '@math'}, {'name': '@fast'}],
        'steps': [
            {
                'text': 'I enter the numbers:',
                'locations': [{'line': 6, 'column': 5}],
                'arguments': [{'rows': [
                    {'cells': [{'value': 'number'}]},
                    {'cells': [{'value': '4'}]},
                ]}],
            },
            {
                'text': 'the display shows:',
                'locations': [{'line': 9, 'column': 5}],
                'arguments': [{'content': '4', 'contentType': 'text/plain'}],
            },
        ],
    },
}

MESSAGE_PICKLE = {
    'pickle': {
        'uri': 'features/calculator.feature',
        'name': 'Message',
        'tags': [{'name': '@math', 'astNodeId': '1'}],
        'steps': [
            {
                'text': 'I enter the numbers:',
                'argument': {'dataTable': {'rows': [{'cells': [{'value': '1'}]}]}},
            },
            {
                'text': 'the display shows:',
                'argument': {'docString': {'content': '1', 'mediaType': 'json'}},
            },
        ],
    },
}

PLAIN_PICKLES = dedent('''
    - name: First
      uri: features/plain.feature
      tags: ['@a']
      steps:
        - text: I enter 1
        - text: the numbers
          rows: [[a, b], ['1', '2']]
    - name: Second
      uri: features/plain.feature
      steps:
        - text: a text block
          docString: Hello
    ---
    name: Third
    steps:
      - text: I enter 3
''')


def test_load_pickle_event() -> None:
    """Load compiler pickle events."""
    scenario, = PickleLoader().load(json.dumps(PICKLE_EVENT))

    assert scenario.name == 'Adding'
    assert scenario.uri == 'features/calculator.feature'
    assert scenario.id == 'features/calculator.feature:5'
    assert scenario.tags == frozenset({'@math', '@fast'})

    table, doc_string = (step.argument for step in scenario.steps)

    assert table == DataTable(rows=(('number',), ('4',)))
    assert doc_string == DocString(content='4', content_type='text/plain')
    assert scenario.steps[0].locations == (Location(line=6, column=5),)


def test_load_message_envelope() -> None:
    """Load message envelopes with typed step arguments."""
    scenario, = PickleLoader().load(json.dumps(MESSAGE_PICKLE))

    assert scenario.uri == 'features/calculator.feature'
    assert scenario.tags == frozenset({'@math'})
    assert scenario.steps[0].argument == DataTable(rows=(('1',),))
    assert scenario.steps[1].argument == DocString(content='1', content_type='json')


def test_load_plain_documents() -> None:
    """Load plain pickles from a YAML stream."""
    first, second, third = PickleLoader().load(PLAIN_PICKLES, filename='plain.pickles.yaml')

    assert first.tags == frozenset({'@a'})
    assert first.steps[0].argument is None
    assert first.steps[1].argument == DataTable(rows=(('a', 'b'), ('1', '2')))
    assert second.steps[0].argument == DocString(content='Hello')
    assert third.uri == 'plain.pickles.yaml'
    assert third.language == 'en'


def test_load_ndjson() -> None:
    """Load message streams, ignoring other events."""
    content = '\n'.join((
        json.dumps({'type': 'source', 'uri': 'features/calculator.feature', 'data': ''}),
        json.dumps(PICKLE_EVENT),
        '',
        json.dumps(MESSAGE_PICKLE),
    ))

    scenarios = PickleLoader().load(content, filename='messages.ndjson')

    assert [scenario.name for scenario in scenarios] == ['Adding', 'Message']


@pytest.mark.parametrize('tags', (
    pytest.param([{'name': '@a'}, {'name': 'a b'}], id='invalid name'),
    pytest.param([{'name': '@a'}, {'label': '@b'}], id='missing name'),
    pytest.param([{'name': '@a'}, 42], id='not a tag'),
    pytest.param('@a', id='not a list'),
))
def test_unreadable_tags(tags: object) -> None:
    """Load scenarios with unreadable tags as untagged."""
    scenario, = PickleLoader().load(json.dumps({
        'uri': 'features/a.feature',
        'tags': tags,
        'steps': [{'text': 'a step'}],
    }))

    assert scenario.tags == frozenset()
    assert scenario.steps[0].text == 'a step'


def test_unreadable_tags_select_untagged_hooks(make_runner: 'Callable[..., Runner]') -> None:
    """Select only hooks that apply to untagged scenarios."""
    def tagged(world: World) -> None:
        pass

    def untagged(world: World) -> None:
        pass

    def not_tagged(world: World) -> None:
        pass

    runner = make_runner(Plugin(name='hooks', hooks=[
        HookHandler(phase=HookPhase.BEFORE, tags=['@a'], handler=tagged),
        HookHandler(phase=HookPhase.BEFORE, handler=untagged),
        HookHandler(phase=HookPhase.AFTER, tags=['~@a'], handler=not_tagged),
    ]))
    scenario, = PickleLoader().load(json.dumps({
        'uri': 'features/a.feature',
        'tags': [{'name': '@a'}, {'label': '@b'}],
        'steps': [{'text': 'a step'}],
    }))

    test_case = runner.compile(scenario)
    hooks = [step.match.definition.handler for step in test_case.steps if isinstance(step, HookStep)]

    assert hooks == [untagged, not_tagged]


def test_rows_preferred_over_doc_string() -> None:
    """Attach a data table when a step carries both arguments."""
    scenario, = PickleLoader().load(json.dumps({
        'uri': 'features/a.feature',
        'steps': [{'text': 'both', 'rows': [['a']], 'docString': 'text'}],
    }))

    assert scenario.steps[0].argument == DataTable(rows=(('a',),))


def test_invalid_yaml() -> None:
    """Report malformed documents with their location."""
    with pytest.raises(PickleError, match='Invalid pickle document') as error:
        PickleLoader().load('name: [unclosed', filename='broken.yaml')

    assert error.value.context['line_num'] is not None


@pytest.mark.parametrize('content, message', (
    pytest.param('- just a string', 'Pickle document must be a mapping', id='not a mapping'),
    pytest.param('pickle: [1, 2]', 'Pickle must be a mapping', id='pickle not a mapping'),
    pytest.param('steps: [{text: 1}]', "Input should be a valid string at 'text'", id='invalid step'),
    pytest.param('steps: a step', "at 'steps", id='steps not a list'),
))
def test_invalid_pickles(content: str, message: str) -> None:
    """Report documents that are not valid pickles."""
    with pytest.raises(PickleError, match=message):
        PickleLoader().load(content, filename='invalid.yaml')


def test_load_from_file(fs: 'FakeFilesystem') -> None:
    """Load pickles from a document file."""
    fs.create_file('features/test_calc.pickles.json', contents=json.dumps([PICKLE_EVENT, MESSAGE_PICKLE]))

    with open('features/test_calc.pickles.json', encoding='utf-8') as content:  # noqa: PTH123
        scenarios = PickleLoader().load(content, filename='features/test_calc.pickles.json')

    assert len(scenarios) == 2
