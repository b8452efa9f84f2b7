"""Pytest plugin for collecting and executing compiled scenarios.

This module integrates pytest-stepglue with pytest by:
- registering custom command-line options;
- configuring a shared `Runner` instance;
- collecting pickle documents as executable scenarios.

Files matching the pattern `test_*.pickles.yml`, `test_*.pickles.yaml`,
`test_*.pickles.json` or `test_*.pickles.ndjson` are collected and every
scenario they contain becomes a pytest test item.
"""

from re import match
from typing import TYPE_CHECKING

from .spec import PickleSpec

if TYPE_CHECKING:
    from pathlib import Path

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.config.argparsing import Parser
    from _pytest.nodes import Node

#: Pattern of collected pickle documents.
PICKLES_FILE_PATTERN = r'^test_.+\.pickles\.(ya?ml|json|ndjson)$'


def pytest_addoption(parser: 'Parser') -> None:
    """Register pytest command-line options for pytest-stepglue.

    Args:
        parser: Pytest argument parser.
    """
    group = parser.getgroup('stepglue')
    group.addoption(
        '--glue-dry-run',
        action='store_true',
        dest='glue_dry_run',
        default=None,
        help=(
            'Compile scenarios without hooks and skip every step body. '
            'Undefined and ambiguous steps are still reported.'
        ),
    )
    group.addoption(
        '--glue-relaxed',
        action='store_true',
        dest='glue_relaxed',
        default=False,
        help=(
            'Disable strict glue validation. '
            'Plugin loading errors and shadowed step definitions '
            'will emit warnings instead of failing the session.'
        ),
    )
    group.addoption(
        '--glue-path',
        action='append',
        dest='glue_paths',
        default=[],
        help='Glue location (`package.module` or `package.module:plugin`), repeatable.',
    )
    group.addoption(
        '--glue-snippets',
        choices=('underscore', 'camelcase'),
        dest='glue_snippets',
        default=None,
        help='Naming convention of handler functions in undefined step snippets.',
    )


def pytest_configure(config: 'Config') -> None:
    """Configure pytest-stepglue integration.

    This hook initializes a shared `Runner` instance and attaches it to
    the pytest configuration object as `config.glue_runner`.

    Args:
        config: Pytest configuration object.
    """
    from pytest_stepglue.config import RuntimeOptions  # noqa: PLC0415
    from pytest_stepglue.core import PluginProvider, Runner  # noqa: PLC0415

    overrides = {}
    if config.getoption('glue_dry_run', default=None):
        overrides['dry_run'] = True
    if config.getoption('glue_relaxed', default=False):
        overrides['strict'] = False
    if paths := config.getoption('glue_paths', default=[]):
        overrides['glue'] = paths
    if snippets := config.getoption('glue_snippets', default=None):
        overrides['snippet_type'] = snippets

    options = RuntimeOptions(**overrides)

    config.glue_runner = Runner(  # type: ignore[attr-defined]
        providers=[PluginProvider(strict=options.strict)],
        options=options,
    )


def pytest_collect_file(parent: 'Node', file_path: 'Path') -> PickleSpec | None:
    """Collect compiled pickle documents.

    Args:
        parent: Parent pytest collection node.
        file_path: Path to the file being considered.

    Returns:
        A `PickleSpec` collector if the file matches the pattern, otherwise ``None``.
    """
    if match(PICKLES_FILE_PATTERN, file_path.name):
        return PickleSpec.from_parent(
            parent,
            path=file_path,
        )

    return None
