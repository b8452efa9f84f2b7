"""CLI utilities for pytest-stepglue.

Provides commands to list registered step definitions and to run
compiled pickle documents outside of pytest.
"""

from pathlib import Path
from typing import TYPE_CHECKING

from click import Choice, argument, echo, group, option
from click import Path as PathParam

from pytest_stepglue.config import RuntimeOptions
from pytest_stepglue.core import PickleLoader, PluginProvider, Runner
from pytest_stepglue.events import EventBus, TestStepFinished
from pytest_stepglue.snippets import SnippetType

if TYPE_CHECKING:
    from pytest_stepglue.schema import StepDefinition

InputFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)


def _make_runner(glue: tuple[str, ...], *, bus: EventBus | None = None,
                 dry_run: bool = False, relaxed: bool = False,
                 snippets: str | None = None) -> Runner:
    """Build a runner with the plugin provider.

    Args:
        glue: Additional glue paths.
        bus: Optional event bus.
        dry_run: Whether to skip hooks and step bodies.
        relaxed: Whether plugin issues only warn.
        snippets: Optional snippet naming convention.

    Returns:
        Configured runner.
    """
    overrides: dict[str, object] = {'dry_run': dry_run}
    if glue:
        overrides['glue'] = list(glue)
    if relaxed:
        overrides['strict'] = False
    if snippets:
        overrides['snippet_type'] = snippets

    options = RuntimeOptions(**overrides)  # type: ignore[arg-type]

    return Runner(
        bus=bus,
        providers=[PluginProvider(strict=options.strict)],
        options=options,
    )


@group(help='Command-line utilities for pytest-stepglue.')
def cli() -> None:
    """Root CLI group for pytest-stepglue tools."""
    return None


glue_option = option(
    '-g', '--glue',
    multiple=True,
    help='Glue location (`package.module` or `package.module:plugin`), repeatable.',
)

relaxed_option = option(
    '--relaxed',
    is_flag=True,
    default=False,
    help='Emit warnings instead of failing on plugin loading issues.',
)


@cli.command(
    name='definitions',
    help='List every registered step definition.',
)
@glue_option
@relaxed_option
def list_definitions(glue: tuple[str, ...], relaxed: bool) -> None:
    """Print registered step definitions in registration order."""
    def reporter(definition: 'StepDefinition') -> None:
        echo(f'{definition.pattern.pattern}  # {definition.namespace} {definition.location}')

    _make_runner(glue, relaxed=relaxed).report_step_definitions(reporter)


@cli.command(
    name='run',
    help='Run every scenario of a pickle document and print its status.',
)
@argument('source', type=InputFilepath)
@glue_option
@relaxed_option
@option(
    '--dry-run',
    is_flag=True,
    default=False,
    help='Skip hooks and step bodies, report undefined steps only.',
)
@option(
    '--snippets',
    type=Choice([item.value for item in SnippetType]),
    default=None,
    help='Naming convention of handler functions in snippets.',
)
def run_pickles(source: Path, glue: tuple[str, ...], relaxed: bool,
                dry_run: bool, snippets: str | None) -> None:
    """Run scenarios and exit with a non-zero status on failures."""
    bus = EventBus()

    def report_step(event: TestStepFinished) -> None:
        if event.result.error is not None and not event.result.ok:
            echo(f'    {event.result.status}: {event.result.error}', err=True)

    bus.register(TestStepFinished, report_step)

    runner = _make_runner(glue, bus=bus, dry_run=dry_run, relaxed=relaxed, snippets=snippets)

    with source.open('rt', encoding='utf-8') as content:
        scenarios = PickleLoader().load(content, filename=str(source))

    failed = 0
    for scenario in scenarios:
        result = runner.run(scenario)
        echo(f'{result.status:<9} {scenario.id} {scenario.name}')
        if not result.ok:
            failed += 1

    if failed:
        raise SystemExit(1)


if __name__ == '__main__':
    cli()
