"""Core exception hierarchy.

This module defines base error and warning types used across the library
to report plugin loading issues, pickle validation failures, glue
registration misuse, and step resolution and execution failures in a
structured and extensible way.
"""

from os import linesep
from traceback import extract_stack
from typing import TYPE_CHECKING, Any, TypedDict

from pydantic import Field
from yaml import dump
from yaml.error import MarkedYAMLError

from pytest_stepglue.models import SchemaModel

if TYPE_CHECKING:
    from importlib.metadata import EntryPoint
    from typing import Self

if TYPE_CHECKING:
    from pydantic_core import ValidationError

if TYPE_CHECKING:
    from pytest_stepglue.schema.pickles import Step

SNIPPET_ELLIPSIS = f' ...{linesep}'
SNIPPET_INDENT = 2

FORMAT_REPLACER = '<runtime object>'
FORMAT_FILENAME = '<unicode string>'
FORMAT_INDENT = 4

#: Label of the synthetic frame pointing at the scenario that
#: triggered a nested step invocation.
NESTED_STEP_LABEL = 'StepDefinition'

SCALARS = (str, bytes, int, float, bool)
MAPPINGS = (dict,)
SEQUENCES = (list, tuple, set, frozenset)


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Name of the source file where the error occurred.
    filename: str | None

    #: Line number in the source file (1-based).
    line_num: int | None
    #: Column number in the source file (1-based).
    column_num: int | None

    #: Underlying exception that triggered formatting.
    error: Exception | None

    #: Runtime element associated with the error.
    element: Any


class ErrorFormatter:
    """Utility class for formatting glue-related errors.

    This formatter is responsible for producing human-readable
    error messages with optional source location and YAML-based
    snippets of the failing element.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        message += linesep
        message += cls.get_location_string(context, indent=FORMAT_INDENT)
        message += cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)

        return message

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format source location information.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location string including filename, line
            and column numbers when available.
        """
        indent = cls._ensure_indent(indent)

        filename = context.get('filename')
        if not filename:
            filename = FORMAT_FILENAME

        message = f'{indent}in "{filename}"'
        if (line_num := context.get('line_num')) is not None:
            message += f', line {line_num}'
            if (column_num := context.get('column_num')) is not None:
                message += f', column {column_num}'
        message += linesep

        return message

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Generate a formatted snippet illustrating the error context.

        Args:
            context: Error context containing element or exception data.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet string, or an empty string
            if no snippet data is available.
        """
        indent = cls._ensure_indent(indent)

        if (error := context.get('error')) and isinstance(error, MarkedYAMLError):
            snippet = error.problem_mark.get_snippet(indent=0) or ''
            return cls._make_indent(snippet, indent)

        if element := context.get('element'):
            snippet = f'{indent}{SNIPPET_ELLIPSIS}'
            snippet += cls._make_yaml(element, indent)
            snippet += linesep
            return snippet

        return ''

    @classmethod
    def _filter_unsafe(cls, value: Any) -> Any:  # noqa: ANN401
        """Recursively sanitize values for safe YAML serialization.

        Args:
            value: Arbitrary value to sanitize.

        Returns:
            A YAML-safe representation of the value.
        """
        if value is None or isinstance(value, SCALARS):
            return value

        if isinstance(value, MAPPINGS):
            return {
                key: cls._filter_unsafe(item)
                for key, item in value.items()
            }

        if isinstance(value, SEQUENCES):
            return [
                cls._filter_unsafe(item)
                for item in value
            ]

        return FORMAT_REPLACER

    @classmethod
    def _make_yaml(cls, value: Any, indent: str = '') -> str:  # noqa: ANN401
        """Serialize a sanitized value to a YAML-formatted string."""
        data = dump(
            cls._filter_unsafe(value),
            indent=SNIPPET_INDENT,
            sort_keys=False,
            allow_unicode=True,
        )

        return cls._make_indent(data, indent)

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Apply indentation to a multi-line string.

        Empty or whitespace-only lines are omitted.
        """
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation input."""
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class Frame(SchemaModel):
    """Single provenance entry attached to a failure.

    Frames are ordered innermost first, so the first frame of a
    provenance list is the closest origin of a failure.
    """

    filename: str = Field(
        title='Source file',
        description='File of the origin: a Python module or a feature file.',
    )

    line: int | None = Field(
        default=None,
        title='Source line',
    )

    label: str = Field(
        title='Origin label',
        description='Function name or a pseudo-origin label.',
    )

    def __str__(self) -> str:
        """Render in the traceback manner."""
        if self.line is None:
            return f'File "{self.filename}", in {self.label}'

        return f'File "{self.filename}", line {self.line}, in {self.label}'

    @classmethod
    def from_stack(cls, skip: int = 1) -> list['Self']:
        """Capture the current call stack as provenance frames.

        Args:
            skip: Number of innermost frames to omit.

        Returns:
            Frames ordered innermost first.
        """
        summary = extract_stack()[:-skip or None]

        return [
            cls(filename=item.filename, line=item.lineno, label=item.name)
            for item in reversed(summary)
        ]


class PluginWarning(UserWarning):
    """Warning emitted for non-fatal plugin-related issues.

    This warning is used when a plugin cannot be loaded or registered,
    but the error does not prevent further execution (for example,
    when running in relaxed mode).
    """


class GlueError(Exception, ErrorFormatter):
    """Base exception for all pytest-stepglue errors.

    All custom exceptions raised by the library inherit from this class
    to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing optional location and data.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String representation."""
        return self.format(self.message, self.context)

    @staticmethod
    def step_context(step: 'Step', filename: str | None = None) -> ErrorContext:
        """Build an error context describing a step.

        Args:
            step: Step associated with the error.
            filename: Optional source path of the scenario.

        Returns:
            Error context with the step location and a step snippet.
        """
        location = step.locations[0] if step.locations else None

        return ErrorContext(
            filename=filename,
            line_num=location.line if location else None,
            column_num=location.column if location else None,
            element=step.model_dump(
                exclude_none=True,
                exclude_defaults=True,
            ),
        )


class PluginError(GlueError):
    """Error raised for fatal plugin-related failures.

    This exception is raised when a plugin entry point or glue path is
    invalid, misconfigured, or fails to load in strict mode.
    """

    def __init__(self, message: str, *,
                 entrypoint: 'EntryPoint | None' = None) -> None:
        """Initialize a plugin error.

        Args:
            message: Human-readable error description.
            entrypoint: Optional plugin entry point associated with the error.
        """
        self.entrypoint = entrypoint

        super().__init__(message)


class PickleError(GlueError):
    """Error raised when a compiled pickle document cannot be loaded."""

    @classmethod
    def from_yaml_error(cls, error: MarkedYAMLError) -> 'Self':
        """Create a pickle error from a YAML parsing failure.

        Args:
            error: Exception raised by the YAML parser.

        Returns:
            PickleError representing the YAML parsing failure.
        """
        mark = error.problem_mark
        error_context = ErrorContext(
            filename=mark.name if mark else None,
            line_num=mark.line + 1 if mark else None,
            column_num=mark.column + 1 if mark else None,
            error=error,
        )

        message = 'Invalid pickle document'
        if error.problem:
            message += f'{linesep}{' ' * FORMAT_INDENT}{error.problem}'

        return cls(message, context=error_context)

    @classmethod
    def from_pydantic_error(cls, error: 'ValidationError', *,
                            data: Any = None,  # noqa: ANN401
                            filename: str | None = None) -> 'Self':
        """Create a pickle error from a Pydantic validation failure.

        Only the first validation issue is reported.

        Args:
            error: ValidationError raised by Pydantic.
            data: Document data.
            filename: Name of the source file.

        Returns:
            PickleError representing the validation failure.
        """
        error_context = ErrorContext(
            filename=filename,
            error=error,
            element=data,
        )

        for item in error.errors(include_url=False, include_input=False):
            location = '.'.join(str(key) for key in item['loc'])
            return cls(f'{item['msg']} at {location!r}', context=error_context)

        return cls('Validation error', context=error_context)


class StepBindingError(GlueError):
    """Error raised when a step definition cannot bind step arguments.

    Typical causes are captured groups that cannot be converted to the
    annotated handler parameter types, or a handler signature that
    cannot accept the captured arguments.
    """


class AmbiguousStepDefinitionsError(GlueError):
    """Error raised when more than one step definition matches a step."""

    def __init__(self, step: 'Step', candidates: tuple[Any, ...], *,
                 filename: str | None = None) -> None:
        """Initialize an ambiguity error.

        Args:
            step: Step with conflicting matches.
            candidates: Every matching definition, in registration order.
            filename: Optional source path of the scenario.
        """
        self.step = step
        self.candidates = candidates

        message = f'{step.text!r} matches more than one step definition:'
        for candidate in candidates:
            message += f'{linesep}{' ' * FORMAT_INDENT}{candidate}'

        super().__init__(message, context=self.step_context(step, filename))


class UndefinedStepError(GlueError):
    """Error raised when a step has no matching step definition.

    The error carries snippet suggestions and a structured provenance
    list. Nested step invocations prepend a synthetic frame pointing at
    the scenario file and line that triggered them.
    """

    def __init__(self, step: 'Step', snippets: tuple[str, ...] = (), *,
                 filename: str | None = None) -> None:
        """Initialize an undefined step error.

        Args:
            step: Step without a matching definition.
            snippets: Code suggestions collected from providers.
            filename: Optional source path of the scenario.
        """
        self.step = step
        self.snippets = snippets
        self.provenance: list[Frame] = Frame.from_stack(skip=2)

        message = f'Undefined step: {step.text!r}'
        for snippet in snippets:
            message += f'{linesep}{linesep}{snippet}'

        super().__init__(message, context=self.step_context(step, filename))

    def prepend_frame(self, frame: Frame) -> None:
        """Attach a frame in front of the provenance list.

        Args:
            frame: Frame to become the first provenance entry.
        """
        self.provenance = [frame, *self.provenance]
        self.add_note(f'  {frame}')


class PendingStepError(GlueError):
    """Error raised by step handlers that are not implemented yet."""

    def __init__(self, message: str = 'TODO: implement me') -> None:
        """Initialize a pending marker.

        Args:
            message: Human-readable reason.
        """
        super().__init__(message)


class WorldDisposalError(GlueError):
    """Error raised when one or more provider worlds fail to dispose."""

    def __init__(self, errors: list[Exception]) -> None:
        """Initialize a disposal error.

        Args:
            errors: Failures collected from every provider, in order.
        """
        self.errors = errors

        message = 'Failed to dispose provider worlds:'
        for error in errors:
            message += f'{linesep}{' ' * FORMAT_INDENT}{error!r}'

        super().__init__(message)
