"""Execution results of test steps and test cases."""

from enum import StrEnum

from pydantic import Field

from pytest_stepglue.models import SchemaModel


class Status(StrEnum):
    """Outcome of an executed step, ordered from best to worst."""

    PASSED = 'passed'
    SKIPPED = 'skipped'
    PENDING = 'pending'
    UNDEFINED = 'undefined'
    AMBIGUOUS = 'ambiguous'
    FAILED = 'failed'

    @property
    def severity(self) -> int:
        """Position of the status in the best-to-worst order."""
        return list(Status).index(self)


class Result(SchemaModel):
    """Outcome of a single step or of a whole test case."""

    status: Status

    duration: int = Field(
        default=0,
        ge=0,
        title='Duration',
        description='Execution time in nanoseconds.',
    )

    error: BaseException | None = Field(
        default=None,
        title='Failure',
        description='Exception raised by the step, if any.',
    )

    @property
    def ok(self) -> bool:
        """Whether the outcome is not a failure."""
        return self.status in (Status.PASSED, Status.SKIPPED)

    @classmethod
    def worst(cls, results: 'list[Result]') -> 'Result':
        """Aggregate step results into a test case result.

        Args:
            results: Step results in execution order.

        Returns:
            The first result with the worst status and the summed
            duration, or a passed result for an empty list.
        """
        duration = sum(result.duration for result in results)
        if not results:
            return cls(status=Status.PASSED)

        worst = max(results, key=lambda result: result.status.severity)

        return cls(status=worst.status, duration=duration, error=worst.error)
