"""Execution events and an in-process event bus.

The runner publishes test case and test step lifecycle events to an
event bus. Consumers (reporters, pytest integration, custom listeners)
subscribe to event types and receive every matching event synchronously,
in publication order.
"""

import logging
from collections import defaultdict
from time import time_ns
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import Field

from pytest_stepglue.models import SchemaModel
from pytest_stepglue.schema.results import Result  # noqa: TC001

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


class Event(SchemaModel):
    """Base event with a publication timestamp."""

    timestamp: int = Field(
        default_factory=time_ns,
        title='Timestamp',
        description='Wall clock time of the event in nanoseconds.',
    )


class TestCaseStarted(Event):
    """A test case is about to run its first step."""

    __test__ = False

    test_case: Any


class TestCaseFinished(Event):
    """A test case finished running all of its steps."""

    __test__ = False

    test_case: Any
    result: Result


class TestStepStarted(Event):
    """A test step is about to run."""

    __test__ = False

    test_case: Any
    test_step: Any


class TestStepFinished(Event):
    """A test step finished running."""

    __test__ = False

    test_case: Any
    test_step: Any
    result: Result


class EventPublisher(Protocol):
    """Sink accepting execution events."""

    def send(self, event: Event) -> None:
        ...  # pragma: no cover


class EventBus:
    """Synchronous publish/subscribe event dispatcher.

    Handlers registered for an event type also receive events of its
    subclasses. Handlers run in registration order on the publishing
    thread; a failing handler propagates its exception to the publisher.
    """

    def __init__(self) -> None:
        """Initialize a bus without handlers."""
        self.handlers: dict[type[Event], list[Callable[[Any], None]]] = defaultdict(list)

    def register[T: Event](self, event_type: type[T], handler: 'Callable[[T], None]') -> None:
        """Subscribe a handler to an event type.

        Args:
            event_type: Event class to subscribe to.
            handler: Callable receiving published events.
        """
        self.handlers[event_type].append(handler)

    def send(self, event: Event) -> None:
        """Publish an event to every subscribed handler.

        Args:
            event: Event to publish.
        """
        logger.debug('Publishing %s', type(event).__name__)

        for event_type, handlers in list(self.handlers.items()):
            if isinstance(event, event_type):
                for handler in handlers:
                    handler(event)
