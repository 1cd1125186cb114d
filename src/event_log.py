"""User-visible job event stream, mirrored to the standard logger."""

import logging
from collections.abc import Callable

from src.models.event import EventLevel, JobEvent

logger = logging.getLogger("src.pipeline")

_LOG_LEVELS: dict[EventLevel, int] = {
    EventLevel.INFO: logging.INFO,
    EventLevel.SUCCESS: logging.INFO,
    EventLevel.WARNING: logging.WARNING,
    EventLevel.ERROR: logging.ERROR,
}

EventListener = Callable[[JobEvent], None]


class EventLog:
    """Collects tagged, timestamped job events.

    Every event is kept in ``events``, forwarded to the optional listener
    (a UI log panel, a CLI printer) and written to the ``src.pipeline``
    logger.

    Args:
        listener: Called synchronously with each new event.
    """

    def __init__(self, listener: EventListener | None = None) -> None:
        self._listener = listener
        self.events: list[JobEvent] = []

    def emit(self, level: EventLevel, message: str) -> JobEvent:
        event = JobEvent(level=level, message=message)
        self.events.append(event)
        logger.log(_LOG_LEVELS[level], message)
        if self._listener is not None:
            self._listener(event)
        return event

    def info(self, message: str) -> JobEvent:
        return self.emit(EventLevel.INFO, message)

    def warning(self, message: str) -> JobEvent:
        return self.emit(EventLevel.WARNING, message)

    def error(self, message: str) -> JobEvent:
        return self.emit(EventLevel.ERROR, message)

    def success(self, message: str) -> JobEvent:
        return self.emit(EventLevel.SUCCESS, message)

    def by_level(self, level: EventLevel) -> list[JobEvent]:
        return [event for event in self.events if event.level == level]
