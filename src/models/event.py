"""Job event data model."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class EventLevel(str, Enum):
    """Tag of a user-visible job event."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class JobEvent(BaseModel):
    """A timestamped entry of the job's log stream."""

    level: EventLevel
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)

    def format(self) -> str:
        """Render the event the way the log panel shows it."""
        return f"[{self.timestamp:%H:%M:%S}] {self.message}"
