"""Domain events for the audio conversion pipeline.

Events flow through the EventBus so the pipeline never talks to the console
directly. Job events are published from worker threads; run-level events from
the control thread.

See `infrastructure/event_bus.py` for the pub/sub mechanism.
"""

from pathlib import Path
from pydantic import BaseModel
from .models import ConversionJob, BatchResult


class Event(BaseModel):
    """Base class for all domain events."""

    pass


class JobEvent(Event):
    """Base class for events related to a specific conversion job."""

    job: ConversionJob


class JobStarted(JobEvent):
    """Emitted right before ffmpeg is spawned.

    `command` is the exact invocation, shell-quoted, for diagnostics.
    """

    command: str


class JobCompleted(JobEvent):
    """Emitted when ffmpeg exits cleanly."""

    output_path: Path


class JobFailed(JobEvent):
    """Emitted when ffmpeg fails, cannot be spawned, or times out."""

    error_message: str


class DiscoveryStarted(Event):
    """Emitted when file discovery begins."""

    directory: Path


class DiscoveryFinished(Event):
    """Emitted after the scan with the number of matching files."""

    directory: Path
    files_found: int


class WindowStarted(Event):
    index: int  # 1-based
    count: int
    size: int


class WindowFinished(Event):
    """Emitted after every job of a window settled successfully."""

    index: int  # 1-based
    count: int
    processed: int
    total: int


class ProcessingFinished(Event):
    """Emitted when all windows finished."""

    result: BatchResult
