"""Error taxonomy for a conversion run.

Pre-flight errors (ConfigError, NotFoundError, EmptyResultError) are raised
before any job starts. EngineError is raised per job by the ffmpeg adapter and
re-raised by the batch executor once the failing window has settled.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ConversionJob


class AbatchError(Exception):
    """Base class for errors that end a run with a non-zero exit status."""


class ConfigError(AbatchError):
    """Required setting (e.g. the input directory) is missing or invalid."""


class NotFoundError(AbatchError):
    """Input directory or file does not exist."""


class EmptyResultError(AbatchError):
    """Discovery found no files to convert."""


class EngineError(AbatchError):
    """ffmpeg failed for one job; the message is the engine's own output."""

    def __init__(self, message: str, job: Optional["ConversionJob"] = None):
        super().__init__(message)
        self.message = message
        self.job = job
