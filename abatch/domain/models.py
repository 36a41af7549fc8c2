from enum import Enum
from pathlib import Path
from typing import Optional
from pydantic import BaseModel

class JobStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"  # killed after job_timeout_s
    INTERRUPTED = "INTERRUPTED"  # Ctrl+C during processing

class AudioFile(BaseModel):
    path: Path
    size_bytes: int = 0

class ConversionJob(BaseModel):
    source_file: AudioFile
    output_path: Path
    status: JobStatus = JobStatus.PENDING
    error_message: Optional[str] = None
    duration_seconds: Optional[float] = None
    command: Optional[str] = None

class BatchResult(BaseModel):
    total: int
    processed: int
    windows: int
