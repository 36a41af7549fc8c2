import shlex
import logging
import subprocess
import time
import threading
from typing import List, Optional, Set
from abatch.config.models import Codec
from abatch.domain.errors import EngineError
from abatch.domain.models import ConversionJob, JobStatus
from abatch.infrastructure.event_bus import EventBus
from abatch.domain.events import JobStarted, JobCompleted, JobFailed

TERMINATE_GRACE_S = 3.0
INTERRUPTED_MESSAGE = "Interrupted by user (Ctrl+C)"


class FFmpegAdapter:
    """Runs one ffmpeg process per conversion job.

    `run` blocks until ffmpeg exits and is meant to be called from a worker
    thread. Success returns the job; every failure raises EngineError after
    publishing JobFailed.
    """

    def __init__(self, event_bus: EventBus, ffmpeg_path: str = "ffmpeg", timeout_s: Optional[float] = None):
        self.event_bus = event_bus
        self.ffmpeg_path = ffmpeg_path
        self.timeout_s = timeout_s or None  # 0 disables
        self.shutdown_event = threading.Event()
        self._processes: Set[subprocess.Popen] = set()
        self._process_lock = threading.Lock()
        self.logger = logging.getLogger(__name__)

    def request_shutdown(self):
        """Stops every running ffmpeg; jobs not yet spawned fail without starting."""
        self.shutdown_event.set()
        with self._process_lock:
            running = list(self._processes)
        for process in running:
            process.terminate()

    def _build_command(self, job: ConversionJob, codec: Codec, bitrate_kbps: int) -> List[str]:
        """Constructs the ffmpeg command line arguments."""
        cmd = [
            self.ffmpeg_path,
            "-hide_banner",
            "-nostdin",
            "-loglevel", "error",  # stderr then only carries the failure reason
            "-y",  # Overwrite output files
            "-i", str(job.source_file.path),
            "-vn",
            "-c:a", codec.value,
        ]
        # Bitrate is meaningless for PCM
        if not codec.is_lossless:
            cmd.extend(["-b:a", f"{bitrate_kbps}k"])
        cmd.append(str(job.output_path))
        return cmd

    def run(self, job: ConversionJob, codec: Codec, bitrate_kbps: int) -> ConversionJob:
        filename = job.source_file.path.name
        cmd = self._build_command(job, codec, bitrate_kbps)
        job.command = shlex.join(cmd)
        job.status = JobStatus.PROCESSING

        self.logger.debug(f"FFMPEG_CMD: {job.command}")
        self.event_bus.publish(JobStarted(job=job, command=job.command))

        start_time = time.monotonic()
        if self.shutdown_event.is_set():
            raise self._fail(job, INTERRUPTED_MESSAGE, start_time, status=JobStatus.INTERRUPTED)

        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                universal_newlines=True,
            )
        except OSError as e:
            raise self._fail(job, f"Cannot start {self.ffmpeg_path}: {e}", start_time) from e

        with self._process_lock:
            self._processes.add(process)
        try:
            if self.shutdown_event.is_set():
                # Shutdown raced with the spawn
                process.terminate()
            _, stderr = process.communicate(timeout=self.timeout_s)
        except subprocess.TimeoutExpired:
            self.logger.warning(f"FFMPEG_TIMEOUT: {filename} after {self.timeout_s}s, terminating")
            self._stop(process)
            raise self._fail(
                job,
                f"ffmpeg timed out after {self.timeout_s:g}s",
                start_time,
                status=JobStatus.TIMED_OUT,
            )
        finally:
            with self._process_lock:
                self._processes.discard(process)

        if self.shutdown_event.is_set():
            self.logger.info(f"FFMPEG_INTERRUPTED: {filename} (shutdown signal)")
            raise self._fail(job, INTERRUPTED_MESSAGE, start_time, status=JobStatus.INTERRUPTED)

        if process.returncode != 0:
            message = (stderr or "").strip() or f"ffmpeg exited with code {process.returncode}"
            raise self._fail(job, message, start_time)

        job.status = JobStatus.COMPLETED
        job.duration_seconds = time.monotonic() - start_time
        self.logger.info(f"FFMPEG_END: {filename} status=completed elapsed={job.duration_seconds:.2f}s")
        self.event_bus.publish(JobCompleted(job=job, output_path=job.output_path))
        return job

    def _stop(self, process: subprocess.Popen):
        process.terminate()
        try:
            process.communicate(timeout=TERMINATE_GRACE_S)
        except subprocess.TimeoutExpired:
            process.kill()
            process.communicate()

    def _fail(self, job: ConversionJob, message: str, start_time: float, status: JobStatus = JobStatus.FAILED) -> EngineError:
        # Partial output is left in place
        job.status = status
        job.error_message = message
        job.duration_seconds = time.monotonic() - start_time
        self.logger.error(f"FFMPEG_END: {job.source_file.path.name} status={status.value.lower()} error={message}")
        self.event_bus.publish(JobFailed(job=job, error_message=message))
        return EngineError(message, job=job)
