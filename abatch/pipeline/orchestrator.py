"""Window-by-window batch execution of conversion jobs.

Targets are split into consecutive windows of at most `window_size` files.
All jobs of a window run concurrently (one pool thread supervising one ffmpeg
process each) and the control thread waits for every one of them to settle
before looking at the outcome:

- a failure never cancels siblings that are already running;
- once the window has settled, the first failure (in window order) is
  re-raised and no further window is started;
- otherwise progress (processed/total) is published and the next window
  begins.
"""

import logging
import concurrent.futures
from typing import List, Sequence, TypeVar, Optional
from abatch.config.models import ConversionOptions, MAX_WINDOW_SIZE
from abatch.domain.errors import EmptyResultError
from abatch.domain.events import WindowStarted, WindowFinished, ProcessingFinished
from abatch.domain.models import AudioFile, BatchResult, ConversionJob
from abatch.infrastructure.event_bus import EventBus
from abatch.infrastructure.ffmpeg import FFmpegAdapter
from abatch.pipeline.planner import JobPlanner

T = TypeVar("T")


def windows(items: Sequence[T], size: int) -> List[List[T]]:
    """Splits items into consecutive slices of `size`; the last may be shorter."""
    if size < 1:
        raise ValueError(f"window size must be >= 1, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class BatchExecutor:
    """Runs conversion jobs in fixed-size, strictly sequential windows.

    Args:
        planner: JobPlanner deriving output paths (and creating directories).
        runner: FFmpegAdapter (or anything with the same `run` signature).
        event_bus: EventBus for window and run progress events.
        window_size: Maximum number of jobs in flight at once.
    """

    def __init__(
        self,
        planner: JobPlanner,
        runner: FFmpegAdapter,
        event_bus: EventBus,
        window_size: int = 4,
    ):
        if not 1 <= window_size <= MAX_WINDOW_SIZE:
            raise ValueError(f"window_size must be between 1 and {MAX_WINDOW_SIZE}, got {window_size}")
        self.planner = planner
        self.runner = runner
        self.event_bus = event_bus
        self.window_size = window_size
        self.logger = logging.getLogger(__name__)

    def run(self, targets: Sequence[AudioFile], options: ConversionOptions) -> BatchResult:
        if not targets:
            raise EmptyResultError("No matching files to convert")

        # Pre-flight: no window starts if any output would replace its source
        self.planner.check(targets, options)

        total = len(targets)
        batches = windows(targets, self.window_size)
        processed = 0
        self.logger.info(
            f"Batch start: files={total}, windows={len(batches)}, window_size={self.window_size}, "
            f"codec={options.codec.value}, bitrate={options.bitrate_kbps}k"
        )

        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self.window_size, thread_name_prefix="abatch-job"
        ) as executor:
            for index, batch in enumerate(batches, start=1):
                self.event_bus.publish(WindowStarted(index=index, count=len(batches), size=len(batch)))
                jobs = [self.planner.plan(source, options) for source in batch]
                futures = [
                    executor.submit(self.runner.run, job, options.codec, options.bitrate_kbps)
                    for job in jobs
                ]

                # Full barrier: nothing is cancelled when a sibling fails
                try:
                    concurrent.futures.wait(futures, return_when=concurrent.futures.ALL_COMPLETED)
                except KeyboardInterrupt:
                    # Only the control thread sees Ctrl+C; stop ffmpeg before the pool joins
                    self.logger.info(f"Window {index}/{len(batches)} interrupted, stopping running jobs")
                    self.runner.request_shutdown()
                    raise

                error = self._first_failure(jobs, futures)
                if error is not None:
                    self.logger.error(
                        f"Window {index}/{len(batches)} failed; aborting before "
                        f"{len(batches) - index} remaining window(s)"
                    )
                    raise error

                processed += len(batch)
                self.logger.info(f"Window {index}/{len(batches)} done: {processed}/{total}")
                self.event_bus.publish(
                    WindowFinished(index=index, count=len(batches), processed=processed, total=total)
                )

        result = BatchResult(total=total, processed=processed, windows=len(batches))
        self.event_bus.publish(ProcessingFinished(result=result))
        return result

    def _first_failure(
        self, jobs: List[ConversionJob], futures: List[concurrent.futures.Future]
    ) -> Optional[BaseException]:
        first: Optional[BaseException] = None
        for job, future in zip(jobs, futures):
            exc = future.exception()
            if exc is None:
                continue
            if first is None:
                first = exc
            else:
                self.logger.error(f"Also failed in same window: {job.source_file.path.name}: {exc}")
        return first
