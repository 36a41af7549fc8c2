from typing import Optional
from rich.console import Console
from rich.markup import escape
from abatch.infrastructure.event_bus import EventBus
from abatch.domain.events import (
    DiscoveryStarted, DiscoveryFinished,
    JobStarted, JobCompleted, JobFailed,
    WindowFinished, ProcessingFinished,
)

class ConsoleReporter:
    """Subscribes to EventBus and prints coarse progress lines.

    Job events arrive from pool threads; rich's Console serializes writes.
    """

    def __init__(self, bus: EventBus, console: Optional[Console] = None, verbose: bool = False):
        self.bus = bus
        self.console = console or Console()
        self.verbose = verbose
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        self.bus.subscribe(DiscoveryStarted, self.on_discovery_started)
        self.bus.subscribe(DiscoveryFinished, self.on_discovery_finished)
        self.bus.subscribe(JobStarted, self.on_job_started)
        self.bus.subscribe(JobCompleted, self.on_job_completed)
        self.bus.subscribe(JobFailed, self.on_job_failed)
        self.bus.subscribe(WindowFinished, self.on_window_finished)
        self.bus.subscribe(ProcessingFinished, self.on_processing_finished)

    def on_discovery_started(self, event: DiscoveryStarted):
        self.console.print(f"Scanning [bold]{escape(str(event.directory))}[/bold]")

    def on_discovery_finished(self, event: DiscoveryFinished):
        self.console.print(f"Found {event.files_found} file(s) to convert")

    def on_job_started(self, event: JobStarted):
        if self.verbose:
            self.console.print(f"[dim]Spawned ffmpeg: {escape(event.command)}[/dim]")

    def on_job_completed(self, event: JobCompleted):
        self.console.print(f"[green]✓[/green] {escape(str(event.output_path))}")

    def on_job_failed(self, event: JobFailed):
        name = event.job.source_file.path.name
        self.console.print(f"[red]✗[/red] {escape(name)}: {escape(event.error_message)}")

    def on_window_finished(self, event: WindowFinished):
        self.console.print(
            f"[cyan]Progress:[/cyan] {event.processed}/{event.total} "
            f"(window {event.index}/{event.count})"
        )

    def on_processing_finished(self, event: ProcessingFinished):
        self.console.print(
            f"[bold green]Done:[/bold green] {event.result.processed} file(s) converted "
            f"in {event.result.windows} window(s)"
        )
