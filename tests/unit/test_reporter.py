import io
from pathlib import Path
from rich.console import Console
from abatch.domain.events import (
    DiscoveryFinished, JobStarted, JobCompleted, JobFailed, WindowFinished, ProcessingFinished,
)
from abatch.domain.models import AudioFile, ConversionJob, BatchResult
from abatch.ui.reporter import ConsoleReporter


def make_reporter(event_bus, verbose=False):
    buffer = io.StringIO()
    console = Console(file=buffer, width=200, color_system=None)
    ConsoleReporter(event_bus, console=console, verbose=verbose)
    return buffer


def make_job():
    return ConversionJob(source_file=AudioFile(path=Path("a_TrLR.wav")), output_path=Path("a_TrLR.mp3"))


def test_reporter_progress_lines(event_bus):
    buffer = make_reporter(event_bus)

    event_bus.publish(DiscoveryFinished(directory=Path("in"), files_found=5))
    event_bus.publish(WindowFinished(index=2, count=2, processed=5, total=5))
    event_bus.publish(ProcessingFinished(result=BatchResult(total=5, processed=5, windows=2)))

    out = buffer.getvalue()
    assert "Found 5 file(s)" in out
    assert "Progress: 5/5 (window 2/2)" in out
    assert "5 file(s) converted in 2 window(s)" in out


def test_reporter_job_lines(event_bus):
    buffer = make_reporter(event_bus)
    job = make_job()

    event_bus.publish(JobCompleted(job=job, output_path=job.output_path))
    event_bus.publish(JobFailed(job=job, error_message="[mp3 @ 0x1] bad [sample] rate"))

    out = buffer.getvalue()
    assert "a_TrLR.mp3" in out
    assert "a_TrLR.wav: [mp3 @ 0x1] bad [sample] rate" in out


def test_reporter_command_only_when_verbose(event_bus):
    quiet = make_reporter(event_bus)
    event_bus.publish(JobStarted(job=make_job(), command="ffmpeg -i a_TrLR.wav a_TrLR.mp3"))
    assert "Spawned ffmpeg" not in quiet.getvalue()


def test_reporter_command_verbose(event_bus):
    loud = make_reporter(event_bus, verbose=True)
    event_bus.publish(JobStarted(job=make_job(), command="ffmpeg -i a_TrLR.wav a_TrLR.mp3"))
    assert "Spawned ffmpeg: ffmpeg -i a_TrLR.wav a_TrLR.mp3" in loud.getvalue()
