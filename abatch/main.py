import logging
import typer
from pathlib import Path
from typing import Optional, List
from pydantic import ValidationError

from abatch.config.loader import load_config
from abatch.config.models import AppConfig, GeneralConfig
from abatch.infrastructure.logging import setup_logging
from abatch.infrastructure.event_bus import EventBus
from abatch.infrastructure.file_scanner import FileScanner, MarkerMatcher
from abatch.infrastructure.ffmpeg import FFmpegAdapter
from abatch.pipeline.planner import JobPlanner
from abatch.pipeline.orchestrator import BatchExecutor
from abatch.ui.reporter import ConsoleReporter
from abatch.domain.errors import AbatchError, ConfigError, NotFoundError, EmptyResultError, EngineError
from abatch.domain.events import DiscoveryStarted, DiscoveryFinished
from abatch.domain.models import AudioFile

app = typer.Typer(help="ABatch (Audio Batch Conversion) - convert marked WAV recordings with ffmpeg")


def resolve_general_config(
    config: AppConfig,
    codec: Optional[str] = None,
    bitrate: Optional[int] = None,
    window: Optional[int] = None,
    timeout: Optional[float] = None,
    log_path: Optional[Path] = None,
    debug: bool = False,
) -> GeneralConfig:
    """Applies CLI overrides on top of the loaded config, re-validating the result."""
    data = config.general.model_dump()
    if codec is not None:
        data["codec"] = codec
    if bitrate is not None:
        data["bitrate_kbps"] = bitrate
    if window is not None:
        data["window_size"] = window
    if timeout is not None:
        data["job_timeout_s"] = timeout
    if log_path is not None:
        data["log_path"] = str(log_path)
    if debug:
        data["debug"] = True
    return GeneralConfig(**data)


def resolve_input_path(input_path: Optional[Path], config: AppConfig) -> Path:
    if input_path is None:
        if not config.input_dir:
            raise ConfigError("No input directory given on the command line or in config.")
        input_path = Path(config.input_dir)
    input_path = input_path.expanduser()
    if not input_path.exists():
        raise NotFoundError(f"Input path {input_path} does not exist.")
    return input_path


def resolve_output_dir(output_dir: Optional[Path], config: AppConfig, source: Path) -> Optional[Path]:
    """CLI option, then config, then the input directory itself.

    Single-file mode with nothing set returns None: output goes beside the file.
    """
    if output_dir is None and config.output_dir:
        output_dir = Path(config.output_dir)
    if output_dir is not None:
        return output_dir.expanduser()
    if source.is_dir():
        return source
    return None


def discover_targets(input_path: Path, scanner: FileScanner, bus: EventBus) -> List[AudioFile]:
    """Single file (legacy mode, no marker check) or a recursive directory scan."""
    if input_path.is_file():
        targets = [AudioFile(path=input_path, size_bytes=input_path.stat().st_size)]
    else:
        bus.publish(DiscoveryStarted(directory=input_path))
        targets = scanner.scan(input_path)
        bus.publish(DiscoveryFinished(directory=input_path, files_found=len(targets)))
    if not targets:
        raise EmptyResultError(
            f"No files matching *{scanner.matcher.suffix} found in {input_path}."
        )
    return targets


@app.command()
def convert(
    input_path: Optional[Path] = typer.Argument(
        None,
        help="Directory to scan recursively, or a single file to convert (optional if set in config)"
    ),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", "-o",
        help="Directory for converted files (default: the input directory; next to the file in single-file mode)"
    ),
    codec: Optional[str] = typer.Option(None, "--codec", "-c", help="Target codec (mp3, aac, wav or ffmpeg encoder name)"),
    bitrate: Optional[int] = typer.Option(None, "--bitrate", "-b", help="Target bitrate in kbps"),
    window: Optional[int] = typer.Option(None, "--window", "-w", help="Number of files converted concurrently"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-file ffmpeg timeout in seconds (0 disables)"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to YAML config"),
    log_path: Optional[Path] = typer.Option(None, "--log-path", help="Path to log file"),
    debug: bool = typer.Option(False, "--debug/--no-debug", help="Enable verbose debug logging"),
):
    """Convert every *_TrLR.wav recording under a directory."""
    try:
        try:
            config = load_config(config_path)
        except FileNotFoundError as exc:
            raise ConfigError(str(exc))
        general = resolve_general_config(
            config, codec=codec, bitrate=bitrate, window=window,
            timeout=timeout, log_path=log_path, debug=debug,
        )
        source = resolve_input_path(input_path, config)

        options = general.to_options(output_dir=resolve_output_dir(output_dir, config, source))

        log_root = options.output_dir or source.parent
        log_file = Path(general.log_path) if general.log_path else None
        logger = setup_logging(log_root, debug=general.debug, log_path=log_file)
        logger.info(f"ABatch started: input={source}, output_dir={options.output_dir or '(beside source)'}")
        logger.info(
            f"Config: codec={general.codec.value}, bitrate={general.bitrate_kbps}k, "
            f"window={general.window_size}, timeout={general.job_timeout_s}s, debug={general.debug}"
        )

        bus = EventBus()
        ConsoleReporter(bus, verbose=general.debug)

        scanner = FileScanner(MarkerMatcher())
        targets = discover_targets(source, scanner, bus)

        executor = BatchExecutor(
            planner=JobPlanner(),
            runner=FFmpegAdapter(
                event_bus=bus,
                ffmpeg_path=general.ffmpeg_path,
                timeout_s=general.job_timeout_s,
            ),
            event_bus=bus,
            window_size=general.window_size,
        )
        result = executor.run(targets, options)
        logger.info(f"ABatch finished: {result.processed}/{result.total} in {result.windows} window(s)")

    except KeyboardInterrupt:
        typer.secho("\nConversion stopped by user (Ctrl+C)", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=130)

    except typer.Exit:
        raise

    except EngineError as e:
        typer.secho(f"Conversion failed: {e.message}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    except AbatchError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    except ValidationError as e:
        typer.secho(f"Error: invalid configuration\n{e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    except Exception as e:
        logging.getLogger(__name__).exception("Fatal error")
        typer.secho(f"Fatal Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

if __name__ == "__main__":
    app()
