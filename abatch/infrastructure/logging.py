import logging
from pathlib import Path
from typing import Optional

LOG_FILE_NAME = "conversion.log"

def setup_logging(output_dir: Path, debug: bool = False, log_path: Optional[Path] = None) -> logging.Logger:
    """
    Setup file logging for a conversion run.

    Args:
        output_dir: Root where converted files go; holds conversion.log by default
        debug: If True, log at DEBUG level (includes full ffmpeg command lines)
        log_path: Optional explicit log file (overrides output_dir)
    """
    log_file = Path(log_path) if log_path else (output_dir / LOG_FILE_NAME)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[logging.FileHandler(log_file)],
        force=True  # Override any existing configuration
    )

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized: {log_file} (debug={'ON' if debug else 'OFF'})")

    return logger
