import os
import logging
from pathlib import Path
from typing import List, Set
from abatch.domain.models import AudioFile

DEFAULT_MARKER = "_TrLR"
DEFAULT_SOURCE_EXTENSION = ".wav"


class MarkerMatcher:
    """Accepts file names ending in <marker><extension>, case-insensitively."""

    def __init__(self, marker: str = DEFAULT_MARKER, extension: str = DEFAULT_SOURCE_EXTENSION):
        ext = extension if extension.startswith(".") else f".{extension}"
        self.suffix = f"{marker}{ext}".lower()

    def matches(self, filename: str) -> bool:
        return filename.lower().endswith(self.suffix)


class FileScanner:
    """Recursively collects marked audio recordings under a directory.

    The result is a list rather than a generator: the batch executor needs the
    total count up front.
    """

    def __init__(self, matcher: MarkerMatcher = None):
        self.matcher = matcher or MarkerMatcher()
        self.logger = logging.getLogger(__name__)

    def scan(self, root_dir: Path) -> List[AudioFile]:
        """Depth-first walk from root_dir. Assumes root_dir exists.

        OSError from an entry vanishing mid-walk propagates to the caller.
        """
        found: List[AudioFile] = []
        visited: Set[Path] = set()
        stack: List[Path] = [Path(root_dir)]

        while stack:
            directory = stack.pop()
            canonical = directory.resolve()
            if canonical in visited:
                # Symlink loop or a second link to an already scanned tree
                self.logger.debug(f"SCAN_SKIP_VISITED: {directory}")
                continue
            visited.add(canonical)

            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)

            subdirs: List[Path] = []
            for entry in entries:
                if entry.is_dir():
                    subdirs.append(Path(entry.path))
                elif entry.is_file() and self.matcher.matches(entry.name):
                    found.append(AudioFile(path=Path(entry.path), size_bytes=entry.stat().st_size))

            # Reversed so the first subdirectory is popped first
            stack.extend(reversed(subdirs))

        self.logger.info(f"Scan of {root_dir}: {len(found)} matching file(s)")
        return found
