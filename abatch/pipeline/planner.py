from pathlib import Path
from typing import Iterable
from abatch.config.models import ConversionOptions
from abatch.domain.errors import ConfigError
from abatch.domain.models import AudioFile, ConversionJob


class JobPlanner:
    """Derives the output path of each source and makes sure its directory exists."""

    def output_path_for(self, source: Path, options: ConversionOptions) -> Path:
        directory = options.output_dir if options.output_dir is not None else source.parent
        return Path(directory) / f"{source.stem}{options.codec.extension}"

    def is_in_place(self, source: Path, output_path: Path) -> bool:
        """True when converting would write over the source itself."""
        if output_path.resolve() == source.resolve():
            return True
        # Case-insensitive filesystems: x.WAV and x.wav are one file
        return output_path.exists() and source.exists() and output_path.samefile(source)

    def check(self, sources: Iterable[AudioFile], options: ConversionOptions) -> None:
        """Rejects a run where any output would replace its own source."""
        for source in sources:
            output_path = self.output_path_for(source.path, options)
            if self.is_in_place(source.path, output_path):
                raise ConfigError(
                    f"Output {output_path} would overwrite its source; "
                    f"choose another codec or an output directory."
                )

    def ensure_directory(self, directory: Path) -> None:
        # exist_ok: sibling jobs in one window may target the same directory
        directory.mkdir(parents=True, exist_ok=True)

    def plan(self, source: AudioFile, options: ConversionOptions) -> ConversionJob:
        """Builds the job for one source file.

        Two sources with the same stem and output directory map to the same
        output path; the later job overwrites the earlier one. An output equal
        to the source raises ConfigError.
        """
        self.check([source], options)
        output_path = self.output_path_for(source.path, options)
        self.ensure_directory(output_path.parent)
        return ConversionJob(source_file=source, output_path=output_path)
