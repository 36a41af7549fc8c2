from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_WINDOW_SIZE = 32


class Codec(str, Enum):
    """Audio codecs understood by ffmpeg, keyed by their encoder name."""
    MP3 = "libmp3lame"
    AAC = "aac"
    PCM = "pcm_s16le"

    @property
    def extension(self) -> str:
        return CODEC_EXTENSIONS[self]

    @property
    def is_lossless(self) -> bool:
        return self is Codec.PCM

    @classmethod
    def parse(cls, value: str) -> "Codec":
        """Accepts either the encoder name or a short alias (mp3, aac, wav)."""
        key = value.strip().lower()
        if key in CODEC_ALIASES:
            return CODEC_ALIASES[key]
        try:
            return cls(key)
        except ValueError:
            allowed = sorted(set(CODEC_ALIASES) | {c.value for c in cls})
            raise ValueError(f"Unsupported codec: {value}. Use one of {allowed}")


CODEC_EXTENSIONS = MappingProxyType({
    Codec.MP3: ".mp3",
    Codec.AAC: ".m4a",
    Codec.PCM: ".wav",
})

CODEC_ALIASES = MappingProxyType({
    "mp3": Codec.MP3,
    "aac": Codec.AAC,
    "m4a": Codec.AAC,
    "wav": Codec.PCM,
    "pcm": Codec.PCM,
})


class ConversionOptions(BaseModel):
    """Per-run conversion settings, shared read-only by every job."""
    model_config = ConfigDict(frozen=True)

    codec: Codec = Codec.MP3
    bitrate_kbps: int = Field(default=256, gt=0)
    output_dir: Optional[Path] = None


class GeneralConfig(BaseModel):
    codec: Codec = Codec.MP3
    bitrate_kbps: int = Field(default=256, gt=0)
    window_size: int = Field(default=4, ge=1, le=MAX_WINDOW_SIZE)
    job_timeout_s: float = Field(default=1800.0, ge=0)  # 0 disables
    ffmpeg_path: str = "ffmpeg"
    log_path: Optional[str] = None
    debug: bool = False

    @field_validator("codec", mode="before")
    @classmethod
    def validate_codec(cls, v):
        if isinstance(v, str) and not isinstance(v, Codec):
            return Codec.parse(v)
        return v

    def to_options(self, output_dir: Optional[Path] = None) -> ConversionOptions:
        return ConversionOptions(
            codec=self.codec,
            bitrate_kbps=self.bitrate_kbps,
            output_dir=output_dir,
        )


class AppConfig(BaseModel):
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    input_dir: Optional[str] = None
    output_dir: Optional[str] = None
