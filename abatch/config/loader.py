import yaml
from pathlib import Path
from typing import Optional
from .models import AppConfig

def load_config(config_path: Optional[Path]) -> AppConfig:
    """Loads YAML config and parses it into AppConfig Pydantic model.

    With no path, the built-in defaults are returned.
    """
    if config_path is None:
        return AppConfig()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    # Flat files (no 'general' section) are accepted for convenience
    if "general" not in data:
        general = {k: data.pop(k) for k in list(data) if k not in ("input_dir", "output_dir")}
        data["general"] = general

    return AppConfig(**data)
