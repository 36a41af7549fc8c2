import pytest
import yaml
from pathlib import Path
from abatch.config.models import AppConfig, ConversionOptions, Codec
from abatch.infrastructure.event_bus import EventBus

# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config():
    """Returns a sample AppConfig object for testing."""
    return AppConfig(
        general={
            "codec": "mp3",
            "bitrate_kbps": 192,
            "window_size": 3,
            "job_timeout_s": 60,
            "debug": False,
        }
    )

@pytest.fixture
def mp3_options():
    return ConversionOptions(codec=Codec.MP3, bitrate_kbps=256)

@pytest.fixture
def config_yaml_path(tmp_path):
    """Creates a temporary YAML config file."""
    conf_dir = tmp_path / "conf"
    conf_dir.mkdir()
    conf_file = conf_dir / "abatch.yaml"

    content = {
        'general': {
            'codec': 'aac',
            'bitrate_kbps': 128,
            'window_size': 5,
            'job_timeout_s': 0,
            'debug': False,
        },
    }

    with open(conf_file, 'w') as f:
        yaml.dump(content, f)

    return conf_file

# ============================================================================
# EventBus Fixtures
# ============================================================================

@pytest.fixture
def event_bus():
    """Returns a fresh EventBus instance."""
    return EventBus()

@pytest.fixture
def recorded_events(event_bus):
    """Subscribes to every concrete event type and records them in order."""
    from abatch.domain import events

    received = []
    for name in dir(events):
        obj = getattr(events, name)
        if isinstance(obj, type) and issubclass(obj, events.Event) and obj not in (events.Event, events.JobEvent):
            event_bus.subscribe(obj, received.append)
    return received

# ============================================================================
# File System Fixtures
# ============================================================================

@pytest.fixture
def test_input_dir(tmp_path):
    """Creates a test input directory."""
    input_dir = tmp_path / "input"
    input_dir.mkdir()
    return input_dir

@pytest.fixture
def recording_tree(test_input_dir):
    """Creates marked and unmarked dummy recordings in a nested tree."""
    a = test_input_dir / "a"
    (a / "b").mkdir(parents=True)
    marked = [a / "x_TrLR.WAV", a / "b" / "y_TrLR.WAV"]
    for f in marked:
        f.write_bytes(b"RIFF" + b"\x00" * 60)
    (a / "z.WAV").write_bytes(b"RIFF" + b"\x00" * 60)
    return test_input_dir, marked


def make_recordings(directory: Path, count: int):
    directory.mkdir(parents=True, exist_ok=True)
    files = []
    for i in range(count):
        f = directory / f"take{i:02d}_TrLR.wav"
        f.write_bytes(b"RIFF" + b"\x00" * 16)
        files.append(f)
    return files

@pytest.fixture
def recordings_factory():
    return make_recordings

# ============================================================================
# Markers
# ============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
