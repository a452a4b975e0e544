import json
import os
from pathlib import Path

from box import Box

CONFIG_ENV_VAR = "BIN_SCANNER_CONFIG"


def _config_path() -> Path:
    """Resolve config.json, letting BIN_SCANNER_CONFIG point elsewhere."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser().resolve()
    return Path(__file__).resolve().parents[2] / "config.json"


def load_config() -> Box:
    """Load the scanner config into a frozen Box for dot-notation access."""
    with open(_config_path(), "r", encoding="utf-8") as f:
        data = json.load(f)

    return Box(data, frozen_box=True)

config = load_config()
