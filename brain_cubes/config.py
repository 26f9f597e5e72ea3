"""Runtime settings for Brain Cubes, read from an optional YAML file."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Optional

import yaml

from brain_cubes.core.progress import default_data_dir

logger = logging.getLogger(__name__)

DATA_DIR_ENV = "BRAIN_CUBES_DATA_DIR"

# A zero tick interval would spin the repeating timer.
_MINIMUMS = {"tick_interval_ms": 1}


@dataclass(frozen=True)
class GameConfig:
    data_dir: Path = field(default_factory=default_data_dir)
    # Pause between a deciding guess and the win/loss being recorded,
    # so the last guess is on screen before the result.
    completion_delay_ms: int = 500
    tick_interval_ms: int = 1000
    log_level: str = "INFO"


def load_config(path: Optional[Path] = None) -> GameConfig:
    """Build a ``GameConfig`` from defaults, the YAML file and the environment.

    ``path`` defaults to ``<data_dir>/config.yaml``. A missing file is not an
    error; a malformed one is logged and ignored.
    """
    config = GameConfig()
    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        config = replace(config, data_dir=Path(env_dir).expanduser())

    config_path = Path(path) if path else config.data_dir / "config.yaml"
    if not config_path.exists():
        return config

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (yaml.YAMLError, OSError) as e:
        logger.warning("Could not load config from %s: %s", config_path, e)
        return config
    if raw is None:
        return config
    if not isinstance(raw, dict):
        logger.warning("Ignoring config %s: expected a mapping", config_path)
        return config

    known = {f.name for f in fields(GameConfig)}
    changes = {}
    for key, value in raw.items():
        if key not in known:
            logger.warning("Ignoring unknown config key '%s' in %s", key, config_path)
            continue
        try:
            if key == "data_dir":
                # the environment wins over the file
                if env_dir:
                    continue
                changes[key] = Path(str(value)).expanduser()
            elif key == "log_level":
                changes[key] = str(value).upper()
            else:
                changes[key] = max(_MINIMUMS.get(key, 0), int(value))
        except (TypeError, ValueError, OverflowError) as e:
            logger.warning("Ignoring invalid config value for '%s': %s", key, e)
    return replace(config, **changes)
