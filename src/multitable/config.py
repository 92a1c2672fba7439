"""View configuration loaded from ``multitable.yaml``."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


CONFIG_FILENAME = "multitable.yaml"

DEFAULT_CONFIG = {
    "row_number_visible": False,
    "row_number_name": "row",
    "unknown_column_name": "unknown",
    "max_pending_changes": 1000,
    "logging_fsync": False,
    "logging_tail_bytes": 2_097_152,  # 2 MB
    "logging_memory_size": 1000,
}


def _flatten_logging_block(user_config: dict[str, Any]) -> dict[str, Any]:
    """Flatten a nested ``logging:`` block into flat config keys.

    Supports::

        logging:
          fsync: true
          tail_bytes: 65536

    Maps to ``logging_fsync`` and ``logging_tail_bytes``.  Flat keys that are
    already present win over the nested block.
    """
    block = user_config.pop("logging", None)
    if not isinstance(block, dict):
        return user_config

    for short_key, value in block.items():
        user_config.setdefault(f"logging_{short_key}", value)
    return user_config


def load_view_config(config_dir: Path | None = None) -> dict[str, Any]:
    """Load view configuration from ``multitable.yaml``, with defaults.

    Args:
        config_dir: Directory containing ``multitable.yaml``.  ``None`` returns
            the defaults.

    Returns:
        Merged configuration dict.
    """
    config = dict(DEFAULT_CONFIG)
    if config_dir is None:
        return config
    config_path = Path(config_dir) / CONFIG_FILENAME
    if config_path.exists():
        user_config = yaml.safe_load(config_path.read_text()) or {}
        if not isinstance(user_config, dict):
            raise ValueError(
                f"{CONFIG_FILENAME} must contain a mapping, got {type(user_config).__name__}"
            )
        user_config = _flatten_logging_block(user_config)
        config.update(user_config)
    return config
