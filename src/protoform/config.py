from pathlib import Path
from typing import Any, cast

import yaml
from pydantic import BaseModel, ConfigDict, Field

from protoform import log


class EngineConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    debounce_ms: int = Field(300, ge=0)
    expand_simple_root_fields: bool = True
    max_render_depth: int | None = Field(None, ge=1)
    json_indent: int = Field(2, ge=0)

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


def load_engine_config(config_path: Path | None) -> EngineConfig:
    """
    Load and validate an engine configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file, or None for defaults.

    Returns:
        A validated EngineConfig.

    Raises:
        OSError: If the file cannot be read.
        yaml.YAMLError: If the file is not valid YAML.
        TypeError: If the YAML root is not a mapping.
        ValidationError: If validation against EngineConfig fails.
    """
    if config_path is None:
        log.debug("No engine config provided")
        return EngineConfig()

    raw: Any
    with config_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    log.debug("Loaded engine config from %s", config_path)

    # Treat empty file or explicit YAML null as "defaults"
    if raw is None or raw == {}:
        return EngineConfig()

    if not isinstance(raw, dict):
        raise TypeError(f"Engine config root must be a mapping (YAML object), got {type(raw).__name__}")

    return EngineConfig.model_validate(cast(dict[str, Any], raw))
