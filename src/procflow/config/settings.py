"""Application settings.

Configuration is sourced from keyword arguments, environment variables and
optionally `.env`. Layout options may also be given with the camelCase names used
by rendering clients (see `LayoutSettings.from_options`).
"""

from __future__ import annotations

from typing import Any, Dict, Literal, Mapping, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.exceptions import ConfigurationError

Direction = Literal["TB", "LR"]

_OPTION_NAMES = {
    "direction": "direction",
    "nodeWidth": "node_width",
    "nodeHeight": "node_height",
    "layerGap": "layer_gap",
    "nodeGap": "node_gap",
    "orderingPasses": "ordering_passes",
}


class LayoutSettings(BaseSettings):
    """Footprint, spacing and ordering options for the layered layout."""

    model_config = SettingsConfigDict(
        env_prefix="PROCFLOW_LAYOUT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    direction: Direction = "TB"
    node_width: float = Field(default=180, gt=0)
    node_height: float = Field(default=70, gt=0)
    layer_gap: float = Field(default=80, ge=0)
    node_gap: float = Field(default=60, ge=0)
    ordering_passes: int = Field(default=4, ge=0)

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]] = None) -> "LayoutSettings":
        """Build settings from a client options mapping.

        Accepts both camelCase (`nodeWidth`) and snake_case (`node_width`) keys.
        Unknown keys are ignored. Invalid values raise `ConfigurationError`.
        """
        values: Dict[str, Any] = {}
        for key, value in (options or {}).items():
            name = _OPTION_NAMES.get(key, key)
            if name in cls.model_fields:
                values[name] = value
        if isinstance(values.get("direction"), str):
            values["direction"] = values["direction"].upper()
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(
                "Invalid layout options",
                context={"errors": exc.errors(include_url=False)},
            ) from exc

    def to_options(self) -> Dict[str, Any]:
        return {key: getattr(self, name) for key, name in _OPTION_NAMES.items()}


class Settings(BaseSettings):
    """Process-wide settings (logging)."""

    model_config = SettingsConfigDict(
        env_prefix="PROCFLOW_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    log_level: str = "INFO"
    json_logs: bool = False
