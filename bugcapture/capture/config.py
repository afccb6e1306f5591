"""Configuration for the bug capture engine.

This module provides the CaptureConfig model read once at initialize time,
and YAML loading with environment overrides. Keys are accepted in camelCase
(as embedded pages write them) or snake_case.

Precedence: explicit overrides > environment variables > config file > defaults
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel, to_snake

from ..errors import ConfigurationError
from .network_observer import CAPTURED_RESOURCE_TYPES, MAX_BODY_CHARS
from .screenshot import HTML2CANVAS_URL


ButtonPosition = Literal["bottom-right", "bottom-left", "top-right", "top-left"]

ENV_OVERRIDES = {
    "BUG_CAPTURE_PROJECT_KEY": "project_key",
    "BUG_CAPTURE_API_ENDPOINT": "api_endpoint",
    "BUG_CAPTURE_SCREENSHOT_RENDERER": "screenshot_renderer",
}


def _snake_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {to_snake(key): value for key, value in data.items()}


class CaptureConfig(BaseModel):
    """Embedding configuration for one capture engine."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Ingestion
    project_key: str = Field(default="", description="Project identifier issued by the ingestion API")
    api_endpoint: str = Field(default="", description="Base URL of the ingestion API")
    submit_path: str = Field(
        default="/api/trpc/bugReports.submit",
        description="Submission route appended to api_endpoint"
    )
    request_timeout_seconds: float = Field(default=30.0, gt=0)

    # Launcher
    show_button: bool = Field(default=True, description="Inject the floating report button")
    button_position: ButtonPosition = Field(default="bottom-right")

    # Capture categories
    capture_console: bool = True
    capture_network: bool = True
    capture_user_actions: bool = True

    # Buffer ceilings
    max_console_logs: int = Field(default=100, ge=1)
    max_network_logs: int = Field(default=50, ge=1)
    max_user_actions: int = Field(default=50, ge=1)

    # Network details
    max_body_chars: int = Field(default=MAX_BODY_CHARS, ge=0)
    network_resource_types: List[str] = Field(default_factory=lambda: list(CAPTURED_RESOURCE_TYPES))

    # Screenshots
    screenshot_renderer: Literal["html2canvas", "native"] = "html2canvas"
    rasterizer_script_url: str = HTML2CANVAS_URL

    @field_validator("api_endpoint")
    @classmethod
    def strip_trailing_slash(cls, v):
        return v.rstrip("/")

    @property
    def submit_url(self) -> str:
        return f"{self.api_endpoint}{self.submit_path}"

    @classmethod
    def from_any(cls, config: Union["CaptureConfig", Dict[str, Any], None] = None, **overrides) -> "CaptureConfig":
        """Build a config from a model, a mapping, or keyword overrides.

        Raises:
            ConfigurationError: If validation fails
        """
        if isinstance(config, CaptureConfig):
            data = config.model_dump()
        else:
            data = _snake_keys(config or {})
        data.update(_snake_keys(overrides))
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e


def load_config(config_path: Optional[Union[str, Path]] = None, **overrides) -> CaptureConfig:
    """Load configuration from YAML, environment and overrides.

    Args:
        config_path: Optional path to a YAML file
        **overrides: Values that take precedence over everything else

    Returns:
        Validated CaptureConfig

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    data: Dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}", field="config_path")
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration in {path} must be a mapping")

    data = _snake_keys(data)
    for env_var, field in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            data[field] = value

    data.update({k: v for k, v in overrides.items() if v is not None})
    return CaptureConfig.from_any(data)
