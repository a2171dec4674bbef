"""Portal server configuration via environment variables."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


def parse_origins(value: str | list[str]) -> list[str]:
    """Accept a list, a JSON array string, or a comma-separated string of origins."""
    if isinstance(value, list):
        return value

    stripped = value.strip()
    if not stripped:
        raise ValueError("PORTAL_CORS_ORIGINS must not be an empty string")
    if not stripped.startswith("["):
        return [item.strip() for item in stripped.split(",") if item.strip()]

    try:
        parsed = json.loads(stripped)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON array: {e}") from e
    if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
        raise ValueError("JSON value must be an array of strings")
    return parsed


class _OriginsEnvSource(EnvSettingsSource):
    """Hand ``cors_origins`` to its validator as the raw env string so CSV works too."""

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name == "cors_origins" and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)


class PortalServerSettings(BaseSettings):
    model_config = {"env_prefix": "PORTAL_"}

    log_dir: str = "backend/logs/portal"
    cors_origins: list[str] = []

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_origins(v)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, _OriginsEnvSource(settings_cls), dotenv_settings, file_secret_settings)
