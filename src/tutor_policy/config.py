"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        if 'server' in data:
            flattened['host'] = data['server'].get('host')
            flattened['port'] = data['server'].get('port')
        if 'subscription' in data:
            subscription = data['subscription']
            flattened['default_language'] = subscription.get('default_language')
            flattened['profile_backend'] = subscription.get('profile_backend')
        if 'analysis' in data:
            analysis = data['analysis']
            flattened['analysis_timeout_seconds'] = analysis.get('timeout_seconds')
            basic = analysis.get('basic_errors') or {}
            flattened['basic_error_model'] = basic.get('model')
            flattened['basic_error_temperature'] = basic.get('temperature')
            flattened['basic_error_max_tokens'] = basic.get('max_tokens')
            constructions = analysis.get('artificial_constructions') or {}
            flattened['construction_model'] = constructions.get('model')
            flattened['construction_temperature'] = constructions.get('temperature')
            flattened['construction_max_tokens'] = constructions.get('max_tokens')

        # Remove None values
        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI (optional: None disables error detection, every stage degrades)
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")

    # Error detection, stage A (basic errors): deterministic and brief
    basic_error_model: str = Field(default="gpt-4o")
    basic_error_temperature: float = Field(default=0.1)
    basic_error_max_tokens: int | None = Field(default=500)

    # Error detection, stage B (artificial constructions)
    construction_model: str = Field(default="gpt-4o")
    construction_temperature: float = Field(default=0.3)
    construction_max_tokens: int | None = Field(default=None)

    analysis_timeout_seconds: float = Field(default=10.0)

    # Subscription
    default_language: str = Field(default="es")
    profile_backend: Literal["memory", "json"] = Field(default="json")

    # Authentication (optional: None disables auth)
    app_secret: str | None = Field(default=None)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)

    @property
    def profiles_dir(self) -> Path:
        d = self.project_root / "data" / "profiles"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()
