"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path.cwd()


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
        if 'storage' in data:
            flattened['data_dir'] = data['storage'].get('data_dir')
        if 'journal' in data:
            flattened['image_max_dimension'] = data['journal'].get('image_max_dimension')
            flattened['image_quality'] = data['journal'].get('image_quality')
        if 'speech' in data:
            speech = data['speech']
            flattened['speech_model'] = speech.get('model')
            flattened['speech_voice'] = speech.get('voice')
            flattened['speech_rate'] = speech.get('rate')
            flattened['speech_sample_rate'] = speech.get('sample_rate')
        if 'openai' in data:
            flattened['article_model'] = data['openai'].get('article_model')
            flattened['definition_language'] = data['openai'].get('definition_language')

        # Remove None values
        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI (optional: None disables article fetch and speech synthesis)
    openai_api_key: str | None = Field(default=None)
    article_model: str = Field(default="gpt-4o-mini")
    definition_language: str = Field(default="Simplified Chinese")

    # Authentication (optional: None disables auth)
    app_secret: str | None = Field(default=None)

    # Speech
    speech_model: str = Field(default="gpt-4o-mini-tts")
    speech_voice: str = Field(default="alloy")
    speech_rate: float = Field(default=0.9)
    speech_sample_rate: int = Field(default=24000)
    audio_output_device: int | None = Field(default=None)

    # Journal images
    image_max_dimension: int = Field(default=800)
    image_quality: int = Field(default=70, ge=1, le=95)

    # Server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)
    data_dir: Path | None = Field(default=None)

    @property
    def storage_dir(self) -> Path:
        d = self.data_dir or self.project_root / "data"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def frontend_dir(self) -> Path:
        return self.project_root / "frontend"

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
