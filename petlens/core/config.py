"""
Runtime settings for petlens

Values come from (highest priority first) explicit arguments, `PETLENS_*`
environment variables, a `.env` file and an optional `petlens.yaml`.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional, Tuple, Type

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from .validators import MAX_UPLOAD_BYTES

DEFAULT_MODEL_PATH = "models/cat_dog_unknown.keras"
DEFAULT_USER_AGENT = "petlens/0.1.0"


class PetLensSettings(BaseSettings):
    """Settings for fetching and classifying images"""

    model_config = SettingsConfigDict(
        env_prefix="PETLENS_",
        env_file=".env",
        extra="ignore",
        yaml_file="petlens.yaml",
        protected_namespaces=(),
    )

    model_path: str = DEFAULT_MODEL_PATH
    model_input_size: int = Field(default=224, gt=0)
    unknown_threshold: float = Field(default=0.46, ge=0.0, le=1.0)
    fetch_timeout: float = Field(default=15.0, gt=0)
    user_agent: str = DEFAULT_USER_AGENT
    max_upload_bytes: int = Field(default=MAX_UPLOAD_BYTES, gt=0)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
        )


@lru_cache(maxsize=1)
def get_settings() -> PetLensSettings:
    """Process-wide settings instance"""
    return PetLensSettings()


def load_settings(yaml_file: Optional[str] = None, **overrides) -> PetLensSettings:
    """Build settings from a specific YAML file and/or explicit overrides"""
    if yaml_file is None:
        return PetLensSettings(**overrides)

    class _FileSettings(PetLensSettings):
        model_config = SettingsConfigDict(yaml_file=yaml_file)

    return _FileSettings(**overrides)
