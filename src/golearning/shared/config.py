"""
Configuration Module - Load and validate application settings.
==============================================================

Loads configuration from:
1. config/settings.yaml (defaults)
2. Environment variables from .env file
3. Environment variables from system

Environment variables override YAML defaults.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


def _find_project_root() -> Path:
    """Find the project root directory by looking for pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path.cwd()


PROJECT_ROOT = _find_project_root()
CONFIG_DIR = PROJECT_ROOT / "config"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "settings.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Nested Configuration Models
# ─────────────────────────────────────────────────────────────────────────────


class SiteConfig(BaseModel):
    """Source site contract."""

    base_url: str = "https://metanit.com/go/tutorial"
    toc_path: str = ""
    lesson_path_segment: str = "/go/tutorial/"
    page_extension: str = ".php"
    brand_keyword: str = "metanit"
    noise_phrases: list[str] = Field(
        default_factory=lambda: ["metanit", "предыдущ", "следующ"]
    )
    locale: str = "ru"


class FetchingConfig(BaseModel):
    """HTTP fetch settings."""

    timeout: float = 30.0
    user_agent: str = "GoLearning/1.0 (educational crawler)"
    max_body_bytes: int = 5 * 1024 * 1024
    max_attempts: int = 1
    retry_min_wait: float = 1.0
    retry_max_wait: float = 10.0

    @field_validator("max_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_attempts must be at least 1")
        return v


class PipelineConfig(BaseModel):
    """Orchestration settings."""

    request_delay: float = 0.5
    default_module_slug: str = "osnovy"
    # Merged over the built-in slug -> title table
    module_titles: dict[str, str] = Field(default_factory=dict)


class RewriterConfig(BaseModel):
    """Optional keyword overrides on top of the locale preset."""

    definition_keywords: list[str] = Field(default_factory=list)
    syntax_keywords: list[str] = Field(default_factory=list)
    example_keywords: list[str] = Field(default_factory=list)
    caution_keywords: list[str] = Field(default_factory=list)
    fallback_pitfalls: list[str] = Field(default_factory=list)
    # Match keywords only at word starts instead of anywhere in the text
    word_start_matching: bool = False


class DatabaseConfig(BaseModel):
    """Content store settings."""

    url: str = "sqlite:///data/golearning.db"
    echo: bool = False


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    rich_console: bool = True
    file: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Main Settings Class
# ─────────────────────────────────────────────────────────────────────────────


class Settings(BaseSettings):
    """
    Main application settings.

    Loads from:
    1. config/settings.yaml (defaults)
    2. Environment variables

    Environment variables override YAML settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Top-level environment overrides
    database_url: Optional[str] = Field(default=None, validation_alias="DATABASE_URL")
    base_url: Optional[str] = Field(default=None, validation_alias="GOLEARNING_BASE_URL")
    log_level: Optional[str] = Field(default=None, validation_alias="LOG_LEVEL")

    # Nested configurations (from YAML)
    site: SiteConfig = Field(default_factory=SiteConfig)
    fetching: FetchingConfig = Field(default_factory=FetchingConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    rewriter: RewriterConfig = Field(default_factory=RewriterConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def project_root(self) -> Path:
        """Get the project root directory."""
        return PROJECT_ROOT

    def get_effective_database_url(self) -> str:
        """Get the effective database URL (env override or config)."""
        return self.database_url or self.database.url

    def get_effective_base_url(self) -> str:
        """Get the effective site base URL (env override or config)."""
        return (self.base_url or self.site.base_url).rstrip("/")

    def get_effective_log_level(self) -> str:
        """Get the effective log level (env override or config)."""
        if self.log_level:
            return self.log_level.upper()
        return self.logging.level.upper()


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
        return data if data else {}


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge overrides into base, descending into nested dicts."""
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _create_settings(config_path: Optional[Path] = None) -> Settings:
    """Create settings instance by merging YAML defaults with environment."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    yaml_config = _load_yaml_config(config_path)

    # Init kwargs outrank env vars, so nested env values are folded into the YAML first
    env_overrides = Settings().model_dump(exclude_unset=True, include=set(yaml_config))
    return Settings(**_deep_merge(yaml_config, env_overrides))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the singleton settings instance.

    Example:
        >>> settings = get_settings()
        >>> settings.pipeline.request_delay
        0.5
    """
    return _create_settings()


def reload_settings() -> Settings:
    """Force reload of settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()


def load_settings(config_path: Path) -> Settings:
    """Load settings from an explicit YAML file, bypassing the cache."""
    return _create_settings(config_path)
