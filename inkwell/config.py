import os
import re
from functools import lru_cache
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from inkwell.lib.exceptions import ConfigurationError

# Load .env from the working directory early so $VAR references in app.yaml resolve
load_dotenv(Path.cwd() / ".env")

# Pattern to match $VAR_NAME environment variable references
ENV_VAR_PATTERN = re.compile(r"\$([A-Z_][A-Z0-9_]*)")

MEBIBYTE = 1024 * 1024


def interpolate_env_vars(value):
    """Recursively replace $VAR_NAME with os.environ values."""
    if isinstance(value, str):

        def replace(match):
            var = match.group(1)
            val = os.environ.get(var)
            if val is None:
                raise ConfigurationError(f"Environment variable ${var} not set")
            return val

        return ENV_VAR_PATTERN.sub(replace, value)
    elif isinstance(value, dict):
        return {k: interpolate_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [interpolate_env_vars(item) for item in value]
    return value


def get_config_path() -> Path:
    """Location of the optional app.yaml overlay."""
    return Path.cwd() / "app.yaml"


def load_app_config(config_path: Path | None = None) -> dict:
    """Load and parse app.yaml with environment variable interpolation."""
    config_path = config_path or get_config_path()

    if not config_path.exists():
        raise FileNotFoundError(f"app.yaml not found at {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f)

    return interpolate_env_vars(config or {})


class DatabaseConfig(BaseModel):
    """Connection pool tuning. The URL itself always comes from DATABASE_URL."""

    pool_size: int = 5
    pool_overflow: int = 0
    pool_timeout: int = 30
    pool_pre_ping: bool = False
    echo: bool = False
    create_all: bool = False


class UploadConfig(BaseModel):
    """Where stored assets live and how large submissions may be."""

    directory: str = "app/uploads"
    url_prefix: str = "app/uploads"
    max_request_size: int = 10 * MEBIBYTE
    max_image_size: int = 5 * MEBIBYTE
    max_parts: int = 1000
    verify_image_content: bool = True


class AvatarConfig(BaseModel):
    """Outbound fetch settings for avatar URLs."""

    timeout: float = 10.0
    max_size: int = 2 * MEBIBYTE
    follow_redirects: bool = True
    user_agent: str = "inkwell-avatar-fetcher"


class PostConfig(BaseModel):
    reject_blank_fields: bool = True


class LogfireConfig(BaseModel):
    """Optional Pydantic Logfire instrumentation."""

    enabled: bool = False
    service_name: str = "inkwell"
    environment: str = ""
    console: bool = False


# app.yaml sections that may override the defaults above
_YAML_SECTIONS: dict[str, type[BaseModel]] = {
    "db": DatabaseConfig,
    "uploads": UploadConfig,
    "avatar": AvatarConfig,
    "posts": PostConfig,
    "logfire": LogfireConfig,
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Application
    debug: bool = False
    database_url: str

    db: DatabaseConfig = DatabaseConfig()
    uploads: UploadConfig = UploadConfig()
    avatar: AvatarConfig = AvatarConfig()
    posts: PostConfig = PostConfig()
    logfire: LogfireConfig = LogfireConfig()

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


def _load_base_settings() -> Settings:
    try:
        return Settings()
    except PydanticValidationError as exc:
        missing = {err["loc"][0] for err in exc.errors() if err["type"] == "missing"}
        if "database_url" in missing:
            raise ConfigurationError("DATABASE_URL must be set") from exc
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


@lru_cache
def get_settings() -> Settings:
    """Load settings from the environment, .env and the optional app.yaml."""
    base_settings = _load_base_settings()

    try:
        app_config = load_app_config()
    except FileNotFoundError:
        return base_settings

    updates = {}
    for section, model in _YAML_SECTIONS.items():
        if section in app_config:
            try:
                updates[section] = model(**app_config[section])
            except PydanticValidationError as exc:
                raise ConfigurationError(f"Invalid '{section}' section in app.yaml: {exc}") from exc

    if updates:
        return base_settings.model_copy(update=updates)

    return base_settings
