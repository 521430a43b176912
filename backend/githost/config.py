from enum import Enum
from functools import lru_cache
from pathlib import Path
import os

from pydantic import BaseModel


class AppEnv(str, Enum):
    BASE = "base"
    TEST = "test"
    DEVELOPMENT = "dev"
    PRODUCTION = "prod"


class Settings(BaseModel):
    app_name: str = "githost"
    app_env: AppEnv = AppEnv.BASE
    repositories_dir: Path = Path("repositories")
    clones_dir: Path = Path("clones")
    base_url: str = "http://localhost:1323"
    default_branch: str = "main"
    debug: bool = False  # Injects GIT_TRACE* variables into git subprocesses
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 1323


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def settings_for_env(app_env: AppEnv) -> Settings:
    """Environment presets: dev and test log at DEBUG, test also traces git."""
    if app_env == AppEnv.TEST:
        return Settings(app_env=app_env, debug=True, log_level="DEBUG")
    if app_env == AppEnv.DEVELOPMENT:
        return Settings(app_env=app_env, log_level="DEBUG")
    return Settings(app_env=app_env)


def load_settings() -> Settings:
    try:
        app_env = AppEnv(os.getenv("APP_ENV", "base"))
    except ValueError:
        app_env = AppEnv.BASE
    preset = settings_for_env(app_env)

    return preset.model_copy(update={
        "repositories_dir": Path(os.getenv("GITHOST_REPOSITORIES_DIR", str(preset.repositories_dir))),
        "clones_dir": Path(os.getenv("GITHOST_CLONES_DIR", str(preset.clones_dir))),
        "base_url": os.getenv("GITHOST_BASE_URL", preset.base_url).rstrip("/"),
        "default_branch": os.getenv("GITHOST_DEFAULT_BRANCH", preset.default_branch),
        "debug": _env_flag("GITHOST_DEBUG", preset.debug),
        "log_level": os.getenv("GITHOST_LOG_LEVEL", preset.log_level).upper(),
        "host": os.getenv("GITHOST_HOST", preset.host),
        "port": int(os.getenv("GITHOST_PORT", str(preset.port))),
    })


@lru_cache
def get_settings() -> Settings:
    return load_settings()
