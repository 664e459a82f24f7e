"""Glimpse configuration management."""

import os
import logging
from pathlib import Path
from typing import Optional, Dict, Any, List

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".glimpse.yaml"
METADATA_DIR = ".git"

DEFAULT_SYSTEM_PROMPT = (
    "You are a Principal Go Engineer. Review strictly for bugs, perf, and slog context."
)

# Environment variables holding API keys, per provider
API_KEY_ENV_VARS: Dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "zai": "ZAI_API_KEY",
    "claude": "ANTHROPIC_API_KEY",
}


class ConfigError(Exception):
    """Raised when configuration cannot be loaded or saved."""

    pass


class QueueOverflow:
    """Policy constants for a full event queue."""

    BLOCK = "block"  # Backpressure the watcher thread
    DROP = "drop"  # Discard the event with a warning


class LogsConfig(BaseModel):
    """Runtime log scraping configuration."""

    file: str = Field(default="./tmp/server.log", description="Log file to tail")
    lines: int = Field(default=50, ge=0, description="Lines of context to include")

    class Config:
        """Pydantic configuration."""

        frozen = True


class LLMSettings(BaseModel):
    """Generation provider configuration."""

    provider: str = Field(default="", description="openai, claude, zai or ollama")
    model: str = Field(default="", description="Model name")
    api_key: Optional[str] = Field(default=None, description="Provider API key")
    api_endpoint: Optional[str] = Field(default=None, description="Endpoint override")
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT)
    timeout_seconds: float = Field(default=120.0, gt=0)
    max_tokens: int = Field(default=4096, gt=0)
    max_concurrent_reviews: int = Field(
        default=4,
        ge=1,
        description="Generation requests allowed in flight at once",
    )

    class Config:
        """Pydantic configuration."""

        frozen = True


class GlimpseConfig(BaseModel):
    """Complete, immutable application configuration."""

    watch: List[str] = Field(
        default_factory=lambda: [
            "./*.go",
            "./internal/**/*.go",
            "./pkg/**/*.go",
        ],
        description="Glob patterns to watch",
    )
    ignore: List[str] = Field(
        default_factory=lambda: ["*_test.go"],
        description="Basename glob patterns to ignore",
    )
    logs: LogsConfig = Field(default_factory=LogsConfig)
    llm: LLMSettings = Field(default_factory=LLMSettings)

    # Change pipeline tuning
    debounce_seconds: float = Field(default=2.0, gt=0)
    max_batch_size: int = Field(default=100, ge=1)
    max_batch_wait_seconds: float = Field(
        default=3600.0,
        gt=0,
        description="Hard ceiling on how long a non-empty batch may stay pending",
    )
    staged_poll_interval_seconds: float = Field(default=1.0, gt=0)
    event_queue_size: int = Field(default=100, ge=1)
    queue_overflow: str = Field(default=QueueOverflow.BLOCK, pattern="^(block|drop)$")

    theme: str = Field(default="glimpse", description="Terminal color theme")

    # Trigger sources
    review_file_changes: bool = Field(default=True)
    review_staged_changes: bool = Field(default=True)

    class Config:
        """Pydantic configuration."""

        frozen = True

    @property
    def has_provider(self) -> bool:
        return bool(self.llm.provider and self.llm.model)


def get_global_config_path() -> Optional[Path]:
    """
    Get the global config path, following the XDG convention.

    Returns:
        Path to the global config, or None if no home directory exists
    """
    xdg_config_home = os.getenv("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / CONFIG_FILENAME

    try:
        home = Path.home()
    except RuntimeError:
        return None
    return home / ".config" / CONFIG_FILENAME


def get_local_config_path() -> Path:
    return Path.cwd() / CONFIG_FILENAME


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge nested dictionaries, override wins."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[str] = None) -> GlimpseConfig:
    """
    Load configuration with fallback: local -> global -> defaults.

    Merge order (later overrides earlier):
    1. Default values
    2. Local config (./.glimpse.yaml), or the global config if there is none
    3. Explicit config_path if provided
    4. Environment variables (GLIMPSE_*)

    Args:
        config_path: Optional explicit config file path

    Returns:
        Merged GlimpseConfig instance

    Raises:
        ConfigError: If a config file is unreadable or invalid
    """
    load_dotenv()
    merged: Dict[str, Any] = {}

    local_path = get_local_config_path()
    global_path = get_global_config_path()
    if local_path.exists():
        merged = _merge(merged, _read_yaml(local_path))
        logger.debug(f"Loaded config from {local_path}")
    elif global_path is not None and global_path.exists():
        merged = _merge(merged, _read_yaml(global_path))
        logger.debug(f"Loaded config from {global_path}")

    if config_path:
        explicit = Path(config_path)
        if not explicit.exists():
            raise ConfigError(f"Config file not found: {explicit}")
        merged = _merge(merged, _read_yaml(explicit))

    merged = _merge(merged, _get_env_overrides())

    llm = merged.get("llm") or {}
    if not llm.get("api_key"):
        env_var = API_KEY_ENV_VARS.get(llm.get("provider", ""))
        if env_var and os.getenv(env_var):
            merged["llm"] = {**llm, "api_key": os.getenv(env_var)}

    try:
        return GlimpseConfig(**merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def _convert_value(value: str) -> Any:
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


def _get_env_overrides() -> Dict[str, Any]:
    """
    Get configuration overrides from environment variables.

    GLIMPSE_DEBOUNCE_SECONDS=0.5 sets debounce_seconds, and a double
    underscore selects a nested section: GLIMPSE_LLM__MODEL=gpt-4o.
    List values (GLIMPSE_WATCH, GLIMPSE_IGNORE) are comma separated.

    Returns:
        Dictionary of overrides
    """
    prefix = "GLIMPSE_"
    overrides: Dict[str, Any] = {}

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        parts = key[len(prefix):].lower().split("__")
        if parts[0] in ("watch", "ignore") and len(parts) == 1:
            converted: Any = [item.strip() for item in value.split(",") if item.strip()]
        elif parts[-1] in ("api_key", "model", "provider", "system_prompt", "file"):
            converted = value
        else:
            converted = _convert_value(value)

        target = overrides
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        target[parts[-1]] = converted

    return overrides


def save_global_config(config: GlimpseConfig, path: Optional[Path] = None) -> Path:
    """
    Save configuration to the global config file.

    The API key is never written to disk; it is read from the
    environment on every start.

    Args:
        config: Configuration to save
        path: Target path (default: global config path)

    Returns:
        Path written
    """
    target = path or get_global_config_path()
    if target is None:
        raise ConfigError("Could not determine home directory")

    data = config.model_dump(mode="json")
    data["llm"].pop("api_key", None)

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        raise ConfigError(f"Failed to write global config: {e}") from e

    logger.info(f"Saved config to {target}")
    return target
