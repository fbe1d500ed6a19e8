from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, Dict, Any
from pathlib import Path


class ConfigError(ValueError):
    """Raised when chunking thresholds are inconsistent."""


def check_chunk_limits(max_chars: int, min_chars: int) -> None:
    """Fail fast unless 0 < min_chars < max_chars."""
    if min_chars <= 0 or max_chars <= 0:
        raise ConfigError(
            f"Chunk limits must be positive (MAX_CHUNK_CHARS={max_chars}, MIN_CHUNK_CHARS={min_chars})"
        )
    if min_chars >= max_chars:
        raise ConfigError(
            f"MIN_CHUNK_CHARS ({min_chars}) must be smaller than MAX_CHUNK_CHARS ({max_chars})"
        )


class Settings(BaseSettings):
    # Chunk size bounds (characters)
    MAX_CHUNK_CHARS: int = 900  # flush before a buffer would exceed this
    MIN_CHUNK_CHARS: int = 60  # shorter flushed buffers are dropped as noise

    # Heading candidacy and noise filtering
    HEADING_MIN_CHARS: int = 4
    HEADING_MAX_CHARS: int = 130
    NOISE_MIN_CHARS: int = 4  # content lines shorter than this are skipped

    # Document-level parallelism for multi-document runs
    CHUNK_WORKERS: int = 2

    # Workspace
    LOCALPLAN_WORKDIR: str = "var"  # Tool-managed artifacts

    # Observability
    LOG_FORMAT: str = "auto"  # json|plain|auto

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    def __init__(self, **values: Any) -> None:
        super().__init__(**values)
        self._check_limits()

    def _check_limits(self) -> None:
        # 0 < MIN_CHUNK_CHARS < MAX_CHUNK_CHARS and HEADING_MIN_CHARS <= HEADING_MAX_CHARS
        check_chunk_limits(self.MAX_CHUNK_CHARS, self.MIN_CHUNK_CHARS)
        if self.HEADING_MIN_CHARS > self.HEADING_MAX_CHARS:
            raise ConfigError(
                f"HEADING_MIN_CHARS ({self.HEADING_MIN_CHARS}) exceeds HEADING_MAX_CHARS ({self.HEADING_MAX_CHARS})"
            )

    @classmethod
    def load_config(cls, config_file: Optional[str] = None, **overrides: Any) -> "Settings":
        """Load settings from a config file, the environment and CLI overrides.

        Values present in the config file take precedence over environment
        variables; explicit overrides take precedence over both.
        """
        config_data: Dict[str, Any] = {}

        # Find config file
        if config_file:
            config_path: Optional[Path] = Path(config_file)
        else:
            # Auto-discover .localplan.{yaml,yml,toml}
            for ext in ["yaml", "yml", "toml"]:
                config_path = Path(f".localplan.{ext}")
                if config_path.exists():
                    break
            else:
                config_path = None

        if config_path and config_path.exists():
            if config_path.suffix in [".yaml", ".yml"]:
                import yaml  # type: ignore[import-untyped]

                with open(config_path) as f:
                    config_data = yaml.safe_load(f) or {}
            elif config_path.suffix == ".toml":
                import tomllib

                with open(config_path, "rb") as f:
                    config_data = tomllib.load(f)

        # Explicit overrides (CLI flags) win over file values
        config_data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**config_data)


# Default settings; CLI commands build their own with Settings.load_config()
SETTINGS = Settings()
