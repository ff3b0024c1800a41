"""Configuration management for orderedrunner."""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

CONFIG_NAMES = ["orderedrunner.json", ".orderedrunner.json"]


class ExecutionConfig(BaseModel):
    """Scheduler configuration."""

    max_workers: int = Field(default=4, description="Thread pool size for parallel normal tests")
    parallel: Optional[bool] = Field(
        default=None,
        description="Force parallel (true) or sequential (false) execution; null follows the class marker",
    )

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_workers must be at least 1")
        return v


class ResourceConfig(BaseModel):
    """Where ``classpath:`` parameter files are looked up."""

    search_paths: list[str] = Field(
        default_factory=list,
        description="Directories searched after the test class's own package",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING", description="Log level (DEBUG, INFO, WARNING, ERROR)")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level


class RunnerConfig(BaseModel):
    """Main configuration for orderedrunner."""

    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    resources: ResourceConfig = Field(default_factory=ResourceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "RunnerConfig":
        """Load configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            data = json.load(f)

        return cls.model_validate(data)

    @classmethod
    def find_and_load(cls, start_dir: Path | str | None = None) -> "RunnerConfig":
        """Find and load configuration file, searching up the directory tree."""
        if start_dir is None:
            start_dir = Path.cwd()
        else:
            start_dir = Path(start_dir)

        current = start_dir.resolve()
        while True:
            for name in CONFIG_NAMES:
                config_path = current / name
                if config_path.exists():
                    return cls.from_file(config_path)
            if current == current.parent:
                break
            current = current.parent

        raise FileNotFoundError(
            "No configuration file found. Create orderedrunner.json or run 'orderedrunner init'"
        )

    @classmethod
    def load_or_default(cls, path: Path | str | None = None) -> "RunnerConfig":
        """Load ``path`` if given, else search for a config file, else use defaults."""
        if path:
            return cls.from_file(path)
        try:
            return cls.find_and_load()
        except FileNotFoundError:
            return get_default_config()

    def to_file(self, path: Path | str) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)

    def get_search_paths(self, base_dir: Path | str | None = None) -> list[Path]:
        """Resource search paths resolved against ``base_dir``."""
        if base_dir is None:
            base_dir = Path.cwd()
        else:
            base_dir = Path(base_dir)

        return [(base_dir / p).resolve() for p in self.resources.search_paths]


def get_default_config() -> RunnerConfig:
    """Return a default configuration."""
    return RunnerConfig(
        execution=ExecutionConfig(max_workers=4),
        resources=ResourceConfig(search_paths=[]),
        logging=LoggingConfig(level="WARNING"),
    )


def create_example_config(output_path: Path | str) -> Path:
    """Create an example configuration file."""
    output_path = Path(output_path)
    config = get_default_config()
    config.resources.search_paths = ["tests/resources"]
    config.to_file(output_path)
    return output_path
