"""Tests for the configuration module."""

import json
import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError

from orderedrunner.config import (
    ExecutionConfig,
    LoggingConfig,
    ResourceConfig,
    RunnerConfig,
    create_example_config,
    get_default_config,
)


class TestExecutionConfig:
    """Tests for ExecutionConfig."""

    def test_default_values(self):
        """Test default values are set correctly."""
        config = ExecutionConfig()
        assert config.max_workers == 4
        assert config.parallel is None

    def test_max_workers_validation(self):
        """Test that max_workers must be positive."""
        with pytest.raises(ValueError):
            ExecutionConfig(max_workers=0)


class TestLoggingConfig:
    """Tests for LoggingConfig."""

    def test_default_level(self):
        """Test the default log level."""
        assert LoggingConfig().level == "WARNING"

    def test_level_case_insensitive(self):
        """Test that level names are upper-cased."""
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_unknown_level(self):
        """Test that unknown levels are rejected."""
        with pytest.raises(ValueError):
            LoggingConfig(level="chatty")


class TestRunnerConfig:
    """Tests for RunnerConfig."""

    def test_default_config(self):
        """Test creating a default configuration."""
        config = get_default_config()
        assert config.execution.max_workers == 4
        assert config.resources.search_paths == []
        assert config.logging.level == "WARNING"

    def test_from_file(self):
        """Test loading configuration from a file."""
        config_data = {
            "execution": {"max_workers": 8, "parallel": True},
            "resources": {"search_paths": ["data"]},
        }

        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            json.dump(config_data, f)
            f.flush()

            config = RunnerConfig.from_file(f.name)
            assert config.execution.max_workers == 8
            assert config.execution.parallel is True
            assert config.resources.search_paths == ["data"]
            assert config.logging.level == "WARNING"

    def test_from_file_not_found(self):
        """Test loading from non-existent file raises error."""
        with pytest.raises(FileNotFoundError):
            RunnerConfig.from_file("/nonexistent/path.json")

    def test_from_file_invalid(self, tmp_path):
        """Test that invalid values are reported by validation."""
        path = tmp_path / "orderedrunner.json"
        path.write_text(json.dumps({"execution": {"max_workers": -1}}))

        with pytest.raises(ValidationError):
            RunnerConfig.from_file(path)

    def test_to_file(self):
        """Test saving configuration to a file."""
        config = get_default_config()
        config.execution.max_workers = 2

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.json"
            config.to_file(path)

            assert path.exists()

            loaded = RunnerConfig.from_file(path)
            assert loaded.execution.max_workers == 2

    def test_find_and_load_searches_parents(self, tmp_path):
        """Test that configuration is found in a parent directory."""
        RunnerConfig(resources=ResourceConfig(search_paths=["shared"])).to_file(
            tmp_path / ".orderedrunner.json"
        )
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        config = RunnerConfig.find_and_load(nested)
        assert config.resources.search_paths == ["shared"]

    def test_load_or_default_without_file(self, tmp_path, monkeypatch):
        """Test that defaults are used when no configuration exists."""
        monkeypatch.chdir(tmp_path)
        config = RunnerConfig.load_or_default()
        assert config == get_default_config()

    def test_create_example_config(self):
        """Test creating an example configuration file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "example.json"
            result = create_example_config(path)

            assert result == path
            assert path.exists()

            with open(path) as f:
                data = json.load(f)
                assert "execution" in data
                assert "resources" in data
                assert "logging" in data
                assert data["resources"]["search_paths"] == ["tests/resources"]

    def test_get_search_paths(self):
        """Test resolving search paths against a base directory."""
        config = get_default_config()
        config.resources.search_paths = ["tests/resources"]

        with tempfile.TemporaryDirectory() as tmpdir:
            paths = config.get_search_paths(tmpdir)

            assert len(paths) == 1
            assert paths[0].is_absolute()
            assert str(paths[0]).endswith("resources")
