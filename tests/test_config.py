"""Tests for configuration and logging setup."""

import os
import subprocess
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError
from structlog.testing import capture_logs

from typed_relations.config import Config, StorageConfig, TableConfig, get_config
from typed_relations.logging import get_logger, setup_logging


class TestConfig:
    """Tests for the settings models."""

    def test_defaults(self):
        """Test the default settings."""
        config = Config()
        assert config.storage.data_dir == Path("store")
        assert config.storage.extension == ".dbf"
        assert config.tables.duplicate_keys == "reject"
        assert config.tables.rename_suffix == "2"
        assert config.observability.log_level == "INFO"
        assert config.observability.log_format == "console"

    def test_environment_overrides(self, monkeypatch, tmp_path):
        """Test nested settings from TYPED_RELATIONS_ variables."""
        monkeypatch.setenv("TYPED_RELATIONS_STORAGE__DATA_DIR", str(tmp_path))
        monkeypatch.setenv("TYPED_RELATIONS_TABLES__DUPLICATE_KEYS", "overwrite")
        monkeypatch.setenv("TYPED_RELATIONS_OBSERVABILITY__LOG_FORMAT", "json")
        config = Config()
        assert config.storage.data_dir == tmp_path
        assert config.tables.duplicate_keys == "overwrite"
        assert config.observability.log_format == "json"

    def test_invalid_values(self):
        """Test that settings are validated."""
        with pytest.raises(ValidationError):
            TableConfig(duplicate_keys="ignore")
        with pytest.raises(ValidationError):
            TableConfig(rename_suffix="")
        with pytest.raises(ValidationError):
            StorageConfig(extension="dbf")

    def test_path_for(self, tmp_path):
        """Test snapshot path construction."""
        config = StorageConfig(data_dir=tmp_path, extension=".tbl")
        assert config.path_for("Student") == tmp_path / "Student.tbl"

    def test_path_for_rejects_escaping_names(self, tmp_path):
        """Test that table names cannot leave the data directory."""
        config = StorageConfig(data_dir=tmp_path)
        for name in ["../x", "a/b", "a\\b", "", ".."]:
            with pytest.raises(ValueError, match="Invalid table name"):
                config.path_for(name)

    def test_get_config_is_cached(self):
        """Test that the global configuration is built once."""
        assert get_config() is get_config()


class TestLogging:
    """Tests for structured logging setup."""

    def test_level_filters(self, capsys):
        """Test that messages below the level are dropped."""
        setup_logging("WARNING")
        log = get_logger("test")
        log.info("quiet.event")
        log.warning("loud.event", table="Student")
        err = capsys.readouterr().err
        assert "quiet.event" not in err
        assert "loud.event" in err
        assert "table=Student" in err

    def test_json_format(self, capsys):
        """Test JSON rendering."""
        setup_logging("INFO", "json")
        get_logger("test").info("json.event", tuples=3)
        err = capsys.readouterr().err
        assert '"event": "json.event"' in err
        assert '"tuples": 3' in err

    def test_initial_context(self):
        """Test binding context up front."""
        with capture_logs() as logs:
            get_logger("test", table="Student").warning("bound.event")
        assert logs[0]["table"] == "Student"

    def test_library_use_is_quiet_by_default(self, tmp_path):
        """Test that a process that never sets up logging prints no debug output."""
        script = (
            "from typed_relations import Table\n"
            "t = Table.create('S', 'id', 'Integer', 'id')\n"
            "for i in range(3):\n"
            "    t.insert((i,))\n"
            "t.project('id')\n"
        )
        env = {k: v for k, v in os.environ.items() if not k.startswith("TYPED_RELATIONS_")}
        src = str(Path(__file__).resolve().parents[1] / "src")
        env["PYTHONPATH"] = os.pathsep.join(filter(None, [src, env.get("PYTHONPATH")]))
        result = subprocess.run(
            [sys.executable, "-c", script],
            capture_output=True,
            text=True,
            env=env,
            cwd=tmp_path,
            check=True,
        )
        assert result.stdout == ""
        assert "dml.insert" not in result.stderr
