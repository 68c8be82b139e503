"""Unit tests for configuration loading."""

from pathlib import Path

import pytest

from loadout_library.config import LoadoutSettings
from loadout_library.config import create_default_config
from loadout_library.config import get_config_path
from loadout_library.config import load_config


@pytest.mark.unit
class TestSettings:
    """Test LoadoutSettings defaults and validation."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("LOADOUT_PORT", raising=False)
        settings = LoadoutSettings()
        assert settings.host == "127.0.0.1"
        assert settings.port == 8430
        assert settings.default_profile_id == "default"
        assert settings.reconcile_on_start is True
        assert settings.data_path == ""

    def test_reconcile_on_start_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOADOUT_RECONCILE_ON_START", "false")

        assert LoadoutSettings().reconcile_on_start is False
        assert "reconcile_on_start" in LoadoutSettings.model_fields

    def test_paths_are_expanded(self, tmp_path: Path) -> None:
        settings = LoadoutSettings(data_path=str(tmp_path / "x" / ".." / "data"))
        assert settings.data_path == str((tmp_path / "data").resolve())

    def test_blank_default_profile_rejected(self) -> None:
        with pytest.raises(ValueError):
            LoadoutSettings(default_profile_id="  ")


@pytest.mark.unit
class TestLoadConfig:
    """Test YAML + environment configuration loading."""

    def test_creates_default_config_file(self, mock_storage_env: Path) -> None:
        settings = load_config()

        config_path = get_config_path()
        assert config_path.exists()
        assert "default_profile_id" in config_path.read_text(encoding="utf-8")
        assert settings.port == 8430

    def test_yaml_values_are_applied(self, tmp_path: Path, mock_storage_env: Path) -> None:
        config_path = tmp_path / "loadout.yaml"
        config_path.write_text("port: 9000\ndefault_profile_id: home\n", encoding="utf-8")

        settings = load_config(config_path)

        assert settings.port == 9000
        assert settings.default_profile_id == "home"

    def test_environment_overrides_yaml(
        self, tmp_path: Path, mock_storage_env: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_path = tmp_path / "loadout.yaml"
        config_path.write_text("port: 9000\n", encoding="utf-8")
        monkeypatch.setenv("LOADOUT_PORT", "9100")

        assert load_config(config_path).port == 9100

    def test_invalid_yaml_values_fall_back_to_defaults(self, tmp_path: Path, mock_storage_env: Path) -> None:
        config_path = tmp_path / "loadout.yaml"
        config_path.write_text("port: not-a-number\n", encoding="utf-8")

        assert load_config(config_path).port == 8430

    def test_non_mapping_yaml_is_ignored(self, tmp_path: Path, mock_storage_env: Path) -> None:
        config_path = tmp_path / "loadout.yaml"
        config_path.write_text("- just\n- a list\n", encoding="utf-8")

        assert load_config(config_path).host == "127.0.0.1"

    def test_create_default_config_keeps_existing(self, tmp_path: Path) -> None:
        config_path = tmp_path / "loadout.yaml"
        config_path.write_text("port: 1\n", encoding="utf-8")

        create_default_config(config_path)

        assert config_path.read_text(encoding="utf-8") == "port: 1\n"
