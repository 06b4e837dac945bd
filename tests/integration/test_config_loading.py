"""Integration tests for configuration loading with layered precedence.

Tests the real load_config() function with actual YAML files, environment
variables, and CLI overrides to verify precedence: defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from addonmux.infrastructure.config.load import load_config

pytestmark = pytest.mark.integration


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a minimal YAML config and return its path."""
    config = {
        "app_name": "addonmux-test",
        "environment": "test",
        "http": {
            "timeout_seconds": 15.0,
            "user_agent": "TestAgent/1.0",
        },
        "logging": {"level": "DEBUG", "format": "console"},
        "store": {"dir": str(tmp_path / "store")},
        "profile": {"default_profile_id": "living-room"},
        "engine": {"addon_timeout_seconds": 8.0, "ttl_http_seconds": 45},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaultsOnly:
    """Load with no YAML, ENV or CLI layer."""

    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "addonmux"
        assert config.environment == "dev"
        assert config.http_timeout_seconds == 10.0
        assert config.log_level == "INFO"
        assert config.log_format == "console"  # dev → console
        assert config.default_profile_id == "default"

    def test_engine_defaults(self) -> None:
        engine = load_config().engine
        assert engine.addon_timeout_seconds == 5.0
        assert engine.playback_timeout_seconds == 3.5
        assert engine.max_concurrent_addons == 16
        assert engine.single_flight is True
        assert (
            engine.ttl_empty_seconds,
            engine.ttl_p2p_seconds,
            engine.ttl_http_seconds,
            engine.ttl_http_ephemeral_seconds,
        ) == (120, 120, 30, 10)
        assert engine.torrent_helper_ports == [8090]

    def test_defaults_derive_log_format_from_environment(self) -> None:
        config = load_config(cli_overrides={"environment": "prod"})
        assert config.log_format == "json"


class TestYamlOverrides:
    """YAML values override defaults."""

    def test_yaml_overrides_defaults(self, yaml_config: Path, tmp_path: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "addonmux-test"
        assert config.environment == "test"
        assert config.http_timeout_seconds == 15.0
        assert config.http_user_agent == "TestAgent/1.0"
        assert config.log_level == "DEBUG"
        assert config.store_dir == tmp_path / "store"
        assert config.default_profile_id == "living-room"
        assert config.engine.addon_timeout_seconds == 8.0
        assert config.engine.ttl_http_seconds == 45

    def test_yaml_engine_section_keeps_other_engine_defaults(
        self, yaml_config: Path
    ) -> None:
        engine = load_config(config_path=yaml_config).engine
        assert engine.subtitle_timeout_seconds == 3.0
        assert engine.ttl_empty_seconds == 120

    def test_yaml_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nonexistent.yaml")

    def test_yaml_must_be_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="mapping"):
            load_config(config_path=path)

    def test_empty_yaml_is_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(config_path=path).app_name == "addonmux"


class TestEnvOverrides:
    """Environment variables override YAML and defaults."""

    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ADDONMUX_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("ADDONMUX_HTTP_TIMEOUT_SECONDS", "60.0")
        monkeypatch.setenv("ADDONMUX_ADDON_TIMEOUT_SECONDS", "2.5")

        config = load_config(config_path=yaml_config)
        assert config.log_level == "WARNING"
        assert config.http_timeout_seconds == 60.0
        assert config.engine.addon_timeout_seconds == 2.5
        # YAML values not overridden by ENV stay
        assert config.app_name == "addonmux-test"

    def test_env_overrides_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ADDONMUX_ENVIRONMENT", "prod")
        monkeypatch.setenv("ADDONMUX_MAX_CONCURRENT_ADDONS", "4")

        config = load_config()
        assert config.environment == "prod"
        assert config.log_format == "json"  # prod → json
        assert config.engine.max_concurrent_addons == 4

    def test_env_overrides_engine_ttl_over_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ADDONMUX_TTL_HTTP_SECONDS", "12")

        config = load_config(config_path=yaml_config)
        assert config.engine.ttl_http_seconds == 12
        assert config.engine.addon_timeout_seconds == 8.0

    def test_env_overrides_every_engine_key_kind(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ADDONMUX_SINGLE_FLIGHT", "false")
        monkeypatch.setenv("ADDONMUX_TORRENT_HELPER_PORTS", "[8090, 9000]")
        monkeypatch.setenv("ADDONMUX_PLAYBACK_TIMEOUT_SECONDS", "1.5")

        config = load_config()
        assert config.engine.single_flight is False
        assert config.engine.torrent_helper_ports == [8090, 9000]
        assert config.engine.playback_timeout_seconds == 1.5

    def test_dotenv_file_feeds_env_layer(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        # Registers the variable so teardown removes what load_dotenv sets.
        monkeypatch.setenv("ADDONMUX_DEFAULT_PROFILE_ID", "placeholder")
        monkeypatch.delenv("ADDONMUX_DEFAULT_PROFILE_ID")
        dotenv = tmp_path / ".env"
        dotenv.write_text("ADDONMUX_DEFAULT_PROFILE_ID=kids\n", encoding="utf-8")

        config = load_config(dotenv_path=dotenv)
        assert config.default_profile_id == "kids"

    def test_missing_dotenv_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / "missing.env")


class TestCliOverrides:
    """CLI overrides beat everything (highest precedence)."""

    def test_cli_overrides_yaml_and_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ADDONMUX_LOG_LEVEL", "WARNING")

        config = load_config(
            config_path=yaml_config,
            cli_overrides={"log_level": "ERROR", "default_profile_id": "cli"},
        )
        assert config.log_level == "ERROR"
        assert config.default_profile_id == "cli"

    def test_cli_overrides_with_sectioned_format(self, yaml_config: Path) -> None:
        config = load_config(
            config_path=yaml_config,
            cli_overrides={
                "http": {"timeout_seconds": 5.0},
                "engine": {"single_flight": False},
            },
        )
        assert config.http_timeout_seconds == 5.0
        assert config.engine.single_flight is False
        assert config.engine.addon_timeout_seconds == 8.0

    def test_cli_flat_engine_key_beats_env(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ADDONMUX_TTL_EMPTY_SECONDS", "60")

        config = load_config(cli_overrides={"ttl_empty_seconds": 5})
        assert config.engine.ttl_empty_seconds == 5


class TestValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"engine": {"max_concurrent_addons": 0}},
            {"engine": {"addon_timeout_seconds": 0}},
            {"engine": {"ttl_http_seconds": -1}},
            {"http_timeout_seconds": -5},
            {"default_profile_id": "   "},
            {"log_level": "TRACE"},
        ],
    )
    def test_invalid_values_rejected(self, overrides: dict) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides=overrides)

    def test_sectioned_dump_round_trips(self, yaml_config: Path) -> None:
        config = load_config(config_path=yaml_config)
        dumped = config.to_sectioned_dict()
        assert dumped["engine"]["ttl_http_seconds"] == 45
        assert dumped["profile"] == {"default_profile_id": "living-room"}
