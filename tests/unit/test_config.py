"""Unit tests for Settings and the YAML config loader."""

from __future__ import annotations

from pathlib import Path

from src.config.loader import load_config
from src.config.settings import Settings


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "",
        "openai_chat_model": "gpt-4o-mini",
        "database_path": "data/test.db",
        "max_upload_size_mb": 10,
    }
    defaults.update(overrides)
    return Settings(**defaults)


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(openai_api_key="", admin_api_token="", user_api_token="")
        assert settings.openai_embedding_model == "text-embedding-3-small"
        assert settings.openai_embedding_dimension == 1536
        assert settings.max_upload_size_mb == 50

    def test_max_upload_size_bytes(self) -> None:
        assert _settings(max_upload_size_mb=2).max_upload_size_bytes == 2 * 1024 * 1024


class TestLoadConfig:
    def test_repository_config_has_tunables(self) -> None:
        config_path = Path(__file__).resolve().parents[2] / "config" / "config.yaml"
        config = load_config(str(config_path), settings=_settings())

        assert config["chunking"] == {"chunk_size": 1000, "chunk_overlap": 200}
        assert config["retrieval"]["relevance_floor"] == 0.3
        assert config["retrieval"]["default_search_limit"] == 5
        assert config["retrieval"]["max_search_limit"] == 20
        assert "DEC Assistant" in config["chat"]["system_prompt"]

    def test_settings_are_merged_over_yaml(self, tmp_path: Path) -> None:
        yaml_path = tmp_path / "config.yaml"
        yaml_path.write_text(
            "app:\n  name: docs\n  port: 1234\nlogging:\n  level: DEBUG\n",
            encoding="utf-8",
        )

        config = load_config(
            str(yaml_path),
            settings=_settings(app_port=9000, app_env="production", log_level="WARNING"),
        )

        assert config["app"]["name"] == "docs"
        assert config["app"]["port"] == 9000
        assert config["app"]["env"] == "production"
        assert config["logging"]["level"] == "WARNING"

    def test_missing_file_yields_settings_only(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=_settings())
        assert "chunking" not in config
        assert set(config) == {"app", "logging"}
