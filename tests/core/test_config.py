"""Tests for settings loading and the immutable scoring configuration."""

import pytest
from pydantic import ValidationError

from productrules.core.config import ScoringConfig, Settings, get_settings
from productrules.products import ProductId
from productrules.rules.sources import (
    DocumentationApiSource,
    LocalDirectorySource,
    RemoteRepositorySource,
)


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestSettingsDefaults:
    def test_defaults_match_scoring_config(self):
        settings = _settings()
        assert settings.threshold == 0.6
        assert settings.margin == 0.15
        assert settings.product is None
        assert settings.scoring_config() == ScoringConfig()

    def test_no_sources_configured(self):
        assert _settings().default_sources() == []

    def test_get_settings_returns_fresh_instance(self):
        assert isinstance(get_settings(), Settings)


class TestEnvironmentOverrides:
    def test_env_overrides_policy(self, monkeypatch):
        monkeypatch.setenv("PRODUCTRULES_THRESHOLD", "0.75")
        monkeypatch.setenv("PRODUCTRULES_DEPENDENCY_WEIGHT", "10")

        config = _settings().scoring_config()
        assert config.threshold == 0.75
        assert config.dependency_weight == 10.0

    def test_env_names_are_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("productrules_margin", "0.2")
        assert _settings().margin == 0.2

    def test_blank_product_is_unset(self, monkeypatch):
        monkeypatch.setenv("PRODUCTRULES_PRODUCT", "   ")
        assert _settings().product is None

    def test_product_override_from_env(self, monkeypatch):
        monkeypatch.setenv("PRODUCTRULES_PRODUCT", "commerce-platform")
        assert _settings().product == "commerce-platform"

    def test_coinstall_groups_from_json(self, monkeypatch):
        monkeypatch.setenv(
            "PRODUCTRULES_COINSTALL_GROUPS",
            '[["commerce-platform", "data-platform"]]',
        )
        config = _settings().scoring_config()
        assert config.coinstall_groups == (
            frozenset({ProductId.COMMERCE, ProductId.DATA}),
        )

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("PRODUCTRULES_WALK_DEPTH=2\nPRODUCTRULES_DEBUG=true\n")

        settings = Settings(_env_file=env_file)
        assert settings.walk_depth == 2
        assert settings.debug is True


class TestValidation:
    @pytest.mark.parametrize("name,value", [
        ("PRODUCTRULES_THRESHOLD", "1.5"),
        ("PRODUCTRULES_THRESHOLD", "0"),
        ("PRODUCTRULES_MARGIN", "-0.1"),
        ("PRODUCTRULES_FILE_PATTERN_WEIGHT", "0"),
        ("PRODUCTRULES_MAX_REPEATS", "0"),
        ("PRODUCTRULES_HTTP_TIMEOUT", "-1"),
    ])
    def test_invalid_values_rejected(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            _settings()

    def test_unknown_coinstall_product_rejected(self, monkeypatch):
        monkeypatch.setenv("PRODUCTRULES_COINSTALL_GROUPS", '[["commerce-platform", "magento"]]')
        with pytest.raises(ValidationError):
            _settings()


class TestDefaultSources:
    def test_sources_in_precedence_order(self, tmp_path):
        settings = _settings(
            rules_dir=tmp_path,
            remote_repository="acme/platform-rules",
            remote_ref="v2",
            github_token="s3cret",
            docs_api_url="https://docs.example.com/api",
            http_timeout=3.0,
        )

        local, remote, docs = settings.default_sources()

        assert isinstance(local, LocalDirectorySource)
        assert local.path == str(tmp_path)
        assert isinstance(remote, RemoteRepositorySource)
        assert remote.repository == "acme/platform-rules"
        assert remote.ref == "v2"
        assert remote.token == "s3cret"
        assert remote.timeout == 3.0
        assert isinstance(docs, DocumentationApiSource)
        assert docs.base_url == "https://docs.example.com/api"
