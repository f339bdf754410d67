"""Tests for speclens.core.settings module."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from speclens.core.settings import SpecLensSettings, clear_settings_cache, get_settings


class TestSpecLensSettings:
    """Test defaults, environment overrides and validation."""

    def test_defaults(self, monkeypatch):
        for name in ("LOG_LEVEL", "LOG_FORMAT", "DECODE_HEAD_HEX_BYTES", "CATALOG_RESULT_CAP", "INDENT_GUIDE"):
            monkeypatch.delenv(f"SPECLENS_{name}", raising=False)
        settings = SpecLensSettings(_env_file=None)
        assert settings.log_level == "INFO"
        assert settings.log_format == "auto"
        assert settings.decode_head_hex_bytes == 64
        assert settings.decode_max_unpacked_bytes == 8 * 1024 * 1024
        assert settings.catalog_result_cap == 1
        assert settings.indent_guide == "|   "

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SPECLENS_DECODE_HEAD_HEX_BYTES", "16")
        monkeypatch.setenv("SPECLENS_LOG_FORMAT", "JSON")
        settings = SpecLensSettings(_env_file=None)
        assert settings.decode_head_hex_bytes == 16
        assert settings.log_format == "json"

    def test_invalid_log_format_rejected(self):
        with pytest.raises(PydanticValidationError):
            SpecLensSettings(log_format="xml", _env_file=None)

    def test_result_cap_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            SpecLensSettings(catalog_result_cap=0, _env_file=None)


class TestGetSettings:
    """Test the cached factory."""

    def test_cached_instance(self):
        assert get_settings() is get_settings()

    def test_force_reload(self, monkeypatch):
        first = get_settings()
        monkeypatch.setenv("SPECLENS_CATALOG_RESULT_CAP", "5")
        reloaded = get_settings(_force_reload=True)
        assert reloaded is not first
        assert reloaded.catalog_result_cap == 5

    def test_clear_cache(self):
        first = get_settings()
        clear_settings_cache()
        assert get_settings() is not first
