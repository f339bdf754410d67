"""
Centralized settings for the SpecLens engine.

Manifesto:
    One validated, cached settings object holds the few knobs the engine
    exposes: decode limits, the catalog result cap and the indent guide used
    by the readable renderer. Every field has a working default, so the
    engine needs no configuration to run.

Examples:
    >>> from speclens.core.settings import get_settings
    >>> get_settings().decode_max_unpacked_bytes
    8388608

    ``SPECLENS_DECODE_HEAD_HEX_BYTES=32`` in the environment (or ``.env``)
    shortens the hex preview captured in decode diagnostics.

Tags:
    speclens, configuration, settings, pydantic

Doc-Types:
    api-reference
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SpecLensSettings(BaseSettings):
    """SpecLens engine configuration.

    All fields can be set via ``SPECLENS_*`` environment variables (e.g.
    ``SPECLENS_LOG_LEVEL=DEBUG``) or through a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="SPECLENS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="auto", description="json, console or auto (json when not a tty)")

    # ── Decoding ─────────────────────────────────────────────────
    decode_head_hex_bytes: int = Field(default=64, ge=0, description="Bytes rendered in DecodeDiagnostics.head_hex")
    decode_max_unpacked_bytes: int = Field(default=8 * 1024 * 1024, gt=0)

    # ── Resolution ───────────────────────────────────────────────
    catalog_result_cap: int = Field(default=1, ge=1, description="Result cap for business function catalog queries")

    # ── Rendering ────────────────────────────────────────────────
    indent_guide: str = Field(default="|   ")

    @field_validator("log_format")
    @classmethod
    def _check_log_format(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("json", "console", "auto"):
            raise ValueError(f"log_format must be json, console or auto, got {value!r}")
        return value


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, SpecLensSettings] = {}


def get_settings(*, _force_reload: bool = False) -> SpecLensSettings:
    """Load, validate, and cache a :class:`SpecLensSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    settings = SpecLensSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Drop the cached settings (tests, reload after env changes)."""
    _settings_cache.clear()


__all__ = ["SpecLensSettings", "get_settings", "clear_settings_cache"]
