"""SpecLens Core -- errors, logging, settings, caching and collaborator protocols.

Manifesto:
    Decoding, parsing and rendering are pure. Everything that is not pure
    lives here: the structured error hierarchy every layer raises, the
    structlog configuration every module logs through, the settings the
    decoder and renderer read their limits from, the single-flight cache the
    resolver keeps its state in, and the protocols that describe the
    metadata service the engine is driven by.

    - **Structured errors:** every failure carries a category and context
    - **Event-style logs:** ``logger.warning("decode_failed", **context)``
    - **Instance-scoped state:** caches live and die with their resolver

Architecture::

    errors.py      SpecLensError hierarchy (Validation, Parse, NotFound)
    logging.py     structlog configuration, LogContext
    settings.py    SpecLensSettings (SPECLENS_* environment variables)
    cache.py       AsyncSingleFlightCache
    protocols.py   MetadataQueryService, SpecUnpacker

Tags:
    core, errors, logging, settings, cache, speclens

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from speclens.core.cache import AsyncSingleFlightCache
from speclens.core.errors import (
    BusinessFunctionNotFoundError,
    ErrorCategory,
    ErrorContext,
    EventRulesNotFoundError,
    NotFoundError,
    SpecLensError,
    SpecParseError,
    TemplateNotFoundError,
    ValidationError,
)
from speclens.core.logging import LogContext, configure_from_settings, configure_logging, get_logger
from speclens.core.protocols import MetadataQueryService, SpecUnpacker, UnpackOutcome
from speclens.core.settings import SpecLensSettings, clear_settings_cache, get_settings

__all__ = [
    # Cache
    "AsyncSingleFlightCache",
    # Errors
    "BusinessFunctionNotFoundError",
    "ErrorCategory",
    "ErrorContext",
    "EventRulesNotFoundError",
    "NotFoundError",
    "SpecLensError",
    "SpecParseError",
    "TemplateNotFoundError",
    "ValidationError",
    # Logging
    "LogContext",
    "configure_from_settings",
    "configure_logging",
    "get_logger",
    # Protocols
    "MetadataQueryService",
    "SpecUnpacker",
    "UnpackOutcome",
    # Settings
    "SpecLensSettings",
    "clear_settings_cache",
    "get_settings",
]
