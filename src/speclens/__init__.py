"""SpecLens -- Event rules spec decoding and readable-text formatting engine.

Manifesto:
    ERP event rules arrive as opaque spec blobs and XML: a bytecode-like
    picture of business-logic flowcharts. SpecLens decodes the blobs, builds
    a typed intermediate tree from the XML and renders it as indented,
    qualifier-annotated pseudocode, resolving every cross-reference against
    data dictionary and object catalog metadata.

    - **Never fatal where avoidable:** malformed blobs are reported, not raised
    - **Faithful:** ambiguous fragments are rendered as declared, not repaired
    - **Pure core, async edge:** only metadata fetches suspend

Architecture::

    Layer 1 -- Core
        core/          errors, logging, settings, single-flight cache, protocols
        models/        frozen value types (documents, catalog, diagnostics)

    Layer 2 -- Decoding
        decoding/      SpecBlobDecoder, layout strategies, spec-stream reader

    Layer 3 -- XML engine
        xmlengine/     templates, event rules tree, renderer, SpecResolver

    Layer 4 -- Testing
        testing.py     InMemoryMetadataService

Examples:
    >>> from speclens import SpecResolver
    >>> from speclens.testing import InMemoryMetadataService
    >>> resolver = SpecResolver(InMemoryMetadataService(...))
    >>> result = await resolver.get_formatted_event_rules("EV1", "D0001")
    >>> print(result.text)

Tags:
    speclens, event-rules, decoding, rendering

Doc-Types:
    - Architecture Documentation
    - API Reference
"""

__version__ = "0.1.0"

from speclens.core import (
    BusinessFunctionNotFoundError,
    EventRulesNotFoundError,
    NotFoundError,
    SpecLensError,
    SpecLensSettings,
    SpecParseError,
    TemplateNotFoundError,
    ValidationError,
    configure_logging,
    get_logger,
    get_settings,
)
from speclens.decoding import SpecBlobDecoder
from speclens.models import DecodeDiagnostics, DecodeResult, FormattedResult, SpecXmlDocument
from speclens.xmlengine import DataStructureTemplate, SpecResolver, build_event_tree, render

__all__ = [
    "__version__",
    # Errors
    "BusinessFunctionNotFoundError",
    "EventRulesNotFoundError",
    "NotFoundError",
    "SpecLensError",
    "SpecParseError",
    "TemplateNotFoundError",
    "ValidationError",
    # Ambient
    "SpecLensSettings",
    "configure_logging",
    "get_logger",
    "get_settings",
    # Engine
    "DataStructureTemplate",
    "DecodeDiagnostics",
    "DecodeResult",
    "FormattedResult",
    "SpecBlobDecoder",
    "SpecResolver",
    "SpecXmlDocument",
    "build_event_tree",
    "render",
]
