"""
Structured error types for the SpecLens engine.

Every failure the engine surfaces to a caller is a ``SpecLensError`` carrying
a category, structured context and an optional chained cause, so callers can
tell "your input was blank" apart from "the metadata store has no such spec"
without parsing messages.

Manifesto:
    - **Typed taxonomy:** Malformed-Input, Parse, Not-Found are distinct types
    - **Never partial:** a raised error means no result was constructed
    - **Rich context:** spec key, template and table travel with the error
    - **Error chaining:** the underlying exception is kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                      SpecLensError                           │
        │        (category, context, cause, to_dict())                 │
        ├─────────────────────────────────────────────────────────────┤
        │  ValidationError        SpecParseError      NotFoundError    │
        │  (VALIDATION)           (PARSE)             (SOURCE)         │
        │                                                │             │
        │                              TemplateNotFoundError           │
        │                              EventRulesNotFoundError         │
        │                              BusinessFunctionNotFoundError   │
        └─────────────────────────────────────────────────────────────┘

    Decode mismatches are deliberately absent: a failed decode hypothesis is
    data (see ``speclens.models.diagnostics``), not an exception.

Examples:
    >>> error = TemplateNotFoundError("D0001")
    >>> error.category
    <ErrorCategory.SOURCE: 'SOURCE'>
    >>> error.context.template_name
    'D0001'

    >>> try:
    ...     DataStructureTemplate.parse("", "<root/>")
    ... except ValidationError as e:
    ...     e.field
    'template_name'

Tags:
    error-handling, exception-hierarchy, error-context, speclens

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Error categories used for classification in logs.

    Attributes:
        VALIDATION: Blank or malformed arguments to an entry point
        PARSE: Spec payload could not be parsed as XML
        SOURCE: Referenced spec, template or object does not exist
        INTERNAL: Bugs, unexpected state
    """

    VALIDATION = "VALIDATION"
    PARSE = "PARSE"
    SOURCE = "SOURCE"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        spec_key: Event spec key or spec record key being processed
        template_name: Data structure template name
        table_name: Table referenced by a file I/O operation
        object_name: Object catalog name (business function, etc.)
        metadata: Additional key-value pairs
    """

    spec_key: str | None = None
    template_name: str | None = None
    table_name: str | None = None
    object_name: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["spec_key", "template_name", "table_name", "object_name"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class SpecLensError(Exception):
    """
    Base exception for all SpecLens engine errors.

    Subclasses set ``default_category`` so callers can route on category
    without ``isinstance`` ladders.

    Examples:
        >>> error = SpecLensError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(spec_key="EV1").context.spec_key
        'EV1'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SpecLensError:
        """
        Add context to this error (fluent API).

        Usage:
            raise NotFoundError("Missing").with_context(spec_key="EV1")
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# MALFORMED INPUT
# =============================================================================


class ValidationError(SpecLensError):
    """
    Blank or malformed argument passed to a parse/decode/resolve entry point.

    Raised before any work is done; nothing is partially constructed.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class SpecParseError(SpecLensError):
    """Spec XML payload could not be parsed."""

    default_category = ErrorCategory.PARSE


# =============================================================================
# NOT FOUND
# =============================================================================


class NotFoundError(SpecLensError):
    """A referenced spec, template or catalog object does not exist."""

    default_category = ErrorCategory.SOURCE


class TemplateNotFoundError(NotFoundError):
    """No data structure template document for a template name."""

    def __init__(self, template_name: str, message: str | None = None):
        self.template_name = template_name
        super().__init__(
            message or f"Data structure template not found: {template_name}",
            context=ErrorContext(template_name=template_name),
        )


class EventRulesNotFoundError(NotFoundError):
    """No event rules document for an event spec key."""

    def __init__(self, event_spec_key: str, message: str | None = None):
        self.event_spec_key = event_spec_key
        super().__init__(
            message or f"Event rules not found: {event_spec_key}",
            context=ErrorContext(spec_key=event_spec_key),
        )


class BusinessFunctionNotFoundError(NotFoundError):
    """Object catalog has no business function for a template name."""

    def __init__(self, template_name: str, search_pattern: str):
        self.template_name = template_name
        self.search_pattern = search_pattern
        super().__init__(
            f"No business function matches {search_pattern!r} (template {template_name})",
            context=ErrorContext(template_name=template_name, metadata={"search_pattern": search_pattern}),
        )


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SpecLensError",
    "ValidationError",
    "SpecParseError",
    "NotFoundError",
    "TemplateNotFoundError",
    "EventRulesNotFoundError",
    "BusinessFunctionNotFoundError",
]
