"""
Event Rules Intermediate Tree.

Event rules XML is a flat, document-ordered stream of statements with
explicit block markers (``GBRCRIT`` opens, ``GBRElse``/``GBREndIf``/
``GBREndWhile`` close), so the tree keeps that order: a sequence of
statement variants whose operands are small typed subtrees. The renderer
matches exhaustively over this closed set.

Architecture:
    ::

        EventRulesTree
        ├── event_spec_key
        └── statements (document order)
            ├── VariableDeclaration        GBRVAR
            ├── ConditionOpen              GBRCRIT  (If / While, criterion nodes)
            ├── ElseMarker                 GBRElse
            ├── EndIfMarker / EndWhileMarker
            ├── BusinessFunctionCall       GBRBF     → BusinessFunctionParam*
            ├── FileIoOperation            GBRFileIOOp → FileIoParam*
            ├── Assignment                 GBRASSIGN
            ├── Comment                    GBRCOMMENT
            └── SystemFunctionCall         GBRSLBF

        Operand = MemberOperand | VariableOperand | LiteralOperand
                | ConstantOperand | SystemVariableOperand | UnknownOperand

Tags:
    event-rules, intermediate-representation, speclens

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

# =============================================================================
# OPERANDS
# =============================================================================


@dataclass(frozen=True)
class MemberOperand:
    """Reference to a data structure template item (or a table column via ``dbref``)."""

    item_id: str | None = None
    template_name: str | None = None
    dbref: str | None = None


@dataclass(frozen=True)
class VariableOperand:
    """Reference to an event-level variable."""

    variable_id: str | None = None
    alias: str | None = None


class LiteralKind(str, Enum):
    STRING = "string"
    NUMERIC = "numeric"
    TEXT = "text"


@dataclass(frozen=True)
class LiteralOperand:
    value: str
    kind: LiteralKind = LiteralKind.TEXT

    @property
    def formatted(self) -> str:
        return f'"{self.value}"' if self.kind is LiteralKind.STRING else self.value


@dataclass(frozen=True)
class ConstantOperand:
    constant_id: str | None = None


@dataclass(frozen=True)
class SystemVariableOperand:
    variable_id: str | None = None


@dataclass(frozen=True)
class UnknownOperand:
    """Operand element with an unrecognised tag, kept with its text."""

    tag: str
    text: str = ""


Operand = Union[MemberOperand, VariableOperand, LiteralOperand, ConstantOperand, SystemVariableOperand, UnknownOperand]


# =============================================================================
# STATEMENTS
# =============================================================================


@dataclass(frozen=True)
class VariableDeclaration:
    variable_id: str
    name: str
    alias: str
    data_type: str | None = None
    size: str | None = None

    @property
    def display_name(self) -> str:
        return f"{self.name} [{self.alias}]"


@dataclass(frozen=True)
class CriterionNode:
    """One comparison of a condition (``CRE_NODE``)."""

    comparison: str = "EQUAL"
    subject: Operand | None = None
    predicate: Operand | None = None


@dataclass(frozen=True)
class ConditionOpen:
    """If/While header; the human description is split into clauses when rendered."""

    keyword: str
    description: str | None = None
    nodes: tuple[CriterionNode, ...] = ()


@dataclass(frozen=True)
class ElseMarker:
    pass


@dataclass(frozen=True)
class EndIfMarker:
    pass


@dataclass(frozen=True)
class EndWhileMarker:
    pass


@dataclass(frozen=True)
class BusinessFunctionParam:
    copy_word: str | None
    item_id: str | None
    operand: Operand | None


@dataclass(frozen=True)
class BusinessFunctionCall:
    function_name: str
    template_name: str
    parameters: tuple[BusinessFunctionParam, ...] = ()


@dataclass(frozen=True)
class FileIoParam:
    """One column binding: ``source`` (from) flows to/from the ``target_column`` (to)."""

    copy_word: str | None
    data_item: str | None
    source: Operand | None
    target: Operand | None
    data_dict: str | None = None
    target_column: str | None = None


@dataclass(frozen=True)
class FileIoOperation:
    table_name: str
    operation: str | None
    index_id: str | None = None
    parameters: tuple[FileIoParam, ...] = ()


@dataclass(frozen=True)
class Assignment:
    """``target = value`` as written in the event rule text, plus its operands."""

    text: str | None
    target: Operand | None = None
    source: Operand | None = None

    @property
    def target_text(self) -> str:
        return (self.text or "").split("=", 1)[0].strip()

    @property
    def value_text(self) -> str:
        parts = (self.text or "").split("=", 1)
        return parts[1].strip() if len(parts) > 1 else ""


@dataclass(frozen=True)
class Comment:
    text: str


@dataclass(frozen=True)
class SystemFunctionCall:
    summary: str


Statement = Union[
    VariableDeclaration,
    ConditionOpen,
    ElseMarker,
    EndIfMarker,
    EndWhileMarker,
    BusinessFunctionCall,
    FileIoOperation,
    Assignment,
    Comment,
    SystemFunctionCall,
]


# =============================================================================
# TREE
# =============================================================================


@dataclass(frozen=True)
class EventRulesTree:
    """One event rules document, statements in document order."""

    event_spec_key: str
    statements: tuple[Statement, ...] = ()
    skipped_tags: tuple[str, ...] = field(default=(), compare=False)

    def __iter__(self) -> Iterator[Statement]:
        return iter(self.statements)

    def __len__(self) -> int:
        return len(self.statements)

    def of_type(self, kind: type) -> list:
        return [statement for statement in self.statements if isinstance(statement, kind)]

    def table_names(self) -> list[str]:
        """Distinct file I/O tables, first occurrence order, case-insensitive."""
        return _distinct(s.table_name for s in self.of_type(FileIoOperation))

    def data_items(self) -> list[str]:
        """Distinct data items referenced by file I/O parameters."""
        items = []
        for operation in self.of_type(FileIoOperation):
            for param in operation.parameters:
                items.extend((param.data_dict, param.target_column))
        return _distinct(items)

    def business_function_templates(self) -> list[str]:
        return _distinct(s.template_name for s in self.of_type(BusinessFunctionCall))

    def template_names(self) -> list[str]:
        """Templates referenced by calls or by member operands."""
        names: list[str | None] = list(self.business_function_templates())
        for operand in self.operands():
            if isinstance(operand, MemberOperand):
                names.append(operand.template_name)
        return _distinct(names)

    def operands(self) -> Iterator[Operand]:
        for statement in self.statements:
            if isinstance(statement, BusinessFunctionCall):
                candidates = [param.operand for param in statement.parameters]
            elif isinstance(statement, FileIoOperation):
                candidates = [o for param in statement.parameters for o in (param.source, param.target)]
            elif isinstance(statement, ConditionOpen):
                candidates = [o for node in statement.nodes for o in (node.subject, node.predicate)]
            elif isinstance(statement, Assignment):
                candidates = [statement.target, statement.source]
            else:
                continue
            yield from (operand for operand in candidates if operand is not None)


def _distinct(values) -> list[str]:
    seen: set[str] = set()
    result = []
    for value in values:
        if value is None or not value.strip():
            continue
        key = value.strip().upper()
        if key not in seen:
            seen.add(key)
            result.append(value.strip())
    return result


__all__ = [
    "Assignment",
    "BusinessFunctionCall",
    "BusinessFunctionParam",
    "Comment",
    "ConditionOpen",
    "ConstantOperand",
    "CriterionNode",
    "ElseMarker",
    "EndIfMarker",
    "EndWhileMarker",
    "EventRulesTree",
    "FileIoOperation",
    "FileIoParam",
    "LiteralKind",
    "LiteralOperand",
    "MemberOperand",
    "Operand",
    "Statement",
    "SystemFunctionCall",
    "SystemVariableOperand",
    "UnknownOperand",
    "VariableDeclaration",
    "VariableOperand",
]
