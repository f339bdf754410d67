"""
Readable-ER Renderer.

Walks an ``EventRulesTree`` and emits indented pseudocode, one statement per
line, with every cross-reference (template items, event variables, data
dictionary titles, table indexes, business function engine names) resolved
through plain lookup callables. The renderer never fetches anything itself:
the Spec Resolver prefetches in batches and hands over the results.

Manifesto:
    An unresolved reference never aborts a render. The line is written with
    the best text available (the bare data item, ``Param {id}``, the search
    candidate for a business function) and the render carries on.

Architecture:
    ::

        EventRulesTree ──► ReadableErRenderer.render()
                              │
                              ├── VariableDeclaration  → registered, no line
                              ├── ConditionOpen        → clause lines, indent +1
                              ├── ElseMarker           → indent -1, "Else", indent +1
                              ├── EndIf / EndWhile     → indent -1, "End If" / "End While"
                              ├── BusinessFunctionCall → header + one line per parameter
                              ├── FileIoOperation      → header (+ index) + one line per column
                              ├── Assignment           → "target [alias] = value"
                              ├── Comment              → text
                              └── SystemFunctionCall   → summary
                              │
                              ▼
                        tab-indented lines ──► apply_indent_guides ("|   ")

Examples:
    >>> text = render(
    ...     tree,
    ...     template_lookup=templates.get,
    ...     data_dictionary_titles={"ABCD": "Col A"},
    ...     table_index_lookup=lambda table: indexes.get(table, ()),
    ...     business_function_name_resolver=lambda name: "B" + name[1:],
    ... )
    >>> print(text)
    MyFunc(B0001.MyFunc)
    |   BF Field1 [AL1] <- Field1 [AL1]

Tags:
    event-rules, renderer, pseudocode, speclens

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

import html
from collections.abc import Callable, Mapping, Sequence

from speclens.core.logging import get_logger
from speclens.models.catalog import IndexInfo
from speclens.xmlengine.criteria import ConditionFormatter
from speclens.xmlengine.formatting import (
    INDENT_GUIDE,
    apply_indent_guides,
    format_business_function_param_line,
    format_file_io_operation,
    format_file_io_param_line,
    indent_line,
    prefix_qualifier,
    split_qualifier,
)
from speclens.xmlengine.template import DataStructureTemplate, TemplateItem
from speclens.xmlengine.tree import (
    Assignment,
    BusinessFunctionCall,
    Comment,
    ConditionOpen,
    ConstantOperand,
    ElseMarker,
    EndIfMarker,
    EndWhileMarker,
    EventRulesTree,
    FileIoOperation,
    FileIoParam,
    LiteralOperand,
    MemberOperand,
    Operand,
    Statement,
    SystemFunctionCall,
    SystemVariableOperand,
    UnknownOperand,
    VariableDeclaration,
    VariableOperand,
)

logger = get_logger(__name__)

TemplateLookup = Callable[[str], "DataStructureTemplate | None"]
TableIndexLookup = Callable[[str], Sequence[IndexInfo]]
BusinessFunctionNameResolver = Callable[[str], str]


class ReadableErRenderer:
    """Render event rules trees against a fixed set of lookups.

    Args:
        template_lookup: Template by name, or None when it cannot be resolved
        data_dictionary_titles: Data item → display title (case-insensitive)
        table_index_lookup: Indexes of a table; empty when unknown
        business_function_name_resolver: Engine object name for a template name
        primary_template: Template of the object whose event rules are rendered
        indent_guide: Replacement for each leading tab
    """

    def __init__(
        self,
        template_lookup: TemplateLookup,
        data_dictionary_titles: Mapping[str, str | None],
        table_index_lookup: TableIndexLookup,
        business_function_name_resolver: BusinessFunctionNameResolver,
        *,
        primary_template: DataStructureTemplate | None = None,
        indent_guide: str = INDENT_GUIDE,
    ):
        self._template_lookup = template_lookup
        self._titles = {
            item.strip().upper(): title.strip()
            for item, title in data_dictionary_titles.items()
            if item and title and title.strip()
        }
        self._table_index_lookup = table_index_lookup
        self._resolve_business_function = business_function_name_resolver
        self._primary_template = primary_template
        self._indent_guide = indent_guide

        # Per-render state
        self._lines: list[str] = []
        self._indent = 0
        self._variables: dict[str, VariableDeclaration] = {}
        self._conditions = ConditionFormatter(self._member_label, self._variable_label)

    def render(self, tree: EventRulesTree) -> str:
        """Readable text for ``tree``; empty string when nothing renders."""
        self._lines = []
        self._indent = 0
        self._variables = {}

        for statement in tree:
            self._render_statement(statement)

        logger.debug(
            "event_rules_rendered",
            event_spec_key=tree.event_spec_key,
            statements=len(tree),
            lines=len(self._lines),
        )
        return apply_indent_guides("\n".join(self._lines), self._indent_guide)

    # =========================================================================
    # STATEMENTS
    # =========================================================================

    def _render_statement(self, statement: Statement) -> None:
        if isinstance(statement, VariableDeclaration):
            self._variables[statement.variable_id] = statement
        elif isinstance(statement, ConditionOpen):
            self._emit_all(self._conditions.format(statement))
            self._indent += 1
        elif isinstance(statement, ElseMarker):
            self._dedent()
            self._emit("Else")
            self._indent += 1
        elif isinstance(statement, EndIfMarker):
            self._dedent()
            self._emit("End If")
        elif isinstance(statement, EndWhileMarker):
            self._dedent()
            self._emit("End While")
        elif isinstance(statement, BusinessFunctionCall):
            self._emit_all(self._business_function_lines(statement))
        elif isinstance(statement, FileIoOperation):
            self._emit_all(self._file_io_lines(statement))
        elif isinstance(statement, Assignment):
            self._emit(self._assignment_line(statement))
        elif isinstance(statement, Comment):
            if statement.text.strip():
                self._emit(statement.text)
        elif isinstance(statement, SystemFunctionCall):
            self._emit(statement.summary)
        else:
            raise TypeError(f"Unsupported statement: {type(statement).__name__}")

    def _business_function_lines(self, call: BusinessFunctionCall) -> list[str]:
        engine_name = self._resolve_business_function(call.template_name) or call.template_name
        lines = [f"{call.function_name}({engine_name}.{call.function_name})"]

        template = self._template(call.template_name)
        for param in call.parameters:
            if param.operand is None:
                continue
            item = template.try_get_item(param.item_id) if template else None
            parameter_label = item.display_name if item else f"Param {param.item_id}"
            operand_label = self._operand_label(param.operand, hint=None, member_qualifier="BF")
            line = format_business_function_param_line(param.copy_word, operand_label, parameter_label)
            lines.append(indent_line(line, 1))
        return lines

    def _file_io_lines(self, operation: FileIoOperation) -> list[str]:
        header = f"{operation.table_name}.{format_file_io_operation(operation.operation)}"
        lines = [header + self._index_suffix(operation.table_name, operation.index_id)]

        for param in operation.parameters:
            if param.source is None or param.target is None:
                continue
            source_label = self._operand_label(param.source, hint=param.data_item, member_qualifier="")
            line = format_file_io_param_line(param.copy_word, source_label, self._column_label(param))
            lines.append(indent_line(line, 1))
        return lines

    def _assignment_line(self, assignment: Assignment) -> str:
        if assignment.text is None or not assignment.text.strip():
            return "Assignment"

        target, value = assignment.target_text, assignment.value_text
        if isinstance(assignment.target, VariableOperand):
            alias = assignment.target.alias or self._variable_alias(assignment.target.variable_id)
            left = f"{target} [{alias}] = "
        elif isinstance(assignment.target, MemberOperand):
            left = f"{target} [{self._member_alias(assignment.target)}] = "
        else:
            left = f"{target} = "

        source = assignment.source
        if isinstance(source, LiteralOperand):
            right = html.unescape(value)
        elif isinstance(source, VariableOperand):
            right = f"{value} [{source.alias or self._variable_alias(source.variable_id)}]"
        elif isinstance(source, MemberOperand):
            right = f"{value} [{self._member_alias(source)}]"
        else:
            right = value
        return left + right

    # =========================================================================
    # LABELS
    # =========================================================================

    def _operand_label(self, operand: Operand, *, hint: str | None, member_qualifier: str) -> str:
        qualifier, remainder = split_qualifier(hint)

        if isinstance(operand, MemberOperand):
            label = self._member_label(operand) or remainder or "Member"
            return prefix_qualifier(qualifier or member_qualifier, label)
        if isinstance(operand, VariableOperand):
            label = self._variable_label(operand.variable_id) or remainder or "Variable"
            return prefix_qualifier(qualifier or "VA", label)
        if isinstance(operand, SystemVariableOperand):
            return prefix_qualifier(qualifier or "SV", remainder or operand.variable_id or "SystemVariable")
        if isinstance(operand, ConstantOperand):
            return prefix_qualifier(qualifier or "CO", remainder or operand.constant_id or "Constant")
        if isinstance(operand, LiteralOperand):
            return operand.formatted
        if isinstance(operand, UnknownOperand):
            return remainder or operand.text
        raise TypeError(f"Unsupported operand: {type(operand).__name__}")

    def _column_label(self, param: FileIoParam) -> str:
        column = (param.target_column or "").strip()
        if not column:
            return "UnknownColumn"
        title = self._titles.get(column.upper())
        if title is None:
            logger.debug("data_item_title_missing", data_item=column)
            return column
        return f"{title} [{column}]"

    def _index_suffix(self, table_name: str, index_id: str | None) -> str:
        if index_id is None or not index_id.strip():
            return ""
        try:
            wanted = int(index_id.strip())
        except ValueError:
            logger.warning("index_id_invalid", table_name=table_name, index_id=index_id)
            return ""

        index = next((info for info in self._table_index_lookup(table_name) if info.id == wanted), None)
        if index is None:
            logger.warning("index_unresolved", table_name=table_name, index_id=wanted)
            return ""

        labels = [self._titles.get(key.strip().upper(), key) for key in index.key_columns if key and key.strip()]
        if not labels:
            return f" Index {wanted}"
        return f" Index {wanted} ({', '.join(labels)})"

    def _template(self, template_name: str | None) -> DataStructureTemplate | None:
        if template_name is None or not template_name.strip():
            return None
        return self._template_lookup(template_name.strip())

    def _member_item(self, operand: MemberOperand) -> TemplateItem | None:
        template = self._template(operand.template_name)
        item = template.try_get_item(operand.item_id) if template else None
        if item is None and self._primary_template is not None:
            item = self._primary_template.try_get_item(operand.item_id)
        return item

    def _member_label(self, operand: MemberOperand) -> str | None:
        item = self._member_item(operand)
        return item.display_name if item else None

    def _member_alias(self, operand: MemberOperand) -> str:
        item = self._member_item(operand)
        return item.alias if item else "N/A"

    def _variable_label(self, variable_id: str | None) -> str | None:
        variable = self._variables.get((variable_id or "").strip())
        return variable.display_name if variable else None

    def _variable_alias(self, variable_id: str | None) -> str:
        variable = self._variables.get((variable_id or "").strip())
        return variable.alias if variable else "N/A"

    # =========================================================================
    # OUTPUT
    # =========================================================================

    def _emit(self, line: str) -> None:
        self._lines.append(indent_line(line, self._indent))

    def _emit_all(self, lines: list[str]) -> None:
        for line in lines:
            self._emit(line)

    def _dedent(self) -> None:
        if self._indent > 0:
            self._indent -= 1


def render(
    tree: EventRulesTree,
    template_lookup: TemplateLookup,
    data_dictionary_titles: Mapping[str, str | None],
    table_index_lookup: TableIndexLookup,
    business_function_name_resolver: BusinessFunctionNameResolver,
    *,
    primary_template: DataStructureTemplate | None = None,
    indent_guide: str = INDENT_GUIDE,
) -> str:
    """Render ``tree`` into readable pseudocode with indent guides applied."""
    renderer = ReadableErRenderer(
        template_lookup,
        data_dictionary_titles,
        table_index_lookup,
        business_function_name_resolver,
        primary_template=primary_template,
        indent_guide=indent_guide,
    )
    return renderer.render(tree)


__all__ = [
    "BusinessFunctionNameResolver",
    "ReadableErRenderer",
    "TableIndexLookup",
    "TemplateLookup",
    "render",
]
