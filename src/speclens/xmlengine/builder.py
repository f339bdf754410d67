"""Build an ``EventRulesTree`` from event rules XML."""

from __future__ import annotations

import xml.etree.ElementTree as ET

from speclens.core.errors import ValidationError
from speclens.core.logging import get_logger
from speclens.xmlengine.normalize import (
    attr,
    children,
    descendants,
    first_descendant,
    local_name,
    parse_xml,
    text_content,
)
from speclens.xmlengine.tree import (
    Assignment,
    BusinessFunctionCall,
    BusinessFunctionParam,
    Comment,
    ConditionOpen,
    ConstantOperand,
    CriterionNode,
    ElseMarker,
    EndIfMarker,
    EndWhileMarker,
    EventRulesTree,
    FileIoOperation,
    FileIoParam,
    LiteralKind,
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

# Structural tags that are consumed by their parent statement
_NESTED_TAGS = frozenset({"GBREvent", "GBRParam"})


def build_event_tree(xml: str, *, event_spec_key: str | None = None) -> EventRulesTree:
    """Parse event rules XML into the intermediate tree.

    The root ``szEventSpecKey`` attribute names the tree; ``event_spec_key``
    is used when the attribute is missing.

    Raises:
        ValidationError: ``xml`` is blank
        SpecParseError: ``xml`` is not well-formed
    """
    if not xml or not xml.strip():
        raise ValidationError("Event rules XML is required.", field="xml").with_context(spec_key=event_spec_key)

    root = parse_xml(xml, spec_key=event_spec_key)
    return build_event_tree_from_element(root, event_spec_key=event_spec_key)


def build_event_tree_from_element(root: ET.Element, *, event_spec_key: str | None = None) -> EventRulesTree:
    statements: list[Statement] = []
    skipped: list[str] = []

    for element in descendants(root):
        name = local_name(element)
        handler = _HANDLERS.get(name)
        if handler is not None:
            statement = handler(element)
            if statement is not None:
                statements.append(statement)
        elif name.startswith("GBR") and name not in _NESTED_TAGS:
            skipped.append(name)

    key = (attr(root, "szEventSpecKey") or event_spec_key or "").strip()
    if skipped:
        logger.debug("event_tags_skipped", event_spec_key=key, tags=sorted(set(skipped)))
    return EventRulesTree(event_spec_key=key, statements=tuple(statements), skipped_tags=tuple(skipped))


# =============================================================================
# OPERANDS
# =============================================================================


def _dbref(element: ET.Element | None) -> str | None:
    if element is None:
        return None
    ref = element if local_name(element) == "Dbref" else first_descendant(element, "Dbref")
    return attr(ref, "szDict")


def _literal(element: ET.Element) -> LiteralOperand:
    for child in descendants(element):
        name = local_name(child).lower()
        if name.startswith("literal"):
            kind = LiteralKind.STRING if name == "literalstring" else LiteralKind.NUMERIC
            return LiteralOperand(text_content(child).strip(), kind)
    return LiteralOperand(text_content(element).strip())


def build_operand(element: ET.Element | None) -> Operand | None:
    """Typed operand for a ``DSOBJ*`` element."""
    if element is None:
        return None
    name = local_name(element)
    if name == "DSOBJMember":
        return MemberOperand(
            item_id=attr(element, "idItem"),
            template_name=attr(element, "szTmplName"),
            dbref=_dbref(element),
        )
    if name == "DSOBJVariable":
        return VariableOperand(variable_id=attr(element, "idVariable"), alias=attr(element, "szDict"))
    if name == "DSOBJLiteral":
        return _literal(element)
    if name == "DSOBJConstant":
        return ConstantOperand(constant_id=attr(element, "idConstant"))
    if name == "DSOBJSystemVariable":
        return SystemVariableOperand(variable_id=attr(element, "idVariable"))
    return UnknownOperand(tag=name, text=text_content(element).strip())


def _first_child(element: ET.Element | None) -> ET.Element | None:
    if element is None:
        return None
    found = children(element)
    return found[0] if found else None


def _held_operand(element: ET.Element, holder_name: str) -> Operand | None:
    """Operand inside the first ``holder_name`` descendant (zSubject, ObjTo, ...)."""
    holder = first_descendant(element, holder_name)
    if holder is None:
        return None
    return build_operand(first_descendant(holder))


# =============================================================================
# STATEMENTS
# =============================================================================


def _variable(element: ET.Element) -> VariableDeclaration | None:
    declared = first_descendant(element, "DSOBJVariable")
    variable_id = (attr(declared, "idVariable") or "").strip()
    if not variable_id:
        return None
    return VariableDeclaration(
        variable_id=variable_id,
        name=attr(element, "szVariableName") or "Could Not Parse Variable Name",
        alias=attr(declared, "szDict") or "N/A",
        data_type=attr(declared, "dataType"),
        size=attr(declared, "size"),
    )


def _condition(element: ET.Element) -> ConditionOpen:
    keyword = (attr(element, "type") or "").strip() or "If"
    header = first_descendant(element, "CRE_HEADER")
    nodes = []
    if header is not None:
        for node in descendants(header):
            if local_name(node) != "CRE_NODE":
                continue
            nodes.append(
                CriterionNode(
                    comparison=attr(node, "eCompType") or "EQUAL",
                    subject=_held_operand(node, "zSubject"),
                    predicate=_held_operand(node, "zPredicate"),
                )
            )
    return ConditionOpen(keyword=keyword.lower().title(), description=attr(element, "lpszCritDesc"), nodes=tuple(nodes))


def _business_function(element: ET.Element) -> BusinessFunctionCall:
    parameters = tuple(
        BusinessFunctionParam(
            copy_word=attr(param, "wCopyWord"),
            item_id=attr(param, "idItem"),
            operand=build_operand(_first_child(param)),
        )
        for param in children(element, "ERPARAM")
    )
    return BusinessFunctionCall(
        function_name=attr(element, "szFuncName") or "UnknownFunction",
        template_name=(attr(element, "szTmplName") or "").strip(),
        parameters=parameters,
    )


def _file_io(element: ET.Element) -> FileIoOperation:
    parameters = []
    for param in children(element, "GBRParam"):
        items = children(param, "DSItem")
        if not items:
            continue
        item = items[0]
        source = _first_child(first_descendant(item, "DsObjFrom"))
        target = _first_child(first_descendant(item, "DsObjTo"))
        parameters.append(
            FileIoParam(
                copy_word=attr(item, "copyWord"),
                data_item=attr(item, "dataItem"),
                source=build_operand(source),
                target=build_operand(target),
                data_dict=_dbref(item),
                target_column=_dbref(target),
            )
        )
    return FileIoOperation(
        table_name=(attr(first_descendant(element, "DSOBJFileIO"), "Name") or "").strip() or "UnknownTable",
        operation=attr(element, "operation"),
        index_id=attr(element, "indexId"),
        parameters=tuple(parameters),
    )


def _assignment(element: ET.Element) -> Assignment:
    return Assignment(
        text=attr(element, "textString"),
        target=_held_operand(element, "ObjTo"),
        source=_held_operand(element, "ObjFrom"),
    )


def _comment(element: ET.Element) -> Comment:
    text = attr(element, "comment_text")
    if text is None:
        text = text_content(element)
    # long comments wrap inside one element
    return Comment(text=text.replace("\r", "").replace("\n", ""))


def _system_function(element: ET.Element) -> SystemFunctionCall:
    summary = attr(element, "summary_text") or "System Function"
    return SystemFunctionCall(summary=summary.replace("&quot;", '"'))


_HANDLERS = {
    "GBRVAR": _variable,
    "GBRCRIT": _condition,
    "GBRElse": lambda element: ElseMarker(),
    "GBREndIf": lambda element: EndIfMarker(),
    "GBREndWhile": lambda element: EndWhileMarker(),
    "GBRBF": _business_function,
    "GBRFileIOOp": _file_io,
    "GBRASSIGN": _assignment,
    "GBRCOMMENT": _comment,
    "GBRSLBF": _system_function,
}


__all__ = ["build_event_tree", "build_event_tree_from_element", "build_operand"]
