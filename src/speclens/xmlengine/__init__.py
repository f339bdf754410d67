"""
SpecLens XML engine -- templates, event rules trees, rendering and resolution.

Architecture::

    normalize.py    Payload cleanup + namespace-agnostic element helpers
    template.py     DataStructureTemplate / TemplateItem, format_template
    tree.py         Event rules intermediate tree (statements + operands)
    builder.py      Event rules XML → EventRulesTree
    formatting.py   Pure line/qualifier/operation helpers
    criteria.py     If/While clause formatting
    renderer.py     EventRulesTree → readable pseudocode
    resolver.py     SpecResolver (async fetch, cache, prefetch, render)
"""

from speclens.xmlengine.builder import build_event_tree, build_event_tree_from_element, build_operand
from speclens.xmlengine.criteria import ConditionFormatter, extract_prefix, split_condition_clauses
from speclens.xmlengine.formatting import (
    apply_indent_guides,
    apply_qualifier,
    format_business_function_param_line,
    format_file_io_operation,
    format_file_io_param_line,
    format_literal_value,
    indent_line,
    prefix_qualifier,
    split_qualifier,
)
from speclens.xmlengine.normalize import normalize_xml_payload, parse_xml
from speclens.xmlengine.renderer import ReadableErRenderer, render
from speclens.xmlengine.resolver import SpecResolver, business_function_candidate, derive_template_name
from speclens.xmlengine.template import DataStructureTemplate, TemplateItem, format_template
from speclens.xmlengine.tree import EventRulesTree

__all__ = [
    "ConditionFormatter",
    "DataStructureTemplate",
    "EventRulesTree",
    "ReadableErRenderer",
    "SpecResolver",
    "TemplateItem",
    "apply_indent_guides",
    "apply_qualifier",
    "build_event_tree",
    "build_event_tree_from_element",
    "build_operand",
    "business_function_candidate",
    "derive_template_name",
    "extract_prefix",
    "format_business_function_param_line",
    "format_file_io_operation",
    "format_file_io_param_line",
    "format_literal_value",
    "format_template",
    "indent_line",
    "normalize_xml_payload",
    "parse_xml",
    "prefix_qualifier",
    "render",
    "split_condition_clauses",
    "split_qualifier",
]
