"""
Condition clause formatting for If/While headers.

The spec carries a human description such as
``If BF mnAddressNumber is equal to VA evt_mnAN8 and SV Date is greater than 0``
plus one ``CRE_NODE`` per comparison. The description is split into clauses
on ``and``/``or`` (leaving comparators such as "less than or equal to"
intact), each clause is paired with its node by position, and subject and
predicate are rewritten with resolved template and variable names.
"""

from __future__ import annotations

import html
import re
from collections.abc import Callable

from speclens.xmlengine.formatting import apply_qualifier
from speclens.xmlengine.tree import (
    ConditionOpen,
    CriterionNode,
    LiteralOperand,
    MemberOperand,
    Operand,
    VariableOperand,
)

COMPARISONS = {
    "EQUAL": "is equal to",
    "NOT_EQ": "is not equal to",
    "LE_OR_EQ": "is less than or equal to",
    "GR": "is greater than",
    "EQ_OR_EMPTY": "is equal to or empty",
}

_OR_MARKER = "__OR_MARKER__"
_PROTECTED_PHRASES = (
    re.compile(r"\b(less\s+than)\s+or\s+(equal\s+to)\b", re.IGNORECASE),
    re.compile(r"\b(greater\s+than)\s+or\s+(equal\s+to)\b", re.IGNORECASE),
    re.compile(r"\b(equal\s+to)\s+or\s+(empty)\b", re.IGNORECASE),
)
_SPLIT_ON_AND_OR = re.compile(r"\s+(and|or)\s+", re.IGNORECASE)
_PREFIX = re.compile(r"^\s*(if|while|and|or)\b\s*", re.IGNORECASE)


def comparison_phrase(code: str | None) -> str:
    """Readable comparator for an ``eCompType`` code; unknown codes read as equality."""
    return COMPARISONS.get((code or "").strip().upper(), COMPARISONS["EQUAL"])


def normalize_keyword(keyword: str) -> str:
    return keyword.strip().lower().title()


def split_condition_clauses(description: str | None) -> list[str]:
    """Split a condition description into clauses; operators stay on the clause they start.

    >>> split_condition_clauses("If A is equal to B and C is less than or equal to D")
    ['If A is equal to B', 'and C is less than or equal to D']
    """
    if description is None or not description.strip():
        return []

    rule = html.unescape(description).strip()
    for pattern in _PROTECTED_PHRASES:
        rule = pattern.sub(rf"\1 {_OR_MARKER} \2", rule)

    tokens = [token.strip() for token in _SPLIT_ON_AND_OR.split(rule)]
    tokens = [token.replace(_OR_MARKER, "or") for token in tokens if token]
    if not tokens:
        return []

    clauses = [tokens[0]]
    for index in range(1, len(tokens) - 1, 2):
        operator = "or" if tokens[index].lower() == "or" else "and"
        clauses.append(f"{operator} {tokens[index + 1]}")
    return clauses


def extract_prefix(statement: str, default_prefix: str) -> tuple[str, str]:
    """Split a leading If/While/And/Or keyword off a clause."""
    if not statement or not statement.strip():
        return default_prefix, ""
    match = _PREFIX.match(statement)
    if match:
        return normalize_keyword(match.group(1)), statement[match.end() :].strip()
    return default_prefix, statement.strip()


class ConditionFormatter:
    """Format ``ConditionOpen`` statements into one line per clause.

    Args:
        member_label: Display name for a template member operand, or None
        variable_label: Display name for an event variable id, or None
    """

    def __init__(
        self,
        member_label: Callable[[MemberOperand], str | None],
        variable_label: Callable[[str | None], str | None],
    ):
        self._member_label = member_label
        self._variable_label = variable_label

    def format(self, condition: ConditionOpen) -> list[str]:
        keyword = normalize_keyword(condition.keyword or "If")
        clauses = split_condition_clauses(condition.description)
        if not clauses:
            return [keyword]

        lines = []
        for index, clause in enumerate(clauses):
            if index >= len(condition.nodes):
                lines.append(clause)
                continue
            lines.append(self._format_clause(clause, condition.nodes[index], keyword, first=index == 0))
        return lines

    def _format_clause(self, clause: str, node: CriterionNode, keyword: str, *, first: bool) -> str:
        comparison = comparison_phrase(node.comparison)
        subject_text, separator, predicate_text = clause.partition(comparison)
        if not separator:
            return clause

        prefix, subject_text = extract_prefix(subject_text, keyword if first else "")
        subject = self._resolve(node.subject, subject_text, decode_literal=False)
        predicate = self._resolve(node.predicate, predicate_text.strip(), decode_literal=True)
        return f"{prefix or keyword} {subject} {comparison} {predicate}"

    def _resolve(self, operand: Operand | None, fallback: str, *, decode_literal: bool) -> str:
        if isinstance(operand, MemberOperand):
            return apply_qualifier(fallback, self._member_label(operand)) or fallback
        if isinstance(operand, VariableOperand):
            return apply_qualifier(fallback, self._variable_label(operand.variable_id)) or fallback
        if isinstance(operand, LiteralOperand) and decode_literal:
            return html.unescape(fallback)
        return fallback


__all__ = [
    "COMPARISONS",
    "ConditionFormatter",
    "comparison_phrase",
    "extract_prefix",
    "normalize_keyword",
    "split_condition_clauses",
]
