"""
Tests for speclens.xmlengine.builder module.

Covers:
- Statement construction for every GBR* element
- Operand typing (member, variable, literal, constant, system variable, unknown)
- Document order, skipped tags and tree queries
"""

import pytest

from speclens.core.errors import SpecParseError, ValidationError
from speclens.xmlengine.builder import build_event_tree, build_operand
from speclens.xmlengine.normalize import parse_xml
from speclens.xmlengine.tree import (
    Assignment,
    BusinessFunctionCall,
    Comment,
    ConditionOpen,
    ConstantOperand,
    ElseMarker,
    EndIfMarker,
    EndWhileMarker,
    FileIoOperation,
    LiteralKind,
    LiteralOperand,
    MemberOperand,
    SystemFunctionCall,
    SystemVariableOperand,
    UnknownOperand,
    VariableDeclaration,
    VariableOperand,
)


class TestBuildOperand:
    """Test operand typing."""

    def test_member(self):
        element = parse_xml('<DSOBJMember idItem="4" szTmplName="D0001"><Dbref szDict="AN8"/></DSOBJMember>')
        operand = build_operand(element)
        assert operand == MemberOperand(item_id="4", template_name="D0001", dbref="AN8")

    def test_variable(self):
        assert build_operand(parse_xml('<DSOBJVariable idVariable="1" szDict="LOTN"/>')) == VariableOperand("1", "LOTN")

    def test_string_literal(self):
        operand = build_operand(parse_xml("<DSOBJLiteral><LiteralString>VALUE</LiteralString></DSOBJLiteral>"))
        assert operand == LiteralOperand("VALUE", LiteralKind.STRING)
        assert operand.formatted == '"VALUE"'

    def test_numeric_literal(self):
        operand = build_operand(parse_xml("<DSOBJLiteral><LiteralNumeric>10</LiteralNumeric></DSOBJLiteral>"))
        assert operand.kind is LiteralKind.NUMERIC
        assert operand.formatted == "10"

    def test_bare_literal(self):
        assert build_operand(parse_xml("<DSOBJLiteral>abc</DSOBJLiteral>")) == LiteralOperand("abc", LiteralKind.TEXT)

    def test_constant_and_system_variable(self):
        assert build_operand(parse_xml('<DSOBJConstant idConstant="C1"/>')) == ConstantOperand("C1")
        assert build_operand(parse_xml('<DSOBJSystemVariable idVariable="SV1"/>')) == SystemVariableOperand("SV1")

    def test_unknown(self):
        assert build_operand(parse_xml("<DSOBJGrid> col </DSOBJGrid>")) == UnknownOperand("DSOBJGrid", "col")

    def test_none(self):
        assert build_operand(None) is None


class TestEndToEndFixture:
    """Test the business function / file I/O fixture."""

    def test_statement_order(self, event_xml):
        tree = build_event_tree(event_xml)
        assert tree.event_spec_key == "EV1"
        assert [type(s) for s in tree] == [VariableDeclaration, BusinessFunctionCall, FileIoOperation]

    def test_variable(self, event_xml):
        variable = build_event_tree(event_xml).statements[0]
        assert variable == VariableDeclaration("1", "evt_var", "LOTN", data_type="String", size="30")
        assert variable.display_name == "evt_var [LOTN]"

    def test_business_function(self, event_xml):
        call = build_event_tree(event_xml).statements[1]
        assert call.function_name == "MyFunc"
        assert call.template_name == "D0001"
        assert [(p.copy_word, p.item_id) for p in call.parameters] == [("OUT", "1"), ("INOUT", "2"), ("IN", "3")]
        assert call.parameters[0].operand == MemberOperand(item_id="1", template_name="D0001")
        assert call.parameters[1].operand == VariableOperand("1")
        assert call.parameters[2].operand == LiteralOperand("VALUE", LiteralKind.STRING)

    def test_file_io(self, event_xml):
        operation = build_event_tree(event_xml).statements[2]
        assert operation.table_name == "F0101"
        assert operation.operation == "FETCH_SINGLE"
        assert operation.index_id == "1"

        first, second, third = operation.parameters
        assert (first.copy_word, first.data_item) == ("IN", "ABCD")
        assert (first.data_dict, first.target_column) == ("ABCD", "ABCD")
        assert first.source == SystemVariableOperand("SV1")
        assert first.target == MemberOperand(dbref="ABCD")
        assert second.source == ConstantOperand("C1")
        assert third.copy_word is None
        assert third.source == LiteralOperand("10", LiteralKind.NUMERIC)

    def test_tree_queries(self, event_xml):
        tree = build_event_tree(event_xml)
        assert tree.table_names() == ["F0101"]
        assert tree.data_items() == ["ABCD", "EFGH", "IJKL"]
        assert tree.business_function_templates() == ["D0001"]
        assert tree.template_names() == ["D0001"]


class TestControlFlowFixture:
    """Test conditions, markers, assignment, comments and system functions."""

    def test_statement_order(self, control_flow_xml):
        tree = build_event_tree(control_flow_xml)
        assert [type(s) for s in tree] == [
            VariableDeclaration,
            ConditionOpen,
            ConditionOpen,
            Comment,
            ElseMarker,
            Assignment,
            EndIfMarker,
            SystemFunctionCall,
            EndWhileMarker,
        ]

    def test_conditions(self, control_flow_xml):
        while_open, if_open = build_event_tree(control_flow_xml).of_type(ConditionOpen)
        assert while_open.keyword == "While"
        assert if_open.keyword == "If"
        assert if_open.description == 'If BF Field2 is not equal to "X"'
        (node,) = if_open.nodes
        assert node.comparison == "NOT_EQ"
        assert node.subject == MemberOperand(item_id="2", template_name="D0001")
        assert node.predicate == LiteralOperand("X", LiteralKind.STRING)

    def test_comment_line_breaks_removed(self, control_flow_xml):
        (comment,) = build_event_tree(control_flow_xml).of_type(Comment)
        assert comment.text == "Fetch the address"

    def test_assignment(self, control_flow_xml):
        (assignment,) = build_event_tree(control_flow_xml).of_type(Assignment)
        assert assignment.target_text == "BF Field3"
        assert assignment.value_text == "5"
        assert assignment.target == MemberOperand(item_id="3", template_name="D0001")
        assert assignment.source == LiteralOperand("5", LiteralKind.NUMERIC)

    def test_system_function_quotes_decoded(self, control_flow_xml):
        (call,) = build_event_tree(control_flow_xml).of_type(SystemFunctionCall)
        assert call.summary == 'Set Grid Color("Red")'

    def test_template_names_include_member_operands(self, control_flow_xml):
        assert build_event_tree(control_flow_xml).template_names() == ["D0001"]


class TestEdgeCases:
    """Test defaults, skipping and errors."""

    def test_variable_without_id_is_dropped(self):
        tree = build_event_tree('<GBREvent><GBRVAR szVariableName="x"><DSOBJVariable szDict="A"/></GBRVAR></GBREvent>')
        assert len(tree) == 0

    def test_variable_defaults(self):
        tree = build_event_tree('<GBREvent><GBRVAR><DSOBJVariable idVariable="3"/></GBRVAR></GBREvent>')
        assert tree.statements[0].display_name == "Could Not Parse Variable Name [N/A]"

    def test_condition_defaults_to_if(self):
        (condition,) = build_event_tree("<GBREvent><GBRCRIT/></GBREvent>").statements
        assert condition.keyword == "If"
        assert condition.nodes == ()

    def test_missing_names_get_placeholders(self):
        tree = build_event_tree("<GBREvent><GBRBF/><GBRFileIOOp/></GBREvent>")
        call, operation = tree.statements
        assert call.function_name == "UnknownFunction"
        assert call.template_name == ""
        assert operation.table_name == "UnknownTable"

    def test_param_without_ds_item_skipped(self):
        tree = build_event_tree('<GBREvent><GBRFileIOOp><DSOBJFileIO Name="F1"/><GBRParam/></GBRFileIOOp></GBREvent>')
        assert tree.statements[0].parameters == ()

    def test_unknown_gbr_tags_recorded(self):
        tree = build_event_tree("<GBREvent><GBRMystery/><GBRElse/><Other/></GBREvent>")
        assert [type(s) for s in tree] == [ElseMarker]
        assert tree.skipped_tags == ("GBRMystery",)

    def test_key_falls_back_to_argument(self):
        assert build_event_tree("<GBREvent/>", event_spec_key="EV9").event_spec_key == "EV9"

    @pytest.mark.parametrize("xml", ["", "   "])
    def test_blank_xml_rejected(self, xml):
        with pytest.raises(ValidationError):
            build_event_tree(xml)

    def test_malformed_xml(self):
        with pytest.raises(SpecParseError):
            build_event_tree("<GBREvent><GBRBF></GBREvent>", event_spec_key="EV1")
