"""
Tests for speclens.xmlengine.template module.

Covers:
- Parsing items, description and declared name from template XML
- Skipping incomplete items, first-wins on duplicate ids
- Display-sequence ordering and template formatting
"""

import pytest

from speclens.core.errors import SpecParseError, ValidationError
from speclens.xmlengine.normalize import parse_xml
from speclens.xmlengine.template import DataStructureTemplate, TemplateItem, find_template_name, format_template


class TestParse:
    """Test DataStructureTemplate.parse."""

    def test_parses_items(self, template_xml):
        template = DataStructureTemplate.parse("D0001", template_xml)

        assert template.template_name == "D0001"
        assert template.description == "Test Template"
        assert template.declared_name == "D0001"
        assert len(template) == 3
        assert template.try_get_item("1") == TemplateItem("1", "1", "IN", "AL1", "Field1")
        assert template.try_get_item("2").display_name == "Field2 [AL2]"

    def test_name_is_trimmed(self, template_xml):
        assert DataStructureTemplate.parse("  D0001 ", template_xml).template_name == "D0001"

    def test_incomplete_items_skipped(self):
        xml = (
            "<root><Template>"
            '<Item ItemID="1" DisplaySequence="1" CopyWord="IN" DDAlias="AN8" FieldName="mnAddressNumber" />'
            '<Item ItemID="2" DisplaySequence="2" CopyWord="IN" DDAlias="" FieldName="szName" />'
            '<Item ItemID="3" DisplaySequence="3" CopyWord="IN" FieldName="szOther" />'
            "</Template></root>"
        )
        template = DataStructureTemplate.parse("D0002", xml)
        assert list(template.items_by_id) == ["1"]

    def test_duplicate_id_first_wins(self):
        xml = (
            "<root><Template>"
            '<Item ItemID="1" DisplaySequence="1" CopyWord="IN" DDAlias="AN8" FieldName="first" />'
            '<Item ItemID="1" DisplaySequence="2" CopyWord="OUT" DDAlias="AN8" FieldName="second" />'
            "</Template></root>"
        )
        template = DataStructureTemplate.parse("D0003", xml)
        assert template.try_get_item("1").field_name == "first"

    def test_no_template_element(self):
        template = DataStructureTemplate.parse("D0004", "<root/>")
        assert len(template) == 0
        assert format_template(template) == ""

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_rejected(self, name, template_xml):
        with pytest.raises(ValidationError):
            DataStructureTemplate.parse(name, template_xml)

    def test_blank_xml_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            DataStructureTemplate.parse("D0001", "  ")
        assert exc_info.value.context.template_name == "D0001"

    def test_malformed_xml(self):
        with pytest.raises(SpecParseError):
            DataStructureTemplate.parse("D0001", "<root><Template></root>")


class TestLookup:
    """Test item lookup and immutability."""

    @pytest.mark.parametrize("item_id", [None, "", "  ", "99"])
    def test_missing_items(self, item_id, template_xml):
        template = DataStructureTemplate.parse("D0001", template_xml)
        assert template.try_get_item(item_id) is None

    def test_lookup_trims_id(self, template_xml):
        template = DataStructureTemplate.parse("D0001", template_xml)
        assert template.try_get_item(" 3 ").alias == "AL3"

    def test_items_mapping_is_read_only(self, template_xml):
        template = DataStructureTemplate.parse("D0001", template_xml)
        with pytest.raises(TypeError):
            template.items_by_id["4"] = template.try_get_item("1")


class TestFormatTemplate:
    """Test format_template ordering and layout."""

    def test_formats_in_display_order(self):
        xml = (
            "<root><Template>"
            '<Item ItemID="2" DisplaySequence="10" CopyWord="OUT" DDAlias="ALPH" FieldName="szName" />'
            '<Item ItemID="1" DisplaySequence="2" CopyWord="IN" DDAlias="AN8" FieldName="mnAddressNumber" />'
            "</Template></root>"
        )
        assert format_template(DataStructureTemplate.parse("D0001", xml)) == (
            "2. IN mnAddressNumber [AN8]\n10. OUT szName [ALPH]"
        )

    def test_fixture_template(self, template_xml):
        assert format_template(DataStructureTemplate.parse("D0001", template_xml)) == (
            "1. IN Field1 [AL1]\n2. OUT Field2 [AL2]\n3. INOUT Field3 [AL3]"
        )


class TestFindTemplateName:
    """Test declared-name discovery."""

    def test_root_attribute(self):
        assert find_template_name(parse_xml('<root szTmplName=" D0001 "/>')) == "D0001"

    def test_nested_attribute(self):
        root = parse_xml('<root><Template><Meta sztmplname="D0009"/></Template></root>')
        assert find_template_name(root) == "D0009"

    def test_absent(self):
        assert find_template_name(parse_xml("<root/>")) is None
