"""Tests for speclens.xmlengine.normalize module."""

import pytest

from speclens.core.errors import SpecParseError
from speclens.xmlengine.normalize import (
    attr,
    children,
    descendants,
    first_descendant,
    local_name,
    normalize_xml_payload,
    parse_xml,
    text_content,
)


class TestNormalizeXmlPayload:
    """Test payload cleanup."""

    @pytest.mark.parametrize(
        "raw",
        [
            "﻿<root/>",
            "\x00\x00<root/>\x00",
            "​  <root/>",
            "garbage<root/>",
            "  \n<root/>",
        ],
    )
    def test_strips_padding_before_root(self, raw):
        assert normalize_xml_payload(raw) == "<root/>"

    def test_content_after_first_element_preserved(self):
        assert normalize_xml_payload("xx<a>b c</a>") == "<a>b c</a>"

    def test_no_angle_bracket_returns_cleaned_text(self):
        assert normalize_xml_payload("\x00 plain text ") == "plain text "

    @pytest.mark.parametrize("raw", ["﻿\x00junk<a>​</a>", "", "  ", "<a/>", "x\x00y<z/>"])
    def test_idempotent(self, raw):
        once = normalize_xml_payload(raw)
        assert normalize_xml_payload(once) == once
        assert not any(char in once for char in ("\x00", "﻿", "​"))


class TestParseXml:
    """Test parse_xml."""

    def test_parses_with_declaration_and_padding(self):
        root = parse_xml('﻿<?xml version="1.0" encoding="UTF-16"?><root a="1"/>\x00')
        assert local_name(root) == "root"
        assert attr(root, "a") == "1"

    def test_malformed_raises_parse_error(self):
        with pytest.raises(SpecParseError) as exc_info:
            parse_xml("<root><unclosed></root>", spec_key="EV1")
        assert exc_info.value.context.spec_key == "EV1"
        assert exc_info.value.cause is not None


class TestElementHelpers:
    """Test namespace-agnostic helpers."""

    XML = (
        '<root xmlns="http://jde" xmlns:x="http://other">'
        '<a id="1"><b x:name="inner">text<c/>tail</b></a>'
        '<b id="2"/>'
        "</root>"
    )

    def test_local_name_strips_namespace(self):
        root = parse_xml(self.XML)
        assert root.tag == "{http://jde}root"
        assert local_name(root) == "root"

    def test_descendants_in_document_order_excluding_self(self):
        root = parse_xml(self.XML)
        assert [local_name(e) for e in descendants(root)] == ["a", "b", "c", "b"]

    def test_first_descendant(self):
        root = parse_xml(self.XML)
        assert local_name(first_descendant(root)) == "a"
        assert attr(first_descendant(root, "b"), "x:name") is None
        assert first_descendant(root, "missing") is None

    def test_children_filters_direct_children(self):
        root = parse_xml(self.XML)
        assert [attr(e, "id") for e in children(root, "b")] == ["2"]
        assert len(children(root)) == 2

    def test_attr_matches_namespaced_attribute(self):
        root = parse_xml(self.XML)
        assert attr(first_descendant(root, "b"), "name") == "inner"
        assert attr(None, "name") is None

    def test_text_content_includes_children(self):
        root = parse_xml(self.XML)
        assert text_content(first_descendant(root, "b")) == "texttail"
