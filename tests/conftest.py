"""
Shared pytest fixtures and configuration for speclens tests.

This module provides:
- Settings cache isolation
- The event rules / template XML used by the end-to-end render tests
- A populated InMemoryMetadataService and a SpecResolver over it

Usage:
    Fixtures are auto-discovered by pytest:

    @pytest.mark.asyncio
    async def test_something(resolver, service):
        ...
"""

import sys
from collections.abc import Generator
from pathlib import Path

import pytest

# Ensure speclens package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from speclens.core.settings import clear_settings_cache
from speclens.models import IndexInfo
from speclens.testing import InMemoryMetadataService
from speclens.xmlengine.resolver import SpecResolver


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_cache() -> Generator[None, None, None]:
    """Drop cached settings before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# XML fixtures
# =============================================================================


TEMPLATE_XML = (
    '<root szTmplName="D0001" szDescription="Test Template" xmlns="http://jde">'
    "<Template>"
    '<Item ItemID="1" DisplaySequence="1" CopyWord="IN" DDAlias="AL1" FieldName="Field1" />'
    '<Item ItemID="2" DisplaySequence="2" CopyWord="OUT" DDAlias="AL2" FieldName="Field2" />'
    '<Item ItemID="3" DisplaySequence="3" CopyWord="INOUT" DDAlias="AL3" FieldName="Field3" />'
    "</Template>"
    "</root>"
)

EVENT_XML = (
    '<GBREvent szEventSpecKey="EV1" xmlns="http://jde">'
    '<GBRVAR szVariableName="evt_var">'
    '<DSOBJVariable idVariable="1" szDict="LOTN" wStyle="32" dataType="String" size="30" />'
    "</GBRVAR>"
    '<GBRBF szFuncName="MyFunc" szTmplName="D0001">'
    '<ERPARAM wCopyWord="OUT" idItem="1">'
    '<DSOBJMember idItem="1" szTmplName="D0001" />'
    "</ERPARAM>"
    '<ERPARAM wCopyWord="INOUT" idItem="2">'
    '<DSOBJVariable idVariable="1" />'
    "</ERPARAM>"
    '<ERPARAM wCopyWord="IN" idItem="3">'
    "<DSOBJLiteral><LiteralString>VALUE</LiteralString></DSOBJLiteral>"
    "</ERPARAM>"
    "</GBRBF>"
    '<GBRFileIOOp operation="FETCH_SINGLE" indexId="1">'
    '<DSOBJFileIO Name="F0101" />'
    "<GBRParam>"
    '<DSItem copyWord="IN" dataItem="ABCD">'
    '<Dbref szDict="ABCD" />'
    '<DsObjFrom><DSOBJSystemVariable idVariable="SV1" /></DsObjFrom>'
    '<DsObjTo><DSOBJMember><Dbref szDict="ABCD" /></DSOBJMember></DsObjTo>'
    "</DSItem>"
    "</GBRParam>"
    "<GBRParam>"
    '<DSItem copyWord="OUT" dataItem="EFGH">'
    '<Dbref szDict="EFGH" />'
    '<DsObjFrom><DSOBJConstant idConstant="C1" /></DsObjFrom>'
    '<DsObjTo><DSOBJMember><Dbref szDict="EFGH" /></DSOBJMember></DsObjTo>'
    "</DSItem>"
    "</GBRParam>"
    "<GBRParam>"
    '<DSItem dataItem="IJKL">'
    '<Dbref szDict="IJKL" />'
    "<DsObjFrom><DSOBJLiteral><LiteralNumeric>10</LiteralNumeric></DSOBJLiteral></DsObjFrom>"
    '<DsObjTo><DSOBJMember><Dbref szDict="IJKL" /></DSOBJMember></DsObjTo>'
    "</DSItem>"
    "</GBRParam>"
    "</GBRFileIOOp>"
    "</GBREvent>"
)

CONTROL_FLOW_XML = (
    '<GBREvent szEventSpecKey="EV2" xmlns="http://jde">'
    '<GBRVAR szVariableName="evt_mnAN8">'
    '<DSOBJVariable idVariable="7" szDict="AN8" />'
    "</GBRVAR>"
    '<GBRCRIT type="WHILE" lpszCritDesc="While BF Field1 is equal to VA evt_mnAN8">'
    "<CRE_HEADER><CRE_NODE eCompType=\"EQUAL\">"
    '<zSubject><DSOBJMember idItem="1" szTmplName="D0001" /></zSubject>'
    '<zPredicate><DSOBJVariable idVariable="7" szDict="AN8" /></zPredicate>'
    "</CRE_NODE></CRE_HEADER>"
    "</GBRCRIT>"
    '<GBRCRIT type="IF" lpszCritDesc="If BF Field2 is not equal to &quot;X&quot;">'
    "<CRE_HEADER><CRE_NODE eCompType=\"NOT_EQ\">"
    '<zSubject><DSOBJMember idItem="2" szTmplName="D0001" /></zSubject>'
    "<zPredicate><DSOBJLiteral><LiteralString>X</LiteralString></DSOBJLiteral></zPredicate>"
    "</CRE_NODE></CRE_HEADER>"
    "</GBRCRIT>"
    '<GBRCOMMENT comment_text="Fetch the&#13;&#10; address" />'
    "<GBRElse />"
    '<GBRASSIGN textString="BF Field3 = 5">'
    '<ObjTo><DSOBJMember idItem="3" szTmplName="D0001" /></ObjTo>'
    "<ObjFrom><DSOBJLiteral><LiteralNumeric>5</LiteralNumeric></DSOBJLiteral></ObjFrom>"
    "</GBRASSIGN>"
    "<GBREndIf />"
    '<GBRSLBF summary_text="Set Grid Color(&amp;quot;Red&amp;quot;)" />'
    "<GBREndWhile />"
    "</GBREvent>"
)


@pytest.fixture
def template_xml() -> str:
    return TEMPLATE_XML


@pytest.fixture
def event_xml() -> str:
    return EVENT_XML


@pytest.fixture
def control_flow_xml() -> str:
    return CONTROL_FLOW_XML


# =============================================================================
# Service / resolver fixtures
# =============================================================================


@pytest.fixture
def service() -> InMemoryMetadataService:
    """Metadata service populated with the end-to-end fixture data."""
    svc = InMemoryMetadataService()
    svc.add_template("D0001", TEMPLATE_XML)
    svc.add_event_rules("EV1", EVENT_XML)
    svc.add_event_rules("EV2", CONTROL_FLOW_XML)
    svc.add_object("B0001")
    svc.add_index("F0101", IndexInfo(id=1, name="IDX1", is_primary=True, key_columns=("ABCD",)))
    svc.add_title("ABCD", "Col A")
    svc.add_title("EFGH", "Col B")
    svc.add_title("IJKL", "Col C")
    return svc


@pytest.fixture
def resolver(service: InMemoryMetadataService) -> SpecResolver:
    return SpecResolver(service)


# =============================================================================
# Expected renders
# =============================================================================


EXPECTED_EV1 = "\n".join(
    [
        "MyFunc(B0001.MyFunc)",
        "|   BF Field1 [AL1] <- Field1 [AL1]",
        "|   VA evt_var [LOTN] <-> Field2 [AL2]",
        '|   "VALUE" -> Field3 [AL3]',
        "F0101.FetchSingle Index 1 (Col A)",
        "|   SV ABCD -> Col A [ABCD]",
        "|   CO EFGH <- Col B [EFGH]",
        "|   10 = Col C [IJKL]",
    ]
)

EXPECTED_EV2 = "\n".join(
    [
        "While BF Field1 [AL1] is equal to VA evt_mnAN8 [AN8]",
        '|   If BF Field2 [AL2] is not equal to "X"',
        "|   |   Fetch the address",
        "|   Else",
        "|   |   BF Field3 [AL3] = 5",
        "|   End If",
        '|   Set Grid Color("Red")',
        "End While",
    ]
)


@pytest.fixture
def expected_ev1() -> str:
    return EXPECTED_EV1


@pytest.fixture
def expected_ev2() -> str:
    return EXPECTED_EV2
