import logging

import pytest
from lxml import etree

from digirepo.oai.crosswalk.dublin_core import DublinCoreGenerator
from digirepo.oai.protocol.formats import OAI_DC
from tests.fixtures.store import StoreFixture

DC = "http://purl.org/dc/elements/1.1/"


class TestDublinCoreGenerator:
    def test_generate(self, store_fixture: StoreFixture):
        obj = store_fixture.object(
            "ab12cd34",
            properties={
                "dcterms:title": "Soil ecology",
                "dc:title": "Ignored, dcterms:title comes first",
                "ual:dissertant": "Doe, Jane",
                "dc:subject": ["Botany", "Soil"],
                "dcterms:created": "2014-01-01",
                "dcterms:license": "CC-BY",
            },
        )
        element = DublinCoreGenerator().generate(obj, OAI_DC)
        assert element is not None

        assert element.tag == f"{{{OAI_DC.namespace}}}dc"
        assert element.get(
            "{http://www.w3.org/2001/XMLSchema-instance}schemaLocation"
        ) == f"{OAI_DC.namespace} {OAI_DC.schema_url}"
        assert [(etree.QName(child).localname, child.text) for child in element] == [
            ("title", "Soil ecology"),
            ("creator", "Doe, Jane"),
            ("subject", "Botany"),
            ("subject", "Soil"),
            ("date", "2014-01-01"),
            ("rights", "CC-BY"),
        ]
        assert all(etree.QName(child).namespace == DC for child in element)

    def test_identifier_format(self, store_fixture: StoreFixture):
        obj = store_fixture.object("ab12cd34", properties={"dcterms:title": "Soil"})
        element = DublinCoreGenerator(
            identifier_format="https://repository.example.org/items/{}"
        ).generate(obj, OAI_DC)
        assert element is not None
        assert element.findtext(f"{{{DC}}}identifier") == (
            "https://repository.example.org/items/ab12cd34"
        )

    def test_no_properties(
        self, store_fixture: StoreFixture, caplog: pytest.LogCaptureFixture
    ):
        caplog.set_level(logging.INFO)
        obj = store_fixture.object(properties={"ual:unrelated": "x"})
        assert DublinCoreGenerator().generate(obj, OAI_DC) is None
        assert "has no Dublin Core properties" in caplog.text
