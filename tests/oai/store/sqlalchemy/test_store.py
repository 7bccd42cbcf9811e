from datetime import timedelta

import pytest
from sqlalchemy import inspect

from digirepo.oai.protocol.harvest import HarvestFilter, SearchCriterion, SearchFilter
from digirepo.oai.store.base import RepositorySet
from digirepo.oai.store.sqlalchemy.session import SessionManager
from digirepo.oai.util.datetime_helpers import datetime_utc
from tests.fixtures.database import DatabaseFixture


class TestSessionManager:
    def test_initialize_schema(self, db: DatabaseFixture):
        tables = set(inspect(db.engine).get_table_names())
        assert {
            "communities",
            "collections",
            "repository_items",
            "item_properties",
            "item_set_memberships",
            "binaries",
        } <= tables

        # Initializing twice is harmless.
        SessionManager.initialize_schema(db.engine)


class TestSqlAlchemyObjectStore:
    def test_to_repository_object(self, db: DatabaseFixture):
        official = db.collection("b")
        unofficial = db.collection("private", is_official=False)
        other = db.collection("a")
        last_modified = datetime_utc(2014, 2, 3, 4, 5, 6, 789)
        db.item(
            "ab12cd34",
            object_type="Thesis",
            collections=[official, unofficial, other],
            last_modified=last_modified,
            properties={"dcterms:title": "Soil", "dc:subject": ["Botany", "Geology"]},
        )

        obj = db.store.find("ab12cd34")
        assert obj is not None
        assert obj.path == "/items/ab12cd34"
        assert obj.local_name == "ab12cd34"
        assert obj.last_modified == last_modified
        assert obj.object_type == "Thesis"
        # Only official collections are sets.
        assert obj.set_specs == ("a", "b")
        assert obj.values("dc:subject") == ("Botany", "Geology")
        assert obj.first("dcterms:title") == "Soil"

    def test_find(self, db: DatabaseFixture):
        db.item("private", is_public=False)
        assert db.store.find("private") is None
        assert db.store.find("missing") is None

    def test_match(self, db: DatabaseFixture):
        theses = db.collection("theses")
        db.item("b", collections=[theses], last_modified=datetime_utc(2014, 6, 1))
        db.item("a", collections=[theses], last_modified=datetime_utc(2014, 6, 2))
        db.item("c", last_modified=datetime_utc(2014, 6, 3))
        db.item("d", is_public=False, collections=[theses])

        page = db.store.match(HarvestFilter("oai_dc", limit=2))
        assert [obj.local_name for obj in page.items] == ["a", "b"]
        assert page.total == 3

        page = db.store.match(HarvestFilter("oai_dc", offset=2, limit=2))
        assert [obj.local_name for obj in page.items] == ["c"]
        assert page.total == 3

        page = db.store.match(HarvestFilter("oai_dc", set_spec="theses"))
        assert [obj.local_name for obj in page.items] == ["a", "b"]

        page = db.store.match(
            HarvestFilter(
                "oai_dc",
                from_=datetime_utc(2014, 6, 2),
                until=datetime_utc(2014, 6, 2, 23, 59, 59),
            )
        )
        assert [obj.local_name for obj in page.items] == ["a"]

    def test_match_until_is_inclusive_to_the_second(self, db: DatabaseFixture):
        until = datetime_utc(2014, 6, 1, 12, 0, 0)
        db.item("inside", last_modified=until + timedelta(microseconds=999_999))
        db.item("outside", last_modified=until + timedelta(seconds=1))
        page = db.store.match(HarvestFilter("oai_dc", until=until))
        assert [obj.local_name for obj in page.items] == ["inside"]

    def test_match_until_last_representable_second(self, db: DatabaseFixture):
        db.item("ab12cd34", last_modified=datetime_utc(2014, 6, 1))
        page = db.store.match(
            HarvestFilter("oai_dc", until=datetime_utc(9999, 12, 31, 23, 59, 59))
        )
        assert [obj.local_name for obj in page.items] == ["ab12cd34"]

    def test_match_unofficial_set(self, db: DatabaseFixture):
        private = db.collection("private", is_official=False)
        db.item(collections=[private])
        page = db.store.match(HarvestFilter("oai_dc", set_spec="private"))
        assert page.items == ()
        assert page.total == 0

    def test_match_object_type(self, db: DatabaseFixture):
        db.item("article", object_type="Article")
        db.item("thesis", object_type="Thesis")
        page = db.store.match(HarvestFilter("oai_etdms", object_type="Thesis"))
        assert [obj.local_name for obj in page.items] == ["thesis"]

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("oil", ["a", "b"]),
            ("ecology", ["a"]),
            ("100%", ["c"]),
            ("_", []),
        ],
    )
    def test_search(self, db: DatabaseFixture, value: str, expected: list[str]):
        db.item("a", properties={"dcterms:title": "Soil ecology"})
        db.item("b", properties={"dcterms:title": ["Glaciers", "Topsoil"]})
        db.item("c", properties={"dcterms:title": "100% cotton"})
        db.item("d", properties={"dc:subject": "Soil"})
        page = db.store.search(
            SearchFilter("oai_dc", SearchCriterion("dcterms:title", value))
        )
        assert [obj.local_name for obj in page.items] == expected
        assert page.total == len(expected)

    def test_list_sets(self, db: DatabaseFixture):
        sciences = db.community("Sciences")
        db.collection("c", "Gamma")
        db.collection("a", "Alpha", community=sciences)
        db.collection("b", "Beta")
        db.collection("private", is_official=False)

        page = db.store.list_sets(0, 2)
        assert list(page.items) == [
            RepositorySet("a", "Alpha", "Sciences"),
            RepositorySet("b", "Beta", None),
        ]
        assert page.total == 3

        page = db.store.list_sets(2, 2)
        assert list(page.items) == [RepositorySet("c", "Gamma", None)]

    def test_earliest_datestamp(self, db: DatabaseFixture):
        assert db.store.earliest_datestamp() is None
        db.item(last_modified=datetime_utc(2015, 1, 1))
        db.item(last_modified=datetime_utc(2013, 1, 1))
        db.item(last_modified=datetime_utc(2012, 1, 1), is_public=False)
        assert db.store.earliest_datestamp() == datetime_utc(2013, 1, 1)

    def test_read_binary(self, db: DatabaseFixture):
        db.binary("/binaries/a.xml", b"<a/>")
        assert db.store.read_binary("/binaries/a.xml") == b"<a/>"
        assert db.store.read_binary("/binaries/b.xml") is None
