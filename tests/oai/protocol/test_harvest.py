from datetime import timedelta

import pytest

from digirepo.oai.crosswalk.dublin_core import DublinCoreGenerator
from digirepo.oai.crosswalk.etdms import EtdmsGenerator
from digirepo.oai.protocol.errors import OaiErrorCode, OaiException
from digirepo.oai.protocol.formats import OAI_DC, OAI_ETDMS, MetadataFormatRegistry
from digirepo.oai.protocol.harvest import (
    HarvestFilter,
    HarvestQueryBuilder,
    SearchCriterion,
    SearchFilter,
    parse_datestamp,
)
from digirepo.oai.util.datetime_helpers import datetime_utc
from tests.fixtures.store import StoreFixture


@pytest.fixture
def registry() -> MetadataFormatRegistry:
    return MetadataFormatRegistry.from_configuration(
        [OAI_DC, OAI_ETDMS],
        {"oai_dc": DublinCoreGenerator(), "oai_etdms": EtdmsGenerator()},
    )


class TestDatestamps:
    def test_parse(self):
        assert parse_datestamp("2014-03-04T05:06:07Z", "from") == datetime_utc(
            2014, 3, 4, 5, 6, 7
        )

    @pytest.mark.parametrize(
        "value",
        [
            "2014-03-04",
            "2014-03-04T05:06:07",
            "2014-03-04T05:06:07.123Z",
            "2014-03-04T05:06:07+00:00",
            "2014-3-4T05:06:07Z",
            " 2014-03-04T05:06:07Z",
            "2014-03-04T05:06:07Z\n",
        ],
    )
    def test_parse_wrong_granularity(self, value: str):
        with pytest.raises(OaiException) as excinfo:
            parse_datestamp(value, "until")
        assert excinfo.value.code == OaiErrorCode.BAD_ARGUMENT
        assert "granularity" in excinfo.value.error.message

    def test_parse_impossible_date(self):
        with pytest.raises(OaiException) as excinfo:
            parse_datestamp("2014-02-30T00:00:00Z", "from")
        assert excinfo.value.code == OaiErrorCode.BAD_ARGUMENT
        assert "not a valid date" in excinfo.value.error.message


class TestHarvestFilter:
    def test_invariants(self):
        with pytest.raises(ValueError):
            HarvestFilter("oai_dc", offset=-1)
        with pytest.raises(ValueError):
            HarvestFilter("oai_dc", limit=0)
        with pytest.raises(ValueError):
            HarvestFilter(
                "oai_dc",
                from_=datetime_utc(2015, 1, 1),
                until=datetime_utc(2014, 1, 1),
            )

    def test_matches(self, store_fixture: StoreFixture):
        until = datetime_utc(2014, 6, 1, 12, 0, 0)
        at_until = store_fixture.object(last_modified=until)
        within_until_second = store_fixture.object(
            last_modified=until + timedelta(microseconds=999_999)
        )
        after_until = store_fixture.object(last_modified=until + timedelta(seconds=1))
        before_from = store_fixture.object(last_modified=datetime_utc(2013, 12, 31))

        harvest = HarvestFilter(
            "oai_dc", from_=datetime_utc(2014, 1, 1), until=until
        )
        assert harvest.until_exclusive == until + timedelta(seconds=1)
        assert harvest.matches(at_until)
        assert harvest.matches(within_until_second)
        assert not harvest.matches(after_until)
        assert not harvest.matches(before_from)

    def test_until_last_representable_second(self, store_fixture: StoreFixture):
        harvest = HarvestFilter("oai_dc", until=datetime_utc(9999, 12, 31, 23, 59, 59))
        assert harvest.until_exclusive is None
        assert harvest.matches(store_fixture.object())

    def test_matches_set_and_type(self, store_fixture: StoreFixture):
        thesis = store_fixture.object(object_type="Thesis", set_specs=["theses"])
        article = store_fixture.object(object_type="Article", set_specs=["articles"])

        assert HarvestFilter("oai_dc", set_spec="theses").matches(thesis)
        assert not HarvestFilter("oai_dc", set_spec="theses").matches(article)
        assert HarvestFilter("oai_etdms", object_type="Thesis").matches(thesis)
        assert not HarvestFilter("oai_etdms", object_type="Thesis").matches(article)
        assert HarvestFilter("oai_dc").matches(article)


class TestSearch:
    def test_criterion_token_field(self):
        criterion = SearchCriterion("dcterms:title", "a=b & c")
        field = criterion.to_token_field()
        assert field.count("=") == 1
        assert SearchCriterion.from_token_field(field) == criterion

    @pytest.mark.parametrize("field", ["", "no-separator", "=value"])
    def test_criterion_from_bad_token_field(self, field: str):
        with pytest.raises(ValueError):
            SearchCriterion.from_token_field(field)

    def test_search_filter_matches(self, store_fixture: StoreFixture):
        obj = store_fixture.object(
            properties={"dcterms:title": ["Soil ecology", "Wetlands"]}
        )
        assert SearchFilter("oai_dc", SearchCriterion("dcterms:title", "ecology")).matches(obj)
        assert SearchFilter("oai_dc", SearchCriterion("dcterms:title", "Wet")).matches(obj)
        # Matching is case sensitive.
        assert not SearchFilter("oai_dc", SearchCriterion("dcterms:title", "soil")).matches(obj)
        assert not SearchFilter("oai_dc", SearchCriterion("dc:subject", "Soil")).matches(obj)
        assert not SearchFilter(
            "oai_dc", SearchCriterion("dcterms:title", "Soil"), object_type="Thesis"
        ).matches(obj)


class TestHarvestQueryBuilder:
    def test_build(self, registry: MetadataFormatRegistry):
        builder = HarvestQueryBuilder(registry)
        harvest = builder.build(
            "oai_dc", "2014-01-01T00:00:00Z", "2014-12-31T23:59:59Z", "theses", 10, 20
        )
        assert harvest == HarvestFilter(
            metadata_prefix="oai_dc",
            from_=datetime_utc(2014, 1, 1),
            until=datetime_utc(2014, 12, 31, 23, 59, 59),
            set_spec="theses",
            offset=20,
            limit=10,
            object_type=None,
        )

    def test_build_no_constraints(self, registry: MetadataFormatRegistry):
        harvest = HarvestQueryBuilder(registry).build("oai_dc", None, None, None, 5)
        assert harvest == HarvestFilter("oai_dc", offset=0, limit=5)

    def test_build_restricted_format(self, registry: MetadataFormatRegistry):
        harvest = HarvestQueryBuilder(registry).build("oai_etdms", None, None, None, 5)
        assert harvest.object_type == "Thesis"

    @pytest.mark.parametrize(
        "prefix, from_, until, set_spec, offset, code",
        [
            pytest.param(None, None, None, None, 0, OaiErrorCode.BAD_ARGUMENT, id="no prefix"),
            pytest.param("", None, None, None, 0, OaiErrorCode.BAD_ARGUMENT, id="empty prefix"),
            pytest.param(
                "marc21", None, None, None, 0, OaiErrorCode.CANNOT_DISSEMINATE_FORMAT, id="unknown prefix"
            ),
            pytest.param(
                "oai_dc", "2014-01-01", None, None, 0, OaiErrorCode.BAD_ARGUMENT, id="bad from"
            ),
            pytest.param(
                "oai_dc", None, "yesterday", None, 0, OaiErrorCode.BAD_ARGUMENT, id="bad until"
            ),
            pytest.param(
                "oai_dc",
                "2015-01-01T00:00:00Z",
                "2014-01-01T00:00:00Z",
                None,
                0,
                OaiErrorCode.BAD_ARGUMENT,
                id="from after until",
            ),
            pytest.param(
                "oai_dc", None, None, None, -1, OaiErrorCode.BAD_ARGUMENT, id="negative offset"
            ),
        ],
    )
    def test_build_invalid(
        self,
        registry: MetadataFormatRegistry,
        prefix: str | None,
        from_: str | None,
        until: str | None,
        set_spec: str | None,
        offset: int,
        code: OaiErrorCode,
    ):
        with pytest.raises(OaiException) as excinfo:
            HarvestQueryBuilder(registry).build(prefix, from_, until, set_spec, 10, offset)
        assert excinfo.value.code == code

    def test_build_sets_disabled(self, registry: MetadataFormatRegistry):
        builder = HarvestQueryBuilder(registry, sets_enabled=False)
        with pytest.raises(OaiException) as excinfo:
            builder.build("oai_dc", None, None, "x", 10)
        assert excinfo.value.code == OaiErrorCode.NO_SET_HIERARCHY

        # Without a set, harvesting still works.
        assert builder.build("oai_dc", None, None, None, 10).set_spec is None
        assert builder.build("oai_dc", None, None, "  ", 10).set_spec is None

    def test_from_equal_to_until(self, registry: MetadataFormatRegistry):
        harvest = HarvestQueryBuilder(registry).build(
            "oai_dc", "2014-01-01T00:00:00Z", "2014-01-01T00:00:00Z", None, 10
        )
        assert harvest.from_ == harvest.until

    def test_build_search(self, registry: MetadataFormatRegistry):
        builder = HarvestQueryBuilder(registry)
        search = builder.build_search("oai_etdms", "dcterms:title", "soil", 10, 4)
        assert search == SearchFilter(
            metadata_prefix="oai_etdms",
            criterion=SearchCriterion("dcterms:title", "soil"),
            offset=4,
            limit=10,
            object_type="Thesis",
        )

    def test_build_search_invalid(self, registry: MetadataFormatRegistry):
        builder = HarvestQueryBuilder(registry)
        with pytest.raises(OaiException) as excinfo:
            builder.build_search("oai_dc", None, "soil", 10)
        assert excinfo.value.code == OaiErrorCode.BAD_ARGUMENT

        with pytest.raises(OaiException) as excinfo:
            builder.build_search("nope", "dcterms:title", "soil", 10)
        assert excinfo.value.code == OaiErrorCode.CANNOT_DISSEMINATE_FORMAT
