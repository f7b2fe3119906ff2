"""
Unit tests for data extractors
"""

import json

import httpx
import pytest

from core.exceptions import DiscoveryError
from ingestion.extractors.overpass_extractor import OverpassExtractor
from ingestion.extractors.relation_extractor import (
    RelationExtractor,
    RelationResponseHandler,
)

RELATION_URL = "https://api.openstreetmap.org/api/0.6/relation/51477.json"


class TestOverpassExtractor:
    """Test relation ID discovery"""

    @pytest.mark.asyncio
    async def test_fetch_ids_appends_extra_ids(self, fake_osm):
        osm = fake_osm([51477, 2202162], {})
        extractor = OverpassExtractor(extra_ids=[2186646, 1703814], transport=osm.transport())

        result = await extractor.fetch_data()

        assert result == [51477, 2202162, 2186646, 1703814]
        assert osm.calls["overpass"] == 1
        assert b'["ISO3166-1"]' in osm.overpass_bodies[0]

    @pytest.mark.asyncio
    async def test_default_extra_ids(self, fake_osm):
        extractor = OverpassExtractor(transport=fake_osm([], {}).transport())

        assert await extractor.fetch_data() == [2186646, 1703814]

    @pytest.mark.asyncio
    async def test_non_200_is_fatal(self, fake_osm):
        extractor = OverpassExtractor(transport=fake_osm([1], {}, overpass_status=504).transport())

        with pytest.raises(DiscoveryError) as exc_info:
            await extractor.run()

        assert exc_info.value.context["status_code"] == 504

    @pytest.mark.asyncio
    async def test_connection_error_is_fatal(self):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        extractor = OverpassExtractor(transport=httpx.MockTransport(refuse))

        with pytest.raises(DiscoveryError):
            await extractor.fetch_data()

    def test_parse_ids_requires_elements(self):
        extractor = OverpassExtractor()

        with pytest.raises(DiscoveryError):
            extractor.parse_ids({"remark": "runtime error: Query timed out"})


class TestRelationResponseHandler:
    """Test the per-response classification"""

    def _request(self):
        return httpx.Request("GET", RELATION_URL)

    def test_non_200_returns_request(self, store):
        handler = RelationResponseHandler(store)
        request = self._request()

        result = handler.handle_response(httpx.Response(500, request=request), request, 0)

        assert result is request
        assert handler.stats["retried"] == 1
        assert handler.get_relations() == {}

    def test_empty_body_dropped(self, store):
        handler = RelationResponseHandler(store)
        request = self._request()

        result = handler.handle_response(httpx.Response(200, content=b"", request=request), request, 0)

        assert result is None
        assert handler.stats["empty"] == 1
        assert not store.exists(51477)

    @pytest.mark.parametrize("body", [
        b"<osm></osm>",
        b'{"elements": []}',
        b'{"elements": [{"id": "", "tags": {"ISO3166-1:alpha3": "DEU"}}]}',
        b'{"elements": [{"id": 51477, "tags": {"name": "Deutschland"}}]}',
        b'{"elements": [{"id": 51477, "tags": ["ISO3166-1:alpha3"]}]}',
        b'{"elements": [{"id": 51477, "tags": {"ISO3166-1:alpha3": 276}}]}',
    ])
    def test_invalid_body_dropped(self, store, body):
        handler = RelationResponseHandler(store)
        request = self._request()

        result = handler.handle_response(httpx.Response(200, content=body, request=request), request, 0)

        assert result is None
        assert handler.stats["invalid"] == 1
        assert handler.get_relations() == {}

    def test_success_indexes_and_stores(self, store, make_relation):
        handler = RelationResponseHandler(store)
        request = self._request()
        content = json.dumps(make_relation(51477, {"ISO3166-1:alpha3": "deu"})).encode("utf-8")

        result = handler.handle_response(httpx.Response(200, content=content, request=request), request, 0)

        assert result is None
        assert handler.get_relations() == {"DEU": 51477}
        assert store.path_for(51477).read_bytes() == content


class TestRelationExtractor:
    """Test the concurrent relation fetch"""

    @pytest.mark.asyncio
    async def test_fetch_builds_sorted_index(self, store, fake_osm, make_relation):
        osm = fake_osm([], {
            2202162: [(200, make_relation(2202162, {"ISO3166-1:alpha3": "FRA"}))],
            51477: [(200, make_relation(51477, {"ISO3166-1:alpha3": "DEU"}))],
            16239: [(200, make_relation(16239, {"ISO3166-1:alpha3": "AUT"}))],
        })
        extractor = RelationExtractor(
            [2202162, 51477, 16239], store, request_delay=0, transport=osm.transport()
        )

        result = await extractor.run()

        assert result["status"] == "success"
        assert result["records_extracted"] == 3
        assert list(result["data"].items()) == [("AUT", 16239), ("DEU", 51477), ("FRA", 2202162)]
        assert all(store.exists(i) for i in (2202162, 51477, 16239))

    @pytest.mark.asyncio
    async def test_failed_request_is_resubmitted(self, store, fake_osm, make_relation):
        osm = fake_osm([], {
            51477: [(500, b""), (200, make_relation(51477, {"ISO3166-1:alpha3": "DEU"}))],
        })
        extractor = RelationExtractor([51477], store, request_delay=0, transport=osm.transport())

        relations = await extractor.fetch_data()

        assert osm.calls[51477] == 2
        assert relations == {"DEU": 51477}
        assert extractor.client_stats["resubmitted"] == 1

    @pytest.mark.asyncio
    async def test_empty_response_not_indexed(self, store, fake_osm, make_relation):
        osm = fake_osm([], {
            51477: [(200, b"")],
            16239: [(200, make_relation(16239, {"ISO3166-1:alpha3": "AUT"}))],
        })
        extractor = RelationExtractor([51477, 16239], store, request_delay=0, transport=osm.transport())

        relations = await extractor.fetch_data()

        assert relations == {"AUT": 16239}
        assert osm.calls[51477] == 1
        assert extractor.handler.stats["empty"] == 1
