"""
Pytest configuration and fixtures
"""

import json
from collections import defaultdict
from typing import Any, Dict, List, Tuple, Union

import httpx
import pytest

from ingestion.store import RelationStore

# (status, body) or (status, body, headers) where body is a JSON-able object or raw bytes
ResponseSpec = Union[
    Tuple[int, Union[bytes, Dict[str, Any]]],
    Tuple[int, Union[bytes, Dict[str, Any]], Dict[str, str]],
]


def relation_document(relation_id: int, tags: Dict[str, str]) -> Dict[str, Any]:
    return {
        "version": "0.6",
        "generator": "OpenStreetMap server",
        "elements": [
            {"type": "relation", "id": relation_id, "version": 1, "tags": tags, "members": []}
        ],
    }


class FakeOSM:
    """
    MockTransport handler answering Overpass and relation API requests.

    ``relations`` maps a relation id to the responses returned on
    successive calls; the last one repeats.
    """

    def __init__(
        self,
        discovered: List[int],
        relations: Dict[int, List[ResponseSpec]],
        overpass_status: int = 200
    ):
        self.discovered = discovered
        self.relations = relations
        self.overpass_status = overpass_status
        self.calls: Dict[Any, int] = defaultdict(int)
        self.overpass_bodies: List[bytes] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            self.calls["overpass"] += 1
            self.overpass_bodies.append(request.content)

            if self.overpass_status != 200:
                return httpx.Response(self.overpass_status, text="runtime error")

            elements = [{"type": "relation", "id": i} for i in self.discovered]
            return httpx.Response(200, json={"version": 0.6, "elements": elements})

        relation_id = int(request.url.path.rsplit("/", 1)[-1].split(".")[0])
        self.calls[relation_id] += 1

        responses = self.relations.get(relation_id) or [(404, b"")]
        status, body, *rest = responses[min(self.calls[relation_id], len(responses)) - 1]
        headers = rest[0] if rest else {}

        if isinstance(body, bytes):
            return httpx.Response(status, headers=headers, content=body)
        return httpx.Response(status, headers=headers, content=json.dumps(body).encode("utf-8"))

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def make_relation():
    """Factory for relation API documents"""
    return relation_document


@pytest.fixture
def france_tags():
    return {
        "ISO3166-1": "FR",
        "ISO3166-1:alpha2": "FR",
        "ISO3166-1:alpha3": "FRA",
        "ISO3166-1:numeric": "250",
        "admin_level": "2",
        "boundary": "administrative",
        "capital_city": "Paris",
        "currency": "EUR",
        "flag": "http://upload.wikimedia.org/wikipedia/commons/c/c3/Flag_of_France.svg",
        "int_name": "France",
        "name": "France",
        "name:de": "Frankreich",
        "name:UN:fr": "France",
        "name:zh": "法国",
        "official_name": "République française",
        "official_name:en": "French Republic",
        "old_name:fr": "Gaule",
        "timezone": "Europe/Paris",
        "type": "boundary",
        "url": "https://www.gouvernement.fr",
        "wikidata": "Q142",
        "wikipedia": "fr:France",
        "wikipedia:en": "France",
    }


@pytest.fixture
def store(tmp_path) -> RelationStore:
    return RelationStore(tmp_path / "build" / "relations")


@pytest.fixture
def fake_osm():
    """Factory for FakeOSM transports"""
    def _make(
        discovered: List[int],
        relations: Dict[int, List[ResponseSpec]],
        overpass_status: int = 200
    ) -> FakeOSM:
        return FakeOSM(discovered, relations, overpass_status=overpass_status)

    return _make
