"""
Wikibase Client Tests

Exercises the wire protocol against an in-process httpx.MockTransport that
plays the part of a Wikibase action API.
"""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from scisource_ingest.wiki import (
    MediaWikiClient,
    MediaWikiResponseError,
    WikibaseClient,
    WikibaseError,
)

ENDPOINT = "http://wikibase.test/w/api.php"


class FakeWikibase:
    """Minimal stateful stand-in for the action API."""

    def __init__(self):
        self.requests = []
        self.claims = {}
        self.pages = {"Existing (1)": 41}
        self.tokens_issued = 0
        self.reject_next_token = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        params = dict(request.url.params)
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        self.requests.append((params, form))
        action = params["action"]

        if action == "query" and params.get("meta") == "tokens":
            self.tokens_issued += 1
            return httpx.Response(200, json={"query": {"tokens": {"csrftoken": f"tok{self.tokens_issued}+\\"}}})

        if request.method == "POST" and self.reject_next_token:
            self.reject_next_token = False
            return httpx.Response(200, json={"error": {"code": "badtoken", "info": "Invalid CSRF token."}})

        if action == "wbsearchentities":
            hits = {
                "instance of": [{"id": "P3", "label": "instance of"}, {"id": "P30", "label": "instance of x"}],
                "terminus": [{"id": "Q7", "label": "Terminus"}],
            }
            return httpx.Response(200, json={"search": hits.get(params["search"], [])})

        if action == "wbeditentity" and "new" in form:
            return httpx.Response(200, json={"entity": {"id": "Q100"}, "success": 1})

        if action == "wbeditentity":
            entity = form["id"]
            current = self.claims.setdefault(entity, {})
            for claim in json.loads(form["data"])["claims"]:
                if "remove" in claim:
                    for prop, ids in current.items():
                        current[prop] = [i for i in ids if i != claim["id"]]
                else:
                    prop = claim["mainsnak"]["property"]
                    current.setdefault(prop, []).append(f"{entity}${prop}-{len(self.requests)}")
            return httpx.Response(200, json={"success": 1})

        if action == "wbgetclaims":
            current = self.claims.get(params["entity"], {})
            return httpx.Response(
                200,
                json={"claims": {p: [{"id": i} for i in ids] for p, ids in current.items()}},
            )

        if action == "edit":
            if form["title"] in self.pages:
                return httpx.Response(200, json={"error": {"code": "articleexists", "info": "exists"}})
            self.pages[form["title"]] = 55
            return httpx.Response(200, json={"edit": {"result": "Success", "pageid": 55}})

        if action == "query" and "titles" in params:
            title = params["titles"]
            if title in self.pages:
                return httpx.Response(200, json={"query": {"pages": [{"title": title, "pageid": self.pages[title]}]}})
            return httpx.Response(200, json={"query": {"pages": [{"title": title, "missing": True}]}})

        return httpx.Response(400, json={"error": {"code": "badvalue", "info": action}})


@pytest.fixture
def server():
    return FakeWikibase()


@pytest.fixture
def mw_client(server):
    return MediaWikiClient(
        endpoint=ENDPOINT,
        access_token="secret-token",
        transport=httpx.MockTransport(server),
    )


@pytest.fixture
def client(mw_client):
    return WikibaseClient(mw_client, language="en")


@pytest.mark.asyncio
async def test_label_search_keeps_exact_matches_only(client):
    assert await client.find_entity_ids("property", "instance of") == ["P3"]
    assert await client.find_entity_ids("item", "terminus") == ["Q7"]
    assert await client.find_entity_ids("item", "unknown") == []


@pytest.mark.asyncio
async def test_create_item_returns_new_id(client, server):
    assert await client.create_item("article A (1)") == "Q100"

    _, form = server.requests[-1]
    assert form["new"] == "item"
    assert form["token"] == "tok1+\\"
    assert json.loads(form["data"])["labels"]["en"]["value"] == "article A (1)"


@pytest.mark.asyncio
async def test_csrf_token_fetched_once(client, server):
    await client.create_item("one")
    await client.create_item("two")

    assert server.tokens_issued == 1


@pytest.mark.asyncio
async def test_bad_token_is_refreshed_and_retried(client, server):
    await client.create_item("one")
    server.reject_next_token = True

    assert await client.create_item("two") == "Q100"
    assert server.tokens_issued == 2


@pytest.mark.asyncio
async def test_create_page_returns_page_id(client):
    assert await client.create_page("New (2)", "<p>text</p>") == 55


@pytest.mark.asyncio
async def test_existing_page_is_adopted(client):
    assert await client.create_page("Existing (1)", "<p>text</p>") == 41


@pytest.mark.asyncio
async def test_upload_claims_overwrites_per_property(client, server):
    claims = {"P8": {"type": "string", "value": "aspirin"}}

    await client.upload_claims("Q5", claims)
    await client.upload_claims("Q5", claims)

    assert len(server.claims["Q5"]["P8"]) == 1


@pytest.mark.asyncio
async def test_api_errors_carry_the_code(client):
    with pytest.raises(WikibaseError) as excinfo:
        await client.get_page_id("Missing (3)")
    assert excinfo.value.code == "missingtitle"


@pytest.mark.asyncio
async def test_bearer_token_sent():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"error": {"code": "nope", "info": "x"}})

    mw = MediaWikiClient(endpoint=ENDPOINT, access_token="abc", transport=httpx.MockTransport(handler))

    with pytest.raises(MediaWikiResponseError) as excinfo:
        await mw.get({"action": "query"})

    assert seen["auth"] == "Bearer abc"
    assert excinfo.value.code == "nope"


@pytest.mark.asyncio
async def test_transport_failure_becomes_wikibase_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = WikibaseClient(
        MediaWikiClient(endpoint=ENDPOINT, access_token="", transport=httpx.MockTransport(handler))
    )

    with pytest.raises(WikibaseError) as excinfo:
        await client.find_entity_ids("item", "terminus")
    assert excinfo.value.code is None
