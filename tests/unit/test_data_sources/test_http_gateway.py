"""
Unit tests for the aiohttp remote gateway
"""

import asyncio

import aiohttp
import pytest
from aioresponses import aioresponses
from yarl import URL

from data_sources import HttpRemoteGateway, FieldMapping
from database import Quote
from tests.factories import RemotePostFactory

SERVER_URL = "http://quotes.test/posts"


@pytest.fixture
async def gateway():
    gw = HttpRemoteGateway(SERVER_URL, timeout_seconds=1)
    await gw.initialize()
    yield gw
    await gw.close()


@pytest.fixture
def mock_server():
    with aioresponses() as m:
        yield m


@pytest.mark.unit
class TestHttpFetch:

    @pytest.mark.asyncio
    async def test_fetch_maps_title_and_body(self, gateway, mock_server):
        posts = [
            RemotePostFactory.create_post(1, title="sunt aut facere", body="quia et suscipit\nsuscipit recusandae"),
            RemotePostFactory.create_post(2, title="qui est esse", body="short"),
        ]
        mock_server.get(SERVER_URL, payload=posts)

        result = await gateway.fetch_remote()

        assert result.ok is True
        assert result.quotes == (
            Quote("sunt aut facere", "quia et suscipit\nsus"),
            Quote("qui est esse", "short"),
        )

    @pytest.mark.asyncio
    async def test_fetch_many_posts(self, gateway, mock_server):
        posts = RemotePostFactory.create_posts(10)
        mock_server.get(SERVER_URL, payload=posts)

        result = await gateway.fetch_remote()

        assert len(result.quotes) == 10
        assert all(len(q.category) <= 20 for q in result.quotes)
        assert [q.text for q in result.quotes] == [p['title'] for p in posts]

    @pytest.mark.asyncio
    async def test_fetch_without_mapping(self, mock_server):
        gw = HttpRemoteGateway(SERVER_URL, mapping=None)
        mock_server.get(SERVER_URL, payload=[{"text": "A", "category": "X"}])
        try:
            result = await gw.fetch_remote()
        finally:
            await gw.close()
        assert result.quotes == (Quote("A", "X"),)

    @pytest.mark.asyncio
    async def test_custom_mapping(self, mock_server):
        gw = HttpRemoteGateway(SERVER_URL, mapping=FieldMapping("quote", "tag", 3))
        mock_server.get(SERVER_URL, payload=[{"quote": "A", "tag": "Humour"}])
        try:
            result = await gw.fetch_remote()
        finally:
            await gw.close()
        assert result.quotes == (Quote("A", "Hum"),)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kwargs", [
        {"status": 500},
        {"status": 404, "payload": []},
        {"exception": aiohttp.ClientConnectionError("refused")},
        {"exception": asyncio.TimeoutError()},
        {"body": "<html>not json</html>"},
        {"payload": {"title": "not", "body": "an array"}},
        {"payload": [{"title": "", "body": "empty title"}]},
        {"payload": [{"title": "no body"}]},
        {"payload": ["string record"]},
    ])
    async def test_fetch_failures_yield_empty_result(self, gateway, mock_server, kwargs):
        mock_server.get(SERVER_URL, **kwargs)

        result = await gateway.fetch_remote()

        assert result.ok is False
        assert result.quotes == ()
        assert result.error

    @pytest.mark.asyncio
    async def test_fetch_recreates_closed_session(self, gateway, mock_server):
        await gateway.close()
        mock_server.get(SERVER_URL, payload=[])

        result = await gateway.fetch_remote()

        assert result.ok is True
        assert gateway.session is not None


@pytest.mark.unit
class TestHttpPush:

    @pytest.mark.asyncio
    async def test_push_posts_full_list_as_json(self, gateway, mock_server):
        mock_server.post(SERVER_URL, status=201, payload={"id": 101})
        quotes = [Quote("A", "X"), Quote("B", "Y")]

        result = await gateway.push_local(quotes)

        assert result.ok is True
        assert result.status == 201
        assert result.response == {"id": 101}
        call = mock_server.requests[("POST", URL(SERVER_URL))][0]
        assert call.kwargs["json"] == [
            {"text": "A", "category": "X"},
            {"text": "B", "category": "Y"},
        ]

    @pytest.mark.asyncio
    async def test_push_bad_status(self, gateway, mock_server):
        mock_server.post(SERVER_URL, status=503)

        result = await gateway.push_local([Quote("A", "X")])

        assert result.ok is False
        assert result.status == 503

    @pytest.mark.asyncio
    async def test_push_connection_error(self, gateway, mock_server):
        mock_server.post(SERVER_URL, exception=aiohttp.ClientConnectionError("reset"))

        result = await gateway.push_local([Quote("A", "X")])

        assert result.ok is False
        assert result.status is None

    @pytest.mark.asyncio
    async def test_push_is_not_retried(self, gateway, mock_server):
        mock_server.post(SERVER_URL, status=500)
        mock_server.post(SERVER_URL, status=201, payload={})

        first = await gateway.push_local([Quote("A", "X")])

        assert first.ok is False
        assert len(mock_server.requests[("POST", URL(SERVER_URL))]) == 1


@pytest.mark.unit
class TestGatewayInfo:

    def test_info_includes_mapping(self):
        info = HttpRemoteGateway(SERVER_URL).get_gateway_info()
        assert info['url'] == SERVER_URL
        assert info['mapping'] == {'text_field': 'title', 'category_field': 'body', 'category_length': 20}
        assert info['is_initialized'] is False
