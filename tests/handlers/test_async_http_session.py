from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import pytest
from aiohttp import test_utils, web

from handlers.async_comm import AsyncCommError, AsyncCommInvalidContentTypeError, AsyncCommTimeoutError, AsyncHttp

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


async def _echo(request: web.Request) -> web.Response:
    body = await request.json()
    return web.json_response({"echo": body, "query": dict(request.query), "key": request.headers.get("X-Key")})


async def _limited(_request: web.Request) -> web.Response:
    return web.json_response({"error": "slow down"}, status=429)


async def _slow(_request: web.Request) -> web.Response:
    await asyncio.sleep(1.0)
    return web.json_response({})


async def _binary(_request: web.Request) -> web.Response:
    return web.Response(body=b"\x00\x01", content_type="application/octet-stream")


@pytest.fixture
async def server() -> AsyncGenerator[test_utils.TestServer]:
    app = web.Application()
    app.router.add_post("/echo", _echo)
    app.router.add_post("/limited", _limited)
    app.router.add_post("/slow", _slow)
    app.router.add_post("/binary", _binary)
    test_server = test_utils.TestServer(app)
    await test_server.start_server()
    yield test_server
    await test_server.close()


@pytest.mark.asyncio
async def test_init_logs_session_initialized(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)

    # When constructing, __init__ initializes the session and should log it
    http = AsyncHttp()

    assert any("AsyncHttp session initialized" in rec.message for rec in caplog.records)
    await http.close()


@pytest.mark.asyncio
async def test_context_enter_does_not_log_already_initialized(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)

    http = AsyncHttp()

    # clear prior logs from __init__
    caplog.clear()

    async with http:
        pass

    assert not any("session already initialized" in rec.message for rec in caplog.records)


@pytest.mark.asyncio
async def test_reenter_after_close_logs_session_initialized(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)

    http = AsyncHttp()

    async with http:
        pass
    assert http.closed is True

    caplog.clear()

    async with http:
        pass

    assert any("AsyncHttp session initialized" in rec.message for rec in caplog.records)


@pytest.mark.asyncio
async def test_post_sends_json_and_decodes_response(server: test_utils.TestServer) -> None:
    async with AsyncHttp() as http:
        response = await http.post(
            url=str(server.make_url("/echo")),
            params={"api-version": "3.0"},
            headers={"X-Key": "secret"},
            data=[{"Text": "Bonjour"}],
        )

    assert response == {"echo": [{"Text": "Bonjour"}], "query": {"api-version": "3.0"}, "key": "secret"}


@pytest.mark.asyncio
async def test_error_status_is_reported(server: test_utils.TestServer) -> None:
    async with AsyncHttp() as http:
        with pytest.raises(AsyncCommError) as exc_info:
            await http.post(url=str(server.make_url("/limited")), data={})

    assert exc_info.value.status == 429


@pytest.mark.asyncio
async def test_timeout_is_reported(server: test_utils.TestServer) -> None:
    async with AsyncHttp() as http:
        with pytest.raises(AsyncCommTimeoutError):
            await http.post(url=str(server.make_url("/slow")), data={}, total_timeout=0.05)


@pytest.mark.asyncio
async def test_unknown_content_type_is_rejected(server: test_utils.TestServer) -> None:
    async with AsyncHttp() as http:
        with pytest.raises(AsyncCommInvalidContentTypeError):
            await http.post(url=str(server.make_url("/binary")), data={})
