"""Tests for response handling and the direct-HTTP web transport."""

import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from fastmcp.exceptions import ToolError

from curseforge_mcp.api.cfwidget import CfWidgetClient
from curseforge_mcp.api.http import HttpTransport, clean_params, parse_response
from curseforge_mcp.api.web import WebClient, origin_of
from curseforge_mcp.auth.storage import CookieStore
from curseforge_mcp.config import Settings
from curseforge_mcp.errors import NetworkError, TransportError
from curseforge_mcp.tools.common import tool_errors


RELEASE = web.AppKey("release", asyncio.Event)


def make_app():
    async def missing(request):
        return web.Response(status=404, text="<html>not found</html>", content_type="text/html")

    async def huge_error(request):
        return web.Response(status=500, text="x" * 1000)

    async def as_json(request):
        return web.json_response({"ok": True})

    async def as_text(request):
        return web.Response(text="plain body")

    async def echo(request):
        body = await request.text()
        return web.json_response({
            "method": request.method,
            "headers": {k.lower(): v for k, v in request.headers.items()},
            "body": body,
        })

    async def slow(request):
        await asyncio.wait_for(request.app[RELEASE].wait(), 5)
        return web.Response(text="late")

    app = web.Application()
    app[RELEASE] = asyncio.Event()
    app.router.add_get("/slow", slow)
    app.router.add_get("/missing", missing)
    app.router.add_get("/huge", huge_error)
    app.router.add_get("/json", as_json)
    app.router.add_get("/text", as_text)
    app.router.add_route("*", "/echo", echo)
    return app


def run_with_server(test):
    async def runner():
        server = TestServer(make_app())
        await server.start_server()
        try:
            return await test(server)
        finally:
            server.app[RELEASE].set()
            await server.close()
    return asyncio.run(runner())


def make_client(tmp_path, cookies="CobaltSession=abc; XSRF-TOKEN=tok1", **overrides):
    settings = Settings(_env_file=None, data_dir=tmp_path, **overrides)
    store = CookieStore(tmp_path / "cookies.json")
    if cookies:
        store.set_cookies_from_string(cookies)
    return WebClient(settings, store=store, transport=HttpTransport(settings, store))


def test_parse_response_json_and_text():
    assert parse_response(200, "application/json; charset=utf-8", '{"a": 1}', "u") == {"a": 1}
    assert parse_response(201, "text/html", "<p>hi</p>", "u") == "<p>hi</p>"
    assert parse_response(204, "application/json", "", "u") is None


def test_parse_response_error_carries_status_and_body_prefix():
    with pytest.raises(TransportError) as exc_info:
        parse_response(404, "text/html", "<html>not found</html>", "https://www.curseforge.com/x")

    err = exc_info.value
    assert err.status == 404
    assert str(err) == "HTTP 404: https://www.curseforge.com/x\n<html>not found</html>"


def test_parse_response_error_without_body_has_no_trailing_newline():
    with pytest.raises(TransportError) as exc_info:
        parse_response(502, "", "", "https://x")
    assert str(exc_info.value) == "HTTP 502: https://x"


def test_clean_params_drops_none():
    assert clean_params({"a": 1, "b": None, "c": "x", "d": False}) == {"a": "1", "c": "x", "d": "false"}
    assert clean_params({}) is None


def test_origin_of():
    assert origin_of("https://authors.curseforge.com/_api/projects/1") == "https://authors.curseforge.com"
    assert origin_of("/relative") == "https://www.curseforge.com"


def test_http_404_surfaces_status_and_body(tmp_path):
    client = make_client(tmp_path)

    async def test(server):
        try:
            with pytest.raises(TransportError) as exc_info:
                await client.get(str(server.make_url("/missing")))
        finally:
            await client.close()
        return exc_info.value

    err = run_with_server(test)
    assert err.status == 404
    assert "404" in str(err)
    assert "<html>not found</html>" in str(err)


def test_error_body_is_bounded(tmp_path):
    client = make_client(tmp_path)

    async def test(server):
        try:
            with pytest.raises(TransportError) as exc_info:
                await client.get(str(server.make_url("/huge")))
        finally:
            await client.close()
        return str(exc_info.value)

    message = run_with_server(test)
    assert message.endswith("\n" + "x" * 500)


def test_json_and_text_responses(tmp_path):
    client = make_client(tmp_path)

    async def test(server):
        try:
            return (
                await client.get(str(server.make_url("/json"))),
                await client.get(str(server.make_url("/text"))),
            )
        finally:
            await client.close()

    as_json, as_text = run_with_server(test)
    assert as_json == {"ok": True}
    assert as_text == "plain body"


def test_request_headers_are_built_per_call(tmp_path):
    client = make_client(tmp_path)

    async def test(server):
        url = str(server.make_url("/echo"))
        try:
            first = await client.post(url, {"entityId": 1}, extra_headers={"X-Extra": "1"})
            client.store.set_cookies_from_string("CobaltSession=new; XSRF-TOKEN=tok2")
            second = await client.get(url)
        finally:
            await client.close()
        return url, first, second

    url, first, second = run_with_server(test)
    origin = origin_of(url)

    headers = first["headers"]
    assert first["method"] == "POST"
    assert first["body"] == '{"entityId": 1}'
    assert headers["content-type"] == "application/json"
    assert headers["cookie"] == "CobaltSession=abc; XSRF-TOKEN=tok1"
    assert headers["x-xsrf-token"] == "tok1"
    assert headers["origin"] == origin
    assert headers["referer"] == origin + "/"
    assert headers["x-extra"] == "1"
    assert "Mozilla/5.0" in headers["user-agent"]

    assert second["headers"]["cookie"] == "CobaltSession=new; XSRF-TOKEN=tok2"
    assert second["headers"]["x-xsrf-token"] == "tok2"
    assert "content-type" not in second["headers"]


def test_no_xsrf_header_without_token(tmp_path):
    client = make_client(tmp_path, cookies="CobaltSession=abc")

    headers = client.build_headers("https://www.curseforge.com/api/v1/comments")

    assert "X-XSRF-TOKEN" not in headers


def test_cfwidget_errors_use_short_excerpt(tmp_path):
    settings = Settings(_env_file=None, data_dir=tmp_path)

    async def test(server):
        client = CfWidgetClient(settings, base_url=str(server.make_url("/")))
        try:
            with pytest.raises(TransportError) as exc_info:
                await client.get("/huge")
        finally:
            await client.close()
        return str(exc_info.value)

    message = run_with_server(test)
    assert message.startswith("CFWidget 500: ")
    assert message.endswith("\n" + "x" * 300)


def test_timeout_names_method_url_and_cause(tmp_path):
    client = make_client(tmp_path, request_timeout=1)

    @tool_errors
    async def get_comments(url):
        return await client.get(url)

    async def test(server):
        url = str(server.make_url("/slow"))
        try:
            with pytest.raises(NetworkError) as network_info:
                await client.get(url)
            with pytest.raises(ToolError) as tool_info:
                await get_comments(url)
        finally:
            await client.close()
        return url, network_info.value, str(tool_info.value)

    url, err, tool_message = run_with_server(test)
    assert err.method == "GET"
    assert err.url == url
    assert str(err).startswith(f"GET {url} failed: ")
    assert "Timeout" in str(err)
    assert tool_message.startswith(f"Error: get_comments: GET {url} failed: ")


def test_refused_connection_is_a_network_error(tmp_path):
    client = make_client(tmp_path)
    url = "http://127.0.0.1:1/api/v1/comments"

    async def scenario():
        try:
            with pytest.raises(NetworkError) as exc_info:
                await client.post(url, {"entityId": 1})
        finally:
            await client.close()
        return exc_info.value

    err = asyncio.run(scenario())
    assert err.method == "POST"
    assert str(err).startswith(f"POST {url} failed: Client")


def test_api_client_wraps_connection_failures(tmp_path):
    settings = Settings(_env_file=None, data_dir=tmp_path)

    async def scenario():
        client = CfWidgetClient(settings, base_url="http://127.0.0.1:1")
        try:
            with pytest.raises(NetworkError) as exc_info:
                await client.get_project("238222")
        finally:
            await client.close()
        return str(exc_info.value)

    assert asyncio.run(scenario()).startswith("GET http://127.0.0.1:1/238222 failed: ")


def test_tool_errors_fall_back_to_exception_type():
    @tool_errors
    async def get_project():
        raise asyncio.TimeoutError()

    with pytest.raises(ToolError) as exc_info:
        asyncio.run(get_project())

    assert str(exc_info.value) == "Error: get_project: TimeoutError"
