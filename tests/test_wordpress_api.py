import asyncio
import os

import httpx
import pytest

from wordpress_org_mcp.architecture.wordpress_api import (
    PluginInfo,
    WordPressOrgAPI,
    zip_file_name,
)

PLUGIN_JSON = {
    "name": "Hello Dolly",
    "slug": "hello-dolly",
    "version": "1.7.2",
    "download_link": "https://downloads.wordpress.org/plugin/hello-dolly.1.7.2.zip",
    "short_description": "This is not just a plugin.",
    "author": "Matt Mullenweg",
    "homepage": "http://wordpress.org/plugins/hello-dolly/",
    "requires": "4.6",
    "tested": "6.5",
    "requires_php": False,
    "sections": {"description": "ignored"},
}


def make_api(tmp_path, handler, max_retries=2):
    return WordPressOrgAPI(
        cache_dir=str(tmp_path / "cache"),
        max_retries=max_retries,
        backoff_base=0,
        transport=httpx.MockTransport(handler),
    )


def test_zip_file_name():
    assert zip_file_name("hello-dolly") == "hello-dolly.zip"
    assert zip_file_name("hello-dolly", "1.7.2") == "hello-dolly.1.7.2.zip"


def test_get_plugin_info(tmp_path):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json=PLUGIN_JSON)

    info = asyncio.run(make_api(tmp_path, handler).get_plugin_info("hello-dolly"))

    assert seen == ["https://api.wordpress.org/plugins/info/1.0/hello-dolly.json"]
    assert isinstance(info, PluginInfo)
    assert info.name == "Hello Dolly"
    assert info.version == "1.7.2"
    assert set(info.to_dict()) == {
        "name", "slug", "version", "download_link", "short_description",
        "author", "homepage", "requires", "tested", "requires_php",
    }


def test_get_plugin_info_unknown_slug(tmp_path):
    def handler(request):
        return httpx.Response(200, json={"error": "Plugin not found."})

    assert asyncio.run(make_api(tmp_path, handler).get_plugin_info("nope")) is None


def test_get_plugin_info_http_404(tmp_path):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(404)

    assert asyncio.run(make_api(tmp_path, handler).get_plugin_info("nope")) is None
    assert len(calls) == 1


def test_retries_server_errors_then_succeeds(tmp_path):
    responses = iter([httpx.Response(503), httpx.Response(502), httpx.Response(200, json=PLUGIN_JSON)])

    def handler(request):
        return next(responses)

    info = asyncio.run(make_api(tmp_path, handler, max_retries=2).get_plugin_info("hello-dolly"))

    assert info is not None
    assert info.slug == "hello-dolly"


def test_gives_up_after_max_retries(tmp_path):
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    info = asyncio.run(make_api(tmp_path, handler, max_retries=2).get_plugin_info("hello-dolly"))

    assert info is None
    assert len(calls) == 3


def test_search_plugins(tmp_path):
    seen = {}

    def handler(request):
        seen["url"] = request.url
        return httpx.Response(200, json={"info": {"results": 2}, "plugins": [PLUGIN_JSON, {"slug": "akismet", "name": "Akismet"}]})

    plugins = asyncio.run(make_api(tmp_path, handler).search_plugins("hello", limit=5))

    params = seen["url"].params
    assert seen["url"].path == "/plugins/info/1.2/"
    assert params["action"] == "query_plugins"
    assert params["request[search]"] == "hello"
    assert params["request[per_page]"] == "5"
    assert [p.slug for p in plugins] == ["hello-dolly", "akismet"]
    assert plugins[1].version is None


def test_search_plugins_failure_returns_empty(tmp_path):
    def handler(request):
        return httpx.Response(400, text="bad request")

    assert asyncio.run(make_api(tmp_path, handler).search_plugins("hello")) == []


def test_search_plugins_invalid_json_returns_empty(tmp_path):
    def handler(request):
        return httpx.Response(200, text="<html>not json</html>")

    assert asyncio.run(make_api(tmp_path, handler).search_plugins("hello")) == []


def test_download_plugin_writes_cache(tmp_path):
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, content=b"PK\x03\x04zip-bytes")

    api = make_api(tmp_path, handler)
    path = asyncio.run(api.download_plugin("hello-dolly", "1.7.2"))

    assert seen == ["https://downloads.wordpress.org/plugin/hello-dolly.1.7.2.zip"]
    assert path == os.path.join(api.cache_dir, "hello-dolly.1.7.2.zip")
    with open(path, "rb") as f:
        assert f.read() == b"PK\x03\x04zip-bytes"
    assert api.is_cached("hello-dolly", "1.7.2")
    assert not os.path.exists(path + ".part")


def test_download_plugin_uses_cache(tmp_path):
    def handler(request):
        pytest.fail("cached downloads must not hit the network")

    api = make_api(tmp_path, handler)
    os.makedirs(api.cache_dir)
    cached = os.path.join(api.cache_dir, "hello-dolly.zip")
    with open(cached, "wb") as f:
        f.write(b"cached")

    assert asyncio.run(api.download_plugin("hello-dolly")) == cached


def test_download_plugin_not_found(tmp_path):
    def handler(request):
        return httpx.Response(404)

    api = make_api(tmp_path, handler)

    assert asyncio.run(api.download_plugin("missing")) is None
    assert not api.is_cached("missing")
