"""Tests for session cookie parsing, persistence and auto-extraction."""

import asyncio
import json

import pytest

from curseforge_mcp.auth.cookies import CookieExtractor
from curseforge_mcp.auth.storage import CookieStore, parse_cookie_string
from curseforge_mcp.models import CookieEntry


class StaticExtractor(CookieExtractor):
    """Extractor returning a fixed cookie list (or raising)."""

    def __init__(self, name, cookies=None, error=None):
        self.name = name
        self.cookies = cookies or []
        self.error = error

    def get_name(self):
        return self.name

    def is_available(self):
        return True

    def read_cookies(self, domain):
        if self.error:
            raise self.error
        return self.cookies


def test_parse_cookie_string_drops_malformed_segments():
    entries = parse_cookie_string("a=1; b=2; malformed; c=3")

    assert [e.name for e in entries] == ["a", "b", "c"]
    assert [e.value for e in entries] == ["1", "2", "3"]
    assert all(e.domain == ".curseforge.com" and e.path == "/" for e in entries)


def test_parse_cookie_string_splits_on_first_equals_and_trims():
    entries = parse_cookie_string("  token = abc=def== ;;  ; empty=")

    assert len(entries) == 2
    assert entries[0].name == "token"
    assert entries[0].value == "abc=def=="
    assert entries[1].name == "empty"
    assert entries[1].value == ""


def test_set_cookies_survives_restart(tmp_path):
    path = tmp_path / "auth" / "cookies.json"
    store = CookieStore(path)
    store.set_cookies_from_string("CobaltSession=abc; XSRF-TOKEN=tok")

    assert path.exists()
    fresh = CookieStore(path)
    loaded = fresh.load()

    assert loaded == store.cookies
    assert fresh.cookie_header() == "CobaltSession=abc; XSRF-TOKEN=tok"
    assert fresh.has_session()


def test_persisted_file_is_a_json_array_of_entries(tmp_path):
    path = tmp_path / "cookies.json"
    CookieStore(path).set_cookies([CookieEntry(name="a", value="1", domain="www.curseforge.com", path="/api")])

    data = json.loads(path.read_text())
    assert data == [{"name": "a", "value": "1", "domain": "www.curseforge.com", "path": "/api"}]


def test_load_missing_file_gives_empty_set(tmp_path):
    store = CookieStore(tmp_path / "nope.json")

    assert store.load() == []
    assert not store.has_session()


def test_load_corrupt_or_wrong_shape_gives_empty_set(tmp_path):
    path = tmp_path / "cookies.json"
    for content in ("{not json", '{"name": "a"}', '[{"name": "only-name"}]', "42"):
        path.write_text(content)
        store = CookieStore(path)
        assert store.load() == [], content
        assert not store.has_session()


def test_xsrf_token_is_case_insensitive():
    store = CookieStore("unused.json")
    store._cookies = parse_cookie_string("session=s; xsrf-token=lower")
    assert store.xsrf_token() == "lower"

    store._cookies = parse_cookie_string("X-XSRF-TOKEN=prefixed")
    assert store.xsrf_token() == "prefixed"

    store._cookies = parse_cookie_string("session=s; XSRF=close-but-no")
    assert store.xsrf_token() is None


def test_version_changes_on_every_mutation(tmp_path):
    store = CookieStore(tmp_path / "cookies.json")
    before = store.version

    store.set_cookies_from_string("a=1")
    after_first = store.version
    store.set_cookies([])

    assert before < after_first < store.version
    assert not store.has_session()


def test_cookies_property_is_a_copy(tmp_path):
    store = CookieStore(tmp_path / "cookies.json")
    store.set_cookies_from_string("a=1")

    store.cookies.clear()

    assert store.has_session()


def test_auto_extract_stores_first_browser_with_cookies(tmp_path):
    path = tmp_path / "cookies.json"
    found = [CookieEntry(name="CobaltSession", value="x"), CookieEntry(name="XSRF-TOKEN", value="t")]
    store = CookieStore(path, extractors=[
        StaticExtractor("Chrome", error=OSError("database is locked")),
        StaticExtractor("Firefox"),
        StaticExtractor("Brave", cookies=found),
    ])

    outcome = asyncio.run(store.auto_extract())

    assert outcome == "Extracted 2 cookies from Brave"
    assert store.cookies == found
    assert CookieStore(path).load() == found


def test_auto_extract_reports_failure_without_raising(tmp_path):
    path = tmp_path / "cookies.json"
    store = CookieStore(path, extractors=[StaticExtractor("Chrome"), StaticExtractor("Edge", error=RuntimeError("boom"))])

    outcome = asyncio.run(store.auto_extract())

    assert outcome == "No browser had curseforge.com cookies"
    assert not store.has_session()
    assert not path.exists()


def test_failed_save_keeps_previous_cookies(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    store = CookieStore(blocker / "cookies.json")
    store._cookies = parse_cookie_string("CobaltSession=old")
    version = store.version

    with pytest.raises(OSError):
        store.set_cookies_from_string("CobaltSession=new")

    assert store.cookie_header() == "CobaltSession=old"
    assert store.version == version


def test_auto_extract_reports_save_failure_without_switching_cookies(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    found = [CookieEntry(name="CobaltSession", value="x")]
    store = CookieStore(blocker / "cookies.json", extractors=[StaticExtractor("Chrome", cookies=found)])

    outcome = asyncio.run(store.auto_extract())

    assert outcome.startswith("Auto-extraction failed: ")
    assert not store.has_session()
