"""Tests for browser cookie extraction and the fallthrough order."""

import sqlite3
import sys

import pytest

from curseforge_mcp.auth.cookies import (
    NO_COOKIES_MESSAGE,
    ChromeCookieExtractor,
    CookieExtractor,
    FirefoxCookieExtractor,
    extract_cookies_from_browsers,
    first_successful,
    get_all_extractors,
)
from curseforge_mcp.models import CookieEntry, ExtractionResult


def _raise(message):
    def attempt():
        raise RuntimeError(message)
    return attempt


def test_first_successful_skips_raising_browsers():
    third = ExtractionResult(
        browser="Edge",
        cookies=[CookieEntry(name="a", value="1"), CookieEntry(name="b", value="2")],
    )
    calls = []

    def edge():
        calls.append("Edge")
        return third

    result = first_successful([
        ("Chrome", _raise("locked")),
        ("Firefox", _raise("no profile")),
        ("Edge", edge),
        ("Brave", _raise("must not be reached")),
    ])

    assert result is third
    assert calls == ["Edge"]


def test_first_successful_skips_empty_results_and_reports_final_failure():
    result = first_successful([
        ("Chrome", lambda: ExtractionResult(browser="Chrome", error="Chrome not installed")),
        ("Firefox", _raise("boom")),
    ])

    assert not result.ok
    assert result.error == NO_COOKIES_MESSAGE


class NotInstalled(CookieExtractor):
    def get_name(self):
        return "Vivaldi"

    def is_available(self):
        return False

    def read_cookies(self, domain):
        raise AssertionError("read_cookies called on a missing browser")


class Broken(CookieExtractor):
    def get_name(self):
        return "Opera"

    def is_available(self):
        return True

    def read_cookies(self, domain):
        raise sqlite3.OperationalError("database is locked")


class Working(CookieExtractor):
    def get_name(self):
        return "Chromium"

    def is_available(self):
        return True

    def read_cookies(self, domain):
        return [CookieEntry(name="CobaltSession", value="abc")]


def test_extractor_failures_become_results():
    assert NotInstalled().extract().error == "Vivaldi not installed"
    assert "database is locked" in Broken().extract().error


def test_extract_cookies_from_browsers_returns_first_working_browser():
    result = extract_cookies_from_browsers([NotInstalled(), Broken(), Working()])

    assert result.ok
    assert result.browser == "Chromium"
    assert result.cookies[0].name == "CobaltSession"


def test_priority_order():
    names = [e.get_name() for e in get_all_extractors()]

    assert names == ["Chrome", "Firefox", "Edge", "Brave", "Chromium", "Opera", "Vivaldi", "LibreWolf"]


def test_firefox_profile_reading(tmp_path):
    db = tmp_path / "cookies.sqlite"
    conn = sqlite3.connect(db)
    conn.execute("CREATE TABLE moz_cookies (name TEXT, value TEXT, host TEXT, path TEXT)")
    conn.executemany(
        "INSERT INTO moz_cookies VALUES (?, ?, ?, ?)",
        [
            ("CobaltSession", "s1", ".curseforge.com", "/"),
            ("XSRF-TOKEN", "t1", "www.curseforge.com", "/"),
            ("other", "x", ".example.com", "/"),
        ],
    )
    conn.commit()
    conn.close()

    cookies = FirefoxCookieExtractor()._read_profile(db, ".curseforge.com")

    assert [(c.name, c.domain) for c in cookies] == [
        ("CobaltSession", ".curseforge.com"),
        ("XSRF-TOKEN", "www.curseforge.com"),
    ]


@pytest.mark.skipif(sys.platform in ("darwin", "win32"), reason="Linux key derivation")
def test_chrome_v10_cookie_decryption():
    from Crypto.Cipher import AES
    from Crypto.Protocol.KDF import PBKDF2

    key = PBKDF2(b"peanuts", b"saltysalt", dkLen=16, count=1)
    plaintext = b"session-value"
    pad = 16 - len(plaintext) % 16
    encrypted = b"v10" + AES.new(key, AES.MODE_CBC, b" " * 16).encrypt(plaintext + bytes([pad]) * pad)

    value = ChromeCookieExtractor("Chrome")._decrypt_value(encrypted, b"ignored-for-v10")

    assert value == "session-value"


def test_firefox_ignores_lookalike_hosts(tmp_path):
    db = tmp_path / "cookies.sqlite"
    conn = sqlite3.connect(db)
    conn.execute("CREATE TABLE moz_cookies (name TEXT, value TEXT, host TEXT, path TEXT)")
    conn.executemany(
        "INSERT INTO moz_cookies VALUES (?, ?, ?, ?)",
        [
            ("bare", "1", "curseforge.com", "/"),
            ("sub", "2", "authors.curseforge.com", "/"),
            ("lookalike", "3", "notcurseforge.com", "/"),
            ("lookalike-dot", "4", ".evilcurseforge.com", "/"),
        ],
    )
    conn.commit()
    conn.close()

    cookies = FirefoxCookieExtractor()._read_profile(db, ".curseforge.com")

    assert [c.name for c in cookies] == ["bare", "sub"]
