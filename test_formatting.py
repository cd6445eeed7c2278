"""Tests for the text formatters used in tool responses."""

from curseforge_mcp.utils.formatting import (
    fmt_date,
    fmt_num,
    fmt_size,
    format_comment_thread,
    format_file,
    format_mod,
    format_project,
    strip_html,
    truncate,
)


def test_strip_html_keeps_block_structure():
    text = strip_html("<h1>Title</h1><p>First&nbsp;para<br>line two</p>\n\n\n<ul><li>a &amp; b</li></ul>")

    assert text == "Title\n\nFirst para\nline two\n\na & b"


def test_truncate():
    assert truncate("short", 10) == "short"
    assert truncate("x" * 12, 10) == "x" * 10 + "\n... [truncated]"


def test_fmt_num():
    assert fmt_num(999) == "999"
    assert fmt_num(1500) == "1.5K"
    assert fmt_num(2_340_000) == "2.3M"
    assert fmt_num(1_000_000_000) == "1.0B"


def test_fmt_size():
    assert fmt_size(512) == "512B"
    assert fmt_size(2048) == "2.0KB"
    assert fmt_size(5 * 1_048_576) == "5.0MB"


def test_fmt_date_accepts_iso_and_epoch_millis():
    assert fmt_date("2023-06-15T12:30:00Z") == "2023-06-15"
    assert fmt_date("2023-06-15T12:30:00.123+00:00") == "2023-06-15"
    assert fmt_date(1686832200000) == "2023-06-15"
    assert fmt_date(None) == "?"
    assert fmt_date("not a date") == "?"


def test_comment_thread_marks_unanswered():
    text = format_comment_thread({"id": 9, "author": {"username": "sam"}, "datePosted": "2024-01-02T00:00:00Z", "body": "help"})

    assert text == "[9] sam (2024-01-02) [NO REPLIES]: help"


def test_comment_text_is_clipped():
    text = format_comment_thread({"id": 1, "author": {}, "text": "y" * 400, "replies": [{"id": 2, "text": "z" * 400}]})

    first, reply = text.split("\n")
    assert first == "[1] ? (?): " + "y" * 300
    assert reply == "  └─ [2] ? (?): " + "z" * 200


def test_format_mod_summary_line():
    text = format_mod({
        "id": 238222,
        "name": "JEI",
        "downloadCount": 250_000_000,
        "authors": [{"name": "mezz"}],
        "slug": "jei",
        "categories": [{"name": "API"}],
        "dateModified": "2024-05-01T00:00:00Z",
        "summary": "View items and recipes",
    })

    assert text == (
        "[238222] JEI — 250.0M downloads | by mezz\n"
        "  slug: jei | API | updated: 2024-05-01\n"
        "  View items and recipes"
    )


def test_format_file_uses_release_label():
    text = format_file({
        "id": 5,
        "displayName": "jei-1.20.1.jar",
        "releaseType": 2,
        "fileLength": 1_048_576,
        "gameVersions": ["1.20.1", "Forge"],
    })

    assert text == "[5] jei-1.20.1.jar (beta, 1.0MB)\n  versions: 1.20.1, Forge"


def test_format_project_from_cfwidget():
    text = format_project({
        "id": 238222,
        "title": "Just Enough Items",
        "downloads": {"total": 1234},
        "game": "minecraft",
        "type": "mc-mods",
        "summary": "Item viewer",
    })

    assert text == "[238222] Just Enough Items — 1.2K downloads | minecraft/mc-mods\n  Item viewer"
