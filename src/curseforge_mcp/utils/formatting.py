"""Compact text formatters for tool responses."""

import html
import json
import re
import sys
from datetime import datetime, timezone
from typing import Any, Optional

_UA_PLATFORMS = {
    "win32": "Windows NT 10.0; Win64; x64",
    "darwin": "Macintosh; Intel Mac OS X 10_15_7",
    "linux": "X11; Linux x86_64",
}
USER_AGENT = (
    f"Mozilla/5.0 ({_UA_PLATFORMS.get(sys.platform, _UA_PLATFORMS['linux'])}) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

RELEASE_LABELS = {1: "release", 2: "beta", 3: "alpha"}

DEFAULT_MAX_LEN = 20000


def format_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def compact(data: Any) -> str:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def strip_html(text: str) -> str:
    """Convert HTML to plain text, keeping block structure as line breaks."""
    text = re.sub(r"<br\s*/?>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"</?(p|div|h[1-6]|li|tr|blockquote|pre|hr)[^>]*>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]*>", "", text)
    text = html.unescape(text).replace("\xa0", " ")
    # Collapse spaces within lines, then 3+ newlines to 2
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r" ?\n ?", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def truncate(text: str, max_len: int = DEFAULT_MAX_LEN) -> str:
    if len(text) <= max_len:
        return text
    return text[:max_len] + "\n... [truncated]"


def fmt_num(n: float) -> str:
    if n >= 1_000_000_000:
        return f"{n / 1_000_000_000:.1f}B"
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 1_000:
        return f"{n / 1_000:.1f}K"
    return str(n)


def fmt_size(size: int) -> str:
    if size >= 1_073_741_824:
        return f"{size / 1_073_741_824:.1f}GB"
    if size >= 1_048_576:
        return f"{size / 1_048_576:.1f}MB"
    if size >= 1024:
        return f"{size / 1024:.1f}KB"
    return f"{size}B"


def fmt_date(value: Optional[Any]) -> str:
    """Render an ISO timestamp or epoch milliseconds as YYYY-MM-DD."""
    if value is None or value == "":
        return "?"
    try:
        if isinstance(value, (int, float)):
            date = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        else:
            date = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (ValueError, OverflowError, OSError):
        return "?"
    return date.strftime("%Y-%m-%d")


def _names(items: Optional[list]) -> str:
    return ", ".join(
        (item.get("name") if isinstance(item, dict) else str(item)) or "?"
        for item in items or []
    )


def format_mod(m: dict) -> str:
    authors = _names(m.get("authors"))
    cats = _names(m.get("categories"))
    line = f"[{m.get('id')}] {m.get('name')} — {fmt_num(m.get('downloadCount') or 0)} downloads"
    if authors:
        line += f" | by {authors}"
    if m.get("slug"):
        line += f"\n  slug: {m['slug']}"
    if cats:
        line += f" | {cats}"
    if m.get("dateModified"):
        line += f" | updated: {fmt_date(m['dateModified'])}"
    if m.get("summary"):
        line += f"\n  {m['summary']}"
    return line


def format_mod_detailed(m: dict) -> str:
    lines = [f"{m.get('name')} (ID: {m.get('id')})"]
    if m.get("slug"):
        lines.append(f"slug: {m['slug']} | game: {m.get('gameId')}")
    lines.append(f"downloads: {fmt_num(m.get('downloadCount') or 0)} | rank: #{m.get('gamePopularityRank') or '?'}")
    if m.get("authors"):
        lines.append(f"authors: {_names(m['authors'])}")
    if m.get("categories"):
        lines.append(f"categories: {_names(m['categories'])}")
    if m.get("summary"):
        lines.append(f"summary: {m['summary']}")
    links = m.get("links") or {}
    urls = [links.get(k) for k in ("websiteUrl", "sourceUrl", "issuesUrl", "wikiUrl") if links.get(k)]
    if urls:
        lines.append(f"links: {' | '.join(urls)}")
    logo = m.get("logo") or {}
    if logo.get("thumbnailUrl"):
        lines.append(f"logo: {logo['thumbnailUrl']}")
    lines.append(
        f"created: {fmt_date(m.get('dateCreated'))} | updated: {fmt_date(m.get('dateModified'))}"
        f" | released: {fmt_date(m.get('dateReleased'))}"
    )
    if m.get("mainFileId"):
        lines.append(f"main file: {m['mainFileId']}")
    latest = m.get("latestFilesIndexes") or []
    if latest:
        idx = [
            f"{f.get('gameVersion') or '?'} [{RELEASE_LABELS.get(f.get('releaseType'), f.get('releaseType'))}] fileId:{f.get('fileId')}"
            for f in latest
        ]
        lines.append(f"latest: {', '.join(idx)}")
    return "\n".join(lines)


def format_file(f: dict) -> str:
    rt = RELEASE_LABELS.get(f.get("releaseType")) or f.get("releaseType") or "?"
    versions = ", ".join(f.get("gameVersions") or [])
    line = f"[{f.get('id')}] {f.get('displayName') or f.get('fileName')} ({rt}, {fmt_size(f.get('fileLength') or 0)})"
    if f.get("downloadCount"):
        line += f" — {fmt_num(f['downloadCount'])} downloads"
    if f.get("fileDate"):
        line += f" | {fmt_date(f['fileDate'])}"
    if versions:
        line += f"\n  versions: {versions}"
    if f.get("downloadUrl"):
        line += f"\n  url: {f['downloadUrl']}"
    return line


def _comment_parts(c: dict, limit: int) -> tuple[str, str, str]:
    author = c.get("author") or {}
    name = author.get("displayName") or author.get("username") or "?"
    text = (c.get("text") or c.get("body") or "")[:limit]
    return name, fmt_date(c.get("datePosted")), text


def format_comment(c: dict) -> str:
    author, date, text = _comment_parts(c, 200)
    return f"[{c.get('id')}] {author} ({date}): {text}"


def format_comment_thread(c: dict) -> str:
    """A comment with its replies nested below; unanswered threads are marked."""
    author, date, text = _comment_parts(c, 300)
    replies = c.get("replies") or []
    no_replies = " [NO REPLIES]" if not replies else ""
    result = f"[{c.get('id')}] {author} ({date}){no_replies}: {text}"
    for r in replies:
        r_author, r_date, r_text = _comment_parts(r, 200)
        result += f"\n  └─ [{r.get('id')}] {r_author} ({r_date}): {r_text}"
    return result


def format_project(p: dict) -> str:
    downloads = (p.get("downloads") or {}).get("total")
    dl = f" — {fmt_num(downloads)} downloads" if downloads else ""
    line = f"[{p.get('id')}] {p.get('title') or p.get('name')}{dl}"
    if p.get("game"):
        line += f" | {p['game']}"
    if p.get("type"):
        line += f"/{p['type']}"
    if p.get("summary"):
        line += f"\n  {p['summary']}"
    return line


def format_game(g: dict) -> str:
    return f"[{g.get('id')}] {g.get('name')} ({g.get('slug') or '?'})"


def format_category(c: dict) -> str:
    return (
        f"[{c.get('id')}] {c.get('name')} (slug: {c.get('slug')}, class: {c.get('classId') or '?'}, "
        f"parent: {c.get('parentCategoryId') or 'root'})"
    )
