import math
import re
from dataclasses import dataclass, field
from urllib.parse import urlparse

WORDS_PER_MINUTE = 200

_TAG_RE = re.compile(r"<[^>]+>")
_LINK_RE = re.compile(r"<a[^>]+href=[\"']([^\"']+)[\"'][^>]*>([^<]*)</a>", re.IGNORECASE)


def strip_html(content: str) -> str:
    return _TAG_RE.sub(" ", content or "")


def word_count(content: str) -> int:
    return len(strip_html(content).split())


def reading_time(content: str) -> int:
    """Minutes at 200 wpm, at least 1 for any non-empty text."""
    words = word_count(content)
    return math.ceil(words / WORDS_PER_MINUTE) if words else 0


def make_excerpt(content: str, max_chars: int = 160) -> str:
    text = " ".join(strip_html(content).split())
    if len(text) <= max_chars:
        return text
    cut = text[:max_chars].rsplit(" ", 1)[0]
    return cut.rstrip(",.;:") + "..."


@dataclass
class SeoAnalysis:
    score: int
    word_count: int
    reading_time: int
    issues: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def badge(self) -> str:
        return seo_badge(self.score)


def seo_badge(score: int) -> str:
    if score >= 80:
        return "good"
    if score >= 60:
        return "fair"
    return "poor"


def analyze_seo(
    title: str,
    content: str,
    meta_description: str | None = None,
    slug: str | None = None,
    focus_keyword: str | None = None,
) -> SeoAnalysis:
    """Heuristic editor score out of 90 (title, length, meta, slug, keyword)."""
    score = 0
    issues: list[str] = []
    suggestions: list[str] = []

    title = (title or "").strip()
    words = word_count(content)

    if 10 <= len(title) <= 60:
        score += 20
    elif not title:
        issues.append("Title is missing")
    else:
        issues.append(f"Title length is {len(title)} characters (aim for 10-60)")

    if words >= 300:
        score += 15
    else:
        suggestions.append(f"Content has {words} words; 300+ ranks better")

    meta = (meta_description or "").strip()
    if 120 <= len(meta) <= 160:
        score += 20
    elif meta:
        issues.append(f"Meta description is {len(meta)} characters (aim for 120-160)")
    else:
        suggestions.append("Add a meta description")

    if slug and slug.strip():
        score += 15
    else:
        issues.append("Slug is missing")

    keyword = (focus_keyword or "").strip().lower()
    if keyword:
        in_title = keyword in title.lower()
        in_content = keyword in strip_html(content).lower()
        if in_title and in_content:
            score += 20
        elif in_title or in_content:
            score += 10
            suggestions.append("Use the focus keyword in both title and content")
        else:
            issues.append("Focus keyword does not appear in title or content")
    else:
        suggestions.append("Set a focus keyword")

    return SeoAnalysis(
        score=score,
        word_count=words,
        reading_time=math.ceil(words / WORDS_PER_MINUTE) if words else 0,
        issues=issues,
        suggestions=suggestions,
    )


@dataclass
class LinkAnalysis:
    internal_links: list[dict[str, str]]
    external_links: list[dict[str, str]]

    @property
    def total_links(self) -> int:
        return len(self.internal_links) + len(self.external_links)


def analyze_links(content: str, base_domain: str) -> LinkAnalysis:
    internal: list[dict[str, str]] = []
    external: list[dict[str, str]] = []
    for url, text in _LINK_RE.findall(content or ""):
        if url.startswith("/") or (base_domain and base_domain in url):
            internal.append({"url": url, "text": text})
        else:
            external.append({"url": url, "text": text, "domain": urlparse(url).netloc})
    return LinkAnalysis(internal, external)
