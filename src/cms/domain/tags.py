import re
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from src.config import AppConfig

# Canonical spelling for tags that should not be title-cased
KNOWN_ACRONYMS: dict[str, str] = {
    tag.upper(): tag
    for tag in (
        "SEO", "API", "UI", "UX", "CSS", "HTML", "SQL", "JSON", "XML", "HTTP",
        "HTTPS", "REST", "GraphQL", "JWT", "OAuth", "AI", "ML", "IoT", "VR",
        "AR", "PHP", "JS", "TS", "AWS", "GCP", "CDN", "IQ", "EQ",
    )
}


def lowercase_normalize_tag(tag: str) -> str:
    return " ".join(tag.split()).lower()


def default_normalize_tag(tag: str) -> str:
    """Keeps known acronyms in their canonical case, capitalizes the rest."""
    cleaned = " ".join(tag.split())
    known = KNOWN_ACRONYMS.get(cleaned.upper())
    if known:
        return known
    return cleaned[:1].upper() + cleaned[1:].lower()


@dataclass
class TagProcessingResult:
    valid_tags: list[str] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)
    too_long: list[str] = field(default_factory=list)
    empty: int = 0


def process_bulk_tags(
    raw: str,
    existing: Iterable[str] = (),
    max_length: int = AppConfig.TAG_MAX_LENGTH,
    case_sensitive: bool = False,
    normalize: Callable[[str], str] = lowercase_normalize_tag,
    separator: str = ",",
) -> TagProcessingResult:
    """
    Splits a pasted tag list and sorts every piece into a bucket.

    - blank pieces are only counted
    - pieces longer than `max_length` go to `too_long`
    - tags already on the article go to `duplicates`
    - repeats within the same input are dropped silently
    """

    def key(tag: str) -> str:
        return tag if case_sensitive else tag.lower()

    result = TagProcessingResult()
    existing_keys = {key(t) for t in existing}
    seen: set[str] = set()

    for piece in raw.split(separator):
        trimmed = piece.strip()
        if not trimmed:
            result.empty += 1
            continue

        if len(trimmed) > max_length:
            result.too_long.append(trimmed)
            continue

        normalized = normalize(trimmed)
        tag_key = key(normalized)

        if tag_key in existing_keys:
            result.duplicates.append(normalized)
            continue
        if tag_key in seen:
            continue

        seen.add(tag_key)
        result.valid_tags.append(normalized)

    return result


def validate_single_tag(
    tag: str,
    existing: Iterable[str] = (),
    max_length: int = AppConfig.TAG_MAX_LENGTH,
    case_sensitive: bool = False,
    normalize: Callable[[str], str] = lowercase_normalize_tag,
) -> tuple[str | None, str | None]:
    """Returns (normalized_tag, None) when valid, else (None, error)."""
    trimmed = tag.strip()
    if not trimmed:
        return None, "Tag must not be empty"
    if len(trimmed) > max_length:
        return None, f"Tag is too long (max {max_length} characters)"

    normalized = normalize(trimmed)
    existing_keys = {t if case_sensitive else t.lower() for t in existing}
    if (normalized if case_sensitive else normalized.lower()) in existing_keys:
        return None, "Tag already exists"
    return normalized, None


def create_tag_feedback_message(
    result: TagProcessingResult, max_length: int = AppConfig.TAG_MAX_LENGTH
) -> tuple[str, str]:
    """Builds the editor banner text and its level (success/warning/error)."""
    lines: list[str] = []
    level = "success"

    if result.valid_tags:
        lines.append(
            f"✅ Added {len(result.valid_tags)} tag(s): {', '.join(result.valid_tags)}"
        )
    if result.duplicates:
        lines.append(f"⚠️ Already present: {', '.join(result.duplicates)}")
        level = "warning"
    if result.too_long:
        shortened = [t if len(t) <= 20 else t[:20] + "..." for t in result.too_long]
        lines.append(f"❌ Too long (>{max_length} chars): {', '.join(shortened)}")
        level = "warning"
    if result.empty:
        lines.append(f"ℹ️ Skipped {result.empty} empty tag(s)")

    if not result.valid_tags and (result.duplicates or result.too_long):
        level = "error"

    return "\n".join(lines), level


def extract_tags_from_content(content: str, max_tags: int = 10) -> list[str]:
    """Hashtags first, then the most frequent words of 4-19 letters."""
    hashtags = [h.lower() for h in re.findall(r"#(\w{2,})", content)]

    words = re.sub(r"[^\w\s]", " ", content.lower()).split()
    frequency = Counter(w for w in words if 3 < len(w) < 20)

    tags: list[str] = []
    for candidate in hashtags + [w for w, _ in frequency.most_common()]:
        if candidate not in tags:
            tags.append(candidate)
        if len(tags) >= max_tags:
            break
    return tags


def format_tags_for_display(tags: list[str], max_display: int = 5) -> tuple[list[str], int]:
    if len(tags) <= max_display:
        return list(tags), 0
    return tags[:max_display], len(tags) - max_display
