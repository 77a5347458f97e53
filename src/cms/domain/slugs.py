import re
import unicodedata
from collections.abc import Callable

# Letters that have no decomposed form in Unicode
_SPECIAL_LETTERS = str.maketrans({"đ": "d", "Đ": "D", "ø": "o", "Ø": "O", "ß": "ss"})


def remove_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text.translate(_SPECIAL_LETTERS))
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def generate_slug(text: str) -> str:
    """
    'Hướng dẫn React & Vue.js' -> 'huong-dan-react-vue-js'
    """
    if not text:
        return ""

    slug = remove_diacritics(text.strip().lower())
    slug = re.sub(r"[^\w\s-]", " ", slug, flags=re.ASCII)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def unique_slug(base: str, exists: Callable[[str], bool]) -> str:
    """Appends -1, -2, ... until `exists` reports the slug as free."""
    candidate = base
    counter = 1
    while exists(candidate):
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate
