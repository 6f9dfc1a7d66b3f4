"""Name, title and ISBN normalization helpers."""
import re
from typing import Optional, Tuple

_WS = re.compile(r"\s+")
_ISBN_NOISE = re.compile(r"[\s-]")

GENRE_ALIASES = {
    "sci-fi": "science fiction",
    "scifi": "science fiction",
    "nonfiction": "non-fiction",
    "non-fiction": "non-fiction",
    "ya": "young adult",
    "rom com": "romantic comedy",
    "romcom": "romantic comedy",
}

MINOR_WORDS = frozenset({"of", "and", "the", "in", "on", "at", "to", "for", "with"})


def collapse_whitespace(value: Optional[str]) -> str:
    return _WS.sub(" ", value or "").strip()


def _capitalize(word: str) -> str:
    # str.capitalize() would lowercase the tail; words are lowercased already
    return word[:1].upper() + word[1:]


def normalize_person_name(value: Optional[str]) -> str:
    """Trim, collapse whitespace and capitalize each word ("jOHN  smith" -> "John Smith")."""
    cleaned = collapse_whitespace(value).lower()
    return " ".join(_capitalize(w) for w in cleaned.split(" ") if w)


def normalize_genre_name(value: Optional[str]) -> str:
    """
    Canonicalize a genre/category name.

    Aliases such as "sci-fi" or "ya" are mapped first, then each word is
    capitalized except minor words that are not the first word.
    """
    cleaned = collapse_whitespace(value).lower()
    cleaned = GENRE_ALIASES.get(cleaned, cleaned)

    words = []
    for i, word in enumerate(cleaned.split(" ")):
        if not word:
            continue
        if i > 0 and word in MINOR_WORDS:
            words.append(word)
        else:
            words.append(_capitalize(word))
    return " ".join(words)


def normalize_title(value: Optional[str]) -> str:
    """Casefold, drop punctuation and collapse whitespace, for title comparison.

    Letters and digits of any script are kept ("Война и мир" -> "война и мир").
    """
    folded = (value or "").casefold()
    return collapse_whitespace("".join(ch for ch in folded if ch.isalnum() or ch.isspace()))


def author_identity_key(first_name: str, last_name: str) -> Tuple[str, str]:
    """Key under which two normalized author names count as the same author."""
    return first_name.lower(), last_name.lower()


def genre_identity_key(name: str) -> str:
    return name.lower()


def split_full_name(full_name: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Split a display name into (first_name, last_name).

    The first token is the first name and the remainder the last name.
    A single token is treated as last-name-only. Blank input gives None.
    """
    cleaned = collapse_whitespace(full_name)
    if not cleaned:
        return None
    if " " not in cleaned:
        return "", cleaned
    first, last = cleaned.split(" ", 1)
    return first, last


def clean_isbn(isbn: Optional[str]) -> str:
    return _ISBN_NOISE.sub("", isbn or "")
