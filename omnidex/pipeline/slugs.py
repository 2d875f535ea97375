"""
Slug variation generator - turns a free-form folder name into candidate
marketplace slugs, most literal first.
"""
import logging
import re


logger = logging.getLogger(__name__)

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9\s]")
_NON_SLUG_CHARS_HYPHEN = re.compile(r"[^a-z0-9-]")
_UE_TOKEN = re.compile(r"ue\d+(?:\.\d+)?")
_VOL_SUFFIX = re.compile(r"\bvol[\s_-]*\d+$")
_TRAILING_NUMBER = re.compile(r"[\s_-]*\d+$")
_SEPARATOR_RUN = re.compile(r"[\s_-]+")
_NUMERIC_TOKEN = re.compile(r"^[\d.]+$")
# Only "v" plus digits is a version token; words like "Viking" are kept
_VERSION_TOKEN = re.compile(r"^v[\d.]+$")

VERSION_PATTERNS = (
    # Engine tags in parentheses: (UE5.0), (4.27), (E 5)
    re.compile(r"\([Uu]?[Ee]?\s*\d+(?:\s*\.\s*\d+)*\s*\)"),
    # v1.0, V2.3
    re.compile(r"[vV]\d+(?:\.\d+)*"),
    # Parenthesised numbers: (5 0), (4 18)
    re.compile(r"\(\s*\d+(?:[\s.]\d+)*\s*\)"),
    # UE4, UE5, UE4.27
    re.compile(r"[Uu][Ee]\d+(?:\.\d+)*"),
    # Trailing separators
    re.compile(r"[\s_-]+$"),
)

STOP_WORDS = frozenset({"ue4", "ue5", "unreal", "engine", "pack", "asset", "assets", "v", "version"})


def slugify(name: str) -> str:
    """Lowercase, separators to spaces, drop punctuation, join words with '-'."""
    name = name.lower().replace("_", " ").replace("-", " ")
    name = _NON_SLUG_CHARS.sub("", name)
    return "-".join(name.split())


def normalize_name(raw: str) -> str:
    """
    Strip engine tokens (ue5, ue4.27) and a trailing counter, collapse separators.

    A trailing number that belongs to "vol N" is kept.
    """
    s = _UE_TOKEN.sub("", raw.lower())
    if not _VOL_SUFFIX.search(s):
        s = _TRAILING_NUMBER.sub("", s)
    s = _SEPARATOR_RUN.sub(" ", s)
    return s.strip()


def remove_version_patterns(folder_name: str) -> list[str]:
    """Names with one kind of version decoration removed each (unslugified)."""
    variations = []
    for pattern in VERSION_PATTERNS:
        cleaned = pattern.sub("", folder_name).strip()
        if cleaned and cleaned != folder_name:
            variations.append(cleaned)

    paren = folder_name.find("(")
    if paren != -1:
        before_paren = folder_name[:paren].strip()
        if before_paren:
            variations.append(before_paren)
    return variations


def _is_noise_word(word: str) -> bool:
    w = word.lower()
    return (
        w in STOP_WORDS
        or len(w) <= 1
        or bool(_NUMERIC_TOKEN.match(w))
        or bool(_VERSION_TOKEN.match(w))
    )


def keyword_variations(folder_name: str) -> list[str]:
    """Main words only, then without the last word, then without the first."""
    cleaned = folder_name.replace("_", " ").replace("-", " ")
    words = [word for word in cleaned.split() if not _is_noise_word(word)]
    if not words:
        return []

    def join(selected: list[str]) -> str:
        return _NON_SLUG_CHARS_HYPHEN.sub("", "-".join(selected).lower())

    variations = [join(words)]
    if len(words) > 1:
        variations.append(join(words[:-1]))
        variations.append(join(words[1:]))
    return variations


def generate_slug_variations(folder_name: str) -> list[str]:
    """
    Candidate slugs for `folder_name`, unique and non-empty, in a stable
    order from most to least literal.
    """
    candidates = [slugify(folder_name), slugify(normalize_name(folder_name))]
    candidates.extend(slugify(cleaned) for cleaned in remove_version_patterns(folder_name))
    candidates.extend(keyword_variations(folder_name))

    # dict keeps first-seen order
    variations = [slug for slug in dict.fromkeys(candidates) if slug]
    logger.debug(f"Generated {len(variations)} slug variations for '{folder_name}': {variations}")
    return variations


def clean_for_search(folder_name: str) -> str:
    """Separators to spaces; the search endpoint does the rest."""
    return folder_name.replace("_", " ").replace("-", " ")


def extract_keywords(name: str) -> list[str]:
    """Lowercased words longer than two characters, punctuation trimmed."""
    keywords = []
    for word in name.split():
        trimmed = _trim_non_alnum(word.lower())
        if len(trimmed) > 2:
            keywords.append(trimmed)
    return keywords


def _trim_non_alnum(word: str) -> str:
    start, end = 0, len(word)
    while start < end and not word[start].isalnum():
        start += 1
    while end > start and not word[end - 1].isalnum():
        end -= 1
    return word[start:end]
