import re

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SPACE_RE = re.compile(r"[\s_]+")
_SLUG_DASH_RE = re.compile(r"-+")

_LIKE_SPECIAL_RE = re.compile(r"([%_\\])")

LIKE_ESCAPE_CHAR = "\\"


def slugify(text: str) -> str:
    """Return a URL-safe, lowercase slug derived from *text*."""
    text = _SLUG_STRIP_RE.sub("", text.lower().strip())
    text = _SLUG_SPACE_RE.sub("-", text)
    return _SLUG_DASH_RE.sub("-", text).strip("-")


def escape_like_pattern(term: str) -> str:
    """
    Escape LIKE metacharacters in *term* so it matches literally.

    Pair the result with ``escape=LIKE_ESCAPE_CHAR`` on the ``like``/``ilike``
    call.  ``"50% off"`` becomes ``"50\\% off"``.
    """
    return _LIKE_SPECIAL_RE.sub(r"\\\1", term)


def contains_pattern(term: str) -> str:
    """Build an escaped ``%term%`` substring pattern."""
    return f"%{escape_like_pattern(term)}%"
