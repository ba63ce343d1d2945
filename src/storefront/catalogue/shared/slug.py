import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Lowercase, hyphen-separated, URL-safe form of ``text``."""
    slug = _NON_ALNUM.sub("-", (text or "").lower()).strip("-")
    return slug[:200]
