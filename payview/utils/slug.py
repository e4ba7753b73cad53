import re
import secrets
import string

from slugify import slugify

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")
_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def is_valid_slug(slug: str) -> bool:
    return bool(slug) and SLUG_PATTERN.match(slug) is not None


def generate_unique_slug(text: str) -> str:
    """Slug of `text` plus a short random suffix, e.g. ``my-ebook-x3k9qa``."""
    base = slugify(text) or "file"
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(6))
    return f"{base}-{suffix}"
