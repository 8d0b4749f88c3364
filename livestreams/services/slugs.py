"""
Slug generation for streams.

A slug is the URL-safe, human readable identifier of a stream. The loop in
``assign_unique_slug`` only avoids predictable collisions; the unique index on
``streams.slug`` is what actually guarantees uniqueness under concurrent
writers (see ``StreamService``).
"""

import random
import re
import string
import uuid
from typing import Awaitable, Callable, Optional

from livestreams.models.streams import Stream

SLUG_ALPHABET = string.ascii_lowercase + string.digits
SLUG_SUFFIX_LENGTH = 6
FALLBACK_PREFIX = "stream-"

ExistsBySlug = Callable[[str], Awaitable[Optional[Stream]]]

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def slugify(value: str) -> str:
    slug = value.lower().strip()
    slug = _DISALLOWED.sub("", slug)
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    return slug.strip("-")


def random_slug_suffix(length: int = SLUG_SUFFIX_LENGTH) -> str:
    return "".join(random.choices(SLUG_ALPHABET, k=length))


def base_slug(desired: str) -> str:
    return slugify(desired) or f"{FALLBACK_PREFIX}{random_slug_suffix()}"


async def assign_unique_slug(
    desired: str,
    exists_by_slug: ExistsBySlug,
    exclude_id: Optional[uuid.UUID] = None,
) -> str:
    """
    Derive a slug from ``desired`` that no other stream uses.

    Collisions get a numeric suffix: ``hello-world``, ``hello-world-1``,
    ``hello-world-2``... When ``exclude_id`` is given (update path) a slug
    already owned by that stream counts as free.
    """
    base = base_slug(desired)
    candidate = base
    attempt = 1

    while True:
        existing = await exists_by_slug(candidate)
        if existing is None or (exclude_id is not None and existing.id == exclude_id):
            return candidate
        candidate = f"{base}-{attempt}"
        attempt += 1
