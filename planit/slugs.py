"""
URL slug generation for entities and events.
"""

from __future__ import annotations

import random
import re
import string

SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
SUFFIX_LENGTH = 6


def slugify(text: str, fallback: str = "item") -> str:
    base = re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")
    return base or fallback


def entity_slug(name: str) -> str:
    # Deterministic so that duplicate names hit the unique constraint.
    return slugify(name, fallback="entity")


def event_slug(title: str) -> str:
    suffix = "".join(random.choices(SUFFIX_ALPHABET, k=SUFFIX_LENGTH))
    return f"{slugify(title, fallback='event')}-{suffix}"
