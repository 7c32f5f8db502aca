# Overview: Identifier helpers shared by models and services.

import re
import uuid

_SLUG_STRIP = re.compile(r"[^a-z0-9]+")


def new_id() -> str:
    """Opaque primary key for server-assigned rows."""
    return uuid.uuid4().hex


def slugify(value: str) -> str:
    """
    Lowercase, collapse non-alphanumerics to '-', trim dashes.

    "Classic Lemonade (L)" -> "classic-lemonade-l"
    """
    return _SLUG_STRIP.sub("-", value.lower()).strip("-")
