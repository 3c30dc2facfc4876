"""Identifier aliases for names used as DOT vertex ids and PlantUML components."""

import re

_WHITESPACE = re.compile(r"\s+")


def to_alias(name: str) -> str:
    """Trim ``name`` and drop every remaining whitespace character.

    "My Microservice" -> "MyMicroservice". Distinct names may map to the same
    alias ("A B" and "AB"); callers get no warning about such collisions.
    """
    return _WHITESPACE.sub("", name.strip())
