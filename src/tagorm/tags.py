"""Parsing of per-field ``db`` annotations.

An annotation is a comma-separated token list attached to a dataclass field
through its metadata::

    id: int = field(default=0, metadata={"db": "item_id,id,pk"})

Tokens are trimmed and lower-cased.  The first token names the column unless
it is empty or a role token; ``id``, ``pk`` and ``fk1`` .. ``fk4`` set roles;
``-`` anywhere excludes the field.  Other tokens are ignored so new tokens can
be added without breaking old records.
"""

from __future__ import annotations

from dataclasses import dataclass

from tagorm.types import ROLE_BY_TOKEN, Role

IGNORE_TOKEN = "-"


class InvalidTagError(ValueError):
    """Annotation is present but blank or not a string."""


@dataclass(frozen=True)
class ParsedTag:
    """Result of parsing one field annotation."""

    name: str
    roles: Role = Role.NONE
    ignored: bool = False


def parse_tag(raw: object, field_name: str) -> ParsedTag:
    """Parse one field annotation.

    Args:
        raw: The annotation value, or ``None`` when the field has none.
        field_name: Declared field name, used when the tag names no column.

    Raises:
        InvalidTagError: The annotation is present but empty.

    >>> tag = parse_tag(" Item_ID , pk", "id")
    >>> tag.name, tag.roles == Role.PRIMARY_KEY
    ('item_id', True)
    """
    if raw is None:
        return ParsedTag(name=field_name)
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidTagError(f"field {field_name!r} has an empty db tag")

    tokens = [token.strip().lower() for token in raw.split(",")]
    if IGNORE_TOKEN in tokens:
        return ParsedTag(name=field_name, ignored=True)

    roles = Role.NONE
    for token in tokens:
        roles |= ROLE_BY_TOKEN.get(token, Role.NONE)

    first = tokens[0]
    name = first if first and first not in ROLE_BY_TOKEN else field_name
    return ParsedTag(name=name, roles=roles)


__all__ = [
    "IGNORE_TOKEN",
    "InvalidTagError",
    "ParsedTag",
    "parse_tag",
]
