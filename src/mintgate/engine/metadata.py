"""Metadata URI resolution for issued items."""

from __future__ import annotations

from mintgate.models.collection import UnknownItem

DEFAULT_SUFFIX = ".json"


def resolve_token_uri(
    token_id: int,
    issued: int,
    base_uri: str,
    revealed: bool,
    suffix: str = DEFAULT_SUFFIX,
) -> str:
    """Return the metadata URI for token_id.

    Before reveal the base URI is served unchanged as the placeholder
    for every item. After reveal the URI is base + id + suffix, or the
    empty string when no base URI is set.
    """
    if not 1 <= token_id <= issued:
        raise UnknownItem(token_id)
    if not revealed:
        return base_uri
    if not base_uri:
        return ""
    return f"{base_uri}{token_id}{suffix}"
