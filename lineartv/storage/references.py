"""
Asset reference parsing.

A scheduled item stores its asset as a free-form string. The string is parsed
once, when the item is read from the timeline store, into one of four
reference variants:

- ``AbsoluteReference``: an ``http(s)://`` URL or a site-absolute ``/path``,
  used as-is.
- ``ExplicitStoreReference``: ``store:key`` or ``scheme://store/key``.
- ``ImplicitStoreReference``: ``store/key`` where the first segment looks
  like a store name.
- ``RelativeReference``: a key inside the channel's own namespace.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

_HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)
_SCHEME_URL = re.compile(r"^[a-z][a-z0-9+.\-]*://(.*)$", re.IGNORECASE)
_STORE_COLON = re.compile(r"^([a-z0-9_\-]+):(.+)$", re.IGNORECASE)
_STORE_NAME = re.compile(r"^[a-z0-9_\-]+$", re.IGNORECASE)


class ReferenceUnresolvable(Exception):
    """An asset reference cannot be turned into a URL."""

    def __init__(self, message: str, reference: Optional[str] = None):
        super().__init__(message)
        self.reference = reference


@dataclass(frozen=True)
class AbsoluteReference:
    """Absolute URL or site-absolute path, returned unchanged."""

    url: str


@dataclass(frozen=True)
class ExplicitStoreReference:
    """Reference naming its store explicitly (``store:key``, ``storage://store/key``)."""

    store: str
    key: str


@dataclass(frozen=True)
class ImplicitStoreReference:
    """Reference whose first path segment is taken as the store name."""

    store: str
    key: str


@dataclass(frozen=True)
class RelativeReference:
    """Key relative to the channel namespace."""

    key: str


AssetReference = Union[
    AbsoluteReference,
    ExplicitStoreReference,
    ImplicitStoreReference,
    RelativeReference,
]


def clean_key(key: str) -> str:
    """
    Normalize a storage key.

    Trims whitespace, converts backslashes, drops a leading ``./`` or ``/``
    and collapses repeated slashes.
    """
    cleaned = key.strip().replace("\\", "/")
    cleaned = re.sub(r"^\.?/", "", cleaned)
    return re.sub(r"/{2,}", "/", cleaned)


def parse_asset_reference(raw: Optional[str]) -> AssetReference:
    """
    Parse a stored asset reference string.

    Args:
        raw: Reference as stored on the scheduled item

    Returns:
        The parsed reference variant

    Raises:
        ReferenceUnresolvable: If the reference is empty
    """
    text = (raw or "").strip()
    if not text:
        raise ReferenceUnresolvable("Empty asset reference", reference=raw)

    if _HTTP_URL.match(text) or text.startswith("/"):
        return AbsoluteReference(url=text)

    # scheme://store/key is checked before store:key so the scheme
    # never ends up as a store name
    scheme_match = _SCHEME_URL.match(text)
    if scheme_match:
        store, _, key = clean_key(scheme_match.group(1)).partition("/")
        key = clean_key(key)
        if store and key:
            return ExplicitStoreReference(store=store, key=key)
        # No key: whatever follows the scheme is a namespace key
        text = scheme_match.group(1)

    text = clean_key(text)

    colon_match = _STORE_COLON.match(text)
    if colon_match:
        key = clean_key(colon_match.group(2))
        if key:
            return ExplicitStoreReference(store=colon_match.group(1), key=key)

    first, sep, rest = text.partition("/")
    if sep and _STORE_NAME.match(first):
        rest = clean_key(rest)
        if rest:
            return ImplicitStoreReference(store=first, key=rest)

    # May be empty ("./"): the namespace root
    return RelativeReference(key=text)


def try_parse_asset_reference(raw: Optional[str]) -> Optional[AssetReference]:
    """Parse a reference, returning None instead of raising."""
    try:
        return parse_asset_reference(raw)
    except ReferenceUnresolvable:
        return None
