"""
Asset Locator.

Turns a scheduled item's asset reference into a playable URL inside a
channel namespace, and builds the standby asset URL for a namespace.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import quote

from lineartv.config import get_config
from lineartv.storage.asset_store import AssetStore, PublicObjectStore
from lineartv.storage.references import (
    AbsoluteReference,
    AssetReference,
    ExplicitStoreReference,
    ImplicitStoreReference,
    ReferenceUnresolvable,
    RelativeReference,
    parse_asset_reference,
)

logger = logging.getLogger(__name__)


def encode_path(path: str) -> str:
    """Percent-encode every segment of a slash-separated path."""
    return "/".join(quote(segment, safe="") for segment in path.split("/"))


@dataclass(frozen=True)
class ResolvedAsset:
    """
    A resolved, playable asset location.

    Attributes:
        url: The playable URL (or site-absolute path)
        reference: The parsed reference it was resolved from
        store: Store the object lives in (None for absolute references)
        key: Unencoded key within the store (None for absolute references)
    """

    url: str
    reference: AssetReference
    store: Optional[str] = None
    key: Optional[str] = None


class AssetLocator:
    """
    Resolves asset references against an asset store.

    Usage:
        locator = AssetLocator(PublicObjectStore("https://cdn.example.com/public"))
        resolved = locator.resolve("mybucket:clip.mp4", namespace="channel5")
        print(resolved.url)
    """

    def __init__(self, asset_store: AssetStore, standby_key: str = "standby.mp4"):
        self.asset_store = asset_store
        self.standby_key = standby_key

    def resolve(self, asset_ref: Union[str, AssetReference], namespace: str) -> ResolvedAsset:
        """
        Resolve a reference (string or already parsed) to a URL.

        Args:
            asset_ref: Raw reference string or parsed AssetReference
            namespace: The channel namespace used for relative keys

        Returns:
            ResolvedAsset with the final URL

        Raises:
            ReferenceUnresolvable: If no URL can be constructed
        """
        if isinstance(asset_ref, str):
            reference = parse_asset_reference(asset_ref)
        else:
            reference = asset_ref

        if isinstance(reference, AbsoluteReference):
            return ResolvedAsset(url=reference.url, reference=reference)

        if isinstance(reference, (ExplicitStoreReference, ImplicitStoreReference)):
            return self._build(reference, reference.store, reference.key)

        if isinstance(reference, RelativeReference):
            key = reference.key
            prefix = f"{namespace}/"
            if namespace and key.lower().startswith(prefix.lower()):
                key = key[len(prefix):]
            # An empty key points at the namespace root
            return self._build(reference, namespace, key)

        raise ReferenceUnresolvable(f"Unsupported reference type: {type(reference).__name__}")

    def standby_url(self, namespace: str) -> str:
        """Get the URL of the namespace's standby asset."""
        return self.asset_store.public_url(
            encode_path(namespace),
            encode_path(self.standby_key),
        )

    def _build(self, reference: AssetReference, store: str, key: str) -> ResolvedAsset:
        url = self.asset_store.public_url(encode_path(store), encode_path(key))
        logger.debug(f"Resolved {reference} -> {url}")
        return ResolvedAsset(url=url, reference=reference, store=store, key=key)


def namespace_for(channel_id: int, namespace: Optional[str] = None) -> str:
    """Get a channel's namespace, falling back to the configured template."""
    if namespace and namespace.strip():
        return namespace.strip()
    return get_config().storage.namespace_template.format(channel_id=channel_id)


# Global locator instance
_locator_instance: Optional[AssetLocator] = None


def get_asset_locator() -> AssetLocator:
    """Get the global AssetLocator built from configuration."""
    global _locator_instance
    if _locator_instance is None:
        storage = get_config().storage
        _locator_instance = AssetLocator(
            PublicObjectStore(storage.public_root),
            standby_key=storage.standby_key,
        )
    return _locator_instance
