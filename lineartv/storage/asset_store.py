"""
Asset store adapters.

The asset store is external; the core only needs it to turn a store name and
a key into a publicly fetchable URL.
"""

from abc import ABC, abstractmethod


class AssetStore(ABC):
    """Abstract public-URL builder for a content store."""

    @abstractmethod
    def public_url(self, store: str, key: str) -> str:
        """
        Build the public URL of a stored object.

        Args:
            store: Store (bucket) name, already percent-encoded
            key: Object key, each segment already percent-encoded

        Returns:
            Fully-qualified URL

        Raises:
            ReferenceUnresolvable: If the store cannot serve the object
        """


class PublicObjectStore(AssetStore):
    """
    Object store exposing public objects under ``<public_root>/<store>/<key>``.

    Matches the public object layout of S3-compatible and Supabase-style
    storage gateways.
    """

    def __init__(self, public_root: str):
        self.public_root = public_root.rstrip("/")

    def public_url(self, store: str, key: str) -> str:
        return f"{self.public_root}/{store}/{key}"

    def __repr__(self) -> str:
        return f"<PublicObjectStore {self.public_root}>"
