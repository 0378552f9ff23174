"""
Asset storage: reference parsing, public URL building and the asset locator.
"""

from lineartv.storage.asset_store import AssetStore, PublicObjectStore
from lineartv.storage.locator import (
    AssetLocator,
    ResolvedAsset,
    encode_path,
    get_asset_locator,
    namespace_for,
)
from lineartv.storage.references import (
    AbsoluteReference,
    AssetReference,
    ExplicitStoreReference,
    ImplicitStoreReference,
    ReferenceUnresolvable,
    RelativeReference,
    clean_key,
    parse_asset_reference,
    try_parse_asset_reference,
)

__all__ = [
    "AssetStore",
    "PublicObjectStore",
    "AssetLocator",
    "ResolvedAsset",
    "encode_path",
    "get_asset_locator",
    "namespace_for",
    "AbsoluteReference",
    "AssetReference",
    "ExplicitStoreReference",
    "ImplicitStoreReference",
    "ReferenceUnresolvable",
    "RelativeReference",
    "clean_key",
    "parse_asset_reference",
    "try_parse_asset_reference",
]
