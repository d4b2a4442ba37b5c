"""
Asset Module

Exports:
- AssetManager: asset records (uploaded files and external links)
- AssetStorage: on-disk storage for uploads
"""

from .asset_manager import AssetManager, infer_link_type
from .storage import AssetStorage, StoredFile

__all__ = [
    "AssetManager",
    "AssetStorage",
    "StoredFile",
    "infer_link_type",
]
