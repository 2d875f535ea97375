"""
Storage collaborators.
"""

from .base import AssetStore, CollectingProgressSink, LoggingProgressSink, ProgressSink
from .memory import InMemoryAssetStore
from .mysql_store import MySQLAssetStore

__all__ = [
    "AssetStore",
    "ProgressSink",
    "LoggingProgressSink",
    "CollectingProgressSink",
    "InMemoryAssetStore",
    "MySQLAssetStore",
]
