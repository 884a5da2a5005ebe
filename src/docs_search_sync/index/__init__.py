"""
Search Index Package

Provides the async client for the hosted Algolia index.
"""

from .client import AlgoliaIndexClient

__all__ = [
    "AlgoliaIndexClient",
]
