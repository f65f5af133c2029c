"""Utility helpers shared by the higher layers.

Attributes:
    ComputationCache: Caller-owned LRU cache keyed by ``(event_id, tag)``.
"""

from .cache import ComputationCache


__all__ = ["ComputationCache"]
