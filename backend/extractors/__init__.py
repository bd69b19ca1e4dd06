"""
Job source adapters.

Each module implements one source (see registry.ADAPTER_REGISTRY).
"""

from .registry import get_enabled_extractors, get_extractor, list_sources

__all__ = ['get_enabled_extractors', 'get_extractor', 'list_sources']
