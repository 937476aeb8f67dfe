"""Core components of the translation engine.

This package contains the translation cache, the dispatch layer (rate limiting and bounded
concurrency), the provider interface with its concrete engines, the orchestrating manager and the
batch controller.
"""

from core.version import VERSION

__all__: list[str] = ["VERSION"]
