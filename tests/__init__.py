"""Unit tests for gopp-translate.

Tests use pytest with asyncio support. Providers are replaced by in-test dummy classes or by
monkeypatched client libraries, so no test reaches the network.
"""
