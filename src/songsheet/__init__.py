"""Turn song texts into typed elements and render them as songbooks."""

__version__ = "0.1.0"
