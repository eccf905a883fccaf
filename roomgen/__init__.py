"""Room redesign generation service."""

__version__ = "1.0.0"
