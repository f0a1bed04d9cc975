"""Reelshelf: a catalog service for titled media records."""

__version__ = "1.0.0"
