"""Project setup tools for Unity: default folder layout and batch package changes."""

__version__ = "0.1.0"
