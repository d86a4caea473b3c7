"""Data-access layer and REST backend for the pet store."""

__version__ = "1.0.0"
