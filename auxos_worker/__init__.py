"""Auxos document extraction worker."""

__version__ = "0.1.0"
