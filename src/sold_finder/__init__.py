"""Sold Finder - UK sold prices enriched with EPC floor areas."""

__version__ = "0.1.0"
