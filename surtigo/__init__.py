"""Surtigo: find and rank nearby fuel stations by price and show them on a map."""

__version__ = "0.1.0"
