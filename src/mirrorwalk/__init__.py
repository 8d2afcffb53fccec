"""Resolve mirror-page links to directly downloadable media streams."""

__version__ = "0.1.0"
