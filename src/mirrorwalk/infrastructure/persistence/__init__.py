"""Repositories built on the cache ports."""
