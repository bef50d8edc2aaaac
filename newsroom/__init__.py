"""Paste-to-channel newsroom: extract, enrich, publish, score."""

__version__ = "0.1.0"
