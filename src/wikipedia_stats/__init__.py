"""Revision statistics over Wikipedia meta-history dumps."""

__version__ = "0.1.0"
