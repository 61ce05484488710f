"""Narrated slideshow generator: script in, captioned video out."""

__version__ = "0.1.0"
