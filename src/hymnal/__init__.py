"""Legacy hymnal slide-deck import pipeline."""

__version__ = "0.1.0"
