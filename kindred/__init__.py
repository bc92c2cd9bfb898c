"""Kindred: a small relay between a browser UI and the Gemini generation API."""

__version__ = "0.1.0"
