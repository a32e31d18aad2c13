"""Complexity Analyzer API: code complexity analysis backed by Gemini."""

__version__ = "1.0.0"
