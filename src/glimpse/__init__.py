"""Glimpse: AI-powered micro-reviewer for local code changes."""

__version__ = "0.1.0"
