"""Mindify: voice-capture inbox with AI organization."""

__version__ = "0.1.0"
