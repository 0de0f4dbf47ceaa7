"""Zesty backend: discomfort recommendations proxied over Qloo and Gemini."""

__version__ = "0.1.0"
