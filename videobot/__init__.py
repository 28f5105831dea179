"""Telegram bot turning a text prompt and a photo into a short AI video."""

__version__ = "0.1.0"
