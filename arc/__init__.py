"""Configuration loading and store connection bootstrap."""

__version__ = "0.1.0"
