"""Stateless OAuth 2.0 authorization-code gateway."""

__version__ = "1.0.0"
