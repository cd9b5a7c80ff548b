"""FastAPI server for the stateless OAuth gateway."""

from oauth_gateway import __version__

__all__ = ["__version__"]
