"""keywarden - API key balance monitor with billing self-healing."""

from .version import __version__

__all__ = ["__version__"]
