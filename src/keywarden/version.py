"""Version information for keywarden."""

__version__ = "0.2.0"
