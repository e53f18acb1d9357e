"""Profile-keyed, multi-tier cache for generated career roadmaps."""

from roadmapcache.version import __version__

__all__ = ["__version__"]
