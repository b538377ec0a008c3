"""reconjob: reconstruction job lifecycle controller."""

from reconjob.version import __version__

__all__ = ["__version__"]
