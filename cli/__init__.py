"""jobqueue CLI - runner and per-worker process entry points"""

from jobqueue import __version__

__all__ = ["__version__"]
