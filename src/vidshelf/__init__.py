"""vidshelf - serve a personal video library over HTTP."""

__version__ = "0.1.0"
