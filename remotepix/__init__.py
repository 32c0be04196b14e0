"""Save clipboard images on a remote host and insert their paths."""

__version__ = "0.1.0"
