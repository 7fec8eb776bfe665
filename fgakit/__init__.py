"""Authorization models, tuple files, store tests and rate-limited tuple imports."""

__version__ = "0.1.0"