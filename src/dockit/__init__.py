"""dockit: a prettier, interactive wrapper around the docker CLI."""

__version__ = "0.1.0"
