"""fblog — render JSON log lines as colorized, human-readable text."""

__version__ = "1.0.0"
